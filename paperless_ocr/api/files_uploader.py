import json
import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext

import httpx

from paperless_ocr.api.errors import raise_for_response
from paperless_ocr.api.models import UploadReceipt
from paperless_ocr.api.transport import HttpTransport, RequestProducer
from paperless_ocr.api.validator import build_upload_receipt
from paperless_ocr.exceptions import ApiError
from paperless_ocr.logging.logger import Log
from paperless_ocr.source.file_source import FileSource


class FilesUploader:
    """Uploads a document to the files endpoint and returns its receipt.

    Files up to ``streaming_threshold`` bytes are buffered once and the same
    bytes are resent on retry; larger files are streamed from a freshly
    reopened handle on every attempt.
    """

    ENDPOINT = "/v1/files"
    PURPOSE = "ocr"
    STREAMING_THRESHOLD = 50 * 1024 * 1024

    def __init__(
        self,
        transport: HttpTransport,
        *,
        streaming_threshold: int = STREAMING_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        self._streaming_threshold = streaming_threshold
        self._clock = clock

    def upload(self, source: FileSource) -> UploadReceipt:
        """Upload ``source`` and validate the receipt.

        Raises:
            ApiError: on a rejected upload, an unparseable or invalid receipt,
                or a receipt whose status is 'error'.
            NetworkError: on transport failure or exhausted retries.
        """
        # One boundary per upload keeps every attempt's body byte-identical.
        headers = {"Content-Type": f"multipart/form-data; boundary={os.urandom(16).hex()}"}
        if source.size > self._streaming_threshold:
            Log.info(
                f"Large file detected ({source.size // (1024 * 1024)}MB), using streaming upload"
            )
            produce = self._streaming_producer(source, headers)
        else:
            produce = self._buffered_producer(source, headers)

        response = self._transport.send(produce)
        raise_for_response(response, attempts=self._transport.max_attempts)
        receipt = self._parse_receipt(response)

        if receipt.status == "error":
            Log.warning(f"File upload status is 'error' for file: {receipt.id}")
            raise ApiError(f"Upload of {source.filename} finished with status 'error'")
        if receipt.status == "processing":
            Log.info(f"File is being processed: {receipt.id}")
        elif receipt.status == "processed":
            Log.debug(f"File processing completed: {receipt.id}")

        Log.info(f"Uploaded {source.filename} ({source.size} bytes) as {receipt.id}")
        return receipt

    def _buffered_producer(self, source: FileSource, headers: dict[str, str]) -> RequestProducer:
        content = source.read_all()

        def produce() -> nullcontext[httpx.Request]:
            return nullcontext(
                self._transport.build_request(
                    "POST",
                    self.ENDPOINT,
                    headers=headers,
                    data={"purpose": self.PURPOSE},
                    files={"file": (source.filename, content, source.mime)},
                )
            )

        return produce

    def _streaming_producer(self, source: FileSource, headers: dict[str, str]) -> RequestProducer:
        @contextmanager
        def produce() -> Iterator[httpx.Request]:
            with source.open_stream() as (reader, _length):
                yield self._transport.build_request(
                    "POST",
                    self.ENDPOINT,
                    headers=headers,
                    data={"purpose": self.PURPOSE},
                    files={"file": (source.filename, reader, source.mime)},
                )

        return produce

    def _parse_receipt(self, response: httpx.Response) -> UploadReceipt:
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiError(f"Failed to parse upload response: {exc}") from exc
        return build_upload_receipt(data, now=self._clock())
