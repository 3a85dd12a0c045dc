import json
from contextlib import nullcontext

import httpx

from paperless_ocr.api.errors import raise_for_response
from paperless_ocr.api.models import OcrResult
from paperless_ocr.api.transport import HttpTransport
from paperless_ocr.api.validator import build_ocr_result
from paperless_ocr.exceptions import ApiError, InternalError
from paperless_ocr.logging.logger import Log


class OcrInvoker:
    """Runs OCR on a previously uploaded file."""

    ENDPOINT = "/v1/ocr"
    MODEL = "mistral-ocr-latest"

    def __init__(self, transport: HttpTransport) -> None:
        self._transport = transport

    def invoke(self, file_id: str) -> OcrResult:
        """Request OCR for ``file_id`` and validate the response.

        Raises:
            ApiError: on a rejected request or an unparseable/invalid response.
            NetworkError: on transport failure or exhausted retries.
        """
        if not file_id:
            raise InternalError("OCR requested without an uploaded file ID")
        payload = {
            "model": self.MODEL,
            "document": {"type": "file", "file_id": file_id},
        }

        def produce() -> nullcontext[httpx.Request]:
            return nullcontext(self._transport.build_request("POST", self.ENDPOINT, json=payload))

        response = self._transport.send(produce)
        raise_for_response(response, attempts=self._transport.max_attempts)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiError(f"Failed to parse OCR response: {exc}") from exc
        result = build_ocr_result(data)
        Log.info(f"OCR completed with {result.model}: {len(result.pages)} page(s)")
        return result
