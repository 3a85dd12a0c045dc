from typing import TypeVar

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.files_uploader import FilesUploader
from paperless_ocr.api.ocr_invoker import OcrInvoker
from paperless_ocr.exceptions import InternalError, InvalidInputError
from paperless_ocr.logging.logger import Log
from paperless_ocr.processor.pipeline import PipelineContext, PipelineStep
from paperless_ocr.source.file_source import FileSource

T = TypeVar("T")


class LoadFileStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        context.source = FileSource.open(context.path)
        Log.debug(
            f"File validation passed: {context.source.filename} "
            f"({context.source.size} bytes, {context.source.mime})"
        )
        return context


class CheckFileSizeStep(PipelineStep):
    def __init__(self, max_size_bytes: int) -> None:
        self._max_size_bytes = max_size_bytes

    def run(self, context: PipelineContext) -> PipelineContext:
        source = _require(context.source, "source")
        if source.size > self._max_size_bytes:
            raise InvalidInputError(
                f"File size ({source.size / (1024 * 1024):.2f} MB) exceeds maximum "
                f"allowed size ({self._max_size_bytes // (1024 * 1024)} MB)"
            )
        return context


class BuildCredentialsStep(PipelineStep):
    def __init__(self, api_key: str, api_base_url: str) -> None:
        self._api_key = api_key
        self._api_base_url = api_base_url

    def run(self, context: PipelineContext) -> PipelineContext:
        context.credentials = Credentials(secret=self._api_key, base_url=self._api_base_url)
        Log.debug(f"Using API {context.credentials.base_url} (auth: {context.credentials.redacted()})")
        return context


class UploadFileStep(PipelineStep):
    def __init__(self, uploader: FilesUploader) -> None:
        self._uploader = uploader

    def run(self, context: PipelineContext) -> PipelineContext:
        context.receipt = self._uploader.upload(_require(context.source, "source"))
        return context


class RunOcrStep(PipelineStep):
    def __init__(self, invoker: OcrInvoker) -> None:
        self._invoker = invoker

    def run(self, context: PipelineContext) -> PipelineContext:
        receipt = _require(context.receipt, "receipt")
        context.ocr_result = self._invoker.invoke(receipt.id)
        Log.info(
            f"Extracted {len(context.ocr_result.text)} chars from {receipt.filename}"
        )
        return context


def _require(value: T | None, name: str) -> T:
    if value is None:
        raise InternalError(f"PipelineContext.{name} must be set before this step")
    return value
