import time
from collections.abc import Callable
from pathlib import Path

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.files_uploader import FilesUploader
from paperless_ocr.api.ocr_invoker import OcrInvoker
from paperless_ocr.api.transport import HttpTransport
from paperless_ocr.config.settings import Settings
from paperless_ocr.exceptions import InternalError, PaperlessOcrError
from paperless_ocr.logging.logger import Log
from paperless_ocr.processor.models import RunOutcome, RunSuccess
from paperless_ocr.processor.pipeline import PipelineContext, PipelineStep
from paperless_ocr.processor.steps import (
    BuildCredentialsStep,
    CheckFileSizeStep,
    LoadFileStep,
    RunOcrStep,
    UploadFileStep,
)

TransportFactory = Callable[[Credentials], HttpTransport]


class Processor:
    """Orchestrates one OCR run.

    Pipeline: load file -> check size -> credentials -> upload -> OCR.
    Failures short-circuit into a failed RunOutcome; nothing is retried here.
    """

    def __init__(
        self,
        local_steps: list[PipelineStep],
        transport_factory: TransportFactory,
        remote_steps_factory: Callable[[HttpTransport], list[PipelineStep]],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._local_steps = local_steps
        self._transport_factory = transport_factory
        self._remote_steps_factory = remote_steps_factory
        self._clock = clock

    def process(self, path: str | Path) -> RunOutcome:
        """Run the full pipeline for ``path``."""
        Log.info(f"Processing OCR command for file: {path}")
        started = self._clock()
        context = PipelineContext(path=path)
        try:
            context = self._run(context)
        except PaperlessOcrError as exc:
            Log.debug(f"Pipeline failed ({exc.category}): {exc.message}")
            return RunOutcome.failed(exc)
        except Exception as exc:
            Log.debug(f"Pipeline failed unexpectedly: {exc!r}")
            return RunOutcome.failed(InternalError(str(exc) or type(exc).__name__, detail=repr(exc)))

        elapsed_ms = int((self._clock() - started) * 1000)
        if context.source is None or context.ocr_result is None:
            return RunOutcome.failed(InternalError("Pipeline finished without a result"))
        return RunOutcome.succeeded(
            RunSuccess(
                extracted_text=context.ocr_result.text,
                file_name=context.source.filename,
                file_size=context.source.size,
                processing_time_ms=elapsed_ms,
            )
        )

    def _run(self, context: PipelineContext) -> PipelineContext:
        for step in self._local_steps:
            context = step.run(context)
        if context.credentials is None:
            raise InternalError("Credentials were not built before the upload")
        with self._transport_factory(context.credentials) as transport:
            for step in self._remote_steps_factory(transport):
                context = step.run(context)
        return context


def build_processor(
    settings: Settings,
    transport_factory: TransportFactory | None = None,
) -> Processor:
    """Build a Processor wired from application settings."""

    def default_transport(credentials: Credentials) -> HttpTransport:
        return HttpTransport(
            credentials,
            timeout_seconds=settings.timeout_seconds,
            retry_policy=settings.retry_policy,
        )

    def remote_steps(transport: HttpTransport) -> list[PipelineStep]:
        return [
            UploadFileStep(FilesUploader(transport)),
            RunOcrStep(OcrInvoker(transport)),
        ]

    return Processor(
        local_steps=[
            LoadFileStep(),
            CheckFileSizeStep(settings.max_file_size_bytes),
            BuildCredentialsStep(settings.api_key, settings.api_base_url),
        ],
        transport_factory=transport_factory or default_transport,
        remote_steps_factory=remote_steps,
    )
