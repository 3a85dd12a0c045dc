from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.models import OcrResult, UploadReceipt
from paperless_ocr.source.file_source import FileSource


@dataclass(slots=True)
class PipelineContext:
    path: str | Path
    source: FileSource | None = None
    credentials: Credentials | None = None
    receipt: UploadReceipt | None = None
    ocr_result: OcrResult | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
