from dataclasses import dataclass


@dataclass(frozen=True)
class UploadReceipt:
    """Validated answer of the file upload endpoint."""

    id: str
    object: str
    bytes: int
    created_at: int
    filename: str
    purpose: str
    status: str | None = None


@dataclass(frozen=True)
class PageDimensions:
    dpi: int
    height: int
    width: int


@dataclass(frozen=True)
class OcrPage:
    index: int
    markdown: str
    dimensions: PageDimensions
    images: tuple[object, ...] = ()


@dataclass(frozen=True)
class OcrUsage:
    pages_processed: int
    doc_size_bytes: int


@dataclass(frozen=True)
class OcrResult:
    """Validated answer of the OCR endpoint."""

    PAGE_SEPARATOR = "\n\n"

    model: str
    pages: tuple[OcrPage, ...]
    usage: OcrUsage
    document_annotation: str | None = None

    @property
    def text(self) -> str:
        """Page markdown in page order, separated by a blank line."""
        return self.PAGE_SEPARATOR.join(page.markdown for page in self.pages)
