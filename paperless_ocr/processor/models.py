from dataclasses import dataclass

from paperless_ocr.exceptions import PaperlessOcrError


@dataclass(frozen=True)
class RunSuccess:
    extracted_text: str
    file_name: str
    file_size: int
    processing_time_ms: int


@dataclass(frozen=True)
class RunFailure:
    category: str
    message: str
    exit_code: int
    detail: str | None = None

    @classmethod
    def from_error(cls, error: PaperlessOcrError) -> "RunFailure":
        return cls(
            category=error.category,
            message=error.user_message,
            exit_code=error.exit_code,
            detail=error.detail,
        )


@dataclass(frozen=True)
class RunOutcome:
    """What one invocation produced: exactly one of success or failure."""

    success: RunSuccess | None = None
    failure: RunFailure | None = None

    def __post_init__(self) -> None:
        if (self.success is None) == (self.failure is None):
            raise ValueError("RunOutcome must carry exactly one of success or failure")

    @classmethod
    def succeeded(cls, success: RunSuccess) -> "RunOutcome":
        return cls(success=success)

    @classmethod
    def failed(cls, error: PaperlessOcrError) -> "RunOutcome":
        return cls(failure=RunFailure.from_error(error))

    @property
    def exit_code(self) -> int:
        return self.failure.exit_code if self.failure is not None else 0
