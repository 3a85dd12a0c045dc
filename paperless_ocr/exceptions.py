from typing import ClassVar


class PaperlessOcrError(Exception):
    """Base exception for every failure the CLI reports to the user.

    Each subclass pins a category (the JSON ``error.type``), the process
    exit code, and the label prefixed to the user-facing message.
    """

    category: ClassVar[str] = "internal"
    exit_code: ClassVar[int] = 5
    label: ClassVar[str] = "Internal error"

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    @property
    def user_message(self) -> str:
        return f"{self.label}: {self.message}"


class InvalidInputError(PaperlessOcrError):
    """Raised when user input is unusable: bad arguments, format, or size."""

    category = "validation"
    exit_code = 2
    label = "Validation error"


class PasswordProtectedPdfError(InvalidInputError):
    """Raised when a PDF carries an encryption dictionary."""


class FileAccessError(PaperlessOcrError):
    """Raised when the input path is missing, unreadable, or not a regular file."""

    category = "file_io"
    exit_code = 3
    label = "File error"


class ConfigurationError(PaperlessOcrError):
    """Raised when credentials or the configuration file are missing or malformed."""

    category = "api"
    exit_code = 4
    label = "Configuration error"


class ApiError(PaperlessOcrError):
    """Raised when the OCR service rejects a request or answers with garbage."""

    category = "api"
    exit_code = 5
    label = "API error"


class ResponseValidationError(ApiError):
    """Raised when a well-formed JSON response violates a domain invariant."""


class NetworkError(PaperlessOcrError):
    """Raised on transport failures and when transient retries are exhausted."""

    category = "network"
    exit_code = 5
    label = "Network error"


class InternalError(PaperlessOcrError):
    """Raised on programmer-detected inconsistencies."""
