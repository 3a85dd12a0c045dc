from dataclasses import dataclass
from urllib.parse import urlparse

from paperless_ocr.exceptions import InvalidInputError
from paperless_ocr.logging.logger import Log


@dataclass(frozen=True)
class Credentials:
    """Bearer secret and base URL for the OCR service."""

    secret: str
    base_url: str

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise InvalidInputError if the secret or base URL is malformed."""
        if not self.secret:
            raise InvalidInputError("API key must not be empty")
        if any(ch.isspace() for ch in self.secret):
            raise InvalidInputError("API key must not contain whitespace")

        parsed = urlparse(self.base_url)
        if parsed.scheme != "https" or not parsed.netloc:
            raise InvalidInputError(
                f"API base URL must be an absolute https URL, got '{self.base_url}'"
            )
        if "mistral" not in parsed.netloc:
            Log.warning(f"API base URL does not appear to be Mistral AI: {parsed.netloc}")

    def auth_header(self) -> str:
        return f"Bearer {self.secret}"

    def redacted(self) -> str:
        """Safe form of the secret for log lines."""
        if len(self.secret) > 8:
            return f"{self.secret[:4]}***"
        return "***"

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def __repr__(self) -> str:
        return f"Credentials(secret='{self.redacted()}', base_url='{self.base_url}')"
