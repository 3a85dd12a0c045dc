import logging
import sys

from paperless_ocr.redaction import redact

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    def __init__(self) -> None:
        logging.Handler.__init__(self)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr


class RedactingFormatter(logging.Formatter):
    """Formatter that scrubs credentials from the rendered record."""

    def __init__(self, fmt: str, secrets: set[str]) -> None:
        super().__init__(fmt)
        self._secrets = secrets

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record), self._secrets)


class Log:
    """Centralized logging with structured format.

    Diagnostics always go to stderr; stdout belongs to the output formatter.
    """

    _logger: logging.Logger = logging.getLogger("paperless_ocr")
    _secrets: set[str] = set()

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stderr handler."""
        cls._logger.setLevel(_LEVELS.get(log_level.lower(), logging.INFO))
        if not any(isinstance(h, _StderrHandler) for h in cls._logger.handlers):
            handler = _StderrHandler()
            handler.setFormatter(
                RedactingFormatter("%(asctime)s [%(levelname)s] %(message)s", cls._secrets)
            )
            cls._logger.addHandler(handler)

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Never let this value reach the log sink verbatim."""
        if secret:
            cls._secrets.add(secret)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)
