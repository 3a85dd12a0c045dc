import json
from collections.abc import Callable, Iterable

import typer

from paperless_ocr.processor.models import RunFailure, RunOutcome, RunSuccess
from paperless_ocr.redaction import redact, redact_secrets

Writer = Callable[[str], None]


def _stdout(text: str) -> None:
    typer.echo(text)


def _stderr(text: str) -> None:
    typer.echo(text, err=True)


class OutputFormatter:
    """Single writer of stdout; renders a RunOutcome as text or a JSON envelope.

    Human mode: success to stdout, failure as one ``Error:`` line on stderr.
    JSON mode: exactly one JSON document on stdout either way.
    """

    def __init__(
        self,
        json_mode: bool = False,
        secrets: Iterable[str] = (),
        out: Writer = _stdout,
        err: Writer = _stderr,
    ) -> None:
        self._json_mode = json_mode
        self._secrets = [s for s in secrets if s]
        self._out = out
        self._err = err

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def render(self, outcome: RunOutcome) -> None:
        if outcome.success is not None:
            self.render_success(outcome.success)
        elif outcome.failure is not None:
            self.render_failure(outcome.failure)

    def render_success(self, success: RunSuccess) -> None:
        if self._json_mode:
            self._out(self._dump(self.success_envelope(success)))
            return
        self._out(redact_secrets(self.human_success(success), self._secrets))

    def render_failure(self, failure: RunFailure) -> None:
        if self._json_mode:
            self._out(self._dump(self.failure_envelope(failure)))
            return
        self._err(f"Error: {redact(failure.message, self._secrets)}")

    @staticmethod
    def human_success(success: RunSuccess) -> str:
        if not success.extracted_text.strip():
            return (
                f"Warning: No text could be extracted from {success.file_name} "
                f"({success.file_size} bytes). The file may contain only images without "
                "text, or the text may not be readable."
            )
        return (
            f"Extracted text from {success.file_name} ({success.file_size} bytes):\n\n"
            f"{success.extracted_text}"
        )

    def success_envelope(self, success: RunSuccess) -> dict[str, object]:
        return {
            "success": True,
            "data": {
                "extracted_text": redact_secrets(success.extracted_text, self._secrets),
                "file_name": success.file_name,
                "file_size": success.file_size,
                "processing_time_ms": success.processing_time_ms,
                "confidence": None,
            },
        }

    def failure_envelope(self, failure: RunFailure) -> dict[str, object]:
        detail = failure.detail
        return {
            "success": False,
            "error": {
                "type": failure.category,
                "message": redact(failure.message, self._secrets),
                "details": redact(detail, self._secrets) if detail is not None else None,
            },
        }

    @staticmethod
    def _dump(envelope: dict[str, object]) -> str:
        return json.dumps(envelope, indent=2, ensure_ascii=False)
