from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.transport import HttpTransport
from paperless_ocr.config.settings import Settings
from paperless_ocr.processor import processor as processor_module
from paperless_ocr.processor.processor import Processor
from tests.helpers import TEST_API_KEY, FakeMistral

_ENV_VARS = (
    "PAPERLESS_OCR_API_BASE_URL",
    "PAPERLESS_OCR_TIMEOUT",
    "PAPERLESS_OCR_MAX_FILE_SIZE",
    "PAPERLESS_OCR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate each CLI run from the developer's config and environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PAPERLESS_OCR_API_KEY", TEST_API_KEY)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def offline_service(
    monkeypatch: pytest.MonkeyPatch, sleeps: list[float]
) -> Callable[[FakeMistral], None]:
    """Route the CLI's HTTP traffic to a FakeMistral instead of the network."""

    def install(fake: FakeMistral) -> None:
        def patched_build_processor(settings: Settings) -> Processor:
            def transport_factory(credentials: Credentials) -> HttpTransport:
                return HttpTransport(
                    credentials,
                    timeout_seconds=settings.timeout_seconds,
                    retry_policy=settings.retry_policy,
                    transport=httpx.MockTransport(fake),
                    sleep=sleeps.append,
                    rand=lambda: 0.5,
                )

            return processor_module.build_processor(settings, transport_factory=transport_factory)

        monkeypatch.setattr("paperless_ocr.cli.build_processor", patched_build_processor)

    return install
