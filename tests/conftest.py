from pathlib import Path

import pytest

from tests.helpers import FakeMistral, write_file


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    return write_file(tmp_path, "t.pdf", b"%PDF-1.4\nabc")


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    return write_file(tmp_path, "scan.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 16)


@pytest.fixture
def fake_mistral() -> FakeMistral:
    return FakeMistral()
