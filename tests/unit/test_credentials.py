import logging

import pytest

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.exceptions import InvalidInputError


def _make_credentials(secret: str = "sk-test-0123456789abcdef", base_url: str = "https://api.mistral.ai") -> Credentials:
    return Credentials(secret=secret, base_url=base_url)


class TestCredentialsValidation:
    def test_accepts_valid_values(self) -> None:
        creds = _make_credentials()
        assert creds.base_url == "https://api.mistral.ai"

    def test_empty_secret_raises(self) -> None:
        with pytest.raises(InvalidInputError, match="must not be empty"):
            _make_credentials(secret="")

    @pytest.mark.parametrize("secret", ["sk test", "sk-abc\n", "\tsk-abc"])
    def test_whitespace_in_secret_raises(self, secret: str) -> None:
        with pytest.raises(InvalidInputError, match="whitespace"):
            _make_credentials(secret=secret)

    @pytest.mark.parametrize(
        "base_url", ["http://api.mistral.ai", "api.mistral.ai", "https://", "ftp://api.mistral.ai"]
    )
    def test_non_https_url_raises(self, base_url: str) -> None:
        with pytest.raises(InvalidInputError, match="https URL"):
            _make_credentials(base_url=base_url)

    def test_foreign_host_only_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="paperless_ocr"):
            creds = _make_credentials(base_url="https://proxy.example.com")

        assert creds.base_url == "https://proxy.example.com"
        assert "does not appear to be Mistral AI" in caplog.text


class TestCredentialsRendering:
    def test_auth_header(self) -> None:
        assert _make_credentials().auth_header() == "Bearer sk-test-0123456789abcdef"

    def test_redacted_keeps_four_chars_of_long_secret(self) -> None:
        assert _make_credentials().redacted() == "sk-t***"

    def test_redacted_hides_short_secret(self) -> None:
        assert _make_credentials(secret="short").redacted() == "***"

    def test_repr_hides_secret(self) -> None:
        text = repr(_make_credentials())
        assert "0123456789abcdef" not in text
        assert "sk-t***" in text

    @pytest.mark.parametrize(
        "base_url", ["https://api.mistral.ai", "https://api.mistral.ai/"]
    )
    def test_url_for_joins_single_slash(self, base_url: str) -> None:
        creds = _make_credentials(base_url=base_url)
        assert creds.url_for("/v1/files") == "https://api.mistral.ai/v1/files"
        assert creds.url_for("v1/ocr") == "https://api.mistral.ai/v1/ocr"

    def test_is_frozen(self) -> None:
        creds = _make_credentials()
        with pytest.raises(AttributeError):
            creds.secret = "other"  # type: ignore[misc]
