import os
import random
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from paperless_ocr.exceptions import ConfigurationError

APP_DIR_NAME = "paperless-ngx-ocr2"
DEFAULT_API_BASE_URL = "https://api.mistral.ai"

LogLevel = Literal["error", "warn", "info", "debug", "trace"]


class RetryPolicy(BaseModel):
    """Backoff settings for transient HTTP failures."""

    max_retries: int = Field(default=3, ge=0, le=10)
    base_delay_ms: int = Field(default=1000, gt=0)
    max_delay_ms: int = Field(default=10000, gt=0)
    exponential_backoff: bool = True
    jitter_factor: float = Field(default=0.1, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> "RetryPolicy":
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        return self

    def delay_for(self, retry_number: int, rand: Callable[[], float] = random.random) -> float:
        """Seconds to sleep before retry ``retry_number`` (1-based)."""
        if retry_number < 1:
            return 0.0
        delay_ms = float(self.base_delay_ms)
        if self.exponential_backoff:
            delay_ms *= 2 ** (retry_number - 1)
        if self.jitter_factor > 0:
            delay_ms += delay_ms * self.jitter_factor * (rand() * 2.0 - 1.0)
        delay_ms = min(max(delay_ms, 1.0), float(self.max_delay_ms))
        return delay_ms / 1000.0


class _PaperlessEnvSource(PydanticBaseSettingsSource):
    """Reads the PAPERLESS_OCR_* variables from the process and a .env file."""

    VARIABLES: dict[str, str] = {
        "PAPERLESS_OCR_API_KEY": "api_key",
        "PAPERLESS_OCR_API_BASE_URL": "api_base_url",
        "PAPERLESS_OCR_TIMEOUT": "timeout_seconds",
        "PAPERLESS_OCR_MAX_FILE_SIZE": "max_file_size_mb",
        "PAPERLESS_OCR_LOG_LEVEL": "log_level",
    }

    def __init__(self, settings_cls: type[BaseSettings], env_file: Path = Path(".env")) -> None:
        super().__init__(settings_cls)
        self._env_file = env_file

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Values are resolved in bulk by __call__.
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        environ: dict[str, str] = {}
        if self._env_file.is_file():
            environ.update(
                {k: v for k, v in dotenv_values(self._env_file).items() if v is not None}
            )
        environ.update(os.environ)
        return {
            field_name: environ[variable]
            for variable, field_name in self.VARIABLES.items()
            if variable in environ
        }


class Settings(BaseSettings):
    """Application configuration: flags > environment > .env > TOML file > defaults."""

    model_config = SettingsConfigDict(extra="ignore")

    api_key: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: int = Field(default=30, ge=1, le=300)
    max_file_size_mb: int = Field(default=100, ge=1, le=100)
    log_level: LogLevel = "info"
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    config_file: Path | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_log_level(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings, _PaperlessEnvSource(settings_cls)]
        config_file = getattr(init_settings, "init_kwargs", {}).get("config_file")
        if config_file is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=Path(config_file)))
        return tuple(sources)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


def default_config_paths() -> list[Path]:
    """Config locations searched when no --config is given, in order."""
    paths = [Path("config.toml")]
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        paths.append(Path(xdg_home) / APP_DIR_NAME / "config.toml")
    paths.append(Path.home() / ".config" / APP_DIR_NAME / "config.toml")
    return paths


def resolve_config_file(config_file: str | Path | None = None) -> Path | None:
    """Return the TOML file to load, or None when only defaults apply.

    Raises:
        ConfigurationError: if an explicitly requested file does not exist.
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        return path
    for candidate in default_config_paths():
        if candidate.is_file():
            return candidate
    return None


def load_settings(config_file: str | Path | None = None, **overrides: Any) -> Settings:
    """Build validated Settings; ``overrides`` are CLI flags (None means unset).

    Raises:
        ConfigurationError: on an unreadable or invalid config, or a missing API key.
    """
    path = resolve_config_file(config_file)
    init_kwargs = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = Settings(config_file=path, **init_kwargs)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Failed to parse config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed to read config file {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(_describe_validation_error(exc), detail=str(exc)) from exc

    if not settings.api_key.strip():
        raise ConfigurationError(
            "API key must not be empty. Pass --api-key, set PAPERLESS_OCR_API_KEY, "
            "or add api_key to the config file"
        )
    return settings


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        problems.append(f"{location}: {error['msg']}")
    return "Invalid configuration (" + "; ".join(problems) + ")"
