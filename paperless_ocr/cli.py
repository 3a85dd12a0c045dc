"""CLI entry point for paperless-ngx-ocr2."""

from pathlib import Path
from typing import Annotated

import typer
from typer.completion import completion_init, get_completion_script

from paperless_ocr import __version__
from paperless_ocr.config.settings import load_settings
from paperless_ocr.exceptions import ConfigurationError, InvalidInputError, PaperlessOcrError
from paperless_ocr.logging.logger import Log
from paperless_ocr.output.formatter import OutputFormatter
from paperless_ocr.processor.models import RunOutcome
from paperless_ocr.processor.processor import build_processor

PROG_NAME = "paperless-ngx-ocr2"
COMPLETE_VAR = "_PAPERLESS_NGX_OCR2_COMPLETE"
SUPPORTED_SHELLS = ("bash", "zsh", "fish", "powershell", "pwsh")
EXIT_INTERRUPTED = 130

app = typer.Typer(
    name=PROG_NAME,
    help="Extract text from PDF and image files with the Mistral AI OCR API.",
    add_completion=False,
)

# add_completion=False skips this, but the scripts printed by --completions
# rely on typer's shell classes answering at completion time.
completion_init()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit()


@app.command(
    epilog=(
        "Exit codes: 0 success, 2 validation, 3 file I/O, "
        "4 configuration, 5 API/network/internal."
    )
)
def run(
    file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Path to the PDF or image file to process", metavar="FILE"),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", "-a", help="Mistral AI API key (or PAPERLESS_OCR_API_KEY)", metavar="KEY"),
    ] = None,
    api_base_url: Annotated[
        str | None,
        typer.Option("--api-base-url", help="Mistral AI API base URL [default: https://api.mistral.ai]", metavar="URL"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", help="Path to a TOML configuration file", metavar="PATH"),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Output the result as a JSON envelope")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging on stderr")
    ] = False,
    completions: Annotated[
        str | None,
        typer.Option("--completions", help="Print a completion script for bash, zsh, fish or powershell", metavar="SHELL"),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """Upload FILE to Mistral AI, run OCR, and print the extracted text."""
    Log.configure("debug" if verbose else "info")
    formatter = OutputFormatter(json_mode=json_output)
    if api_key:
        Log.register_secret(api_key)
        formatter.add_secret(api_key)

    if completions is not None:
        try:
            typer.echo(_completion_script(completions))
        except ConfigurationError as exc:
            outcome = RunOutcome.failed(exc)
            formatter.render(outcome)
            raise typer.Exit(outcome.exit_code) from exc
        return

    try:
        outcome = _execute(file, api_key, api_base_url, config, verbose, formatter)
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)
        raise typer.Exit(EXIT_INTERRUPTED) from None

    formatter.render(outcome)
    raise typer.Exit(outcome.exit_code)


def _execute(
    file: str | None,
    api_key: str | None,
    api_base_url: str | None,
    config: Path | None,
    verbose: bool,
    formatter: OutputFormatter,
) -> RunOutcome:
    if file is None:
        return RunOutcome.failed(InvalidInputError("File path is required for OCR processing"))
    if not file.strip():
        return RunOutcome.failed(InvalidInputError("File path cannot be empty"))
    if api_base_url is not None and not api_base_url.strip():
        return RunOutcome.failed(ConfigurationError("API base URL cannot be empty"))

    try:
        settings = load_settings(config, api_key=api_key, api_base_url=api_base_url)
    except PaperlessOcrError as exc:
        return RunOutcome.failed(exc)

    Log.register_secret(settings.api_key)
    formatter.add_secret(settings.api_key)
    Log.configure("debug" if verbose else settings.log_level)
    Log.debug(
        f"Configuration loaded from {settings.config_file or 'defaults'}: "
        f"timeout={settings.timeout_seconds}s, max_file_size={settings.max_file_size_mb}MB"
    )
    return build_processor(settings).process(file)


def _completion_script(shell: str) -> str:
    name = shell.strip().lower()
    if name not in SUPPORTED_SHELLS:
        raise ConfigurationError(
            f"Unsupported shell: {shell}. Supported shells: {', '.join(SUPPORTED_SHELLS)}"
        )
    return get_completion_script(prog_name=PROG_NAME, complete_var=COMPLETE_VAR, shell=name)
