# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.cli",
#   "purpose": "Typer command line for resolving and fetching HTTP sources",
#   "sections": [
#     {"id": "resolve", "name": "resolve", "anchor": "function-resolve", "kind": "function"},
#     {"id": "fetch", "name": "fetch", "anchor": "function-fetch", "kind": "function"},
#     {"id": "settings", "name": "show_settings", "anchor": "function-show-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line for resolving and fetching HTTP sources.

Example:
    $ httpsource resolve photo.jpg --config httpsource.yaml
    $ httpsource fetch photo --config httpsource.yaml --output photo.tif
    $ httpsource settings --format json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .client import reset_http_client_manager
from .delegate import ModuleDelegate
from .errors import (
    AccessDeniedError,
    ConfigurationError,
    DelegateError,
    HttpSourceError,
    NotFoundError,
    SourceTimeoutError,
)
from .logging_config import setup_logging
from .resolver import HttpResolver
from .settings import HttpSourceSettings, load_settings

app = typer.Typer(
    name="httpsource",
    help="Resolve image identifiers to HTTP(S) sources",
    no_args_is_help=True,
)

EXIT_FAILURE = 1
EXIT_CONFIG = 2

_ERROR_LABELS = (
    (NotFoundError, "not found"),
    (AccessDeniedError, "access denied"),
    (SourceTimeoutError, "timed out"),
    (DelegateError, "delegate failed"),
)

ConfigOption = typer.Option(None, "--config", "-c", help="YAML or JSON settings file")
DelegateOption = typer.Option(None, "--delegate", "-d", help="Python delegate script defining resolve_url")
LogLevelOption = typer.Option(None, "--log-level", help="Override the configured log level")
JsonLogsOption = typer.Option(False, "--json-logs", help="Emit JSON log lines on stderr")


def _fail(exc: HttpSourceError) -> typer.Exit:
    if isinstance(exc, ConfigurationError):
        typer.secho(f"Configuration error: {exc}", err=True, fg=typer.colors.RED)
        return typer.Exit(EXIT_CONFIG)
    label = next((text for kind, text in _ERROR_LABELS if isinstance(exc, kind)), "failed")
    typer.secho(f"Resolution {label}: {exc}", err=True, fg=typer.colors.RED)
    return typer.Exit(EXIT_FAILURE)


def _build_resolver(
    identifier: str,
    config: Optional[Path],
    delegate: Optional[Path],
    log_level: Optional[str],
    json_logs: bool,
) -> HttpResolver:
    settings = load_settings(config, log_level=log_level)
    setup_logging(settings.log_level, json_output=json_logs)
    proxy = ModuleDelegate.from_path(delegate) if delegate is not None else None
    return HttpResolver(identifier, settings, delegate=proxy)


@app.command()
def resolve(
    identifier: str = typer.Argument(..., help="Image identifier"),
    config: Optional[Path] = ConfigOption,
    delegate: Optional[Path] = DelegateOption,
    log_level: Optional[str] = LogLevelOption,
    json_logs: bool = JsonLogsOption,
) -> None:
    """Resolve IDENTIFIER, verify it with HEAD and report its format."""
    try:
        resolver = _build_resolver(identifier, config, delegate, log_level, json_logs)
        info = resolver.resource_info()
        fmt = resolver.source_format()
    except HttpSourceError as exc:
        raise _fail(exc) from exc
    finally:
        reset_http_client_manager()

    typer.echo(f"identifier:  {identifier}")
    typer.echo(f"uri:         {info.uri}")
    typer.echo(f"credentials: {'yes' if info.has_credentials else 'no'}")
    typer.echo(f"format:      {fmt.display_name}")


@app.command()
def fetch(
    identifier: str = typer.Argument(..., help="Image identifier"),
    output: Path = typer.Option(..., "--output", "-o", help="Destination file"),
    config: Optional[Path] = ConfigOption,
    delegate: Optional[Path] = DelegateOption,
    log_level: Optional[str] = LogLevelOption,
    json_logs: bool = JsonLogsOption,
) -> None:
    """Download the bytes behind IDENTIFIER to OUTPUT, replacing it only on success."""
    try:
        resolver = _build_resolver(identifier, config, delegate, log_level, json_logs)
        written = resolver.new_stream_source().save(output)
    except HttpSourceError as exc:
        raise _fail(exc) from exc
    except OSError as exc:
        typer.secho(f"Unable to write {output}: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(EXIT_FAILURE) from exc
    finally:
        reset_http_client_manager()

    typer.echo(f"Wrote {written} bytes to {output}")


@app.command("settings")
def show_settings(
    config: Optional[Path] = ConfigOption,
    format_output: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
) -> None:
    """Display the effective settings with secrets redacted."""
    try:
        settings: HttpSourceSettings = load_settings(config)
    except ConfigurationError as exc:
        raise _fail(exc) from exc

    data = settings.redacted()
    if format_output == "json":
        typer.echo(json.dumps(data, indent=2))
        return
    if format_output != "table":
        typer.secho(f"Unknown format: {format_output}", err=True, fg=typer.colors.RED)
        raise typer.Exit(EXIT_CONFIG)
    width = max(len(key) for key in data)
    for key, value in data.items():
        typer.echo(f"{key.ljust(width)}  {value}")


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
