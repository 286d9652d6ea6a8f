"""Reusable helper utilities for the ClawCheck CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from clawcheck.cli import options as cli_options
from clawcheck.config.settings import (
    LoggingInputs,
    LoggingSettings,
    RunInputs,
    RuntimeSettings,
    ServerInputs,
    describe_settings,
    resolve_application_settings,
)
from clawcheck.infrastructure.errors import ClawcheckError
from clawcheck.infrastructure.logging import BoundLogger, configure_logging, get_logger

PREFLIGHT_EXIT_CODE = 2


def resolve_runtime_and_logging(
    *,
    config_path: Path | None,
    base_url: str | None,
    api_key: str | None,
    run_inputs: RunInputs,
    log_level: str | None,
    log_format: str | None,
    log_file: str | None,
) -> tuple[RuntimeSettings, LoggingSettings]:
    """Resolve settings once from file, environment and CLI flags."""

    return resolve_application_settings(
        config_path=str(config_path) if config_path is not None else None,
        server_inputs=ServerInputs(
            base_url=cli_options.clean_string(base_url),
            api_key=cli_options.clean_string(api_key),
        ),
        run_inputs=run_inputs,
        logging_inputs=LoggingInputs(
            level=cli_options.normalize_log_level(log_level),
            format=cli_options.normalize_log_format(log_format),
            file_path=cli_options.clean_string(log_file),
        ),
    )


def initialize_logging(
    runtime_settings: RuntimeSettings,
    logging_settings: LoggingSettings,
    *,
    logger_name: str,
) -> BoundLogger:
    configure_logging(logging_settings)
    logger = get_logger(logger_name)
    logger.debug("clawcheck.settings.resolved", **describe_settings(runtime_settings))
    return logger


def prepare_run(
    *,
    stderr_console: Console,
    logger_name: str,
    config_path: Path | None,
    base_url: str | None,
    api_key: str | None,
    run_inputs: RunInputs,
    log_level: str | None,
    log_format: str | None,
    log_file: str | None,
) -> tuple[RuntimeSettings, BoundLogger]:
    """Resolve settings and logging, exiting before any network activity on error."""

    try:
        runtime_settings, logging_settings = resolve_runtime_and_logging(
            config_path=config_path,
            base_url=base_url,
            api_key=api_key,
            run_inputs=run_inputs,
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
        )
    except ClawcheckError as exc:
        stderr_console.print(f"[red]Error:[/red] {escape(exc.user_message)}", highlight=False)
        raise typer.Exit(code=PREFLIGHT_EXIT_CODE) from exc

    logger = initialize_logging(runtime_settings, logging_settings, logger_name=logger_name)
    return runtime_settings, logger


__all__ = [
    "PREFLIGHT_EXIT_CODE",
    "initialize_logging",
    "prepare_run",
    "resolve_runtime_and_logging",
]
