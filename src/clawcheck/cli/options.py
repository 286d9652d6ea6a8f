"""Typer option declarations shared by the ClawCheck commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Final

import typer

from clawcheck.config.constants import DEFAULT_AGENT_ID, DEFAULT_BASE_URL

LOG_FORMAT_CHOICES: Final[frozenset[str]] = frozenset({"text", "json"})
LOG_LEVEL_CHOICES: Final[list[str]] = sorted(
    name
    for name in logging.getLevelNamesMapping()
    if isinstance(name, str) and not name.isdigit()
)

ConfigPathOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        help="Path to a ClawCheck configuration TOML file to load",
        envvar="CLAWCHECK_CONFIG",
        show_envvar=True,
        rich_help_panel="Configuration",
    ),
]

BaseUrlOption = Annotated[
    str | None,
    typer.Option(
        "--base-url",
        help=f"DashClaw server URL (default: {DEFAULT_BASE_URL})",
        envvar="DASHCLAW_BASE_URL",
        show_envvar=True,
        rich_help_panel="Server",
    ),
]

ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="DashClaw API key sent as the x-api-key header",
        envvar="DASHCLAW_API_KEY",
        show_envvar=True,
        rich_help_panel="Server",
    ),
]

ErrorHintOption = Annotated[
    str | None,
    typer.Option(
        "--error",
        help='Error message or status code to diagnose, e.g. "403 Forbidden"',
        rich_help_panel="Diagnosis",
    ),
]

EndpointOption = Annotated[
    str | None,
    typer.Option(
        "--endpoint",
        help="Specific endpoint path that is failing, e.g. /api/actions",
        rich_help_panel="Diagnosis",
    ),
]

AgentIdOption = Annotated[
    str | None,
    typer.Option(
        "--agent-id",
        help=f"Agent ID used for write tests (default: {DEFAULT_AGENT_ID})",
        rich_help_panel="Validation",
    ),
]

FullOption = Annotated[
    bool,
    typer.Option(
        "--full",
        help="Run write tests as well (creates test data on the server)",
        rich_help_panel="Validation",
    ),
]

JsonOutputOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print a single JSON document when the run completes",
        rich_help_panel="Output",
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help=f"Log level ({', '.join(LOG_LEVEL_CHOICES)})",
        envvar="CLAWCHECK_LOG_LEVEL",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]

LogFormatOption = Annotated[
    str | None,
    typer.Option(
        "--log-format",
        help="Log format (text or json)",
        envvar="CLAWCHECK_LOG_FORMAT",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]

LogFileOption = Annotated[
    str | None,
    typer.Option(
        "--log-file",
        help="Also write logs to this file",
        envvar="CLAWCHECK_LOG_FILE",
        show_envvar=True,
        rich_help_panel="Logging",
    ),
]


def clean_string(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def normalize_log_format(value: str | None) -> str | None:
    candidate = clean_string(value)
    if candidate is None:
        return None
    normalized = candidate.lower()
    if normalized not in LOG_FORMAT_CHOICES:
        raise typer.BadParameter("Log format must be 'text' or 'json'", param_hint="--log-format")
    return normalized


def normalize_log_level(value: str | None) -> str | None:
    candidate = clean_string(value)
    if candidate is None:
        return None
    upper = candidate.upper()
    if upper.isdigit() or upper in LOG_LEVEL_CHOICES:
        return upper
    raise typer.BadParameter(
        f"Log level must be one of: {', '.join(LOG_LEVEL_CHOICES)}",
        param_hint="--log-level",
    )


__all__ = [
    "AgentIdOption",
    "ApiKeyOption",
    "BaseUrlOption",
    "ConfigPathOption",
    "EndpointOption",
    "ErrorHintOption",
    "FullOption",
    "JsonOutputOption",
    "LOG_FORMAT_CHOICES",
    "LOG_LEVEL_CHOICES",
    "LogFileOption",
    "LogFormatOption",
    "LogLevelOption",
    "clean_string",
    "normalize_log_format",
    "normalize_log_level",
]
