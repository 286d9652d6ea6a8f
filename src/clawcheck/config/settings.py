"""Dynaconf-backed configuration helpers for ClawCheck."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from dynaconf import Dynaconf

from clawcheck.config.constants import (
    DEFAULT_AGENT_ID,
    DEFAULT_BASE_URL,
    DEFAULT_CONFIG_FILENAME,
    LOCAL_CONFIG_FILENAME,
    coerce_bool,
    coerce_positive_int,
    coerce_str,
)
from clawcheck.infrastructure.errors import ConfigurationError, ErrorCode

LOG_FORMAT_TEXT = "text"
LOG_FORMAT_JSON = "json"
DEFAULT_LOG_FORMAT = LOG_FORMAT_TEXT
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_MAX_BYTES = 10_000_000
DEFAULT_BACKUP_COUNT = 5

# Dynaconf keys used throughout the module. Using constants keeps environment
# and configuration lookups consistent.
SERVER_BASE_URL_KEY = "server.base_url"
SERVER_API_KEY_KEY = "server.api_key"

VALIDATION_AGENT_ID_KEY = "validation.agent_id"
VALIDATION_FULL_KEY = "validation.full"

LOGGING_LEVEL_KEY = "logging.level"
LOGGING_FORMAT_KEY = "logging.format"
LOGGING_FILE_KEY = "logging.file"
LOGGING_MAX_BYTES_KEY = "logging.max_bytes"
LOGGING_BACKUP_COUNT_KEY = "logging.backup_count"

_ENVIRONMENT_MAP = {
    "DASHCLAW_BASE_URL": SERVER_BASE_URL_KEY,
    "DASHCLAW_API_KEY": SERVER_API_KEY_KEY,
    "CLAWCHECK_AGENT_ID": VALIDATION_AGENT_ID_KEY,
    "CLAWCHECK_LOG_LEVEL": LOGGING_LEVEL_KEY,
    "CLAWCHECK_LOG_FORMAT": LOGGING_FORMAT_KEY,
    "CLAWCHECK_LOG_FILE": LOGGING_FILE_KEY,
    "CLAWCHECK_LOG_MAX_BYTES": LOGGING_MAX_BYTES_KEY,
    "CLAWCHECK_LOG_BACKUP_COUNT": LOGGING_BACKUP_COUNT_KEY,
}


@dataclass(frozen=True)
class ServerInputs:
    base_url: str | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class RunInputs:
    agent_id: str | None = None
    full: bool | None = None
    error_hint: str | None = None
    endpoint: str | None = None
    json_output: bool | None = None


@dataclass(frozen=True)
class LoggingInputs:
    level: str | None = None
    format: str | None = None
    file_path: str | None = None
    max_bytes: int | None = None
    backup_count: int | None = None


@dataclass(frozen=True)
class RuntimeSettings:
    """Immutable view of everything a single run needs."""

    base_url: str
    api_key: str | None = None
    agent_id: str = DEFAULT_AGENT_ID
    full: bool = False
    error_hint: str | None = None
    endpoint: str | None = None
    json_output: bool = False

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class LoggingSettings:
    level: int
    format: str
    file_path: str | None
    max_bytes: int
    backup_count: int

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


def _default_settings_files(config_path: str | None) -> list[str]:
    if config_path:
        config_file = Path(config_path)
        local_file = config_file.with_name(f"{config_file.stem}.local{config_file.suffix}")
        return [str(candidate) for candidate in (config_file, local_file) if candidate.exists()]
    return [DEFAULT_CONFIG_FILENAME, LOCAL_CONFIG_FILENAME]


def _apply_environment_overrides(settings: Dynaconf) -> None:
    for env_var, key in _ENVIRONMENT_MAP.items():
        raw = os.getenv(env_var)
        if raw is None or not raw.strip():
            continue
        settings.set(key, raw)


def load_settings(config_path: str | None = None) -> Dynaconf:
    """Create a Dynaconf instance for ``config_path`` with environment overrides."""

    settings = Dynaconf(
        settings_files=_default_settings_files(config_path),
        envvar_prefix="CLAWCHECK",
        environments=False,
        load_dotenv=True,
        merge_enabled=True,
    )
    _apply_environment_overrides(settings)
    return settings


def apply_cli_overrides(
    settings: Dynaconf,
    *,
    server_inputs: ServerInputs | None = None,
    run_inputs: RunInputs | None = None,
    logging_inputs: LoggingInputs | None = None,
) -> None:
    """Apply CLI overrides on top of file and environment values."""

    if server_inputs is not None:
        if server_inputs.base_url is not None:
            settings.set(SERVER_BASE_URL_KEY, server_inputs.base_url.strip())
        if server_inputs.api_key is not None:
            settings.set(SERVER_API_KEY_KEY, server_inputs.api_key.strip())

    if run_inputs is not None:
        if run_inputs.agent_id is not None:
            settings.set(VALIDATION_AGENT_ID_KEY, run_inputs.agent_id.strip())
        if run_inputs.full is not None:
            settings.set(VALIDATION_FULL_KEY, run_inputs.full)

    if logging_inputs is not None:
        if logging_inputs.level is not None:
            settings.set(LOGGING_LEVEL_KEY, logging_inputs.level.strip())
        if logging_inputs.format is not None:
            settings.set(LOGGING_FORMAT_KEY, logging_inputs.format.strip())
        if logging_inputs.file_path is not None:
            settings.set(LOGGING_FILE_KEY, logging_inputs.file_path.strip())
        if logging_inputs.max_bytes is not None:
            settings.set(LOGGING_MAX_BYTES_KEY, logging_inputs.max_bytes)
        if logging_inputs.backup_count is not None:
            settings.set(LOGGING_BACKUP_COUNT_KEY, logging_inputs.backup_count)


def normalize_base_url(raw: str | None) -> str:
    """Return ``raw`` without a trailing slash, rejecting non-HTTP URLs."""

    candidate = coerce_str(raw) or DEFAULT_BASE_URL
    parts = urlsplit(candidate)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ConfigurationError(
            f"Invalid server URL: {candidate!r}",
            code=ErrorCode.INVALID_BASE_URL,
            hints=("Pass --base-url http://host:port or set DASHCLAW_BASE_URL",),
        )
    return candidate.rstrip("/")


def runtime_from_settings(
    settings: Dynaconf, run_inputs: RunInputs | None = None
) -> RuntimeSettings:
    """Build the immutable run configuration from Dynaconf plus per-run flags."""

    run_inputs = run_inputs or RunInputs()
    base_url = normalize_base_url(settings.get(SERVER_BASE_URL_KEY))
    api_key = coerce_str(settings.get(SERVER_API_KEY_KEY))
    agent_id = coerce_str(settings.get(VALIDATION_AGENT_ID_KEY)) or DEFAULT_AGENT_ID
    full = coerce_bool(settings.get(VALIDATION_FULL_KEY), default=False)

    return RuntimeSettings(
        base_url=base_url,
        api_key=api_key,
        agent_id=agent_id,
        full=full,
        error_hint=coerce_str(run_inputs.error_hint),
        endpoint=coerce_str(run_inputs.endpoint),
        json_output=bool(run_inputs.json_output),
    )


def _resolve_level(raw: str) -> int:
    level_upper = raw.upper()
    if level_upper.isdigit():
        return int(level_upper)
    return logging.getLevelNamesMapping().get(level_upper, logging.WARNING)


def logging_from_settings(settings: Dynaconf) -> LoggingSettings:
    """Extract logging configuration from Dynaconf."""

    level_value = coerce_str(settings.get(LOGGING_LEVEL_KEY)) or DEFAULT_LOG_LEVEL
    format_value = (coerce_str(settings.get(LOGGING_FORMAT_KEY)) or DEFAULT_LOG_FORMAT).lower()
    if format_value not in {LOG_FORMAT_TEXT, LOG_FORMAT_JSON}:
        raise ConfigurationError(
            f"Unsupported log format: {format_value}",
            code=ErrorCode.INVALID_LOG_FORMAT,
            hints=(f"Use '{LOG_FORMAT_TEXT}' or '{LOG_FORMAT_JSON}'",),
        )

    return LoggingSettings(
        level=_resolve_level(level_value),
        format=format_value,
        file_path=coerce_str(settings.get(LOGGING_FILE_KEY)),
        max_bytes=coerce_positive_int(
            settings.get(LOGGING_MAX_BYTES_KEY), default=DEFAULT_MAX_BYTES
        ),
        backup_count=coerce_positive_int(
            settings.get(LOGGING_BACKUP_COUNT_KEY), default=DEFAULT_BACKUP_COUNT
        ),
    )


def resolve_application_settings(
    *,
    config_path: str | None = None,
    server_inputs: ServerInputs | None = None,
    run_inputs: RunInputs | None = None,
    logging_inputs: LoggingInputs | None = None,
) -> tuple[RuntimeSettings, LoggingSettings]:
    """Read configuration once and return the run and logging settings."""

    settings = load_settings(config_path)
    apply_cli_overrides(
        settings,
        server_inputs=server_inputs,
        run_inputs=run_inputs,
        logging_inputs=logging_inputs,
    )
    return runtime_from_settings(settings, run_inputs), logging_from_settings(settings)


def describe_settings(runtime: RuntimeSettings) -> dict[str, Any]:
    """Return a log-safe summary of ``runtime`` with the API key redacted."""

    return {
        "base_url": runtime.base_url,
        "api_key_present": runtime.has_api_key,
        "agent_id": runtime.agent_id,
        "full": runtime.full,
        "endpoint": runtime.endpoint,
        "error_hint": runtime.error_hint,
    }


__all__ = [
    "DEFAULT_BACKUP_COUNT",
    "DEFAULT_LOG_FORMAT",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_BYTES",
    "LOG_FORMAT_JSON",
    "LOG_FORMAT_TEXT",
    "LoggingInputs",
    "LoggingSettings",
    "RunInputs",
    "RuntimeSettings",
    "ServerInputs",
    "apply_cli_overrides",
    "describe_settings",
    "load_settings",
    "logging_from_settings",
    "normalize_base_url",
    "resolve_application_settings",
    "runtime_from_settings",
]
