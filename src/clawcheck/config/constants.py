"""Common coercion helpers and configuration constants."""

from __future__ import annotations

TRUTHY_STRINGS = frozenset({"1", "true", "yes", "on"})
FALSY_STRINGS = frozenset({"0", "false", "no", "off"})


CONFIG_BASENAME = "config"
DEFAULT_CONFIG_FILENAME = f"{CONFIG_BASENAME}.toml"
LOCAL_CONFIG_FILENAME = f"{CONFIG_BASENAME}.local.toml"

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_AGENT_ID = "integration-test"
API_KEY_HEADER = "x-api-key"
API_KEY_PREFIX_LENGTH = 12


def coerce_str(value: object | None) -> str | None:
    """Return a stripped string, or ``None`` for missing/blank values."""

    if value is None:
        return None
    if isinstance(value, str):
        candidate = value.strip()
        return candidate or None
    return str(value)


def coerce_bool(value: object | None, *, default: bool = False) -> bool:
    """Convert common truthy/falsey string markers into booleans.

    Falls back to ``default`` when the value is ``None`` or ambiguous.
    """

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUTHY_STRINGS:
            return True
        if normalized in FALSY_STRINGS:
            return False
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def coerce_positive_int(candidate: object | None, *, default: int) -> int:
    """Coerce ``candidate`` into a positive integer, using ``default`` otherwise."""

    if candidate is None or isinstance(candidate, bool):
        return default
    try:
        value = int(candidate)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return default
    if value <= 0:
        return default
    return value


def mask_api_key(api_key: str | None) -> str | None:
    """Keep the first characters of ``api_key`` and redact the remainder."""

    if not api_key:
        return None
    return api_key[:API_KEY_PREFIX_LENGTH] + "..."


__all__ = [
    "API_KEY_HEADER",
    "API_KEY_PREFIX_LENGTH",
    "CONFIG_BASENAME",
    "DEFAULT_AGENT_ID",
    "DEFAULT_BASE_URL",
    "DEFAULT_CONFIG_FILENAME",
    "FALSY_STRINGS",
    "LOCAL_CONFIG_FILENAME",
    "TRUTHY_STRINGS",
    "coerce_bool",
    "coerce_positive_int",
    "coerce_str",
    "mask_api_key",
]
