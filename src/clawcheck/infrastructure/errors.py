"""Domain errors raised before a diagnostic run touches the network."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum


class ErrorCode(str, Enum):
    INVALID_BASE_URL = "CONFIG_INVALID_BASE_URL"
    INVALID_LOG_FORMAT = "CONFIG_INVALID_LOG_FORMAT"


class ClawcheckError(Exception):
    """Base error carrying a stable code and operator-facing hints."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hints: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.code = code
        self.hints: tuple[str, ...] = tuple(hints)

    @property
    def user_message(self) -> str:
        lines = [str(self)]
        lines.extend(f"Hint: {hint}" for hint in self.hints)
        return "\n".join(lines)


class ConfigurationError(ClawcheckError):
    """Raised when configuration cannot produce a usable run."""


__all__ = ["ClawcheckError", "ConfigurationError", "ErrorCode"]
