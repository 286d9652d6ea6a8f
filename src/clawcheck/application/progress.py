"""Progress reporting hooks used by the engines while a run is in flight."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from clawcheck.domain.models import ValidationResult


class Marker(str, Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"
    NOTE = "NOTE"
    SUGGESTION = "->"


class ProgressReporter(Protocol):
    def banner(self, title: str, fields: Sequence[tuple[str, str]]) -> None: ...

    def section(self, title: str) -> None: ...

    def item(self, marker: Marker, message: str) -> None: ...

    def check(self, result: ValidationResult) -> None: ...


class NullReporter:
    """Reporter that discards progress; used for JSON output."""

    def banner(self, title: str, fields: Sequence[tuple[str, str]]) -> None:
        return None

    def section(self, title: str) -> None:
        return None

    def item(self, marker: Marker, message: str) -> None:
        return None

    def check(self, result: ValidationResult) -> None:
        return None


class RecordingReporter:
    """Reporter that keeps every call in order, for tests and embedding."""

    def __init__(self) -> None:
        self.events: list[tuple[str, ...]] = []

    def banner(self, title: str, fields: Sequence[tuple[str, str]]) -> None:
        self.events.append(("banner", title))

    def section(self, title: str) -> None:
        self.events.append(("section", title))

    def item(self, marker: Marker, message: str) -> None:
        self.events.append(("item", marker.value, message))

    def check(self, result: ValidationResult) -> None:
        self.events.append(("check", result.status.value, result.name))

    @property
    def sections(self) -> list[str]:
        return [event[1] for event in self.events if event[0] == "section"]


__all__ = ["Marker", "NullReporter", "ProgressReporter", "RecordingReporter"]
