"""Records produced by probes, diagnostic runs and validation runs."""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

NO_ISSUES_DETECTED = "No issues detected"


@dataclass(frozen=True)
class ProbeOutcome:
    """Normalized result of one HTTP round-trip.

    Use :meth:`from_response` or :meth:`from_failure` rather than the
    constructor so that ``ok`` and ``connection_failed`` always agree with
    ``status``.
    """

    status: int
    ok: bool
    elapsed_ms: int
    body: Any = None
    raw_text: str = ""
    error: str | None = None
    connection_failed: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_response(
        cls,
        *,
        status: int,
        elapsed_ms: int,
        body: Any,
        raw_text: str,
        headers: Mapping[str, str],
    ) -> ProbeOutcome:
        error = body.get("error") if isinstance(body, Mapping) else None
        return cls(
            status=status,
            ok=200 <= status <= 299,
            elapsed_ms=max(elapsed_ms, 0),
            body=body,
            raw_text=raw_text,
            error=error if isinstance(error, str) else None,
            connection_failed=False,
            headers=dict(headers),
        )

    @classmethod
    def from_failure(cls, message: str, *, elapsed_ms: int) -> ProbeOutcome:
        return cls(
            status=0,
            ok=False,
            elapsed_ms=max(elapsed_ms, 0),
            error=message,
            connection_failed=True,
        )

    def body_field(self, key: str) -> Any:
        if isinstance(self.body, Mapping):
            return self.body.get(key)
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "ok": self.ok,
            "elapsed_ms": self.elapsed_ms,
            "body": self.body,
            "error": self.error,
            "connection_failed": self.connection_failed,
            "headers": dict(self.headers),
        }


@dataclass
class DiagnosticReport:
    """Accumulator mutated by each diagnostic phase.

    Diagnosis and suggestion entries can only be appended; their order is the
    order in which problems were discovered.
    """

    server_url: str
    api_key_present: bool
    api_key_prefix: str | None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    checks: dict[str, ProbeOutcome] = field(default_factory=dict)
    _diagnosis: list[str] = field(default_factory=list, repr=False)
    _suggestions: list[str] = field(default_factory=list, repr=False)

    @property
    def diagnosis(self) -> tuple[str, ...]:
        return tuple(self._diagnosis)

    @property
    def suggestions(self) -> tuple[str, ...]:
        return tuple(self._suggestions)

    def record_check(self, name: str, outcome: ProbeOutcome) -> None:
        self.checks[name] = outcome

    def add_diagnosis(self, entry: str) -> None:
        self._diagnosis.append(entry)

    def add_suggestions(self, entries: Sequence[str]) -> None:
        self._suggestions.extend(entries)

    @property
    def issues(self) -> tuple[str, ...]:
        return tuple(entry for entry in self._diagnosis if entry != NO_ISSUES_DETECTED)

    @property
    def healthy(self) -> bool:
        return not self.issues

    def exit_code(self) -> int:
        return 0 if self.healthy else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "server": self.server_url,
            "api_key_present": self.api_key_present,
            "api_key_prefix": self.api_key_prefix,
            "checks": {name: outcome.to_dict() for name, outcome in self.checks.items()},
            "diagnosis": list(self._diagnosis),
            "suggestions": list(self._suggestions),
            "healthy": self.healthy,
        }


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class ValidationResult:
    name: str
    status: CheckStatus
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status.value, "detail": self.detail}


def integration_score(passed: int, failed: int) -> int:
    """Percentage of executed checks that passed; skipped checks never count.

    Halves round up, so 1 of 8 scores 13.
    """

    executed = passed + failed
    if executed <= 0:
        return 0
    return int(math.floor(100 * passed / executed + 0.5))


@dataclass
class ValidationRun:
    """Ordered check results; the counts are always derived from them."""

    _results: list[ValidationResult] = field(default_factory=list)

    def record(self, result: ValidationResult) -> None:
        self._results.append(result)

    @property
    def results(self) -> tuple[ValidationResult, ...]:
        return tuple(self._results)

    def __iter__(self) -> Iterator[ValidationResult]:
        return iter(tuple(self._results))

    def __len__(self) -> int:
        return len(self._results)

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for result in self._results if result.status is status)

    @property
    def passed(self) -> int:
        return self._count(CheckStatus.PASS)

    @property
    def failed(self) -> int:
        return self._count(CheckStatus.FAIL)

    @property
    def skipped(self) -> int:
        return self._count(CheckStatus.SKIP)

    @property
    def score(self) -> int:
        return integration_score(self.passed, self.failed)

    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def summary(self) -> dict[str, int]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "score": self.score,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self._results],
            "summary": self.summary(),
        }


__all__ = [
    "CheckStatus",
    "DiagnosticReport",
    "NO_ISSUES_DETECTED",
    "ProbeOutcome",
    "ValidationResult",
    "ValidationRun",
    "integration_score",
]
