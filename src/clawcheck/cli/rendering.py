"""Rich rendering of engine progress and final summaries."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Final

from rich.console import Console
from rich.text import Text

from clawcheck.application.progress import Marker
from clawcheck.application.validate import closing_message
from clawcheck.domain.models import CheckStatus, DiagnosticReport, ValidationResult, ValidationRun

RULE_WIDTH: Final = 50


class RichStyles:
    ACCENT = "bold cyan"
    SUCCESS = "green"
    WARNING = "yellow"
    FAILURE = "red"
    DETAIL = "dim"


_MARKER_STYLES: Final[dict[Marker, str]] = {
    Marker.OK: RichStyles.SUCCESS,
    Marker.WARN: RichStyles.WARNING,
    Marker.FAIL: RichStyles.FAILURE,
    Marker.NOTE: "",
    Marker.SUGGESTION: RichStyles.ACCENT,
}

_CHECK_STYLES: Final[dict[CheckStatus, str]] = {
    CheckStatus.PASS: RichStyles.SUCCESS,
    CheckStatus.FAIL: RichStyles.FAILURE,
    CheckStatus.SKIP: RichStyles.WARNING,
}


def _marker_label(marker: Marker) -> str:
    if marker is Marker.SUGGESTION:
        return marker.value
    if marker is Marker.NOTE:
        return ""
    return f"[{marker.value}]"


class ConsoleReporter:
    """Print engine progress as it happens."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def line(self, text: Text | str = "") -> None:
        self._console.print(text, soft_wrap=True, highlight=False, markup=False, emoji=False)

    def banner(self, title: str, fields: Sequence[tuple[str, str]]) -> None:
        self.line()
        self.line(Text(title, style="bold"))
        self.line("=" * RULE_WIDTH)
        width = max((len(label) for label, _ in fields), default=0) + 1
        for label, value in fields:
            self.line(f"{label + ':':<{width}} {value}")
        self.line()

    def section(self, title: str) -> None:
        self.line()
        self.line(Text(f"--- {title} ---", style=RichStyles.ACCENT))

    def item(self, marker: Marker, message: str) -> None:
        label = _marker_label(marker)
        if not label:
            self.line(Text(f"  {message}"))
            return
        self.line(Text.assemble("  ", (label, _MARKER_STYLES[marker]), " ", message))

    def check(self, result: ValidationResult) -> None:
        label = f"[{result.status.value.upper()}]"
        detail = f" -- {result.detail}" if result.detail else ""
        self.line(
            Text.assemble("  ", (label, _CHECK_STYLES[result.status]), f" {result.name}{detail}")
        )


def render_diagnosis_summary(console: Console, report: DiagnosticReport) -> None:
    reporter = ConsoleReporter(console)
    reporter.line()
    reporter.line("=" * RULE_WIDTH)
    if report.healthy:
        reporter.line(Text("No issues detected.", style=RichStyles.SUCCESS))
    else:
        reporter.line(Text("Diagnosis:", style="bold"))
        for entry in report.diagnosis:
            reporter.line(f"  - {entry}")
    if report.suggestions:
        reporter.line()
        reporter.line(Text("Suggested fixes:", style="bold"))
        for suggestion in report.suggestions:
            reporter.item(Marker.SUGGESTION, suggestion)


def render_validation_summary(console: Console, run: ValidationRun) -> None:
    reporter = ConsoleReporter(console)
    reporter.line()
    reporter.line("=" * RULE_WIDTH)
    reporter.line(
        f"Results: {run.passed} passed, {run.failed} failed, {run.skipped} skipped"
    )
    reporter.line(f"Integration health: {run.score}%")
    reporter.line()
    style = RichStyles.FAILURE if run.failed else RichStyles.SUCCESS
    reporter.line(Text(closing_message(run), style=style))


def emit_json(console: Console, payload: Mapping[str, Any]) -> None:
    console.print(
        json.dumps(payload, indent=2, default=str),
        soft_wrap=True,
        highlight=False,
        markup=False,
        emoji=False,
    )


__all__ = [
    "ConsoleReporter",
    "RichStyles",
    "emit_json",
    "render_diagnosis_summary",
    "render_validation_summary",
]
