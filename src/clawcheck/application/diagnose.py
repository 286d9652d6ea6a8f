"""Phased diagnosis of a DashClaw server.

The engine walks five phases in order (connectivity, authentication,
endpoint check, latency sweep, error-hint analysis) and accumulates findings
in a :class:`~clawcheck.domain.models.DiagnosticReport`. An unreachable
server ends the run after the first phase.
"""

from __future__ import annotations

import logging
from typing import Any, Final

from clawcheck.application.progress import Marker, NullReporter, ProgressReporter
from clawcheck.config.constants import mask_api_key
from clawcheck.config.settings import RuntimeSettings
from clawcheck.domain.models import NO_ISSUES_DETECTED, DiagnosticReport, ProbeOutcome
from clawcheck.domain.rules import (
    AUTH_CONNECTION_FAILED_DIAGNOSIS,
    AUTH_FALLBACK_RULE,
    AUTH_STATUS_RULES,
    ENDPOINT_FAILED_DIAGNOSIS,
    ERROR_HINT_RULES,
    FORBIDDEN_REASON_RULES,
    HEALTH_NON_200_DIAGNOSIS,
    MISSING_API_KEY_DIAGNOSIS,
    MISSING_API_KEY_SUGGESTIONS,
    UNREACHABLE_DIAGNOSIS,
    UNREACHABLE_SUGGESTIONS,
    Rule,
    match_all_applicable,
    match_first,
    rule_names,
)
from clawcheck.infrastructure.logging import BoundLogger, get_logger, log_event
from clawcheck.integrations.dashclaw.client import (
    AUTH_PROBE_PATH,
    HEALTH_PATH,
    ProbeClient,
)

PHASE_CONNECTIVITY: Final = "connectivity"
PHASE_AUTHENTICATION: Final = "authentication"
PHASE_ENDPOINT: Final = "endpoint"
PHASE_LATENCY: Final = "latency"
PHASE_ERROR_HINT: Final = "error_hint"

LATENCY_PATHS: Final[tuple[str, ...]] = (
    HEALTH_PATH,
    "/api/actions?limit=1",
    "/api/guard?limit=1",
    "/api/memory",
)

_AUTH_RULES: Final[tuple[Rule[int], ...]] = AUTH_STATUS_RULES + (AUTH_FALLBACK_RULE,)


def latency_check_name(path: str) -> str:
    return f"latency:{path}"


class DiagnosticEngine:
    """Run the diagnostic phases against one server.

    The engine is single-use per :meth:`run` call: each call builds a fresh
    report, so repeated runs never share findings.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        client: ProbeClient,
        *,
        logger: BoundLogger | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._logger = (logger or get_logger("clawcheck.diagnose")).bind(
            server=settings.base_url
        )
        self._reporter: ProgressReporter = reporter or NullReporter()

    async def run(self) -> DiagnosticReport:
        report = DiagnosticReport(
            server_url=self._settings.base_url,
            api_key_present=self._settings.has_api_key,
            api_key_prefix=mask_api_key(self._settings.api_key),
        )
        self._announce(report)

        if await self._check_connectivity(report):
            await self._check_authentication(report)
            await self._check_endpoint(report)
            await self._profile_latency(report)
            self._analyze_error_hint(report)

        self._finalize(report)
        return report

    # Helpers ---------------------------------------------------------------

    def _announce(self, report: DiagnosticReport) -> None:
        fields = [("Timestamp", report.timestamp), ("Server", report.server_url)]
        if self._settings.error_hint:
            fields.append(("Error", self._settings.error_hint))
        if self._settings.endpoint:
            fields.append(("Endpoint", self._settings.endpoint))
        self._reporter.banner("DashClaw Diagnostic Report", fields)

    def _enter_phase(self, phase: str, title: str) -> None:
        log_event(self._logger, "diagnose.phase.started", level=logging.DEBUG, phase=phase)
        self._reporter.section(title)

    def _diagnose(self, report: DiagnosticReport, entry: str, *, phase: str) -> None:
        report.add_diagnosis(entry)
        log_event(
            self._logger,
            "diagnose.diagnosis.added",
            level=logging.INFO,
            phase=phase,
            diagnosis=entry,
        )

    def _rule_context(self, outcome: ProbeOutcome) -> dict[str, Any]:
        return {
            "status": outcome.status,
            "error": outcome.error or "unknown",
            "server_error": outcome.error or "Check server logs",
            "base_url": self._settings.base_url,
            "endpoint": self._settings.endpoint,
        }

    # Phase 1 ---------------------------------------------------------------

    async def _check_connectivity(self, report: DiagnosticReport) -> bool:
        self._enter_phase(PHASE_CONNECTIVITY, "Phase 1: Server Connectivity")
        health = await self._client.probe(HEALTH_PATH)
        report.record_check("health", health)

        if health.connection_failed:
            self._reporter.item(Marker.FAIL, f"Cannot connect to {self._settings.base_url}")
            self._diagnose(report, UNREACHABLE_DIAGNOSIS, phase=PHASE_CONNECTIVITY)
            context = self._rule_context(health)
            report.add_suggestions(
                [template.format_map(context) for template in UNREACHABLE_SUGGESTIONS]
            )
            return False

        if health.ok:
            self._reporter.item(Marker.OK, f"Server healthy ({health.elapsed_ms}ms)")
            version = health.body_field("version")
            if version:
                self._reporter.item(Marker.OK, f"Version: {version}")
        else:
            self._reporter.item(Marker.WARN, f"Health endpoint returned {health.status}")
            self._diagnose(
                report,
                HEALTH_NON_200_DIAGNOSIS.format(status=health.status),
                phase=PHASE_CONNECTIVITY,
            )
        return True

    # Phase 2 ---------------------------------------------------------------

    async def _check_authentication(self, report: DiagnosticReport) -> None:
        self._enter_phase(PHASE_AUTHENTICATION, "Phase 2: Authentication")

        if not self._settings.has_api_key:
            self._reporter.item(Marker.WARN, "No API key provided")
            self._diagnose(report, MISSING_API_KEY_DIAGNOSIS, phase=PHASE_AUTHENTICATION)
            report.add_suggestions(MISSING_API_KEY_SUGGESTIONS)
            return

        outcome = await self._client.probe(AUTH_PROBE_PATH)
        report.record_check("auth", outcome)

        if outcome.ok:
            self._reporter.item(Marker.OK, f"API key valid ({outcome.elapsed_ms}ms)")
            return

        if outcome.connection_failed:
            diagnosis = AUTH_CONNECTION_FAILED_DIAGNOSIS.format(error=outcome.error)
            self._reporter.item(Marker.FAIL, diagnosis)
            self._diagnose(report, diagnosis, phase=PHASE_AUTHENTICATION)
            return

        rule = match_first(_AUTH_RULES, outcome.status)
        if rule is None:
            return

        context = self._rule_context(outcome)
        diagnosis = rule.render_diagnosis(context)
        if diagnosis is not None:
            self._reporter.item(Marker.FAIL, f"{diagnosis} ({outcome.status})")
            self._diagnose(report, diagnosis, phase=PHASE_AUTHENTICATION)
        report.add_suggestions(rule.render_suggestions(context))

        if outcome.status == 403:
            reasons = match_all_applicable(FORBIDDEN_REASON_RULES, outcome.error or "")
            log_event(
                self._logger,
                "diagnose.forbidden.reasons",
                level=logging.DEBUG,
                matched=rule_names(reasons),
            )
            for reason in reasons:
                report.add_suggestions(reason.render_suggestions(context))

    # Phase 3 ---------------------------------------------------------------

    async def _check_endpoint(self, report: DiagnosticReport) -> None:
        endpoint = self._settings.endpoint
        if not endpoint or not self._settings.has_api_key:
            return

        self._enter_phase(PHASE_ENDPOINT, f"Phase 3: Endpoint Test ({endpoint})")
        outcome = await self._client.probe(endpoint)
        report.record_check("endpoint", outcome)

        if outcome.ok:
            self._reporter.item(Marker.OK, f"{endpoint} responds ({outcome.elapsed_ms}ms)")
            return

        self._reporter.item(
            Marker.FAIL,
            f"{endpoint} returned {outcome.status}: {outcome.error or 'no details'}",
        )
        self._diagnose(
            report,
            ENDPOINT_FAILED_DIAGNOSIS.format(endpoint=endpoint, status=outcome.status),
            phase=PHASE_ENDPOINT,
        )

    # Phase 4 ---------------------------------------------------------------

    async def _profile_latency(self, report: DiagnosticReport) -> None:
        self._enter_phase(PHASE_LATENCY, "Phase 4: Latency Profile")
        for path in LATENCY_PATHS:
            if path != HEALTH_PATH and not self._settings.has_api_key:
                continue
            outcome = await self._client.probe(path)
            report.record_check(latency_check_name(path), outcome)
            status = "OK" if outcome.ok else str(outcome.status)
            self._reporter.item(
                Marker.NOTE, f"{path:<30} {outcome.elapsed_ms:>5}ms [{status}]"
            )

    # Phase 5 ---------------------------------------------------------------

    def _analyze_error_hint(self, report: DiagnosticReport) -> None:
        hint = self._settings.error_hint
        if not hint:
            return

        self._enter_phase(PHASE_ERROR_HINT, f'Phase 5: Error Analysis ("{hint}")')
        rule = match_first(ERROR_HINT_RULES, hint.lower())
        log_event(
            self._logger,
            "diagnose.error_hint.matched",
            level=logging.DEBUG,
            rule=rule.name if rule else None,
        )
        if rule is not None:
            report.add_suggestions(rule.render_suggestions({}))
        for suggestion in report.suggestions:
            self._reporter.item(Marker.SUGGESTION, suggestion)

    # Finalization ----------------------------------------------------------

    def _finalize(self, report: DiagnosticReport) -> None:
        if not report.diagnosis:
            report.add_diagnosis(NO_ISSUES_DETECTED)
        log_event(
            self._logger,
            "diagnose.completed",
            level=logging.INFO,
            healthy=report.healthy,
            issues=len(report.issues),
            suggestions=len(report.suggestions),
        )


__all__ = [
    "DiagnosticEngine",
    "LATENCY_PATHS",
    "PHASE_AUTHENTICATION",
    "PHASE_CONNECTIVITY",
    "PHASE_ENDPOINT",
    "PHASE_ERROR_HINT",
    "PHASE_LATENCY",
    "latency_check_name",
]
