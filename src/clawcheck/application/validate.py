"""Integration-health checklist for a DashClaw server.

Checks run strictly in order and each records ``pass``, ``fail`` or ``skip``.
Two conditions end the run early: an unreachable health endpoint and a
missing API key. Write checks only touch the server in full mode.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Final

from clawcheck.application.progress import Marker, NullReporter, ProgressReporter
from clawcheck.config.constants import API_KEY_PREFIX_LENGTH, mask_api_key
from clawcheck.config.settings import RuntimeSettings
from clawcheck.domain.models import (
    CheckStatus,
    ProbeOutcome,
    ValidationResult,
    ValidationRun,
)
from clawcheck.infrastructure.logging import BoundLogger, get_logger, log_event
from clawcheck.integrations.dashclaw.client import (
    AUTH_PROBE_PATH,
    HEALTH_PATH,
    ProbeClient,
)

CHECK_HEALTH: Final = "Health endpoint"
CHECK_KEY_CONFIGURED: Final = "API key configured"
CHECK_KEY_AUTHENTICATION: Final = "API key authentication"
CHECK_CREATE_ACTION: Final = "Create action"
CHECK_UPDATE_ACTION: Final = "Update action outcome"
CHECK_GUARD: Final = "Guard check"
CHECK_SEND_MESSAGE: Final = "Send message"

READ_ENDPOINTS: Final[tuple[tuple[str, str], ...]] = (
    ("/api/actions?limit=1", "Actions"),
    ("/api/guard?limit=1", "Guard decisions"),
    ("/api/policies", "Policies"),
    ("/api/context/threads?limit=1", "Context threads"),
    ("/api/messages?limit=1", "Messages"),
    ("/api/snippets?limit=1", "Snippets"),
    ("/api/handoffs?limit=1", "Handoffs"),
    ("/api/memory", "Memory"),
)

WRITE_CHECKS: Final[tuple[str, ...]] = (
    CHECK_CREATE_ACTION,
    CHECK_GUARD,
    CHECK_SEND_MESSAGE,
)
FULL_MODE_HINT: Final = "Use --full flag"


def _truncate(text: str | None, limit: int) -> str:
    return (text or "")[:limit]


def _failure_detail(outcome: ProbeOutcome, *, limit: int = 80) -> str:
    if outcome.connection_failed:
        return f"Connection failed: {outcome.error}"
    return f"Status {outcome.status}: {_truncate(outcome.error or outcome.raw_text, limit)}"


def _missing_field_detail(outcome: ProbeOutcome, field: str) -> str:
    """Failure detail for a write whose response must carry ``field``."""

    if not outcome.ok:
        return _failure_detail(outcome)
    reason = outcome.error or f"missing {field}"
    return f"Status {outcome.status}: {reason}"


class ValidationEngine:
    """Run the integration checklist and score the result."""

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
        self._logger = (logger or get_logger("clawcheck.validate")).bind(
            server=settings.base_url, agent_id=settings.agent_id
        )
        self._reporter: ProgressReporter = reporter or NullReporter()

    async def run(self) -> ValidationRun:
        run = ValidationRun()
        self._announce()

        if await self._check_health(run) and self._check_key_configured(run):
            await self._check_key_authentication(run)
            await self._check_read_endpoints(run)
            if self._settings.full:
                await self._run_write_checks(run)
            else:
                self._skip_write_checks(run)

        log_event(
            self._logger,
            "validate.completed",
            level=logging.INFO,
            **run.summary(),
        )
        return run

    def _announce(self) -> None:
        self._reporter.banner(
            "DashClaw Integration Validator",
            [
                ("Server", self._settings.base_url),
                ("Agent", self._settings.agent_id),
                ("API Key", mask_api_key(self._settings.api_key) or "(not set)"),
                ("Mode", "Full (writes enabled)" if self._settings.full else "Read-only"),
            ],
        )

    def _record(
        self,
        run: ValidationRun,
        name: str,
        status: CheckStatus,
        detail: str | None = None,
    ) -> ValidationResult:
        result = ValidationResult(name=name, status=status, detail=detail)
        run.record(result)
        self._reporter.check(result)
        log_event(
            self._logger,
            "validate.check.recorded",
            level=logging.DEBUG,
            check=name,
            status=status.value,
            detail=detail,
        )
        return result

    # Connectivity ----------------------------------------------------------

    async def _check_health(self, run: ValidationRun) -> bool:
        self._reporter.section("Connectivity")
        outcome = await self._client.probe(HEALTH_PATH)

        if outcome.connection_failed:
            self._record(run, CHECK_HEALTH, CheckStatus.FAIL, _failure_detail(outcome))
            self._reporter.item(Marker.FAIL, "Server unreachable. Aborting remaining checks.")
            return False

        if outcome.ok and outcome.body_field("status") == "healthy":
            version = outcome.body_field("version") or "unknown version"
            self._record(run, CHECK_HEALTH, CheckStatus.PASS, f"Server healthy ({version})")
        else:
            self._record(
                run,
                CHECK_HEALTH,
                CheckStatus.FAIL,
                f"Status {outcome.status}: {_truncate(outcome.raw_text, 100)}",
            )
        return True

    # Authentication --------------------------------------------------------

    def _check_key_configured(self, run: ValidationRun) -> bool:
        self._reporter.section("Authentication")
        api_key = self._settings.api_key
        if not api_key:
            self._record(
                run,
                CHECK_KEY_CONFIGURED,
                CheckStatus.FAIL,
                "No API key provided. Set --api-key or DASHCLAW_API_KEY env var.",
            )
            self._reporter.item(Marker.WARN, "No API key. Skipping authenticated checks.")
            return False

        self._record(
            run,
            CHECK_KEY_CONFIGURED,
            CheckStatus.PASS,
            f"Key prefix: {api_key[:API_KEY_PREFIX_LENGTH]}",
        )
        return True

    async def _check_key_authentication(self, run: ValidationRun) -> None:
        outcome = await self._client.probe(AUTH_PROBE_PATH)
        if outcome.ok:
            self._record(run, CHECK_KEY_AUTHENTICATION, CheckStatus.PASS, "Key resolves to valid org")
            return

        if outcome.connection_failed:
            detail = _failure_detail(outcome)
        elif outcome.status == 401:
            detail = "Key rejected (401). Check key value and server DASHCLAW_API_KEY."
        elif outcome.status == 403:
            detail = f"Forbidden (403): {outcome.error or 'unknown'}"
        else:
            detail = f"Unexpected status {outcome.status}"
        self._record(run, CHECK_KEY_AUTHENTICATION, CheckStatus.FAIL, detail)

    # Reads -----------------------------------------------------------------

    async def _check_read_endpoints(self, run: ValidationRun) -> None:
        self._reporter.section("Core Endpoints (Read)")
        for path, label in READ_ENDPOINTS:
            outcome = await self._client.probe(path)
            name = f"GET {label}"
            if outcome.ok:
                self._record(run, name, CheckStatus.PASS)
            else:
                self._record(run, name, CheckStatus.FAIL, _failure_detail(outcome))

    # Writes ----------------------------------------------------------------

    def _skip_write_checks(self, run: ValidationRun) -> None:
        self._reporter.section("Write Tests (skipped, use --full to enable)")
        for name in WRITE_CHECKS:
            self._record(run, name, CheckStatus.SKIP, FULL_MODE_HINT)

    async def _run_write_checks(self, run: ValidationRun) -> None:
        self._reporter.section("Write Tests")
        await self._check_action_lifecycle(run)
        await self._check_guard(run)
        await self._check_send_message(run)

    def _action_payload(self) -> dict[str, Any]:
        return {
            "agent_id": self._settings.agent_id,
            "agent_name": "Integration Test",
            "action_type": "integration_test",
            "declared_goal": "Validate DashClaw integration",
            "risk_score": 5,
            "metadata": {
                "test": True,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }

    async def _check_action_lifecycle(self, run: ValidationRun) -> None:
        created = await self._client.probe(
            "/api/actions", method="POST", json_body=self._action_payload()
        )
        action_id = created.body_field("action_id") if created.ok else None

        if not action_id:
            self._record(
                run,
                CHECK_CREATE_ACTION,
                CheckStatus.FAIL,
                _missing_field_detail(created, "action_id"),
            )
            self._record(
                run,
                CHECK_UPDATE_ACTION,
                CheckStatus.FAIL,
                "Not attempted: action creation failed",
            )
            return

        self._record(run, CHECK_CREATE_ACTION, CheckStatus.PASS, f"action_id: {action_id}")
        updated = await self._client.probe(
            f"/api/actions/{action_id}",
            method="PATCH",
            json_body={"status": "completed", "output_summary": "Integration test passed"},
        )
        if updated.ok:
            self._record(run, CHECK_UPDATE_ACTION, CheckStatus.PASS, "Outcome updated")
        else:
            self._record(run, CHECK_UPDATE_ACTION, CheckStatus.FAIL, _failure_detail(updated))

    async def _check_guard(self, run: ValidationRun) -> None:
        outcome = await self._client.probe(
            "/api/guard",
            method="POST",
            json_body={
                "agent_id": self._settings.agent_id,
                "action_type": "integration_test",
                "content": "Test guard check",
                "risk_score": 10,
            },
        )
        decision = outcome.body_field("decision") if outcome.ok else None
        if decision:
            self._record(run, CHECK_GUARD, CheckStatus.PASS, f"Decision: {decision}")
        else:
            self._record(
                run, CHECK_GUARD, CheckStatus.FAIL, _missing_field_detail(outcome, "decision")
            )

    async def _check_send_message(self, run: ValidationRun) -> None:
        outcome = await self._client.probe(
            "/api/messages",
            method="POST",
            json_body={
                "from_agent_id": self._settings.agent_id,
                "to_agent_id": "dashboard",
                "message_type": "status",
                "content": "Integration test message",
            },
        )
        if outcome.ok:
            self._record(run, CHECK_SEND_MESSAGE, CheckStatus.PASS, "Message sent")
        else:
            self._record(run, CHECK_SEND_MESSAGE, CheckStatus.FAIL, _failure_detail(outcome))


def closing_message(run: ValidationRun) -> str:
    if run.failed == 0 and run.skipped == 0:
        return "All checks passed. Integration is healthy."
    if run.failed == 0:
        return "Read checks passed. Run with --full to test writes."
    return "Some checks failed. Review the output above."


__all__ = [
    "CHECK_CREATE_ACTION",
    "CHECK_GUARD",
    "CHECK_HEALTH",
    "CHECK_KEY_AUTHENTICATION",
    "CHECK_KEY_CONFIGURED",
    "CHECK_SEND_MESSAGE",
    "CHECK_UPDATE_ACTION",
    "FULL_MODE_HINT",
    "READ_ENDPOINTS",
    "ValidationEngine",
    "closing_message",
]
