from __future__ import annotations

import json

import pytest

from clawcheck.application.progress import RecordingReporter
from clawcheck.application.validate import (
    CHECK_CREATE_ACTION,
    CHECK_GUARD,
    CHECK_HEALTH,
    CHECK_KEY_AUTHENTICATION,
    CHECK_KEY_CONFIGURED,
    CHECK_SEND_MESSAGE,
    CHECK_UPDATE_ACTION,
    READ_ENDPOINTS,
    ValidationEngine,
    closing_message,
)
from clawcheck.domain.models import CheckStatus


async def _validate(make_settings, make_client, reporter=None, **overrides):
    settings = make_settings(**overrides)
    async with make_client(settings) as client:
        return await ValidationEngine(settings, client, reporter=reporter).run()


def _statuses(run) -> dict[str, CheckStatus]:
    return {result.name: result.status for result in run}


@pytest.mark.asyncio
async def test_read_only_run_skips_writes(fake_server, make_settings, make_client) -> None:
    run = await _validate(make_settings, make_client)

    names = [result.name for result in run]
    assert names[:3] == [CHECK_HEALTH, CHECK_KEY_CONFIGURED, CHECK_KEY_AUTHENTICATION]
    assert names[3:11] == [f"GET {label}" for _, label in READ_ENDPOINTS]
    assert names[11:] == [CHECK_CREATE_ACTION, CHECK_GUARD, CHECK_SEND_MESSAGE]
    assert (run.passed, run.failed, run.skipped, run.score) == (11, 0, 3, 100)
    assert all(result.detail == "Use --full flag" for result in run.results[11:])
    assert fake_server.paths("POST") == []
    assert closing_message(run) == "Read checks passed. Run with --full to test writes."
    assert run.exit_code() == 0


@pytest.mark.asyncio
async def test_health_detail_includes_version(fake_server, make_settings, make_client) -> None:
    run = await _validate(make_settings, make_client)
    assert run.results[0].detail == "Server healthy (2.4.0)"
    assert run.results[1].detail == "Key prefix: oc_live_abcd"


@pytest.mark.asyncio
async def test_unreachable_server_ends_run(fake_server, make_settings, make_client) -> None:
    fake_server.refuse_connections = True
    run = await _validate(make_settings, make_client, full=True)

    assert len(run) == 1
    assert run.results[0].name == CHECK_HEALTH
    assert run.results[0].status is CheckStatus.FAIL
    assert run.results[0].detail.startswith("Connection failed: ")
    assert run.score == 0
    assert run.exit_code() == 1


@pytest.mark.asyncio
async def test_missing_key_ends_run(fake_server, make_settings, make_client) -> None:
    run = await _validate(make_settings, make_client, api_key=None)

    assert [(r.name, r.status) for r in run] == [
        (CHECK_HEALTH, CheckStatus.PASS),
        (CHECK_KEY_CONFIGURED, CheckStatus.FAIL),
    ]
    assert run.results[1].detail == "No API key provided. Set --api-key or DASHCLAW_API_KEY env var."
    assert run.score == 50
    assert fake_server.paths() == ["/api/health"]


@pytest.mark.asyncio
async def test_unhealthy_body_fails_health_but_continues(
    fake_server, make_settings, make_client
) -> None:
    fake_server.respond("GET", "/api/health", json={"status": "degraded"})
    run = await _validate(make_settings, make_client)

    assert run.results[0].status is CheckStatus.FAIL
    assert run.results[0].detail.startswith("Status 200: ")
    assert len(run) == 14


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "body", "detail"),
    [
        (401, {}, "Key rejected (401). Check key value and server DASHCLAW_API_KEY."),
        (403, {"error": "readonly key"}, "Forbidden (403): readonly key"),
        (403, {}, "Forbidden (403): unknown"),
        (500, {}, "Unexpected status 500"),
    ],
)
async def test_authentication_failure_details(
    fake_server, make_settings, make_client, status, body, detail
) -> None:
    fake_server.respond("GET", "/api/actions?limit=1", status=status, json=body)
    run = await _validate(make_settings, make_client)

    auth = run.results[2]
    assert auth.name == CHECK_KEY_AUTHENTICATION
    assert auth.status is CheckStatus.FAIL
    assert auth.detail == detail


@pytest.mark.asyncio
async def test_read_endpoint_failure_detail(fake_server, make_settings, make_client) -> None:
    fake_server.respond("GET", "/api/policies", status=500, json={"error": "relation missing"})
    fake_server.respond("GET", "/api/memory", status=502, text="x" * 200)
    run = await _validate(make_settings, make_client)

    statuses = _statuses(run)
    assert statuses["GET Policies"] is CheckStatus.FAIL
    details = {result.name: result.detail for result in run}
    assert details["GET Policies"] == "Status 500: relation missing"
    assert details["GET Memory"] == "Status 502: " + "x" * 80
    assert run.score == 82
    assert closing_message(run) == "Some checks failed. Review the output above."


@pytest.mark.asyncio
async def test_full_run_exercises_writes(fake_server, make_settings, make_client) -> None:
    fake_server.respond("POST", "/api/actions", status=201, json={"action_id": "act_42"})
    fake_server.respond("PATCH", "/api/actions/act_42", json={"ok": True})
    fake_server.respond("POST", "/api/guard", json={"decision": "allow"})
    fake_server.respond("POST", "/api/messages", status=201, json={"id": "msg_1"})

    reporter = RecordingReporter()
    run = await _validate(make_settings, make_client, reporter, full=True, agent_id="agent-7")

    assert (run.passed, run.failed, run.skipped, run.score) == (15, 0, 0, 100)
    details = {result.name: result.detail for result in run}
    assert details[CHECK_CREATE_ACTION] == "action_id: act_42"
    assert details[CHECK_GUARD] == "Decision: allow"
    assert details[CHECK_SEND_MESSAGE] == "Message sent"
    assert closing_message(run) == "All checks passed. Integration is healthy."

    posts = [r for r in fake_server.requests if r.method == "POST"]
    action_payload = json.loads(posts[0].content)
    assert action_payload["agent_id"] == "agent-7"
    assert action_payload["action_type"] == "integration_test"
    assert json.loads(posts[2].content)["from_agent_id"] == "agent-7"
    assert fake_server.paths("PATCH") == ["/api/actions/act_42"]
    assert reporter.sections[-1] == "Write Tests"


@pytest.mark.asyncio
async def test_create_failure_skips_update_request(fake_server, make_settings, make_client) -> None:
    fake_server.respond("POST", "/api/actions", status=400, json={"error": "agent_id required"})
    fake_server.respond("POST", "/api/guard", json={"decision": "block"})
    run = await _validate(make_settings, make_client, full=True)

    details = {result.name: result.detail for result in run}
    statuses = _statuses(run)
    assert statuses[CHECK_CREATE_ACTION] is CheckStatus.FAIL
    assert details[CHECK_CREATE_ACTION] == "Status 400: agent_id required"
    assert statuses[CHECK_UPDATE_ACTION] is CheckStatus.FAIL
    assert fake_server.paths("PATCH") == []
    assert statuses[CHECK_GUARD] is CheckStatus.PASS


@pytest.mark.asyncio
async def test_guard_without_decision_fails(fake_server, make_settings, make_client) -> None:
    fake_server.respond("POST", "/api/actions", json={"action_id": "act_1"})
    fake_server.respond("POST", "/api/guard", json={"ok": True})
    run = await _validate(make_settings, make_client, full=True)

    assert _statuses(run)[CHECK_GUARD] is CheckStatus.FAIL
    assert run.failed == 1


@pytest.mark.asyncio
async def test_write_success_without_required_field_names_it(
    fake_server, make_settings, make_client
) -> None:
    fake_server.respond("POST", "/api/actions", status=201, json={"id": "not-an-action-id"})
    fake_server.respond("POST", "/api/guard", json={"error": "guard disabled"})
    run = await _validate(make_settings, make_client, full=True)

    details = {result.name: result.detail for result in run}
    assert details[CHECK_CREATE_ACTION] == "Status 201: missing action_id"
    assert details[CHECK_GUARD] == "Status 200: guard disabled"
    assert details[CHECK_UPDATE_ACTION] == "Not attempted: action creation failed"
