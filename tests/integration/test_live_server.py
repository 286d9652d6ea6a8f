"""Checks against a real DashClaw server.

Set ``DASHCLAW_BASE_URL`` (and optionally ``DASHCLAW_API_KEY``) and run with
``pytest --online-only``.
"""

from __future__ import annotations

import os

import pytest

from clawcheck.application.diagnose import DiagnosticEngine
from clawcheck.application.validate import CHECK_HEALTH, ValidationEngine
from clawcheck.config.settings import RuntimeSettings, normalize_base_url
from clawcheck.domain.models import CheckStatus
from clawcheck.integrations.dashclaw import ProbeClient

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.getenv("DASHCLAW_BASE_URL"),
        reason="DASHCLAW_BASE_URL not set; live DashClaw server required",
    ),
]


@pytest.fixture
def live_settings() -> RuntimeSettings:
    return RuntimeSettings(
        base_url=normalize_base_url(os.getenv("DASHCLAW_BASE_URL")),
        api_key=os.getenv("DASHCLAW_API_KEY") or None,
    )


@pytest.mark.asyncio
async def test_live_health_is_reachable(live_settings: RuntimeSettings) -> None:
    async with ProbeClient.from_settings(live_settings) as client:
        report = await DiagnosticEngine(live_settings, client).run()

    assert report.checks["health"].connection_failed is False


@pytest.mark.asyncio
async def test_live_read_only_validation(live_settings: RuntimeSettings) -> None:
    async with ProbeClient.from_settings(live_settings) as client:
        run = await ValidationEngine(live_settings, client).run()

    assert run.results[0].name == CHECK_HEALTH
    assert run.results[0].status is CheckStatus.PASS
    if live_settings.has_api_key:
        assert run.skipped == 3
    else:
        assert len(run) == 2
