"""HTTP probing of DashClaw servers."""

from clawcheck.integrations.dashclaw.client import (
    AUTH_PROBE_PATH,
    HEALTH_PATH,
    ProbeClient,
    build_headers,
)

__all__ = ["AUTH_PROBE_PATH", "HEALTH_PATH", "ProbeClient", "build_headers"]
