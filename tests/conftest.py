from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from clawcheck.config.settings import LOG_FORMAT_TEXT, LoggingSettings, RuntimeSettings
from clawcheck.infrastructure.logging import configure_logging
from clawcheck.integrations.dashclaw.client import ProbeClient

TEST_BASE_URL = "http://dashclaw.test"
TEST_API_KEY = "oc_live_abcdef1234567890"
HEALTHY_BODY = {"status": "healthy", "version": "2.4.0"}


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("clawcheck")
    group.addoption(
        "--offline",
        action="store_true",
        dest="clawcheck_offline",
        help="Run offline tests only (deselect tests marked 'online').",
    )
    group.addoption(
        "--online-only",
        action="store_true",
        dest="clawcheck_online_only",
        help="Run only tests marked 'online' (deselect offline).",
    )


def _is_live(item: pytest.Item) -> bool:
    return item.path.parent.name == "integration"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    offline_only = config.getoption("clawcheck_offline")
    online_only = config.getoption("clawcheck_online_only")
    if offline_only and online_only:
        raise pytest.UsageError("--offline and --online-only are mutually exclusive")

    keep: list[pytest.Item] = []
    dropped: list[pytest.Item] = []
    for item in items:
        live = _is_live(item)
        item.add_marker(pytest.mark.online if live else pytest.mark.offline)
        excluded = (online_only and not live) or (offline_only and live)
        (dropped if excluded else keep).append(item)

    if dropped:
        config.hook.pytest_deselected(items=dropped)
        items[:] = keep


@pytest.fixture(autouse=True)
def _configure_structured_logging() -> None:
    """Install deterministic structured logging for every test."""

    configure_logging(
        LoggingSettings(
            level=logging.DEBUG,
            format=LOG_FORMAT_TEXT,
            file_path=None,
            max_bytes=1024,
            backup_count=1,
        )
    )


class FakeDashClaw:
    """In-memory stand-in for a DashClaw server behind ``httpx.MockTransport``.

    Routes are keyed by method and path (query string included). Unknown
    routes answer ``200 {}`` so a test only describes what differs from a
    healthy server.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.refuse_connections = False
        self.respond("GET", "/api/health", json=HEALTHY_BODY)

    def respond(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=json if json is not None else {})

        self.routes[(method, path)] = _handler

    def fail(self, method: str, path: str, exc_factory: Callable[[httpx.Request], Exception]) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise exc_factory(request)

        self.routes[(method, path)] = _handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.refuse_connections:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        key = (request.method, request.url.raw_path.decode("ascii"))
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(200, json={})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self, method: str | None = None) -> list[str]:
        return [
            request.url.raw_path.decode("ascii")
            for request in self.requests
            if method is None or request.method == method
        ]


@pytest.fixture
def fake_server() -> FakeDashClaw:
    return FakeDashClaw()


@pytest.fixture
def make_settings() -> Callable[..., RuntimeSettings]:
    def _make(**overrides: Any) -> RuntimeSettings:
        base: dict[str, Any] = {"base_url": TEST_BASE_URL, "api_key": TEST_API_KEY}
        base.update(overrides)
        return RuntimeSettings(**base)

    return _make


@pytest.fixture
def make_client(fake_server: FakeDashClaw) -> Callable[[RuntimeSettings], ProbeClient]:
    def _make(settings: RuntimeSettings) -> ProbeClient:
        return ProbeClient.from_settings(settings, transport=fake_server.transport)

    return _make
