from __future__ import annotations

import json
import time
from collections.abc import Mapping
from types import TracebackType
from typing import Any

import httpx

from clawcheck.config.constants import API_KEY_HEADER
from clawcheck.config.settings import RuntimeSettings
from clawcheck.domain.models import ProbeOutcome
from clawcheck.infrastructure.logging import BoundLogger, get_logger, log_probe_event

HEALTH_PATH = "/api/health"
AUTH_PROBE_PATH = "/api/actions?limit=1"


def _parse_json(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def _elapsed_ms(start: float) -> int:
    return int(round((time.monotonic() - start) * 1000))


def build_headers(
    api_key: str | None, overrides: Mapping[str, str] | None = None
) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers[API_KEY_HEADER] = api_key
    if overrides:
        headers.update(overrides)
    return headers


class ProbeClient:
    """Issue single timed requests against the target server.

    Request failures (transport errors, undecodable bodies) never escape
    :meth:`probe`; they come back as a :class:`ProbeOutcome` with
    ``connection_failed`` set.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._logger = logger or get_logger("clawcheck.probe")
        self._client = httpx.AsyncClient(transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: RuntimeSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: BoundLogger | None = None,
    ) -> ProbeClient:
        return cls(settings.base_url, settings.api_key, transport=transport, logger=logger)

    async def __aenter__(self) -> ProbeClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def probe(
        self,
        path: str,
        *,
        method: str = "GET",
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> ProbeOutcome:
        request_headers = build_headers(self.api_key, headers)
        content = json.dumps(json_body) if json_body is not None else None

        start = time.monotonic()
        try:
            response = await self._client.request(
                method,
                self.url_for(path),
                headers=request_headers,
                content=content,
            )
            text = response.text
        except httpx.HTTPError as exc:
            message = str(exc) or exc.__class__.__name__
            outcome = ProbeOutcome.from_failure(message, elapsed_ms=_elapsed_ms(start))
            log_probe_event(
                self._logger,
                "connection_failed",
                path=path,
                method=method,
                elapsed_ms=outcome.elapsed_ms,
                error=message,
            )
            return outcome

        outcome = ProbeOutcome.from_response(
            status=response.status_code,
            elapsed_ms=_elapsed_ms(start),
            body=_parse_json(text),
            raw_text=text,
            headers=dict(response.headers),
        )
        log_probe_event(
            self._logger,
            "completed",
            path=path,
            method=method,
            status=outcome.status,
            elapsed_ms=outcome.elapsed_ms,
        )
        return outcome


__all__ = [
    "AUTH_PROBE_PATH",
    "HEALTH_PATH",
    "ProbeClient",
    "build_headers",
]
