"""Rule tables mapping probe observations to diagnoses and suggestions.

A :class:`Rule` pairs a predicate with a diagnosis template and suggestion
templates. Templates use :meth:`str.format` fields filled from a context
mapping built by the caller (``status``, ``error``, ``server_error``,
``base_url``). Tables are plain ordered tuples evaluated by one of two
strategies:

* :func:`match_first` stops at the first rule whose predicate holds.
* :func:`match_all_applicable` returns every rule whose predicate holds, in
  table order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

SubjectT = TypeVar("SubjectT")


@dataclass(frozen=True)
class Rule(Generic[SubjectT]):
    name: str
    predicate: Callable[[SubjectT], bool]
    diagnosis: str | None = None
    suggestions: tuple[str, ...] = ()

    def applies(self, subject: SubjectT) -> bool:
        return bool(self.predicate(subject))

    def render_diagnosis(self, context: Mapping[str, Any]) -> str | None:
        if self.diagnosis is None:
            return None
        return self.diagnosis.format_map(context)

    def render_suggestions(self, context: Mapping[str, Any]) -> list[str]:
        return [template.format_map(context) for template in self.suggestions]


def match_first(
    rules: Iterable[Rule[SubjectT]], subject: SubjectT
) -> Rule[SubjectT] | None:
    for rule in rules:
        if rule.applies(subject):
            return rule
    return None


def match_all_applicable(
    rules: Iterable[Rule[SubjectT]], subject: SubjectT
) -> list[Rule[SubjectT]]:
    return [rule for rule in rules if rule.applies(subject)]


def status_is(*codes: int) -> Callable[[int], bool]:
    expected = frozenset(codes)
    return lambda status: status in expected


def contains_any(*needles: str) -> Callable[[str], bool]:
    """Case-sensitive substring test; callers lower-case when they need to."""

    return lambda text: any(needle in text for needle in needles)


# Phase 1: connectivity -----------------------------------------------------

UNREACHABLE_DIAGNOSIS = "Server is unreachable"
UNREACHABLE_SUGGESTIONS: tuple[str, ...] = (
    "Check that the DashClaw server is running (npm run dev)",
    "Verify the URL is correct: {base_url}",
    "Check for firewall or network issues",
    "If using Docker, verify port mapping",
)
HEALTH_NON_200_DIAGNOSIS = "Health endpoint returned non-200: {status}"

# Phase 2: authentication ---------------------------------------------------

MISSING_API_KEY_DIAGNOSIS = "No API key configured"
MISSING_API_KEY_SUGGESTIONS: tuple[str, ...] = (
    "Set DASHCLAW_API_KEY environment variable",
    "Or pass --api-key flag",
    "Generate a key at your-dashboard/setup or POST /api/onboarding/api-key",
)

FORBIDDEN_ONBOARDING_SUGGESTION = "Complete onboarding: visit /setup on the dashboard"
FORBIDDEN_READONLY_SUGGESTION = (
    "This API key has readonly access. Use an admin key for writes."
)
FORBIDDEN_DEMO_SUGGESTION = "You are hitting a demo instance. Use a self-hosted instance."

AUTH_STATUS_RULES: tuple[Rule[int], ...] = (
    Rule(
        name="auth.unauthorized",
        predicate=status_is(401),
        diagnosis="API key is invalid or not recognized",
        suggestions=(
            "Verify the API key value is correct",
            "Check if the key has been revoked",
            "Try generating a new key via the dashboard",
        ),
    ),
    Rule(
        name="auth.forbidden",
        predicate=status_is(403),
        diagnosis="Access forbidden: {error}",
    ),
    Rule(
        name="auth.rate_limited",
        predicate=status_is(429),
        diagnosis="Rate limit exceeded",
        suggestions=(
            "Wait 60 seconds and try again",
            "Increase DASHCLAW_RATE_LIMIT_MAX",
        ),
    ),
    Rule(
        name="auth.misconfigured",
        predicate=status_is(503),
        diagnosis="Server configuration error",
        suggestions=("{server_error}", "Run database migrations"),
    ),
)

AUTH_FALLBACK_RULE: Rule[int] = Rule(
    name="auth.unexpected_status",
    predicate=lambda status: not 200 <= status <= 299,
    diagnosis="Authentication check returned unexpected status {status}",
)

AUTH_CONNECTION_FAILED_DIAGNOSIS = "Authentication check could not reach the server: {error}"

# Sub-rules evaluated against the server's error text on 403. Each one that
# matches contributes its suggestion.
FORBIDDEN_REASON_RULES: tuple[Rule[str], ...] = (
    Rule(
        name="forbidden.onboarding",
        predicate=contains_any("onboarding"),
        suggestions=(FORBIDDEN_ONBOARDING_SUGGESTION,),
    ),
    Rule(
        name="forbidden.readonly",
        predicate=contains_any("readonly"),
        suggestions=(FORBIDDEN_READONLY_SUGGESTION,),
    ),
    Rule(
        name="forbidden.demo",
        predicate=contains_any("Demo mode"),
        suggestions=(FORBIDDEN_DEMO_SUGGESTION,),
    ),
)

# Phase 3: endpoint check ---------------------------------------------------

ENDPOINT_FAILED_DIAGNOSIS = "{endpoint} failed with status {status}"

# Phase 5: error hint families, evaluated against the lower-cased hint -----

ERROR_HINT_RULES: tuple[Rule[str], ...] = (
    Rule(
        name="hint.forbidden",
        predicate=contains_any("403", "forbidden"),
        suggestions=(
            "Check if DASHCLAW_MODE=demo (blocks writes)",
            'Check if API key role is "readonly"',
            "Check if user is on org_default (needs onboarding)",
            "Check if behavior guard is blocking",
        ),
    ),
    Rule(
        name="hint.unauthorized",
        predicate=contains_any("401", "unauthorized"),
        suggestions=(
            "Verify x-api-key header is being sent",
            "Check API key value matches server config",
            "If using session auth, ensure same-origin request",
        ),
    ),
    Rule(
        name="hint.rate_limited",
        predicate=contains_any("429", "rate"),
        suggestions=(
            "Default: 100 req/min (prod), 1000 req/min (dev)",
            "Increase: DASHCLAW_RATE_LIMIT_MAX env var",
            "Dev bypass: DASHCLAW_DISABLE_RATE_LIMIT=true",
        ),
    ),
    Rule(
        name="hint.connection",
        predicate=contains_any("econnrefused", "connection"),
        suggestions=(
            "Server not running or unreachable",
            "Check base URL and port",
            "Run: npm run dev",
        ),
    ),
    Rule(
        name="hint.oauth_callback",
        predicate=contains_any("redirect", "callback"),
        suggestions=(
            "OAuth callback URL missing from provider app",
            "GitHub: http://localhost:3000/api/auth/callback/github",
            "Google: http://localhost:3000/api/auth/callback/google",
        ),
    ),
)


def rule_names(rules: Sequence[Rule[Any]]) -> list[str]:
    return [rule.name for rule in rules]


__all__ = [
    "AUTH_CONNECTION_FAILED_DIAGNOSIS",
    "AUTH_FALLBACK_RULE",
    "AUTH_STATUS_RULES",
    "ENDPOINT_FAILED_DIAGNOSIS",
    "ERROR_HINT_RULES",
    "FORBIDDEN_DEMO_SUGGESTION",
    "FORBIDDEN_ONBOARDING_SUGGESTION",
    "FORBIDDEN_READONLY_SUGGESTION",
    "FORBIDDEN_REASON_RULES",
    "HEALTH_NON_200_DIAGNOSIS",
    "MISSING_API_KEY_DIAGNOSIS",
    "MISSING_API_KEY_SUGGESTIONS",
    "Rule",
    "UNREACHABLE_DIAGNOSIS",
    "UNREACHABLE_SUGGESTIONS",
    "contains_any",
    "match_all_applicable",
    "match_first",
    "rule_names",
    "status_is",
]
