from __future__ import annotations

import pytest

from clawcheck.domain.rules import (
    AUTH_FALLBACK_RULE,
    AUTH_STATUS_RULES,
    ERROR_HINT_RULES,
    FORBIDDEN_REASON_RULES,
    Rule,
    contains_any,
    match_all_applicable,
    match_first,
    rule_names,
    status_is,
)


def test_match_first_respects_table_order() -> None:
    rules = (
        Rule(name="first", predicate=contains_any("a")),
        Rule(name="second", predicate=contains_any("a", "b")),
    )
    assert match_first(rules, "ab").name == "first"
    assert match_first(rules, "b").name == "second"
    assert match_first(rules, "z") is None


def test_match_all_applicable_keeps_every_match_in_order() -> None:
    matched = match_all_applicable(FORBIDDEN_REASON_RULES, "onboarding required; key is readonly")
    assert rule_names(matched) == ["forbidden.onboarding", "forbidden.readonly"]


def test_demo_reason_is_case_sensitive() -> None:
    assert rule_names(match_all_applicable(FORBIDDEN_REASON_RULES, "Demo mode: writes blocked")) == [
        "forbidden.demo"
    ]
    assert match_all_applicable(FORBIDDEN_REASON_RULES, "demo mode") == []


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, "auth.unauthorized"),
        (403, "auth.forbidden"),
        (429, "auth.rate_limited"),
        (503, "auth.misconfigured"),
        (500, "auth.unexpected_status"),
        (404, "auth.unexpected_status"),
    ],
)
def test_auth_rules_by_status(status: int, expected: str) -> None:
    rule = match_first(AUTH_STATUS_RULES + (AUTH_FALLBACK_RULE,), status)
    assert rule is not None
    assert rule.name == expected


def test_auth_rules_ignore_success() -> None:
    assert match_first(AUTH_STATUS_RULES + (AUTH_FALLBACK_RULE,), 200) is None


def test_render_uses_context_fields() -> None:
    forbidden = match_first(AUTH_STATUS_RULES, 403)
    misconfigured = match_first(AUTH_STATUS_RULES, 503)
    context = {"status": 503, "error": "nope", "server_error": "DATABASE_URL missing"}

    assert forbidden.render_diagnosis(context) == "Access forbidden: nope"
    assert forbidden.render_suggestions(context) == []
    assert misconfigured.render_suggestions(context) == [
        "DATABASE_URL missing",
        "Run database migrations",
    ]


def test_rule_without_diagnosis_renders_none() -> None:
    assert FORBIDDEN_REASON_RULES[0].render_diagnosis({}) is None


@pytest.mark.parametrize(
    ("hint", "expected"),
    [
        ("403 forbidden", "hint.forbidden"),
        ("401 unauthorized", "hint.unauthorized"),
        ("429 too many requests", "hint.rate_limited"),
        ("rate limited", "hint.rate_limited"),
        ("econnrefused 127.0.0.1:3000", "hint.connection"),
        ("redirect_uri mismatch", "hint.oauth_callback"),
        # "403" wins over the later connection family
        ("403 connection reset", "hint.forbidden"),
    ],
)
def test_error_hint_first_match(hint: str, expected: str) -> None:
    rule = match_first(ERROR_HINT_RULES, hint)
    assert rule is not None
    assert rule.name == expected


def test_error_hint_without_family() -> None:
    assert match_first(ERROR_HINT_RULES, "something odd happened") is None


def test_status_is_accepts_several_codes() -> None:
    predicate = status_is(401, 403)
    assert predicate(401) and predicate(403)
    assert not predicate(500)
