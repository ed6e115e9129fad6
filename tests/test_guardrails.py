"""Tests for the policy guard."""

import pytest

from webpilot.core.errors import PolicyViolation
from webpilot.core.guardrails import PolicyGuard, RED_FLAG_KEYWORDS, extract_host, host_matches
from webpilot.core.models import SafetyPolicy
from webpilot.core.tools import parse_tool_call


def navigate(url: str):
    return parse_tool_call("navigate", {"url": url})


def click(selector: str):
    return parse_tool_call("click", {"selector": selector})


class FixedClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Host matching
# =============================================================================

def test_host_matches_substring_and_wildcard():
    assert host_matches("www.badsite.com", "badsite.com")
    assert host_matches("api.example.org", "*.example.org")
    assert not host_matches("example.org", "*.example.org")
    assert not host_matches("example.com", "ex.mple.com")


def test_extract_host_lowercases():
    assert extract_host("https://WWW.Example.com/path") == "www.example.com"
    assert extract_host("not a url") == ""


# =============================================================================
# URL admission
# =============================================================================

def test_blocked_domain_is_denied():
    guard = PolicyGuard(SafetyPolicy(blocked_domains=["badsite.com"]))

    decision = guard.is_url_allowed("https://badsite.com/x")

    assert not decision.allowed
    assert decision.reason == "Domain badsite.com is blocked"


def test_wildcard_block_entry():
    guard = PolicyGuard(SafetyPolicy(blocked_domains=["*.tracker.net"]))

    assert not guard.is_url_allowed("https://ads.tracker.net/p").allowed
    assert guard.is_url_allowed("https://example.com").allowed


def test_allowlist_denies_unlisted_host():
    guard = PolicyGuard(SafetyPolicy(allowed_domains=["example.com"]))

    assert guard.is_url_allowed("https://www.example.com/a").allowed

    decision = guard.is_url_allowed("https://other.org")
    assert not decision.allowed
    assert decision.reason == "Domain other.org not in allowlist"


def test_blocklist_wins_over_allowlist():
    guard = PolicyGuard(SafetyPolicy(allowed_domains=["example.com"], blocked_domains=["bad.example.com"]))
    assert not guard.is_url_allowed("https://bad.example.com").allowed


@pytest.mark.parametrize("url", ["example.com/path", "", "https://"])
def test_url_without_host_is_invalid(url):
    decision = PolicyGuard().is_url_allowed(url)
    assert not decision.allowed
    assert decision.reason == "Invalid URL"


# =============================================================================
# Rate limit and budget
# =============================================================================

def test_cooldown_denies_second_action_on_same_host():
    clock = FixedClock(100.0)
    guard = PolicyGuard(SafetyPolicy(rate_limit_ms=1000), clock=clock)

    assert guard.check_action("https://example.com", click("#a")).allowed

    clock.now = 100.4
    decision = guard.check_action("https://example.com", click("#b"))

    assert not decision.allowed
    assert decision.reason == "Rate limit: wait 1s before next action on example.com"
    assert decision.retry_after_ms >= 600


def test_cooldown_elapsed_allows_action():
    clock = FixedClock(100.0)
    guard = PolicyGuard(SafetyPolicy(rate_limit_ms=1000), clock=clock)

    guard.check_action("https://example.com", click("#a"))
    clock.now = 101.0

    assert guard.check_action("https://example.com", click("#b")).allowed


def test_cooldown_is_per_host():
    guard = PolicyGuard(SafetyPolicy(rate_limit_ms=1000), clock=FixedClock())

    assert guard.check_action("https://example.com", click("#a")).allowed
    assert guard.check_action("https://other.org", click("#a")).allowed


def test_step_cap_denies_action_past_budget():
    guard = PolicyGuard(SafetyPolicy(max_steps_per_domain=3))

    for _ in range(3):
        assert guard.check_action("https://example.com", click("#a")).allowed

    decision = guard.check_action("https://example.com", click("#a"))
    assert not decision.allowed
    assert decision.reason == "Max steps (3) reached for example.com"


def test_budget_is_keyed_by_current_page_not_target():
    guard = PolicyGuard(SafetyPolicy(max_steps_per_domain=1))

    assert guard.check_action("https://example.com", navigate("https://other.org")).allowed
    assert guard.usage["example.com"].action_count == 1
    assert "other.org" not in guard.usage


def test_denied_navigation_consumes_no_budget():
    guard = PolicyGuard(SafetyPolicy(blocked_domains=["badsite.com"], max_steps_per_domain=5))

    assert not guard.check_action("https://example.com", navigate("https://badsite.com")).allowed
    assert guard.usage == {}


def test_reset_clears_usage():
    guard = PolicyGuard(SafetyPolicy(max_steps_per_domain=1))
    guard.check_action("https://example.com", click("#a"))

    guard.reset()

    assert guard.check_action("https://example.com", click("#a")).allowed


# =============================================================================
# Confirmation
# =============================================================================

def test_confirmation_flag_from_url_pattern():
    guard = PolicyGuard(SafetyPolicy(require_confirmation=["checkout"]))

    decision = guard.check_action("https://shop.example.com/Checkout/step1", click("#next"))

    assert decision.allowed
    assert decision.needs_confirmation


def test_confirmation_flag_from_red_flag_keyword():
    guard = PolicyGuard(SafetyPolicy(require_confirmation=["checkout"]))

    assert guard.check_action("https://shop.example.com", click("#buy-now")).needs_confirmation
    assert not guard.check_action("https://shop.example.com", click("#next-page")).needs_confirmation


def test_confirmation_disabled_without_patterns():
    guard = PolicyGuard(SafetyPolicy())
    assert not guard.requires_confirmation("https://shop.example.com/checkout", click("#buy"))


def test_red_flags_only_apply_to_click_and_type():
    guard = PolicyGuard(SafetyPolicy(require_confirmation=["checkout"]))
    query = parse_tool_call("query", {"selector": "#delete"})
    assert not guard.requires_confirmation("https://example.com", query)


# =============================================================================
# complete and enforce
# =============================================================================

def test_complete_bypasses_every_check():
    guard = PolicyGuard(SafetyPolicy(max_steps_per_domain=1, rate_limit_ms=1000), clock=FixedClock())
    guard.check_action("https://example.com", click("#a"))

    done = parse_tool_call("complete", {"success": True, "result": "X"})

    assert guard.check_action("https://example.com", done).allowed


def test_enforce_raises_policy_violation():
    guard = PolicyGuard(SafetyPolicy(blocked_domains=["badsite.com"]))

    with pytest.raises(PolicyViolation, match="badsite.com is blocked"):
        guard.enforce("https://example.com", navigate("https://badsite.com/x"))


def test_scope_declaration_lists_policy():
    guard = PolicyGuard(SafetyPolicy(blocked_domains=["badsite.com"], rate_limit_ms=250))

    scope = guard.scope_declaration()

    assert scope["blocked_domains"] == ["badsite.com"]
    assert scope["rate_limit_ms"] == 250
    assert scope["red_flag_keywords"] == RED_FLAG_KEYWORDS
