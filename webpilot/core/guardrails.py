"""
Safety & Policy Guardrails.
Domain admission, per-host rate limiting, per-host step budgets, and
human-confirmation flagging for every action the agent proposes.
"""

import json
import math
import re
import time
from typing import Callable
from urllib.parse import urlparse

from pydantic import BaseModel

from .errors import PolicyViolation
from .models import SafetyPolicy
from .tools import BaseToolCall


# Keywords in click/type arguments that suggest an irreversible action
RED_FLAG_KEYWORDS = [
    "checkout",
    "payment",
    "credit",
    "card",
    "purchase",
    "buy",
    "order",
    "confirm",
    "delete",
    "remove",
]


class PolicyDecision(BaseModel):
    """Result of vetting one action."""
    allowed: bool
    needs_confirmation: bool = False
    reason: str | None = None
    retry_after_ms: int | None = None


class HostUsage(BaseModel):
    """Tracks rate limiting and budget state for one host."""
    action_count: int = 0
    last_action_at: float | None = None  # seconds, from the guard's clock


def extract_host(url: str) -> str:
    """Lower-cased hostname of a URL, empty when it has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def host_matches(host: str, pattern: str) -> bool:
    """
    Match a host against a policy entry.

    An entry matches when it is a substring of the host, or when it is a
    ``*`` wildcard pattern that matches the whole host.
    """
    pattern = pattern.lower()
    if pattern in host:
        return True
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, host) is not None


class PolicyGuard:
    """
    Gatekeeper for every non-``complete`` action.

    State (per-host timestamps and counters) belongs to this instance only.
    Build one guard per run and never share it between concurrent runs.
    """

    def __init__(
        self,
        policy: SafetyPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the guard.

        Args:
            policy: Safety policy to enforce (defaults to an empty policy)
            clock: Time source in seconds, injectable for tests
        """
        self.policy = policy or SafetyPolicy()
        self.clock = clock
        self.usage: dict[str, HostUsage] = {}

    def _usage_for(self, host: str) -> HostUsage:
        if host not in self.usage:
            self.usage[host] = HostUsage()
        return self.usage[host]

    def is_url_allowed(self, url: str) -> PolicyDecision:
        """
        Check a navigation target against the block and allow lists.

        Args:
            url: Absolute URL the agent wants to load

        Returns:
            Decision; denied when blocked, absent from a non-empty
            allowlist, or unparseable
        """
        try:
            parsed = urlparse(url)
            host = parsed.hostname or ""
        except ValueError:
            return PolicyDecision(allowed=False, reason="Invalid URL")

        if not parsed.scheme or not host:
            return PolicyDecision(allowed=False, reason="Invalid URL")

        for blocked in self.policy.blocked_domains or []:
            if host_matches(host, blocked):
                return PolicyDecision(allowed=False, reason=f"Domain {host} is blocked")

        allowed_domains = self.policy.allowed_domains or []
        if allowed_domains and not any(host_matches(host, d) for d in allowed_domains):
            return PolicyDecision(allowed=False, reason=f"Domain {host} not in allowlist")

        return PolicyDecision(allowed=True)

    def check_rate_limit(self, host: str, now: float | None = None) -> PolicyDecision:
        """
        Enforce the inter-action cooldown for a host.
        Records the action time when the check passes.
        """
        if not self.policy.rate_limit_ms:
            return PolicyDecision(allowed=True)

        now = self.clock() if now is None else now
        usage = self._usage_for(host)

        if usage.last_action_at is not None:
            elapsed_ms = (now - usage.last_action_at) * 1000
            if elapsed_ms < self.policy.rate_limit_ms:
                wait_ms = self.policy.rate_limit_ms - elapsed_ms
                return PolicyDecision(
                    allowed=False,
                    reason=(
                        f"Rate limit: wait {math.ceil(wait_ms / 1000)}s "
                        f"before next action on {host}"
                    ),
                    retry_after_ms=math.ceil(wait_ms),
                )

        usage.last_action_at = now
        return PolicyDecision(allowed=True)

    def check_step_budget(self, host: str) -> PolicyDecision:
        """Enforce the per-host action ceiling, counting admitted actions."""
        limit = self.policy.max_steps_per_domain
        if not limit:
            return PolicyDecision(allowed=True)

        usage = self._usage_for(host)
        if usage.action_count >= limit:
            return PolicyDecision(
                allowed=False,
                reason=f"Max steps ({limit}) reached for {host}",
            )

        usage.action_count += 1
        return PolicyDecision(allowed=True)

    def requires_confirmation(self, url: str, tool_call: BaseToolCall) -> bool:
        """
        Advisory check for actions a human should approve.

        Only active when confirmation patterns are configured. Flags URLs
        containing a configured pattern, and click/type actions whose
        arguments mention a red-flag keyword.
        """
        patterns = self.policy.require_confirmation
        if not patterns:
            return False

        url_lower = url.lower()
        if any(pattern.lower() in url_lower for pattern in patterns):
            return True

        if tool_call.name in ("click", "type"):
            args_str = json.dumps(tool_call.wire_args()).lower()
            if any(keyword in args_str for keyword in RED_FLAG_KEYWORDS):
                return True

        return False

    def check_action(
        self,
        url: str,
        tool_call: BaseToolCall,
        now: float | None = None,
    ) -> PolicyDecision:
        """
        Full safety check before an action is executed.

        Order: navigation target admission, rate limit, step budget, then
        the confirmation flag. Rate limit and budget are keyed by the host
        of the page the agent is currently on, not the navigation target.

        Args:
            url: Current page URL
            tool_call: Proposed action
            now: Override for the guard's clock

        Returns:
            Decision with the first failing reason, if any
        """
        if tool_call.name == "complete":
            return PolicyDecision(allowed=True)

        if tool_call.name == "navigate":
            admission = self.is_url_allowed(tool_call.args.url)
            if not admission.allowed:
                return admission

        host = extract_host(url)

        rate = self.check_rate_limit(host, now)
        if not rate.allowed:
            return rate

        budget = self.check_step_budget(host)
        if not budget.allowed:
            return budget

        return PolicyDecision(
            allowed=True,
            needs_confirmation=self.requires_confirmation(url, tool_call),
        )

    def enforce(self, url: str, tool_call: BaseToolCall, now: float | None = None) -> PolicyDecision:
        """
        Same as ``check_action`` but raises on denial.

        Raises:
            PolicyViolation: If the action is not allowed
        """
        decision = self.check_action(url, tool_call, now)
        if not decision.allowed:
            raise PolicyViolation(decision.reason or "Action blocked by policy")
        return decision

    def reset(self) -> None:
        """Clear all per-host counters (between runs)."""
        self.usage.clear()

    def scope_declaration(self) -> dict:
        """Summary of the policy in force, for status endpoints."""
        return {
            "allowed_domains": self.policy.allowed_domains or [],
            "blocked_domains": self.policy.blocked_domains or [],
            "require_confirmation": self.policy.require_confirmation,
            "max_steps_per_domain": self.policy.max_steps_per_domain,
            "rate_limit_ms": self.policy.rate_limit_ms,
            "respect_robots_txt": self.policy.respect_robots_txt,
            "red_flag_keywords": RED_FLAG_KEYWORDS,
        }
