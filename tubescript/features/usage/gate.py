"""
Usage gate: free-tier quota enforcement.

- Authenticated identities are counted in the users table (canonical).
- Anonymous identities are counted by the client under ANONYMOUS_USAGE_KEY;
  the gate trusts the reported count and returns the next value for the
  client to store. The two counters are never reconciled.
- Paid identities are unlimited.

check_and_reserve() and commit() are separate calls around the provider
work, so two racing requests from one identity can both pass the check and
overshoot the quota by one.
"""

from typing import Optional

from tubescript.core.errors import QuotaExceededError
from tubescript.core.logging import log_event
from tubescript.features.users.service import UserStore
from tubescript.models.user import Identity, SubscriptionTier, UsageRecord

FREE_TIER_LIMIT = 3
ANONYMOUS_USAGE_KEY = "anonymousScriptCount"


class UsageGate:
    def __init__(self, store: UserStore, limit: int = FREE_TIER_LIMIT):
        self.store = store
        self.limit = limit

    def get_usage(self, identity: Identity) -> UsageRecord:
        if identity.anonymous:
            return UsageRecord(
                identity=identity.key,
                scripts_generated=identity.anonymous_count,
                subscription_tier=SubscriptionTier.FREE,
                anonymous=True,
            )
        return self.store.get_or_create(identity.user_id, email=identity.email)

    def check_and_reserve(self, identity: Identity) -> bool:
        """True when the identity may start another generation."""
        return not self.get_usage(identity).is_blocked(self.limit)

    def ensure_allowed(self, identity: Identity) -> UsageRecord:
        """
        Raises:
            QuotaExceededError: free-tier identity at or over the limit
        """
        record = self.get_usage(identity)
        if record.is_blocked(self.limit):
            log_event(
                "info",
                "usage.quota_blocked",
                user_id=identity.user_id,
                event_type="quota",
                error_code=QuotaExceededError.code,
                extra={"scripts_generated": record.scripts_generated, "limit": self.limit},
            )
            if identity.anonymous:
                raise QuotaExceededError(
                    "Please create an account or log in to continue.",
                    action="sign_in",
                )
            raise QuotaExceededError(
                "Please upgrade to a paid plan for unlimited script generations.",
                action="upgrade",
            )
        return record

    def commit(self, identity: Identity) -> UsageRecord:
        """Count one successful generation and return the updated record."""
        if identity.anonymous:
            record = UsageRecord(
                identity=identity.key,
                scripts_generated=identity.anonymous_count + 1,
                subscription_tier=SubscriptionTier.FREE,
                anonymous=True,
            )
        else:
            record = self.store.increment_scripts(identity.user_id)
        log_event(
            "info",
            "usage.committed",
            user_id=identity.user_id,
            event_type="usage",
            extra={"scripts_generated": record.scripts_generated, "anonymous": identity.anonymous},
        )
        return record

    def summary(self, identity: Identity) -> dict:
        record = self.get_usage(identity)
        remaining: Optional[int] = record.remaining(self.limit)
        return {
            "tier": record.subscription_tier.value,
            "scripts_generated": record.scripts_generated,
            "limit": self.limit,
            "remaining": remaining,
            "anonymous": record.anonymous,
            "label": record.label(self.limit),
        }
