from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class SubscriptionTier(str, Enum):
    FREE = "free"
    PAID = "paid"


class Identity(BaseModel):
    """Who is asking for a generation.

    Authenticated identities are canonical in the users table. Anonymous
    identities carry the count the client reported from its own storage.
    """
    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    anonymous_count: int = 0
    email: Optional[str] = None

    @property
    def anonymous(self) -> bool:
        return self.user_id is None

    @property
    def key(self) -> str:
        return self.user_id or "anonymous"

    @classmethod
    def for_user(cls, user_id: str, email: Optional[str] = None) -> "Identity":
        return cls(user_id=user_id, email=email)

    @classmethod
    def for_anonymous(cls, count: int) -> "Identity":
        return cls(user_id=None, anonymous_count=max(0, count))


class UsageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: str
    scripts_generated: int = 0
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    anonymous: bool = False

    def is_blocked(self, limit: int) -> bool:
        return self.subscription_tier == SubscriptionTier.FREE and self.scripts_generated >= limit

    def remaining(self, limit: int) -> Optional[int]:
        """Generations left before the free quota is hit; None when unlimited."""
        if self.subscription_tier == SubscriptionTier.PAID:
            return None
        return max(0, limit - self.scripts_generated)

    def label(self, limit: int) -> str:
        if self.subscription_tier == SubscriptionTier.PAID:
            return "Pro Plan"
        return f"Free Tier ({self.scripts_generated}/{limit})"


class SubscriptionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: SubscriptionTier = SubscriptionTier.FREE
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    status: Optional[str] = None
