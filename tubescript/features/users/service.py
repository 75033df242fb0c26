"""
User record store.

One row per authenticated identity in app_users, holding the usage counter
and subscription state:
- get_or_create(user_id) creates {tier: free, scripts_generated: 0} on first sight
- increment_scripts(user_id) bumps the counter in a single UPDATE
- subscription fields are written only by the billing service
"""

from datetime import datetime, timezone
from typing import Callable, ContextManager, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tubescript.core.database import get_db_session, users as app_users
from tubescript.models.user import SubscriptionState, SubscriptionTier, UsageRecord

SessionScope = Callable[[], ContextManager[Session]]


def _usage_from_row(row) -> UsageRecord:
    return UsageRecord(
        identity=row.user_id,
        scripts_generated=row.scripts_generated,
        subscription_tier=SubscriptionTier(row.subscription_tier),
        anonymous=False,
    )


def _subscription_from_row(row) -> SubscriptionState:
    return SubscriptionState(
        tier=SubscriptionTier(row.subscription_tier),
        stripe_customer_id=row.stripe_customer_id,
        stripe_subscription_id=row.stripe_subscription_id,
        status=row.stripe_subscription_status,
    )


class UserStore:
    def __init__(self, session_scope: SessionScope = get_db_session):
        self.session_scope = session_scope

    def _row(self, session: Session, user_id: str):
        return session.execute(select(app_users).where(app_users.c.user_id == user_id)).first()

    def get_usage(self, user_id: str) -> Optional[UsageRecord]:
        with self.session_scope() as session:
            row = self._row(session, user_id)
            return _usage_from_row(row) if row else None

    def get_or_create(self, user_id: str, email: Optional[str] = None) -> UsageRecord:
        with self.session_scope() as session:
            row = self._row(session, user_id)
            if row:
                return _usage_from_row(row)

        now = datetime.now(timezone.utc)
        try:
            with self.session_scope() as session:
                session.execute(
                    insert(app_users).values(
                        user_id=user_id,
                        email=email,
                        subscription_tier=SubscriptionTier.FREE.value,
                        scripts_generated=0,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError:
            # Created concurrently by another request; fall through to read it
            pass
        return self.get_usage(user_id)

    def increment_scripts(self, user_id: str) -> UsageRecord:
        with self.session_scope() as session:
            session.execute(
                update(app_users)
                .where(app_users.c.user_id == user_id)
                .values(
                    scripts_generated=app_users.c.scripts_generated + 1,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            row = self._row(session, user_id)
        if row is None:
            raise LookupError(f"User {user_id} not found")
        return _usage_from_row(row)

    def get_subscription(self, user_id: str) -> Optional[SubscriptionState]:
        with self.session_scope() as session:
            row = self._row(session, user_id)
            return _subscription_from_row(row) if row else None

    def get_email(self, user_id: str) -> Optional[str]:
        with self.session_scope() as session:
            row = self._row(session, user_id)
            return row.email if row else None

    def find_user_by_customer(self, stripe_customer_id: str) -> Optional[str]:
        with self.session_scope() as session:
            row = session.execute(
                select(app_users.c.user_id).where(app_users.c.stripe_customer_id == stripe_customer_id).limit(1)
            ).first()
            return row[0] if row else None

    def set_customer_id(self, user_id: str, stripe_customer_id: str) -> None:
        with self.session_scope() as session:
            session.execute(
                update(app_users)
                .where(app_users.c.user_id == user_id)
                .values(stripe_customer_id=stripe_customer_id, updated_at=datetime.now(timezone.utc))
            )

    def update_subscription(
        self,
        user_id: str,
        *,
        tier: Optional[SubscriptionTier] = None,
        stripe_subscription_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> bool:
        """Apply the given subscription fields; returns False if the user is unknown."""
        values = {"updated_at": datetime.now(timezone.utc)}
        if tier is not None:
            values["subscription_tier"] = tier.value
        if stripe_subscription_id is not None:
            values["stripe_subscription_id"] = stripe_subscription_id
        if status is not None:
            values["stripe_subscription_status"] = status
        with self.session_scope() as session:
            result = session.execute(
                update(app_users).where(app_users.c.user_id == user_id).values(**values)
            )
            return result.rowcount > 0
