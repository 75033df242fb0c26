"""
Database engine, sessions and table definitions.

Two tables back the service:
- app_users:      one row per authenticated identity (usage counter + subscription)
- billing_events: one row per Stripe webhook event id (idempotency ledger)

SQLite (the default, and the test database) shares a single connection so
in-memory databases survive across sessions; anything else gets a QueuePool.
"""
from contextlib import contextmanager
import logging
import os
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    false,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.sql import func

from tubescript.core.config import settings

logger = logging.getLogger("tubescript")

metadata = MetaData()

POOL_SIZE = 5
MAX_OVERFLOW = 10
POOL_TIMEOUT = 30
POOL_RECYCLE = 1800

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


users = Table(
    "app_users",
    metadata,
    Column("user_id", String(128), primary_key=True),
    Column("email", String(320), nullable=True),
    Column("display_name", Text, nullable=True),
    Column("subscription_tier", String(20), nullable=False, server_default="free"),
    Column("scripts_generated", Integer, nullable=False, server_default="0"),
    Column("stripe_customer_id", String(100), nullable=True, unique=True),
    Column("stripe_subscription_id", String(100), nullable=True),
    Column("stripe_subscription_status", String(50), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index("idx_app_users_tier", "subscription_tier"),
)

billing_events = Table(
    "billing_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("stripe_event_id", String(100), nullable=False),
    Column("event_type", String(100), nullable=False, index=True),
    Column("received_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column("payload_hash", String(64), nullable=False),  # sha256 of the raw body
    Column("processed", Boolean, nullable=False, server_default=false()),
    Column("processed_at", DateTime(timezone=True), nullable=True),
    Column("error", Text, nullable=True),
    UniqueConstraint("stripe_event_id", name="uq_billing_events_stripe_id"),
)


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL wins over DATABASE_URL so test runs never touch real data."""
    return os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "poolclass": QueuePool,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
        "pool_recycle": POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def init_engine(database_url: Optional[str] = None) -> Engine:
    """(Re)create the engine and session factory for the given or configured URL."""
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured. Set DATABASE_URL in environment or .env file.")

    _engine = create_engine(url, echo=False, **_engine_options(url))
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    logger.debug(f"Database engine initialized ({url.split(':', 1)[0]})")
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Transactional session scope: commit on clean exit, roll back on error.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    """Create missing tables; existing ones are left alone."""
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    metadata.drop_all(bind=get_engine())


def reset_database() -> None:
    """Drop and recreate every table. Tests only."""
    drop_all_tables()
    create_all_tables()

