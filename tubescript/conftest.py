# tubescript/conftest.py
import os
import sys
from pathlib import Path

import pytest

# Repo root on PYTHONPATH so `tubescript.*` imports resolve without an install
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Must be set before tubescript.core.config builds Settings
os.environ.setdefault("ENV", "test")
os.environ.setdefault("SKIP_ENV_VALIDATION", "1")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes")
os.environ.pop("STRIPE_SECRET_KEY", None)
os.environ.pop("RATE_LIMIT_ENABLED", None)


@pytest.fixture(scope="session")
def db_url():
    """In-memory SQLite unless TEST_DATABASE_URL points elsewhere."""
    return os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="session", autouse=True)
def create_tables(db_url):
    """Create all database tables once per test session."""
    from tubescript.core.database import create_all_tables, init_engine

    init_engine(db_url)
    create_all_tables()
    yield


@pytest.fixture(scope="function", autouse=True)
def reset_db(create_tables):
    """Drop and recreate tables so each test starts from an empty store."""
    from tubescript.core.database import reset_database

    reset_database()
    yield


@pytest.fixture
def fake_provider():
    from tubescript.tests.mocks import FakeProvider

    return FakeProvider(responses=["HOOK: open strong\nBODY: the middle\nOUTRO: bye"])


@pytest.fixture
def make_client(fake_provider):
    """
    Build a TestClient around a fresh app.

    Services default to the fake completion provider; any service accepted
    by configure_services can be overridden per test.
    """
    from fastapi.testclient import TestClient

    from tubescript.core.config import Settings
    from tubescript.main import create_app

    def _make(settings_obj=None, **services):
        services.setdefault("provider", fake_provider)
        app = create_app(settings_obj or Settings(), **services)
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
