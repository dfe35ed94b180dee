"""
Root test configuration and fixtures.

Provides database fixtures plus dashboard/config factories shared by the
service, repository and route tests.
"""

import os
import uuid
from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from pubdash.models.dashboard import Dashboard
from pubdash.models.public_dashboard import PublicDashboard

# Set test environment
os.environ.setdefault("ENV", "test")

ORG_ID = 1
OTHER_ORG_ID = 2
USER_ID = "test-user-001"
DASHBOARD_UID = "dash-public-01"


def _get_test_database_url() -> str:
    """Get database URL for tests."""
    database_url = os.getenv("DATABASE_URL")

    if database_url:
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)
        return database_url

    # Default to SQLite for unit tests if no PostgreSQL available
    return "sqlite:///:memory:"


def _is_postgres() -> bool:
    """Check if using PostgreSQL."""
    return _get_test_database_url().startswith("postgresql")


@pytest.fixture(scope="session")
def db_engine():
    """
    Create database engine for tests.

    Uses PostgreSQL if DATABASE_URL is set, otherwise SQLite in-memory.
    """
    database_url = _get_test_database_url()

    if _is_postgres():
        try:
            engine = create_engine(database_url, pool_pre_ping=True)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            pytest.skip(
                f"PostgreSQL not available. Set DATABASE_URL or use SQLite. Error: {e}"
            )
    else:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    from pubdash.db_base import Base
    from pubdash.models import dashboard, public_dashboard  # noqa: F401

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create database session with transaction rollback for test isolation.

    Each test gets a fresh session that rolls back after the test completes.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    session = SessionLocal()

    if _is_postgres():
        nested = connection.begin_nested()

        @event.listens_for(session, "after_transaction_end")
        def restart_savepoint(session, transaction):
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = connection.begin_nested()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# =============================================================================
# Factories
# =============================================================================


def make_dashboard_data(time=None, panels=None):
    """Dashboard document with panel 7 querying ds-A and ds-B by default."""
    if panels is None:
        panels = [
            {
                "id": 7,
                "type": "timeseries",
                "datasource": {"uid": "ds-A", "type": "prometheus"},
                "targets": [
                    {"refId": "A", "expr": "up", "datasource": {"uid": "ds-A", "type": "prometheus"}},
                    {"refId": "B", "rawSql": "SELECT 1", "datasource": {"uid": "ds-B", "type": "postgres"}},
                ],
            },
            {
                "id": 8,
                "type": "stat",
                "datasource": {"uid": "ds-C", "type": "loki"},
                "targets": [{"refId": "A", "expr": "{job=\"api\"}"}],
            },
        ]
    return {
        "title": "Public Ops",
        "time": time if time is not None else {"from": "now-24h", "to": "now"},
        "panels": panels,
    }


@pytest.fixture
def make_dashboard(db_session):
    """Factory fixture that stores a Dashboard row."""
    def _make(uid=DASHBOARD_UID, org_id=ORG_ID, data=None, title="Public Ops"):
        dashboard = Dashboard(
            id=str(uuid.uuid4()),
            uid=uid,
            org_id=org_id,
            title=title,
            data=data if data is not None else make_dashboard_data(),
        )
        db_session.add(dashboard)
        db_session.flush()
        return dashboard
    return _make


@pytest.fixture
def make_public_config(db_session):
    """Factory fixture that stores a PublicDashboard row directly."""
    def _make(
        dashboard_uid=DASHBOARD_UID,
        org_id=ORG_ID,
        is_enabled=True,
        time_settings=None,
        access_token=None,
    ):
        config = PublicDashboard(
            uid=uuid.uuid4().hex[:14],
            dashboard_uid=dashboard_uid,
            org_id=org_id,
            is_enabled=is_enabled,
            time_settings=time_settings,
            access_token=access_token or uuid.uuid4().hex,
            created_by=USER_ID,
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(config)
        db_session.flush()
        return config
    return _make


class FakeDatasourceRegistry:
    """In-memory datasource registry: org_id -> default datasource uid."""

    def __init__(self, defaults=None):
        self.defaults = defaults or {}

    def get_default_uid(self, org_id):
        return self.defaults.get(org_id)


class RecordingQueryExecutor:
    """Query executor that enforces identity scope and records what it ran."""

    def __init__(self):
        self.calls = []

    def execute(self, request, identity):
        from pubdash.services.scoped_identity import ACTION_DATASOURCES_QUERY

        self.calls.append((request, identity))
        results = []
        for query in request.queries:
            allowed = identity.has_datasource_access(
                ACTION_DATASOURCES_QUERY, query.datasource_uid, identity.org_id
            )
            if not allowed:
                raise PermissionError(f"datasource {query.datasource_uid} not in scope")
            results.append({"refId": query.ref_id, "datasource": query.datasource_uid})
        return results


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "security: mark test as security-focused")
