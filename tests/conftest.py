"""
Pytest fixtures for the deposit plugin test suite.

Provides:
- An in-memory SQLite engine per test (StaticPool so the FastAPI TestClient
  thread sees the same database)
- Session factory, deterministic clock, fake host
- A fully wired, started DepositPlugin
- Structured-log capture
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from deposit_api.activator import DepositPlugin
from deposit_kernel.db.engine import create_tables
from deposit_kernel.domain.clock import DeterministicClock
from deposit_kernel.domain.values import CallContext
from deposit_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from deposit_kernel.services.ledger_service import DepositLedgerService

from tests.fakes import FakeHost

TENANT_ID = UUID("11111111-1111-4111-8111-111111111111")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture deposit_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, distributor):
            distributor.record(...)
            logs = captured_logs()
            assert any(r["message"] == "deposit_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("deposit_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def tenant_id() -> UUID:
    return TENANT_ID


@pytest.fixture
def make_context(tenant_id, deterministic_clock):
    def _make(account_id: UUID | None = None, created_by: str = "test") -> CallContext:
        now = deterministic_clock.now()
        return CallContext(
            user_token=uuid4(),
            created_by=created_by,
            tenant_id=tenant_id,
            created_date=now,
            updated_date=now,
            account_id=account_id,
        )

    return _make


@pytest.fixture
def ledger(session_factory, deterministic_clock):
    return DepositLedgerService(session_factory, clock=deterministic_clock)


# =============================================================================
# Host and plugin fixtures
# =============================================================================


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def plugin(host, session_factory, deterministic_clock, tenant_id):
    plugin = DepositPlugin(
        host,
        session_factory,
        clock=deterministic_clock,
        tenant_resolver=lambda request: tenant_id,
    )
    plugin.start(host)
    yield plugin
    plugin.stop()


@pytest.fixture
def account(host):
    return host.add_account()
