"""
Pytest configuration and shared fixtures for test suite.

This module provides:
- Test client fixtures for FastAPI
- Mock cron key fixtures
- Mock environment variables
- In-memory billing store and ledger doubles
"""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

CRON_KEY = "test-cron-key"


@pytest.fixture(scope="session")
def mock_env_vars():
    """Mock environment variables for testing."""
    with patch.dict(os.environ, {
        "SUBSCRIPTION_CRON_API_KEY": CRON_KEY,
        "ALLOWED_ORIGIN": "*",
        "CREDIT_SCHEDULER_ENABLED": "false",
        "SUPABASE_URL": "",
        "SUPABASE_SERVICE_KEY": "",
    }):
        yield


@pytest.fixture
def cron_key():
    """Return test cron key."""
    return CRON_KEY


@pytest.fixture
def cron_headers(cron_key):
    """Return headers with the cron bearer key."""
    return {"Authorization": f"Bearer {cron_key}"}


@pytest_asyncio.fixture
async def client(mock_env_vars):
    """
    Create async test client for FastAPI app.

    Uses httpx AsyncClient with ASGITransport to test the FastAPI app
    without needing to run a server. Startup events are not run, so no
    Supabase client or scheduler exists unless a test installs one.
    """
    from app.config import get_settings
    get_settings.cache_clear()

    # Import app after env vars are mocked
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def now():
    """Fixed run time: 18 October 2026, UTC."""
    return datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeBillingStore:
    """In-memory billing store holding raw rows, like the Supabase store."""

    def __init__(self, subscribers=None, plans=None):
        self.subscribers = [dict(s) for s in (subscribers or [])]
        self.plans = [dict(p) for p in (plans or [])]
        self.calls = []
        self.fail_update_for = set()

    def list_active_subscribers(self):
        self.calls.append("list_active_subscribers")
        return [dict(s) for s in self.subscribers]

    def list_plans(self):
        self.calls.append("list_plans")
        return [dict(p) for p in self.plans]

    def update_last_credit(self, user_id, when):
        self.calls.append(("update_last_credit", user_id))
        if user_id in self.fail_update_for:
            raise RuntimeError(f"update failed for {user_id}")
        for subscriber in self.subscribers:
            if subscriber.get("user_id") == user_id:
                subscriber["last_payment_date"] = when


class FakeCoinLedger:
    """In-memory ledger; refuse/explode per user id to exercise failures."""

    def __init__(self):
        self.balances = {}
        self.calls = []
        self.refuse = set()
        self.explode = set()

    def add_subscription_coins(self, user_id, plan_name, coins):
        self.calls.append((user_id, plan_name, coins))
        if user_id in self.explode:
            raise ConnectionError("ledger unreachable")
        if user_id in self.refuse:
            return False
        self.balances[user_id] = self.balances.get(user_id, 0) + coins
        return True


@pytest.fixture
def ledger():
    return FakeCoinLedger()


@pytest.fixture
def make_store():
    """Factory for FakeBillingStore with the standard plan table."""
    def _make(subscribers, plans=None):
        if plans is None:
            plans = [
                {"name": "Pro", "monthly_coins": 500},
                {"name": "Basic", "monthly_coins": 100},
                {"name": "Free", "monthly_coins": 0},
            ]
        return FakeBillingStore(subscribers=subscribers, plans=plans)
    return _make


# Mark all tests as asyncio
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )
