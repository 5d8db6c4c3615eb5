"""Pytest configuration and fixtures for identity-resolver tests."""

import pytest
from typing import Any, Dict, List

# Add the project root to the Python path
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import resolver.metrics as metrics_mod
from resolver.config import Config
from resolver.records import ActivitySignal, UserRecord


@pytest.fixture(autouse=True)
def noop_metrics():
    """Keep every test off the network by pinning the metrics client to a no-op."""
    old_client = metrics_mod._client
    metrics_mod._client = metrics_mod._NoOpStatsd()
    yield
    metrics_mod._client = old_client


@pytest.fixture
def store_config() -> Config:
    """A configured store with a small page size so paging is exercised."""
    return Config(
        supabase_url="https://test-project.supabase.co/",
        supabase_service_role_key="test-service-role-key",
        supabase_schema="public",
        users_table="user_data",
        activity_table="summary_generation",
        store_timeout=5,
        store_page_size=2,
    )


@pytest.fixture
def unconfigured_config() -> Config:
    return Config(supabase_url="", supabase_service_role_key="")


@pytest.fixture
def sample_user_rows() -> List[Dict[str, Any]]:
    """User rows as the store returns them, in store order."""
    return [
        {
            "user_id": "A",
            "is_anonymous": True,
            "total_paid_generation": 0,
            "total_summary_generation": 2,
            "last_used": "2024-05-01T00:00:00Z",
            "user_name": "None",
            "email": None,
        },
        {
            "user_id": "B",
            "is_anonymous": False,
            "total_paid_generation": 3,
            "total_summary_generation": 7,
            "last_used": "2024-04-01T00:00:00Z",
            "user_name": "bob",
            "email": None,
            "city": "Lisbon",
        },
        {
            "user_id": "C",
            "is_anonymous": "false",
            "total_paid_generation": 3,
            "total_summary_generation": 4,
            "last_used": "2024-06-01T00:00:00Z",
            "user_name": None,
            "email": "carol@example.com",
        },
        {
            "user_id": "D",
            "is_anonymous": False,
            "total_paid_generation": 1,
            "total_summary_generation": 1,
            "last_used": None,
        },
    ]


@pytest.fixture
def sample_signal_rows() -> List[Dict[str, Any]]:
    """Activity rows; D has none, so D is never grouped."""
    return [
        {"user_id": "A", "ip_address": "1.1.1.1", "device_fingerprint": "fp1"},
        {"user_id": "B", "ip_address": "1.1.1.1", "device_fingerprint": "fp1"},
        {"user_id": "C", "ip_address": "1.1.1.1", "device_fingerprint": "fp1"},
        {"user_id": "A", "ip_address": "9.9.9.9", "device_fingerprint": "fp9"},
    ]


@pytest.fixture
def sample_users(sample_user_rows) -> List[UserRecord]:
    return [UserRecord.from_row(row) for row in sample_user_rows]


@pytest.fixture
def sample_signals(sample_signal_rows) -> List[ActivitySignal]:
    return [ActivitySignal.from_row(row) for row in sample_signal_rows]


class FakeStore:
    """In-memory stand-in for the store client module."""

    def __init__(self, users=None, signals=None, users_error=None, signals_error=None):
        self.users = list(users or [])
        self.signals = list(signals or [])
        self.users_error = users_error
        self.signals_error = signals_error
        self.calls: List[str] = []

    def fetch_users(self):
        self.calls.append("users")
        if self.users_error:
            raise self.users_error
        return list(self.users)

    def fetch_activity_signals(self):
        self.calls.append("signals")
        if self.signals_error:
            raise self.signals_error
        return list(self.signals)


class FakeAsyncStore:
    """Async counterpart of ``FakeStore``, shaped like ``AsyncStoreClient``."""

    def __init__(self, users=None, signals=None, users_error=None, signals_error=None):
        self._sync = FakeStore(users, signals, users_error, signals_error)

    async def fetch_users(self):
        return self._sync.fetch_users()

    async def fetch_activity_signals(self):
        return self._sync.fetch_activity_signals()


@pytest.fixture
def fake_store(sample_users, sample_signals) -> FakeStore:
    return FakeStore(sample_users, sample_signals)


@pytest.fixture
def fake_async_store(sample_users, sample_signals) -> FakeAsyncStore:
    return FakeAsyncStore(sample_users, sample_signals)
