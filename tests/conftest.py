"""
Shared pytest fixtures for the restaurant dashboard tests.

These fixtures provide consistent test data and fresh state for every test.
All fixture timestamps are naive and the reference time is NOW
(Saturday 2024-06-15 12:00), so results never depend on the wall clock.
"""

import pytest
from datetime import datetime
from pathlib import Path

from dashboard.services import (
    Clients,
    CustomerClient,
    LoyaltyClient,
    NotificationClient,
    OrderClient,
    ReservationClient,
)
from restaurant.channels import PushChannel
from restaurant.config import Settings
from restaurant.data_store import DataStore
from restaurant.models import User

NOW = datetime(2024, 6, 15, 12, 0, 0)
RESTAURANT_ID = "demo-restaurant"


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """
    Fresh DataStore instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so tests don't interfere with each other.
    """
    return DataStore(data_dir=data_dir)


@pytest.fixture
def now() -> datetime:
    """Reference time matching the fixture data."""
    return NOW


@pytest.fixture
def clock(now: datetime):
    """Clock frozen at the reference time."""
    return lambda: now


@pytest.fixture
def push_channel() -> PushChannel:
    """Fresh PushChannel that never fails."""
    return PushChannel(fail_rate=0.0)


# =============================================================================
# Identity
# =============================================================================

@pytest.fixture
def user() -> User:
    """Owner of the demo restaurant."""
    return User(uid="owner-1", email="owner@demo-restaurant.com", restaurant_id=RESTAURANT_ID)


@pytest.fixture
def current_user(user: User):
    """Accessor for the signed-in user."""
    return lambda: user


@pytest.fixture
def signed_out():
    """Accessor for nobody signed in."""
    return lambda: None


# =============================================================================
# Clients
# =============================================================================

@pytest.fixture
def order_client(data_store, current_user, clock) -> OrderClient:
    return OrderClient(data_store, current_user, clock)


@pytest.fixture
def reservation_client(data_store, current_user, clock) -> ReservationClient:
    return ReservationClient(data_store, current_user, clock)


@pytest.fixture
def customer_client(data_store, current_user, clock) -> CustomerClient:
    return CustomerClient(data_store, current_user, clock)


@pytest.fixture
def loyalty_client(data_store, current_user, clock) -> LoyaltyClient:
    return LoyaltyClient(data_store, current_user, clock)


@pytest.fixture
def notification_client(data_store, current_user, push_channel, clock) -> NotificationClient:
    return NotificationClient(data_store, current_user, channel=push_channel, clock=clock)


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    """Settings pointing at the fixture data."""
    return Settings(data_dir=data_dir, restaurant_id=RESTAURANT_ID)


@pytest.fixture
def clients(settings, data_store, push_channel) -> Clients:
    """Full client bundle over the fresh store."""
    return Clients(settings, data_store, push_channel)
