"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from rental_engine.application.service import RentalEngine
from rental_engine.domain.value_objects import SessionContext
from rental_engine.infrastructure.in_memory_store import InMemoryRentalStore
from rental_engine.infrastructure.simulated_gateway import ScriptedPaymentGateway
from rental_engine.ports.clock import ClockPort
from rental_engine.ports.data_access import RentalDataPort
from rental_engine.ports.payment_gateway import PaymentGatewayPort
from tests.builders import CarBuilder

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def context():
    """Session for the default test user."""
    return SessionContext(token="test-token", user_id="user-1")


@pytest.fixture
def mock_data():
    """Create a mock data port for testing."""
    return AsyncMock(spec=RentalDataPort)


@pytest.fixture
def mock_gateway():
    """Create a mock payment gateway."""
    return AsyncMock(spec=PaymentGatewayPort)


@pytest.fixture
def mock_clock():
    """Create a mock clock returning a fixed time."""
    clock = MagicMock(spec=ClockPort)
    clock.now.return_value = FIXED_NOW
    return clock


@pytest.fixture
def store():
    """In-memory backend with one car at 50 per day."""
    store = InMemoryRentalStore()
    store.add_car(CarBuilder().with_id("car-1").with_daily_price(50).build())
    return store


@pytest.fixture
def scripted_gateway():
    """Gateway approving every charge unless scripted otherwise."""
    return ScriptedPaymentGateway()


@pytest.fixture
def engine(store, scripted_gateway, mock_clock):
    """Engine over the in-memory store and scripted gateway."""
    return RentalEngine(store, scripted_gateway, mock_clock)
