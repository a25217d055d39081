"""Tests for the RentalEngine facade."""

from decimal import Decimal

import pytest

from rental_engine.application.dto import BookingRequest
from rental_engine.application.service import RentalEngine
from rental_engine.domain.interval import DateInterval
from rental_engine.domain.value_objects import PaymentMethod, PaymentStatus, ReservationStatus
from rental_engine.infrastructure.simulated_gateway import ScriptedPaymentGateway


@pytest.fixture
def request_two_days():
    return BookingRequest(
        car_id="car-1", interval=DateInterval.between("2025-03-10", "2025-03-11")
    )


class TestRentalEngine:
    """Test cases for RentalEngine."""

    @pytest.mark.asyncio
    async def test_pay_accepts_method_string(self, engine, context, request_two_days):
        """Test storefront method ids are accepted."""
        reservation = await engine.book_car(context, request_two_days)

        result = await engine.pay(context, reservation.id, "cash")

        assert result.success
        assert result.method == PaymentMethod.CASH

    @pytest.mark.asyncio
    async def test_abandon_on_decline_cancels(self, store, mock_clock, context, request_two_days):
        """Test a declined payment can cancel the booking."""
        engine = RentalEngine(store, ScriptedPaymentGateway([False]), mock_clock)
        reservation = await engine.book_car(context, request_two_days)

        result = await engine.pay(context, reservation.id, "cash", abandon_on_decline=True)

        assert not result.success
        assert result.reservation.status == ReservationStatus.CANCELLED
        assert result.reservation.payment_status == PaymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_decline_keeps_pending_by_default(
        self, store, mock_clock, context, request_two_days
    ):
        """Test the booking survives a decline unless asked otherwise."""
        engine = RentalEngine(store, ScriptedPaymentGateway([False]), mock_clock)
        reservation = await engine.book_car(context, request_two_days)

        result = await engine.pay(context, reservation.id, "cash")

        assert result.reservation.status == ReservationStatus.PENDING
        stored = await engine.get_reservation(context, reservation.id)
        assert stored.payment_status == PaymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_quote(self, engine, context):
        """Test quoting through the facade."""
        quote = await engine.quote(
            context, "car-1", DateInterval.between("2025-03-10", "2025-03-12")
        )
        assert quote.total == Decimal("150")

    @pytest.mark.asyncio
    async def test_list_user_reservations(self, engine, context, request_two_days):
        """Test listing the session user's bookings."""
        await engine.book_car(context, request_two_days)

        result = await engine.list_user_reservations(context, "user-1")

        assert len(result) == 1

    def test_payment_methods(self):
        """Test the checkout catalog."""
        methods = RentalEngine.payment_methods()

        assert {m["id"] for m in methods} == {m.value for m in PaymentMethod}
        assert all(m["name"] and m["description"] for m in methods)
