"""Tests for the availability checker."""

import asyncio

import pytest

from rental_engine.application.availability import AvailabilityChecker
from rental_engine.domain.exceptions import (
    BookingConflict,
    UpstreamAccessDenied,
    UpstreamNotFound,
    UpstreamUnavailable,
)
from rental_engine.domain.interval import DateInterval
from tests.builders import ReservationBuilder


def interval(start: str, end: str) -> DateInterval:
    return DateInterval.between(start, end)


class TestCheckAvailability:
    """Test cases for check_availability."""

    @pytest.mark.asyncio
    async def test_inclusive_boundary_conflicts(self, mock_data, context):
        """Test a booking starting on another's last day conflicts."""
        existing = ReservationBuilder().with_id("r1").with_dates("2025-03-10", "2025-03-15")
        mock_data.fetch_reservations_for_car.return_value = [existing.build()]
        checker = AvailabilityChecker(mock_data)

        result = await checker.check_availability(
            context, "car-1", interval("2025-03-15", "2025-03-20")
        )

        assert not result.available
        assert result.conflict_ids == ["r1"]
        mock_data.fetch_reservations_for_car.assert_awaited_once_with(
            context, "car-1", exclude_cancelled=True
        )

    @pytest.mark.asyncio
    async def test_next_day_is_available(self, mock_data, context):
        """Test a booking starting the day after is free."""
        existing = ReservationBuilder().with_dates("2025-03-10", "2025-03-15").build()
        mock_data.fetch_reservations_for_car.return_value = [existing]
        checker = AvailabilityChecker(mock_data)

        result = await checker.check_availability(
            context, "car-1", interval("2025-03-16", "2025-03-20")
        )

        assert result.available
        assert result.conflicts == []
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_cancelled_reservations_ignored(self, mock_data, context):
        """Test cancelled bookings never block, even if the port returns them."""
        cancelled = (
            ReservationBuilder().with_dates("2025-03-10", "2025-03-15").cancelled().build()
        )
        mock_data.fetch_reservations_for_car.return_value = [cancelled]
        checker = AvailabilityChecker(mock_data)

        result = await checker.check_availability(
            context, "car-1", interval("2025-03-12", "2025-03-13")
        )

        assert result.available

    @pytest.mark.asyncio
    async def test_completed_reservations_block(self, mock_data, context):
        """Test completed bookings still occupy their dates."""
        completed = (
            ReservationBuilder().with_dates("2025-03-10", "2025-03-15").completed().build()
        )
        mock_data.fetch_reservations_for_car.return_value = [completed]
        checker = AvailabilityChecker(mock_data)

        result = await checker.check_availability(
            context, "car-1", interval("2025-03-12", "2025-03-13")
        )

        assert not result.available

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            UpstreamNotFound("fetch_reservations_for_car"),
            UpstreamAccessDenied("fetch_reservations_for_car"),
            UpstreamUnavailable("boom"),
        ],
    )
    async def test_permissive_read_degrades(self, mock_data, context, error, caplog):
        """Test a failed lookup reports available with a warning."""
        mock_data.fetch_reservations_for_car.side_effect = error
        checker = AvailabilityChecker(mock_data, permissive_reads=True)

        result = await checker.check_availability(
            context, "car-1", interval("2025-03-10", "2025-03-11")
        )

        assert result.available
        assert result.degraded
        assert result.warning
        assert "allowing booking" in caplog.text

    @pytest.mark.asyncio
    async def test_strict_read_raises(self, mock_data, context):
        """Test failures propagate when permissive reads are off."""
        mock_data.fetch_reservations_for_car.side_effect = UpstreamAccessDenied("op")
        checker = AvailabilityChecker(mock_data, permissive_reads=False)

        with pytest.raises(UpstreamAccessDenied):
            await checker.check_availability(
                context, "car-1", interval("2025-03-10", "2025-03-11")
            )

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self, mock_data, context):
        """Test a lookup exceeding the timeout is treated as unavailable upstream."""

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)
            return []

        mock_data.fetch_reservations_for_car.side_effect = slow
        checker = AvailabilityChecker(mock_data, timeout=0.01, permissive_reads=False)

        with pytest.raises(UpstreamUnavailable, match="did not complete"):
            await checker.check_availability(
                context, "car-1", interval("2025-03-10", "2025-03-11")
            )


class TestEnsureAvailable:
    """Test cases for ensure_available."""

    @pytest.mark.asyncio
    async def test_raises_booking_conflict(self, mock_data, context):
        """Test overlaps raise with the conflicting ids."""
        existing = ReservationBuilder().with_id("r9").with_dates("2025-03-10", "2025-03-15")
        mock_data.fetch_reservations_for_car.return_value = [existing.build()]
        checker = AvailabilityChecker(mock_data)

        with pytest.raises(BookingConflict) as exc_info:
            await checker.ensure_available(context, "car-1", interval("2025-03-14", "2025-03-14"))

        assert exc_info.value.conflicting_ids == ["r9"]
