"""Availability checks for a car over a date range."""

from __future__ import annotations

import logging

from ..domain.exceptions import BookingConflict, UpstreamUnavailable
from ..domain.interval import DateInterval
from ..domain.models import AvailabilityResult
from ..domain.value_objects import SessionContext
from ..ports.data_access import RentalDataPort
from .upstream import call_upstream

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """Detects overlaps between a requested interval and a car's bookings.

    Cancelled reservations never block a car. When the lookup itself fails and
    ``permissive_reads`` is on, the car is reported available with
    ``degraded=True`` so the caller can schedule a reconciliation check.
    """

    def __init__(
        self,
        data: RentalDataPort,
        timeout: float = 10.0,
        permissive_reads: bool = True,
    ):
        """Initialize the checker.

        Args:
            data: Backend port used to list the car's reservations
            timeout: Upper bound for the lookup in seconds
            permissive_reads: Report "available" instead of failing when the
                lookup fails (not found, access denied, timeout)
        """
        self.data = data
        self.timeout = timeout
        self.permissive_reads = permissive_reads

    async def check_availability(
        self, context: SessionContext, car_id: str, interval: DateInterval
    ) -> AvailabilityResult:
        try:
            reservations = await call_upstream(
                self.data.fetch_reservations_for_car(context, car_id, exclude_cancelled=True),
                operation="fetch_reservations_for_car",
                timeout=self.timeout,
            )
        except UpstreamUnavailable as e:
            if not self.permissive_reads:
                raise
            warning = f"Availability lookup for car {car_id} failed, allowing booking: {e.message}"
            logger.warning(warning)
            return AvailabilityResult(
                car_id=car_id,
                interval=interval,
                available=True,
                degraded=True,
                warning=warning,
            )

        conflicts = [r for r in reservations if r.blocks(interval)]
        if conflicts:
            logger.info(
                f"Car {car_id} unavailable for {interval}: "
                f"conflicts with {[r.id for r in conflicts]}"
            )
        return AvailabilityResult(
            car_id=car_id,
            interval=interval,
            available=not conflicts,
            conflicts=conflicts,
        )

    async def ensure_available(
        self, context: SessionContext, car_id: str, interval: DateInterval
    ) -> AvailabilityResult:
        """Like ``check_availability`` but raise ``BookingConflict`` on overlap."""
        result = await self.check_availability(context, car_id, interval)
        if not result.available:
            raise BookingConflict(car_id, result.conflict_ids)
        return result
