"""Data-access port for reservations, cars and payment records.

The backing store is an external content service. Implementations translate
its schema into the domain model at the edge and report transport problems as
``UpstreamUnavailable`` (or its not-found / access-denied subclasses).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.models import Car, NewReservation, PaymentAttempt, PaymentRecord, Reservation
from ..domain.value_objects import PaymentMethod, PaymentStatus, ReservationStatus, SessionContext


class RentalDataPort(ABC):
    """Abstract interface to the rental backend.

    Every call carries the caller's ``SessionContext``; implementations hold no
    credentials of their own.
    """

    @abstractmethod
    async def fetch_reservations_for_car(
        self, context: SessionContext, car_id: str, exclude_cancelled: bool = True
    ) -> list[Reservation]:
        """List reservations for a car, optionally without cancelled ones."""
        ...

    @abstractmethod
    async def fetch_reservation(
        self, context: SessionContext, reservation_id: str
    ) -> Reservation | None:
        """Get one reservation, or None if it does not exist."""
        ...

    @abstractmethod
    async def fetch_reservations_for_user(
        self, context: SessionContext, user_id: str
    ) -> list[Reservation]:
        """List all reservations belonging to a user."""
        ...

    @abstractmethod
    async def fetch_car(self, context: SessionContext, car_id: str) -> Car | None:
        """Get a car from the catalog, or None if it does not exist."""
        ...

    @abstractmethod
    async def create_reservation(
        self, context: SessionContext, fields: NewReservation
    ) -> Reservation:
        """Persist a new pending reservation and return it with id and timestamps.

        Raises:
            BookingConflict: If the store rejects the write because the interval
                overlaps a non-cancelled reservation for the same car.
        """
        ...

    @abstractmethod
    async def update_reservation_status(
        self,
        context: SessionContext,
        reservation_id: str,
        status: ReservationStatus,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        expected_status: ReservationStatus | None = None,
    ) -> Reservation:
        """Write a new status (and optionally payment status/method).

        When ``expected_status`` is given the write only happens if the stored
        status still equals it.

        Raises:
            ReservationNotFound: The reservation does not exist
            InvalidTransition: The stored status is no longer ``expected_status``
        """
        ...

    @abstractmethod
    async def record_payment(
        self, context: SessionContext, attempt: PaymentAttempt
    ) -> PaymentRecord:
        """Store a payment attempt, successful or not."""
        ...
