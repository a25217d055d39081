"""In-memory implementation of the RentalDataPort.

Used for tests, local simulation and the CLI's offline mode. Enforces the same
write-time constraint a real backend is expected to: a new reservation may not
overlap a non-cancelled reservation for the same car.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from ..domain.exceptions import BookingConflict, InvalidTransition, ReservationNotFound
from ..domain.interval import DateInterval
from ..domain.models import Car, NewReservation, PaymentAttempt, PaymentRecord, Reservation
from ..domain.value_objects import (
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    SessionContext,
)
from ..ports.data_access import RentalDataPort


class InMemoryRentalStore(RentalDataPort):
    """In-memory backend keyed by string ids."""

    def __init__(self) -> None:
        self._cars: dict[str, Car] = {}
        self._reservations: dict[str, Reservation] = {}
        self._payments: list[PaymentRecord] = []
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    # Seeding helpers

    def add_car(self, car: Car) -> Car:
        self._cars[car.id] = car
        return car

    def add_reservation(self, reservation: Reservation) -> Reservation:
        """Insert a reservation as-is, bypassing the overlap constraint."""
        self._reservations[reservation.id] = reservation
        return reservation

    @classmethod
    def from_fixtures(cls, data: dict[str, Any]) -> InMemoryRentalStore:
        """Build a store from a ``{"cars": [...], "reservations": [...]}`` mapping."""
        store = cls()
        for car in data.get("cars") or []:
            store.add_car(
                Car(
                    id=str(car["id"]),
                    brand=car.get("brand", ""),
                    model=car.get("model", ""),
                    daily_price=(
                        Decimal(str(car["daily_price"]))
                        if car.get("daily_price") is not None
                        else None
                    ),
                    has_ac=car.get("has_ac", False),
                    has_gps=car.get("has_gps", False),
                    child_seat_available=car.get("child_seat_available", False),
                    driver_available=car.get("driver_available", False),
                )
            )
        for item in data.get("reservations") or []:
            store.add_reservation(
                Reservation(
                    id=str(item["id"]),
                    user_id=str(item.get("user_id", "")),
                    car_id=str(item["car_id"]),
                    interval=DateInterval.between(str(item["start"]), str(item["end"])),
                    total_price=Decimal(str(item.get("total_price", 0))),
                    status=ReservationStatus(item.get("status", "pending")),
                    payment_status=PaymentStatus(item.get("payment_status", "pending")),
                )
            )
        return store

    @property
    def payments(self) -> list[PaymentRecord]:
        return list(self._payments)

    # RentalDataPort

    async def fetch_reservations_for_car(
        self, context: SessionContext, car_id: str, exclude_cancelled: bool = True
    ) -> list[Reservation]:
        return [
            r
            for r in self._reservations.values()
            if r.car_id == car_id
            and not (exclude_cancelled and r.status == ReservationStatus.CANCELLED)
        ]

    async def fetch_reservation(
        self, context: SessionContext, reservation_id: str
    ) -> Reservation | None:
        return self._reservations.get(reservation_id)

    async def fetch_reservations_for_user(
        self, context: SessionContext, user_id: str
    ) -> list[Reservation]:
        return [r for r in self._reservations.values() if r.user_id == user_id]

    async def fetch_car(self, context: SessionContext, car_id: str) -> Car | None:
        return self._cars.get(car_id)

    async def create_reservation(
        self, context: SessionContext, fields: NewReservation
    ) -> Reservation:
        async with self._lock:
            conflicts = [
                r.id
                for r in self._reservations.values()
                if r.car_id == fields.car_id and r.blocks(fields.interval)
            ]
            if conflicts:
                raise BookingConflict(fields.car_id, conflicts)

            reservation_id = str(next(self._ids))
            while reservation_id in self._reservations:
                reservation_id = str(next(self._ids))

            reservation = Reservation(
                id=reservation_id,
                user_id=fields.user_id,
                car_id=fields.car_id,
                interval=fields.interval,
                total_price=fields.total_price,
                status=fields.status,
                payment_status=fields.payment_status,
                with_driver=fields.with_driver,
                with_child_seat=fields.with_child_seat,
                with_gps=fields.with_gps,
                payment_method=fields.payment_method,
                created_at=datetime.now(UTC),
            )
            self._reservations[reservation_id] = reservation
            return reservation

    async def update_reservation_status(
        self,
        context: SessionContext,
        reservation_id: str,
        status: ReservationStatus,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        expected_status: ReservationStatus | None = None,
    ) -> Reservation:
        async with self._lock:
            current = self._reservations.get(reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            if expected_status is not None and current.status != expected_status:
                raise InvalidTransition(
                    reservation_id, current.status.value, f"set_status:{status.value}"
                )

            update: dict[str, Any] = {"status": status}
            if payment_status is not None:
                update["payment_status"] = payment_status
            if payment_method is not None:
                update["payment_method"] = payment_method
            updated = current.model_copy(update=update)
            self._reservations[reservation_id] = updated
            return updated

    async def record_payment(
        self, context: SessionContext, attempt: PaymentAttempt
    ) -> PaymentRecord:
        record = PaymentRecord(attempt=attempt)
        self._payments.append(record)
        return record
