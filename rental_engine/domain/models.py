"""Domain models for cars, reservations and payments."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import PaymentDeclined
from .interval import DateInterval, overlaps
from .value_objects import (
    BookingOptions,
    PaymentMethod,
    PaymentOutcome,
    PaymentStatus,
    ReservationStatus,
)

# Payment statuses each reservation status may be paired with.
ALLOWED_PAYMENT_STATUSES: dict[ReservationStatus, frozenset[PaymentStatus]] = {
    ReservationStatus.PENDING: frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED}),
    ReservationStatus.CONFIRMED: frozenset({PaymentStatus.PAID}),
    ReservationStatus.COMPLETED: frozenset({PaymentStatus.PAID}),
    ReservationStatus.CANCELLED: frozenset(PaymentStatus),
}


class Car(BaseModel):
    """Catalog entry as seen by the engine. Read-only here."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    brand: str = ""
    model: str = ""
    daily_price: Decimal | None = Field(default=None, description="Price per rental day")
    has_ac: bool = False
    has_gps: bool = False
    child_seat_available: bool = False
    driver_available: bool = False

    @property
    def display_name(self) -> str:
        name = f"{self.brand} {self.model}".strip()
        return name or f"Car {self.id}"


class Reservation(BaseModel):
    """Booking record linking a user, a car, a date range and its payment state.

    Instances are snapshots fetched from the persistence boundary. Changes are
    expressed as new instances and written back explicitly.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    user_id: str
    car_id: str
    interval: DateInterval
    total_price: Decimal = Field(..., ge=0)
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    with_driver: bool = False
    with_child_seat: bool = False
    with_gps: bool = False
    payment_method: PaymentMethod | None = None
    created_at: datetime | None = None

    @property
    def options(self) -> BookingOptions:
        return BookingOptions(
            with_driver=self.with_driver,
            with_child_seat=self.with_child_seat,
            with_gps=self.with_gps,
        )

    def is_consistent(self) -> bool:
        """Check the status/payment status pairing."""
        return self.payment_status in ALLOWED_PAYMENT_STATUSES[self.status]

    def blocks(self, interval: DateInterval) -> bool:
        """Whether this reservation prevents booking the car for ``interval``."""
        return self.status.blocks_car() and overlaps(self.interval, interval)


class NewReservation(BaseModel):
    """Fields for a reservation that has not been persisted yet."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    car_id: str = Field(..., min_length=1)
    interval: DateInterval
    total_price: Decimal = Field(..., ge=0)
    with_driver: bool = False
    with_child_seat: bool = False
    with_gps: bool = False
    payment_method: PaymentMethod | None = None

    @property
    def status(self) -> ReservationStatus:
        return ReservationStatus.PENDING

    @property
    def payment_status(self) -> PaymentStatus:
        return PaymentStatus.PENDING


class PaymentAttempt(BaseModel):
    """One charge attempt against the gateway. Not retained by the engine."""

    model_config = ConfigDict(frozen=True)

    reservation_id: str
    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod
    outcome: PaymentOutcome
    transaction_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    failure_reason: str | None = None
    idempotency_key: str | None = None
    details: dict[str, str] = Field(default_factory=dict, description="Redacted details")

    @property
    def succeeded(self) -> bool:
        return self.outcome == PaymentOutcome.SUCCESS


class PaymentRecord(BaseModel):
    """A payment attempt as stored by the persistence boundary."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    attempt: PaymentAttempt


class GatewayChargeResult(BaseModel):
    """What the payment gateway reports for a charge."""

    model_config = ConfigDict(frozen=True)

    success: bool
    transaction_id: str | None = None
    reason: str | None = None

    @field_validator("transaction_id")
    @classmethod
    def validate_transaction_id(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class PaymentResult(BaseModel):
    """Outcome of a payment attempt returned to callers.

    A declined charge is reported here with ``success=False`` and the
    ``PaymentDeclined`` error attached rather than raised.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    reservation: Reservation
    transaction_id: str
    amount: Decimal
    method: PaymentMethod
    timestamp: datetime
    error: PaymentDeclined | None = None
    outcome_unknown: bool = False

    def summary(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "reservation_id": self.reservation.id,
            "transaction_id": self.transaction_id,
            "amount": str(self.amount),
            "method": self.method.value,
            "status": self.reservation.status.value,
            "payment_status": self.reservation.payment_status.value,
            "date": self.timestamp.isoformat(),
        }
        if self.error is not None:
            data["error"] = self.error.message
        return data


class AvailabilityResult(BaseModel):
    """Answer to "can this car be booked for these dates"."""

    model_config = ConfigDict(frozen=True)

    car_id: str
    interval: DateInterval
    available: bool
    conflicts: list[Reservation] = Field(default_factory=list)
    degraded: bool = Field(
        default=False, description="True when the lookup failed and the answer is permissive"
    )
    warning: str | None = None

    @property
    def conflict_ids(self) -> list[str]:
        return [r.id for r in self.conflicts]
