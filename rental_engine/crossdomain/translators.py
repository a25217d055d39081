"""
Data translators for the content-management backend.

Translates between the CMS's REST payloads (Strapi-style ``{"id", "attributes"}``
envelopes, French status labels, camelCase fields) and domain models. Nothing
outside this module looks at raw backend shapes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from ..domain.interval import DateInterval
from ..domain.models import Car, NewReservation, PaymentAttempt, PaymentRecord, Reservation
from ..domain.value_objects import (
    PaymentMethod,
    PaymentOutcome,
    PaymentStatus,
    ReservationStatus,
)

logger = logging.getLogger(__name__)

STATUS_FROM_CMS: dict[str, ReservationStatus] = {
    "en attente": ReservationStatus.PENDING,
    "pending": ReservationStatus.PENDING,
    "confirmée": ReservationStatus.CONFIRMED,
    "confirmed": ReservationStatus.CONFIRMED,
    "annulée": ReservationStatus.CANCELLED,
    "cancelled": ReservationStatus.CANCELLED,
    "terminée": ReservationStatus.COMPLETED,
    "completed": ReservationStatus.COMPLETED,
}

STATUS_TO_CMS: dict[ReservationStatus, str] = {
    ReservationStatus.PENDING: "en attente",
    ReservationStatus.CONFIRMED: "confirmée",
    ReservationStatus.CANCELLED: "annulée",
    ReservationStatus.COMPLETED: "terminée",
}


class Translator(ABC):
    """Base translator class."""

    @abstractmethod
    def translate(self, source: Any) -> Any:
        """Translate from external to internal format."""
        pass

    @abstractmethod
    def reverse_translate(self, source: Any) -> Any:
        """Translate from internal to external format."""
        pass


def unwrap(item: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """Split a CMS entry into its id and attribute dict.

    Accepts both ``{"id": 1, "attributes": {...}}`` and flat ``{"id": 1, ...}``.
    """
    if item is None:
        return None, {}
    raw_id = item.get("id")
    attributes = item.get("attributes")
    if attributes is None:
        attributes = {k: v for k, v in item.items() if k != "id"}
    return (str(raw_id) if raw_id is not None else None), attributes


def relation_id(value: Any) -> str:
    """Extract the related entry's id from a relation field.

    Handles ``{"data": {...}}``, ``{"data": [{...}]}``, a nested object, or a bare id.
    """
    if value is None:
        return ""
    if isinstance(value, (int, str)):
        return str(value)
    if isinstance(value, dict):
        data = value.get("data", value)
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict) and data.get("id") is not None:
            return str(data["id"])
    return ""


def parse_status(value: Any) -> ReservationStatus:
    if isinstance(value, str):
        status = STATUS_FROM_CMS.get(value.strip().lower())
        if status is not None:
            return status
    raise ValueError(f"Unknown reservation status from backend: {value!r}")


def parse_payment_status(value: Any) -> PaymentStatus:
    if isinstance(value, str):
        try:
            return PaymentStatus(value.strip().lower())
        except ValueError:
            pass
    return PaymentStatus.PENDING


def parse_payment_method(value: Any) -> PaymentMethod | None:
    if not value:
        return None
    try:
        return PaymentMethod.from_string(str(value))
    except ValueError:
        logger.warning(f"Ignoring unknown payment method from backend: {value!r}")
        return None


def parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def parse_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class ReservationTranslator(Translator):
    """Translates reservation entries."""

    def translate(self, source: dict[str, Any]) -> Reservation:
        """Translate a CMS reservation entry into a Reservation."""
        reservation_id, attrs = unwrap(source)
        if not reservation_id:
            raise ValueError("Reservation entry without id")

        reservation = Reservation(
            id=reservation_id,
            user_id=relation_id(attrs.get("user")),
            car_id=relation_id(attrs.get("car")),
            interval=DateInterval.between(attrs["startDate"], attrs["endDate"]),
            total_price=parse_decimal(attrs.get("totalPrice")) or Decimal("0"),
            status=parse_status(attrs.get("status", "en attente")),
            payment_status=parse_payment_status(attrs.get("paymentStatus")),
            with_driver=bool(attrs.get("withDriver", False)),
            with_child_seat=bool(attrs.get("withChildSeat", False)),
            with_gps=bool(attrs.get("withGPS", False)),
            payment_method=parse_payment_method(attrs.get("paymentMethod")),
            created_at=parse_timestamp(attrs.get("createdAt")),
        )
        if not reservation.is_consistent():
            logger.warning(
                f"Reservation {reservation.id} has status {reservation.status.value} "
                f"with payment status {reservation.payment_status.value}"
            )
        return reservation

    def reverse_translate(self, source: NewReservation) -> dict[str, Any]:
        """Build the create payload for a new reservation."""
        return {
            "data": {
                "user": source.user_id,
                "car": source.car_id,
                "startDate": source.interval.start.isoformat(),
                "endDate": source.interval.end.isoformat(),
                "totalPrice": str(source.total_price),
                "status": STATUS_TO_CMS[source.status],
                "withDriver": source.with_driver,
                "withChildSeat": source.with_child_seat,
                "withGPS": source.with_gps,
                "paymentMethod": source.payment_method.value if source.payment_method else None,
                "paymentStatus": source.payment_status.value,
            }
        }

    def status_update(
        self,
        status: ReservationStatus,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
    ) -> dict[str, Any]:
        """Build the partial update payload for a status change."""
        data: dict[str, Any] = {"status": STATUS_TO_CMS[status]}
        if payment_status is not None:
            data["paymentStatus"] = payment_status.value
        if payment_method is not None:
            data["paymentMethod"] = payment_method.value
        return {"data": data}


class CarTranslator(Translator):
    """Translates car entries, filling in a default daily price when absent."""

    def __init__(self, default_daily_price: Decimal = Decimal("100")):
        self.default_daily_price = default_daily_price

    def translate(self, source: dict[str, Any]) -> Car:
        car_id, attrs = unwrap(source)
        if not car_id:
            raise ValueError("Car entry without id")

        daily_price = parse_decimal(attrs.get("dailyPrice"))
        if daily_price is None or daily_price <= 0:
            logger.warning(
                f"Car {car_id} has no usable dailyPrice ({attrs.get('dailyPrice')!r}), "
                f"using default {self.default_daily_price}"
            )
            daily_price = self.default_daily_price

        return Car(
            id=car_id,
            brand=attrs.get("brand") or "",
            model=attrs.get("model") or "",
            daily_price=daily_price,
            has_ac=bool(attrs.get("hasAC", False)),
            has_gps=bool(attrs.get("hasGPS", False)),
            child_seat_available=bool(attrs.get("childSeatAvailable", False)),
            driver_available=bool(attrs.get("driverAvailable", False)),
        )

    def reverse_translate(self, source: Car) -> dict[str, Any]:
        return {
            "data": {
                "brand": source.brand,
                "model": source.model,
                "dailyPrice": str(source.daily_price) if source.daily_price else None,
                "hasAC": source.has_ac,
                "hasGPS": source.has_gps,
                "childSeatAvailable": source.child_seat_available,
                "driverAvailable": source.driver_available,
            }
        }


PAYMENT_DETAIL_FIELDS = ("card", "cardholder_name", "paypal_email", "bank_name")


class PaymentTranslator(Translator):
    """Translates payment records."""

    def translate(self, source: dict[str, Any]) -> PaymentRecord:
        """Translate a CMS payment entry into a PaymentRecord."""
        record_id, attrs = unwrap(source)
        amount = parse_decimal(attrs.get("amount"))
        if amount is None:
            raise ValueError(f"Payment entry without a valid amount: {attrs.get('amount')!r}")

        attempt = PaymentAttempt(
            reservation_id=relation_id(attrs.get("reservation")),
            amount=amount,
            method=PaymentMethod.from_string(str(attrs["paymentMethod"])),
            outcome=(
                PaymentOutcome.SUCCESS
                if attrs.get("status") == "success"
                else PaymentOutcome.FAILURE
            ),
            transaction_id=str(attrs["transactionId"]),
            timestamp=parse_timestamp(attrs.get("date")) or datetime.now(UTC),
            failure_reason=attrs.get("failureReason"),
            idempotency_key=attrs.get("idempotencyKey"),
            details={
                key: str(attrs[key]) for key in PAYMENT_DETAIL_FIELDS if attrs.get(key)
            },
        )
        if record_id is None:
            return PaymentRecord(attempt=attempt)
        return PaymentRecord(id=record_id, attempt=attempt)

    def reverse_translate(self, source: PaymentAttempt) -> dict[str, Any]:
        data: dict[str, Any] = {
            "reservation": source.reservation_id,
            "transactionId": source.transaction_id,
            "amount": str(source.amount),
            "paymentMethod": source.method.value,
            "status": "success" if source.succeeded else "failed",
            "date": source.timestamp.isoformat(),
        }
        if source.failure_reason:
            data["failureReason"] = source.failure_reason
        if source.idempotency_key:
            data["idempotencyKey"] = source.idempotency_key
        data.update(source.details)
        return {"data": data}
