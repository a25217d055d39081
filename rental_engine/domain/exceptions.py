"""Domain-specific exceptions for the reservation engine."""

from __future__ import annotations

from typing import Any


class RentalEngineError(Exception):
    """Base exception for all reservation engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInterval(RentalEngineError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            f"Invalid interval: end {end} is before start {start}",
            details={"start": str(start), "end": str(end)},
        )
        self.start = start
        self.end = end


class InvalidCar(RentalEngineError):
    """Raised when a car cannot be priced."""

    def __init__(self, message: str, car_id: str | None = None):
        super().__init__(message)
        self.car_id = car_id
        if car_id:
            self.details["car_id"] = car_id


class BookingConflict(RentalEngineError):
    """Raised when the requested interval overlaps an existing booking.

    Covers both a conflict found by the availability check and one detected
    by the persistence boundary at write time.
    """

    def __init__(self, car_id: str, conflicting_ids: list[str] | None = None):
        conflicting_ids = conflicting_ids or []
        super().__init__(
            f"Car {car_id} is already booked for the requested dates",
            details={"car_id": car_id, "conflicting_reservations": conflicting_ids},
        )
        self.car_id = car_id
        self.conflicting_ids = conflicting_ids


class InvalidPaymentDetails(RentalEngineError):
    """Raised when payment details fail synchronous validation."""

    def __init__(self, field_errors: dict[str, str]):
        fields = ", ".join(sorted(field_errors))
        super().__init__(
            f"Invalid payment details: {fields}", details={"field_errors": field_errors}
        )
        self.field_errors = field_errors


class PaymentDeclined(RentalEngineError):
    """The gateway declined the charge. An expected business outcome."""

    def __init__(self, reservation_id: str, transaction_id: str, reason: str = "declined"):
        super().__init__(
            f"Payment for reservation {reservation_id} was declined ({reason})",
            details={
                "reservation_id": reservation_id,
                "transaction_id": transaction_id,
                "reason": reason,
            },
        )
        self.reservation_id = reservation_id
        self.transaction_id = transaction_id
        self.reason = reason


class ReservationNotFound(RentalEngineError):
    """Raised when a reservation id does not resolve."""

    def __init__(self, reservation_id: str):
        super().__init__(
            f"Reservation {reservation_id} not found",
            details={"reservation_id": reservation_id},
        )
        self.reservation_id = reservation_id


class InvalidTransition(RentalEngineError):
    """Raised when a status transition is not allowed from the current state."""

    def __init__(self, reservation_id: str, current_status: str, event: str):
        super().__init__(
            f"Cannot apply '{event}' to reservation {reservation_id} in status '{current_status}'",
            details={
                "reservation_id": reservation_id,
                "current_status": current_status,
                "event": event,
            },
        )
        self.reservation_id = reservation_id
        self.current_status = current_status
        self.event = event


class ReconciliationError(RentalEngineError):
    """A charge succeeded but the booking record could not be brought in line.

    Money has moved. This must never be shown to a customer as a failed payment.
    """

    def __init__(
        self,
        reservation_id: str,
        transaction_id: str,
        stage: str,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"Payment {transaction_id} for reservation {reservation_id} was charged "
            f"but {stage} failed",
            details={
                "reservation_id": reservation_id,
                "transaction_id": transaction_id,
                "stage": stage,
                "cause": repr(cause) if cause else None,
            },
        )
        self.reservation_id = reservation_id
        self.transaction_id = transaction_id
        self.stage = stage


class UpstreamUnavailable(RentalEngineError):
    """The data-access boundary timed out or returned an error."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        if operation:
            self.details["operation"] = operation
        if status_code is not None:
            self.details["status_code"] = status_code


class UpstreamNotFound(UpstreamUnavailable):
    """The backend answered 404 for a collection or endpoint."""

    def __init__(self, operation: str):
        super().__init__(f"Upstream returned not found for {operation}", operation, 404)


class UpstreamAccessDenied(UpstreamUnavailable):
    """The backend answered 403 for the given credentials."""

    def __init__(self, operation: str):
        super().__init__(f"Upstream denied access for {operation}", operation, 403)
