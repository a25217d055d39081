"""Domain layer: reservation model, pricing and lifecycle rules."""

from .exceptions import (
    BookingConflict,
    InvalidCar,
    InvalidInterval,
    InvalidPaymentDetails,
    InvalidTransition,
    PaymentDeclined,
    ReconciliationError,
    RentalEngineError,
    ReservationNotFound,
    UpstreamAccessDenied,
    UpstreamNotFound,
    UpstreamUnavailable,
)
from .interval import DateInterval, duration_days, overlaps
from .models import (
    AvailabilityResult,
    Car,
    GatewayChargeResult,
    NewReservation,
    PaymentAttempt,
    PaymentRecord,
    PaymentResult,
    Reservation,
)
from .pricing import AddOnRates, PriceQuote, PricingCalculator
from .state_machine import Actor, ReservationStateMachine, TransitionNotPermitted
from .value_objects import (
    BankDetails,
    BookingOptions,
    CardDetails,
    PaymentDetails,
    PaymentMethod,
    PaymentOutcome,
    PaymentStatus,
    ReservationEvent,
    ReservationStatus,
    SessionContext,
)

__all__ = [
    "Actor",
    "AddOnRates",
    "AvailabilityResult",
    "BankDetails",
    "BookingConflict",
    "BookingOptions",
    "Car",
    "CardDetails",
    "DateInterval",
    "GatewayChargeResult",
    "InvalidCar",
    "InvalidInterval",
    "InvalidPaymentDetails",
    "InvalidTransition",
    "NewReservation",
    "PaymentAttempt",
    "PaymentDeclined",
    "PaymentDetails",
    "PaymentMethod",
    "PaymentOutcome",
    "PaymentRecord",
    "PaymentResult",
    "PaymentStatus",
    "PriceQuote",
    "PricingCalculator",
    "ReconciliationError",
    "RentalEngineError",
    "Reservation",
    "ReservationEvent",
    "ReservationNotFound",
    "ReservationStateMachine",
    "ReservationStatus",
    "SessionContext",
    "TransitionNotPermitted",
    "UpstreamAccessDenied",
    "UpstreamNotFound",
    "UpstreamUnavailable",
    "duration_days",
    "overlaps",
]
