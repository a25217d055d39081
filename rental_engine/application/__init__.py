"""Application layer - use cases and the engine facade."""

from .availability import AvailabilityChecker
from .dto import BookingRequest, PaymentRequest
from .payments import PaymentOrchestrator
from .service import RentalEngine
from .use_cases import (
    BookCarUseCase,
    CancelReservationUseCase,
    CompleteReservationUseCase,
    GetReservationUseCase,
    PayReservationUseCase,
    QuotePriceUseCase,
)

__all__ = [
    "AvailabilityChecker",
    "BookCarUseCase",
    "BookingRequest",
    "CancelReservationUseCase",
    "CompleteReservationUseCase",
    "GetReservationUseCase",
    "PayReservationUseCase",
    "PaymentOrchestrator",
    "PaymentRequest",
    "QuotePriceUseCase",
    "RentalEngine",
]
