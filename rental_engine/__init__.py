"""rental-engine - reservation lifecycle and availability engine for car rentals."""

from .application.dto import BookingRequest, PaymentRequest
from .application.service import RentalEngine
from .domain.interval import DateInterval

__all__ = ["BookingRequest", "DateInterval", "PaymentRequest", "RentalEngine"]
__version__ = "0.1.0"
