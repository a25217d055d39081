"""Ports layer - interfaces to the backend, the payment gateway and time."""

from .clock import ClockPort
from .data_access import RentalDataPort
from .payment_gateway import PaymentGatewayPort

__all__ = [
    "ClockPort",
    "PaymentGatewayPort",
    "RentalDataPort",
]
