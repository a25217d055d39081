"""Input DTOs for the reservation engine's public operations."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.interval import DateInterval
from ..domain.value_objects import BookingOptions, PaymentDetails, PaymentMethod


class BookingRequest(BaseModel):
    """A customer's request to book a car."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    car_id: str = Field(..., min_length=1, description="Car to book")
    interval: DateInterval = Field(..., description="Inclusive rental dates")
    options: BookingOptions = Field(default_factory=BookingOptions)
    user_id: str | None = Field(
        default=None, description="Booking owner; defaults to the session's user"
    )
    payment_method: PaymentMethod | None = Field(default=None)

    @field_validator("payment_method", mode="before")
    @classmethod
    def parse_payment_method(cls, v: str | PaymentMethod | None) -> PaymentMethod | None:
        """Accept payment method ids as strings."""
        if isinstance(v, str):
            return PaymentMethod.from_string(v)
        return v


class PaymentRequest(BaseModel):
    """A request to pay for a pending reservation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    reservation_id: str = Field(..., min_length=1)
    method: PaymentMethod
    details: PaymentDetails | None = None
    amount: Decimal | None = Field(
        default=None, description="Expected charge; defaults to the reservation total"
    )
    idempotency_key: str | None = Field(default=None, max_length=255)
    abandon_on_decline: bool = Field(
        default=False, description="Cancel the reservation if the charge is declined"
    )

    @field_validator("method", mode="before")
    @classmethod
    def parse_method(cls, v: str | PaymentMethod) -> PaymentMethod:
        """Accept payment method ids as strings."""
        if isinstance(v, str):
            return PaymentMethod.from_string(v)
        return v
