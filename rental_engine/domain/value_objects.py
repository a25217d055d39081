"""Value objects for the reservation engine.

Value objects are immutable and compared by value. Enums here are the
canonical English vocabulary; translation to the CMS's own labels happens
at the boundary.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReservationStatus(str, Enum):
    """Lifecycle status of a reservation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> ReservationStatus:
        """Create ReservationStatus from string value."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid reservation status: {value}")

    def is_terminal(self) -> bool:
        """Completed and cancelled reservations accept no further events."""
        return self in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED)

    def blocks_car(self) -> bool:
        """Whether a reservation in this status occupies the car's calendar."""
        return self != ReservationStatus.CANCELLED


class PaymentStatus(str, Enum):
    """Payment side of a reservation."""

    PENDING = "pending"
    FAILED = "failed"
    PAID = "paid"
    REFUNDED = "refunded"


class ReservationEvent(str, Enum):
    """Events accepted by the reservation state machine."""

    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    RENTAL_ENDED = "rental_ended"
    CANCEL = "cancel"


class PaymentOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class PaymentMethod(str, Enum):
    """Payment methods offered at checkout."""

    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    GOOGLE_PAY = "google_pay"
    APPLE_PAY = "apple_pay"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"

    @classmethod
    def from_string(cls, value: str) -> PaymentMethod:
        """Accept snake_case values and the camelCase ids used by the storefront."""
        normalized = value.strip()
        aliases = {
            "creditCard": cls.CREDIT_CARD,
            "googlePay": cls.GOOGLE_PAY,
            "applePay": cls.APPLE_PAY,
            "bankTransfer": cls.BANK_TRANSFER,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized.lower())
        except ValueError:
            raise ValueError(f"Invalid payment method: {value}")

    @property
    def display_name(self) -> str:
        return _METHOD_CATALOG[self][0]

    @property
    def description(self) -> str:
        return _METHOD_CATALOG[self][1]

    def requires_card(self) -> bool:
        return self == PaymentMethod.CREDIT_CARD


_METHOD_CATALOG: dict[PaymentMethod, tuple[str, str]] = {
    PaymentMethod.CREDIT_CARD: ("Credit card", "Secure payment by bank card"),
    PaymentMethod.PAYPAL: ("PayPal", "Payment through your PayPal account"),
    PaymentMethod.GOOGLE_PAY: ("Google Pay", "Payment through your Google Pay account"),
    PaymentMethod.APPLE_PAY: ("Apple Pay", "Payment through your Apple Pay account"),
    PaymentMethod.BANK_TRANSFER: ("Bank transfer", "Payment by bank transfer (1-3 days)"),
    PaymentMethod.CASH: ("Cash", "Cash payment when the vehicle is picked up"),
}


class BookingOptions(BaseModel):
    """Optional extras requested with a booking."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    with_driver: bool = False
    with_child_seat: bool = False
    with_gps: bool = False


class CardDetails(BaseModel):
    """Raw card fields as typed by the customer. Validated by the orchestrator."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    card_number: str = ""
    expiry_date: str = ""
    cvv: str = ""
    cardholder_name: str | None = None

    def normalized_number(self) -> str:
        return "".join(self.card_number.split())

    def masked_number(self) -> str:
        digits = self.normalized_number()
        return f"**** {digits[-4:]}" if len(digits) >= 4 else "****"


class BankDetails(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account_number: str = ""
    bank_name: str = ""


class PaymentDetails(BaseModel):
    """Method-specific details attached to a payment attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    card: CardDetails | None = None
    paypal_email: str | None = None
    bank: BankDetails | None = None

    def redacted(self) -> dict[str, str]:
        """Details safe to persist alongside a payment record."""
        data: dict[str, str] = {}
        if self.card is not None:
            data["card"] = self.card.masked_number()
            if self.card.cardholder_name:
                data["cardholder_name"] = self.card.cardholder_name
        if self.paypal_email:
            data["paypal_email"] = self.paypal_email
        if self.bank is not None:
            data["bank_name"] = self.bank.bank_name
        return data


class SessionContext(BaseModel):
    """Caller credentials passed explicitly into every data-access call."""

    model_config = ConfigDict(frozen=True, strict=True)

    token: str = Field(..., min_length=1, description="Bearer token for the data API")
    user_id: str | None = Field(default=None, description="Authenticated user, if known")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Tokens cannot contain whitespace."""
        if any(c.isspace() for c in v):
            raise ValueError("Session token cannot contain whitespace")
        return v

    def auth_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        return f"SessionContext(user_id={self.user_id!r})"
