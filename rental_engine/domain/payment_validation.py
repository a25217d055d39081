"""Synchronous checks on payment details, run before any gateway call."""

from __future__ import annotations

import re
from decimal import Decimal

from .exceptions import InvalidPaymentDetails
from .value_objects import CardDetails, PaymentDetails, PaymentMethod

CARD_NUMBER_LENGTH = 16
_EXPIRY_PATTERN = re.compile(r"^(\d{2})/(\d{2})$")
_CVV_PATTERN = re.compile(r"^\d{3}$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def card_errors(card: CardDetails) -> dict[str, str]:
    """Return per-field problems with ``card``; empty when valid."""
    errors: dict[str, str] = {}

    number = card.normalized_number()
    if len(number) != CARD_NUMBER_LENGTH or not number.isdigit():
        errors["card_number"] = f"Card number must contain {CARD_NUMBER_LENGTH} digits"

    match = _EXPIRY_PATTERN.match(card.expiry_date)
    if match is None or not 1 <= int(match.group(1)) <= 12:
        errors["expiry_date"] = "Expiry date must use the MM/YY format"

    if not _CVV_PATTERN.match(card.cvv):
        errors["cvv"] = "CVV must contain 3 digits"

    return errors


def validate_payment_details(
    method: PaymentMethod,
    details: PaymentDetails | None,
    amount: Decimal | None = None,
) -> None:
    """Raise ``InvalidPaymentDetails`` listing every failing field."""
    errors: dict[str, str] = {}

    if amount is not None and amount <= 0:
        errors["amount"] = "Amount must be positive"

    if method == PaymentMethod.CREDIT_CARD:
        if details is None or details.card is None:
            errors["card"] = "Card details are required for card payments"
        else:
            errors.update(card_errors(details.card))
    elif method == PaymentMethod.PAYPAL:
        email = details.paypal_email if details else None
        if not email or not _EMAIL_PATTERN.match(email):
            errors["paypal_email"] = "A valid PayPal email is required"
    elif method == PaymentMethod.BANK_TRANSFER:
        bank = details.bank if details else None
        if bank is None or not bank.account_number:
            errors["account_number"] = "Account number is required for bank transfers"
        if bank is None or not bank.bank_name:
            errors["bank_name"] = "Bank name is required for bank transfers"

    if errors:
        raise InvalidPaymentDetails(errors)
