"""Tests for domain value objects."""

import pytest
from pydantic import ValidationError

from rental_engine.domain.value_objects import (
    CardDetails,
    PaymentDetails,
    PaymentMethod,
    ReservationStatus,
    SessionContext,
)


class TestReservationStatus:
    """Test cases for ReservationStatus."""

    def test_terminal_statuses(self):
        """Test completed and cancelled are terminal."""
        assert ReservationStatus.COMPLETED.is_terminal()
        assert ReservationStatus.CANCELLED.is_terminal()
        assert not ReservationStatus.PENDING.is_terminal()

    def test_only_cancelled_frees_the_car(self):
        """Test which statuses occupy the calendar."""
        assert ReservationStatus.PENDING.blocks_car()
        assert ReservationStatus.COMPLETED.blocks_car()
        assert not ReservationStatus.CANCELLED.blocks_car()

    def test_from_string_invalid(self):
        """Test unknown status strings."""
        with pytest.raises(ValueError, match="Invalid reservation status"):
            ReservationStatus.from_string("archived")


class TestPaymentMethod:
    """Test cases for PaymentMethod."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("creditCard", PaymentMethod.CREDIT_CARD),
            ("credit_card", PaymentMethod.CREDIT_CARD),
            ("PAYPAL", PaymentMethod.PAYPAL),
            ("bankTransfer", PaymentMethod.BANK_TRANSFER),
        ],
    )
    def test_from_string(self, value, expected):
        """Test storefront ids and enum values are accepted."""
        assert PaymentMethod.from_string(value) == expected

    def test_from_string_invalid(self):
        """Test unknown methods."""
        with pytest.raises(ValueError):
            PaymentMethod.from_string("bitcoin")

    def test_catalog_covers_every_method(self):
        """Test every method has a name and description."""
        for method in PaymentMethod:
            assert method.display_name
            assert method.description


class TestPaymentDetails:
    """Test cases for PaymentDetails."""

    def test_redacted_masks_card(self):
        """Test only the last four digits are kept."""
        details = PaymentDetails(
            card=CardDetails(
                card_number="4242 4242 4242 1234", expiry_date="12/30", cvv="123"
            )
        )

        redacted = details.redacted()

        assert redacted == {"card": "**** 1234"}


class TestSessionContext:
    """Test cases for SessionContext."""

    def test_empty_token_rejected(self):
        """Test a token is required."""
        with pytest.raises(ValidationError):
            SessionContext(token="")

    def test_whitespace_token_rejected(self):
        """Test tokens cannot contain whitespace."""
        with pytest.raises(ValidationError):
            SessionContext(token="abc def")

    def test_auth_header(self):
        """Test the bearer header."""
        assert SessionContext(token="abc").auth_header() == {"Authorization": "Bearer abc"}

    def test_repr_hides_token(self):
        """Test the token never appears in logs."""
        context = SessionContext(token="secret-token", user_id="u1")
        assert "secret-token" not in repr(context)
