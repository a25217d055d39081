"""Tests for the reservation state machine."""

import pytest

from rental_engine.domain.exceptions import InvalidTransition
from rental_engine.domain.state_machine import (
    Actor,
    ReservationStateMachine,
    TransitionNotPermitted,
)
from rental_engine.domain.value_objects import (
    PaymentStatus,
    ReservationEvent,
    ReservationStatus,
)
from tests.builders import ReservationBuilder


@pytest.fixture
def machine():
    return ReservationStateMachine()


class TestTransitions:
    """Test cases for allowed transitions."""

    def test_payment_succeeded_confirms(self, machine):
        """Test a pending reservation becomes confirmed and paid."""
        reservation = ReservationBuilder().build()

        result = machine.transition(reservation, ReservationEvent.PAYMENT_SUCCEEDED)

        assert result.status == ReservationStatus.CONFIRMED
        assert result.payment_status == PaymentStatus.PAID
        assert reservation.status == ReservationStatus.PENDING

    def test_payment_failed_stays_pending(self, machine):
        """Test a failed payment keeps the reservation pending."""
        reservation = ReservationBuilder().build()

        result = machine.transition(reservation, ReservationEvent.PAYMENT_FAILED)

        assert result.status == ReservationStatus.PENDING
        assert result.payment_status == PaymentStatus.FAILED

    def test_retry_after_failed_payment(self, machine):
        """Test a pending/failed reservation can still be paid."""
        reservation = (
            ReservationBuilder().with_payment_status(PaymentStatus.FAILED).build()
        )

        result = machine.transition(reservation, ReservationEvent.PAYMENT_SUCCEEDED)

        assert result.status == ReservationStatus.CONFIRMED

    def test_rental_ended_completes(self, machine):
        """Test a confirmed reservation completes."""
        reservation = ReservationBuilder().confirmed().build()

        result = machine.transition(reservation, ReservationEvent.RENTAL_ENDED, Actor.ADMIN)

        assert result.status == ReservationStatus.COMPLETED
        assert result.payment_status == PaymentStatus.PAID

    @pytest.mark.parametrize("confirmed", [False, True])
    def test_cancel_keeps_payment_status(self, machine, confirmed):
        """Test cancelling leaves the payment status untouched."""
        builder = ReservationBuilder()
        reservation = (builder.confirmed() if confirmed else builder).build()

        result = machine.transition(reservation, ReservationEvent.CANCEL, Actor.CUSTOMER)

        assert result.status == ReservationStatus.CANCELLED
        assert result.payment_status == reservation.payment_status


class TestRejectedTransitions:
    """Test cases for transitions that must fail."""

    @pytest.mark.parametrize("event", list(ReservationEvent))
    def test_completed_is_terminal(self, machine, event):
        """Test no event applies to a completed reservation."""
        reservation = ReservationBuilder().completed().build()
        with pytest.raises(InvalidTransition):
            machine.transition(reservation, event)

    @pytest.mark.parametrize("event", list(ReservationEvent))
    def test_cancelled_is_terminal(self, machine, event):
        """Test no event applies to a cancelled reservation."""
        reservation = ReservationBuilder().cancelled().build()
        with pytest.raises(InvalidTransition):
            machine.transition(reservation, event)

    def test_cancel_completed_reports_state(self, machine):
        """Test the error carries the current status and event."""
        reservation = ReservationBuilder().with_id("r-5").completed().build()

        with pytest.raises(InvalidTransition) as exc_info:
            machine.transition(reservation, ReservationEvent.CANCEL)

        assert exc_info.value.current_status == "completed"
        assert exc_info.value.event == "cancel"
        assert exc_info.value.reservation_id == "r-5"

    def test_cannot_pay_confirmed(self, machine):
        """Test a confirmed reservation cannot be paid twice."""
        reservation = ReservationBuilder().confirmed().build()
        with pytest.raises(InvalidTransition):
            machine.transition(reservation, ReservationEvent.PAYMENT_SUCCEEDED)

    def test_cannot_complete_pending(self, machine):
        """Test an unpaid reservation cannot complete."""
        reservation = ReservationBuilder().build()
        with pytest.raises(InvalidTransition):
            machine.transition(reservation, ReservationEvent.RENTAL_ENDED)


class TestPermissions:
    """Test cases for who may trigger which event."""

    def test_customer_cannot_confirm_payment(self, machine):
        """Test payment events are reserved to the system."""
        reservation = ReservationBuilder().build()

        with pytest.raises(TransitionNotPermitted) as exc_info:
            machine.transition(reservation, ReservationEvent.PAYMENT_SUCCEEDED, Actor.CUSTOMER)

        assert exc_info.value.actor == "customer"

    def test_customer_cannot_complete(self, machine):
        """Test only admin or system can end a rental."""
        reservation = ReservationBuilder().confirmed().build()
        with pytest.raises(TransitionNotPermitted):
            machine.transition(reservation, ReservationEvent.RENTAL_ENDED, Actor.CUSTOMER)

    def test_can_apply(self, machine):
        """Test the non-raising check."""
        assert machine.can_apply(ReservationStatus.PENDING, ReservationEvent.PAYMENT_SUCCEEDED)
        assert not machine.can_apply(
            ReservationStatus.PENDING, ReservationEvent.PAYMENT_SUCCEEDED, Actor.ADMIN
        )
        assert not machine.can_apply(ReservationStatus.COMPLETED, ReservationEvent.CANCEL)

    def test_allowed_events(self, machine):
        """Test the events listed for each status."""
        assert set(machine.allowed_events(ReservationStatus.CONFIRMED)) == {
            ReservationEvent.CANCEL,
            ReservationEvent.RENTAL_ENDED,
        }
        assert machine.allowed_events(ReservationStatus.CANCELLED) == []
