"""Reservation lifecycle rules.

    pending --payment_succeeded--> confirmed --rental_ended--> completed
    pending --payment_failed-----> pending (payment_status=failed)
    pending/confirmed --cancel---> cancelled

Completed and cancelled are terminal.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from .exceptions import InvalidTransition
from .models import ALLOWED_PAYMENT_STATUSES, Reservation
from .value_objects import PaymentStatus, ReservationEvent, ReservationStatus


class Actor(str, Enum):
    """Who is asking for a transition."""

    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


class TransitionNotPermitted(InvalidTransition):
    """The transition exists but the actor may not trigger it."""

    def __init__(self, reservation_id: str, current_status: str, event: str, actor: str):
        super().__init__(reservation_id, current_status, event)
        self.message = (
            f"Actor '{actor}' may not apply '{event}' to reservation {reservation_id}"
        )
        self.args = (self.message,)
        self.actor = actor
        self.details["actor"] = actor


class _Target(NamedTuple):
    status: ReservationStatus
    # None keeps the current payment status
    payment_status: PaymentStatus | None


_TRANSITIONS: dict[tuple[ReservationStatus, ReservationEvent], _Target] = {
    (ReservationStatus.PENDING, ReservationEvent.PAYMENT_SUCCEEDED): _Target(
        ReservationStatus.CONFIRMED, PaymentStatus.PAID
    ),
    (ReservationStatus.PENDING, ReservationEvent.PAYMENT_FAILED): _Target(
        ReservationStatus.PENDING, PaymentStatus.FAILED
    ),
    (ReservationStatus.PENDING, ReservationEvent.CANCEL): _Target(
        ReservationStatus.CANCELLED, None
    ),
    (ReservationStatus.CONFIRMED, ReservationEvent.CANCEL): _Target(
        ReservationStatus.CANCELLED, None
    ),
    (ReservationStatus.CONFIRMED, ReservationEvent.RENTAL_ENDED): _Target(
        ReservationStatus.COMPLETED, PaymentStatus.PAID
    ),
}

_PERMISSIONS: dict[ReservationEvent, frozenset[Actor]] = {
    ReservationEvent.PAYMENT_SUCCEEDED: frozenset({Actor.SYSTEM}),
    ReservationEvent.PAYMENT_FAILED: frozenset({Actor.SYSTEM}),
    ReservationEvent.RENTAL_ENDED: frozenset({Actor.SYSTEM, Actor.ADMIN}),
    ReservationEvent.CANCEL: frozenset({Actor.SYSTEM, Actor.ADMIN, Actor.CUSTOMER}),
}


class ReservationStateMachine:
    """Validates and applies reservation status transitions.

    ``transition`` never mutates its input; it returns the reservation as it
    should be written back, or raises without side effects.
    """

    def allowed_events(self, status: ReservationStatus) -> list[ReservationEvent]:
        return [event for (source, event) in _TRANSITIONS if source == status]

    def can_apply(
        self,
        status: ReservationStatus,
        event: ReservationEvent,
        actor: Actor = Actor.SYSTEM,
    ) -> bool:
        return (status, event) in _TRANSITIONS and actor in _PERMISSIONS[event]

    def transition(
        self,
        reservation: Reservation,
        event: ReservationEvent,
        actor: Actor = Actor.SYSTEM,
    ) -> Reservation:
        """Apply ``event`` to ``reservation`` and return the resulting snapshot.

        Raises:
            InvalidTransition: From a terminal state, or for a pair not in the table.
            TransitionNotPermitted: When ``actor`` may not trigger ``event``.
        """
        target = _TRANSITIONS.get((reservation.status, event))
        if target is None:
            raise InvalidTransition(reservation.id, reservation.status.value, event.value)
        if actor not in _PERMISSIONS[event]:
            raise TransitionNotPermitted(
                reservation.id, reservation.status.value, event.value, actor.value
            )

        payment_status = target.payment_status or reservation.payment_status
        if payment_status not in ALLOWED_PAYMENT_STATUSES[target.status]:
            raise InvalidTransition(reservation.id, reservation.status.value, event.value)

        return reservation.model_copy(
            update={"status": target.status, "payment_status": payment_status}
        )
