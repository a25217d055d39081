"""Use cases for the reservation engine application layer.

Each use case is one request-scoped unit of work. Nothing is cached between
calls: every operation re-fetches what it needs from the data port.
"""

from __future__ import annotations

import logging

from ..domain.exceptions import InvalidCar, ReservationNotFound
from ..domain.interval import DateInterval
from ..domain.models import NewReservation, PaymentResult, Reservation
from ..domain.pricing import PriceQuote, PricingCalculator
from ..domain.state_machine import Actor, ReservationStateMachine, TransitionNotPermitted
from ..domain.value_objects import BookingOptions, ReservationEvent, SessionContext
from ..ports.data_access import RentalDataPort
from .availability import AvailabilityChecker
from .dto import BookingRequest, PaymentRequest
from .payments import PaymentOrchestrator
from .upstream import call_upstream

logger = logging.getLogger(__name__)


class QuotePriceUseCase:
    """Price a rental without booking it."""

    def __init__(self, data: RentalDataPort, pricing: PricingCalculator, timeout: float = 10.0):
        self.data = data
        self.pricing = pricing
        self.timeout = timeout

    async def execute(
        self,
        context: SessionContext,
        car_id: str,
        interval: DateInterval,
        options: BookingOptions | None = None,
    ) -> PriceQuote:
        car = await call_upstream(
            self.data.fetch_car(context, car_id), operation="fetch_car", timeout=self.timeout
        )
        if car is None:
            raise InvalidCar(f"Car {car_id} not found", car_id=car_id)
        return self.pricing.quote(car, interval, options)


class BookCarUseCase:
    """Check availability, price the rental and create a pending reservation."""

    def __init__(
        self,
        data: RentalDataPort,
        availability: AvailabilityChecker,
        quote: QuotePriceUseCase,
        timeout: float = 10.0,
    ):
        """Initialize the booking use case.

        Args:
            data: Backend port
            availability: Overlap checker
            quote: Pricing use case (fetches the car)
            timeout: Upper bound for the create call in seconds
        """
        self.data = data
        self.availability = availability
        self.quote = quote
        self.timeout = timeout

    async def execute(self, context: SessionContext, request: BookingRequest) -> Reservation:
        user_id = request.user_id or context.user_id
        if not user_id:
            raise ValueError("A booking requires a user id")

        availability = await self.availability.ensure_available(
            context, request.car_id, request.interval
        )
        price = await self.quote.execute(
            context, request.car_id, request.interval, request.options
        )

        fields = NewReservation(
            user_id=user_id,
            car_id=request.car_id,
            interval=request.interval,
            total_price=price.total,
            with_driver=request.options.with_driver,
            with_child_seat=request.options.with_child_seat,
            with_gps=request.options.with_gps,
            payment_method=request.payment_method,
        )
        # A write-time overlap surfaces here as BookingConflict from the port.
        reservation = await call_upstream(
            self.data.create_reservation(context, fields),
            operation="create_reservation",
            timeout=self.timeout,
        )

        if availability.degraded:
            logger.warning(
                f"Reservation {reservation.id} created without a verified availability check"
            )
        logger.info(
            f"Reservation {reservation.id} created for car {request.car_id} "
            f"({request.interval}, total {reservation.total_price})"
        )
        return reservation


class PayReservationUseCase:
    """Pay for a reservation, optionally cancelling it when the charge is declined."""

    def __init__(self, payments: PaymentOrchestrator, cancel: CancelReservationUseCase):
        self.payments = payments
        self.cancel = cancel

    async def execute(self, context: SessionContext, request: PaymentRequest) -> PaymentResult:
        result = await self.payments.attempt_payment(
            context,
            request.reservation_id,
            request.method,
            details=request.details,
            amount=request.amount,
            idempotency_key=request.idempotency_key,
        )
        if result.success or not request.abandon_on_decline or result.outcome_unknown:
            return result

        cancelled = await self.cancel.execute(context, request.reservation_id, Actor.SYSTEM)
        return result.model_copy(update={"reservation": cancelled})


class _TransitionUseCase:
    """Fetch a reservation, apply one event, write the result back."""

    event: ReservationEvent

    def __init__(
        self,
        data: RentalDataPort,
        state_machine: ReservationStateMachine | None = None,
        timeout: float = 10.0,
    ):
        self.data = data
        self.state_machine = state_machine or ReservationStateMachine()
        self.timeout = timeout

    async def execute(
        self, context: SessionContext, reservation_id: str, actor: Actor
    ) -> Reservation:
        reservation = await call_upstream(
            self.data.fetch_reservation(context, reservation_id),
            operation="fetch_reservation",
            timeout=self.timeout,
        )
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        self._check_owner(context, reservation, actor)

        target = self.state_machine.transition(reservation, self.event, actor)
        updated = await call_upstream(
            self.data.update_reservation_status(
                context,
                reservation.id,
                target.status,
                payment_status=target.payment_status,
                expected_status=reservation.status,
            ),
            operation="update_reservation_status",
            timeout=self.timeout,
        )
        logger.info(
            f"Reservation {reservation.id}: {reservation.status.value} -> "
            f"{updated.status.value} ({self.event.value} by {actor.value})"
        )
        return updated

    def _check_owner(
        self, context: SessionContext, reservation: Reservation, actor: Actor
    ) -> None:
        # Customers may only act on their own bookings.
        if actor == Actor.CUSTOMER and context.user_id != reservation.user_id:
            raise TransitionNotPermitted(
                reservation.id, reservation.status.value, self.event.value, actor.value
            )


class CancelReservationUseCase(_TransitionUseCase):
    event = ReservationEvent.CANCEL


class CompleteReservationUseCase(_TransitionUseCase):
    event = ReservationEvent.RENTAL_ENDED


class GetReservationUseCase:
    def __init__(self, data: RentalDataPort, timeout: float = 10.0):
        self.data = data
        self.timeout = timeout

    async def execute(self, context: SessionContext, reservation_id: str) -> Reservation:
        reservation = await call_upstream(
            self.data.fetch_reservation(context, reservation_id),
            operation="fetch_reservation",
            timeout=self.timeout,
        )
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    async def for_user(self, context: SessionContext, user_id: str) -> list[Reservation]:
        reservations = await call_upstream(
            self.data.fetch_reservations_for_user(context, user_id),
            operation="fetch_reservations_for_user",
            timeout=self.timeout,
        )
        return sorted(reservations, key=lambda r: r.interval.start)
