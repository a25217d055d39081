"""RentalEngine: the operations exposed to the UI or API layer."""

from __future__ import annotations

from typing import Any

from ..domain.interval import DateInterval
from ..domain.models import AvailabilityResult, PaymentResult, Reservation
from ..domain.pricing import AddOnRates, PriceQuote, PricingCalculator
from ..domain.state_machine import Actor, ReservationStateMachine
from ..domain.value_objects import (
    BookingOptions,
    PaymentDetails,
    PaymentMethod,
    SessionContext,
)
from ..ports.clock import ClockPort
from ..ports.data_access import RentalDataPort
from ..ports.payment_gateway import PaymentGatewayPort
from .availability import AvailabilityChecker
from .dto import BookingRequest, PaymentRequest
from .payments import PaymentOrchestrator
from .use_cases import (
    BookCarUseCase,
    CancelReservationUseCase,
    CompleteReservationUseCase,
    GetReservationUseCase,
    PayReservationUseCase,
    QuotePriceUseCase,
)


class RentalEngine:
    """Facade over the booking, payment and lifecycle use cases.

    Stateless between calls: every method takes the caller's session and the
    engine holds only its collaborators.
    """

    def __init__(
        self,
        data: RentalDataPort,
        gateway: PaymentGatewayPort,
        clock: ClockPort,
        rates: AddOnRates | None = None,
        upstream_timeout: float = 10.0,
        gateway_timeout: float = 30.0,
        permissive_availability_reads: bool = True,
    ):
        state_machine = ReservationStateMachine()
        pricing = PricingCalculator(rates)

        self.availability = AvailabilityChecker(
            data, timeout=upstream_timeout, permissive_reads=permissive_availability_reads
        )
        self.payments = PaymentOrchestrator(
            data,
            gateway,
            clock,
            state_machine=state_machine,
            upstream_timeout=upstream_timeout,
            gateway_timeout=gateway_timeout,
        )
        self._quote = QuotePriceUseCase(data, pricing, timeout=upstream_timeout)
        self._book = BookCarUseCase(data, self.availability, self._quote, upstream_timeout)
        self._cancel = CancelReservationUseCase(data, state_machine, upstream_timeout)
        self._complete = CompleteReservationUseCase(data, state_machine, upstream_timeout)
        self._pay = PayReservationUseCase(self.payments, self._cancel)
        self._get = GetReservationUseCase(data, upstream_timeout)

    async def book_car(self, context: SessionContext, request: BookingRequest) -> Reservation:
        return await self._book.execute(context, request)

    async def pay(
        self,
        context: SessionContext,
        reservation_id: str,
        method: PaymentMethod | str,
        details: PaymentDetails | None = None,
        **options: Any,
    ) -> PaymentResult:
        """Pay for a pending reservation.

        Extra keyword options are those of ``PaymentRequest`` (``amount``,
        ``idempotency_key``, ``abandon_on_decline``).
        """
        request = PaymentRequest(
            reservation_id=reservation_id, method=method, details=details, **options
        )
        return await self._pay.execute(context, request)

    async def cancel(
        self, context: SessionContext, reservation_id: str, actor: Actor = Actor.CUSTOMER
    ) -> Reservation:
        return await self._cancel.execute(context, reservation_id, actor)

    async def complete(
        self, context: SessionContext, reservation_id: str, actor: Actor = Actor.ADMIN
    ) -> Reservation:
        return await self._complete.execute(context, reservation_id, actor)

    async def check_availability(
        self, context: SessionContext, car_id: str, interval: DateInterval
    ) -> AvailabilityResult:
        return await self.availability.check_availability(context, car_id, interval)

    async def quote(
        self,
        context: SessionContext,
        car_id: str,
        interval: DateInterval,
        options: BookingOptions | None = None,
    ) -> PriceQuote:
        return await self._quote.execute(context, car_id, interval, options)

    async def get_reservation(self, context: SessionContext, reservation_id: str) -> Reservation:
        return await self._get.execute(context, reservation_id)

    async def list_user_reservations(
        self, context: SessionContext, user_id: str
    ) -> list[Reservation]:
        return await self._get.for_user(context, user_id)

    @staticmethod
    def payment_methods() -> list[dict[str, str]]:
        """Payment methods offered at checkout."""
        return [
            {"id": method.value, "name": method.display_name, "description": method.description}
            for method in PaymentMethod
        ]
