"""Payment orchestration: charge, record and reconcile with the reservation."""

from __future__ import annotations

import asyncio
import logging
import uuid
from decimal import Decimal

from ..domain.exceptions import (
    InvalidPaymentDetails,
    InvalidTransition,
    PaymentDeclined,
    ReconciliationError,
    ReservationNotFound,
)
from ..domain.models import GatewayChargeResult, PaymentAttempt, PaymentResult, Reservation
from ..domain.payment_validation import validate_payment_details
from ..domain.state_machine import ReservationStateMachine
from ..domain.value_objects import (
    PaymentDetails,
    PaymentMethod,
    PaymentOutcome,
    ReservationEvent,
    SessionContext,
)
from ..ports.clock import ClockPort
from ..ports.data_access import RentalDataPort
from ..ports.payment_gateway import PaymentGatewayPort
from .upstream import call_upstream

logger = logging.getLogger(__name__)
reconciliation_logger = logging.getLogger("rental_engine.reconciliation")

GATEWAY_TIMEOUT_REASON = "gateway_timeout"
GATEWAY_ERROR_REASON = "gateway_error"


def new_transaction_id() -> str:
    return f"trx-{uuid.uuid4().hex}"


class PaymentOrchestrator:
    """Runs one payment attempt for a pending reservation.

    Order of operations:
        1. validate details (no external call before this passes)
        2. re-fetch the reservation and check it can still be paid
        3. charge through the gateway, bounded by ``gateway_timeout``
        4. persist the payment record
        5. write the resulting reservation status, only if it is still the one
           read in step 2

    A failure in step 4 or 5 after a successful charge raises
    ``ReconciliationError``. A declined charge is returned, not raised.
    The orchestrator does not deduplicate attempts; ``idempotency_key`` is
    forwarded to the gateway and stored with the record.
    """

    def __init__(
        self,
        data: RentalDataPort,
        gateway: PaymentGatewayPort,
        clock: ClockPort,
        state_machine: ReservationStateMachine | None = None,
        upstream_timeout: float = 10.0,
        gateway_timeout: float = 30.0,
    ):
        self.data = data
        self.gateway = gateway
        self.clock = clock
        self.state_machine = state_machine or ReservationStateMachine()
        self.upstream_timeout = upstream_timeout
        self.gateway_timeout = gateway_timeout

    async def attempt_payment(
        self,
        context: SessionContext,
        reservation_id: str,
        method: PaymentMethod,
        details: PaymentDetails | None = None,
        amount: Decimal | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        """Attempt to pay for ``reservation_id``.

        Args:
            context: Caller session
            reservation_id: Reservation to pay for
            method: Payment method
            details: Method-specific details (card, PayPal email, bank)
            amount: Expected charge; must match the reservation total when given
            idempotency_key: Opaque key forwarded to the gateway

        Returns:
            PaymentResult, with ``success=False`` and a ``PaymentDeclined`` error
            when the gateway declined or did not answer in time.

        Raises:
            InvalidPaymentDetails: Details or amount failed validation
            ReservationNotFound: The reservation does not exist
            InvalidTransition: The reservation is not pending
            ReconciliationError: Charged, but the record or status write failed
            UpstreamUnavailable: A backend read or write failed before any charge
        """
        validate_payment_details(method, details, amount)

        reservation = await self._fetch(context, reservation_id)
        if not self.state_machine.can_apply(
            reservation.status, ReservationEvent.PAYMENT_SUCCEEDED
        ):
            raise InvalidTransition(
                reservation.id,
                reservation.status.value,
                ReservationEvent.PAYMENT_SUCCEEDED.value,
            )

        charge_amount = reservation.total_price if amount is None else amount
        if charge_amount != reservation.total_price:
            raise InvalidPaymentDetails(
                {
                    "amount": f"Amount {charge_amount} does not match reservation total "
                    f"{reservation.total_price}"
                }
            )
        if charge_amount <= 0:
            raise InvalidPaymentDetails({"amount": "Amount must be positive"})

        charge, outcome_unknown = await self._charge(
            charge_amount, method, details, idempotency_key
        )
        attempt = PaymentAttempt(
            reservation_id=reservation.id,
            amount=charge_amount,
            method=method,
            outcome=PaymentOutcome.SUCCESS if charge.success else PaymentOutcome.FAILURE,
            transaction_id=charge.transaction_id or new_transaction_id(),
            timestamp=self.clock.now(),
            failure_reason=None if charge.success else (charge.reason or "declined"),
            idempotency_key=idempotency_key,
            details=details.redacted() if details else {},
        )

        if attempt.succeeded:
            return await self._settle_success(context, reservation, attempt)
        return await self._settle_failure(context, reservation, attempt, outcome_unknown)

    async def _fetch(self, context: SessionContext, reservation_id: str) -> Reservation:
        reservation = await call_upstream(
            self.data.fetch_reservation(context, reservation_id),
            operation="fetch_reservation",
            timeout=self.upstream_timeout,
        )
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    async def _charge(
        self,
        amount: Decimal,
        method: PaymentMethod,
        details: PaymentDetails | None,
        idempotency_key: str | None,
    ) -> tuple[GatewayChargeResult, bool]:
        """Return the gateway result and whether the real outcome is unknown."""
        try:
            result = await asyncio.wait_for(
                self.gateway.charge(amount, method, details, idempotency_key),
                timeout=self.gateway_timeout,
            )
            return result, False
        except asyncio.TimeoutError:
            logger.error(f"Gateway did not answer within {self.gateway_timeout}s")
            return GatewayChargeResult(success=False, reason=GATEWAY_TIMEOUT_REASON), True
        except Exception as e:
            logger.error(f"Gateway call failed: {e.__class__.__name__}: {e}")
            return GatewayChargeResult(success=False, reason=GATEWAY_ERROR_REASON), True

    async def _settle_success(
        self, context: SessionContext, reservation: Reservation, attempt: PaymentAttempt
    ) -> PaymentResult:
        try:
            await call_upstream(
                self.data.record_payment(context, attempt),
                operation="record_payment",
                timeout=self.upstream_timeout,
            )
        except Exception as e:
            raise self._reconciliation(attempt, "record_payment", e) from e

        target = self.state_machine.transition(reservation, ReservationEvent.PAYMENT_SUCCEEDED)
        try:
            updated = await call_upstream(
                self.data.update_reservation_status(
                    context,
                    reservation.id,
                    target.status,
                    payment_status=target.payment_status,
                    payment_method=attempt.method,
                    expected_status=reservation.status,
                ),
                operation="update_reservation_status",
                timeout=self.upstream_timeout,
            )
        except Exception as e:
            raise self._reconciliation(attempt, "status_update", e) from e

        logger.info(
            f"Payment {attempt.transaction_id} for reservation {reservation.id} succeeded"
        )
        return PaymentResult(
            success=True,
            reservation=updated,
            transaction_id=attempt.transaction_id,
            amount=attempt.amount,
            method=attempt.method,
            timestamp=attempt.timestamp,
        )

    async def _settle_failure(
        self,
        context: SessionContext,
        reservation: Reservation,
        attempt: PaymentAttempt,
        outcome_unknown: bool,
    ) -> PaymentResult:
        await call_upstream(
            self.data.record_payment(context, attempt),
            operation="record_payment",
            timeout=self.upstream_timeout,
        )
        target = self.state_machine.transition(reservation, ReservationEvent.PAYMENT_FAILED)
        try:
            updated = await call_upstream(
                self.data.update_reservation_status(
                    context,
                    reservation.id,
                    target.status,
                    payment_status=target.payment_status,
                    expected_status=reservation.status,
                ),
                operation="update_reservation_status",
                timeout=self.upstream_timeout,
            )
        except InvalidTransition:
            # Changed while the charge was in flight; report what is stored now
            updated = await self._fetch(context, reservation.id)
            logger.warning(
                f"Reservation {reservation.id} moved to {updated.status.value} during "
                f"payment {attempt.transaction_id}; failed status not written"
            )

        logger.info(
            f"Payment {attempt.transaction_id} for reservation {reservation.id} "
            f"declined: {attempt.failure_reason}"
        )
        return PaymentResult(
            success=False,
            reservation=updated,
            transaction_id=attempt.transaction_id,
            amount=attempt.amount,
            method=attempt.method,
            timestamp=attempt.timestamp,
            error=PaymentDeclined(
                reservation.id, attempt.transaction_id, attempt.failure_reason or "declined"
            ),
            outcome_unknown=outcome_unknown,
        )

    @staticmethod
    def _reconciliation(
        attempt: PaymentAttempt, stage: str, cause: BaseException
    ) -> ReconciliationError:
        error = ReconciliationError(attempt.reservation_id, attempt.transaction_id, stage, cause)
        reconciliation_logger.critical(error.message, extra={"details": error.details})
        return error
