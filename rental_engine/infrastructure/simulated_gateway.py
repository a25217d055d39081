"""Payment gateway stand-ins for development and tests."""

from __future__ import annotations

import asyncio
import random
import uuid
from collections.abc import Iterable
from decimal import Decimal

from ..domain.models import GatewayChargeResult
from ..domain.value_objects import PaymentDetails, PaymentMethod
from ..ports.payment_gateway import PaymentGatewayPort


def _transaction_id() -> str:
    return f"trx-{uuid.uuid4().hex[:16]}"


class SimulatedPaymentGateway(PaymentGatewayPort):
    """Gateway that succeeds with a fixed probability after a short delay.

    Pass a seeded ``random.Random`` for reproducible runs.
    """

    def __init__(
        self,
        success_rate: float = 0.9,
        latency_seconds: float = 1.5,
        rng: random.Random | None = None,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        if latency_seconds < 0:
            raise ValueError("latency_seconds cannot be negative")
        self.success_rate = success_rate
        self.latency_seconds = latency_seconds
        self.rng = rng or random.Random()
        self.calls = 0

    async def charge(
        self,
        amount: Decimal,
        method: PaymentMethod,
        details: PaymentDetails | None,
        idempotency_key: str | None = None,
    ) -> GatewayChargeResult:
        self.calls += 1
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if self.rng.random() < self.success_rate:
            return GatewayChargeResult(success=True, transaction_id=_transaction_id())
        return GatewayChargeResult(
            success=False, transaction_id=_transaction_id(), reason="declined"
        )


class ScriptedPaymentGateway(PaymentGatewayPort):
    """Gateway that replays a fixed sequence of outcomes (True = approve).

    Once the script is exhausted every further charge is approved.
    """

    def __init__(self, outcomes: Iterable[bool] = ()):
        self._outcomes = list(outcomes)
        self.charges: list[tuple[Decimal, PaymentMethod, str | None]] = []

    async def charge(
        self,
        amount: Decimal,
        method: PaymentMethod,
        details: PaymentDetails | None,
        idempotency_key: str | None = None,
    ) -> GatewayChargeResult:
        self.charges.append((amount, method, idempotency_key))
        approved = self._outcomes.pop(0) if self._outcomes else True
        return GatewayChargeResult(
            success=approved,
            transaction_id=_transaction_id(),
            reason=None if approved else "declined",
        )
