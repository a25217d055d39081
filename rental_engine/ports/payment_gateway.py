"""Payment gateway port."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ..domain.models import GatewayChargeResult
from ..domain.value_objects import PaymentDetails, PaymentMethod


class PaymentGatewayPort(ABC):
    """Capability to charge a customer.

    Implementations return exactly one result per call. Declines are results,
    not exceptions; an exception means the outcome is unknown.
    """

    @abstractmethod
    async def charge(
        self,
        amount: Decimal,
        method: PaymentMethod,
        details: PaymentDetails | None,
        idempotency_key: str | None = None,
    ) -> GatewayChargeResult:
        """Charge ``amount`` using ``method``."""
        ...
