"""Factories wiring infrastructure adapters into a RentalEngine."""

from __future__ import annotations

from ..application.service import RentalEngine
from ..ports.clock import ClockPort
from ..ports.data_access import RentalDataPort
from ..ports.payment_gateway import PaymentGatewayPort
from .cms_adapter import CmsRentalDataAdapter
from .config import EngineConfig
from .simulated_gateway import SimulatedPaymentGateway
from .system_clock import SystemClock


def create_engine(
    config: EngineConfig | None = None,
    data: RentalDataPort | None = None,
    gateway: PaymentGatewayPort | None = None,
    clock: ClockPort | None = None,
) -> RentalEngine:
    """Build a RentalEngine from config, defaulting to the CMS adapter.

    Args:
        config: Engine configuration; read from the environment when omitted
        data: Data port; a CmsRentalDataAdapter when omitted
        gateway: Payment gateway; the simulated gateway when omitted
        clock: Clock; system UTC clock when omitted
    """
    config = config or EngineConfig.from_env()
    return RentalEngine(
        data=data or CmsRentalDataAdapter(config),
        gateway=gateway or SimulatedPaymentGateway(),
        clock=clock or SystemClock(),
        rates=config.pricing,
        upstream_timeout=config.upstream_timeout_seconds,
        gateway_timeout=config.gateway_timeout_seconds,
        permissive_availability_reads=config.permissive_availability_reads,
    )
