"""Infrastructure layer - adapters for the CMS, payment gateway, config and logging."""

from .cms_adapter import CmsRentalDataAdapter
from .config import EngineConfig
from .factories import create_engine
from .in_memory_store import InMemoryRentalStore
from .logging_config import setup_logging
from .simulated_gateway import ScriptedPaymentGateway, SimulatedPaymentGateway
from .system_clock import SystemClock

__all__ = [
    "CmsRentalDataAdapter",
    "EngineConfig",
    "InMemoryRentalStore",
    "ScriptedPaymentGateway",
    "SimulatedPaymentGateway",
    "SystemClock",
    "create_engine",
    "setup_logging",
]
