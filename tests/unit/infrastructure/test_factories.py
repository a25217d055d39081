"""Tests for engine factories."""

from rental_engine.application.service import RentalEngine
from rental_engine.infrastructure.cms_adapter import CmsRentalDataAdapter
from rental_engine.infrastructure.config import EngineConfig
from rental_engine.infrastructure.factories import create_engine
from rental_engine.infrastructure.simulated_gateway import ScriptedPaymentGateway


class TestCreateEngine:
    """Test cases for create_engine."""

    def test_defaults_to_cms_adapter(self):
        """Test the CMS adapter is used when no data port is given."""
        config = EngineConfig(cms_base_url="http://cms.test/api", upstream_timeout_seconds=3)

        engine = create_engine(config)

        assert isinstance(engine, RentalEngine)
        assert isinstance(engine.availability.data, CmsRentalDataAdapter)
        assert engine.availability.timeout == 3
        assert engine.payments.gateway_timeout == 30.0

    def test_injected_ports(self, store):
        """Test explicit ports and settings are wired through."""
        gateway = ScriptedPaymentGateway()
        config = EngineConfig(permissive_availability_reads=False, gateway_timeout_seconds=5)

        engine = create_engine(config, data=store, gateway=gateway)

        assert engine.availability.data is store
        assert engine.availability.permissive_reads is False
        assert engine.payments.gateway is gateway
        assert engine.payments.gateway_timeout == 5
