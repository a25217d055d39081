"""Tests for the development payment gateways."""

import random
from decimal import Decimal

import pytest

from rental_engine.domain.value_objects import PaymentMethod
from rental_engine.infrastructure.simulated_gateway import (
    ScriptedPaymentGateway,
    SimulatedPaymentGateway,
)


class TestSimulatedPaymentGateway:
    """Test cases for SimulatedPaymentGateway."""

    @pytest.mark.asyncio
    async def test_always_approves_at_full_rate(self):
        """Test a success rate of one."""
        gateway = SimulatedPaymentGateway(success_rate=1.0, latency_seconds=0)

        result = await gateway.charge(Decimal("10"), PaymentMethod.CASH, None)

        assert result.success
        assert result.transaction_id.startswith("trx-")
        assert gateway.calls == 1

    @pytest.mark.asyncio
    async def test_always_declines_at_zero_rate(self):
        """Test a success rate of zero."""
        gateway = SimulatedPaymentGateway(success_rate=0.0, latency_seconds=0)

        result = await gateway.charge(Decimal("10"), PaymentMethod.CASH, None)

        assert not result.success
        assert result.reason == "declined"

    @pytest.mark.asyncio
    async def test_seeded_runs_repeat(self):
        """Test a seeded generator gives reproducible outcomes."""
        outcomes = []
        for _ in range(2):
            gateway = SimulatedPaymentGateway(latency_seconds=0, rng=random.Random(42))
            results = [
                await gateway.charge(Decimal("10"), PaymentMethod.CASH, None) for _ in range(20)
            ]
            outcomes.append([r.success for r in results])

        assert outcomes[0] == outcomes[1]

    @pytest.mark.parametrize("kwargs", [{"success_rate": 1.5}, {"latency_seconds": -1}])
    def test_invalid_settings(self, kwargs):
        """Test out-of-range settings."""
        with pytest.raises(ValueError):
            SimulatedPaymentGateway(**kwargs)


class TestScriptedPaymentGateway:
    """Test cases for ScriptedPaymentGateway."""

    @pytest.mark.asyncio
    async def test_replays_script_then_approves(self):
        """Test outcomes follow the script and default to approval."""
        gateway = ScriptedPaymentGateway([False, True])

        results = [
            await gateway.charge(Decimal("10"), PaymentMethod.CASH, None, idempotency_key=f"k{i}")
            for i in range(3)
        ]

        assert [r.success for r in results] == [False, True, True]
        assert [key for _, _, key in gateway.charges] == ["k0", "k1", "k2"]
