"""Rental price calculation.

Pure functions of their inputs: no lookups, no defaults for missing car data.
A car without a usable daily price is an error here; any fallback belongs to
the adapter that loaded the car.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidCar
from .interval import DateInterval, duration_days
from .models import Car
from .value_objects import BookingOptions


class AddOnRates(BaseModel):
    """Per-day surcharges for optional extras."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    driver_per_day: Decimal = Field(default=Decimal("100"), ge=0)
    child_seat_per_day: Decimal = Field(default=Decimal("10"), ge=0)
    gps_per_day: Decimal = Field(default=Decimal("15"), ge=0)


class PriceQuote(BaseModel):
    """Itemized price for a rental."""

    model_config = ConfigDict(frozen=True)

    car_id: str
    days: int = Field(..., ge=1)
    daily_price: Decimal
    base: Decimal
    driver: Decimal = Decimal("0")
    child_seat: Decimal = Decimal("0")
    gps: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.base + self.driver + self.child_seat + self.gps

    def lines(self) -> list[tuple[str, Decimal]]:
        """Non-zero line items in display order."""
        items = [
            ("base", self.base),
            ("driver", self.driver),
            ("child_seat", self.child_seat),
            ("gps", self.gps),
        ]
        return [(name, amount) for name, amount in items if amount]


class PricingCalculator:
    """Computes rental totals from a car's daily rate and the chosen extras."""

    def __init__(self, rates: AddOnRates | None = None):
        self.rates = rates or AddOnRates()

    def quote(
        self,
        car: Car,
        interval: DateInterval,
        options: BookingOptions | None = None,
    ) -> PriceQuote:
        options = options or BookingOptions()
        daily_price = self._daily_price(car)
        days = duration_days(interval)

        return PriceQuote(
            car_id=car.id,
            days=days,
            daily_price=daily_price,
            base=daily_price * days,
            driver=self.rates.driver_per_day * days if options.with_driver else Decimal("0"),
            child_seat=(
                self.rates.child_seat_per_day * days if options.with_child_seat else Decimal("0")
            ),
            gps=self.rates.gps_per_day * days if options.with_gps else Decimal("0"),
        )

    def compute_price(
        self,
        car: Car,
        interval: DateInterval,
        options: BookingOptions | None = None,
    ) -> Decimal:
        """Total price for renting ``car`` over ``interval`` with ``options``."""
        return self.quote(car, interval, options).total

    @staticmethod
    def _daily_price(car: Car) -> Decimal:
        if car.daily_price is None:
            raise InvalidCar(f"Car {car.id} has no daily price", car_id=car.id)
        if car.daily_price <= 0:
            raise InvalidCar(
                f"Car {car.id} has non-positive daily price {car.daily_price}", car_id=car.id
            )
        return car.daily_price
