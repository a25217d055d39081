"""Command line interface for the reservation engine."""

from __future__ import annotations

import asyncio
import random
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import click
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..application.dto import BookingRequest
from ..application.service import RentalEngine
from ..domain.exceptions import (
    InvalidInterval,
    InvalidPaymentDetails,
    ReconciliationError,
    RentalEngineError,
)
from ..domain.interval import DateInterval
from ..domain.models import AvailabilityResult, PaymentResult, Reservation
from ..domain.pricing import PriceQuote
from ..domain.state_machine import Actor
from ..domain.value_objects import (
    BankDetails,
    BookingOptions,
    CardDetails,
    PaymentDetails,
    PaymentMethod,
    SessionContext,
)
from ..infrastructure.cms_adapter import CmsRentalDataAdapter
from ..infrastructure.config import EngineConfig
from ..infrastructure.factories import create_engine
from ..infrastructure.in_memory_store import InMemoryRentalStore
from ..infrastructure.logging_config import setup_logging
from ..infrastructure.simulated_gateway import SimulatedPaymentGateway
from ..ports.data_access import RentalDataPort

T = TypeVar("T")

EXIT_BUSINESS_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_RECONCILIATION = 3

console = Console()

DATE = click.DateTime(formats=["%Y-%m-%d"])
METHOD_CHOICES = [m.value for m in PaymentMethod]


class CliState:
    """Settings shared by all commands of one invocation."""

    def __init__(
        self,
        config: EngineConfig,
        context: SessionContext,
        fixtures: dict[str, Any] | None,
        success_rate: float,
        seed: int | None,
    ):
        self.config = config
        self.context = context
        self.fixtures = fixtures
        self.success_rate = success_rate
        self.seed = seed

    def make_data(self) -> RentalDataPort:
        if self.fixtures is not None:
            return InMemoryRentalStore.from_fixtures(self.fixtures)
        return CmsRentalDataAdapter(self.config)

    def make_gateway(self) -> SimulatedPaymentGateway:
        rng = random.Random(self.seed) if self.seed is not None else None
        return SimulatedPaymentGateway(
            success_rate=self.success_rate, latency_seconds=0.0, rng=rng
        )


def load_fixtures(path: str | Path) -> dict[str, Any]:
    content = Path(path).read_text()
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise click.BadParameter(f"Fixture file {path} must contain a mapping")
    return data


def run_with_engine(
    state: CliState, action: Callable[[RentalEngine, SessionContext], Awaitable[T]]
) -> T:
    """Run ``action`` against a freshly built engine, mapping errors to exit codes."""

    async def _execute() -> T:
        data = state.make_data()
        try:
            engine = create_engine(state.config, data=data, gateway=state.make_gateway())
            return await action(engine, state.context)
        finally:
            if isinstance(data, CmsRentalDataAdapter):
                await data.close()

    try:
        return asyncio.run(_execute())
    except ReconciliationError as e:
        console.print(
            Panel(
                f"[bold red]{e.message}[/bold red]\n"
                f"Transaction: {e.transaction_id}\n"
                "The charge went through; the booking record needs manual reconciliation.",
                title="Reconciliation required",
                style="red",
            )
        )
        sys.exit(EXIT_RECONCILIATION)
    except InvalidPaymentDetails as e:
        console.print(f"[red]✗ {e.message}[/red]")
        for field, reason in sorted(e.field_errors.items()):
            console.print(f"  • {field}: {reason}")
        sys.exit(EXIT_INVALID_INPUT)
    except InvalidInterval as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(EXIT_INVALID_INPUT)
    except RentalEngineError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(EXIT_BUSINESS_ERROR)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]✗ Invalid input: {e}[/red]")
        sys.exit(EXIT_INVALID_INPUT)


def make_interval(start: datetime, end: datetime) -> DateInterval:
    return DateInterval.between(start.date(), end.date())


def render_reservation(reservation: Reservation, title: str = "Reservation") -> None:
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("ID", reservation.id)
    table.add_row("Car", reservation.car_id)
    table.add_row("User", reservation.user_id or "-")
    table.add_row("Dates", str(reservation.interval))
    table.add_row("Total", str(reservation.total_price))
    table.add_row("Status", reservation.status.value)
    table.add_row("Payment", reservation.payment_status.value)
    extras = [
        name
        for name, enabled in (
            ("driver", reservation.with_driver),
            ("child seat", reservation.with_child_seat),
            ("GPS", reservation.with_gps),
        )
        if enabled
    ]
    table.add_row("Extras", ", ".join(extras) or "-")
    console.print(table)


def render_quote(quote: PriceQuote) -> None:
    table = Table(title=f"Quote for car {quote.car_id}", box=box.ROUNDED)
    table.add_column("Item", style="bold")
    table.add_column("Amount", justify="right")
    for name, amount in quote.lines():
        table.add_row(name, str(amount))
    table.add_row("[bold]total[/bold]", f"[bold]{quote.total}[/bold]")
    console.print(table)
    console.print(f"{quote.days} day(s) at {quote.daily_price}/day")


def render_availability(result: AvailabilityResult) -> None:
    if result.available:
        message = f"[green]✓ Car {result.car_id} is available for {result.interval}[/green]"
        if result.degraded:
            message += f"\n[yellow]⚠ {result.warning}[/yellow]"
    else:
        message = (
            f"[red]✗ Car {result.car_id} is booked for {result.interval}[/red]\n"
            f"Conflicting reservations: {', '.join(result.conflict_ids)}"
        )
    console.print(Panel(message, style="bold"))


def render_payment(result: PaymentResult) -> None:
    if result.success:
        title = "[green]✓ Payment succeeded[/green]"
    elif result.outcome_unknown:
        title = "[yellow]⚠ Payment outcome unknown - do not retry before checking[/yellow]"
    else:
        title = "[red]✗ Payment declined[/red]"
    lines = [title, f"Transaction: {result.transaction_id}", f"Amount: {result.amount}"]
    if result.error is not None:
        lines.append(result.error.message)
    console.print(Panel("\n".join(lines), style="bold"))
    render_reservation(result.reservation)


@click.group()
@click.option("--token", envvar="RENTAL_API_TOKEN", default="anonymous", show_default=True,
              help="Bearer token for the backend API")
@click.option("--user", "user_id", envvar="RENTAL_USER_ID", help="Acting user id")
@click.option("--fixtures", type=click.Path(exists=True, dir_okay=False),
              help="Use an in-memory backend seeded from a YAML file")
@click.option("--env-file", type=click.Path(exists=True, dir_okay=False),
              help="Load settings from a .env file")
@click.option("--success-rate", type=click.FloatRange(0.0, 1.0), default=0.9,
              show_default=True, help="Approval probability of the simulated gateway")
@click.option("--seed", type=int, help="Seed for the simulated gateway")
@click.option("--log-level", help="Override the configured log level")
@click.pass_context
def cli(
    ctx: click.Context,
    token: str,
    user_id: str | None,
    fixtures: str | None,
    env_file: str | None,
    success_rate: float,
    seed: int | None,
    log_level: str | None,
) -> None:
    """Car rental reservation engine: availability, pricing, booking and payment."""
    try:
        config = EngineConfig.from_env(env_file)
        if log_level:
            config.log_level = log_level
        context = SessionContext(token=token, user_id=user_id)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    setup_logging(config.log_level)
    ctx.obj = CliState(
        config=config,
        context=context,
        fixtures=load_fixtures(fixtures) if fixtures else None,
        success_rate=success_rate,
        seed=seed,
    )


def booking_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--gps", is_flag=True, help="Add a GPS unit")(func)
    func = click.option("--child-seat", is_flag=True, help="Add a child seat")(func)
    func = click.option("--driver", is_flag=True, help="Add a driver")(func)
    return func


@cli.command()
@click.argument("car_id")
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@booking_options
@click.pass_obj
def quote(
    state: CliState,
    car_id: str,
    start: datetime,
    end: datetime,
    driver: bool,
    child_seat: bool,
    gps: bool,
) -> None:
    """Price a rental without booking it."""
    options = BookingOptions(with_driver=driver, with_child_seat=child_seat, with_gps=gps)
    result = run_with_engine(
        state, lambda engine, ctx: engine.quote(ctx, car_id, make_interval(start, end), options)
    )
    render_quote(result)


@cli.command()
@click.argument("car_id")
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.pass_obj
def availability(state: CliState, car_id: str, start: datetime, end: datetime) -> None:
    """Check whether a car is free for the given dates."""
    result = run_with_engine(
        state,
        lambda engine, ctx: engine.check_availability(ctx, car_id, make_interval(start, end)),
    )
    render_availability(result)


@cli.command()
@click.argument("car_id")
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@booking_options
@click.pass_obj
def book(
    state: CliState,
    car_id: str,
    start: datetime,
    end: datetime,
    driver: bool,
    child_seat: bool,
    gps: bool,
) -> None:
    """Create a pending reservation."""

    async def action(engine: RentalEngine, ctx: SessionContext) -> Reservation:
        request = BookingRequest(
            car_id=car_id,
            interval=make_interval(start, end),
            options=BookingOptions(with_driver=driver, with_child_seat=child_seat, with_gps=gps),
        )
        return await engine.book_car(ctx, request)

    reservation = run_with_engine(state, action)
    render_reservation(reservation, title="Reservation created")


def build_payment_details(
    method: PaymentMethod,
    card_number: str | None,
    expiry: str | None,
    cvv: str | None,
    holder: str | None,
    paypal_email: str | None,
    account_number: str | None,
    bank_name: str | None,
) -> PaymentDetails | None:
    if method == PaymentMethod.CREDIT_CARD:
        return PaymentDetails(
            card=CardDetails(
                card_number=card_number or "",
                expiry_date=expiry or "",
                cvv=cvv or "",
                cardholder_name=holder,
            )
        )
    if method == PaymentMethod.PAYPAL:
        return PaymentDetails(paypal_email=paypal_email)
    if method == PaymentMethod.BANK_TRANSFER:
        return PaymentDetails(
            bank=BankDetails(account_number=account_number or "", bank_name=bank_name or "")
        )
    return None


@cli.command()
@click.argument("reservation_id")
@click.option("--method", type=click.Choice(METHOD_CHOICES), default="credit_card",
              show_default=True)
@click.option("--card-number")
@click.option("--expiry", help="Card expiry as MM/YY")
@click.option("--cvv")
@click.option("--holder", help="Cardholder name")
@click.option("--paypal-email")
@click.option("--account-number")
@click.option("--bank-name")
@click.option("--idempotency-key")
@click.option("--abandon-on-decline", is_flag=True, help="Cancel the booking if declined")
@click.pass_obj
def pay(
    state: CliState,
    reservation_id: str,
    method: str,
    card_number: str | None,
    expiry: str | None,
    cvv: str | None,
    holder: str | None,
    paypal_email: str | None,
    account_number: str | None,
    bank_name: str | None,
    idempotency_key: str | None,
    abandon_on_decline: bool,
) -> None:
    """Pay for a pending reservation."""
    payment_method = PaymentMethod(method)
    details = build_payment_details(
        payment_method, card_number, expiry, cvv, holder, paypal_email, account_number, bank_name
    )
    result = run_with_engine(
        state,
        lambda engine, ctx: engine.pay(
            ctx,
            reservation_id,
            payment_method,
            details,
            idempotency_key=idempotency_key,
            abandon_on_decline=abandon_on_decline,
        ),
    )
    render_payment(result)
    if not result.success:
        sys.exit(EXIT_BUSINESS_ERROR)


@cli.command()
@click.argument("reservation_id")
@click.option("--as-admin", is_flag=True, help="Cancel on behalf of an administrator")
@click.pass_obj
def cancel(state: CliState, reservation_id: str, as_admin: bool) -> None:
    """Cancel a pending or confirmed reservation."""
    actor = Actor.ADMIN if as_admin else Actor.CUSTOMER
    reservation = run_with_engine(
        state, lambda engine, ctx: engine.cancel(ctx, reservation_id, actor)
    )
    render_reservation(reservation, title="Reservation cancelled")


@cli.command()
@click.argument("reservation_id")
@click.pass_obj
def complete(state: CliState, reservation_id: str) -> None:
    """Mark a confirmed reservation as completed."""
    reservation = run_with_engine(
        state, lambda engine, ctx: engine.complete(ctx, reservation_id, Actor.ADMIN)
    )
    render_reservation(reservation, title="Reservation completed")


@cli.command()
def methods() -> None:
    """List the payment methods offered at checkout."""
    table = Table(title="Payment methods", box=box.ROUNDED)
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Description")
    for method in RentalEngine.payment_methods():
        table.add_row(method["id"], method["name"], method["description"])
    console.print(table)


@cli.command()
@click.argument("car_id")
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@booking_options
@click.option("--card-number", default="4242 4242 4242 4242", show_default=True)
@click.option("--expiry", default="12/30", show_default=True)
@click.option("--cvv", default="123", show_default=True)
@click.pass_obj
def simulate(
    state: CliState,
    car_id: str,
    start: datetime,
    end: datetime,
    driver: bool,
    child_seat: bool,
    gps: bool,
    card_number: str,
    expiry: str,
    cvv: str,
) -> None:
    """Book and pay in one run (use with --fixtures for an offline demo)."""

    async def action(engine: RentalEngine, ctx: SessionContext) -> PaymentResult:
        reservation = await engine.book_car(
            ctx,
            BookingRequest(
                car_id=car_id,
                interval=make_interval(start, end),
                options=BookingOptions(
                    with_driver=driver, with_child_seat=child_seat, with_gps=gps
                ),
            ),
        )
        render_reservation(reservation, title="Reservation created")
        details = PaymentDetails(
            card=CardDetails(card_number=card_number, expiry_date=expiry, cvv=cvv)
        )
        return await engine.pay(ctx, reservation.id, PaymentMethod.CREDIT_CARD, details)

    result = run_with_engine(state, action)
    render_payment(result)
    if not result.success:
        sys.exit(EXIT_BUSINESS_ERROR)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
