"""REST adapter for the content-management backend.

Implements RentalDataPort over the CMS's JSON API with httpx. Transport
problems and error statuses become ``UpstreamUnavailable`` (or its not-found /
access-denied subclasses); payloads are normalized by the translators.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..crossdomain.translators import (
    STATUS_TO_CMS,
    CarTranslator,
    PaymentTranslator,
    ReservationTranslator,
    unwrap,
)
from ..domain.exceptions import (
    BookingConflict,
    InvalidTransition,
    RentalEngineError,
    ReservationNotFound,
    UpstreamAccessDenied,
    UpstreamNotFound,
    UpstreamUnavailable,
)
from ..domain.models import Car, NewReservation, PaymentAttempt, PaymentRecord, Reservation
from ..domain.value_objects import (
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    SessionContext,
)
from ..ports.data_access import RentalDataPort
from .config import EngineConfig

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
_POPULATE = "user,car"


class CmsRentalDataAdapter(RentalDataPort):
    """RentalDataPort backed by the CMS REST API."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize with config and an optional preconfigured client.

        Args:
            config: Engine configuration (base URL, timeouts, default price)
            client: httpx client to use; one is created when omitted
        """
        self.config = config or EngineConfig()
        self.base_url = self.config.cms_base_url
        self.client = client or httpx.AsyncClient(timeout=self.config.upstream_timeout_seconds)
        self._owns_client = client is None
        self.reservations = ReservationTranslator()
        self.cars = CarTranslator(self.config.default_daily_price)
        self.payments = PaymentTranslator()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> CmsRentalDataAdapter:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch_reservations_for_car(
        self, context: SessionContext, car_id: str, exclude_cancelled: bool = True
    ) -> list[Reservation]:
        params = {"filters[car][id][$eq]": car_id, "populate": _POPULATE}
        if exclude_cancelled:
            params["filters[status][$ne]"] = STATUS_TO_CMS[ReservationStatus.CANCELLED]
        items = await self._get_all(context, "/reservations", params, "fetch_reservations_for_car")
        reservations = self._translate_rows(items, "fetch_reservations_for_car")
        if exclude_cancelled:
            # The filter is applied again locally in case the backend ignores it
            reservations = [r for r in reservations if r.status != ReservationStatus.CANCELLED]
        return reservations

    async def fetch_reservation(
        self, context: SessionContext, reservation_id: str
    ) -> Reservation | None:
        try:
            body = await self._request(
                context,
                "GET",
                f"/reservations/{reservation_id}",
                "fetch_reservation",
                params={"populate": _POPULATE},
            )
        except UpstreamNotFound:
            return None
        item = body.get("data")
        if not item:
            return None
        return self._translate(self.reservations.translate, item)

    async def fetch_reservations_for_user(
        self, context: SessionContext, user_id: str
    ) -> list[Reservation]:
        params = {"filters[user][id][$eq]": user_id, "populate": _POPULATE}
        items = await self._get_all(
            context, "/reservations", params, "fetch_reservations_for_user"
        )
        return self._translate_rows(items, "fetch_reservations_for_user")

    async def fetch_car(self, context: SessionContext, car_id: str) -> Car | None:
        try:
            body = await self._request(context, "GET", f"/cars/{car_id}", "fetch_car")
        except UpstreamNotFound:
            return None
        item = body.get("data")
        if not item:
            return None
        return self._translate(self.cars.translate, item)

    async def create_reservation(
        self, context: SessionContext, fields: NewReservation
    ) -> Reservation:
        try:
            body = await self._request(
                context,
                "POST",
                "/reservations",
                "create_reservation",
                json=self.reservations.reverse_translate(fields),
                params={"populate": _POPULATE},
            )
        except UpstreamUnavailable as e:
            if e.status_code == 409:
                raise BookingConflict(fields.car_id) from e
            raise
        return self._translate(self.reservations.translate, body["data"])

    async def update_reservation_status(
        self,
        context: SessionContext,
        reservation_id: str,
        status: ReservationStatus,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        expected_status: ReservationStatus | None = None,
    ) -> Reservation:
        params = {"populate": _POPULATE}
        if expected_status is not None:
            current = await self.fetch_reservation(context, reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            if current.status != expected_status:
                raise InvalidTransition(
                    reservation_id, current.status.value, f"set_status:{status.value}"
                )
            # Backends that enforce the precondition answer 409 on a lost race
            params["filters[status][$eq]"] = STATUS_TO_CMS[expected_status]

        try:
            body = await self._request(
                context,
                "PUT",
                f"/reservations/{reservation_id}",
                "update_reservation_status",
                json=self.reservations.status_update(status, payment_status, payment_method),
                params=params,
            )
        except UpstreamNotFound as e:
            raise ReservationNotFound(reservation_id) from e
        except UpstreamUnavailable as e:
            if e.status_code == 409:
                raise InvalidTransition(
                    reservation_id, "changed concurrently", f"set_status:{status.value}"
                ) from e
            raise
        return self._translate(self.reservations.translate, body["data"])

    async def record_payment(
        self, context: SessionContext, attempt: PaymentAttempt
    ) -> PaymentRecord:
        payload = self.payments.reverse_translate(attempt)
        body = await self._request(context, "POST", "/payments", "record_payment", json=payload)
        # Backends may echo only the new id; fill the rest from what was sent
        record_id, stored = unwrap(body.get("data") or {})
        entry = {"id": record_id, "attributes": {**payload["data"], **stored}}
        return self._translate(self.payments.translate, entry)

    async def _get_all(
        self,
        context: SessionContext,
        path: str,
        params: dict[str, str],
        operation: str,
    ) -> list[dict[str, Any]]:
        """Follow the CMS's page-based pagination and return every entry."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            page_params = {
                **params,
                "pagination[page]": str(page),
                "pagination[pageSize]": str(PAGE_SIZE),
            }
            body = await self._request(context, "GET", path, operation, params=page_params)
            items.extend(body.get("data") or [])

            pagination = (body.get("meta") or {}).get("pagination") or {}
            page_count = int(pagination.get("pageCount", 1) or 1)
            if page >= page_count:
                return items
            page += 1

    async def _request(
        self,
        context: SessionContext,
        method: str,
        path: str,
        operation: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(
                method, url, headers=context.auth_header(), **kwargs
            )
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"{operation} timed out", operation=operation) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(
                f"{operation} failed: {e.__class__.__name__}", operation=operation
            ) from e

        if response.status_code == 404:
            raise UpstreamNotFound(operation)
        if response.status_code == 403:
            raise UpstreamAccessDenied(operation)
        if response.status_code >= 400:
            logger.error(f"{operation} returned {response.status_code}: {response.text[:200]}")
            raise UpstreamUnavailable(
                f"{operation} returned HTTP {response.status_code}",
                operation=operation,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(
                f"{operation} returned a non-JSON body", operation=operation
            ) from e

    @staticmethod
    def _translate(translate: Any, item: dict[str, Any]) -> Any:
        try:
            return translate(item)
        except (KeyError, TypeError, ValueError, RentalEngineError) as e:
            raise UpstreamUnavailable(f"Malformed backend entry: {e}") from e

    def _translate_rows(self, items: list[dict[str, Any]], operation: str) -> list[Reservation]:
        """Translate list entries one by one, skipping rows that cannot be read."""
        reservations = []
        for item in items:
            try:
                reservations.append(self.reservations.translate(item))
            except (KeyError, TypeError, ValueError, RentalEngineError) as e:
                logger.error(
                    f"{operation}: skipping malformed entry {(item or {}).get('id')!r}: {e}"
                )
        return reservations
