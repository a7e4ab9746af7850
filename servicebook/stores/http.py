"""Booking Store backed by the marketplace JSON API.

Only communication lives here: request building, payload normalisation
and error translation. Non-success responses are turned into the domain
error taxonomy via ``DomainError.from_payload``; transport failures become
``ExternalServiceError``.
"""

import logging
from typing import Any

import httpx

from servicebook.config import settings
from servicebook.core.exceptions import (
    ConcurrentModification,
    DomainError,
    ExternalServiceError,
    NotFoundError,
)
from servicebook.schemas.booking import Booking
from servicebook.schemas.coupon import Coupon
from servicebook.schemas.payment import Payment, PaymentStatus
from servicebook.schemas.property import (
    Department,
    OfferedService,
    Property,
    PropertyStatus,
    Specialist,
)
from servicebook.schemas.subscription import HostSubscription, SubscriptionPlan
from servicebook.stores.base import BookingStore, StoreBackend

logger = logging.getLogger(__name__)

SERVICE_NAME = "booking-store"


def _unwrap(payload: Any) -> Any:
    """Upstream wraps some responses as ``{"data": ...}``."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def _with_id(data: dict) -> dict:
    data = dict(data)
    if "id" not in data and "_id" in data:
        data["id"] = str(data["_id"])
    return data


def _rename(data: dict, mapping: dict[str, str]) -> dict:
    for source, target in mapping.items():
        if source in data and target not in data:
            data[target] = data.pop(source)
    return data


def property_from_payload(department: Department, data: dict) -> Property:
    """Map the upstream property shape (``company``, ``price``, ``price_xl``...)."""
    data = _with_id(data)
    cab_rates = None
    if Department(department) == Department.CAB:
        cab_rates = {
            # Economy falls back to the listed price
            "economy": data.get("price_economy", data.get("price")),
            "premium": data.get("price_premium"),
            "xl": data.get("price_xl"),
        }
    return Property(
        id=str(data["id"]),
        department=department,
        host_id=str(data.get("hostId") or data.get("host_id") or data.get("owner") or ""),
        name=data.get("name") or data.get("company") or "",
        base_price=data.get("price", data.get("basePrice")),
        status=data.get("status") or PropertyStatus.ACTIVE,
        cab_rates=cab_rates,
    )


def coupon_from_payload(data: dict) -> Coupon:
    data = _rename(
        _with_id(data),
        {"propertyType": "propertyDepartment", "couponCode": "code"},
    )
    discount_type = data.get("discountType") or data.get("discount_type")
    if isinstance(discount_type, str):
        data["discountType"] = discount_type.strip().capitalize()
        data.pop("discount_type", None)
    if not data.get("propertyDepartment"):
        data.pop("propertyDepartment", None)
    return Coupon.model_validate(data)


def payment_from_payload(data: dict) -> Payment:
    data = _rename(
        _with_id(data),
        {
            "paymentStatus": "status",
            "paymentMethod": "method",
            "transactionId": "transactionReference",
            "receiptUrl": "receiptReference",
            "createdAt": "submittedAt",
        },
    )
    return Payment.model_validate(data)


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


class HttpBookingStore(BookingStore):
    """Booking store talking to the upstream REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.upstream_api_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def backend(self) -> StoreBackend:
        return StoreBackend.HTTP

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        missing_ok: bool = False,
        conflict: tuple[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Args:
            method: HTTP method
            path: Path relative to the upstream base URL
            json: Request body
            params: Query parameters
            missing_ok: Return None on 404 instead of raising
            conflict: ``(resource, id)`` to report a 409 as ConcurrentModification

        Raises:
            DomainError: Translated upstream error
            ExternalServiceError: Transport failure
        """
        try:
            response = await self.http_client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error(f"{method} {path} failed: {exc!r}")
            raise ExternalServiceError(SERVICE_NAME, str(exc) or type(exc).__name__) from exc

        if response.status_code == httpx.codes.NOT_FOUND and missing_ok:
            return None
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            logger.error(f"{method} {path} returned {response.status_code}: {payload}")
            if response.status_code == httpx.codes.CONFLICT and conflict:
                raise ConcurrentModification(*conflict)
            raise DomainError.from_payload(response.status_code, payload)

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return _unwrap(response.json())

    # Properties

    async def get_property(self, department: Department, property_id: str) -> Property | None:
        department = Department(department)
        data = await self._request(
            "GET", f"/properties/{department.value.lower()}/{property_id}", missing_ok=True
        )
        return property_from_payload(department, data) if data else None

    async def count_host_properties(self, host_id: str) -> int:
        data = await self._request("GET", f"/host/{host_id}/properties", missing_ok=True)
        if isinstance(data, dict):
            # Grouped by department: {"hotels": [...], "cabs": [...]}
            return sum(len(items) for items in data.values() if isinstance(items, list))
        return len(data or [])

    async def update_property_status(
        self,
        department: Department,
        property_id: str,
        status: PropertyStatus,
    ) -> Property:
        department = Department(department)
        data = await self._request(
            "PUT",
            f"/properties/{department.value.lower()}/{property_id}/status",
            json={"status": PropertyStatus(status).value},
        )
        if not data:
            prop = await self.get_property(department, property_id)
            if prop is None:
                raise NotFoundError("Property", property_id)
            return prop
        return property_from_payload(department, data)

    async def list_specialists(self, property_id: str) -> list[Specialist]:
        data = await self._request("GET", f"/specialists/property/{property_id}", missing_ok=True)
        return [Specialist.model_validate(_with_id(item)) for item in data or []]

    async def list_services(self, property_id: str) -> list[OfferedService]:
        data = await self._request("GET", f"/offered-services/property/{property_id}", missing_ok=True)
        return [OfferedService.model_validate(_with_id(item)) for item in data or []]

    # Coupons

    async def get_coupon(self, code: str) -> Coupon | None:
        data = await self._request("GET", "/coupons", params={"code": code}, missing_ok=True)
        if isinstance(data, dict):
            data = [data]
        for item in data or []:
            coupon = coupon_from_payload(item)
            # Upstream search is case-insensitive, codes are not
            if coupon.code == code:
                return coupon
        return None

    async def list_coupons(self, user_id: str | None = None) -> list[Coupon]:
        params = {"userId": user_id} if user_id else None
        data = await self._request("GET", "/coupons", params=params, missing_ok=True)
        return [coupon_from_payload(item) for item in data or []]

    # Bookings

    async def create_booking(self, booking: Booking) -> Booking:
        data = await self._request(
            "POST", f"/bookings/{booking.department.value.lower()}", json=_dump(booking)
        )
        return Booking.model_validate(_with_id(data)) if data else booking

    async def get_booking(self, booking_id: str) -> Booking | None:
        data = await self._request("GET", f"/bookings/{booking_id}", missing_ok=True)
        return Booking.model_validate(_with_id(data)) if data else None

    async def update_booking(self, booking: Booking, expected_version: int) -> Booking:
        body = _dump(booking) | {"expectedVersion": expected_version, "version": expected_version + 1}
        data = await self._request(
            "PUT",
            f"/bookings/{booking.department.value.lower()}/{booking.id}/status",
            json=body,
            conflict=("Booking", booking.id),
        )
        if data:
            return Booking.model_validate(_with_id(data))
        return booking.model_copy(update={"version": expected_version + 1})

    # Payments

    async def get_payment(self, booking_id: str) -> Payment | None:
        data = await self._request("GET", f"/bookings/{booking_id}/payment", missing_ok=True)
        return payment_from_payload(data) if data else None

    async def save_payment(self, payment: Payment, expected_version: int) -> Payment:
        data = await self._request(
            "POST",
            f"/bookings/{payment.booking_id}/payment",
            json=_dump(payment) | {"expectedVersion": expected_version},
            conflict=("Booking", payment.booking_id),
        )
        return payment_from_payload(data) if data else payment

    async def save_payment_decision(
        self,
        payment: Payment,
        booking: Booking,
        expected_version: int,
    ) -> tuple[Payment, Booking]:
        action = "verify" if payment.status == PaymentStatus.VERIFIED else "reject"
        stored_booking = booking.model_copy(update={"version": expected_version + 1})
        data = await self._request(
            "PUT",
            f"/bookings/{booking.id}/payment/{action}",
            json={
                "payment": _dump(payment),
                "booking": _dump(stored_booking),
                "expectedVersion": expected_version,
            },
            conflict=("Booking", booking.id),
        )
        if isinstance(data, dict) and "payment" in data and "booking" in data:
            return (
                payment_from_payload(data["payment"]),
                Booking.model_validate(_with_id(data["booking"])),
            )
        return payment, stored_booking

    # Subscriptions

    async def get_host_subscription(self, host_id: str) -> HostSubscription | None:
        data = await self._request("GET", f"/host/{host_id}/subscription", missing_ok=True)
        if not data:
            return None
        return HostSubscription.model_validate({"host_id": host_id} | data)

    async def save_host_subscription(self, subscription: HostSubscription) -> HostSubscription:
        data = await self._request(
            "PUT",
            f"/host/{subscription.host_id}/subscription",
            json=subscription.model_dump(mode="json"),
        )
        if not data:
            return subscription
        return HostSubscription.model_validate({"host_id": subscription.host_id} | data)

    async def get_plan(self, plan_id: str) -> SubscriptionPlan | None:
        data = await self._request("GET", f"/subscriptions/{plan_id}", missing_ok=True)
        return SubscriptionPlan.model_validate(_with_id(data)) if data else None
