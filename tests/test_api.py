from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from servicebook.api.deps import get_store
from servicebook.main import app

API = "/api/v1"

CUSTOMER = {"X-Actor-Id": "cust-1", "X-Actor-Role": "customer"}
HOST = {"X-Actor-Id": "host-1", "X-Actor-Role": "host"}
ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}

HOTEL_BOOKING = {
    "propertyId": "hotel-1",
    "details": {"department": "Hotel", "checkIn": "2025-06-10", "checkOut": "2025-06-12", "guests": 2},
}


@pytest.fixture
def client(store, trial_subscription):
    # Requests run against the wall clock, keep the host's trial running
    store.add_subscription(
        trial_subscription.model_copy(update={"trial_end_date": datetime.now(UTC) + timedelta(days=10)})
    )
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_booking(client: TestClient) -> dict:
    response = client.post(f"{API}/bookings", json=HOTEL_BOOKING, headers=CUSTOMER)
    assert response.status_code == 201
    return response.json()


@pytest.mark.api
class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "ServiceBook"


@pytest.mark.api
class TestPricingEndpoints:
    def test_quote_with_coupon(self, client):
        response = client.post(f"{API}/pricing/quote", json={**HOTEL_BOOKING, "couponCode": "SAVE20"})
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["discountAmount"]) == Decimal("200")
        assert Decimal(body["finalPrice"]) == Decimal("800")

    def test_quote_with_rejected_coupon(self, client):
        response = client.post(f"{API}/pricing/quote", json={**HOTEL_BOOKING, "couponCode": "PAUSED"})
        assert response.status_code == 400
        assert response.json()["kind"] == "Inactive"

    def test_coupon_check_uses_acting_customer(self, client):
        response = client.post(f"{API}/coupons/validate", json={"code": "VIP"}, headers=CUSTOMER)
        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is False
        assert body["reason"] == "NotApplicableToUser"

    def test_list_coupons(self, client):
        response = client.get(f"{API}/coupons", headers=CUSTOMER)
        assert response.status_code == 200
        codes = {c["code"] for c in response.json()}
        assert {"SAVE20", "FLAT150"} <= codes
        assert "VIP" not in codes
        assert "PAUSED" not in codes

    def test_coupon_check_success(self, client):
        response = client.post(
            f"{API}/coupons/validate",
            json={"code": "FLAT150", "amount": "1000"},
            headers=CUSTOMER,
        )
        body = response.json()
        assert body["valid"] is True
        assert Decimal(body["discountAmount"]) == Decimal("150")


@pytest.mark.api
class TestBookingEndpoints:
    def test_missing_actor_headers(self, client):
        response = client.post(f"{API}/bookings", json=HOTEL_BOOKING)
        assert response.status_code == 401
        assert response.json()["kind"] == "AuthenticationError"

    def test_unknown_role(self, client):
        response = client.post(
            f"{API}/bookings",
            json=HOTEL_BOOKING,
            headers={"X-Actor-Id": "x", "X-Actor-Role": "superuser"},
        )
        assert response.status_code == 401

    def test_online_payment_confirms_booking(self, client):
        booking = create_booking(client)
        assert booking["status"] == "Pending"

        submitted = client.post(
            f"{API}/bookings/{booking['id']}/payment",
            json={"method": "UPI", "transactionReference": "UPI-1", "receiptReference": "r/1.png"},
            headers=CUSTOMER,
        )
        assert submitted.status_code == 201
        assert submitted.json()["payment"]["status"] == "Pending"

        verified = client.put(f"{API}/bookings/{booking['id']}/payment/verify", json={}, headers=HOST)
        assert verified.status_code == 200
        body = verified.json()
        assert body["payment"]["status"] == "Verified"
        assert body["booking"]["status"] == "Confirmed"

        cancel = client.put(
            f"{API}/bookings/{booking['id']}/status",
            json={"status": "Cancelled by Customer"},
            headers=CUSTOMER,
        )
        assert cancel.status_code == 409
        assert cancel.json()["kind"] == "InvalidTransition"

    def test_missing_transaction_reference(self, client):
        booking = create_booking(client)
        response = client.post(
            f"{API}/bookings/{booking['id']}/payment",
            json={"method": "Card", "receiptReference": "r/1.png"},
            headers=CUSTOMER,
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter transaction ID"

    def test_reject_needs_reason(self, client):
        booking = create_booking(client)
        client.post(
            f"{API}/bookings/{booking['id']}/payment",
            json={"method": "UPI", "transactionReference": "UPI-1", "receiptReference": "r/1.png"},
            headers=CUSTOMER,
        )
        response = client.put(f"{API}/bookings/{booking['id']}/payment/reject", json={}, headers=HOST)
        assert response.status_code == 422
        assert response.json()["kind"] == "ValidationError"

    def test_cash_flow(self, client):
        booking = create_booking(client)
        submitted = client.post(
            f"{API}/bookings/{booking['id']}/payment", json={"method": "Cash"}, headers=CUSTOMER
        )
        assert submitted.status_code == 201
        assert submitted.json()["payment"] is None

        forbidden = client.post(f"{API}/bookings/{booking['id']}/confirm-cash", headers=CUSTOMER)
        assert forbidden.status_code == 403

        confirmed = client.post(f"{API}/bookings/{booking['id']}/confirm-cash", headers=HOST)
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "Confirmed"

    def test_unknown_booking(self, client):
        response = client.get(f"{API}/bookings/missing", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"


@pytest.mark.api
class TestHostEndpoints:
    def test_access_status(self, client):
        response = client.get(f"{API}/host/host-1/access-status", headers=HOST)
        assert response.status_code == 200
        body = response.json()
        assert body["hasAccess"] is True
        assert body["reason"] == "trial_active"

    def test_property_limit(self, client):
        response = client.post(f"{API}/host/host-1/properties/authorize", headers=HOST)
        assert response.status_code == 403
        assert response.json()["kind"] == "PropertyLimitReached"

    def test_new_host_selects_plan(self, client):
        headers = {"X-Actor-Id": "host-3", "X-Actor-Role": "host"}
        response = client.post(f"{API}/host/subscriptions", json={"planId": "plan-pro"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["is_trial_active"] is True

    def test_admin_review_requires_admin(self, client):
        response = client.post(f"{API}/admin/subscription-payments/host-1/approve", headers=HOST)
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_admin_approves_submitted_payment(self, client):
        submitted = client.post(
            f"{API}/host/host-1/subscription/payment",
            json={"planId": "plan-basic", "transactionReference": "NEFT-1"},
            headers=HOST,
        )
        assert submitted.status_code == 200
        assert submitted.json()["payment_status"] == "Submitted"

        approved = client.post(f"{API}/admin/subscription-payments/host-1/approve", headers=ADMIN)
        assert approved.status_code == 200
        assert approved.json()["payment_status"] == "Verified"
