"""Tests for subscription API endpoints."""

import pytest
from fastapi.testclient import TestClient

from billsync.main import app
from billsync.services.billing_gateway import SubscriptionSnapshot, get_billing_gateway

SUBSCRIPTION = {
    "user_id": "user-1",
    "provider_customer_id": "cus_1",
    "provider_subscription_id": "sub_1",
    "price_id": "price_basic",
    "status": "active",
    "current_period_end": "2024-02-01T00:00:00Z",
}


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_billing_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSubscriptionsAPI:
    def test_create_subscription(self, client):
        response = client.post("/v1/subscriptions/", json=SUBSCRIPTION)

        assert response.status_code == 201
        data = response.json()
        assert data["provider_subscription_id"] == "sub_1"
        assert data["status"] == "active"
        assert data["cancel_at_period_end"] is False

    def test_create_is_idempotent(self, client):
        first = client.post("/v1/subscriptions/", json=SUBSCRIPTION).json()
        second = client.post("/v1/subscriptions/", json={**SUBSCRIPTION, "status": "past_due"})

        assert second.status_code == 201
        assert second.json()["id"] == first["id"]
        assert second.json()["status"] == "active"

    def test_create_rejects_unknown_status(self, client):
        response = client.post("/v1/subscriptions/", json={**SUBSCRIPTION, "status": "paused"})
        assert response.status_code == 422

    def test_get_by_user(self, client):
        client.post("/v1/subscriptions/", json=SUBSCRIPTION)

        response = client.get("/v1/subscriptions/user/user-1")

        assert response.status_code == 200
        assert response.json()["price_id"] == "price_basic"

    def test_get_by_user_not_found(self, client):
        response = client.get("/v1/subscriptions/user/nobody")

        assert response.status_code == 404
        assert response.json()["detail"] == "Subscription not found"

    def test_patch_updates_only_given_fields(self, client):
        client.post("/v1/subscriptions/", json=SUBSCRIPTION)

        response = client.patch("/v1/subscriptions/sub_1", json={"price_id": "price_pro"})

        assert response.status_code == 200
        data = response.json()
        assert data["price_id"] == "price_pro"
        assert data["status"] == "active"
        assert data["current_period_end"] is not None

    def test_patch_unknown_returns_404(self, client):
        response = client.patch("/v1/subscriptions/sub_missing", json={"status": "active"})
        assert response.status_code == 404

    def test_cancel_locally(self, client, gateway):
        client.post("/v1/subscriptions/", json=SUBSCRIPTION)

        response = client.post("/v1/subscriptions/sub_1/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "canceled"
        assert response.json()["canceled_at"] is not None
        gateway.cancel_subscription.assert_not_called()

    def test_cancel_at_provider(self, client, gateway):
        client.post("/v1/subscriptions/", json=SUBSCRIPTION)
        gateway.cancel_subscription.return_value = SubscriptionSnapshot(
            provider_subscription_id="sub_1",
            provider_customer_id="cus_1",
            price_id="price_basic",
            status="canceled",
        )

        response = client.post("/v1/subscriptions/sub_1/cancel?at_provider=true")

        assert response.status_code == 200
        gateway.cancel_subscription.assert_called_once_with("sub_1")

    def test_cancel_unknown_returns_404(self, client):
        response = client.post("/v1/subscriptions/sub_missing/cancel")
        assert response.status_code == 404
