"""Billing provider gateway.

The gateway is the only component that talks to the billing provider. Core
services depend on ``BillingGateway`` and receive plain snapshot dataclasses,
never provider SDK objects.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import stripe

from billsync.core.config import settings
from billsync.core.exceptions import AuthenticationError, EventPayloadError, ProviderError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    """Checkout session result from provider."""

    session_id: str
    url: str


@dataclass
class SubscriptionSnapshot:
    """Authoritative subscription state as reported by the provider."""

    provider_subscription_id: str
    provider_customer_id: str
    price_id: str
    status: str
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    cancel_at_period_end: bool = False


@dataclass
class ProductSnapshot:
    provider_product_id: str
    name: str
    description: str | None = None
    deleted: bool = False


@dataclass
class PriceSnapshot:
    """A provider price with its product expanded (``None`` if not expanded)."""

    provider_price_id: str
    type: str
    unit_amount: int | None
    currency: str | None
    interval: str | None
    product: ProductSnapshot | None


@dataclass
class RefundSnapshot:
    """Refund as confirmed by the provider."""

    provider_refund_id: str
    payment_intent_id: str
    amount: int
    status: str


def _timestamp(value: int | None) -> datetime | None:
    return datetime.fromtimestamp(value, tz=UTC) if value else None


class BillingGateway(ABC):
    """Abstract billing provider interface consumed by the sync core."""

    @abstractmethod
    def verify_signature(
        self,
        payload: bytes,
        signature: str,
        secret: str,
        tolerance: int | None = None,
    ) -> dict[str, Any]:
        """Verify the raw webhook body and return the decoded event."""
        pass  # pragma: no cover

    @abstractmethod
    def find_or_create_customer(self, email: str) -> str:
        """Return the provider customer id for ``email``, creating one if needed."""
        pass  # pragma: no cover

    @abstractmethod
    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        user_id: str,
    ) -> CheckoutSession:
        """Open a subscription checkout session for one price."""
        pass  # pragma: no cover

    @abstractmethod
    def retrieve_subscription(self, provider_subscription_id: str) -> SubscriptionSnapshot:
        pass  # pragma: no cover

    @abstractmethod
    def cancel_subscription(self, provider_subscription_id: str) -> SubscriptionSnapshot:
        pass  # pragma: no cover

    @abstractmethod
    def list_active_recurring_prices(self, page_size: int) -> list[PriceSnapshot]:
        """Return one page of active prices, products expanded.

        The page is not pre-filtered; callers decide which prices qualify.
        """
        pass  # pragma: no cover

    @abstractmethod
    def create_refund(
        self,
        payment_intent_id: str,
        reason: str | None = None,
        amount: int | None = None,
    ) -> RefundSnapshot:
        pass  # pragma: no cover


class StripeGateway(BillingGateway):
    """Stripe implementation of the billing gateway."""

    def __init__(self, api_key: str | None = None, log: logging.Logger | None = None):
        self.api_key = api_key or settings.stripe_api_key
        self.logger = log or logger
        self._stripe: Any = None

    @property
    def stripe(self) -> Any:
        """Stripe module, configured with the API key on first use."""
        if self._stripe is None:
            stripe.api_key = self.api_key
            self._stripe = stripe
        return self._stripe

    def verify_signature(
        self,
        payload: bytes,
        signature: str,
        secret: str,
        tolerance: int | None = None,
    ) -> dict[str, Any]:
        """Verify a Stripe webhook signature against the untouched body."""
        try:
            self.stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                secret,
                tolerance if tolerance is not None else settings.stripe_webhook_tolerance,
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise AuthenticationError(f"Signature error: {e}") from e

        try:
            event: dict[str, Any] = json.loads(payload)
        except ValueError as e:
            raise EventPayloadError("Event body is not valid JSON") from e
        return event

    def find_or_create_customer(self, email: str) -> str:
        try:
            existing = self.stripe.Customer.list(email=email, limit=1)
            if existing.data:
                customer_id = str(existing.data[0].id)
                self.logger.info("Existing Stripe customer %s found", customer_id)
                return customer_id

            customer = self.stripe.Customer.create(email=email)
            self.logger.info("Stripe customer %s created", customer.id)
            return str(customer.id)
        except stripe.StripeError as e:
            self.logger.error("Failed to find or create Stripe customer: %s", e)
            raise ProviderError() from e

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        user_id: str,
    ) -> CheckoutSession:
        """Create a Stripe Checkout Session in subscription mode.

        The local user id travels as ``client_reference_id`` so the
        ``checkout.session.completed`` event can be attributed to its owner.
        """
        try:
            session = self.stripe.checkout.Session.create(
                mode="subscription",
                payment_method_types=["card"],
                customer=customer_id,
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                client_reference_id=user_id,
                subscription_data={"metadata": {"user_id": user_id}},
            )
        except stripe.StripeError as e:
            self.logger.error("Failed to create checkout session for %s: %s", price_id, e)
            raise ProviderError() from e

        self.logger.info("Checkout session %s created", session.id)
        return CheckoutSession(session_id=session.id, url=session.url)

    def retrieve_subscription(self, provider_subscription_id: str) -> SubscriptionSnapshot:
        try:
            subscription = self.stripe.Subscription.retrieve(provider_subscription_id)
        except stripe.StripeError as e:
            self.logger.error(
                "Failed to retrieve subscription %s: %s", provider_subscription_id, e
            )
            raise ProviderError() from e
        return self._subscription_snapshot(subscription.to_dict())

    def cancel_subscription(self, provider_subscription_id: str) -> SubscriptionSnapshot:
        try:
            subscription = self.stripe.Subscription.cancel(provider_subscription_id)
        except stripe.StripeError as e:
            self.logger.error("Failed to cancel subscription %s: %s", provider_subscription_id, e)
            raise ProviderError() from e
        self.logger.info("Subscription %s canceled at Stripe", provider_subscription_id)
        return self._subscription_snapshot(subscription.to_dict())

    def list_active_recurring_prices(self, page_size: int) -> list[PriceSnapshot]:
        try:
            prices = self.stripe.Price.list(
                active=True,
                expand=["data.product"],
                limit=page_size,
            )
        except stripe.StripeError as e:
            self.logger.error("Failed to list Stripe prices: %s", e)
            raise ProviderError() from e
        return [self._price_snapshot(price.to_dict()) for price in prices.data]

    def create_refund(
        self,
        payment_intent_id: str,
        reason: str | None = None,
        amount: int | None = None,
    ) -> RefundSnapshot:
        """Create a Stripe refund.

        Stripe errors propagate so the caller's retry policy can see them.
        """
        params: dict[str, Any] = {"payment_intent": payment_intent_id}
        if reason:
            params["reason"] = reason
        if amount is not None:
            params["amount"] = amount

        refund = self.stripe.Refund.create(**params)
        return RefundSnapshot(
            provider_refund_id=refund.id,
            payment_intent_id=str(refund.payment_intent or payment_intent_id),
            amount=int(refund.amount or 0),
            status=refund.status or "unknown",
        )

    @staticmethod
    def _subscription_snapshot(data: dict[str, Any]) -> SubscriptionSnapshot:
        items = (data.get("items") or {}).get("data") or []
        item = items[0] if items else {}
        # Newer API versions report the period on the subscription item
        period_start = data.get("current_period_start") or item.get("current_period_start")
        period_end = data.get("current_period_end") or item.get("current_period_end")

        return SubscriptionSnapshot(
            provider_subscription_id=data["id"],
            provider_customer_id=data.get("customer") or "",
            price_id=(item.get("price") or {}).get("id", ""),
            status=data["status"],
            current_period_start=_timestamp(period_start),
            current_period_end=_timestamp(period_end),
            cancel_at=_timestamp(data.get("cancel_at")),
            canceled_at=_timestamp(data.get("canceled_at")),
            cancel_at_period_end=bool(data.get("cancel_at_period_end")),
        )

    @staticmethod
    def _price_snapshot(data: dict[str, Any]) -> PriceSnapshot:
        product_data = data.get("product")
        product = None
        if isinstance(product_data, dict):
            product = ProductSnapshot(
                provider_product_id=product_data["id"],
                name=product_data.get("name") or "",
                description=product_data.get("description"),
                deleted=bool(product_data.get("deleted")),
            )

        recurring = data.get("recurring") or {}
        return PriceSnapshot(
            provider_price_id=data["id"],
            type=data.get("type") or "",
            unit_amount=data.get("unit_amount"),
            currency=data.get("currency"),
            interval=recurring.get("interval"),
            product=product,
        )


def get_billing_gateway() -> BillingGateway:
    """Return the configured billing gateway (FastAPI dependency)."""
    return StripeGateway()
