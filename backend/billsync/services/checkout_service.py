"""Subscription checkout through the billing provider."""

import logging

from billsync.schemas.checkout import CheckoutSessionCreate
from billsync.services.billing_gateway import BillingGateway, CheckoutSession

logger = logging.getLogger(__name__)


class CheckoutService:
    def __init__(self, gateway: BillingGateway, log: logging.Logger | None = None):
        self.gateway = gateway
        self.logger = log or logger

    def create_session(self, data: CheckoutSessionCreate) -> CheckoutSession:
        customer_id = self.gateway.find_or_create_customer(data.email)
        session = self.gateway.create_checkout_session(
            customer_id=customer_id,
            price_id=data.price_id,
            success_url=data.success_url,
            cancel_url=data.cancel_url,
            user_id=data.user_id,
        )
        self.logger.info(
            "Checkout session %s opened for user %s on price %s",
            session.session_id,
            data.user_id,
            data.price_id,
        )
        return session
