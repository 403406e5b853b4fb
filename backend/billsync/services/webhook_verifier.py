"""Authentication of inbound provider events."""

import logging

from billsync.core.config import settings
from billsync.core.exceptions import AuthenticationError
from billsync.schemas.event import ProviderEvent, parse_event
from billsync.services.billing_gateway import BillingGateway

logger = logging.getLogger(__name__)


class WebhookVerifier:
    """Turns raw, signed webhook bytes into a typed event.

    ``payload`` must be the request body exactly as received. Parsing and
    re-serializing it before verification changes the signed bytes.
    """

    def __init__(
        self,
        gateway: BillingGateway,
        secret: str | None = None,
        tolerance: int | None = None,
        log: logging.Logger | None = None,
    ):
        self.gateway = gateway
        self.secret = settings.stripe_webhook_secret if secret is None else secret
        self.tolerance = settings.stripe_webhook_tolerance if tolerance is None else tolerance
        self.logger = log or logger

    def verify(self, payload: bytes, signature: str | None) -> ProviderEvent:
        """Verify ``payload`` against ``signature`` and parse it.

        Raises:
            AuthenticationError: Secret not configured, header missing, or
                signature invalid or outside the timestamp tolerance.
            EventPayloadError: The verified body is not a well-formed event.
        """
        if not self.secret:
            self.logger.error("Webhook secret is not configured")
            raise AuthenticationError("Missing webhook secret")
        if not signature:
            raise AuthenticationError("Missing signature header")

        raw = self.gateway.verify_signature(payload, signature, self.secret, self.tolerance)
        return parse_event(raw)
