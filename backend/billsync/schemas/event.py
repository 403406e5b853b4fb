"""Typed provider events.

Inbound webhook bodies are validated into one payload model per handled event
type before any handler sees them. Event types without a handler parse into
``UnhandledEvent`` so they can be acknowledged without touching any record.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from billsync.core.exceptions import EventPayloadError
from billsync.models.subscription import SubscriptionStatus
from billsync.schemas.subscription import SubscriptionUpdate

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
REFUND_UPDATED = "refund.updated"
CATALOG_EVENT_TYPES = frozenset(
    {"product.created", "product.updated", "price.created", "price.updated"}
)


def from_unix(value: int | None) -> datetime | None:
    """Convert a provider unix timestamp to an aware UTC datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


class _ProviderObject(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CheckoutSessionObject(_ProviderObject):
    id: str
    customer: str | None = None
    subscription: str | None = None
    client_reference_id: str | None = None


class PriceRef(_ProviderObject):
    id: str


class SubscriptionItem(_ProviderObject):
    price: PriceRef
    current_period_start: int | None = None
    current_period_end: int | None = None


class SubscriptionItemList(_ProviderObject):
    data: list[SubscriptionItem] = Field(default_factory=list)


class SubscriptionObject(_ProviderObject):
    id: str
    customer: str | None = None
    status: SubscriptionStatus | None = None
    items: SubscriptionItemList | None = None
    current_period_start: int | None = None
    current_period_end: int | None = None
    cancel_at: int | None = None
    canceled_at: int | None = None
    cancel_at_period_end: bool | None = None

    def to_update(self) -> SubscriptionUpdate:
        """Build a partial update holding only the fields this payload carries.

        Newer API versions report the billing period on the subscription item
        rather than the subscription, so the first item is used as a fallback.
        """
        present = self.model_fields_set
        item = self.items.data[0] if self.items and self.items.data else None
        update: dict[str, Any] = {}

        if self.status is not None:
            update["status"] = self.status
        if item is not None:
            update["price_id"] = item.price.id
        if self.cancel_at_period_end is not None:
            update["cancel_at_period_end"] = self.cancel_at_period_end

        for field in ("current_period_start", "current_period_end"):
            value = getattr(self, field)
            if value is None and item is not None:
                value = getattr(item, field)
            if value is not None:
                update[field] = from_unix(value)

        # Explicit nulls clear a scheduled or recorded cancellation.
        for field in ("cancel_at", "canceled_at"):
            if field in present:
                update[field] = from_unix(getattr(self, field))

        return SubscriptionUpdate(**update)


class RefundObject(_ProviderObject):
    id: str
    status: str | None = None
    payment_intent: str | None = None
    amount: int | None = None


class CatalogObject(_ProviderObject):
    id: str
    object: str | None = None


class ProviderEvent(BaseModel):
    """Common envelope fields of every provider event."""

    id: str
    type: str
    created: int | None = None


class CheckoutSessionCompletedEvent(ProviderEvent):
    object: CheckoutSessionObject


class SubscriptionUpdatedEvent(ProviderEvent):
    object: SubscriptionObject


class SubscriptionDeletedEvent(ProviderEvent):
    object: SubscriptionObject


class RefundUpdatedEvent(ProviderEvent):
    object: RefundObject


class CatalogChangedEvent(ProviderEvent):
    object: CatalogObject


class UnhandledEvent(ProviderEvent):
    object: dict[str, Any] = Field(default_factory=dict)


EVENT_TYPES: dict[str, type[ProviderEvent]] = {
    CHECKOUT_SESSION_COMPLETED: CheckoutSessionCompletedEvent,
    SUBSCRIPTION_UPDATED: SubscriptionUpdatedEvent,
    SUBSCRIPTION_DELETED: SubscriptionDeletedEvent,
    REFUND_UPDATED: RefundUpdatedEvent,
    **{event_type: CatalogChangedEvent for event_type in CATALOG_EVENT_TYPES},
}


class _EventData(BaseModel):
    object: dict[str, Any]


class _EventEnvelope(BaseModel):
    id: str
    type: str
    created: int | None = None
    data: _EventData


def parse_event(raw: dict[str, Any]) -> ProviderEvent:
    """Validate a decoded event body into the model registered for its type.

    Raises:
        EventPayloadError: If the envelope or the type-specific object is malformed.
    """
    try:
        envelope = _EventEnvelope.model_validate(raw)
        event_cls = EVENT_TYPES.get(envelope.type, UnhandledEvent)
        return event_cls.model_validate(
            {
                "id": envelope.id,
                "type": envelope.type,
                "created": envelope.created,
                "object": envelope.data.object,
            }
        )
    except ValidationError as e:
        raise EventPayloadError(f"Malformed event payload: {e.error_count()} error(s)") from e
