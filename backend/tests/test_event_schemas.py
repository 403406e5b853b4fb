"""Tests for typed provider event parsing."""

from datetime import UTC, datetime

import pytest

from billsync.core.exceptions import EventPayloadError
from billsync.models.subscription import SubscriptionStatus
from billsync.schemas.event import (
    CatalogChangedEvent,
    CheckoutSessionCompletedEvent,
    RefundUpdatedEvent,
    SubscriptionDeletedEvent,
    SubscriptionObject,
    UnhandledEvent,
    from_unix,
    parse_event,
)


def _raw(event_type, obj):
    return {"id": "evt_1", "type": event_type, "created": 1700000000, "data": {"object": obj}}


class TestFromUnix:
    def test_converts_to_aware_utc(self):
        assert from_unix(1700000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_none_and_zero_become_none(self):
        assert from_unix(None) is None
        assert from_unix(0) is None


class TestParseEvent:
    def test_checkout_completed(self):
        event = parse_event(
            _raw(
                "checkout.session.completed",
                {
                    "id": "cs_1",
                    "customer": "cus_1",
                    "subscription": "sub_1",
                    "client_reference_id": "user-1",
                    "payment_status": "paid",
                },
            )
        )

        assert isinstance(event, CheckoutSessionCompletedEvent)
        assert event.object.client_reference_id == "user-1"
        assert event.object.subscription == "sub_1"

    def test_subscription_deleted(self):
        event = parse_event(_raw("customer.subscription.deleted", {"id": "sub_1"}))
        assert isinstance(event, SubscriptionDeletedEvent)

    def test_refund_updated_with_null_status(self):
        event = parse_event(_raw("refund.updated", {"id": "re_1", "status": None}))

        assert isinstance(event, RefundUpdatedEvent)
        assert event.object.status is None

    @pytest.mark.parametrize(
        "event_type", ["product.created", "product.updated", "price.created", "price.updated"]
    )
    def test_catalog_events(self, event_type):
        event = parse_event(_raw(event_type, {"id": "prod_1", "object": "product"}))
        assert isinstance(event, CatalogChangedEvent)

    def test_unknown_type_keeps_raw_object(self):
        event = parse_event(_raw("invoice.paid", {"id": "in_1", "total": 500}))

        assert isinstance(event, UnhandledEvent)
        assert event.object == {"id": "in_1", "total": 500}

    def test_missing_envelope_fields_raise(self):
        with pytest.raises(EventPayloadError):
            parse_event({"type": "refund.updated"})

    def test_object_without_id_raises(self):
        with pytest.raises(EventPayloadError):
            parse_event(_raw("refund.updated", {"status": "succeeded"}))

    def test_unknown_subscription_status_raises(self):
        with pytest.raises(EventPayloadError):
            parse_event(_raw("customer.subscription.updated", {"id": "sub_1", "status": "paused_forever"}))


class TestSubscriptionObjectToUpdate:
    def test_only_present_fields_are_set(self):
        update = SubscriptionObject.model_validate({"id": "sub_1", "status": "past_due"}).to_update()

        assert update.model_dump(exclude_unset=True) == {"status": SubscriptionStatus.PAST_DUE}

    def test_price_and_period_come_from_first_item(self):
        obj = SubscriptionObject.model_validate(
            {
                "id": "sub_1",
                "items": {
                    "data": [
                        {
                            "price": {"id": "price_new"},
                            "current_period_start": 1700000000,
                            "current_period_end": 1702592000,
                        }
                    ]
                },
            }
        )

        update = obj.to_update()

        assert update.price_id == "price_new"
        assert update.current_period_start == from_unix(1700000000)
        assert update.current_period_end == from_unix(1702592000)

    def test_subscription_period_wins_over_item_period(self):
        obj = SubscriptionObject.model_validate(
            {
                "id": "sub_1",
                "current_period_start": 1600000000,
                "items": {"data": [{"price": {"id": "price_1"}, "current_period_start": 1700000000}]},
            }
        )

        assert obj.to_update().current_period_start == from_unix(1600000000)

    def test_explicit_null_cancel_at_clears_it(self):
        update = SubscriptionObject.model_validate({"id": "sub_1", "cancel_at": None}).to_update()

        assert "cancel_at" in update.model_fields_set
        assert update.cancel_at is None

    def test_absent_cancel_at_is_left_alone(self):
        update = SubscriptionObject.model_validate({"id": "sub_1"}).to_update()
        assert "cancel_at" not in update.model_fields_set

    def test_cancel_at_period_end_flag(self):
        update = SubscriptionObject.model_validate(
            {"id": "sub_1", "cancel_at_period_end": True, "cancel_at": 1702592000}
        ).to_update()

        assert update.cancel_at_period_end is True
        assert update.cancel_at == from_unix(1702592000)
