"""Tests for RefundService."""

import uuid
from unittest.mock import MagicMock

import pytest
import stripe
from sqlalchemy.exc import IntegrityError

from billsync.core.exceptions import ConflictError, NotFoundError, TransientProviderError
from billsync.models.refund import Refund, RefundReason
from billsync.repositories.refund_repository import RefundRepository
from billsync.schemas.refund import RefundCreate
from billsync.services.billing_gateway import RefundSnapshot
from billsync.services.refund_service import RefundService


def _snapshot(refund_id="re_1", amount=1500, status="pending"):
    return RefundSnapshot(
        provider_refund_id=refund_id,
        payment_intent_id="pi_1",
        amount=amount,
        status=status,
    )


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def service(db_session, gateway, sleep):
    return RefundService(db_session, gateway, sleep=sleep)


class TestCreateRefund:
    def test_create_persists_provider_values(self, service, gateway):
        gateway.create_refund.return_value = _snapshot(amount=1200, status="succeeded")

        refund = service.create(
            RefundCreate(payment_intent_id="pi_1", reason=RefundReason.DUPLICATE, amount=999),
            user_id="user-1",
        )

        gateway.create_refund.assert_called_once_with("pi_1", "duplicate", 999)
        assert refund.provider_refund_id == "re_1"
        assert refund.amount == 1200
        assert refund.status == "succeeded"
        assert refund.reason == "duplicate"
        assert refund.user_id == "user-1"

    def test_second_refund_for_same_payment_conflicts(self, service, gateway):
        gateway.create_refund.return_value = _snapshot()
        service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        with pytest.raises(ConflictError):
            service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")
        assert gateway.create_refund.call_count == 1

    def test_retries_and_keeps_third_attempt_values(self, service, gateway, sleep):
        gateway.create_refund.side_effect = [
            stripe.APIConnectionError("timeout"),
            stripe.APIConnectionError("timeout"),
            _snapshot(refund_id="re_third", amount=700, status="succeeded"),
        ]

        refund = service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        assert gateway.create_refund.call_count == 3
        assert refund.provider_refund_id == "re_third"
        assert refund.amount == 700
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_gives_up_after_three_attempts(self, service, gateway, db_session):
        gateway.create_refund.side_effect = stripe.APIConnectionError("down")

        with pytest.raises(TransientProviderError) as exc_info:
            service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        assert exc_info.value.message == "Something went wrong. Please try again later."
        assert gateway.create_refund.call_count == 3
        assert db_session.query(Refund).count() == 0

    def test_soft_deleted_refund_no_longer_blocks(self, service, gateway):
        gateway.create_refund.return_value = _snapshot()
        first = service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")
        service.soft_delete(first.id)

        gateway.create_refund.return_value = _snapshot(refund_id="re_2")
        second = service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        assert second.provider_refund_id == "re_2"

    def test_concurrent_duplicate_is_a_conflict(self, service, gateway, db_session, monkeypatch):
        gateway.create_refund.return_value = _snapshot()
        service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")
        # A second request that read before the first one committed
        monkeypatch.setattr(service.refund_repo, "get_by_payment_intent_id", lambda _id: None)

        gateway.create_refund.return_value = _snapshot(refund_id="re_2")
        with pytest.raises(ConflictError):
            service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-2")

        assert db_session.query(Refund).one().provider_refund_id == "re_1"


class TestLivePaymentIntentIndex:
    def _create(self, repo, refund_id):
        return repo.create(
            provider_refund_id=refund_id,
            provider_payment_intent_id="pi_1",
            amount=1500,
            status="pending",
            user_id="user-1",
        )

    def test_second_live_refund_is_rejected(self, db_session):
        repo = RefundRepository(db_session)
        self._create(repo, "re_1")

        with pytest.raises(IntegrityError):
            self._create(repo, "re_2")
        db_session.rollback()

    def test_soft_deleted_refund_frees_the_payment_intent(self, db_session):
        repo = RefundRepository(db_session)
        first = self._create(repo, "re_1")
        assert repo.soft_delete(first.id)

        second = self._create(repo, "re_2")

        assert db_session.query(Refund).count() == 2
        assert repo.get_by_payment_intent_id("pi_1").id == second.id


class TestUpdateStatus:
    def test_updates_known_refund(self, service, gateway):
        gateway.create_refund.return_value = _snapshot(status="pending")
        service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        updated = service.update_status("re_1", "succeeded")

        assert updated is not None
        assert updated.status == "succeeded"

    def test_unknown_refund_is_ignored(self, service, db_session):
        assert service.update_status("re_missing", "succeeded") is None
        assert db_session.query(Refund).count() == 0


class TestReadAndDelete:
    def test_get_and_list(self, service, gateway):
        gateway.create_refund.return_value = _snapshot()
        refund = service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        assert service.get(refund.id).id == refund.id
        assert [r.id for r in service.list_refunds()] == [refund.id]

    def test_soft_delete_hides_refund(self, service, gateway, db_session):
        gateway.create_refund.return_value = _snapshot()
        refund = service.create(RefundCreate(payment_intent_id="pi_1"), user_id="user-1")

        service.soft_delete(refund.id)

        with pytest.raises(NotFoundError):
            service.get(refund.id)
        assert service.list_refunds() == []
        # Row is kept
        assert db_session.query(Refund).count() == 1

    def test_soft_delete_missing_raises(self, service):
        with pytest.raises(NotFoundError):
            service.soft_delete(uuid.uuid4())
