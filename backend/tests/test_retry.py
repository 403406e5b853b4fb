"""Tests for the bounded retry helper."""

from unittest.mock import MagicMock

from billsync.services.retry import linear_backoff, retry_call


class TestLinearBackoff:
    def test_delay_grows_with_attempt(self):
        delay = linear_backoff(1.5)
        assert [delay(1), delay(2), delay(3)] == [1.5, 3.0, 4.5]


class TestRetryCall:
    def test_first_success_does_not_sleep(self):
        sleep = MagicMock()

        outcome = retry_call(lambda: "ok", max_attempts=3, backoff=linear_backoff(1), sleep=sleep)

        assert outcome.succeeded is True
        assert outcome.attempts == 1
        assert outcome.value == "ok"
        sleep.assert_not_called()

    def test_succeeds_on_last_attempt(self):
        fn = MagicMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "third"])
        sleep = MagicMock()

        outcome = retry_call(fn, max_attempts=3, backoff=linear_backoff(1), sleep=sleep)

        assert outcome.succeeded is True
        assert outcome.attempts == 3
        assert outcome.value == "third"
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2]

    def test_all_attempts_fail(self):
        error = RuntimeError("down")
        fn = MagicMock(side_effect=error)
        sleep = MagicMock()

        outcome = retry_call(fn, max_attempts=3, backoff=linear_backoff(2), sleep=sleep)

        assert outcome.succeeded is False
        assert outcome.attempts == 3
        assert outcome.value is None
        assert outcome.error is error
        assert fn.call_count == 3
        # No sleep after the final attempt
        assert [c.args[0] for c in sleep.call_args_list] == [2, 4]
