"""
Tests for retry logic.
"""

import pytest
from microblog.retry import exponential_backoff, RetryError
from microblog.storage import ConflictError


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        def succeeds():
            call_count[0] += 1
            return "success"

        assert succeeds() == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Function that conflicts then succeeds should retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(ConflictError,))
        def conflicts_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConflictError("alice")
            return "linked"

        assert conflicts_twice() == "linked"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError chained from the last failure."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ConflictError("alice")

        with pytest.raises(RetryError) as exc_info:
            always_fails()

        assert call_count[0] == 3  # Initial + 2 retries
        assert isinstance(exc_info.value.__cause__, ConflictError)

    def test_zero_retries(self):
        """With no retries the first failure is final."""
        call_count = [0]

        @exponential_backoff(max_retries=0, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ConflictError("alice")

        with pytest.raises(RetryError):
            always_fails()
        assert call_count[0] == 1

    def test_only_catches_specified_exceptions(self):
        """Should only retry on specified exception types."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(ConflictError,))
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1  # No retries

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConflictError("alice")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self):
        """Delay should not exceed max_delay."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=4,
            base_delay=0.001,
            max_delay=0.002,
            exponential_base=3.0,
            on_retry=on_retry_callback
        )
        def always_fails():
            raise ConflictError("alice")

        with pytest.raises(RetryError):
            always_fails()

        assert all(d <= 0.002 for d in delays)

    def test_on_retry_receives_attempt_and_exception(self):
        """on_retry gets the attempt number and the exception."""
        seen = []

        @exponential_backoff(
            max_retries=2,
            base_delay=0,
            on_retry=lambda attempt, exc, delay: seen.append((attempt, exc.username)),
        )
        def always_fails():
            raise ConflictError("bob")

        with pytest.raises(RetryError):
            always_fails()

        assert seen == [(1, "bob"), (2, "bob")]
