"""Tests for bypass/utils/retry.py - retry decisions and backoff arithmetic."""

import pytest

from bypass.utils.retry import DEFAULT_RETRYABLE_STATUSES, RetryPolicy, parse_retry_after

# =============================================================================
# parse_retry_after
# =============================================================================


class TestParseRetryAfter:
    """Tests for parsing the Retry-After header."""

    def test_integer_seconds(self):
        """Should parse a plain number of seconds."""
        assert parse_retry_after("7") == 7

    def test_surrounding_whitespace(self):
        """Should ignore surrounding whitespace."""
        assert parse_retry_after("  12 ") == 12

    @pytest.mark.parametrize(
        "value",
        [None, "", "soon", "1.5", "Wed, 21 Oct 2015 07:28:00 GMT", "-3"],
    )
    def test_unusable_values(self, value):
        """Should return None for anything that is not a non-negative integer."""
        assert parse_retry_after(value) is None


# =============================================================================
# RetryPolicy
# =============================================================================


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        """Should default to 5 retries, 1s base and a 30s cap."""
        policy = RetryPolicy()
        assert policy.max_retries == 5
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.retryable_statuses == frozenset({429, 500, 503, 504})

    def test_backoff_schedule(self):
        """Should double each attempt and stop at the cap."""
        policy = RetryPolicy()
        assert [policy.backoff_delay(n) for n in range(7)] == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]

    def test_backoff_monotonic_and_capped(self):
        """Delays should never decrease and never exceed max_delay."""
        policy = RetryPolicy(base_delay=0.5, max_delay=10.0)
        delays = [policy.backoff_delay(n) for n in range(20)]
        assert delays == sorted(delays)
        assert max(delays) == 10.0

    @pytest.mark.parametrize("status", sorted(DEFAULT_RETRYABLE_STATUSES))
    def test_retryable_statuses(self, status):
        """Should retry transient statuses while budget remains."""
        assert RetryPolicy().should_retry(status, attempt=0) is True

    @pytest.mark.parametrize("status", [200, 201, 400, 401, 404, 422, 502])
    def test_non_retryable_statuses(self, status):
        """Should not retry success, client errors or 502."""
        assert RetryPolicy().should_retry(status, attempt=0) is False

    def test_budget_exhausted(self):
        """Attempt 5 (the sixth send) should not be retried."""
        policy = RetryPolicy()
        assert policy.should_retry(503, attempt=4) is True
        assert policy.should_retry(503, attempt=5) is False

    def test_retry_after_overrides_backoff_on_429(self):
        """A 429 with Retry-After should wait exactly that long."""
        assert RetryPolicy().delay_for(429, attempt=0, retry_after="7") == 7.0

    def test_retry_after_is_capped(self):
        """Retry-After larger than the cap should be clamped."""
        assert RetryPolicy().delay_for(429, attempt=0, retry_after="120") == 30.0

    def test_retry_after_ignored_for_5xx(self):
        """Retry-After only applies to 429 responses."""
        assert RetryPolicy().delay_for(503, attempt=2, retry_after="7") == 4.0

    def test_unparseable_retry_after_falls_back(self):
        """An HTTP-date Retry-After should fall back to exponential backoff."""
        policy = RetryPolicy()
        assert policy.delay_for(429, attempt=3, retry_after="Wed, 21 Oct 2015 07:28:00 GMT") == 8.0
