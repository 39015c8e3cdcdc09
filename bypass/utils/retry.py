"""Retry policy for handling transient HTTP failures.

Decides whether a response status warrants another attempt and how long
to wait before it. The transport client owns the actual loop; this module
is pure arithmetic so it can be tested without any I/O.

Key Exports:
    RetryPolicy: Retryable statuses, attempt budget and backoff schedule.
    parse_retry_after: Parse a ``Retry-After`` header given in seconds.

Backoff Formula:
    delay = min(base_delay * 2 ** attempt, max_delay)
    With the defaults: 1s, 2s, 4s, 8s, 16s, then capped at 30s.

    A 429 response carrying ``Retry-After: <seconds>`` uses that value
    instead of the exponential schedule (still capped at max_delay).
"""

from dataclasses import dataclass, field

DEFAULT_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 503, 504})
TOO_MANY_REQUESTS = 429


def parse_retry_after(value: str | None) -> int | None:
    """Parse a ``Retry-After`` header as a whole number of seconds.

    HTTP-date forms and anything else that is not a non-negative integer
    yield None, so the caller falls back to exponential backoff.

    Example:
        >>> parse_retry_after("7")
        7
        >>> parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
        True
    """
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule for a single request.

    Attributes:
        max_retries: Retries allowed after the initial attempt. A request is
            sent at most ``max_retries + 1`` times.
        base_delay: Delay in seconds before the first retry.
        max_delay: Ceiling applied to every computed delay.
        retryable_statuses: HTTP statuses considered transient.

    Example:
        >>> policy = RetryPolicy()
        >>> [policy.backoff_delay(n) for n in range(6)]
        [1.0, 2.0, 4.0, 8.0, 16.0, 30.0]
    """

    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0
    retryable_statuses: frozenset[int] = field(default=DEFAULT_RETRYABLE_STATUSES)

    def should_retry(self, status: int, attempt: int) -> bool:
        """Return True if a response with ``status`` on ``attempt`` (0-based) should be retried."""
        return status in self.retryable_statuses and attempt < self.max_retries

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay for the given 0-based attempt, capped at max_delay."""
        return min(self.base_delay * (2**attempt), self.max_delay)

    def delay_for(self, status: int, attempt: int, retry_after: str | None = None) -> float:
        """Compute the wait before retrying a response.

        Args:
            status: HTTP status of the response being retried
            attempt: 0-based number of the attempt that produced it
            retry_after: Raw ``Retry-After`` header value, if any

        Returns:
            Seconds to sleep, never more than max_delay
        """
        if status == TOO_MANY_REQUESTS:
            seconds = parse_retry_after(retry_after)
            if seconds is not None:
                return min(float(seconds), self.max_delay)
        return self.backoff_delay(attempt)
