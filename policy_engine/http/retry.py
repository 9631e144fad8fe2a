"""
Retry Policy

Backoff and Retry-After handling for requests against Aleo nodes.

Delay for attempt i (0-indexed):
    base = min(base_delay * 2**i, max_delay)
    delay = base + uniform(0, 0.25) * base

A Retry-After header, when present on a 429, replaces the computed
backoff entirely.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional


DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY = 2.0
DEFAULT_REQUEST_TIMEOUT = 30.0
MAX_DELAY_FACTOR = 10
JITTER_FRACTION = 0.25

_LEADING_INTEGER = re.compile(r"([+-]?[0-9]+)")


@dataclass
class RetryPolicy:
    """
    Retry settings for one class of requests.

    Attributes:
        max_retries: Total attempts before giving up
        base_delay: Backoff base in seconds
        max_delay: Backoff cap in seconds (defaults to 10x base_delay)
        request_timeout: Per-request timeout in seconds
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: Optional[float] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")
        if self.max_delay is None:
            self.max_delay = self.base_delay * MAX_DELAY_FACTOR

    def backoff(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        return calculate_backoff(attempt, self.base_delay, self.max_delay, rng)


def calculate_backoff(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Exponential backoff with up to 25% jitter.

    Args:
        attempt: Attempt number, 0-indexed
        base_delay: Delay for attempt 0, in seconds
        max_delay: Cap applied before jitter (defaults to 10x base_delay)
        rng: Random source; a fresh random.Random() when omitted

    Returns:
        Delay in seconds, within [d, 1.25 * d] where
        d = min(base_delay * 2**attempt, max_delay)
    """
    if max_delay is None:
        max_delay = base_delay * MAX_DELAY_FACTOR
    rng = rng or random.Random()

    delay = min(base_delay * (2 ** attempt), max_delay)
    return delay + delay * JITTER_FRACTION * rng.random()


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Parse a Retry-After header value into a delay in seconds.

    Supports both RFC 7231 forms:
    - Retry-After: 120
    - Retry-After: Wed, 21 Oct 2015 07:28:00 GMT

    Dates in the past give 0. Anything unparseable gives None.
    """
    if not value:
        return None
    text = value.strip()

    # Leading integer wins, so "5.5" waits 5s
    match = _LEADING_INTEGER.match(text)
    if match:
        return float(max(int(match.group(1)), 0))

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None

    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max((when - now).total_seconds(), 0.0)


__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_BASE_DELAY",
    "DEFAULT_REQUEST_TIMEOUT",
    "RetryPolicy",
    "calculate_backoff",
    "parse_retry_after",
]
