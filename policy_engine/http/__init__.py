"""
HTTP Client Module

Retrying HTTP client used for every request against Aleo nodes.
"""

from .client import HttpClient, HttpError, HttpResponse
from .retry import RetryPolicy, calculate_backoff, parse_retry_after

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "RetryPolicy",
    "calculate_backoff",
    "parse_retry_after",
]
