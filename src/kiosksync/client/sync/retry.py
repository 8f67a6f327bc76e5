"""Retry policy for queued deliveries.

This module provides:
- RetryPolicy: Decides whether a failed delivery consumes a retry or
  abandons the item immediately

By default every failure is treated the same way (a 400 and a 500 both
consume one retry). Setting retry_client_errors=False abandons items on
client errors, except 408 and 429 which are worth retrying.
"""

from __future__ import annotations

from dataclasses import dataclass

from kiosksync.core.config import DEFAULT_MAX_RETRIES

# 4xx statuses that are transient despite being client errors
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and error classification.

    Attributes:
        max_retries: Failed attempts allowed before an item is evicted.
        retry_client_errors: Whether 4xx responses are retried.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_client_errors: bool = True

    def is_permanent(self, status_code: int | None) -> bool:
        """Check if a failure should abandon the item without more retries.

        Args:
            status_code: HTTP status of the failed response, None for
                transport errors.
        """
        if status_code is None or self.retry_client_errors:
            return False
        if status_code in RETRYABLE_CLIENT_STATUSES:
            return False
        return 400 <= status_code < 500

    def is_exhausted(self, retry_count: int) -> bool:
        """Check if an item has used its whole retry budget."""
        return retry_count >= self.max_retries
