"""Cooperative cancellation for async evaluation.

The async checker calls ``raise_if_cancelled()`` before each rule; long
running async rules should do the same at their own I/O boundaries.
Nothing is aborted forcibly.
"""

from __future__ import annotations

import threading
from typing import Optional

from business_rules.errors import OperationCancelledError


class CancellationToken:
    """Thread-safe cancel flag.

    Usage::

        token = CancellationToken()
        task = asyncio.create_task(check_all_async(rules, cancel_token=token))
        token.cancel()
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("The operation was cancelled.")


def raise_if_cancelled(token: Optional[CancellationToken]) -> None:
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled()
