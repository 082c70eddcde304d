"""Time-to-live caching wrappers.

A cached rule remembers the wrapped rule's last ``is_broken`` outcome
until the TTL elapses. The cache holds a single value and ignores the
context, so only wrap rules whose outcome does not depend on per-call
context, or invalidate explicitly.

The sync wrapper guards check-then-set with a lock; the async wrapper
with a one-slot semaphore. Under contention exactly one caller recomputes
an expired value and the others observe the refreshed result.
"""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import timedelta
from typing import Callable, Optional

import structlog

from business_rules.cancellation import CancellationToken, raise_if_cancelled
from business_rules.config import get_config
from business_rules.context import BusinessRuleContext
from business_rules.rules import AsyncBusinessRule, BusinessRule, DelegatingMetadataMixin, Duration

logger = structlog.get_logger(__name__)


def _ttl_seconds(ttl: Optional[Duration]) -> float:
    if ttl is None:
        return get_config().default_cache_ttl_seconds
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    if seconds <= 0:
        raise ValueError("Cache TTL must be positive")
    return seconds


class CachedBusinessRule(DelegatingMetadataMixin, BusinessRule):
    """Cache a sync rule's outcome for ``ttl``.

    Usage::

        rule = ExpensiveRule().cached(timedelta(minutes=5))
        rule.is_broken()        # evaluates
        rule.is_broken()        # served from cache
        rule.invalidate_cache()
    """

    def __init__(
        self,
        rule: BusinessRule,
        ttl: Optional[Duration] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if rule is None:
            raise ValueError("inner rule is required")
        self.inner = rule
        self.ttl_seconds = _ttl_seconds(ttl)
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._cached_result: Optional[bool] = None
        self._expires_at = 0.0

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        with self._lock:
            if self._cached_result is not None and self._clock() < self._expires_at:
                logger.debug("rule_cache_hit", rule_code=self.code)
                return self._cached_result

            logger.debug("rule_cache_miss", rule_code=self.code)
            self._cached_result = self.inner.is_broken(context)
            self._expires_at = self._clock() + self.ttl_seconds
            return self._cached_result

    def invalidate_cache(self) -> None:
        """Force the next evaluation to call the wrapped rule."""
        with self._lock:
            self._cached_result = None
            self._expires_at = 0.0

    @property
    def has_cached_value(self) -> bool:
        with self._lock:
            return self._cached_result is not None and self._clock() < self._expires_at


class CachedAsyncBusinessRule(DelegatingMetadataMixin, AsyncBusinessRule):
    """Cache an async rule's outcome for ``ttl``."""

    def __init__(
        self,
        rule: AsyncBusinessRule,
        ttl: Optional[Duration] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if rule is None:
            raise ValueError("inner rule is required")
        self.inner = rule
        self.ttl_seconds = _ttl_seconds(ttl)
        self._clock = clock or time.monotonic
        self._semaphore = asyncio.Semaphore(1)
        self._cached_result: Optional[bool] = None
        self._expires_at = 0.0

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        async with self._semaphore:
            raise_if_cancelled(cancel_token)
            if self._cached_result is not None and self._clock() < self._expires_at:
                logger.debug("rule_cache_hit", rule_code=self.code)
                return self._cached_result

            logger.debug("rule_cache_miss", rule_code=self.code)
            self._cached_result = await self.inner.is_broken(context, cancel_token)
            self._expires_at = self._clock() + self.ttl_seconds
            return self._cached_result

    async def invalidate_cache(self) -> None:
        async with self._semaphore:
            self._cached_result = None
            self._expires_at = 0.0

    @property
    def has_cached_value(self) -> bool:
        return self._cached_result is not None and self._clock() < self._expires_at
