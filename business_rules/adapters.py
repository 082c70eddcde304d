"""Adapters between sync and async rules.

SyncToAsyncRuleAdapter never suspends: it calls the sync rule inline.

BlockingSyncAdapter is the opposite direction and is an escape hatch, not
a convenience. It blocks the calling thread until the async rule finishes.
Called from inside a running event loop it would stall that loop (and any
rule awaiting work scheduled on it would deadlock), so it refuses to run
there unless ``allow_blocking_in_event_loop`` is enabled in the engine
config. Prefer the async checker over this adapter.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from business_rules.cancellation import CancellationToken
from business_rules.config import get_config
from business_rules.context import BusinessRuleContext
from business_rules.results import BusinessRuleResult
from business_rules.rules import AsyncBusinessRule, BusinessRule, DelegatingMetadataMixin

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SyncToAsyncRuleAdapter(DelegatingMetadataMixin, AsyncBusinessRule):
    """Present a sync rule through the async interface."""

    def __init__(self, rule: BusinessRule):
        if rule is None:
            raise ValueError("rule is required")
        self.inner = rule

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        return self.inner.is_broken(context)

    async def evaluate(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[BusinessRuleResult]:
        return self.inner.evaluate(context)

    async def check(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.inner.check(context)


class BlockingSyncAdapter(DelegatingMetadataMixin, BusinessRule):
    """Run an async rule to completion from synchronous code.

    WARNING: blocks the calling thread. See the module docstring before
    using this inside any code that may run on an event loop.
    """

    def __init__(self, rule: AsyncBusinessRule, context: Optional[BusinessRuleContext] = None):
        if rule is None:
            raise ValueError("rule is required")
        self.inner = rule
        self.context = context if context is not None else BusinessRuleContext()

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        ctx = context if context is not None else self.context
        return self._run_blocking(lambda: self.inner.is_broken(ctx))

    def evaluate(self, context: Optional[BusinessRuleContext] = None) -> Optional[BusinessRuleResult]:
        ctx = context if context is not None else self.context
        return self._run_blocking(lambda: self.inner.evaluate(ctx))

    def check(self, context: Optional[BusinessRuleContext] = None) -> None:
        ctx = context if context is not None else self.context
        self._run_blocking(lambda: self.inner.check(ctx))

    def _run_blocking(self, make_coro: Callable[[], Awaitable[T]]) -> T:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(_await(make_coro))

        if not get_config().allow_blocking_in_event_loop:
            raise RuntimeError(
                f"BlockingSyncAdapter for rule '{self.code}' was called from a running event loop. "
                "Await the async rule instead, or enable allow_blocking_in_event_loop."
            )

        logger.warning("blocking_adapter_in_event_loop", rule_code=self.code)
        with ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, _await(make_coro)).result()


async def _await(make_coro: Callable[[], Awaitable[T]]) -> T:
    return await make_coro()


def ensure_async(rule: Any) -> AsyncBusinessRule:
    """Return ``rule`` as an async rule, adapting sync rules."""
    if isinstance(rule, AsyncBusinessRule):
        return rule
    if isinstance(rule, BusinessRule):
        return SyncToAsyncRuleAdapter(rule)
    raise TypeError(f"Expected a BusinessRule or AsyncBusinessRule, got {type(rule).__name__}")


def ensure_sync(rule: Any) -> BusinessRule:
    """Return ``rule`` unchanged if it is a sync rule, otherwise raise TypeError.

    Async rules are not adapted implicitly: blocking on one has to be an
    explicit choice made with BlockingSyncAdapter.
    """
    if isinstance(rule, BusinessRule):
        return rule
    if isinstance(rule, AsyncBusinessRule):
        raise TypeError(
            f"Async rule '{rule.code}' cannot be evaluated synchronously. "
            "Use the async checker, or wrap it explicitly with BlockingSyncAdapter."
        )
    raise TypeError(f"Expected a BusinessRule, got {type(rule).__name__}")
