"""Logical and conditional rule combinators.

And/Or/Not build a new rule from one or two rules. The combined rule
produces a single synthetic result: per-operand results are not kept.
Use CompositeBusinessRule when every broken child must be reported.

And and Or always evaluate both operands (no short-circuit), so side
effects in either predicate run on every evaluation. Async variants await
the operands one after the other.

Conditional wrappers are the opposite: when the condition is false the
wrapped rule is never touched.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

from business_rules.adapters import ensure_async, ensure_sync
from business_rules.cancellation import CancellationToken
from business_rules.context import BusinessRuleContext
from business_rules.results import BusinessRuleResult
from business_rules.rules import (
    AsyncBusinessRule,
    BusinessRule,
    DelegatingMetadataMixin,
    call_with_accepted_args,
)


def _require(rule: Any, label: str) -> Any:
    if rule is None:
        raise ValueError(f"{label} rule is required")
    return rule


# ---------------------------------------------------------------------------
# Shared metadata
# ---------------------------------------------------------------------------

class _AndMetadata:
    first: Any
    second: Any

    @property
    def code(self) -> str:
        return f"{self.first.code}+{self.second.code}"

    @property
    def message(self) -> str:
        return f"Both rules must be satisfied: {self.first.message} AND {self.second.message}"


class _OrMetadata:
    first: Any
    second: Any

    @property
    def code(self) -> str:
        return f"{self.first.code}|{self.second.code}"

    @property
    def message(self) -> str:
        return f"At least one rule must be satisfied: {self.first.message} OR {self.second.message}"


class _NotMetadata:
    inner: Any

    @property
    def code(self) -> str:
        return f"!{self.inner.code}"

    @property
    def message(self) -> str:
        return f"NOT: {self.inner.message}"


# ---------------------------------------------------------------------------
# Synchronous
# ---------------------------------------------------------------------------

class AndRule(_AndMetadata, BusinessRule):
    """Broken only when both operands are broken."""

    def __init__(self, first: BusinessRule, second: BusinessRule):
        self.first = ensure_sync(_require(first, "first"))
        self.second = ensure_sync(_require(second, "second"))

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        first_broken = self.first.is_broken(context)
        second_broken = self.second.is_broken(context)
        return first_broken and second_broken


class OrRule(_OrMetadata, BusinessRule):
    """Broken when either operand is broken."""

    def __init__(self, first: BusinessRule, second: BusinessRule):
        self.first = ensure_sync(_require(first, "first"))
        self.second = ensure_sync(_require(second, "second"))

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        first_broken = self.first.is_broken(context)
        second_broken = self.second.is_broken(context)
        return first_broken or second_broken


class NotRule(_NotMetadata, BusinessRule):
    """Broken when the wrapped rule passes."""

    def __init__(self, rule: BusinessRule):
        self.inner = ensure_sync(_require(rule, "inner"))

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        return not self.inner.is_broken(context)


class ConditionalBusinessRule(DelegatingMetadataMixin, BusinessRule):
    """Evaluate ``rule`` only when ``condition`` holds.

    ``condition`` takes no arguments or the context; an empty context is
    supplied when none is given.
    """

    def __init__(self, rule: BusinessRule, condition: Callable[..., bool]):
        self.inner = ensure_sync(_require(rule, "inner"))
        if condition is None:
            raise ValueError("condition is required")
        self.condition = condition

    def _applies(self, context: Optional[BusinessRuleContext]) -> bool:
        ctx = context if context is not None else BusinessRuleContext()
        return bool(call_with_accepted_args(self.condition, ctx))

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        if not self._applies(context):
            return False
        return self.inner.is_broken(context)

    def evaluate(self, context: Optional[BusinessRuleContext] = None) -> Optional[BusinessRuleResult]:
        if not self._applies(context):
            return None
        return self.inner.evaluate(context)

    def check(self, context: Optional[BusinessRuleContext] = None) -> None:
        if self._applies(context):
            self.inner.check(context)


# ---------------------------------------------------------------------------
# Asynchronous
# ---------------------------------------------------------------------------

class AsyncAndRule(_AndMetadata, AsyncBusinessRule):
    """Async And. Sync operands are adapted."""

    def __init__(self, first: Any, second: Any):
        self.first = ensure_async(_require(first, "first"))
        self.second = ensure_async(_require(second, "second"))

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        first_broken = await self.first.is_broken(context, cancel_token)
        second_broken = await self.second.is_broken(context, cancel_token)
        return first_broken and second_broken


class AsyncOrRule(_OrMetadata, AsyncBusinessRule):
    """Async Or. Sync operands are adapted."""

    def __init__(self, first: Any, second: Any):
        self.first = ensure_async(_require(first, "first"))
        self.second = ensure_async(_require(second, "second"))

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        first_broken = await self.first.is_broken(context, cancel_token)
        second_broken = await self.second.is_broken(context, cancel_token)
        return first_broken or second_broken


class AsyncNotRule(_NotMetadata, AsyncBusinessRule):
    def __init__(self, rule: Any):
        self.inner = ensure_async(_require(rule, "inner"))

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        return not await self.inner.is_broken(context, cancel_token)


class ConditionalAsyncBusinessRule(DelegatingMetadataMixin, AsyncBusinessRule):
    """Evaluate ``rule`` only when ``condition`` holds.

    ``condition`` takes no arguments or the context and may be a coroutine
    function.
    """

    def __init__(self, rule: AsyncBusinessRule, condition: Callable[..., Any]):
        self.inner = ensure_async(_require(rule, "inner"))
        if condition is None:
            raise ValueError("condition is required")
        self.condition = condition

    async def _applies(self, context: Optional[BusinessRuleContext]) -> bool:
        ctx = context if context is not None else BusinessRuleContext()
        outcome = call_with_accepted_args(self.condition, ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return bool(outcome)

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        if not await self._applies(context):
            return False
        return await self.inner.is_broken(context, cancel_token)

    async def evaluate(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[BusinessRuleResult]:
        if not await self._applies(context):
            return None
        return await self.inner.evaluate(context, cancel_token)

    async def check(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if await self._applies(context):
            await self.inner.check(context, cancel_token)
