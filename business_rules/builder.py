"""Fluent builders for inline rules.

Usage::

    rule = (
        BusinessRuleBuilder.create("ORDER.EMPTY")
        .with_message("Order must contain at least one item")
        .with_category("Checkout")
        .with_tags("critical")
        .when(lambda ctx: len(ctx.get("items")) == 0)
        .build()
    )

A missing condition is a programming error and fails in ``build()``,
never later at evaluation time.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, Sequence

from business_rules.cancellation import CancellationToken
from business_rules.context import BusinessRuleContext
from business_rules.results import RuleSeverity
from business_rules.rules import AsyncBusinessRule, BusinessRule, call_with_accepted_args


class _BuilderBase:
    default_message = ""

    def __init__(self, code: str):
        if not code:
            raise ValueError("Rule code must be a non-empty string")
        self._code = code
        self._message = self.default_message
        self._severity = RuleSeverity.ERROR
        self._name = ""
        self._description = ""
        self._category = ""
        self._tags: list[str] = []
        self._condition: Optional[Callable[..., Any]] = None

    @classmethod
    def create(cls, code: str):
        return cls(code)

    def with_message(self, message: str):
        self._message = message
        return self

    def with_severity(self, severity: RuleSeverity):
        self._severity = RuleSeverity(severity)
        return self

    def with_name(self, name: str):
        self._name = name
        return self

    def with_description(self, description: str):
        self._description = description
        return self

    def with_category(self, category: str):
        self._category = category
        return self

    def with_tags(self, *tags: str):
        """Append tags; repeated calls accumulate."""
        self._tags.extend(tags)
        return self

    def when(self, condition: Callable[..., Any]):
        """Set the predicate returning True when the rule is broken."""
        if not callable(condition):
            raise TypeError("Rule condition must be callable")
        self._condition = condition
        return self

    def _metadata(self) -> dict[str, Any]:
        if self._condition is None:
            raise ValueError(f"Rule '{self._code}' must specify a condition using when()")
        return {
            "code": self._code,
            "message": self._message,
            "severity": self._severity,
            "name": self._name or self._code,
            "description": self._description,
            "category": self._category,
            "tags": tuple(self._tags),
            "condition": self._condition,
        }


class _FunctionalMetadata:
    code: str = ""
    message: str = ""
    name: str = ""

    def __init__(
        self,
        code: str,
        message: str,
        severity: RuleSeverity,
        name: str,
        description: str,
        category: str,
        tags: Sequence[str],
        condition: Callable[..., Any],
    ):
        self.code = code
        self.message = message
        self.severity = severity
        self.name = name
        self.description = description
        self.category = category
        self.tags = tuple(tags)
        self.condition = condition


# ---------------------------------------------------------------------------
# Synchronous
# ---------------------------------------------------------------------------

class FunctionalBusinessRule(_FunctionalMetadata, BusinessRule):
    """Rule backed by a plain function. Produced by BusinessRuleBuilder."""

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        ctx = context if context is not None else BusinessRuleContext()
        return bool(call_with_accepted_args(self.condition, ctx))


class BusinessRuleBuilder(_BuilderBase):
    """Build a sync rule. The condition takes no arguments or the context."""

    default_message = "Business rule violated."

    def build(self) -> BusinessRule:
        return FunctionalBusinessRule(**self._metadata())


# ---------------------------------------------------------------------------
# Asynchronous
# ---------------------------------------------------------------------------

class FunctionalAsyncBusinessRule(_FunctionalMetadata, AsyncBusinessRule):
    """Async rule backed by a function. Produced by AsyncBusinessRuleBuilder."""

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        ctx = context if context is not None else BusinessRuleContext()
        outcome = call_with_accepted_args(self.condition, ctx, cancel_token)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return bool(outcome)


class AsyncBusinessRuleBuilder(_BuilderBase):
    """Build an async rule.

    The condition takes up to ``(context, cancel_token)`` and may be a
    coroutine function or a plain function.
    """

    default_message = "Async business rule violated."

    def build(self) -> AsyncBusinessRule:
        return FunctionalAsyncBusinessRule(**self._metadata())
