"""Composite rules: many children behind one evaluable facade.

Unlike the And/Or combinators, a composite keeps per-child detail:
``evaluate_all`` and ``check`` report one result for every broken child,
in child order. The composite's own code and message are fixed sentinels.
"""

from __future__ import annotations

from typing import Iterable, Optional

from business_rules.adapters import ensure_async, ensure_sync
from business_rules.cancellation import CancellationToken, raise_if_cancelled
from business_rules.context import BusinessRuleContext
from business_rules.errors import BusinessRuleValidationError
from business_rules.results import BusinessRuleResult
from business_rules.rules import AsyncBusinessRule, BusinessRule


class CompositeBusinessRule(BusinessRule):
    """Broken when any child is broken."""

    code = "CompositeRule"
    message = "One or more business rules failed."
    name = "CompositeBusinessRule"
    description = "A composite rule that evaluates multiple business rules."

    def __init__(self, rules: Iterable[BusinessRule]):
        self._rules: tuple[BusinessRule, ...] = tuple(ensure_sync(r) for r in rules)

    @property
    def rules(self) -> tuple[BusinessRule, ...]:
        return self._rules

    def is_broken(self, context: Optional[BusinessRuleContext] = None) -> bool:
        return any(rule.is_broken(context) for rule in self._rules)

    def evaluate_all(self, context: Optional[BusinessRuleContext] = None) -> list[BusinessRuleResult]:
        """One result per broken child, in child order."""
        results = []
        for rule in self._rules:
            result = rule.evaluate(context)
            if result is not None:
                results.append(result)
        return results

    def check(self, context: Optional[BusinessRuleContext] = None) -> None:
        """Raise with every broken child's result, not just the first."""
        broken = self.evaluate_all(context)
        if broken:
            raise BusinessRuleValidationError(broken)


class CompositeAsyncBusinessRule(AsyncBusinessRule):
    """Async composite. Children are awaited in order; sync children are adapted."""

    code = "CompositeAsyncRule"
    message = "One or more async business rules failed."
    name = "CompositeAsyncBusinessRule"
    description = "A composite rule that evaluates multiple async business rules."

    def __init__(self, rules: Iterable):
        self._rules: tuple[AsyncBusinessRule, ...] = tuple(ensure_async(r) for r in rules)

    @property
    def rules(self) -> tuple[AsyncBusinessRule, ...]:
        return self._rules

    async def is_broken(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        for rule in self._rules:
            raise_if_cancelled(cancel_token)
            if await rule.is_broken(context, cancel_token):
                return True
        return False

    async def evaluate_all(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> list[BusinessRuleResult]:
        results = []
        for rule in self._rules:
            raise_if_cancelled(cancel_token)
            result = await rule.evaluate(context, cancel_token)
            if result is not None:
                results.append(result)
        return results

    async def check(
        self,
        context: Optional[BusinessRuleContext] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        broken = await self.evaluate_all(context, cancel_token)
        if broken:
            raise BusinessRuleValidationError(broken)
