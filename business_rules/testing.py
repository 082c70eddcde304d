"""Helpers for unit-testing rules.

Assertions raise RuleAssertionError (an AssertionError), so they read
naturally inside pytest tests.

Usage::

    assert_broken(AgeRule(age=15))
    ctx = create_context(user_id=123)
    assert_not_broken(my_rule, ctx)
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from business_rules.builder import AsyncBusinessRuleBuilder, BusinessRuleBuilder
from business_rules.cancellation import CancellationToken
from business_rules.context import BusinessRuleContext, TypedBusinessRuleContext
from business_rules.errors import RuleAssertionError
from business_rules.rules import AsyncBusinessRule, BusinessRule

T = TypeVar("T")


def assert_broken(rule: BusinessRule, context: Optional[BusinessRuleContext] = None) -> None:
    if not rule.is_broken(context):
        raise RuleAssertionError(f"Expected rule '{rule.code}' to be broken, but it was not.")


def assert_not_broken(rule: BusinessRule, context: Optional[BusinessRuleContext] = None) -> None:
    if rule.is_broken(context):
        raise RuleAssertionError(f"Expected rule '{rule.code}' to pass, but it was broken: {rule.message}")


async def assert_broken_async(
    rule: AsyncBusinessRule,
    context: Optional[BusinessRuleContext] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    ctx = context if context is not None else BusinessRuleContext()
    if not await rule.is_broken(ctx, cancel_token):
        raise RuleAssertionError(f"Expected async rule '{rule.code}' to be broken, but it was not.")


async def assert_not_broken_async(
    rule: AsyncBusinessRule,
    context: Optional[BusinessRuleContext] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    ctx = context if context is not None else BusinessRuleContext()
    if await rule.is_broken(ctx, cancel_token):
        raise RuleAssertionError(
            f"Expected async rule '{rule.code}' to pass, but it was broken: {rule.message}"
        )


def create_context(**items: Any) -> BusinessRuleContext:
    """Context pre-populated with keyword items."""
    return BusinessRuleContext(items)


def create_typed_context(data: T) -> TypedBusinessRuleContext[T]:
    return TypedBusinessRuleContext(data)


def create_broken_rule(code: str = "TEST_BROKEN", message: str = "Test broken rule") -> BusinessRule:
    return BusinessRuleBuilder.create(code).with_message(message).when(lambda: True).build()


def create_passing_rule(code: str = "TEST_PASSING", message: str = "Test passing rule") -> BusinessRule:
    return BusinessRuleBuilder.create(code).with_message(message).when(lambda: False).build()


def create_broken_async_rule(
    code: str = "TEST_BROKEN_ASYNC",
    message: str = "Test broken async rule",
) -> AsyncBusinessRule:
    return AsyncBusinessRuleBuilder.create(code).with_message(message).when(lambda: True).build()


def create_passing_async_rule(
    code: str = "TEST_PASSING_ASYNC",
    message: str = "Test passing async rule",
) -> AsyncBusinessRule:
    return AsyncBusinessRuleBuilder.create(code).with_message(message).when(lambda: False).build()
