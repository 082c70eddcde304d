"""Batch evaluation of async rules.

Sequential mode awaits rules one at a time in input order, so observer
callbacks are ordered. Parallel mode starts every rule at once (one task
per rule, no pool limit) and waits until all of them have finished, even
if some raise; the first exception in rule order is then re-raised.
Observer callbacks may interleave across rules in parallel mode.

Precedence: ``stop_on_first_failure`` wins over ``run_in_parallel``.
Asking for both runs sequentially with early exit; it is not an error.

Cancellation is cooperative: the token is checked before each rule and
passed on to the rule. OperationCancelledError propagates as is and is
never folded into a BusinessRuleValidationError.

Sync rules may be mixed in; they are wrapped with SyncToAsyncRuleAdapter.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Iterable, Optional

import structlog

from business_rules.adapters import ensure_async
from business_rules.cancellation import CancellationToken, raise_if_cancelled
from business_rules.checker import filter_by_category, filter_by_severity, filter_by_tags
from business_rules.context import BusinessRuleContext
from business_rules.errors import BusinessRuleValidationError
from business_rules.results import BusinessRuleResult, RuleEvaluationResult, RuleSeverity

logger = structlog.get_logger(__name__)


async def _notify(hook: Callable[..., Any], *args: Any) -> None:
    outcome = hook(*args)
    if inspect.isawaitable(outcome):
        await outcome


def _pair(rules: Iterable[Any]) -> list[tuple[Any, Any]]:
    return [(rule, ensure_async(rule)) for rule in rules]


async def _evaluate_sequential(
    pairs: list[tuple[Any, Any]],
    context: Optional[BusinessRuleContext],
    stop_on_first_failure: bool,
    observer: Any,
    cancel_token: Optional[CancellationToken],
) -> list[BusinessRuleResult]:
    broken: list[BusinessRuleResult] = []
    for rule, async_rule in pairs:
        raise_if_cancelled(cancel_token)

        if observer is not None:
            await _notify(observer.on_before_evaluate, rule)

        result = await async_rule.evaluate(context, cancel_token)

        if result is not None:
            broken.append(result)
            if observer is not None:
                await _notify(observer.on_after_evaluate, rule, result)
                await _notify(observer.on_rule_broken, rule, result)
            if stop_on_first_failure:
                break
        elif observer is not None:
            await _notify(observer.on_after_evaluate, rule, None)
    return broken


async def _gather_all(pairs: list[tuple[Any, Any]], run_one: Callable[[Any, Any], Any]) -> list[Any]:
    """Run every pair concurrently and wait for all of them before raising."""
    outcomes = await asyncio.gather(
        *(run_one(rule, async_rule) for rule, async_rule in pairs),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return list(outcomes)


async def _evaluate_parallel(
    pairs: list[tuple[Any, Any]],
    context: Optional[BusinessRuleContext],
    observer: Any,
    cancel_token: Optional[CancellationToken],
) -> list[BusinessRuleResult]:
    async def run_one(rule: Any, async_rule: Any) -> Optional[BusinessRuleResult]:
        raise_if_cancelled(cancel_token)

        if observer is not None:
            await _notify(observer.on_before_evaluate, rule)

        result = await async_rule.evaluate(context, cancel_token)

        if observer is not None:
            await _notify(observer.on_after_evaluate, rule, result)
            if result is not None:
                await _notify(observer.on_rule_broken, rule, result)
        return result

    results = await _gather_all(pairs, run_one)
    return [r for r in results if r is not None]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def check_all_async(
    rules: Iterable[Any],
    *,
    context: Optional[BusinessRuleContext] = None,
    stop_on_first_failure: bool = False,
    run_in_parallel: bool = False,
    observer: Any = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    """Evaluate ``rules`` and raise BusinessRuleValidationError if any is broken."""
    pairs = _pair(rules)
    parallel = run_in_parallel and not stop_on_first_failure
    logger.debug(
        "async_rule_check_started",
        rule_count=len(pairs),
        parallel=parallel,
        stop_on_first_failure=stop_on_first_failure,
    )

    if parallel:
        broken = await _evaluate_parallel(pairs, context, observer, cancel_token)
    else:
        broken = await _evaluate_sequential(pairs, context, stop_on_first_failure, observer, cancel_token)

    logger.debug("async_rule_check_finished", rule_count=len(pairs), broken_count=len(broken))
    if broken:
        raise BusinessRuleValidationError(broken)


async def evaluate_all_async(
    rules: Iterable[Any],
    *,
    context: Optional[BusinessRuleContext] = None,
    run_in_parallel: bool = False,
    cancel_token: Optional[CancellationToken] = None,
) -> RuleEvaluationResult:
    """Evaluate every rule without raising for violations."""
    pairs = _pair(rules)

    async def run_one(rule: Any, async_rule: Any) -> tuple[Any, Optional[BusinessRuleResult]]:
        raise_if_cancelled(cancel_token)
        return rule, await async_rule.evaluate(context, cancel_token)

    if run_in_parallel:
        outcomes = await _gather_all(pairs, run_one)
    else:
        outcomes = [await run_one(rule, async_rule) for rule, async_rule in pairs]

    broken = [result for _, result in outcomes if result is not None]
    passed = [rule for rule, result in outcomes if result is None]
    return RuleEvaluationResult(broken_rules=tuple(broken), passed_rules=tuple(passed))


async def check_by_severity_async(
    rules: Iterable[Any],
    *severities: RuleSeverity,
    context: Optional[BusinessRuleContext] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    await check_all_async(filter_by_severity(rules, *severities), context=context, cancel_token=cancel_token)


async def check_by_category_async(
    rules: Iterable[Any],
    category: str,
    context: Optional[BusinessRuleContext] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    await check_all_async(filter_by_category(rules, category), context=context, cancel_token=cancel_token)


async def check_by_tags_async(
    rules: Iterable[Any],
    *tags: str,
    context: Optional[BusinessRuleContext] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> None:
    await check_all_async(filter_by_tags(rules, *tags), context=context, cancel_token=cancel_token)
