"""Batch evaluation of synchronous rules.

Stateless free functions. Rules run sequentially, in input order, in the
caller's thread. Exceptions raised inside a rule propagate immediately;
rules after it are not evaluated.

Usage::

    check_all([rule_a, rule_b], context=ctx)                 # raises on violations
    check_all(rules, stop_on_first_failure=True)              # at most one result
    result = evaluate_all(rules, context=ctx)                 # never raises
    check_by_severity(rules, RuleSeverity.ERROR)
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

import structlog

from business_rules.adapters import ensure_sync
from business_rules.context import BusinessRuleContext
from business_rules.errors import BusinessRuleValidationError
from business_rules.observers import RuleExecutionObserver
from business_rules.results import BusinessRuleResult, RuleEvaluationResult, RuleSeverity

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def filter_by_severity(rules: Iterable[Any], *severities: RuleSeverity) -> list[Any]:
    wanted = {RuleSeverity(s) for s in severities}
    return [r for r in rules if r.severity in wanted]


def filter_by_category(rules: Iterable[Any], category: str) -> list[Any]:
    """Exact, case-sensitive category match."""
    return [r for r in rules if r.category == category]


def filter_by_tags(rules: Iterable[Any], *tags: str) -> list[Any]:
    """Rules sharing at least one tag with ``tags``, ignoring case."""
    wanted = {t.casefold() for t in tags}
    return [r for r in rules if wanted.intersection(t.casefold() for t in r.tags)]


# ---------------------------------------------------------------------------
# Checking
# ---------------------------------------------------------------------------

def check_all(
    rules: Iterable[Any],
    *,
    context: Optional[BusinessRuleContext] = None,
    stop_on_first_failure: bool = False,
    observer: Optional[RuleExecutionObserver] = None,
) -> None:
    """Evaluate ``rules`` and raise BusinessRuleValidationError if any is broken.

    With ``stop_on_first_failure`` evaluation ends at the first broken
    rule and the error carries exactly that one result.
    """
    rules = [ensure_sync(rule) for rule in rules]
    logger.debug("rule_check_started", rule_count=len(rules), stop_on_first_failure=stop_on_first_failure)

    broken: list[BusinessRuleResult] = []
    for rule in rules:
        if observer is not None:
            observer.on_before_evaluate(rule)

        result = rule.evaluate(context)

        if result is not None:
            broken.append(result)
            if observer is not None:
                observer.on_after_evaluate(rule, result)
                observer.on_rule_broken(rule, result)
            if stop_on_first_failure:
                break
        elif observer is not None:
            observer.on_after_evaluate(rule, None)

    logger.debug("rule_check_finished", rule_count=len(rules), broken_count=len(broken))
    if broken:
        raise BusinessRuleValidationError(broken)


def evaluate_all(
    rules: Iterable[Any],
    context: Optional[BusinessRuleContext] = None,
) -> RuleEvaluationResult:
    """Evaluate every rule and return broken results and passed rules."""
    broken: list[BusinessRuleResult] = []
    passed: list[Any] = []
    for rule in [ensure_sync(r) for r in rules]:
        result = rule.evaluate(context)
        if result is not None:
            broken.append(result)
        else:
            passed.append(rule)
    return RuleEvaluationResult(broken_rules=tuple(broken), passed_rules=tuple(passed))


def check_by_severity(
    rules: Iterable[Any],
    *severities: RuleSeverity,
    context: Optional[BusinessRuleContext] = None,
) -> None:
    """Check only rules whose severity is one of ``severities``."""
    check_all(filter_by_severity(rules, *severities), context=context)


def check_by_category(
    rules: Iterable[Any],
    category: str,
    context: Optional[BusinessRuleContext] = None,
) -> None:
    check_all(filter_by_category(rules, category), context=context)


def check_by_tags(
    rules: Iterable[Any],
    *tags: str,
    context: Optional[BusinessRuleContext] = None,
) -> None:
    """Check only rules carrying at least one of ``tags`` (case-insensitive)."""
    check_all(filter_by_tags(rules, *tags), context=context)
