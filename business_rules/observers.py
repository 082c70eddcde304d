"""Observer hooks invoked by the batch checkers around each rule.

Subclass RuleExecutionObserver (sync hooks) or AsyncRuleExecutionObserver
(coroutine hooks) and override what you need; the defaults do nothing.
The sync checker requires sync hooks. The async checker accepts either
kind and awaits a hook's return value when it is awaitable.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from business_rules.results import BusinessRuleResult


class RuleExecutionObserver:
    """Sync callbacks around rule evaluation."""

    def on_before_evaluate(self, rule: Any) -> None:
        pass

    def on_after_evaluate(self, rule: Any, result: Optional[BusinessRuleResult]) -> None:
        """``result`` is None when the rule passed."""

    def on_rule_broken(self, rule: Any, result: BusinessRuleResult) -> None:
        pass


class AsyncRuleExecutionObserver:
    """Async callbacks around rule evaluation."""

    async def on_before_evaluate(self, rule: Any) -> None:
        pass

    async def on_after_evaluate(self, rule: Any, result: Optional[BusinessRuleResult]) -> None:
        pass

    async def on_rule_broken(self, rule: Any, result: BusinessRuleResult) -> None:
        pass


class LoggingRuleObserver(RuleExecutionObserver):
    """Emit one structured log event per hook.

    Works with both checkers since its hooks are plain functions.
    """

    def __init__(self, logger: Any = None, **bound: Any):
        self.log = (logger or structlog.get_logger(__name__)).bind(**bound)

    def on_before_evaluate(self, rule: Any) -> None:
        self.log.debug("rule_evaluating", rule_code=rule.code, rule_name=rule.name)

    def on_after_evaluate(self, rule: Any, result: Optional[BusinessRuleResult]) -> None:
        self.log.debug("rule_evaluated", rule_code=rule.code, broken=result is not None)

    def on_rule_broken(self, rule: Any, result: BusinessRuleResult) -> None:
        self.log.info(
            "rule_broken",
            rule_code=result.code,
            severity=result.severity.value,
            category=rule.category,
            message=result.message,
        )
