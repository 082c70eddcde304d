"""Outcome records for rule evaluation.

A ``BusinessRuleResult`` is produced only for a broken rule and carries
what an API layer needs to report the violation: code, message, severity.
``RuleEvaluationResult`` is the non-throwing aggregate returned by the
batch checkers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------

class RuleSeverity(str, Enum):
    """How serious a rule violation is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Single-rule result
# ---------------------------------------------------------------------------

class BusinessRuleResult(BaseModel):
    """Immutable record of one broken rule."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    severity: RuleSeverity = RuleSeverity.ERROR


# ---------------------------------------------------------------------------
# Batch result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleEvaluationResult:
    """Aggregate outcome of evaluating many rules without raising.

    ``passed_rules`` holds the rule objects themselves, not copies.

    Usage::

        result = evaluate_all([rule_a, rule_b], context=ctx)
        if result.has_errors:
            result.raise_if_errors()
    """

    broken_rules: tuple[BusinessRuleResult, ...] = ()
    passed_rules: tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "broken_rules", tuple(self.broken_rules))
        object.__setattr__(self, "passed_rules", tuple(self.passed_rules))

    @property
    def has_broken_rules(self) -> bool:
        return len(self.broken_rules) > 0

    @property
    def all_passed(self) -> bool:
        return len(self.broken_rules) == 0

    def get_by_severity(self, severity: RuleSeverity) -> list[BusinessRuleResult]:
        """Broken results with exactly the given severity, in evaluation order."""
        return [r for r in self.broken_rules if r.severity == severity]

    @property
    def errors(self) -> list[BusinessRuleResult]:
        return self.get_by_severity(RuleSeverity.ERROR)

    @property
    def warnings(self) -> list[BusinessRuleResult]:
        return self.get_by_severity(RuleSeverity.WARNING)

    @property
    def infos(self) -> list[BusinessRuleResult]:
        return self.get_by_severity(RuleSeverity.INFO)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def raise_if_broken(self) -> None:
        """Raise BusinessRuleValidationError carrying every broken result."""
        if self.has_broken_rules:
            from business_rules.errors import BusinessRuleValidationError

            raise BusinessRuleValidationError(self.broken_rules)

    def raise_if_errors(self) -> None:
        """Raise only for error-level results; warnings and infos are ignored."""
        errors = self.errors
        if errors:
            from business_rules.errors import BusinessRuleValidationError

            raise BusinessRuleValidationError(errors)
