"""Exceptions raised by rule evaluation.

BusinessRuleValidationError is the only way a violation is reported to
callers. It always carries at least one BusinessRuleResult.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from business_rules.results import BusinessRuleResult, RuleSeverity


class RuleViolation(BaseModel):
    """One violation as it appears in an error payload."""

    code: str
    message: str
    severity: RuleSeverity


class ValidationErrorPayload(BaseModel):
    """Machine-readable error body for API layers."""

    code: str = "BUSINESS_RULE_VIOLATION"
    message: str
    violations: list[RuleViolation] = Field(default_factory=list)


class BusinessRuleValidationError(Exception):
    """One or more business rules were violated."""

    default_message = "One or more business rules were violated."

    def __init__(self, broken_rules: Iterable[BusinessRuleResult]):
        self.broken_rules: tuple[BusinessRuleResult, ...] = tuple(broken_rules)
        if not self.broken_rules:
            raise ValueError("BusinessRuleValidationError requires at least one broken rule")
        super().__init__(self.default_message)

    @property
    def codes(self) -> list[str]:
        return [r.code for r in self.broken_rules]

    def to_payload(self) -> ValidationErrorPayload:
        """Convert to the error payload shape."""
        return ValidationErrorPayload(
            message=self.default_message,
            violations=[
                RuleViolation(code=r.code, message=r.message, severity=r.severity)
                for r in self.broken_rules
            ],
        )

    def __str__(self) -> str:
        return f"{self.default_message} [{', '.join(self.codes)}]"


class RuleAssertionError(AssertionError):
    """Raised by the helpers in business_rules.testing. Never raised in evaluation paths."""


class OperationCancelledError(Exception):
    """An async evaluation was cancelled through its CancellationToken."""
