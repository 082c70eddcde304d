"""
Business rule validation: composable rules with sync and async batch checking.

Provides:
- Rules: BusinessRule / AsyncBusinessRule base classes and fluent builders
- Composition: And/Or/Not, conditional, cached, sync/async adapters, composites
- Checking: fail-fast, parallel, filtered and observed batch evaluation
"""
from business_rules.adapters import BlockingSyncAdapter, SyncToAsyncRuleAdapter
from business_rules.async_checker import (
    check_all_async,
    check_by_category_async,
    check_by_severity_async,
    check_by_tags_async,
    evaluate_all_async,
)
from business_rules.builder import AsyncBusinessRuleBuilder, BusinessRuleBuilder
from business_rules.caching import CachedAsyncBusinessRule, CachedBusinessRule
from business_rules.cancellation import CancellationToken
from business_rules.checker import (
    check_all,
    check_by_category,
    check_by_severity,
    check_by_tags,
    evaluate_all,
)
from business_rules.combinators import (
    AndRule,
    AsyncAndRule,
    AsyncNotRule,
    AsyncOrRule,
    ConditionalAsyncBusinessRule,
    ConditionalBusinessRule,
    NotRule,
    OrRule,
)
from business_rules.composite import CompositeAsyncBusinessRule, CompositeBusinessRule
from business_rules.config import RuleEngineConfig, get_config, set_config
from business_rules.context import BusinessRuleContext, TypedBusinessRuleContext
from business_rules.errors import (
    BusinessRuleValidationError,
    OperationCancelledError,
    RuleAssertionError,
    ValidationErrorPayload,
)
from business_rules.logging_config import configure_logging
from business_rules.observers import (
    AsyncRuleExecutionObserver,
    LoggingRuleObserver,
    RuleExecutionObserver,
)
from business_rules.results import BusinessRuleResult, RuleEvaluationResult, RuleSeverity
from business_rules.rules import AsyncBusinessRule, BusinessRule

__all__ = [
    # Rules
    "BusinessRule",
    "AsyncBusinessRule",
    "BusinessRuleBuilder",
    "AsyncBusinessRuleBuilder",
    # Results and errors
    "BusinessRuleResult",
    "RuleEvaluationResult",
    "RuleSeverity",
    "BusinessRuleValidationError",
    "OperationCancelledError",
    "RuleAssertionError",
    "ValidationErrorPayload",
    # Context
    "BusinessRuleContext",
    "TypedBusinessRuleContext",
    "CancellationToken",
    # Composition
    "AndRule",
    "OrRule",
    "NotRule",
    "AsyncAndRule",
    "AsyncOrRule",
    "AsyncNotRule",
    "ConditionalBusinessRule",
    "ConditionalAsyncBusinessRule",
    "CachedBusinessRule",
    "CachedAsyncBusinessRule",
    "CompositeBusinessRule",
    "CompositeAsyncBusinessRule",
    "SyncToAsyncRuleAdapter",
    "BlockingSyncAdapter",
    # Checking
    "check_all",
    "evaluate_all",
    "check_by_severity",
    "check_by_category",
    "check_by_tags",
    "check_all_async",
    "evaluate_all_async",
    "check_by_severity_async",
    "check_by_category_async",
    "check_by_tags_async",
    # Observers
    "RuleExecutionObserver",
    "AsyncRuleExecutionObserver",
    "LoggingRuleObserver",
    # Config and logging
    "RuleEngineConfig",
    "get_config",
    "set_config",
    "configure_logging",
]
