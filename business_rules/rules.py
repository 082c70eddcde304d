"""Rule abstractions.

A rule encapsulates a predicate answering "is this business invariant
violated?" together with metadata. Subclasses supply ``code``,
``message`` and ``is_broken``; everything else has a default.

Example::

    class LimitExceededRule(BusinessRule):
        code = "LIMIT.EXCEEDED"
        message = "Amount exceeds the configured limit"

        def __init__(self, amount):
            self.amount = amount

        def is_broken(self, context=None):
            return self.amount > context.get("limit", int)

Rules are immutable after construction (cache wrappers aside) and may be
shared across callers.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

from business_rules.errors import BusinessRuleValidationError
from business_rules.results import BusinessRuleResult, RuleSeverity

if TYPE_CHECKING:
    from business_rules.cancellation import CancellationToken
    from business_rules.context import BusinessRuleContext

Duration = Union[timedelta, float, int]


def call_with_accepted_args(fn: Callable[..., Any], *args: Any) -> Any:
    """Call ``fn`` with as many leading ``args`` as its signature accepts.

    Lets conditions be written as ``lambda: ...`` or ``lambda ctx: ...``.
    """
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return fn(*args)

    accepted = 0
    for param in params:
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return fn(*args)
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            accepted += 1
    return fn(*args[:accepted])


class _RuleMetadata(ABC):
    """Default metadata shared by sync and async rules."""

    severity: RuleSeverity = RuleSeverity.ERROR
    description: str = ""
    category: str = ""
    tags: Sequence[str] = ()

    @property
    @abstractmethod
    def code(self) -> str:
        """Stable identifier of the rule."""

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable violation text."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_result(self) -> BusinessRuleResult:
        return BusinessRuleResult(code=self.code, message=self.message, severity=self.severity)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} code={self.code!r} severity={self.severity.value}>"


# ---------------------------------------------------------------------------
# Synchronous rules
# ---------------------------------------------------------------------------

class BusinessRule(_RuleMetadata):
    """A blocking rule evaluated in the caller's thread."""

    @abstractmethod
    def is_broken(self, context: Optional["BusinessRuleContext"] = None) -> bool:
        """True when the invariant is violated."""

    def evaluate(self, context: Optional["BusinessRuleContext"] = None) -> Optional[BusinessRuleResult]:
        """Return a result when broken, otherwise None."""
        if self.is_broken(context):
            return self.to_result()
        return None

    def check(self, context: Optional["BusinessRuleContext"] = None) -> None:
        """Raise BusinessRuleValidationError when broken."""
        result = self.evaluate(context)
        if result is not None:
            raise BusinessRuleValidationError([result])

    # -- composition --------------------------------------------------------

    def and_(self, other: "BusinessRule") -> "BusinessRule":
        from business_rules.combinators import AndRule

        return AndRule(self, other)

    def or_(self, other: "BusinessRule") -> "BusinessRule":
        from business_rules.combinators import OrRule

        return OrRule(self, other)

    def negate(self) -> "BusinessRule":
        from business_rules.combinators import NotRule

        return NotRule(self)

    def when(self, condition: Callable[..., bool]) -> "BusinessRule":
        from business_rules.combinators import ConditionalBusinessRule

        return ConditionalBusinessRule(self, condition)

    def cached(self, ttl: Optional[Duration] = None, clock: Optional[Callable[[], float]] = None):
        from business_rules.caching import CachedBusinessRule

        return CachedBusinessRule(self, ttl, clock=clock)

    def to_async(self) -> "AsyncBusinessRule":
        from business_rules.adapters import SyncToAsyncRuleAdapter

        return SyncToAsyncRuleAdapter(self)

    def __and__(self, other: Any):
        if not isinstance(other, BusinessRule):
            return NotImplemented
        return self.and_(other)

    def __or__(self, other: Any):
        if not isinstance(other, BusinessRule):
            return NotImplemented
        return self.or_(other)

    def __invert__(self):
        return self.negate()


# ---------------------------------------------------------------------------
# Asynchronous rules
# ---------------------------------------------------------------------------

class AsyncBusinessRule(_RuleMetadata):
    """A rule whose predicate may suspend, e.g. on a database lookup.

    Long running implementations should call
    ``cancel_token.raise_if_cancelled()`` at their own I/O boundaries.
    """

    @abstractmethod
    async def is_broken(
        self,
        context: Optional["BusinessRuleContext"] = None,
        cancel_token: Optional["CancellationToken"] = None,
    ) -> bool:
        """True when the invariant is violated."""

    async def evaluate(
        self,
        context: Optional["BusinessRuleContext"] = None,
        cancel_token: Optional["CancellationToken"] = None,
    ) -> Optional[BusinessRuleResult]:
        if await self.is_broken(context, cancel_token):
            return self.to_result()
        return None

    async def check(
        self,
        context: Optional["BusinessRuleContext"] = None,
        cancel_token: Optional["CancellationToken"] = None,
    ) -> None:
        result = await self.evaluate(context, cancel_token)
        if result is not None:
            raise BusinessRuleValidationError([result])

    # -- composition --------------------------------------------------------

    def and_(self, other: Any) -> "AsyncBusinessRule":
        from business_rules.combinators import AsyncAndRule

        return AsyncAndRule(self, other)

    def or_(self, other: Any) -> "AsyncBusinessRule":
        from business_rules.combinators import AsyncOrRule

        return AsyncOrRule(self, other)

    def negate(self) -> "AsyncBusinessRule":
        from business_rules.combinators import AsyncNotRule

        return AsyncNotRule(self)

    def when(self, condition: Callable[..., bool]) -> "AsyncBusinessRule":
        from business_rules.combinators import ConditionalAsyncBusinessRule

        return ConditionalAsyncBusinessRule(self, condition)

    def cached(self, ttl: Optional[Duration] = None, clock: Optional[Callable[[], float]] = None):
        from business_rules.caching import CachedAsyncBusinessRule

        return CachedAsyncBusinessRule(self, ttl, clock=clock)

    def blocking(self, context: Optional["BusinessRuleContext"] = None) -> BusinessRule:
        """Wrap as a sync rule that blocks on the event loop. See BlockingSyncAdapter."""
        from business_rules.adapters import BlockingSyncAdapter

        return BlockingSyncAdapter(self, context)

    def __and__(self, other: Any):
        if not isinstance(other, (AsyncBusinessRule, BusinessRule)):
            return NotImplemented
        return self.and_(other)

    def __or__(self, other: Any):
        if not isinstance(other, (AsyncBusinessRule, BusinessRule)):
            return NotImplemented
        return self.or_(other)

    def __invert__(self):
        return self.negate()


class DelegatingMetadataMixin:
    """Expose the metadata of the wrapped rule held in ``self.inner``."""

    inner: Any

    @property
    def code(self) -> str:
        return self.inner.code

    @property
    def message(self) -> str:
        return self.inner.message

    @property
    def severity(self) -> RuleSeverity:
        return self.inner.severity

    @property
    def name(self) -> str:
        return self.inner.name

    @property
    def description(self) -> str:
        return self.inner.description

    @property
    def category(self) -> str:
        return self.inner.category

    @property
    def tags(self) -> Sequence[str]:
        return self.inner.tags
