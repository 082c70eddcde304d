"""Test And/Or/Not, conditional wrappers and sync/async adapters."""
import itertools

import pytest

from business_rules import (
    AndRule,
    AsyncAndRule,
    AsyncBusinessRule,
    AsyncNotRule,
    AsyncOrRule,
    BlockingSyncAdapter,
    BusinessRule,
    BusinessRuleContext,
    BusinessRuleValidationError,
    ConditionalBusinessRule,
    NotRule,
    OrRule,
    RuleEngineConfig,
    RuleSeverity,
    SyncToAsyncRuleAdapter,
    check_all,
    set_config,
)
from business_rules.testing import (
    create_broken_async_rule,
    create_broken_rule,
    create_passing_async_rule,
)


class FixedRule(BusinessRule):
    code = ""
    message = ""

    def __init__(self, broken, code="FIXED", message="Fixed rule"):
        self.broken = broken
        self.code = code
        self.message = message
        self.calls = 0

    def is_broken(self, context=None):
        self.calls += 1
        return self.broken


class FixedAsyncRule(AsyncBusinessRule):
    code = ""
    message = ""

    def __init__(self, broken, code="ASYNC_FIXED", message="Fixed async rule"):
        self.broken = broken
        self.code = code
        self.message = message
        self.calls = 0

    async def is_broken(self, context=None, cancel_token=None):
        self.calls += 1
        return self.broken


BOOL_PAIRS = list(itertools.product([True, False], repeat=2))


@pytest.mark.parametrize("b1,b2", BOOL_PAIRS)
def test_and_truth_table(b1, b2):
    assert AndRule(FixedRule(b1), FixedRule(b2)).is_broken() == (b1 and b2)


@pytest.mark.parametrize("b1,b2", BOOL_PAIRS)
def test_or_truth_table(b1, b2):
    assert OrRule(FixedRule(b1), FixedRule(b2)).is_broken() == (b1 or b2)


@pytest.mark.parametrize("b", [True, False])
def test_not_inverts(b):
    assert NotRule(FixedRule(b)).is_broken() == (not b)


def test_or_one_broken_is_broken():
    assert (FixedRule(True) | FixedRule(False)).is_broken()


def test_and_evaluates_both_operands():
    first, second = FixedRule(False), FixedRule(True)
    AndRule(first, second).is_broken()
    assert first.calls == 1
    assert second.calls == 1


def test_or_evaluates_both_operands():
    first, second = FixedRule(True), FixedRule(True)
    OrRule(first, second).is_broken()
    assert first.calls == 1
    assert second.calls == 1


def test_combined_codes_and_messages():
    a = FixedRule(True, code="A", message="first")
    b = FixedRule(True, code="B", message="second")
    assert (a & b).code == "A+B"
    assert (a & b).message == "Both rules must be satisfied: first AND second"
    assert (a | b).code == "A|B"
    assert (a | b).message == "At least one rule must be satisfied: first OR second"
    assert (~a).code == "!A"
    assert (~a).message == "NOT: first"


def test_and_collapses_into_one_result():
    a = FixedRule(True, code="A")
    b = FixedRule(True, code="B")
    with pytest.raises(BusinessRuleValidationError) as exc:
        a.and_(b).check()
    assert exc.value.codes == ["A+B"]


def test_method_chaining_matches_operators():
    a, b = FixedRule(True), FixedRule(False)
    assert isinstance(a.and_(b), AndRule)
    assert isinstance(a.or_(b), OrRule)
    assert isinstance(a.negate(), NotRule)


def test_context_flows_through_combinators():
    class NeedsContext(BusinessRule):
        code = "CTX"
        message = "ctx"

        def is_broken(self, context=None):
            return context.get("flag")

    ctx = BusinessRuleContext({"flag": True})
    assert (NeedsContext() & NeedsContext()).is_broken(ctx)


@pytest.mark.asyncio
@pytest.mark.parametrize("b1,b2", BOOL_PAIRS)
async def test_async_truth_tables(b1, b2):
    assert await AsyncAndRule(FixedAsyncRule(b1), FixedAsyncRule(b2)).is_broken() == (b1 and b2)
    assert await AsyncOrRule(FixedAsyncRule(b1), FixedAsyncRule(b2)).is_broken() == (b1 or b2)
    assert await AsyncNotRule(FixedAsyncRule(b1)).is_broken() == (not b1)


@pytest.mark.asyncio
async def test_async_and_evaluates_both_and_combines_code():
    first = FixedAsyncRule(False, code="A")
    second = FixedAsyncRule(True, code="B")
    rule = first & second
    assert not await rule.is_broken()
    assert first.calls == 1 and second.calls == 1
    assert rule.code == "A+B"


@pytest.mark.asyncio
async def test_async_combinator_accepts_sync_operand():
    rule = FixedAsyncRule(True).or_(FixedRule(False))
    assert await rule.is_broken()


# ---------------------------------------------------------------------------
# Conditional
# ---------------------------------------------------------------------------

def test_conditional_false_never_evaluates_inner():
    inner = FixedRule(True)
    rule = inner.when(lambda: False)
    assert not rule.is_broken()
    assert rule.evaluate() is None
    rule.check()
    assert inner.calls == 0


def test_conditional_true_delegates():
    inner = FixedRule(True, code="INNER")
    rule = inner.when(lambda: True)
    assert rule.is_broken()
    assert rule.evaluate().code == "INNER"
    with pytest.raises(BusinessRuleValidationError):
        rule.check()


def test_conditional_reads_context():
    rule = FixedRule(True).when(lambda ctx: ctx.get("enabled"))
    assert rule.is_broken(BusinessRuleContext({"enabled": True}))
    assert not rule.is_broken(BusinessRuleContext({"enabled": False}))


def test_conditional_without_context_gets_empty_context():
    rule = create_broken_rule("FLAGGED").when(lambda ctx: ctx.try_get("flag")[0])
    assert not rule.is_broken()
    assert rule.evaluate() is None
    check_all([rule])


def test_conditional_exposes_inner_metadata():
    inner = FixedRule(True, code="INNER", message="inner message")
    rule = inner.when(lambda: True)
    assert rule.code == "INNER"
    assert rule.message == "inner message"
    assert rule.severity == RuleSeverity.ERROR


@pytest.mark.asyncio
async def test_async_conditional_short_circuits():
    inner = FixedAsyncRule(True)
    rule = inner.when(lambda ctx: ctx.get("enabled"))
    ctx = BusinessRuleContext({"enabled": False})
    assert not await rule.is_broken(ctx)
    assert await rule.evaluate(ctx) is None
    await rule.check(ctx)
    assert inner.calls == 0


@pytest.mark.asyncio
async def test_async_conditional_with_coroutine_condition():
    async def enabled():
        return True

    rule = FixedAsyncRule(True).when(enabled)
    assert await rule.is_broken()


@pytest.mark.asyncio
async def test_async_conditional_without_context_gets_empty_context():
    inner = FixedAsyncRule(True)
    rule = inner.when(lambda ctx: "enabled" in ctx)
    assert not await rule.is_broken()
    assert inner.calls == 0


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("broken", [True, False])
async def test_sync_to_async_round_trip(broken):
    sync_rule = FixedRule(broken)
    adapter = SyncToAsyncRuleAdapter(sync_rule)
    assert await adapter.is_broken() == sync_rule.is_broken()


@pytest.mark.asyncio
async def test_sync_to_async_check_raises():
    adapter = FixedRule(True, code="SYNC").to_async()
    assert adapter.code == "SYNC"
    with pytest.raises(BusinessRuleValidationError):
        await adapter.check()


@pytest.mark.parametrize("broken", [True, False])
def test_blocking_adapter_round_trip(broken):
    async_rule = FixedAsyncRule(broken)
    adapter = BlockingSyncAdapter(async_rule)
    assert adapter.is_broken() == broken


def test_blocking_adapter_evaluate_and_check():
    adapter = create_broken_async_rule().blocking()
    assert adapter.evaluate().code == "TEST_BROKEN_ASYNC"
    with pytest.raises(BusinessRuleValidationError):
        adapter.check()
    assert create_passing_async_rule().blocking().evaluate() is None


@pytest.mark.asyncio
async def test_blocking_adapter_refuses_inside_event_loop():
    adapter = BlockingSyncAdapter(FixedAsyncRule(True))
    with pytest.raises(RuntimeError, match="running event loop"):
        adapter.is_broken()


@pytest.mark.asyncio
async def test_blocking_adapter_allowed_inside_event_loop_by_config():
    previous = set_config(RuleEngineConfig(allow_blocking_in_event_loop=True))
    try:
        adapter = BlockingSyncAdapter(FixedAsyncRule(True))
        assert adapter.is_broken()
    finally:
        set_config(previous)


@pytest.mark.parametrize(
    "build",
    [
        lambda rule: AndRule(FixedRule(True), rule),
        lambda rule: AndRule(rule, FixedRule(True)),
        lambda rule: OrRule(FixedRule(False), rule),
        lambda rule: NotRule(rule),
        lambda rule: ConditionalBusinessRule(rule, lambda: True),
    ],
    ids=["and-second", "and-first", "or", "not", "conditional"],
)
def test_sync_combinators_reject_async_operands(build):
    with pytest.raises(TypeError, match="BlockingSyncAdapter"):
        build(create_passing_async_rule())


def test_sync_combinator_accepts_explicitly_blocked_async_rule():
    rule = AndRule(FixedRule(True), BlockingSyncAdapter(create_broken_async_rule()))
    assert rule.is_broken()
