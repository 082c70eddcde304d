"""Test the async batch checker."""
import asyncio

import pytest

from business_rules import (
    AsyncBusinessRule,
    AsyncBusinessRuleBuilder,
    AsyncRuleExecutionObserver,
    BusinessRuleContext,
    BusinessRuleValidationError,
    CancellationToken,
    LoggingRuleObserver,
    OperationCancelledError,
    RuleSeverity,
    check_all_async,
    check_by_category_async,
    check_by_severity_async,
    check_by_tags_async,
    evaluate_all_async,
)
from business_rules.testing import (
    create_broken_async_rule,
    create_broken_rule,
    create_passing_async_rule,
    create_passing_rule,
)


class CountingAsyncRule(AsyncBusinessRule):
    code = ""
    message = ""

    def __init__(self, broken, code, delay=0.0):
        self.broken = broken
        self.code = code
        self.message = f"{code} message"
        self.delay = delay
        self.calls = 0
        self.finished = False

    async def is_broken(self, context=None, cancel_token=None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        self.finished = True
        return self.broken


class RendezvousRule(AsyncBusinessRule):
    """Broken only if every sibling started before it finished."""

    message = "rendezvous"

    def __init__(self, code, state, expected):
        self._code = code
        self.state = state
        self.expected = expected

    @property
    def code(self):
        return self._code

    async def is_broken(self, context=None, cancel_token=None):
        self.state["started"] += 1
        if self.state["started"] == self.expected:
            self.state["all_started"].set()
        await asyncio.wait_for(self.state["all_started"].wait(), timeout=1.0)
        return True


class RecordingAsyncObserver(AsyncRuleExecutionObserver):
    def __init__(self):
        self.events = []

    async def on_before_evaluate(self, rule):
        self.events.append(("before", rule.code))

    async def on_after_evaluate(self, rule, result):
        self.events.append(("after", rule.code, result is not None))

    async def on_rule_broken(self, rule, result):
        self.events.append(("broken", result.code))


@pytest.mark.asyncio
async def test_empty_rule_list_does_not_raise():
    await check_all_async([])


@pytest.mark.asyncio
async def test_sequential_collects_all_broken():
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async([
            create_broken_async_rule("A"),
            create_passing_async_rule("B"),
            create_broken_async_rule("C"),
        ])
    assert exc.value.codes == ["A", "C"]


@pytest.mark.asyncio
async def test_stop_on_first_failure_boundary():
    rules = [CountingAsyncRule(False, "P"), CountingAsyncRule(True, "F1"), CountingAsyncRule(True, "F2")]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async(rules, stop_on_first_failure=True)
    assert [r.calls for r in rules] == [1, 1, 0]
    assert exc.value.codes == ["F1"]


@pytest.mark.asyncio
async def test_fail_fast_takes_precedence_over_parallel():
    rules = [CountingAsyncRule(False, "P"), CountingAsyncRule(True, "F1"), CountingAsyncRule(True, "F2")]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async(rules, stop_on_first_failure=True, run_in_parallel=True)
    assert rules[2].calls == 0
    assert len(exc.value.broken_rules) == 1


@pytest.mark.asyncio
async def test_parallel_runs_rules_concurrently():
    state = {"started": 0, "all_started": asyncio.Event()}
    rules = [RendezvousRule(f"R{i}", state, expected=3) for i in range(3)]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async(rules, run_in_parallel=True)
    assert exc.value.codes == ["R0", "R1", "R2"]


@pytest.mark.asyncio
async def test_parallel_results_keep_input_order():
    rules = [
        CountingAsyncRule(True, "SLOW", delay=0.03),
        CountingAsyncRule(False, "PASS"),
        CountingAsyncRule(True, "FAST"),
    ]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async(rules, run_in_parallel=True)
    assert exc.value.codes == ["SLOW", "FAST"]


@pytest.mark.asyncio
async def test_parallel_failure_lets_siblings_finish():
    async def explode(ctx):
        raise LookupError("boom")

    sibling = CountingAsyncRule(False, "SIBLING", delay=0.02)
    rules = [AsyncBusinessRuleBuilder.create("BOOM").when(explode).build(), sibling]
    with pytest.raises(LookupError):
        await check_all_async(rules, run_in_parallel=True)
    assert sibling.finished


@pytest.mark.asyncio
async def test_sequential_rule_exception_stops_batch():
    async def explode():
        raise LookupError("boom")

    later = CountingAsyncRule(True, "LATER")
    with pytest.raises(LookupError):
        await check_all_async([AsyncBusinessRuleBuilder.create("BOOM").when(explode).build(), later])
    assert later.calls == 0


@pytest.mark.asyncio
async def test_async_observer_sequential_order():
    observer = RecordingAsyncObserver()
    with pytest.raises(BusinessRuleValidationError):
        await check_all_async(
            [create_passing_async_rule("A"), create_broken_async_rule("B")],
            observer=observer,
        )
    assert observer.events == [
        ("before", "A"),
        ("after", "A", False),
        ("before", "B"),
        ("after", "B", True),
        ("broken", "B"),
    ]


@pytest.mark.asyncio
async def test_async_observer_parallel_sees_every_rule():
    observer = RecordingAsyncObserver()
    with pytest.raises(BusinessRuleValidationError):
        await check_all_async(
            [create_passing_async_rule("A"), create_broken_async_rule("B")],
            run_in_parallel=True,
            observer=observer,
        )
    assert sorted(e for e in observer.events if e[0] == "before") == [("before", "A"), ("before", "B")]
    assert ("broken", "B") in observer.events


@pytest.mark.asyncio
async def test_sync_observer_works_with_async_checker():
    await check_all_async([create_passing_async_rule()], observer=LoggingRuleObserver())


@pytest.mark.asyncio
async def test_sync_rules_are_adapted():
    passing = create_passing_rule("SYNC_OK")
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async([create_broken_rule("SYNC_BAD"), passing])
    assert exc.value.codes == ["SYNC_BAD"]
    result = await evaluate_all_async([passing])
    assert result.passed_rules[0] is passing


@pytest.mark.asyncio
async def test_non_rule_input_rejected():
    with pytest.raises(TypeError):
        await check_all_async([object()])


@pytest.mark.asyncio
async def test_context_reaches_async_rules():
    rule = AsyncBusinessRuleBuilder.create("LIMIT.EXCEEDED").when(lambda ctx: 1500 > ctx.get("limit")).build()
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_all_async([rule], context=BusinessRuleContext({"limit": 1000}))
    assert exc.value.broken_rules[0].code == "LIMIT.EXCEEDED"


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cancelled_token_raises_before_any_rule():
    token = CancellationToken()
    token.cancel()
    rule = CountingAsyncRule(True, "A")
    with pytest.raises(OperationCancelledError):
        await check_all_async([rule], cancel_token=token)
    assert rule.calls == 0


@pytest.mark.asyncio
async def test_cancellation_checked_between_rules():
    token = CancellationToken()

    def cancel_then_pass():
        token.cancel()
        return False

    first = AsyncBusinessRuleBuilder.create("FIRST").when(cancel_then_pass).build()
    second = CountingAsyncRule(True, "SECOND")
    with pytest.raises(OperationCancelledError):
        await check_all_async([first, second], cancel_token=token)
    assert second.calls == 0


@pytest.mark.asyncio
async def test_cancellation_is_not_aggregated():
    token = CancellationToken()

    def cancel_and_break():
        token.cancel()
        return True

    rules = [AsyncBusinessRuleBuilder.create("FIRST").when(cancel_and_break).build(), create_broken_async_rule()]
    with pytest.raises(OperationCancelledError):
        await check_all_async(rules, cancel_token=token)


@pytest.mark.asyncio
async def test_token_reaches_rule_predicate():
    token = CancellationToken()
    seen = []

    async def record(ctx, cancel_token):
        seen.append(cancel_token)
        return False

    await check_all_async([AsyncBusinessRuleBuilder.create("T").when(record).build()], cancel_token=token)
    assert seen == [token]


# ---------------------------------------------------------------------------
# evaluate_all_async and filters
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("parallel", [False, True])
async def test_evaluate_all_async(parallel):
    passing = create_passing_async_rule("OK")
    result = await evaluate_all_async(
        [create_broken_async_rule("BAD"), passing],
        run_in_parallel=parallel,
    )
    assert [r.code for r in result.broken_rules] == ["BAD"]
    assert result.passed_rules == (passing,)
    assert result.has_broken_rules


def _async_rule(code, severity=RuleSeverity.ERROR, category="", tags=()):
    return (
        AsyncBusinessRuleBuilder.create(code)
        .with_severity(severity)
        .with_category(category)
        .with_tags(*tags)
        .when(lambda: True)
        .build()
    )


@pytest.mark.asyncio
async def test_check_by_severity_async():
    rules = [
        _async_rule("E", RuleSeverity.ERROR),
        _async_rule("W", RuleSeverity.WARNING),
        _async_rule("I", RuleSeverity.INFO),
    ]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_by_severity_async(rules, RuleSeverity.WARNING)
    assert exc.value.codes == ["W"]


@pytest.mark.asyncio
async def test_check_by_category_async():
    rules = [_async_rule("CHECKOUT", category="Checkout"), _async_rule("USER", category="User")]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_by_category_async(rules, "Checkout")
    assert exc.value.codes == ["CHECKOUT"]


@pytest.mark.asyncio
async def test_check_by_tags_async():
    rules = [_async_rule("CRITICAL", tags=("critical",)), _async_rule("NORMAL", tags=("normal",))]
    with pytest.raises(BusinessRuleValidationError) as exc:
        await check_by_tags_async(rules, "CRITICAL")
    assert exc.value.codes == ["CRITICAL"]
