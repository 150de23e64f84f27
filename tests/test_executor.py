from __future__ import annotations

import asyncio

import pytest

from widget_extend.contracts.errors import GraphError
from widget_extend.orchestrator.executor import (
    AsyncExecutor,
    SequentialExecutor,
    make_executor,
    topological_order,
)
from widget_extend.orchestrator.task import STATUS_FAILED, STATUS_OK, STATUS_SKIPPED, WorkUnit


def _recorder(trace: list, name: str, value=None, *, delay: float = 0.0, error: Exception | None = None):
    async def action(inputs):
        trace.append(("start", name, dict(inputs)))
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        trace.append(("end", name))
        return value if value is not None else name

    return action


def _diamond(trace: list, **overrides) -> list:
    return [
        WorkUnit("root", overrides.get("root", _recorder(trace, "root"))),
        WorkUnit("left", overrides.get("left", _recorder(trace, "left", delay=0.02)), ("root",)),
        WorkUnit("right", overrides.get("right", _recorder(trace, "right")), ("root",)),
        WorkUnit("join", overrides.get("join", _recorder(trace, "join")), ("left", "right")),
    ]


@pytest.mark.parametrize("executor", [SequentialExecutor(), AsyncExecutor()])
def test_dependencies_complete_before_dependents(executor):
    trace: list = []
    results = asyncio.run(executor.submit(_diamond(trace)))

    assert [result.work_unit.name for result in results] == ["root", "left", "right", "join"]
    assert all(result.status == STATUS_OK for result in results)
    ends = [entry[1] for entry in trace if entry[0] == "end"]
    assert ends[0] == "root" and ends[-1] == "join"
    join_start = next(entry for entry in trace if entry[:2] == ("start", "join"))
    assert join_start[2] == {"left": "left", "right": "right"}


def test_async_executor_interleaves_independent_branches():
    trace: list = []
    asyncio.run(AsyncExecutor().submit(_diamond(trace)))
    ends = [entry[1] for entry in trace if entry[0] == "end"]
    # right does not wait for the slower left branch
    assert ends.index("right") < ends.index("left")


def test_sequential_executor_runs_in_declaration_order():
    trace: list = []
    asyncio.run(SequentialExecutor().submit(_diamond(trace)))
    assert [entry[1] for entry in trace if entry[0] == "start"] == ["root", "left", "right", "join"]


@pytest.mark.parametrize("executor", [SequentialExecutor(), AsyncExecutor()])
def test_failure_skips_dependents_but_not_siblings(executor):
    trace: list = []
    boom = RuntimeError("boom")
    seen = []
    results = asyncio.run(
        executor.submit(
            _diamond(trace, left=_recorder(trace, "left", error=boom)),
            on_result=lambda result: seen.append((result.work_unit.name, result.status)),
        )
    )
    by_name = {result.work_unit.name: result for result in results}
    assert by_name["left"].status == STATUS_FAILED
    assert by_name["left"].error is boom
    assert by_name["right"].status == STATUS_OK
    assert by_name["join"].status == STATUS_SKIPPED
    assert ("join", STATUS_SKIPPED) in seen
    assert "time_ms" in by_name["right"].metrics


def test_graph_validation():
    async def noop(inputs):
        return None

    with pytest.raises(GraphError):
        topological_order([WorkUnit("a", noop), WorkUnit("a", noop)])
    with pytest.raises(GraphError):
        topological_order([WorkUnit("a", noop, ("missing",))])
    with pytest.raises(GraphError):
        topological_order([WorkUnit("a", noop, ("b",)), WorkUnit("b", noop, ("a",))])
    ordered = topological_order([WorkUnit("b", noop, ("a",)), WorkUnit("a", noop)])
    assert [unit.name for unit in ordered] == ["a", "b"]


def test_cycles_rejected_before_running():
    trace: list = []
    units = [
        WorkUnit("a", _recorder(trace, "a")),
        WorkUnit("b", _recorder(trace, "b"), ("c",)),
        WorkUnit("c", _recorder(trace, "c"), ("b",)),
    ]
    with pytest.raises(GraphError):
        asyncio.run(AsyncExecutor().submit(units))
    assert trace == []


def test_make_executor():
    assert isinstance(make_executor("async"), AsyncExecutor)
    assert isinstance(make_executor("sequential"), SequentialExecutor)
    with pytest.raises(ValueError):
        make_executor("threads")
