"""Executor interfaces for running the step graph."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from widget_extend.contracts.errors import GraphError

from .task import STATUS_FAILED, STATUS_OK, STATUS_SKIPPED, Result, WorkUnit

ResultListener = Callable[[Result], None]


def topological_order(work_units: Sequence[WorkUnit]) -> List[WorkUnit]:
    """Return *work_units* dependencies-first, keeping declaration order among peers.

    Raises :class:`GraphError` on duplicate names, unknown dependencies or cycles.
    """

    by_name: Dict[str, WorkUnit] = {}
    for unit in work_units:
        if unit.name in by_name:
            raise GraphError(f"Duplicate step {unit.name!r}")
        by_name[unit.name] = unit
    for unit in work_units:
        for dep in unit.depends_on:
            if dep not in by_name:
                raise GraphError(f"Step {unit.name!r} depends on unknown step {dep!r}")

    ordered: List[WorkUnit] = []
    placed: set[str] = set()
    remaining = list(work_units)
    while remaining:
        ready = [unit for unit in remaining if all(dep in placed for dep in unit.depends_on)]
        if not ready:
            names = ", ".join(unit.name for unit in remaining)
            raise GraphError(f"Dependency cycle between steps: {names}")
        for unit in ready:
            ordered.append(unit)
            placed.add(unit.name)
        remaining = [unit for unit in remaining if unit.name not in placed]
    return ordered


class Executor(Protocol):
    """Abstract execution backend."""

    async def submit(
        self,
        work_units: Sequence[WorkUnit],
        on_result: Optional[ResultListener] = None,
    ) -> List[Result]:
        """Run the graph and return one result per unit, in declaration order."""


async def _run_unit(unit: WorkUnit, results: Dict[str, Result]) -> Result:
    result = Result(work_unit=unit)
    upstream = [results[dep] for dep in unit.depends_on]
    if any(dep.status != STATUS_OK for dep in upstream):
        result.status = STATUS_SKIPPED
        return result
    inputs = {dep.work_unit.name: dep.value for dep in upstream}
    started = time.perf_counter()
    try:
        result.value = await unit.action(inputs)
        result.status = STATUS_OK
    except Exception as exc:
        result.status = STATUS_FAILED
        result.error = exc
    result.metrics["time_ms"] = int((time.perf_counter() - started) * 1000)
    return result


class SequentialExecutor:
    """Deterministic executor processing work units one at a time."""

    async def submit(
        self,
        work_units: Sequence[WorkUnit],
        on_result: Optional[ResultListener] = None,
    ) -> List[Result]:
        results: Dict[str, Result] = {}
        for unit in topological_order(work_units):
            result = await _run_unit(unit, results)
            results[unit.name] = result
            if on_result is not None:
                on_result(result)
        return [results[unit.name] for unit in work_units]


class AsyncExecutor:
    """Runs every unit as an asyncio task that first awaits its dependencies.

    Independent branches interleave at their I/O suspension points.  A
    failure marks its dependents skipped; tasks already running are never
    cancelled.
    """

    async def submit(
        self,
        work_units: Sequence[WorkUnit],
        on_result: Optional[ResultListener] = None,
    ) -> List[Result]:
        ordered = topological_order(work_units)
        results: Dict[str, Result] = {}
        tasks: Dict[str, asyncio.Task] = {}

        async def run(unit: WorkUnit) -> Result:
            for dep in unit.depends_on:
                await tasks[dep]
            result = await _run_unit(unit, results)
            results[unit.name] = result
            if on_result is not None:
                on_result(result)
            return result

        for unit in ordered:
            tasks[unit.name] = asyncio.create_task(run(unit), name=f"step:{unit.name}")
        await asyncio.wait(list(tasks.values()))
        for task in tasks.values():
            # listener failures surface here
            task.result()
        return [results[unit.name] for unit in work_units]


def make_executor(kind: str) -> Executor:
    if kind == "sequential":
        return SequentialExecutor()
    if kind == "async":
        return AsyncExecutor()
    raise ValueError(f"Unknown executor kind {kind!r}")


__all__ = ["AsyncExecutor", "Executor", "SequentialExecutor", "make_executor", "topological_order"]
