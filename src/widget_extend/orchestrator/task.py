"""Work unit definitions for the pipeline step graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from .state import RunState

STATUS_PENDING = "pending"
STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"

StepAction = Callable[[Mapping[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class WorkUnit:
    """One step of the graph.

    ``action`` receives the values produced by the units named in
    ``depends_on``, keyed by unit name.  ``reaches`` is the run state entered
    once the unit completes.
    """

    name: str
    action: StepAction
    depends_on: Sequence[str] = ()
    reaches: Optional[RunState] = None


@dataclass
class Result:
    """Container for executor results."""

    work_unit: WorkUnit
    value: Any = None
    status: str = STATUS_PENDING
    error: Optional[BaseException] = None
    metrics: dict = field(default_factory=dict)


__all__ = [
    "STATUS_FAILED",
    "STATUS_OK",
    "STATUS_PENDING",
    "STATUS_SKIPPED",
    "Result",
    "StepAction",
    "WorkUnit",
]
