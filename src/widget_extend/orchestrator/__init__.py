"""Orchestrator exposing the step graph scheduler, executors and run states."""

from .executor import AsyncExecutor, Executor, SequentialExecutor, make_executor
from .scheduler import Scheduler
from .state import RunState, RunStateMachine
from .task import Result, WorkUnit

__all__ = [
    "AsyncExecutor",
    "Executor",
    "Result",
    "RunState",
    "RunStateMachine",
    "Scheduler",
    "SequentialExecutor",
    "WorkUnit",
    "make_executor",
]
