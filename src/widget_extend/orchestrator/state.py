"""Run state machine for the extension pipeline."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional, Set

_LOGGER = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "Idle"
    METADATA_LOADED = "MetadataLoaded"
    SKELETON_GENERATED = "SkeletonGenerated"
    ARTIFACTS_COPIED = "ArtifactsCopied"
    TEMPLATE_COMPOSED = "TemplateComposed"
    MODEL_TRANSFORMED = "ModelTransformed"
    SOURCES_PATCHED = "SourcesPatched"
    DONE = "Done"
    FAILED = "Failed"


ORDER = (
    RunState.IDLE,
    RunState.METADATA_LOADED,
    RunState.SKELETON_GENERATED,
    RunState.ARTIFACTS_COPIED,
    RunState.TEMPLATE_COMPOSED,
    RunState.MODEL_TRANSFORMED,
    RunState.SOURCES_PATCHED,
    RunState.DONE,
)

Listener = Callable[[RunState, RunState], None]


class RunStateMachine:
    """Tracks reached states; parallel branches may reach states out of order.

    ``current`` is the furthest state whose predecessors have all been
    reached.  ``Failed`` is terminal and reachable from anywhere.
    """

    def __init__(self, listener: Optional[Listener] = None) -> None:
        self._reached: Set[RunState] = {RunState.IDLE}
        self._current = RunState.IDLE
        self._listener = listener
        self.history: List[RunState] = [RunState.IDLE]

    @property
    def current(self) -> RunState:
        return self._current

    @property
    def failed(self) -> bool:
        return self._current is RunState.FAILED

    def reach(self, state: RunState) -> None:
        if self.failed:
            raise RuntimeError(f"Cannot enter {state.value}: run already failed")
        if state is RunState.FAILED:
            self.fail()
            return
        if state is RunState.DONE and self._current is not RunState.SOURCES_PATCHED:
            raise RuntimeError(f"Cannot enter Done from {self._current.value}")
        self._reached.add(state)
        while True:
            index = ORDER.index(self._current)
            if index + 1 >= len(ORDER) or ORDER[index + 1] not in self._reached:
                break
            self._advance(ORDER[index + 1])

    def fail(self) -> None:
        if not self.failed:
            self._advance(RunState.FAILED)

    def _advance(self, state: RunState) -> None:
        previous = self._current
        self._current = state
        self.history.append(state)
        _LOGGER.debug("Run state %s -> %s", previous.value, state.value)
        if self._listener is not None:
            self._listener(previous, state)


__all__ = ["ORDER", "RunState", "RunStateMachine"]
