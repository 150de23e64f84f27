"""Scheduler building the widget extension step graph."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence

from .executor import AsyncExecutor, Executor, ResultListener
from .state import RunState
from .task import Result, WorkUnit

LOAD_METADATA = "load_metadata"
GENERATE_SKELETON = "generate_skeleton"
COPY_ARTIFACTS = "copy_artifacts"
COMPOSE_TEMPLATE = "compose_template"
PATCH_MODULE = "patch_module"
TRANSFORM_MODEL = "transform_model"
PATCH_COMPONENT = "patch_component"
FINALIZE = "finalize"


class PipelineSteps(Protocol):
    """Step implementations; each receives the values of its dependencies."""

    async def load_metadata(self, inputs: Mapping[str, Any]) -> Any: ...

    async def generate_skeleton(self, inputs: Mapping[str, Any]) -> Any: ...

    async def copy_artifacts(self, inputs: Mapping[str, Any]) -> Any: ...

    async def compose_template(self, inputs: Mapping[str, Any]) -> Any: ...

    async def patch_module(self, inputs: Mapping[str, Any]) -> Any: ...

    async def transform_model(self, inputs: Mapping[str, Any]) -> Any: ...

    async def patch_component(self, inputs: Mapping[str, Any]) -> Any: ...

    async def finalize(self, inputs: Mapping[str, Any]) -> Any: ...


class Scheduler:
    """Builds the step graph and hands it to an executor (asyncio by default)."""

    def __init__(self, executor: Executor | None = None) -> None:
        self.executor = executor or AsyncExecutor()

    def build_task_graph(self, steps: PipelineSteps) -> List[WorkUnit]:
        """Declare the pipeline steps and their dependencies.

        Copying item files and composing the template both wait for the
        skeleton and join before the model transform.  Module patching only
        needs the skeleton and the module reference, so it runs beside them.
        """

        return [
            WorkUnit(LOAD_METADATA, steps.load_metadata, (), RunState.METADATA_LOADED),
            WorkUnit(GENERATE_SKELETON, steps.generate_skeleton, (LOAD_METADATA,), RunState.SKELETON_GENERATED),
            WorkUnit(COPY_ARTIFACTS, steps.copy_artifacts, (GENERATE_SKELETON,), RunState.ARTIFACTS_COPIED),
            WorkUnit(COMPOSE_TEMPLATE, steps.compose_template, (GENERATE_SKELETON,), RunState.TEMPLATE_COMPOSED),
            WorkUnit(PATCH_MODULE, steps.patch_module, (GENERATE_SKELETON,)),
            WorkUnit(
                TRANSFORM_MODEL,
                steps.transform_model,
                (COPY_ARTIFACTS, COMPOSE_TEMPLATE),
                RunState.MODEL_TRANSFORMED,
            ),
            WorkUnit(PATCH_COMPONENT, steps.patch_component, (TRANSFORM_MODEL, COMPOSE_TEMPLATE)),
            WorkUnit(FINALIZE, steps.finalize, (PATCH_COMPONENT, PATCH_MODULE), RunState.SOURCES_PATCHED),
        ]

    async def submit(
        self,
        work_units: Sequence[WorkUnit],
        on_result: Optional[ResultListener] = None,
    ) -> List[Result]:
        """Submit work units to the underlying executor."""

        return await self.executor.submit(list(work_units), on_result)


__all__ = [
    "COMPOSE_TEMPLATE",
    "COPY_ARTIFACTS",
    "FINALIZE",
    "GENERATE_SKELETON",
    "LOAD_METADATA",
    "PATCH_COMPONENT",
    "PATCH_MODULE",
    "PipelineSteps",
    "Scheduler",
    "TRANSFORM_MODEL",
]
