"""Widget extension orchestrator (Metadata → Skeleton → Template/Model → Sources)."""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from widget_extend.artifacts.artifact_store import ArtifactStore, DestinationLayout
from widget_extend.contracts.errors import DestinationExistsError, NotFoundError
from widget_extend.extension import markup, model_document, source_patcher
from widget_extend.extension.metadata import (
    WidgetDescriptor,
    WidgetModuleReference,
    load_descriptor,
    load_module_reference,
)
from widget_extend.extension.naming import component_class_name, default_module_name, pascal_case, strip_widget_suffix
from widget_extend.feature_flags import coerce_bool
from widget_extend.ports.generator_port import CommandGenerator, GenerationRequest, Generator, generate_skeleton
from widget_extend.ports.widget_port import (
    DEFINITION_FILENAME,
    ITEM_FILENAMES,
    WidgetPackage,
    find_widgets,
    locate_widget,
)
from widget_extend.project_config import ExtendOptions, merge_env, resolve_options

from . import log
from .executor import make_executor
from .scheduler import COMPOSE_TEMPLATE, GENERATE_SKELETON, LOAD_METADATA, TRANSFORM_MODEL, Scheduler
from .state import RunState, RunStateMachine
from .task import STATUS_FAILED, STATUS_OK, Result

_LOGGER = logging.getLogger(__name__)

PROGRESS_PREFIX = "[widget-extend]"

Reporter = Callable[[str], None]


@dataclass(frozen=True)
class WidgetFacts:
    """Everything read from the installed widget package."""

    package: WidgetPackage
    descriptor: WidgetDescriptor
    module_reference: WidgetModuleReference


@dataclass(frozen=True)
class ModelFacts:
    original_class_id: str
    original_title: Optional[str]
    title: str
    class_name: str
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]


def _fallback_component_name(widget_id: str) -> str:
    return f"{pascal_case(strip_widget_suffix(widget_id))}Component"


class ExtensionRun:
    """Step implementations for one widget extension run."""

    def __init__(
        self,
        options: ExtendOptions,
        *,
        generator: Generator,
        store: ArtifactStore,
        layout: DestinationLayout,
        reporter: Reporter,
    ) -> None:
        if not options.widget:
            raise ValueError("A widget identifier is required")
        self.options = options
        self.widget_id = options.widget
        self.generator = generator
        self.store = store
        self.layout = layout
        self._report = reporter
        self.facts: Optional[WidgetFacts] = None

    def progress(self, message: str) -> None:
        self._report(f"{PROGRESS_PREFIX} {message}")

    def _require_facts(self) -> WidgetFacts:
        if self.facts is None:
            raise RuntimeError("Widget metadata has not been loaded")
        return self.facts

    async def load_metadata(self, inputs: Mapping[str, Any]) -> WidgetFacts:
        package = locate_widget(self.options.dist_path, self.widget_id)
        descriptor, reference = await asyncio.gather(
            load_descriptor(package),
            load_module_reference(package),
        )
        self.facts = WidgetFacts(package=package, descriptor=descriptor, module_reference=reference)
        self.progress(f"Extending {descriptor.package_name} ({reference.identifier})")
        return self.facts

    async def generate_skeleton(self, inputs: Mapping[str, Any]) -> DestinationLayout:
        layout = self.layout
        if layout.library_dir.exists():
            raise DestinationExistsError(f"Destination already exists: {layout.library_dir}")

        self.progress(f"Generating library {layout.module_name}")
        request = GenerationRequest(
            workspace=self.options.workspace,
            module_name=layout.module_name,
            project=self.options.project,
        )
        await generate_skeleton(self.generator, request)

        for path in (layout.component_path, layout.module_path):
            if not path.is_file():
                raise NotFoundError(f"Generator did not produce {path}", path)
        return layout

    async def copy_artifacts(self, inputs: Mapping[str, Any]) -> Dict[str, bool]:
        layout: DestinationLayout = inputs[GENERATE_SKELETON]
        item_dir = self._require_facts().package.item_dir()
        copied: Dict[str, bool] = {}
        for filename in ITEM_FILENAMES:
            source = item_dir / filename
            if not source.is_file():
                level = logging.WARNING if filename == DEFINITION_FILENAME else logging.DEBUG
                _LOGGER.log(level, "No %s in %s", filename, item_dir)
                copied[filename] = False
                continue
            copied[filename] = await self.store.copy_best_effort(source, layout.item_path(filename))
        self.progress(f"Copied {', '.join(name for name, ok in copied.items() if ok) or 'no item files'}")
        return copied

    async def compose_template(self, inputs: Mapping[str, Any]) -> markup.ComposedTemplate:
        layout: DestinationLayout = inputs[GENERATE_SKELETON]
        bundle = self._require_facts().package.bundle_path()
        text = await self.store.read_text(bundle)
        composed = markup.compose_template(
            text,
            self.widget_id,
            marker=self.options.marker,
            extension_slots=self.options.enable_extension_slots,
        )
        await self.store.write_text(layout.template_path, composed.html)
        self.progress(f"Template {layout.template_name} built from {composed.fragment_count} fragment(s)")
        return composed

    async def transform_model(self, inputs: Mapping[str, Any]) -> ModelFacts:
        facts = self._require_facts()
        path = self.layout.item_path(DEFINITION_FILENAME)
        doc = model_document.parse(await self.store.read_text(path))

        original_class_id = doc.get_value(model_document.CLASS_ID_PROPERTY)
        if not original_class_id:
            original_class_id = _fallback_component_name(self.widget_id)
            _LOGGER.warning("%s has no classId; assuming %s", path, original_class_id)
        original_title = doc.get_value(model_document.TITLE_PROPERTY)
        classification = model_document.classify_preferences(doc)

        title = self.options.title or facts.descriptor.title
        class_name = component_class_name(self.layout.module_name)
        model_document.rename(doc, self.layout.module_name)
        model_document.retitle(doc, title)
        model_document.rebind_class_id(doc, class_name)
        await self.store.write_text(path, model_document.serialize(doc))

        self.progress(
            f"Model: {len(classification.inputs)} input(s), {len(classification.outputs)} output(s)"
        )
        return ModelFacts(
            original_class_id=original_class_id,
            original_title=original_title,
            title=title,
            class_name=class_name,
            inputs=classification.inputs,
            outputs=classification.outputs,
        )

    async def patch_module(self, inputs: Mapping[str, Any]) -> Path:
        reference = self._require_facts().module_reference.identifier
        await source_patcher.apply_patches(
            self.store,
            self.layout.module_path,
            [
                partial(source_patcher.inject_module_imports, module_reference=reference, widget_id=self.widget_id),
                partial(
                    source_patcher.register_module_dependencies,
                    module_reference=reference,
                    component_class=component_class_name(self.layout.module_name),
                ),
            ],
        )
        return self.layout.module_path

    async def patch_component(self, inputs: Mapping[str, Any]) -> Path:
        model: ModelFacts = inputs[TRANSFORM_MODEL]
        composed: markup.ComposedTemplate = inputs[COMPOSE_TEMPLATE]
        layout = self.layout
        await source_patcher.apply_patches(
            self.store,
            layout.component_path,
            [
                partial(
                    source_patcher.inject_route_copy,
                    original_component=model.original_class_id,
                    widget_id=self.widget_id,
                    path=layout.component_path,
                ),
                partial(source_patcher.rewrite_template_url, template_file=layout.template_name, path=layout.component_path),
                partial(source_patcher.wire_component_outputs, outputs=model.outputs, path=layout.component_path),
            ],
        )
        await source_patcher.apply_patches(
            self.store,
            layout.template_path,
            [partial(source_patcher.wire_template_outputs, tag_name=composed.tag_name, outputs=model.outputs)],
        )
        return layout.component_path

    async def finalize(self, inputs: Mapping[str, Any]) -> Dict[str, str]:
        self.progress(f"Sources patched in {self.layout.library_dir}")
        return self.store.manifest()


async def run_pipeline(
    options: ExtendOptions,
    *,
    generator: Generator | None = None,
    reporter: Reporter = print,
) -> Dict[str, Any]:
    """Execute the extension pipeline for ``options.widget``.

    The first step failure is re-raised unchanged once every independent
    step has settled; files already written stay on disk.
    """

    module_name = options.module or default_module_name(options.widget or "")
    layout = DestinationLayout(options.workspace, options.library_root, module_name)
    store = ArtifactStore(options.workspace)
    if generator is None:
        generator = CommandGenerator(options.generator_command)

    log.configure(options.journal_dir)
    run_id = f"run-{uuid.uuid4().hex[:12]}"

    def on_state(previous: RunState, state: RunState) -> None:
        log.append_event(
            {"event": "pipeline.state", "run_id": run_id, "from": previous.value, "to": state.value}
        )

    machine = RunStateMachine(listener=on_state)
    run = ExtensionRun(options, generator=generator, store=store, layout=layout, reporter=reporter)
    scheduler = Scheduler(make_executor(options.executor))
    failures: List[Result] = []

    def on_result(result: Result) -> None:
        unit = result.work_unit
        event: Dict[str, Any] = {
            "event": "pipeline.step",
            "run_id": run_id,
            "step": unit.name,
            "status": result.status,
            "time_ms": result.metrics.get("time_ms"),
        }
        if result.error is not None:
            event["error"] = f"{type(result.error).__name__}: {result.error}"
        log.append_event(event)
        if result.status == STATUS_FAILED:
            _LOGGER.debug("Step %s failed: %r", unit.name, result.error)
            failures.append(result)
            return
        if result.status == STATUS_OK and unit.reaches is not None and not failures:
            machine.reach(unit.reaches)

    log.append_event(
        {
            "event": "pipeline.start",
            "run_id": run_id,
            "widget": options.widget,
            "module": module_name,
            "executor": options.executor,
        }
    )
    results = await scheduler.submit(scheduler.build_task_graph(run), on_result)

    if failures:
        machine.fail()
        first = failures[0]
        log.append_event({"event": "pipeline.failed", "run_id": run_id, "step": first.work_unit.name})
        raise first.error  # type: ignore[misc]

    machine.reach(RunState.DONE)
    values = {result.work_unit.name: result.value for result in results}
    model: ModelFacts = values[TRANSFORM_MODEL]
    composed: markup.ComposedTemplate = values[COMPOSE_TEMPLATE]
    facts: WidgetFacts = values[LOAD_METADATA]
    log.append_event({"event": "pipeline.done", "run_id": run_id})
    run.progress(f"Done: {options.widget} extended as {module_name}")

    return {
        "run_id": run_id,
        "widget": options.widget,
        "module": module_name,
        "module_reference": facts.module_reference.identifier,
        "destination": str(layout.library_dir),
        "tag_name": composed.tag_name,
        "title": model.title,
        "component": model.class_name,
        "inputs": list(model.inputs),
        "outputs": list(model.outputs),
        "artifacts": store.manifest(),
        "states": [state.value for state in machine.history],
        "journal": str(log.current_log_path()) if log.current_log_path() else None,
    }


def list_widgets(options: ExtendOptions, *, reporter: Reporter = print) -> Optional[List[str]]:
    """Print installed widgets matching the name pattern; ``None`` when the dist path is missing."""

    widgets = find_widgets(options.dist_path, options.widget_name_pattern)
    if widgets is None:
        reporter("Could not find node_modules, did you run npm install?")
        return None
    if not widgets:
        reporter(f"No widgets matching {options.widget_name_pattern!r} found in {options.dist_path}")
        return widgets
    reporter("Available widgets:")
    for widget in widgets:
        reporter(widget)
    return widgets


def _cli_overrides(args: argparse.Namespace) -> Dict[str, str]:
    payload: Dict[str, str] = {}

    for option in ("title", "module", "project", "dist_path", "widget_name_pattern", "library_root", "journal_dir"):
        value = getattr(args, option, None)
        if value is not None:
            payload[f"CLI_WIDGET_EXTEND_{option.upper()}"] = str(value)

    slots = coerce_bool(getattr(args, "enable_extension_slots", None))
    if slots is not None:
        payload["CLI_WIDGET_EXTEND_ENABLE_EXTENSION_SLOTS"] = "1" if slots else "0"

    if getattr(args, "sequential", False):
        payload["CLI_WIDGET_EXTEND_EXECUTOR"] = "sequential"

    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="widget-extend",
        description="Scaffold an Angular library that wraps and extends an installed widget.",
    )
    parser.add_argument("widget", nargs="?", help="Installed widget identifier (e.g. 'foo-widget-ang').")
    parser.add_argument("--title", help="Title of the new widget. Defaults to the widget description.")
    parser.add_argument("--module", help="Name of the generated library. Defaults to '<widget>-ext'.")
    parser.add_argument(
        "--enable-extension-slots",
        dest="enable_extension_slots",
        action="store_true",
        help="Keep the customizable markup live instead of commenting it out.",
    )
    parser.set_defaults(enable_extension_slots=None)
    parser.add_argument("--project", help="Angular project the library belongs to.")
    parser.add_argument(
        "--dist-path",
        dest="dist_path",
        help="Directory holding installed widget packages. Defaults to 'node_modules/@backbase'.",
    )
    parser.add_argument(
        "--widget-name-pattern",
        dest="widget_name_pattern",
        help="Substring identifying widget packages when listing. Defaults to '-widget-ang'.",
    )
    parser.add_argument("--list", dest="list_only", action="store_true", help="List installed widgets and exit.")
    parser.add_argument(
        "--library-root",
        dest="library_root",
        help="Workspace directory holding generated libraries. Defaults to 'libs'.",
    )
    parser.add_argument("--journal-dir", dest="journal_dir", help="Write a JSONL run journal under this directory.")
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Run pipeline steps one at a time instead of concurrently.",
    )
    parser.add_argument("--workspace", help="Workspace root. Defaults to the current directory.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    env = merge_env(_cli_overrides(args))
    workspace = Path(args.workspace) if args.workspace else None
    try:
        options = resolve_options(env, workspace=workspace, widget=args.widget, list_only=args.list_only)
    except ValueError as exc:
        parser.error(str(exc))

    if options.list_only:
        list_widgets(options)
        return 0
    if not options.widget:
        parser.error("a widget identifier is required (use --list to see installed widgets)")

    asyncio.run(run_pipeline(options))
    return 0


__all__ = [
    "ExtensionRun",
    "ModelFacts",
    "WidgetFacts",
    "build_parser",
    "list_widgets",
    "main",
    "run_pipeline",
]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
