"""Widget metadata: package descriptor and exported module reference."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set

from widget_extend.contracts.errors import NotFoundError, ParseError
from widget_extend.contracts.loader import validate_descriptor
from widget_extend.ports.widget_port import WidgetPackage

_LOGGER = logging.getLogger(__name__)

MODULE_SUFFIX = "Module"
PLACEHOLDER_MODULE = "WidgetModule"

_FRAMEWORK_MODULES = {"NgModule", "CommonModule", "BrowserModule", "RouterModule"}
_DECLARED_CLASS = re.compile(r"export\s+(?:declare\s+)?(?:abstract\s+)?class\s+(\w+)")
_EXPORT_LIST = re.compile(r"export\s*\{([^}]*)\}")
_STAR_EXPORT = re.compile(r"export\s*\*\s*from\s*['\"]([^'\"]+)['\"]")
_MAX_REEXPORT_DEPTH = 3


@dataclass(frozen=True)
class WidgetDescriptor:
    package_name: str
    title: str


@dataclass(frozen=True)
class WidgetModuleReference:
    identifier: str
    source: Optional[Path] = None

    @property
    def is_placeholder(self) -> bool:
        return self.source is None


def parse_descriptor(text: str, *, source: str = "package.json") -> WidgetDescriptor:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"{source}: invalid JSON: {exc}") from exc
    validate_descriptor(payload, source=source)
    name = payload["name"]
    title = payload.get("description") or name
    return WidgetDescriptor(package_name=name, title=title)


async def load_descriptor(package: WidgetPackage) -> WidgetDescriptor:
    path = package.descriptor_path
    try:
        text = await asyncio.to_thread(path.read_text, "utf-8")
    except FileNotFoundError as exc:
        raise NotFoundError(f"Widget descriptor not found: {path}", path) from exc
    return parse_descriptor(text, source=str(path))


def _exported_names(text: str) -> Iterable[str]:
    for match in _DECLARED_CLASS.finditer(text):
        yield match.group(1)
    for match in _EXPORT_LIST.finditer(text):
        for item in match.group(1).split(","):
            parts = item.split()
            if parts:
                # "A as B" exports B
                yield parts[-1]


def find_module_identifier(text: str, suffix: str = MODULE_SUFFIX) -> Optional[str]:
    """Return the first exported identifier in *text* ending with *suffix*."""

    for name in _exported_names(text):
        if name.endswith(suffix) and name != suffix and name not in _FRAMEWORK_MODULES:
            return name
    return None


def _reexport_targets(path: Path, text: str) -> List[Path]:
    targets: List[Path] = []
    for match in _STAR_EXPORT.finditer(text):
        specifier = match.group(1)
        if not specifier.startswith("."):
            continue
        base = (path.parent / specifier).resolve()
        for candidate in (base.with_name(base.name + ".d.ts"), base / "index.d.ts"):
            if candidate.is_file():
                targets.append(candidate)
                break
    return targets


def _scan_typings(entry_points: Iterable[Path], suffix: str) -> Optional[WidgetModuleReference]:
    seen: Set[Path] = set()
    frontier = [path for path in entry_points if path.is_file()]
    for _ in range(_MAX_REEXPORT_DEPTH + 1):
        following: List[Path] = []
        for path in frontier:
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            text = path.read_text("utf-8")
            identifier = find_module_identifier(text, suffix)
            if identifier is not None:
                return WidgetModuleReference(identifier=identifier, source=path)
            following.extend(_reexport_targets(path, text))
        if not following:
            break
        frontier = following
    return None


async def load_module_reference(package: WidgetPackage, suffix: str = MODULE_SUFFIX) -> WidgetModuleReference:
    found = await asyncio.to_thread(_scan_typings, package.typings_candidates(), suffix)
    if found is None:
        _LOGGER.warning(
            "No exported *%s identifier found for %s; using placeholder %s",
            suffix,
            package.widget_id,
            PLACEHOLDER_MODULE,
        )
        return WidgetModuleReference(identifier=PLACEHOLDER_MODULE)
    _LOGGER.debug("Module reference %s found in %s", found.identifier, found.source)
    return found


__all__ = [
    "MODULE_SUFFIX",
    "PLACEHOLDER_MODULE",
    "WidgetDescriptor",
    "WidgetModuleReference",
    "find_module_identifier",
    "load_descriptor",
    "load_module_reference",
    "parse_descriptor",
]
