"""Layered configuration for widget-extend runs.

Values are resolved with the precedence command line > environment >
workspace ``widget-extend.toml`` > built-in defaults.  Command line values are
carried as ``CLI_WIDGET_EXTEND_*`` keys merged over the process environment, so
a single mapping describes every override.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import-untyped]

from widget_extend.extension.markup import DEFAULT_MARKER
from widget_extend.feature_flags import is_extension_slots_enabled
from widget_extend.ports.generator_port import DEFAULT_COMMAND

CONFIG_FILENAME = "widget-extend.toml"
ENV_PREFIX = "WIDGET_EXTEND_"
CLI_PREFIX = "CLI_"

DEFAULTS: Dict[str, Any] = {
    "dist-path": "node_modules/@backbase",
    "widget-name-pattern": "-widget-ang",
    "library-root": "libs",
    "marker": DEFAULT_MARKER,
    "executor": "async",
}

EXECUTORS = ("async", "sequential")


@lru_cache(maxsize=8)
def load_workspace_config(workspace: Path) -> Dict[str, Any]:
    """Load and cache ``widget-extend.toml`` from *workspace* (empty when absent)."""

    path = workspace / CONFIG_FILENAME
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def reload() -> None:
    """Clear the cached workspace configuration."""

    load_workspace_config.cache_clear()


def get_section(config: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Retrieve a nested configuration value using dotted notation."""

    data: Any = config
    for part in path.split("."):
        if isinstance(data, Mapping) and part in data:
            data = data[part]
        else:
            return default
    return data


def merge_env(overrides: Mapping[str, str] | None = None) -> Dict[str, str]:
    """Return the process environment with *overrides* (usually ``CLI_`` keys) on top."""

    merged = dict(os.environ)
    for key, value in (overrides or {}).items():
        merged[str(key)] = str(value)
    return merged


def _env_key(option: str) -> str:
    return ENV_PREFIX + option.upper().replace("-", "_")


def _lookup(option: str, env: Mapping[str, str], table: Mapping[str, Any]) -> Tuple[Any, str]:
    key = _env_key(option)
    for candidate, source in ((CLI_PREFIX + key, "cli"), (key, "env")):
        value = env.get(candidate)
        if value not in (None, ""):
            return value, source
    if option in table and table[option] not in (None, ""):
        return table[option], "config"
    return DEFAULTS.get(option), "default"


@dataclass(frozen=True)
class ExtendOptions:
    """Fully resolved options for one run."""

    workspace: Path
    widget: Optional[str]
    title: Optional[str]
    module: Optional[str]
    enable_extension_slots: bool
    project: Optional[str]
    dist_path: Path
    widget_name_pattern: str
    library_root: str
    marker: str
    list_only: bool
    generator_command: Tuple[str, ...]
    journal_dir: Optional[Path]
    executor: str
    sources: Mapping[str, str]


def _resolve_path(workspace: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else workspace / path


def resolve_options(
    env: Mapping[str, str],
    *,
    workspace: Path | None = None,
    widget: Optional[str] = None,
    list_only: bool = False,
) -> ExtendOptions:
    """Resolve every option from *env* (CLI keys included) and the workspace file."""

    root = (workspace or Path.cwd()).expanduser().resolve()
    config = load_workspace_config(root)
    extend_table = get_section(config, "extend", {}) or {}
    sources: Dict[str, str] = {}

    def pick(option: str, table: Mapping[str, Any] = extend_table) -> Any:
        value, source = _lookup(option, env, table)
        sources[option] = source
        return value

    title = pick("title")
    module = pick("module")
    project = pick("project")
    dist_path = _resolve_path(root, pick("dist-path"))
    pattern = str(pick("widget-name-pattern"))
    library_root = str(pick("library-root"))
    marker = str(pick("marker"))
    journal_raw = pick("journal-dir", {"journal-dir": get_section(config, "journal.dir")})
    journal_dir = _resolve_path(root, journal_raw) if journal_raw else None

    executor_raw = pick("executor", {"executor": get_section(config, "executor.kind")})
    executor = str(executor_raw).strip().lower()
    if executor not in EXECUTORS:
        raise ValueError(f"Unknown executor {executor_raw!r}; expected one of {', '.join(EXECUTORS)}")

    features = get_section(config, "features", {}) or {}
    slots = is_extension_slots_enabled(features, env)

    command = get_section(config, "generator.command")
    if isinstance(command, str):
        command = command.split()
    generator_command = tuple(str(part) for part in command) if command else DEFAULT_COMMAND

    return ExtendOptions(
        workspace=root,
        widget=widget,
        title=str(title) if title is not None else None,
        module=str(module) if module is not None else None,
        enable_extension_slots=slots,
        project=str(project) if project is not None else None,
        dist_path=dist_path,
        widget_name_pattern=pattern,
        library_root=library_root,
        marker=marker,
        list_only=list_only,
        generator_command=generator_command,
        journal_dir=journal_dir,
        executor=executor,
        sources=dict(sources),
    )


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULTS",
    "ExtendOptions",
    "get_section",
    "load_workspace_config",
    "merge_env",
    "reload",
    "resolve_options",
]
