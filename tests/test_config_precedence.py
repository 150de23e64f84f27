from __future__ import annotations

from pathlib import Path

import pytest

from widget_extend.ports.generator_port import DEFAULT_COMMAND
from widget_extend.project_config import get_section, load_workspace_config, resolve_options


def _write_config(workspace: Path, text: str) -> None:
    (workspace / "widget-extend.toml").write_text(text, "utf-8")


def test_defaults_without_config(tmp_path):
    options = resolve_options({}, workspace=tmp_path, widget="foo-widget-ang")
    assert options.workspace == tmp_path.resolve()
    assert options.dist_path == tmp_path.resolve() / "node_modules" / "@backbase"
    assert options.widget_name_pattern == "-widget-ang"
    assert options.library_root == "libs"
    assert options.marker == "data-customizable"
    assert options.executor == "async"
    assert options.generator_command == DEFAULT_COMMAND
    assert options.journal_dir is None
    assert options.title is None and options.module is None and options.project is None
    assert options.enable_extension_slots is False
    assert options.sources["library-root"] == "default"


def test_toml_overrides_defaults(tmp_path):
    _write_config(
        tmp_path,
        """
[extend]
module = "foo-custom"
library-root = "projects"
dist-path = "/opt/widgets"

[features]
enable-extension-slots = true

[generator]
command = "npx ng g library {module}"

[journal]
dir = "journal"

[executor]
kind = "sequential"
""",
    )
    options = resolve_options({}, workspace=tmp_path)
    assert options.module == "foo-custom"
    assert options.library_root == "projects"
    assert options.dist_path == Path("/opt/widgets")
    assert options.enable_extension_slots is True
    assert options.generator_command == ("npx", "ng", "g", "library", "{module}")
    assert options.journal_dir == tmp_path.resolve() / "journal"
    assert options.executor == "sequential"
    assert options.sources["module"] == "config"


def test_environment_overrides_toml(tmp_path):
    _write_config(tmp_path, '[extend]\nmodule = "from-toml"\n\n[features]\nenable-extension-slots = true\n')
    env = {"WIDGET_EXTEND_MODULE": "from-env", "WIDGET_EXTEND_ENABLE_EXTENSION_SLOTS": "off"}
    options = resolve_options(env, workspace=tmp_path)
    assert options.module == "from-env"
    assert options.enable_extension_slots is False
    assert options.sources["module"] == "env"


def test_cli_overrides_environment(tmp_path):
    env = {
        "WIDGET_EXTEND_TITLE": "Env title",
        "CLI_WIDGET_EXTEND_TITLE": "Cli title",
        "WIDGET_EXTEND_EXECUTOR": "sequential",
        "CLI_WIDGET_EXTEND_EXECUTOR": "async",
    }
    options = resolve_options(env, workspace=tmp_path)
    assert options.title == "Cli title"
    assert options.executor == "async"
    assert options.sources["title"] == "cli"


def test_empty_values_fall_through(tmp_path):
    options = resolve_options({"CLI_WIDGET_EXTEND_LIBRARY_ROOT": "", "WIDGET_EXTEND_LIBRARY_ROOT": "apps"}, workspace=tmp_path)
    assert options.library_root == "apps"


def test_unknown_executor_rejected(tmp_path):
    with pytest.raises(ValueError):
        resolve_options({"WIDGET_EXTEND_EXECUTOR": "threads"}, workspace=tmp_path)


def test_config_is_cached_per_workspace(tmp_path):
    _write_config(tmp_path, '[extend]\nmarker = "x-extend"\n')
    first = load_workspace_config(tmp_path.resolve())
    _write_config(tmp_path, '[extend]\nmarker = "changed"\n')
    assert load_workspace_config(tmp_path.resolve()) is first
    assert get_section(first, "extend.marker") == "x-extend"
    assert get_section(first, "extend.missing.deeper", "fallback") == "fallback"
