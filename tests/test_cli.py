from __future__ import annotations

import logging

import pytest

from widget_extend.orchestrator.orchestrator import _cli_overrides, build_parser, main


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_list_without_node_modules(tmp_path, capsys):
    assert main(["--list", "--workspace", str(tmp_path)]) == 0
    assert "Could not find node_modules, did you run npm install?" in capsys.readouterr().out


def test_list_installed_widgets(workspace, capsys):
    assert main(["--list", "--workspace", str(workspace)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Available widgets:", "foo-widget-ang"]


def test_list_with_no_matches(workspace, capsys):
    assert main(["--list", "--workspace", str(workspace), "--widget-name-pattern=-nothing"]) == 0
    assert "No widgets matching '-nothing'" in capsys.readouterr().out


def test_widget_required_outside_list_mode(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--workspace", str(tmp_path)])
    assert excinfo.value.code == 2


def test_cli_overrides_use_cli_prefix():
    args = build_parser().parse_args(
        ["foo-widget-ang", "--title", "T", "--library-root", "projects", "--enable-extension-slots", "--sequential"]
    )
    assert _cli_overrides(args) == {
        "CLI_WIDGET_EXTEND_TITLE": "T",
        "CLI_WIDGET_EXTEND_LIBRARY_ROOT": "projects",
        "CLI_WIDGET_EXTEND_ENABLE_EXTENSION_SLOTS": "1",
        "CLI_WIDGET_EXTEND_EXECUTOR": "sequential",
    }
    assert _cli_overrides(build_parser().parse_args(["w"])) == {}
