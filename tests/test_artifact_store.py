from __future__ import annotations

import asyncio
import hashlib
from pathlib import Path

import pytest

from widget_extend.artifacts.artifact_store import ArtifactStore, DestinationLayout, compute_digest
from widget_extend.contracts.errors import NotFoundError


def test_layout_paths():
    layout = DestinationLayout(Path("/ws"), "libs", "foo-widget-ext")
    assert layout.library_dir == Path("/ws/libs/foo-widget-ext")
    assert layout.component_path == Path("/ws/libs/foo-widget-ext/src/lib/foo-widget-ext.component.ts")
    assert layout.module_path == Path("/ws/libs/foo-widget-ext/src/lib/foo-widget-ext.module.ts")
    assert layout.template_name == "foo-widget-ext.component.html"
    assert layout.item_path("model.xml") == Path("/ws/libs/foo-widget-ext/model.xml")


def test_writes_are_recorded_with_digests(tmp_path):
    store = ArtifactStore(tmp_path)
    target = tmp_path / "a" / "b.txt"
    asyncio.run(store.write_text(target, "héllo"))
    assert target.read_text("utf-8") == "héllo"
    digest = store.manifest()["a/b.txt"]
    assert digest == "sha256-" + hashlib.sha256("héllo".encode("utf-8")).hexdigest()
    assert digest == compute_digest("héllo".encode("utf-8"))


def test_read_missing_file_raises_not_found(tmp_path):
    store = ArtifactStore(tmp_path)
    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(store.read_text(tmp_path / "missing.txt"))
    assert isinstance(excinfo.value, FileNotFoundError)
    assert excinfo.value.path == tmp_path / "missing.txt"


def test_best_effort_copy(tmp_path, caplog):
    store = ArtifactStore(tmp_path / "out")
    source = tmp_path / "icon.png"
    source.write_bytes(b"png")

    assert asyncio.run(store.copy_best_effort(source, tmp_path / "out" / "icon.png")) is True
    assert asyncio.run(store.copy_best_effort(tmp_path / "nope.json", tmp_path / "out" / "nope.json")) is False
    assert list(store.manifest()) == ["icon.png"]
    assert "Skipping nope.json" in caplog.text
