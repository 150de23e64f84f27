"""Generated artifact set: whole-file writes, best-effort copies, digests.

Every file the pipeline produces goes through :class:`ArtifactStore`, which
performs blocking filesystem work in worker threads and records a
``sha256-<hex>`` digest per written path so a run can report exactly what it
left on disk.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from widget_extend.contracts.errors import NotFoundError

_LOGGER = logging.getLogger(__name__)

SOURCE_SUBDIR = Path("src") / "lib"


def compute_digest(data: bytes) -> str:
    """Return the ``sha256-`` prefixed digest of *data*."""

    return f"sha256-{hashlib.sha256(data).hexdigest()}"


@dataclass(frozen=True)
class DestinationLayout:
    """Paths of the wrapper library derived from the destination module name."""

    workspace: Path
    library_root: str
    module_name: str

    @property
    def library_dir(self) -> Path:
        return self.workspace / self.library_root / self.module_name

    @property
    def source_dir(self) -> Path:
        return self.library_dir / SOURCE_SUBDIR

    @property
    def component_path(self) -> Path:
        return self.source_dir / f"{self.module_name}.component.ts"

    @property
    def module_path(self) -> Path:
        return self.source_dir / f"{self.module_name}.module.ts"

    @property
    def template_name(self) -> str:
        return f"{self.module_name}.component.html"

    @property
    def template_path(self) -> Path:
        return self.source_dir / self.template_name

    def item_path(self, filename: str) -> Path:
        return self.library_dir / filename


class ArtifactStore:
    """Tracks the files written for one run under *root*."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._digests: Dict[Path, str] = {}

    def _record(self, path: Path, data: bytes) -> None:
        self._digests[path] = compute_digest(data)

    async def read_text(self, path: Path) -> str:
        try:
            return await asyncio.to_thread(path.read_text, "utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {path}", path) from exc

    async def write_text(self, path: Path, text: str) -> Path:
        """Overwrite *path* with *text* in a single write."""

        data = text.encode("utf-8")

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        self._record(path, data)
        return path

    async def copy_best_effort(self, source: Path, target: Path) -> bool:
        """Copy *source* to *target*; failures are logged and reported as ``False``."""

        def _copy() -> bytes:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            return target.read_bytes()

        try:
            data = await asyncio.to_thread(_copy)
        except OSError as exc:
            _LOGGER.warning("Skipping %s: %s", source.name, exc)
            return False
        self._record(target, data)
        return True

    def manifest(self) -> Dict[str, str]:
        """Map of written paths (relative to the store root when possible) to digests."""

        result: Dict[str, str] = {}
        for path, digest in sorted(self._digests.items()):
            try:
                key = path.relative_to(self.root).as_posix()
            except ValueError:
                key = path.as_posix()
            result[key] = digest
        return result


__all__ = ["ArtifactStore", "DestinationLayout", "compute_digest"]
