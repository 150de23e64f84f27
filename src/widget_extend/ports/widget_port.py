"""Discovery and layout of installed widget packages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from widget_extend.contracts.errors import NotFoundError

DESCRIPTOR_FILENAME = "package.json"
ITEMS_DIRNAME = "backbase-items"
DEFINITION_FILENAME = "model.xml"
ITEM_FILENAMES = (DEFINITION_FILENAME, "options.json", "icon.png")

_TYPINGS_CANDIDATES = ("backbase-{widget}.d.ts", "index.d.ts", "public_api.d.ts", "public-api.d.ts")
_BUNDLE_CANDIDATES = (
    "esm5/backbase-{widget}.js",
    "esm2015/backbase-{widget}.js",
    "fesm5/backbase-{widget}.js",
    "fesm2015/backbase-{widget}.js",
    "bundles/backbase-{widget}.umd.js",
)


@dataclass(frozen=True)
class WidgetPackage:
    """On-disk layout of one installed widget."""

    widget_id: str
    root: Path

    @property
    def descriptor_path(self) -> Path:
        return self.root / DESCRIPTOR_FILENAME

    def typings_candidates(self) -> Tuple[Path, ...]:
        return tuple(self.root / name.format(widget=self.widget_id) for name in _TYPINGS_CANDIDATES)

    def bundle_candidates(self) -> Tuple[Path, ...]:
        return tuple(self.root / name.format(widget=self.widget_id) for name in _BUNDLE_CANDIDATES)

    def bundle_path(self) -> Path:
        for candidate in self.bundle_candidates():
            if candidate.is_file():
                return candidate
        raise NotFoundError(
            f"No compiled bundle for {self.widget_id} (looked for {_BUNDLE_CANDIDATES[0].format(widget=self.widget_id)} and alternatives)",
            self.root,
        )

    def item_dir(self) -> Path:
        """Directory holding the definition document and its companion files."""

        items_root = self.root / ITEMS_DIRNAME
        for pattern in (DEFINITION_FILENAME, f"*/{DEFINITION_FILENAME}"):
            matches = sorted(items_root.glob(pattern))
            if matches:
                return matches[0].parent
        return items_root / self.widget_id


def locate_widget(dist_path: Path, widget_id: str) -> WidgetPackage:
    root = dist_path / widget_id
    if not root.is_dir():
        raise NotFoundError(f"Widget {widget_id!r} is not installed under {dist_path}", root)
    return WidgetPackage(widget_id=widget_id, root=root)


def find_widgets(dist_path: Path, pattern: str) -> Optional[List[str]]:
    """Return installed widget identifiers containing *pattern*.

    ``None`` means *dist_path* itself does not exist.
    """

    if not dist_path.is_dir():
        return None
    return sorted(entry.name for entry in dist_path.iterdir() if entry.is_dir() and pattern in entry.name)


__all__ = [
    "DEFINITION_FILENAME",
    "DESCRIPTOR_FILENAME",
    "ITEM_FILENAMES",
    "WidgetPackage",
    "find_widgets",
    "locate_widget",
]
