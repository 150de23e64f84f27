"""Error kinds raised by the widget extension pipeline."""

from __future__ import annotations

from pathlib import Path


class WidgetExtendError(RuntimeError):
    """Base class for every failure raised by the pipeline."""


class NotFoundError(WidgetExtendError, FileNotFoundError):
    """Raised when a descriptor, document, bundle or skeleton file is missing."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ExtractionError(WidgetExtendError):
    """Raised when a compiled bundle yields no customizable markup fragments."""


class ParseError(WidgetExtendError, ValueError):
    """Raised when a definition document or package descriptor is malformed."""


class PatchAnchorError(WidgetExtendError):
    """Raised when a required anchor is absent from generated source."""

    def __init__(self, patch: str, anchor: str, path: Path | str | None = None) -> None:
        location = f" in {path}" if path is not None else ""
        super().__init__(f"{patch}: required anchor {anchor!r} not found{location}")
        self.patch = patch
        self.anchor = anchor
        self.path = path


class DestinationExistsError(WidgetExtendError, FileExistsError):
    """Raised when the destination library directory already exists."""


class GraphError(WidgetExtendError):
    """Raised when a step graph has unknown dependencies or cycles."""


__all__ = [
    "DestinationExistsError",
    "ExtractionError",
    "GraphError",
    "NotFoundError",
    "ParseError",
    "PatchAnchorError",
    "WidgetExtendError",
]
