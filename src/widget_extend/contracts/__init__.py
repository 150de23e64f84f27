"""Error kinds and schema contracts shared by the pipeline."""

from __future__ import annotations

from .errors import (
    DestinationExistsError,
    ExtractionError,
    GraphError,
    NotFoundError,
    ParseError,
    PatchAnchorError,
    WidgetExtendError,
)
from .loader import validate_descriptor

__all__ = [
    "DestinationExistsError",
    "ExtractionError",
    "GraphError",
    "NotFoundError",
    "ParseError",
    "PatchAnchorError",
    "WidgetExtendError",
    "validate_descriptor",
]
