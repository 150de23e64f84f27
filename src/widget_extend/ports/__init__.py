"""Ports to the collaborators around the pipeline: generator and installed widgets."""

from __future__ import annotations

from .generator_port import CommandGenerator, GenerationRequest, Generator, generate_skeleton
from .widget_port import WidgetPackage, find_widgets, locate_widget

__all__ = [
    "CommandGenerator",
    "GenerationRequest",
    "Generator",
    "WidgetPackage",
    "find_widgets",
    "generate_skeleton",
    "locate_widget",
]
