"""Scaffold Angular libraries that wrap and extend installed widgets."""

__version__ = "0.1.0"
