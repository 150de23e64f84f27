"""Runtime feature flag helpers."""

from __future__ import annotations

from typing import Any, Mapping

__all__ = ["coerce_bool", "is_extension_slots_enabled"]

_EXTENSION_SLOTS_KEY = "enable-extension-slots"
_EXTENSION_SLOTS_OVERRIDES = (
    "CLI_WIDGET_EXTEND_ENABLE_EXTENSION_SLOTS",
    "WIDGET_EXTEND_ENABLE_EXTENSION_SLOTS",
)


def coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalised = value.strip().lower()
        if normalised in {"1", "true", "yes", "on"}:
            return True
        if normalised in {"0", "false", "no", "off"}:
            return False
    return None


def is_extension_slots_enabled(
    features: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> bool:
    """Return ``True`` when extracted markup should stay live in the template.

    *features* is the ``[features]`` table of the workspace configuration;
    command line overrides (``CLI_`` keys) win over plain environment keys,
    which win over the table.  Disabled by default.
    """

    enabled = False
    if features:
        configured = coerce_bool(features.get(_EXTENSION_SLOTS_KEY))
        if configured is not None:
            enabled = configured

    if env:
        for key in _EXTENSION_SLOTS_OVERRIDES:
            override = coerce_bool(env.get(key))
            if override is not None:
                enabled = override
                break

    return enabled
