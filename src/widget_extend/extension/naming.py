"""Naming conventions shared by the extraction and patching steps."""

from __future__ import annotations

import re

WIDGET_SUFFIX = "-ang"
TAG_NAMESPACE = "bb-"
PACKAGE_SCOPE = "@backbase"
DEFAULT_MODULE_SUFFIX = "-ext"

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_MEMBER_SPLIT = re.compile(r"[^A-Za-z0-9_$]+")


def strip_widget_suffix(widget_id: str) -> str:
    if widget_id.endswith(WIDGET_SUFFIX):
        return widget_id[: -len(WIDGET_SUFFIX)]
    return widget_id


def derive_tag_name(widget_id: str) -> str:
    """Return the custom element tag the wrapper uses to invoke *widget_id*.

    >>> derive_tag_name("foo-bar-widget-ang")
    'bb-foo-bar-widget'
    """

    return f"{TAG_NAMESPACE}{strip_widget_suffix(widget_id)}"


def default_module_name(widget_id: str) -> str:
    return f"{strip_widget_suffix(widget_id)}{DEFAULT_MODULE_SUFFIX}"


def pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SPLIT.split(name) if part)


def component_class_name(module_name: str) -> str:
    return f"{pascal_case(module_name)}Component"


def module_class_name(module_name: str) -> str:
    return f"{pascal_case(module_name)}Module"


def is_identifier(name: str) -> bool:
    return _IDENTIFIER.match(name) is not None


def output_property(event: str) -> str:
    """Class member emitting *event*; event names that are not identifiers are camelCased.

    >>> output_property("nav.item-selected")
    'navItemSelected'
    """

    if is_identifier(event):
        return event
    parts = [part for part in _MEMBER_SPLIT.split(event) if part]
    if not parts:
        return "_"
    name = parts[0] + "".join(part[:1].upper() + part[1:] for part in parts[1:])
    return name if is_identifier(name) else f"_{name}"


def handler_name(output: str) -> str:
    """Name of the wrapper method that forwards the *output* event."""

    member = output_property(output)
    return f"on{member[:1].upper()}{member[1:]}"


def package_specifier(widget_id: str) -> str:
    return f"{PACKAGE_SCOPE}/{widget_id}"


__all__ = [
    "component_class_name",
    "default_module_name",
    "derive_tag_name",
    "handler_name",
    "is_identifier",
    "module_class_name",
    "output_property",
    "package_specifier",
    "pascal_case",
    "strip_widget_suffix",
]
