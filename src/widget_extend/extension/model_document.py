"""Typed access to widget definition documents (``model.xml``).

A definition document has a single root entity, usually a ``<catalog>`` that
wraps one item element::

    <catalog>
      <widget>
        <name>product-summary-widget-ang</name>
        <properties>
          <property name="classId"><value type="string">ProductSummaryWidgetComponent</value></property>
          <property name="output.itemSelected"><value type="string">...</value></property>
        </properties>
      </widget>
    </catalog>

The wrapper keeps the parsed element tree so serialisation preserves every
property (and comment) in document order.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from widget_extend.contracts.errors import ParseError

RESERVED_PREFERENCES = frozenset({"classId", "src", "render.requires", "title", "thumbnailUrl"})
OUTPUT_PREFIX = "output."

CATEGORY_RESERVED = "reserved"
CATEGORY_OUTPUT = "output"
CATEGORY_INPUT = "input"

TITLE_PROPERTY = "title"
CLASS_ID_PROPERTY = "classId"

_CATALOG_TAG = "catalog"
_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
_INDENT = "    "


@dataclass(frozen=True)
class PreferenceEntry:
    """A single ``<property>`` of the definition document."""

    name: str
    value: Optional[str]
    value_type: Optional[str]


@dataclass(frozen=True)
class Classification:
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]


def categorize(name: str) -> Tuple[Optional[str], str]:
    """Return ``(category, exposed_name)`` for a preference name.

    The category is ``None`` for output preferences with an empty event name;
    such entries are dropped from both lists.
    """

    if name in RESERVED_PREFERENCES:
        return CATEGORY_RESERVED, name
    if name.startswith(OUTPUT_PREFIX):
        event = name[len(OUTPUT_PREFIX):]
        if not event:
            return None, event
        return CATEGORY_OUTPUT, event
    return CATEGORY_INPUT, name


class WidgetDefinitionDocument:
    """Mutable, typed view over a parsed definition document."""

    def __init__(self, root: ET.Element, item: ET.Element) -> None:
        self._root = root
        self._item = item
        self._name = item.find("name")
        self._properties = item.find("properties")
        if self._name is None:
            raise ParseError(f"<{item.tag}> has no <name> element")
        if self._properties is None:
            raise ParseError(f"<{item.tag}> has no <properties> element")
        for element in self._property_elements():
            if not element.get("name"):
                raise ParseError(f"<{element.tag}> in <{item.tag}> has no name attribute")

    @property
    def root(self) -> ET.Element:
        return self._root

    @property
    def item_kind(self) -> str:
        return self._item.tag

    @property
    def name(self) -> str:
        return (self._name.text or "").strip()

    @name.setter
    def name(self, value: str) -> None:
        self._name.text = value

    def _property_elements(self) -> Iterator[ET.Element]:
        return self._properties.iterfind("property")

    def _find_property(self, name: str) -> Optional[ET.Element]:
        for element in self._property_elements():
            if element.get("name") == name:
                return element
        return None

    @property
    def preferences(self) -> List[PreferenceEntry]:
        entries: List[PreferenceEntry] = []
        for element in self._property_elements():
            value = element.find("value")
            entries.append(
                PreferenceEntry(
                    name=element.get("name", ""),
                    value=value.text if value is not None else None,
                    value_type=value.get("type") if value is not None else None,
                )
            )
        return entries

    def get_value(self, name: str) -> Optional[str]:
        element = self._find_property(name)
        if element is None:
            return None
        value = element.find("value")
        if value is None or value.text is None:
            return None
        return value.text.strip()

    def set_value(self, name: str, value: str) -> None:
        """Set the string value of property *name*, appending it when absent."""

        element = self._find_property(name)
        if element is None:
            element = ET.SubElement(self._properties, "property", {"name": name})
        value_element = element.find("value")
        if value_element is None:
            value_element = ET.SubElement(element, "value", {"type": "string"})
        value_element.text = value


def _locate_item(root: ET.Element) -> ET.Element:
    if root.tag != _CATALOG_TAG:
        return root
    items = [child for child in root if isinstance(child.tag, str)]
    if len(items) != 1:
        raise ParseError(f"<{_CATALOG_TAG}> must contain exactly one item, found {len(items)}")
    return items[0]


def parse(text: str) -> WidgetDefinitionDocument:
    """Parse definition document *text*; raises :class:`ParseError` when malformed."""

    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        parser.feed(text.encode("utf-8"))
        root = parser.close()
    except ET.ParseError as exc:
        raise ParseError(f"Malformed definition document: {exc}") from exc
    return WidgetDefinitionDocument(root, _locate_item(root))


def classify_preferences(doc: WidgetDefinitionDocument) -> Classification:
    inputs: List[str] = []
    outputs: List[str] = []
    for entry in doc.preferences:
        category, exposed = categorize(entry.name)
        if category == CATEGORY_OUTPUT:
            outputs.append(exposed)
        elif category == CATEGORY_INPUT:
            inputs.append(exposed)
    return Classification(inputs=tuple(inputs), outputs=tuple(outputs))


def rename(doc: WidgetDefinitionDocument, new_name: str) -> None:
    doc.name = new_name


def retitle(doc: WidgetDefinitionDocument, new_title: str) -> None:
    doc.set_value(TITLE_PROPERTY, new_title)


def rebind_class_id(doc: WidgetDefinitionDocument, new_type_name: str) -> None:
    doc.set_value(CLASS_ID_PROPERTY, new_type_name)


def serialize(doc: WidgetDefinitionDocument) -> str:
    """Return the document as text; whitespace is normalised on every call."""

    ET.indent(doc.root, space=_INDENT)
    body = ET.tostring(doc.root, encoding="unicode")
    return f"{_XML_DECLARATION}{body}\n"


__all__ = [
    "CATEGORY_INPUT",
    "CATEGORY_OUTPUT",
    "CATEGORY_RESERVED",
    "CLASS_ID_PROPERTY",
    "OUTPUT_PREFIX",
    "RESERVED_PREFERENCES",
    "TITLE_PROPERTY",
    "Classification",
    "PreferenceEntry",
    "WidgetDefinitionDocument",
    "categorize",
    "classify_preferences",
    "parse",
    "rebind_class_id",
    "rename",
    "retitle",
    "serialize",
]
