"""Extraction of customizable markup fragments from compiled widget bundles.

Compiled bundles embed component templates as JavaScript string literals.  The
extractor locates every top-level ``<ng-template>`` element, keeps them in
source order, and turns the escaped string contents back into HTML.  The
resulting block becomes the body of the wrapper template, either live
(extension slots enabled) or disabled inside an HTML comment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import List, Tuple

from widget_extend.contracts.errors import ExtractionError

from .naming import derive_tag_name

FRAGMENT_TAG = "ng-template"
DEFAULT_MARKER = "data-customizable"

_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"
_ESCAPED_COMMENT_OPEN = "&lt;!--"
_ESCAPED_COMMENT_CLOSE = "--&gt;"


class _AttributeReader(HTMLParser):
    """Collects the attribute names of the first start tag fed to it (lowercased)."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.names: Tuple[str, ...] = ()
        self._seen = False

    def handle_starttag(self, tag, attrs):
        if not self._seen:
            self._seen = True
            self.names = tuple(name for name, _ in attrs)

    handle_startendtag = handle_starttag


@dataclass(frozen=True)
class Fragment:
    """A balanced ``<ng-template>`` element found in unescaped bundle text."""

    start: int
    end: int
    open_tag: str
    text: str

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        reader = _AttributeReader()
        reader.feed(self.open_tag)
        reader.close()
        return reader.names

    def has_marker(self, marker: str) -> bool:
        return marker.lower() in self.attribute_names


@dataclass(frozen=True)
class ComposedTemplate:
    tag_name: str
    html: str
    fragment_count: int


def _tag_pattern(tag: str) -> re.Pattern[str]:
    # quoted attribute values may contain ">"
    return re.compile(rf"""<(/?){re.escape(tag)}(?=[\s>/])(?:"[^"]*"|'[^']*'|[^'">])*>""")


def find_fragments(text: str, *, tag: str = FRAGMENT_TAG) -> List[Fragment]:
    """Return the top-level *tag* elements of *text* in source order.

    Nested elements stay inside their enclosing fragment.  Stray closing tags
    are ignored and an element left open at the end of the text is dropped.
    """

    fragments: List[Fragment] = []
    depth = 0
    start = 0
    open_tag = ""
    for match in _tag_pattern(tag).finditer(text):
        closing = match.group(1) == "/"
        if not closing:
            if depth == 0:
                start = match.start()
                open_tag = match.group(0)
            depth += 1
            continue
        if depth == 0:
            continue
        depth -= 1
        if depth == 0:
            end = match.end()
            fragments.append(Fragment(start=start, end=end, open_tag=open_tag, text=text[start:end]))
    return fragments


def unescape_bundle_text(text: str) -> str:
    """Undo the string-literal escaping applied by the bundler."""

    text = text.replace("\\n", "\n")
    return text.replace('\\"', '"')


def escape_comment_delimiters(text: str) -> str:
    """Neutralise comment delimiters so *text* can live inside an HTML comment.

    Escaped output contains no delimiters, so a second pass leaves it unchanged.
    """

    text = text.replace(_COMMENT_OPEN, _ESCAPED_COMMENT_OPEN)
    return text.replace(_COMMENT_CLOSE, _ESCAPED_COMMENT_CLOSE)


def wrap_in_comment(text: str) -> str:
    return f"{_COMMENT_OPEN}\n{text}\n{_COMMENT_CLOSE}"


def _marked_fragments(bundle_text: str, marker: str) -> List[Fragment]:
    fragments = find_fragments(unescape_bundle_text(bundle_text))
    if not fragments:
        raise ExtractionError(f"No <{FRAGMENT_TAG}> fragments found in bundle")
    if not any(fragment.has_marker(marker) for fragment in fragments):
        raise ExtractionError(
            f"None of the {len(fragments)} <{FRAGMENT_TAG}> fragments carries the {marker!r} marker"
        )
    return fragments


def extract_markup(bundle_text: str, marker: str = DEFAULT_MARKER) -> str:
    """Return the customizable fragments of *bundle_text* as HTML.

    Raises :class:`ExtractionError` when the bundle has no fragments or when
    none of them carries *marker* as an attribute.
    """

    return "\n".join(fragment.text for fragment in _marked_fragments(bundle_text, marker))


def compose_template(
    bundle_text: str,
    widget_id: str,
    *,
    marker: str = DEFAULT_MARKER,
    extension_slots: bool = False,
) -> ComposedTemplate:
    """Build the wrapper template for *widget_id* from its compiled bundle."""

    fragments = _marked_fragments(bundle_text, marker)
    block = "\n".join(fragment.text for fragment in fragments)
    if not extension_slots:
        block = wrap_in_comment(escape_comment_delimiters(block))
    tag_name = derive_tag_name(widget_id)
    html = f"<{tag_name} />\n\n{block}\n"
    return ComposedTemplate(tag_name=tag_name, html=html, fragment_count=len(fragments))


__all__ = [
    "DEFAULT_MARKER",
    "FRAGMENT_TAG",
    "ComposedTemplate",
    "Fragment",
    "compose_template",
    "escape_comment_delimiters",
    "extract_markup",
    "find_fragments",
    "unescape_bundle_text",
    "wrap_in_comment",
]
