from __future__ import annotations

import pytest

from conftest import BUNDLE_JS
from widget_extend.contracts.errors import ExtractionError
from widget_extend.extension.markup import (
    compose_template,
    escape_comment_delimiters,
    extract_markup,
    find_fragments,
)
from widget_extend.extension.naming import derive_tag_name, handler_name, output_property


def test_tag_name_drops_ang_suffix():
    assert derive_tag_name("foo-bar-widget-ang") == "bb-foo-bar-widget"
    assert derive_tag_name("plain-widget") == "bb-plain-widget"


def test_output_members_are_camel_cased():
    assert output_property("itemSelected") == "itemSelected"
    assert output_property("item-selected") == "itemSelected"
    assert output_property("nav.selected") == "navSelected"
    assert output_property("1st-item") == "_1stItem"
    assert handler_name("item-selected") == "onItemSelected"


def test_fragments_keep_source_order_and_nesting():
    text = "x<ng-template a><ng-template b></ng-template></ng-template>y<ng-template c></ng-template>"
    fragments = find_fragments(text)
    assert [fragment.open_tag for fragment in fragments] == ["<ng-template a>", "<ng-template c>"]
    assert fragments[0].text == "<ng-template a><ng-template b></ng-template></ng-template>"


def test_unterminated_fragment_is_dropped():
    assert find_fragments("<ng-template a><p>never closed") == []


def test_adjacent_fragments_with_one_marker_are_both_extracted():
    block = extract_markup(BUNDLE_JS)
    assert block == (
        '<ng-template #header data-customizable>\n'
        '  <h1 class="title">{{ title }}</h1>\n'
        "</ng-template>\n"
        "<ng-template #footer><p>Footer</p><!-- end --></ng-template>"
    )


def test_bundle_without_fragments_raises():
    with pytest.raises(ExtractionError):
        extract_markup("var x = 1;")


def test_bundle_without_marker_raises():
    with pytest.raises(ExtractionError):
        extract_markup("<ng-template #a></ng-template><ng-template data-customizable-ish></ng-template>")


def test_comment_escaping_is_idempotent():
    once = escape_comment_delimiters("<p><!-- note --></p>")
    assert once == "<p>&lt;!-- note --&gt;</p>"
    assert escape_comment_delimiters(once) == once


def test_composed_template_comments_out_markup_by_default():
    composed = compose_template(BUNDLE_JS, "foo-widget-ang")
    assert composed.tag_name == "bb-foo-widget"
    assert composed.fragment_count == 2
    assert composed.html.startswith("<bb-foo-widget />\n\n<!--\n<ng-template #header")
    assert composed.html.endswith("</ng-template>\n-->\n")
    assert "&lt;!-- end --&gt;" in composed.html
    assert composed.html.count("<!--") == 1


def test_extension_slots_keep_markup_live():
    composed = compose_template(BUNDLE_JS, "foo-widget-ang", extension_slots=True)
    assert composed.html == "<bb-foo-widget />\n\n" + extract_markup(BUNDLE_JS) + "\n"


def test_quoted_greater_than_stays_inside_the_tag():
    bundle = '<ng-template [ngIf]=\\"a > b\\" data-customizable><p>x</p></ng-template>'
    assert extract_markup(bundle) == '<ng-template [ngIf]="a > b" data-customizable><p>x</p></ng-template>'


def test_marker_inside_attribute_value_does_not_count():
    with pytest.raises(ExtractionError):
        extract_markup('<ng-template class=\\"data-customizable\\"><p>x</p></ng-template>')


def test_custom_marker():
    bundle = "<ng-template x-extend></ng-template>"
    assert extract_markup(bundle, marker="x-extend") == bundle
    with pytest.raises(ExtractionError):
        extract_markup(bundle)
