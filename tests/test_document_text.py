"""
Unit tests for ADF / HTML plain-text extraction.
"""
from story_to_tests.services.document_text import (
    Generic,
    ListNode,
    Paragraph,
    Text,
    extract_section_by_heading,
    html_to_plain_text,
    parse_node,
    render_node,
    split_structured_document,
)


def _text(value):
    return {"type": "text", "text": value}


def _para(*values):
    return {"type": "paragraph", "content": [_text(v) for v in values]}


def _bullets(*items):
    return {
        "type": "bulletList",
        "content": [{"type": "listItem", "content": [_para(item)]} for item in items],
    }


def _doc(*nodes):
    return {"type": "doc", "version": 1, "content": list(nodes)}


# ---------------------------------------------------------------------------
# split_structured_document()
# ---------------------------------------------------------------------------

def test_split_moves_content_after_boundary_to_acceptance_criteria():
    doc = _doc(
        _para("Desc line"),
        _para("Acceptance Criteria:"),
        _bullets("item one"),
        _bullets("item two"),
    )

    result = split_structured_document(doc)

    assert result.description == "Desc line"
    assert result.acceptance_criteria == "- item one\n- item two"


def test_split_without_boundary_keeps_everything_in_description():
    doc = _doc(_para("As a user I want things"), _bullets("x", "y"))

    result = split_structured_document(doc)

    assert result.description == "As a user I want things\n- x\n- y"
    assert result.acceptance_criteria == ""


def test_split_honors_only_the_first_boundary():
    doc = _doc(
        _para("intro"),
        _para("acceptance criteria"),
        _para("one"),
        _para("Acceptance Criteria"),
        _para("two"),
    )

    result = split_structured_document(doc)

    assert result.description == "intro"
    assert result.acceptance_criteria == "one\nAcceptance Criteria\ntwo"


def test_split_detects_boundary_in_heading_with_loose_spacing():
    heading = {
        "type": "heading",
        "attrs": {"level": 3},
        "content": [_text("  ACCEPTANCE   criteria : ")],
    }
    doc = _doc(_para("Story text"), heading, _para("Must save"))

    result = split_structured_document(doc)

    assert result.description == "Story text"
    assert result.acceptance_criteria == "Must save"


def test_split_does_not_treat_inline_label_as_boundary():
    doc = _doc(_para("Acceptance Criteria: must do X"), _para("more"))

    result = split_structured_document(doc)

    assert result.description == "Acceptance Criteria: must do X\nmore"
    assert result.acceptance_criteria == ""


def test_split_is_total_on_malformed_input():
    assert split_structured_document(None).description == ""
    assert split_structured_document("not a doc").acceptance_criteria == ""
    assert split_structured_document({"content": "nope"}).description == ""

    result = split_structured_document({
        "type": "doc",
        "content": [None, 5, {"type": "paragraph", "content": None}, {"type": "text"}],
    })
    assert result.description == ""
    assert result.acceptance_criteria == ""


# ---------------------------------------------------------------------------
# parse_node() / render_node()
# ---------------------------------------------------------------------------

def test_unknown_node_types_degrade_to_generic():
    node = parse_node({"type": "panel", "content": [_para("x"), _para("y")]})

    assert node == Generic((Paragraph((Text("x"),)), Paragraph((Text("y"),))))
    assert render_node(node) == "x\ny"


def test_ordered_list_is_parsed_as_ordered():
    node = parse_node({"type": "orderedList", "content": []})

    assert isinstance(node, ListNode)
    assert node.ordered is True


def test_empty_list_items_render_nothing():
    node = parse_node({
        "type": "bulletList",
        "content": [
            {"type": "listItem", "content": [{"type": "paragraph", "content": []}]},
            {"type": "listItem", "content": [_para("b")]},
        ],
    })

    assert render_node(node) == "\n- b"


def test_list_item_children_are_joined_with_a_space():
    node = parse_node({"type": "listItem", "content": [_para("a"), _para("b ")]})

    assert render_node(node) == "- a b"


def test_text_node_with_non_string_text_renders_empty():
    assert render_node(parse_node({"type": "text", "text": 42})) == ""
    assert render_node(parse_node({"no": "type"})) == ""


# ---------------------------------------------------------------------------
# html_to_plain_text()
# ---------------------------------------------------------------------------

def test_html_empty_input():
    assert html_to_plain_text("") == ""
    assert html_to_plain_text(None) == ""


def test_html_paragraphs_are_separated_by_blank_line():
    assert html_to_plain_text("<p>Hello</p><p>World</p>") == "Hello\n\nWorld"


def test_html_list_items_become_bullets():
    assert html_to_plain_text("<ul><li>A</li><li>B</li></ul>") == "- A\n\n- B"
    assert html_to_plain_text("<ol><li class='x'>Only</li></ol>") == "- Only"


def test_html_line_breaks():
    assert html_to_plain_text("line1<br>line2<br/>line3<BR />line4") == "line1\nline2\nline3\nline4"


def test_html_entities_are_decoded():
    html = "Tom &amp; Jerry &lt;3 &quot;hi&quot; it&#39;s&nbsp;ok &#65;"

    assert html_to_plain_text(html) == "Tom & Jerry <3 \"hi\" it's ok A"


def test_html_entities_are_decoded_exactly_once():
    assert html_to_plain_text("&amp;nbsp;") == "&nbsp;"
    assert html_to_plain_text("&amp;lt;b&amp;gt;") == "&lt;b&gt;"


def test_html_whitespace_is_normalized():
    assert html_to_plain_text("<p>a</p>\r\n\r\n\r\n<div>b</div>") == "a\n\nb"
    assert html_to_plain_text("x   <br>y") == "x\ny"


def test_html_unmatched_tags_do_not_raise():
    assert html_to_plain_text("<p>open <b>bold") == "open bold"
    assert html_to_plain_text("a < b") == "a < b"


def test_html_output_is_stable_when_converted_again():
    once = html_to_plain_text("<p>Hello &amp; welcome</p><ul><li>One</li></ul>")

    assert once == "Hello & welcome\n\n- One"
    assert html_to_plain_text(once) == once


# ---------------------------------------------------------------------------
# extract_section_by_heading()
# ---------------------------------------------------------------------------

def test_section_runs_until_next_heading():
    html = "<h2>Acceptance Criteria</h2><p>AC text</p><h2>Other</h2><p>ignored</p>"

    picked = extract_section_by_heading(html, r"acceptance\s*criteria")

    assert picked is not None
    assert picked.section_html == "<p>AC text</p>"
    assert picked.without_section_html == "<h2>Other</h2><p>ignored</p>"


def test_section_heading_with_nested_markup():
    html = (
        "<p>Intro</p>"
        "<h3><strong>Acceptance&nbsp;Criteria</strong></h3>"
        "<ul><li>one</li></ul>"
    )

    picked = extract_section_by_heading(html, r"acceptance\s*criteria")

    assert picked.section_html == "<ul><li>one</li></ul>"
    assert picked.without_section_html == "<p>Intro</p>"


def test_section_uses_first_matching_heading():
    html = "<h1>Title</h1><h2>Acceptance criteria</h2>A<h2>ACCEPTANCE CRITERIA</h2>B"

    picked = extract_section_by_heading(html, "ACCEPTANCE criteria")

    assert picked.section_html == "A"
    assert picked.without_section_html == "<h1>Title</h1><h2>ACCEPTANCE CRITERIA</h2>B"


def test_section_not_found():
    assert extract_section_by_heading("<h2>Notes</h2><p>x</p>", r"acceptance\s*criteria") is None
    assert extract_section_by_heading("", r"acceptance") is None
    assert extract_section_by_heading(None, r"acceptance") is None


def test_html_numeric_entities_that_are_not_characters_stay_literal():
    huge = "&#" + "1" * 5000 + ";"

    assert html_to_plain_text(huge) == huge
    assert html_to_plain_text("a&#55296;b") == "a&#55296;b"
    assert html_to_plain_text("&#57343;&#1114112;") == "&#57343;&#1114112;"
    assert html_to_plain_text("&#00000065;") == "A"


def test_deeply_nested_nodes_do_not_overflow():
    deep = {"type": "text", "text": "deep"}
    for _ in range(450):
        deep = {"type": "panel", "content": [deep]}

    result = split_structured_document(_doc(_para("top"), deep))

    assert result.description == "top"
    assert result.acceptance_criteria == ""


def test_nesting_within_limit_is_rendered():
    nested = {"type": "text", "text": "inner"}
    for _ in range(20):
        nested = {"type": "panel", "content": [nested]}

    assert split_structured_document(_doc(nested)).description == "inner"
