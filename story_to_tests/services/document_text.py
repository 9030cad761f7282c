"""
Plain-text extraction from Jira description formats.

Handles the three shapes a Jira description can arrive in:
- Atlassian Document Format (ADF) JSON
- HTML rendered by Jira (renderedFields)
- plain text

Every function here is total over its input: malformed or unexpected
shapes degrade to empty strings instead of raising.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Pattern, Tuple, Union
import re


AC_BOUNDARY_PATTERN = re.compile(r"^acceptance\s*criteria\s*:?\s*$", re.IGNORECASE)
AC_HEADING_PATTERN = re.compile(r"acceptance\s*criteria", re.IGNORECASE)

LIST_NODE_TYPES = ("bulletList", "orderedList")

# Nodes nested deeper than this are dropped (rendered as empty)
MAX_NODE_DEPTH = 100


# ---------------------------------------------------------------------------
# Document nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Text:
    text: str = ""


@dataclass(frozen=True)
class Paragraph:
    children: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ListNode:
    ordered: bool = False
    items: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ListItem:
    children: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Generic:
    """Any node type we do not render specially (headings, panels, doc root...)."""
    children: Tuple[Any, ...] = ()


DocumentNode = Union[Text, Paragraph, ListNode, ListItem, Generic]


@dataclass(frozen=True)
class SectionSplit:
    """Description / acceptance criteria pair split out of one document."""
    description: str = ""
    acceptance_criteria: str = ""


@dataclass(frozen=True)
class HeadingSection:
    """Result of locating a section by its heading in rendered HTML."""
    section_html: str
    without_section_html: str


@dataclass
class _Heading:
    start: int
    end: int
    text: str = ""


def parse_node(raw: Any, depth: int = 0) -> DocumentNode:
    """
    Build a DocumentNode from a raw ADF dict.

    Unknown node types, malformed nodes and nodes nested deeper than
    MAX_NODE_DEPTH degrade to an empty Generic.

    Args:
        raw: One ADF node (normally a dict with "type" and "content")
        depth: Nesting level of raw below the document root

    Returns:
        Parsed DocumentNode
    """
    if not isinstance(raw, dict) or depth > MAX_NODE_DEPTH:
        return Generic()

    node_type = raw.get("type")
    if node_type == "text":
        text = raw.get("text")
        return Text(text if isinstance(text, str) else "")

    content = raw.get("content")
    children = tuple(parse_node(child, depth + 1) for child in content) if isinstance(content, list) else ()

    if node_type == "paragraph":
        return Paragraph(children)
    if node_type in LIST_NODE_TYPES:
        return ListNode(ordered=node_type == "orderedList", items=children)
    if node_type == "listItem":
        return ListItem(children)
    return Generic(children)


def render_node(node: DocumentNode) -> str:
    """
    Render a DocumentNode to plain text.

    - Text: literal string
    - Paragraph: children concatenated
    - List: items joined with newlines
    - ListItem: children joined with a space, prefixed with "- " when non-empty
    - anything else: children joined with newlines
    """
    if isinstance(node, Text):
        return node.text
    if isinstance(node, Paragraph):
        return "".join(render_node(child) for child in node.children)
    if isinstance(node, ListNode):
        return "\n".join(render_node(item) for item in node.items)
    if isinstance(node, ListItem):
        text = " ".join(render_node(child) for child in node.children).strip()
        return f"- {text}" if text else ""
    if isinstance(node, Generic):
        return "\n".join(render_node(child) for child in node.children)
    return ""


def _top_level_nodes(doc: Any) -> List[DocumentNode]:
    if not isinstance(doc, dict):
        return []
    content = doc.get("content")
    if not isinstance(content, list):
        return []
    return [parse_node(raw) for raw in content]


def is_structured_document(value: Any) -> bool:
    """True when value looks like an ADF document root."""
    return (
        isinstance(value, dict)
        and value.get("type") == "doc"
        and isinstance(value.get("content"), list)
    )


def split_structured_document(doc: Any) -> SectionSplit:
    """
    Split an ADF document into description and acceptance criteria.

    Walks the top-level content in order. The first block whose text is just
    "Acceptance Criteria" (optional colon) is a boundary: it is dropped and
    every block after it becomes acceptance criteria. Blocks before it are the
    description. Without a boundary everything is description.

    Args:
        doc: ADF document dict (anything else yields an empty split)

    Returns:
        SectionSplit with both fields as plain text
    """
    before: List[str] = []
    after: List[str] = []
    found_boundary = False

    for node in _top_level_nodes(doc):
        text = render_node(node).strip()

        if not found_boundary and AC_BOUNDARY_PATTERN.match(text):
            found_boundary = True
            continue

        if text:
            (after if found_boundary else before).append(text)

    return SectionSplit(
        description="\n".join(before).strip(),
        acceptance_criteria="\n".join(after).strip(),
    )


def document_to_plain_text(doc: Any) -> str:
    """Render every top-level block of an ADF document, one per line."""
    blocks = [render_node(node).strip() for node in _top_level_nodes(doc)]
    return "\n".join(block for block in blocks if block)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_NAMED_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
}
_ENTITY_RE = re.compile(r"&(nbsp|amp|lt|gt|quot|#39|#(\d+));")
_HEADING_RE = re.compile(r"<h[1-6][^>]*>[\s\S]*?</h[1-6]>", re.IGNORECASE)


def _decode_entity(match: "re.Match[str]") -> str:
    digits = match.group(2)
    if digits is None:
        return _NAMED_ENTITIES[match.group(1)]
    # Out-of-range and surrogate code points stay as written
    if len(digits.lstrip("0")) > 7:
        return match.group(0)
    code_point = int(digits)
    if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
        return match.group(0)
    return chr(code_point)


def decode_html_entities(text: str) -> str:
    """Decode the small entity set Jira emits, in a single pass."""
    return _ENTITY_RE.sub(_decode_entity, text)


def html_to_plain_text(html: Optional[str]) -> str:
    """
    Convert Jira-rendered HTML (paragraphs, breaks, list items) to plain text.

    List items become "- " bullets, paragraphs are separated by blank lines,
    every other tag is stripped and entities are decoded.

    Args:
        html: HTML string (None or empty yields "")

    Returns:
        Plain text, trimmed
    """
    if not html or not isinstance(html, str):
        return ""

    out = html
    out = re.sub(r"</li>\s*<li>", "</li>\n<li>", out, flags=re.IGNORECASE)
    out = re.sub(r"<li[^>]*>", "\n- ", out, flags=re.IGNORECASE)
    out = re.sub(r"</li>", "", out, flags=re.IGNORECASE)
    out = re.sub(r"<br\s*/?>", "\n", out, flags=re.IGNORECASE)
    out = re.sub(r"</p>\s*<p[^>]*>", "\n\n", out, flags=re.IGNORECASE)
    out = re.sub(r"<p[^>]*>", "", out, flags=re.IGNORECASE)
    out = re.sub(r"</p>", "\n", out, flags=re.IGNORECASE)

    out = re.sub(r"<[^>]+>", "", out)

    out = decode_html_entities(out)
    out = out.replace("\r", "")
    out = re.sub(r"[ \t]+\n", "\n", out)
    out = re.sub(r"\n{3,}", "\n\n", out)
    return out.strip()


def extract_section_by_heading(
    html: Optional[str],
    pattern: Union[str, Pattern[str]],
) -> Optional[HeadingSection]:
    """
    Find the section of rendered HTML introduced by a matching heading.

    Headings are matched on their plain-text rendering, so nested markup such
    as <h3><strong>Acceptance Criteria</strong></h3> still matches. The
    section runs from the end of the matching heading to the start of the
    next heading (or the end of the document).

    Args:
        html: Rendered HTML
        pattern: Regex (string patterns are compiled case-insensitive)

    Returns:
        HeadingSection with the section HTML and the document without the
        heading and section, or None if no heading matches
    """
    if not html or not isinstance(html, str):
        return None

    regex = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern

    headings = [
        _Heading(start=m.start(), end=m.end(), text=html_to_plain_text(m.group(0)).strip())
        for m in _HEADING_RE.finditer(html)
    ]

    for idx, heading in enumerate(headings):
        if regex.search(heading.text):
            section_end = headings[idx + 1].start if idx + 1 < len(headings) else len(html)
            return HeadingSection(
                section_html=html[heading.end:section_end],
                without_section_html=html[:heading.start] + html[section_end:],
            )

    return None
