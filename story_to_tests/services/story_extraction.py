"""
Resolve a Jira issue payload into plain-text description and acceptance criteria.

Resolution order (stops at the first step producing acceptance criteria):
1. A configured acceptance criteria field (JIRA_AC_FIELD_KEY)
2. A field whose display name contains "acceptance" and "criteria"
3. An "Acceptance Criteria" boundary inside an ADF description
4. An "Acceptance Criteria" heading inside the rendered HTML description
5. Fallbacks that only fill in the description

Nothing here raises: unexpected shapes fall through to the next step.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from story_to_tests.models.story import StoryDetails
from story_to_tests.services.document_text import (
    AC_HEADING_PATTERN,
    document_to_plain_text,
    extract_section_by_heading,
    html_to_plain_text,
    is_structured_document,
    split_structured_document,
)

logger = logging.getLogger(__name__)


@dataclass
class StoryText:
    description: str = ""
    acceptance_criteria: str = ""


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value)
    except RecursionError:
        return ""
    except (TypeError, ValueError):
        return str(value)


def field_value_to_text(value: Any) -> str:
    """
    Render a raw Jira field value as plain text.

    Strings are treated as (possibly) HTML, ADF documents are rendered block
    by block, anything else is JSON-serialized and stripped of markup.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return html_to_plain_text(value)
    if is_structured_document(value):
        return document_to_plain_text(value)
    return html_to_plain_text(_to_json(value))


def _discover_ac_field(fields: Dict[str, Any], names: Dict[str, Any]) -> str:
    for field_id, label in names.items():
        label_text = str(label or "").lower()
        if "acceptance" not in label_text or "criteria" not in label_text:
            continue
        value = fields.get(field_id)
        if value is None:
            continue
        text = field_value_to_text(value)
        if text:
            logger.debug(f"Using discovered acceptance criteria field {field_id} ({label})")
            return text
    return ""


def _parse_document_string(raw: str) -> Optional[Dict[str, Any]]:
    """ADF stored as a JSON string (one level of wrapping only)."""
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        return None
    return parsed if is_structured_document(parsed) else None


def resolve_story_text(issue: Any, ac_field_key: Optional[str] = None) -> StoryText:
    """
    Extract description and acceptance criteria from a Jira issue payload.

    Args:
        issue: Issue JSON as returned by /rest/api/3/issue/{key} with
               expand=renderedFields,names
        ac_field_key: Optional custom field ID holding acceptance criteria
                      (e.g., "customfield_12345")

    Returns:
        StoryText whose fields are always strings
    """
    issue = _as_dict(issue)
    fields = _as_dict(issue.get("fields"))
    rendered = _as_dict(issue.get("renderedFields"))
    names = _as_dict(issue.get("names"))

    raw_description = fields.get("description")
    rendered_description = rendered.get("description")
    if not isinstance(rendered_description, str):
        rendered_description = ""

    description = ""
    acceptance_criteria = ""

    # 1) Configured field
    if ac_field_key and ac_field_key in fields:
        acceptance_criteria = field_value_to_text(fields.get(ac_field_key))

    # 2) Field discovered by display name
    if not acceptance_criteria:
        acceptance_criteria = _discover_ac_field(fields, names)

    # 3) ADF description (object or JSON string)
    if not acceptance_criteria and raw_description:
        document = None
        if is_structured_document(raw_description):
            document = raw_description
        elif isinstance(raw_description, str):
            document = _parse_document_string(raw_description)
            if document is None:
                description = raw_description

        if document is not None:
            split = split_structured_document(document)
            description = split.description
            acceptance_criteria = split.acceptance_criteria

    # 4) Heading in rendered HTML
    if not acceptance_criteria and rendered_description:
        picked = extract_section_by_heading(rendered_description, AC_HEADING_PATTERN)
        if picked and picked.section_html:
            acceptance_criteria = html_to_plain_text(picked.section_html)
            description = html_to_plain_text(picked.without_section_html)
        elif not description:
            description = html_to_plain_text(rendered_description)

    # 5) Description fallbacks
    if not description:
        if rendered_description:
            description = html_to_plain_text(rendered_description)
        elif isinstance(raw_description, str):
            description = raw_description.strip()
        elif raw_description and not is_structured_document(raw_description):
            description = html_to_plain_text(_to_json(raw_description))

    return StoryText(
        description=description or "",
        acceptance_criteria=acceptance_criteria or "",
    )


def build_story_details(issue: Any, key: str, ac_field_key: Optional[str] = None) -> StoryDetails:
    """
    Build the StoryDetails payload for one issue.

    Args:
        issue: Raw issue JSON
        key: Issue key requested by the caller
        ac_field_key: Optional configured acceptance criteria field

    Returns:
        StoryDetails with key, title, description and acceptance criteria
    """
    fields = _as_dict(_as_dict(issue).get("fields"))
    summary = fields.get("summary")
    text = resolve_story_text(issue, ac_field_key=ac_field_key)

    return StoryDetails(
        key=key,
        title=summary if isinstance(summary, str) and summary else key,
        description=text.description,
        acceptance_criteria=text.acceptance_criteria,
    )
