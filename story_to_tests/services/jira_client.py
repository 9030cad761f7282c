"""
Jira client used as a thin, session-scoped proxy to Jira Cloud REST API v3.

Reads stories (with plain-text description / acceptance criteria) and writes
back generated test cases as a subtask with an attachment. Requests are not
retried; failures surface as JiraClientError for the caller to report.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import logging
import urllib.parse

import requests
from requests.auth import HTTPBasicAuth

from story_to_tests.models.story import StoryDetails, StorySummary
from story_to_tests.services.story_extraction import build_story_details

logger = logging.getLogger(__name__)

USER_AGENT = "user-story-to-tests/1.0"
DEFAULT_TIMEOUT = 15
SUBTASK_TYPE_NAMES = ("sub-task", "subtask")


class JiraClientError(Exception):
    """Raised when Jira API calls fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SessionCredentials:
    """Jira credentials held for one browser session."""

    base_url: str
    email: str
    api_token: str = field(repr=False)

    @classmethod
    def from_login(cls, base_url: str, email: str, api_token: str) -> "SessionCredentials":
        """Build credentials from the connect form (trailing slash trimmed)."""
        return cls(base_url=base_url.strip().rstrip("/"), email=email.strip(), api_token=api_token)


def _error_message(response: Optional[requests.Response], fallback: str) -> str:
    """Pull Jira's errorMessages / errors out of a failed response."""
    if response is None:
        return fallback
    try:
        error_data = response.json()
    except ValueError:
        return response.text or fallback

    if isinstance(error_data, dict):
        messages = error_data.get("errorMessages") or []
        errors = error_data.get("errors") or {}
        parts = [str(m) for m in messages]
        if isinstance(errors, dict):
            parts.extend(f"{k}: {v}" for k, v in errors.items())
        if parts:
            return "; ".join(parts)
        if error_data.get("message"):
            return str(error_data["message"])
    return str(error_data) if error_data else fallback


def text_to_adf(text: str) -> Dict[str, Any]:
    """
    Convert plain text to Jira ADF (Atlassian Document Format).

    Blank lines separate paragraphs; consecutive "- " / "* " lines become a
    bullet list.

    Args:
        text: Plain text content

    Returns:
        ADF document structure
    """
    content: List[Dict[str, Any]] = []
    bullets: List[Dict[str, Any]] = []

    def flush_bullets() -> None:
        if bullets:
            content.append({"type": "bulletList", "content": list(bullets)})
            bullets.clear()

    for line in (text or "").split("\n"):
        line = line.strip()
        if not line:
            flush_bullets()
            continue
        if line.startswith("- ") or line.startswith("* "):
            item_text = line[2:].strip()
            if item_text:
                bullets.append({
                    "type": "listItem",
                    "content": [{
                        "type": "paragraph",
                        "content": [{"type": "text", "text": item_text}]
                    }]
                })
            continue
        flush_bullets()
        content.append({
            "type": "paragraph",
            "content": [{"type": "text", "text": line}]
        })
    flush_bullets()

    return {"type": "doc", "version": 1, "content": content}


class JiraClient:
    """Client for Jira calls made on behalf of a connected session."""

    def __init__(self, base_url: str, email: str, api_token: str, timeout: Optional[int] = None):
        """
        Initialize Jira client.

        Args:
            base_url: Jira instance URL (e.g., "https://yourcompany.atlassian.net")
            email: Jira user email for authentication
            api_token: Jira API token for authentication
            timeout: Request timeout in seconds (default: 15)
        """
        self.jira_url = (base_url or "").rstrip("/")
        self.email = email
        self.api_token = api_token
        self.timeout = timeout or DEFAULT_TIMEOUT

        if not self.jira_url or not self.email or not self.api_token:
            raise JiraClientError("Not connected to Jira", status_code=401)

    @classmethod
    def from_credentials(
        cls,
        credentials: Optional[SessionCredentials],
        timeout: Optional[int] = None
    ) -> "JiraClient":
        """
        Create a client from session credentials.

        Raises:
            JiraClientError: If the session holds no (or incomplete) credentials
        """
        if credentials is None:
            raise JiraClientError("Not connected to Jira", status_code=401)
        return cls(credentials.base_url, credentials.email, credentials.api_token, timeout=timeout)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    def _make_request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Make authenticated request to Jira API.

        Args:
            endpoint: API endpoint (e.g., "/rest/api/3/issue/KEY-123")
            method: HTTP method (GET, POST)
            params: Optional query parameters
            data: Optional JSON request body
            files: Optional multipart files (for attachments)
            extra_headers: Optional headers added to the defaults

        Returns:
            Parsed JSON response ({} for empty bodies)

        Raises:
            JiraClientError: If request fails
        """
        url = f"{self.jira_url}{endpoint}"
        auth = HTTPBasicAuth(self.email, self.api_token)
        headers = self._headers(extra_headers)
        response = None

        try:
            if method == "GET":
                response = requests.get(url, auth=auth, headers=headers, params=params, timeout=self.timeout)
            elif method == "POST":
                if files is None:
                    headers["Content-Type"] = "application/json"
                response = requests.post(
                    url,
                    auth=auth,
                    headers=headers,
                    params=params,
                    json=data if files is None else None,
                    files=files,
                    timeout=self.timeout
                )
            else:
                raise JiraClientError(f"Unsupported HTTP method: {method}")

            response.raise_for_status()
            if response.content:
                return response.json()
            return {}
        except requests.exceptions.HTTPError as e:
            failed = e.response if e.response is not None else response
            status = failed.status_code if failed is not None else None
            message = _error_message(failed, str(e))
            raise JiraClientError(f"HTTP {status} - {message}", status_code=status) from e
        except requests.exceptions.Timeout as e:
            raise JiraClientError(
                f"Jira API request timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.RequestException as e:
            raise JiraClientError(f"Jira API request failed: {str(e)}") from e
        except (ValueError, RecursionError) as e:
            raise JiraClientError(f"Jira API returned invalid JSON: {str(e)}") from e

    def test_connection(self) -> Dict[str, Any]:
        """
        Verify credentials against /rest/api/3/myself.

        Returns:
            Dictionary with accountId, displayName and locale
        """
        me = self._make_request("/rest/api/3/myself")
        if not isinstance(me, dict):
            me = {}
        return {
            "accountId": me.get("accountId"),
            "displayName": me.get("displayName"),
            "locale": me.get("locale"),
        }

    def get_issue_types(self) -> List[Dict[str, Any]]:
        """Get every issue type visible on the site."""
        issue_types = self._make_request("/rest/api/3/issuetype")
        return issue_types if isinstance(issue_types, list) else []

    def get_story_type_names(self) -> List[str]:
        """
        Get issue type names that look like "story" (case-insensitive).

        Falls back to ["Story"] so JQL never references a type that does not
        exist on the site (e.g. "User Story").
        """
        names: List[str] = []
        for issue_type in self.get_issue_types():
            if not isinstance(issue_type, dict):
                continue
            name = str(issue_type.get("name") or "").strip()
            if name and "story" in name.lower() and name not in names:
                names.append(name)
        return names or ["Story"]

    def get_subtask_issue_type(self) -> Optional[Dict[str, str]]:
        """
        Get the subtask issue type of this Jira instance.

        Returns:
            Dictionary with id and name, or None if not found or lookup fails
        """
        try:
            issue_types = self.get_issue_types()
        except JiraClientError as e:
            logger.error(f"Error fetching subtask issue type: {str(e)}")
            return None

        for issue_type in issue_types:
            if not isinstance(issue_type, dict):
                continue
            name = str(issue_type.get("name") or "")
            if name.lower() in SUBTASK_TYPE_NAMES:
                return {"id": str(issue_type.get("id", "")), "name": name}
        return None

    def _search(self, jql: str, max_results: int) -> List[Dict[str, Any]]:
        data = self._make_request(
            "/rest/api/3/search/jql",
            params={"jql": jql, "maxResults": max_results, "fields": "summary,issuetype"}
        )
        issues = data.get("issues") if isinstance(data, dict) else None
        return issues if isinstance(issues, list) else []

    def get_stories(self, max_results: int = 50) -> List[StorySummary]:
        """
        List recent stories, newest first.

        Uses only issue type names that exist on the site. If the typed search
        fails, falls back to a broad search filtered client-side.

        Args:
            max_results: Maximum number of stories for the typed search

        Returns:
            List of StorySummary
        """
        story_names = self.get_story_type_names()
        quoted = ", ".join('"' + name.replace('"', '\\"') + '"' for name in story_names)
        jql = f"issuetype in ({quoted}) ORDER BY created DESC"

        try:
            issues = self._search(jql, max_results)
        except JiraClientError as e:
            logger.warning(f"Typed story search failed, falling back to broad search: {str(e)}")
            issues = [
                issue for issue in self._search("ORDER BY created DESC", 100)
                if isinstance(issue, dict) and "story" in str(
                    ((issue.get("fields") or {}).get("issuetype") or {}).get("name") or ""
                ).lower()
            ]

        return [
            StorySummary(
                key=issue.get("key", ""),
                summary=(issue.get("fields") or {}).get("summary") or ""
            )
            for issue in issues
            if isinstance(issue, dict)
        ]

    def get_issue(self, issue_key: str) -> Dict[str, Any]:
        """Fetch an issue with all fields, rendered fields and field names."""
        issue = self._make_request(
            f"/rest/api/3/issue/{urllib.parse.quote(issue_key)}",
            params={"expand": "renderedFields,names", "fields": "*all"}
        )
        return issue if isinstance(issue, dict) else {}

    def get_story(self, issue_key: str, ac_field_key: Optional[str] = None) -> StoryDetails:
        """
        Fetch a story with plain-text description and acceptance criteria.

        If the acceptance criteria live inside the description they are
        removed from the description to avoid duplication.

        Args:
            issue_key: Jira issue key (e.g., "PROJ-123")
            ac_field_key: Optional custom field ID for acceptance criteria

        Returns:
            StoryDetails
        """
        issue = self.get_issue(issue_key)
        return build_story_details(issue, issue_key, ac_field_key=ac_field_key)

    def create_subtask(self, parent_key: str, summary: str, description: str = "") -> str:
        """
        Create a subtask under a parent issue.

        Args:
            parent_key: Parent issue key (e.g., "PROJ-123")
            summary: Subtask summary
            description: Optional plain-text description (sent as ADF)

        Returns:
            Key of the created subtask

        Raises:
            JiraClientError: If the parent is not accessible, the site has no
                             subtask type, or creation fails
        """
        try:
            try:
                parent = self._make_request(
                    f"/rest/api/3/issue/{urllib.parse.quote(parent_key)}",
                    params={"fields": "project"}
                )
            except JiraClientError as e:
                raise JiraClientError(
                    f"Parent issue {parent_key} not found or not accessible",
                    status_code=e.status_code
                ) from e

            project = ((parent or {}).get("fields") or {}).get("project") or {}
            project_key = project.get("key") or str(parent.get("key") or parent_key).split("-")[0]

            subtask_type = self.get_subtask_issue_type()
            if not subtask_type:
                raise JiraClientError(
                    "Subtask issue type not found in this Jira instance. "
                    "Please check that Sub-task issue type is enabled."
                )
            logger.info(f"Using subtask issue type: {subtask_type['name']} ({subtask_type['id']})")

            fields: Dict[str, Any] = {
                "project": {"key": project_key},
                "parent": {"key": parent_key},
                "summary": summary,
                "issuetype": {"id": subtask_type["id"]},
            }
            if description and description.strip():
                fields["description"] = text_to_adf(description)

            response = self._make_request("/rest/api/3/issue", method="POST", data={"fields": fields})
            subtask_key = response.get("key") if isinstance(response, dict) else None
            if not subtask_key:
                raise JiraClientError("Jira did not return a key for the created subtask")

            logger.info(f"Subtask created successfully: {subtask_key} (parent={parent_key})")
            return subtask_key
        except JiraClientError as e:
            logger.error(f"Subtask creation failed: {str(e)}")
            raise JiraClientError(f"Failed to create subtask: {str(e)}", status_code=e.status_code) from e

    def upload_attachment(self, issue_key: str, file_name: str, content: bytes) -> List[Dict[str, Any]]:
        """
        Attach a file to an issue.

        Args:
            issue_key: Jira issue key
            file_name: File name shown in Jira
            content: Raw file bytes

        Returns:
            Attachment metadata returned by Jira

        Raises:
            JiraClientError: If upload fails
        """
        try:
            response = self._make_request(
                f"/rest/api/3/issue/{urllib.parse.quote(issue_key)}/attachments",
                method="POST",
                files={"file": (file_name, content)},
                extra_headers={"X-Atlassian-Token": "no-check"}
            )
        except JiraClientError as e:
            raise JiraClientError(f"Failed to upload attachment: {str(e)}", status_code=e.status_code) from e

        logger.info(f"Uploaded attachment {file_name} ({len(content)} bytes) to {issue_key}")
        return response if isinstance(response, list) else []

    def get_issue_url(self, issue_key: str) -> str:
        """Get full browse URL for a Jira issue."""
        return f"{self.jira_url}/browse/{issue_key}"
