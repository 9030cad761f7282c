"""
/api/jira endpoints: connect a session to Jira and proxy story reads / write-back.
"""
import base64
import binascii
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request

from story_to_tests.config import settings
from story_to_tests.models.story import (
    ConnectRequest,
    CreateSubtaskRequest,
    StoryDetails,
    StorySummary,
    UploadTestCasesRequest,
)
from story_to_tests.services.credential_store import (
    clear_session_credentials,
    get_session_credentials,
    save_session_credentials,
)
from story_to_tests.services.jira_client import JiraClient, JiraClientError, SessionCredentials

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_SUBTASK_SUMMARY = "Create Testcases"
DEFAULT_SUBTASK_DESCRIPTION = "Test cases have been generated and are ready for review."
DEFAULT_ATTACHMENT_NAME = "TestCases.xlsx"


def _client_for(request: Request) -> JiraClient:
    """Jira client for the connected session (401 when not connected)."""
    try:
        return JiraClient.from_credentials(
            get_session_credentials(request),
            timeout=settings.jira_api_timeout
        )
    except JiraClientError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/_store")
def debug_store(request: Request) -> Dict[str, Any]:
    """
    Debug view of the session's Jira connection (DEBUG only).

    Never returns the Authorization header.
    """
    if not settings.debug:
        raise HTTPException(status_code=404, detail="Not Found")

    credentials = get_session_credentials(request)
    return {
        "session": bool(request.session),
        "jiraCreds": {"baseUrl": credentials.base_url} if credentials else None,
    }


@router.post("/connect")
def connect(connect_request: ConnectRequest, request: Request) -> Dict[str, Any]:
    """
    Connect this session to Jira.

    Credentials are tested against /myself and only kept when the test passes.
    """
    if not connect_request.base_url or not connect_request.email or not connect_request.api_token:
        raise HTTPException(status_code=400, detail="baseUrl, email and apiToken are required")

    credentials = SessionCredentials.from_login(
        connect_request.base_url,
        connect_request.email,
        connect_request.api_token
    )

    try:
        client = JiraClient.from_credentials(credentials, timeout=settings.jira_api_timeout)
        user = client.test_connection()
    except JiraClientError as e:
        logger.error(f"Jira connect error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to connect to Jira")

    save_session_credentials(request, credentials)
    return {"ok": True, "user": user}


@router.post("/disconnect")
def disconnect(request: Request) -> Dict[str, Any]:
    """Forget this session's Jira credentials."""
    clear_session_credentials(request)
    return {"ok": True}


@router.get("/stories", response_model=List[StorySummary])
def list_stories(request: Request) -> List[StorySummary]:
    """List recent stories from the connected Jira site."""
    client = _client_for(request)
    try:
        return client.get_stories()
    except JiraClientError as e:
        logger.error(f"Jira stories error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to fetch stories")


@router.get("/story/{key}", response_model=StoryDetails)
def get_story(key: str, request: Request) -> StoryDetails:
    """Story with plain-text description and acceptance criteria."""
    client = _client_for(request)
    try:
        return client.get_story(key, ac_field_key=settings.jira_ac_field_key)
    except JiraClientError as e:
        logger.error(f"Jira story detail error ({key}): {str(e)}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to fetch story details")


@router.post("/create-test-subtask")
def create_test_subtask(subtask_request: CreateSubtaskRequest, request: Request) -> Dict[str, Any]:
    """Create the test-case subtask under a story."""
    client = _client_for(request)
    if not subtask_request.parent_key:
        raise HTTPException(status_code=400, detail="parentKey is required")

    logger.info(f"Creating subtask for parent: {subtask_request.parent_key} ({client.jira_url})")
    try:
        subtask_key = client.create_subtask(
            subtask_request.parent_key,
            subtask_request.summary or DEFAULT_SUBTASK_SUMMARY,
            subtask_request.description or DEFAULT_SUBTASK_DESCRIPTION
        )
    except JiraClientError as e:
        logger.error(f"Create subtask error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "ok": True,
        "subtaskKey": subtask_key,
        "subtaskUrl": client.get_issue_url(subtask_key)
    }


@router.post("/upload-test-cases")
def upload_test_cases(upload_request: UploadTestCasesRequest, request: Request) -> Dict[str, Any]:
    """Attach a base64-encoded test case file to an issue."""
    client = _client_for(request)
    if not upload_request.issue_key or not upload_request.file_data:
        raise HTTPException(status_code=400, detail="issueKey and fileData are required")

    try:
        content = base64.b64decode(upload_request.file_data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="fileData must be base64 encoded")

    try:
        client.upload_attachment(
            upload_request.issue_key,
            upload_request.file_name or DEFAULT_ATTACHMENT_NAME,
            content
        )
    except JiraClientError as e:
        logger.error(f"Upload attachment error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to upload attachment")

    return {"ok": True, "message": "File uploaded successfully"}
