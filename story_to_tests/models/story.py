"""
Jira story models exposed by the /api/jira endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional


class StorySummary(BaseModel):
    """A story as listed in the story picker."""

    key: str = Field(..., description="Jira issue key (e.g., 'PROJ-123')")
    summary: str = Field(default="", description="Issue summary")


class StoryDetails(BaseModel):
    """
    A story with plain-text description and acceptance criteria.

    When the acceptance criteria lived inside the description, they are
    removed from the description so the two never duplicate each other.
    """

    key: str = Field(..., description="Jira issue key")
    title: str = Field(default="", description="Issue summary, or the key when empty")
    description: str = Field(default="", description="Plain-text description")
    acceptance_criteria: str = Field(
        default="",
        alias="acceptanceCriteria",
        description="Plain-text acceptance criteria (bullets as '- ' lines)"
    )

    class Config:
        populate_by_name = True


class ConnectRequest(BaseModel):
    """Jira login submitted by the connect form."""

    base_url: Optional[str] = Field(default=None, alias="baseUrl")
    email: Optional[str] = None
    api_token: Optional[str] = Field(default=None, alias="apiToken")

    class Config:
        populate_by_name = True


class CreateSubtaskRequest(BaseModel):
    """Request to create the test-case subtask under a story."""

    parent_key: Optional[str] = Field(default=None, alias="parentKey")
    summary: Optional[str] = None
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class UploadTestCasesRequest(BaseModel):
    """Base64-encoded file to attach to an issue."""

    issue_key: Optional[str] = Field(default=None, alias="issueKey")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    file_data: Optional[str] = Field(default=None, alias="fileData")

    class Config:
        populate_by_name = True
