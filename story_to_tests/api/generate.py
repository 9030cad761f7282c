"""
POST /generate-tests endpoint for test case generation.
"""
import logging

from fastapi import APIRouter, HTTPException

from story_to_tests.models.test_case import GenerateRequest, GenerateResponse
from story_to_tests.services.llm_client import LLMClientError, generate_test_cases

logger = logging.getLogger(__name__)

router = APIRouter()

# Input guardrail constants
MAX_TITLE_CHARS = 500
MAX_DESCRIPTION_CHARS = 20_000
MAX_ACCEPTANCE_CRITERIA_CHARS = 20_000
MAX_ADDITIONAL_INFO_CHARS = 10_000


def _check_length(value: str, limit: int, label: str) -> None:
    if len(value) > limit:
        raise HTTPException(
            status_code=400,
            detail=f"{label} exceeds {limit:,} characters. Shorten it and try again."
        )


@router.post("/generate-tests", response_model=GenerateResponse)
def generate_tests(generate_request: GenerateRequest) -> GenerateResponse:
    """
    Generate test cases from a user story.

    Story title and acceptance criteria are required.
    """
    if not generate_request.story_title.strip() or not generate_request.acceptance_criteria.strip():
        raise HTTPException(status_code=400, detail="Story Title and Acceptance Criteria are required")

    _check_length(generate_request.story_title, MAX_TITLE_CHARS, "Story Title")
    _check_length(generate_request.description, MAX_DESCRIPTION_CHARS, "Description")
    _check_length(generate_request.acceptance_criteria, MAX_ACCEPTANCE_CRITERIA_CHARS, "Acceptance Criteria")
    _check_length(generate_request.additional_info, MAX_ADDITIONAL_INFO_CHARS, "Additional Info")

    try:
        return generate_test_cases(generate_request)
    except LLMClientError as e:
        logger.error(f"Test case generation failed: {str(e)}")
        raise HTTPException(status_code=502, detail=str(e))
