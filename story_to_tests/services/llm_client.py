"""
OpenAI LLM client for test case generation.

The LLM output is advisory: it is validated against LLMTestCaseOutput and
handed to the case mapper, which assigns IDs and canonical categories.
"""
import json
import logging

from openai import OpenAI, APIError
from pydantic import ValidationError

from story_to_tests.agent.prompt import get_generation_prompt, get_system_prompt
from story_to_tests.config import settings
from story_to_tests.models.test_case import GenerateRequest, GenerateResponse, LLMTestCaseOutput
from story_to_tests.services.case_mapper import map_test_cases

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when LLM API call or response parsing fails."""
    pass


def generate_test_cases(request: GenerateRequest) -> GenerateResponse:
    """
    Generate test cases for a user story.

    Args:
        request: Story title, description, acceptance criteria and notes

    Returns:
        GenerateResponse with normalized cases, model name and token usage

    Raises:
        LLMClientError: If the API key is missing, the API call fails, or the
                        response is not valid JSON matching the contract
    """
    if not settings.openai_api_key:
        raise LLMClientError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

    try:
        client = OpenAI(api_key=settings.openai_api_key)

        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": get_system_prompt()},
                {"role": "user", "content": get_generation_prompt(request)}
            ],
            response_format={"type": "json_object"},
            temperature=settings.openai_temperature
        )
    except APIError as e:
        raise LLMClientError(f"OpenAI API error: {str(e)}") from e

    if not response.choices:
        raise LLMClientError("OpenAI API returned empty response")

    content = response.choices[0].message.content
    if not content:
        raise LLMClientError("OpenAI API returned empty content")

    try:
        json_data = json.loads(content)
    except json.JSONDecodeError as e:
        raise LLMClientError(f"Failed to parse JSON response: {str(e)}") from e

    if not isinstance(json_data, dict):
        raise LLMClientError("Response is not a JSON object")

    try:
        llm_output = LLMTestCaseOutput(**json_data)
    except ValidationError as e:
        raise LLMClientError(f"Response does not match test case schema: {str(e)}") from e

    cases = map_test_cases(llm_output)
    usage = response.usage
    logger.info(
        f"Generated {len(cases)} test case(s) for '{request.story_title[:80]}' "
        f"(model={response.model or settings.openai_model})"
    )

    return GenerateResponse(
        cases=cases,
        model=response.model or settings.openai_model,
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
    )
