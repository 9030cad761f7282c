"""
Prompts for the test case generator.
"""
from story_to_tests.models.enums import TestCaseCategory
from story_to_tests.models.test_case import GenerateRequest


def get_system_prompt() -> str:
    """
    Get the system prompt for test case generation.

    Returns:
        System prompt string
    """
    categories = ", ".join(category.value for category in TestCaseCategory)
    return f"""You are a senior QA engineer who writes manual test cases from user stories.

Your job is to turn one user story and its acceptance criteria into a set of
clear, executable test cases that a tester can run without further context.

RULES
- Cover every acceptance criterion with at least one positive test case.
- Add negative and edge cases where an acceptance criterion implies limits,
  validation, or failure paths.
- Add authorization cases only when the story mentions roles, permissions or access.
- Add non-functional cases only when the story states performance, security,
  accessibility or similar constraints.
- One behavior per test case. Never merge two intents into one case.
- Steps are short imperative sentences, one action per step, in execution order.
- The expected result is observable and specific.
- Do not invent features, fields, or business rules that the story does not state.

CATEGORY must be exactly one of: {categories}

Return valid JSON only. No markdown. No explanations."""


def get_generation_prompt(request: GenerateRequest) -> str:
    """
    Build the user message for one generation request.

    Args:
        request: Story title, description, acceptance criteria and extra notes

    Returns:
        User prompt string
    """
    sections = [f"STORY TITLE:\n{request.story_title.strip()}"]

    if request.description.strip():
        sections.append(f"DESCRIPTION:\n{request.description.strip()}")

    sections.append(f"ACCEPTANCE CRITERIA:\n{request.acceptance_criteria.strip()}")

    if request.additional_info.strip():
        sections.append(f"ADDITIONAL INFORMATION:\n{request.additional_info.strip()}")

    sections.append("""Respond with JSON matching this structure exactly:
{
    "cases": [
        {
            "title": "<what the test verifies>",
            "category": "<category>",
            "steps": ["<step 1>", "<step 2>", ...],
            "testData": "<concrete data to use, or null>",
            "expectedResult": "<observable outcome>"
        }
    ]
}

Do NOT include test case IDs. They are assigned after generation.""")

    return "\n\n".join(sections)
