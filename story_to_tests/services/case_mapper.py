"""
Normalization of advisory LLM output into reviewable test cases.

The LLM never assigns IDs. This mapper assigns deterministic IDs in output
order, canonicalizes categories and drops cases that have no title.
"""
from typing import List

from story_to_tests.models.enums import TestCaseCategory
from story_to_tests.models.test_case import LLMTestCase, LLMTestCaseOutput, TestCase

_CATEGORY_ALIASES = {
    "positive": TestCaseCategory.POSITIVE,
    "happy path": TestCaseCategory.POSITIVE,
    "functional": TestCaseCategory.POSITIVE,
    "negative": TestCaseCategory.NEGATIVE,
    "error": TestCaseCategory.NEGATIVE,
    "edge": TestCaseCategory.EDGE,
    "edge case": TestCaseCategory.EDGE,
    "boundary": TestCaseCategory.EDGE,
    "authorization": TestCaseCategory.AUTHORIZATION,
    "auth": TestCaseCategory.AUTHORIZATION,
    "security": TestCaseCategory.AUTHORIZATION,
    "non-functional": TestCaseCategory.NON_FUNCTIONAL,
    "nonfunctional": TestCaseCategory.NON_FUNCTIONAL,
    "non functional": TestCaseCategory.NON_FUNCTIONAL,
    "performance": TestCaseCategory.NON_FUNCTIONAL,
}


def normalize_category(raw: str) -> str:
    """
    Map a free-form category to its canonical name.

    Unknown categories default to Positive.
    """
    key = (raw or "").strip().lower().replace("_", " ")
    category = _CATEGORY_ALIASES.get(key) or _CATEGORY_ALIASES.get(key.replace(" ", "-"))
    return (category or TestCaseCategory.POSITIVE).value


def format_test_case_id(index: int) -> str:
    """1 -> TC-001"""
    return f"TC-{index:03d}"


def _test_data(case: LLMTestCase):
    if case.test_data is None:
        return None
    value = case.test_data.strip()
    if not value or value.lower() in ("null", "none", "n/a"):
        return None
    return value


def map_test_cases(output: LLMTestCaseOutput) -> List[TestCase]:
    """
    Convert LLM output into TestCase objects with IDs TC-001, TC-002, ...

    Args:
        output: Validated LLM output

    Returns:
        Test cases in LLM order, without untitled entries
    """
    cases: List[TestCase] = []
    for raw_case in output.cases:
        title = raw_case.title.strip()
        if not title:
            continue
        cases.append(TestCase(
            id=format_test_case_id(len(cases) + 1),
            title=title,
            category=normalize_category(raw_case.category),
            steps=raw_case.steps,
            test_data=_test_data(raw_case),
            expected_result=raw_case.expected_result.strip(),
        ))
    return cases
