"""
Test case generation request/response models.

LLMTestCase / LLMTestCaseOutput are the raw, advisory LLM contract. They carry
no IDs; IDs and category normalization are applied by the test case mapper.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional


class GenerateRequest(BaseModel):
    """User story submitted for test case generation."""

    story_title: str = Field(default="", alias="storyTitle")
    acceptance_criteria: str = Field(default="", alias="acceptanceCriteria")
    description: str = Field(default="")
    additional_info: str = Field(default="", alias="additionalInfo")

    class Config:
        populate_by_name = True


class TestCase(BaseModel):
    """A normalized, reviewable test case."""

    __test__ = False

    id: str = Field(..., description="Deterministic ID (TC-001, TC-002, ...)")
    title: str
    category: str
    steps: List[str] = Field(default_factory=list)
    test_data: Optional[str] = Field(default=None, alias="testData")
    expected_result: str = Field(default="", alias="expectedResult")

    class Config:
        populate_by_name = True


class GenerateResponse(BaseModel):
    """Generated test cases plus model usage information."""

    cases: List[TestCase] = Field(default_factory=list)
    model: str = ""
    prompt_tokens: int = Field(default=0, alias="promptTokens")
    completion_tokens: int = Field(default=0, alias="completionTokens")

    class Config:
        populate_by_name = True


class LLMTestCase(BaseModel):
    """One test case as proposed by the LLM (no ID)."""

    title: str = ""
    category: str = ""
    steps: List[str] = Field(default_factory=list)
    test_data: Optional[str] = Field(default=None, alias="testData")
    expected_result: str = Field(default="", alias="expectedResult")

    class Config:
        populate_by_name = True

    @field_validator("steps", mode="before")
    @classmethod
    def _coerce_steps(cls, value: Any) -> List[str]:
        # Models sometimes return steps as one newline-separated string
        if value is None:
            return []
        if isinstance(value, str):
            return [line.strip() for line in value.split("\n") if line.strip()]
        if isinstance(value, list):
            return [str(step).strip() for step in value if str(step).strip()]
        return []

    @field_validator("test_data", mode="before")
    @classmethod
    def _coerce_test_data(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class LLMTestCaseOutput(BaseModel):
    """Top-level JSON object returned by the LLM."""

    cases: List[LLMTestCase] = Field(default_factory=list)
