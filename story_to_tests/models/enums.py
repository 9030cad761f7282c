"""
Enums shared by request/response models.
"""
from enum import Enum


class TestCaseCategory(str, Enum):
    """Categories a generated test case can fall into."""

    __test__ = False

    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    EDGE = "Edge"
    AUTHORIZATION = "Authorization"
    NON_FUNCTIONAL = "Non-Functional"
