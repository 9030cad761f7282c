"""
User Story to Tests: Jira story import and test case generation service.
"""
__version__ = "1.0.0"
