"""
Tests for the server-side Jira credential store.
"""
from unittest.mock import patch

from story_to_tests.services.credential_store import CredentialStore
from story_to_tests.services.jira_client import SessionCredentials

CREDS = SessionCredentials.from_login("https://example.atlassian.net", "qa@example.com", "tok")
CLOCK = "story_to_tests.services.credential_store.time.monotonic"


def test_get_returns_stored_credentials():
    store = CredentialStore(max_age=60)

    with patch(CLOCK, return_value=1000.0):
        store.put("sid-1", CREDS)
    with patch(CLOCK, return_value=1059.0):
        assert store.get("sid-1") == CREDS

    assert store.get(None) is None
    assert store.get("unknown") is None


def test_expired_credentials_are_evicted_on_lookup():
    store = CredentialStore(max_age=60)

    with patch(CLOCK, return_value=1000.0):
        store.put("sid-1", CREDS)
    with patch(CLOCK, return_value=1061.0):
        assert store.get("sid-1") is None

    assert len(store) == 0


def test_put_sweeps_expired_sessions():
    store = CredentialStore(max_age=60)

    with patch(CLOCK, return_value=1000.0):
        store.put("old", CREDS)
    with patch(CLOCK, return_value=1100.0):
        store.put("new", CREDS)

    assert len(store) == 1
    with patch(CLOCK, return_value=1100.0):
        assert store.get("new") == CREDS


def test_remove_and_clear():
    store = CredentialStore(max_age=60)
    store.put("a", CREDS)
    store.put("b", CREDS)

    store.remove("a")
    store.remove(None)
    assert store.get("a") is None
    assert len(store) == 1

    store.clear()
    assert len(store) == 0
