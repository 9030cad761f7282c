"""
Server-side holder for Jira credentials, keyed by browser session.

The signed session cookie only carries an opaque session id; the Jira
email and API token never leave the server.
"""
import logging
import secrets
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import Request

from story_to_tests.config import settings
from story_to_tests.services.jira_client import SessionCredentials

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sid"


class CredentialStore:
    """
    In-process map of session id -> SessionCredentials.

    Entries expire after max_age seconds, matching the session cookie
    lifetime. Expired entries are evicted on lookup and on every write.
    """

    def __init__(self, max_age: Optional[int] = None):
        self.max_age = max_age if max_age is not None else settings.session_max_age
        self._lock = threading.Lock()
        self._credentials: Dict[str, Tuple[SessionCredentials, float]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.max_age

    def get(self, session_id: Optional[str]) -> Optional[SessionCredentials]:
        if not session_id:
            return None
        with self._lock:
            entry = self._credentials.get(session_id)
            if entry is None:
                return None
            credentials, stored_at = entry
            if self._expired(stored_at, time.monotonic()):
                del self._credentials[session_id]
                return None
            return credentials

    def put(self, session_id: str, credentials: SessionCredentials) -> None:
        now = time.monotonic()
        with self._lock:
            expired = [sid for sid, (_, stored_at) in self._credentials.items() if self._expired(stored_at, now)]
            for sid in expired:
                del self._credentials[sid]
            if expired:
                logger.info(f"Evicted {len(expired)} expired Jira session(s)")
            self._credentials[session_id] = (credentials, now)

    def remove(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            self._credentials.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._credentials.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)


credential_store = CredentialStore()


def get_session_credentials(request: Request) -> Optional[SessionCredentials]:
    """Credentials connected in this request's session, if any."""
    return credential_store.get(request.session.get(SESSION_ID_KEY))


def save_session_credentials(request: Request, credentials: SessionCredentials) -> None:
    """Bind credentials to this request's session, creating a session id if needed."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        session_id = secrets.token_urlsafe(32)
        request.session[SESSION_ID_KEY] = session_id
    credential_store.put(session_id, credentials)
    logger.info(f"Stored Jira credentials for session (base_url={credentials.base_url})")


def clear_session_credentials(request: Request) -> None:
    """Forget this session's credentials and its session id."""
    credential_store.remove(request.session.pop(SESSION_ID_KEY, None))
