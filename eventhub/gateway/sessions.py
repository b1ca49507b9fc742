"""
Per-browser client sessions.

Each browser gets its own backend client, auth context and page state, found
through a random id kept in the signed Flask session cookie.
"""

import logging
import threading
import time
import uuid
from typing import Callable, Dict, Optional

from flask import current_app, session

from eventhub.auth_service.context import AuthContext
from eventhub.auth_service.page import AuthPage
from eventhub.database.backend import Backend
from eventhub.events_service.dashboard import DashboardPage

REGISTRY_KEY = "eventhub.sessions"
SESSION_ID_KEY = "sid"


class ClientSession:
    """Everything the application holds for one browser."""

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.auth = AuthContext(backend)
        self.auth_page = AuthPage(backend)
        self.dashboard = DashboardPage(backend)
        self.last_seen = time.monotonic()

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def close(self) -> None:
        # Unsubscribe first: the local sign-out below emits SIGNED_OUT.
        self.auth.stop()
        self.backend.close()


class SessionRegistry:
    """
    Maps session ids to ClientSession objects.

    Args:
        backend_factory: Builds a fresh Backend for each new session.
        initial_wait (float): Seconds to wait for a new session's auth context
            to resolve before serving the first page.
        idle_minutes (int): Sessions unused for longer are closed and dropped.
    """

    def __init__(
        self,
        backend_factory: Callable[[], Backend],
        initial_wait: float = 0.5,
        idle_minutes: int = 60,
    ) -> None:
        self.backend_factory = backend_factory
        self.initial_wait = initial_wait
        self.idle_seconds = idle_minutes * 60
        self._sessions: Dict[str, ClientSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, sid: str) -> Optional[ClientSession]:
        with self._lock:
            return self._sessions.get(sid)

    def get_or_create(self, sid: str) -> ClientSession:
        self.purge_idle()
        with self._lock:
            client_session = self._sessions.get(sid)
            created = client_session is None
            if created:
                client_session = ClientSession(self.backend_factory())
                self._sessions[sid] = client_session
            client_session.touch()

        if created:
            client_session.auth.start()
            if not client_session.auth.wait_until_ready(self.initial_wait):
                logging.info(f"[Sessions] Auth state for {sid[:8]} still loading")
            logging.info(f"[Sessions] Opened client session {sid[:8]} ({len(self)} active)")
        return client_session

    def discard(self, sid: str) -> None:
        with self._lock:
            client_session = self._sessions.pop(sid, None)
        if client_session is not None:
            client_session.close()
            logging.info(f"[Sessions] Closed client session {sid[:8]}")

    def purge_idle(self) -> None:
        cutoff = time.monotonic() - self.idle_seconds
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in stale:
            self.discard(sid)

    def close_all(self) -> None:
        with self._lock:
            sids = list(self._sessions)
        for sid in sids:
            self.discard(sid)


def current_client_session() -> ClientSession:
    """Return the ClientSession of the browser making the current request, creating it if needed."""
    sid = session.get(SESSION_ID_KEY)
    if not sid:
        sid = uuid.uuid4().hex
        session[SESSION_ID_KEY] = sid
        session.permanent = True
    return current_app.extensions[REGISTRY_KEY].get_or_create(sid)
