"""
Auth context: who is signed in for one client session.

Holds `current_user` and `is_loading`, and keeps them in step with the
backend's auth-state notifications for as long as the context is started.
"""

import logging
import threading
from typing import Any, Optional

from eventhub.database.backend import Backend, BackendError
from eventhub.models import AuthUser


class AuthContext:
    """
    Tracks the authenticated user for one backend client.

    Lifecycle:
        ctx = AuthContext(backend)
        ctx.start()      # subscribe + fetch the current session once
        ...
        ctx.stop()       # release the subscription

    Also usable as `with AuthContext(backend) as ctx: ...`.
    """

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._current_user: Optional[AuthUser] = None
        self._is_loading = True
        self._event_seen = False
        self._subscription: Any = None
        self._fetch_thread: Optional[threading.Thread] = None

    @property
    def current_user(self) -> Optional[AuthUser]:
        with self._lock:
            return self._current_user

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._is_loading

    @property
    def is_started(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        """Subscribe to auth-state changes and request the current session in the background."""
        if self._subscription is not None:
            return
        self._subscription = self.backend.on_auth_state_change(self._on_auth_event)
        self._fetch_thread = threading.Thread(
            target=self._fetch_initial_session, name="auth-initial-session", daemon=True
        )
        self._fetch_thread.start()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the initial session fetch resolved.

        Returns:
            bool: True if it resolved within `timeout`.
        """
        return self._ready.wait(timeout)

    def stop(self) -> None:
        """Release the auth-state subscription. Safe to call more than once."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
            logging.debug("[Auth] Auth-state subscription released")

    def __enter__(self) -> "AuthContext":
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    # --- INTERNALS ---
    def _fetch_initial_session(self) -> None:
        user = None
        try:
            user = self.backend.get_session_user()
        except BackendError as e:
            # No retry: a failed fetch reads as "nobody signed in".
            logging.warning(f"[Auth] Initial session fetch failed: {e.message}")
        finally:
            with self._lock:
                if not self._event_seen:
                    self._current_user = user
                self._is_loading = False
            self._ready.set()

    def _on_auth_event(self, event: str, user: Optional[AuthUser]) -> None:
        logging.info(f"[Auth] Auth state changed: {event}")
        with self._lock:
            self._event_seen = True
            self._current_user = user
