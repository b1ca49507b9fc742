"""
Supabase client wrapper.
Provides get_backend() for building one client per browser session.

Every call made against the hosted backend goes through `Backend`, and every
failure comes back out as a `BackendError` carrying the backend's message.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import httpx
from supabase import AuthError, Client, PostgrestAPIError, create_client

from eventhub.models import AuthUser

# (column, ascending)
Order = Tuple[str, bool]
AuthCallback = Callable[[str, Optional[AuthUser]], None]


class BackendError(Exception):
    """A failed call against the backend (network, validation or permission)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@contextmanager
def _backend_errors() -> Iterator[None]:
    """Translate supabase, PostgREST and transport failures into BackendError."""
    try:
        yield
    except (AuthError, PostgrestAPIError, httpx.HTTPError) as e:
        message = getattr(e, "message", None) or str(e) or e.__class__.__name__
        raise BackendError(message) from e


class Backend:
    """
    The only surface the application uses to talk to Supabase.

    Args:
        client (Client): A configured supabase client. Each instance carries its
            own auth session, so one Backend must never be shared between users.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    # --- AUTH ---
    def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        with _backend_errors():
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        return AuthUser.from_user(response.user)

    def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        """
        Create an auth account.

        Returns:
            AuthUser: The new user, or None when the backend returned no user.
        """
        with _backend_errors():
            response = self.client.auth.sign_up({"email": email, "password": password})
        return AuthUser.from_user(response.user)

    def sign_out(self) -> None:
        with _backend_errors():
            self.client.auth.sign_out()

    def close(self) -> None:
        """
        Drop this client's auth session locally, which also stops its token
        auto-refresh timer. Failures are logged; the client is discarded anyway.
        """
        try:
            with _backend_errors():
                self.client.auth.sign_out({"scope": "local"})
        except BackendError as e:
            logging.warning(f"[Backend] Could not drop auth session on close: {e.message}")

    def get_session_user(self) -> Optional[AuthUser]:
        with _backend_errors():
            session = self.client.auth.get_session()
        if session is None:
            return None
        return AuthUser.from_user(session.user)

    def on_auth_state_change(self, callback: AuthCallback) -> Any:
        """
        Subscribe to auth-state changes.

        The callback receives the event name ("SIGNED_IN", "SIGNED_OUT",
        "TOKEN_REFRESHED", ...) and the user of the new session, or None.

        Returns:
            The subscription; call `unsubscribe()` on it to release the listener.
        """
        def _forward(event: Any, session: Any) -> None:
            user = AuthUser.from_user(session.user) if session is not None else None
            callback(str(getattr(event, "value", event)), user)

        return self.client.auth.on_auth_state_change(_forward)

    # --- DATA ---
    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Order] = None,
        single: bool = False,
    ) -> Any:
        """
        Run a select against `table`.

        Args:
            columns (str): PostgREST projection, e.g. "*, profiles(full_name, email)".
            filters (dict): Equality filters, column -> value.
            order (tuple): (column, ascending).
            single (bool): Expect exactly one row and return it as a dict.

        Returns:
            list or dict: The rows (or the single row).
        """
        query = self.client.table(table).select(columns)
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order:
            column, ascending = order
            query = query.order(column, desc=not ascending)
        if single:
            query = query.single()

        with _backend_errors():
            response = query.execute()
        return response.data

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        with _backend_errors():
            response = self.client.table(table).insert(rows).execute()
        return response.data


def get_backend(url: Optional[str], key: Optional[str]) -> Backend:
    """
    Build a new Backend with its own supabase client.

    Raises:
        RuntimeError: If the Supabase URL or key is not configured.
    """
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set. Set them in .env")

    logging.debug(f"[Backend] Creating supabase client for {url}")
    return Backend(create_client(url, key))
