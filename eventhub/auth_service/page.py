"""
Sign-in / register form state and submission for one client session.
"""

import logging
import threading
from typing import Optional

from eventhub.database.backend import Backend, BackendError
from eventhub.models import ROLE_USER

MODE_SIGN_IN = "sign_in"
MODE_REGISTER = "register"


class AuthPage:
    """
    State behind the /auth form.

    Attributes:
        mode (str): MODE_SIGN_IN or MODE_REGISTER.
        email (str): Last entered email; kept across mode switches. The password
            is never stored: it only lives for the duration of one request.
        error (str): Message shown under the form, or None.
        submitting (bool): True while a submission is in flight.
    """

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.mode = MODE_SIGN_IN
        self.email = ""
        self.error: Optional[str] = None
        self._submit_lock = threading.Lock()

    @property
    def is_login(self) -> bool:
        return self.mode == MODE_SIGN_IN

    @property
    def submitting(self) -> bool:
        return self._submit_lock.locked()

    def toggle_mode(self, email: Optional[str] = None) -> None:
        """Switch between sign-in and register. Clears the error, keeps the email."""
        if email is not None:
            self.email = email
        self.mode = MODE_REGISTER if self.is_login else MODE_SIGN_IN
        self.error = None

    def submit(self, email: str, password: str) -> bool:
        """
        Sign in or register with the given credentials.

        Only one submission runs at a time; a second one arriving while the
        first is in flight is dropped.

        Returns:
            bool: True when the browser should navigate to the application root.
        """
        if not self._submit_lock.acquire(blocking=False):
            logging.info("[Auth] Submission already in flight; ignoring")
            return False

        try:
            self.email = (email or "").strip().lower()
            password = password or ""
            self.error = None

            if not self.email or not password:
                self.error = "Email and password required"
                return False

            if self.is_login:
                return self._sign_in(password)
            return self._register(password)
        except BackendError as e:
            self.error = e.message
            return False
        finally:
            self._submit_lock.release()

    def _sign_in(self, password: str) -> bool:
        self.backend.sign_in_with_password(self.email, password)
        logging.info(f"[Auth] Signed in {self.email}")
        return True

    def _register(self, password: str) -> bool:
        user = self.backend.sign_up(self.email, password)
        if user is None:
            return False

        try:
            self.backend.insert("profiles", [{"id": user.id, "role": ROLE_USER, "email": user.email}])
        except BackendError as e:
            # The auth account already exists at this point and stays without a profile.
            logging.warning(f"[Auth] Profile insert failed for new user {user.id}; account has no profile: {e.message}")
            raise

        logging.info(f"[Auth] Registered {self.email}")
        return True
