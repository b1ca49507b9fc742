"""
Dashboard state for one client session: the event list, admin event
management, registrant drill-down and user registration.

Backend failures on this page never reach the user. Each one is logged and
the piece of state it would have refreshed is left as it was.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from eventhub.database.backend import Backend, BackendError
from eventhub.models import (
    ADMIN_ROLES,
    ROLE_USER,
    STATUS_REGISTERED,
    AuthUser,
    Event,
    EventForm,
    EventParticipant,
    empty_event_form,
)

PARTICIPANTS_PROJECTION = "*, profiles(full_name, email)"


class DashboardPage:
    """
    Role-aware dashboard.

    Attributes:
        user (AuthUser): The user the page was last mounted for.
        role (str): Profile role; "user" until fetched.
        events (list[Event]): Ordered by start date ascending.
        participants (list[EventParticipant]): Registrants of `selected_event_id` only.
        selected_event_id (str): Event whose registrants are shown, or None.
        show_event_form (bool): Whether the create form is open.
        event_form (dict): Raw form values as last entered.
        form_errors (dict): field -> message from the last rejected submission.
    """

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.user: Optional[AuthUser] = None
        self._reset()

    def _reset(self) -> None:
        self.role = ROLE_USER
        self.events: List[Event] = []
        self.participants: List[EventParticipant] = []
        self.selected_event_id: Optional[str] = None
        self.show_event_form = False
        self.event_form: Dict[str, Any] = empty_event_form()
        self.form_errors: Dict[str, str] = {}

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    # --- MOUNT ---
    def mount(self, user: Optional[AuthUser]) -> None:
        """
        Load the page for `user`.

        A different user than last time starts from a clean page. The role and
        the event list are fetched concurrently and independently.
        """
        if user != self.user:
            self._reset()
            self.user = user
        if user is None:
            return

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="dashboard") as pool:
            futures = [pool.submit(self.fetch_role), pool.submit(self.fetch_events)]
        for future in futures:
            future.result()

    def fetch_role(self) -> None:
        try:
            row = self.backend.select("profiles", columns="role", filters={"id": self.user.id}, single=True)
        except BackendError as e:
            logging.warning(f"[Dashboard] Failed to fetch role for {self.user.id}: {e.message}")
            return
        if row and row.get("role"):
            self.role = row["role"]

    def fetch_events(self) -> None:
        try:
            rows = self.backend.select("events", order=("start_date", True))
        except BackendError as e:
            logging.warning(f"[Dashboard] Failed to fetch events: {e.message}")
            return
        if rows is None:
            return
        try:
            self.events = [Event.model_validate(row) for row in rows]
        except ValidationError as e:
            logging.warning(f"[Dashboard] Discarding malformed event rows: {e.error_count()} error(s)")

    # --- PARTICIPANTS ---
    def fetch_participants(self, event_id: str) -> None:
        """Load the registrants of one event, replacing whatever list was loaded before."""
        try:
            rows = self.backend.select(
                "event_participants",
                columns=PARTICIPANTS_PROJECTION,
                filters={"event_id": event_id},
            )
        except BackendError as e:
            logging.warning(f"[Dashboard] Failed to fetch participants for event {event_id}: {e.message}")
            return
        if rows is None:
            return
        try:
            participants = [EventParticipant.model_validate(row) for row in rows]
        except ValidationError as e:
            logging.warning(f"[Dashboard] Discarding malformed participant rows for event {event_id}: {e.error_count()} error(s)")
            return
        self.participants = participants
        self.selected_event_id = str(event_id)

    # --- CREATE EVENT ---
    def toggle_event_form(self) -> None:
        self.show_event_form = not self.show_event_form

    def create_event(self, values: Dict[str, Any]) -> bool:
        """
        Create an event from the form values (admins only).

        Values are validated before anything is sent; the form stays open with
        its values on any failure.

        Returns:
            bool: True if the event was inserted.
        """
        if self.user is None:
            return False
        if not self.is_admin:
            logging.warning(f"[Dashboard] User {self.user.id} with role {self.role} may not create events")
            return False

        self.event_form = {key: values.get(key, "") for key in empty_event_form()}
        try:
            form = EventForm.model_validate(self.event_form)
        except ValidationError as e:
            self.form_errors = _field_errors(e)
            return False
        self.form_errors = {}

        row = form.model_dump(mode="json")
        row["created_by"] = self.user.id
        try:
            self.backend.insert("events", [row])
        except BackendError as e:
            logging.warning(f"[Dashboard] Failed to create event {form.title!r}: {e.message}")
            return False

        self.show_event_form = False
        self.event_form = empty_event_form()
        self.fetch_events()
        return True

    # --- REGISTRATION ---
    def is_registered(self, event_id: str) -> bool:
        """
        Whether the loaded participant list shows the current user registered.

        Only the list of the last drilled-down event is consulted, so this is
        False for every other event regardless of what the backend holds.
        Duplicate registrations for those events are possible; a unique
        (event_id, user_id) constraint in the store is what prevents them.
        """
        if self.user is None:
            return False
        return any(
            p.event_id == str(event_id) and p.user_id == self.user.id
            for p in self.participants
        )

    def register_for_event(self, event_id: str) -> bool:
        """
        Register the current user for an event.

        Returns:
            bool: True if a registration row was inserted.
        """
        if self.user is None or self.is_registered(event_id):
            return False

        try:
            self.backend.insert(
                "event_participants",
                [{"event_id": event_id, "user_id": self.user.id, "registration_status": STATUS_REGISTERED}],
            )
        except BackendError as e:
            logging.warning(f"[Dashboard] Failed to register {self.user.id} for event {event_id}: {e.message}")
            return False

        self.fetch_events()
        return True

    # --- SIGN OUT ---
    def sign_out(self) -> None:
        try:
            self.backend.sign_out()
        except BackendError as e:
            logging.warning(f"[Dashboard] Sign-out failed: {e.message}")


def _field_errors(error: ValidationError) -> Dict[str, str]:
    """Collapse a pydantic ValidationError into field -> first message."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "__all__"
        errors.setdefault(field, item["msg"])
    return errors
