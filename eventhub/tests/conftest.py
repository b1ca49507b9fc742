import uuid
from datetime import datetime, timezone

import pytest

from eventhub.database.backend import BackendError
from eventhub.gateway.server import create_app
from eventhub.models import AuthUser


class FakeSubscription:
    def __init__(self, backend, callback):
        self.backend = backend
        self.callback = callback

    def unsubscribe(self):
        self.backend.subscriptions.remove(self)


class FakeBackend:
    """
    In-memory stand-in for the supabase-backed Backend.

    Mirrors the calls Backend exposes, keeps rows in plain lists and records
    every insert so tests can assert what was (or was not) sent.
    """

    def __init__(self):
        self.tables = {"profiles": [], "events": [], "event_participants": []}
        self.accounts = {}
        self.session_user = None
        self.refreshing = False
        self.closed = 0
        self.subscriptions = []
        self.insert_calls = []
        self.select_calls = []
        self.failures = {}

    # --- test helpers ---
    def fail_on(self, operation, target, message):
        self.failures[(operation, target)] = message

    def _check(self, operation, target):
        message = self.failures.get((operation, target))
        if message:
            raise BackendError(message)

    def add_account(self, email, password, role="user", full_name=None, profile=True):
        user = AuthUser(id=uuid.uuid4().hex, email=email)
        self.accounts[email] = (password, user)
        if profile:
            self.tables["profiles"].append({"id": user.id, "role": role, "email": email, "full_name": full_name})
        return user

    def add_event(self, title, start_date, **fields):
        row = {
            "id": uuid.uuid4().hex,
            "title": title,
            "description": fields.pop("description", f"{title} description"),
            "event_type": fields.pop("event_type", "social"),
            "start_date": start_date,
            "end_date": fields.pop("end_date", start_date),
            "location": fields.pop("location", "Main Hall"),
            "max_participants": fields.pop("max_participants", 50),
            "community_id": None,
            "created_by": None,
        }
        row.update(fields)
        self.tables["events"].append(row)
        return row

    def add_registration(self, event_id, user_id):
        row = {
            "id": uuid.uuid4().hex,
            "event_id": event_id,
            "user_id": user_id,
            "registration_status": "registered",
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }
        self.tables["event_participants"].append(row)
        return row

    def inserts_into(self, table):
        return [rows for name, rows in self.insert_calls if name == table]

    def _emit(self, event):
        for subscription in list(self.subscriptions):
            subscription.callback(event, self.session_user)

    # --- auth ---
    def sign_in_with_password(self, email, password):
        self._check("auth", "sign_in")
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise BackendError("Invalid login credentials")
        self.session_user = account[1]
        self.refreshing = True
        self._emit("SIGNED_IN")
        return self.session_user

    def sign_up(self, email, password):
        self._check("auth", "sign_up")
        if email in self.accounts:
            raise BackendError("User already registered")
        user = self.add_account(email, password, profile=False)
        self.session_user = user
        self.refreshing = True
        self._emit("SIGNED_IN")
        return user

    def sign_out(self):
        self._check("auth", "sign_out")
        self.session_user = None
        self.refreshing = False
        self._emit("SIGNED_OUT")

    def close(self):
        # Local sign-out: drops the session and its refresh timer, no event.
        self.closed += 1
        self.session_user = None
        self.refreshing = False

    def get_session_user(self):
        self._check("auth", "session")
        return self.session_user

    def on_auth_state_change(self, callback):
        subscription = FakeSubscription(self, callback)
        self.subscriptions.append(subscription)
        return subscription

    # --- data ---
    def select(self, table, columns="*", filters=None, order=None, single=False):
        self.select_calls.append((table, columns, filters, order, single))
        self._check("select", table)

        rows = [
            dict(row) for row in self.tables[table]
            if all(str(row.get(k)) == str(v) for k, v in (filters or {}).items())
        ]
        if order:
            column, ascending = order
            rows.sort(key=lambda row: row[column], reverse=not ascending)
        if "profiles(" in columns:
            for row in rows:
                profile = next((p for p in self.tables["profiles"] if p["id"] == row["user_id"]), None)
                row["profiles"] = {"full_name": profile["full_name"], "email": profile["email"]} if profile else None
        elif not columns.startswith("*"):
            names = [name.strip() for name in columns.split(",")]
            rows = [{name: row.get(name) for name in names} for row in rows]

        if single:
            if len(rows) != 1:
                raise BackendError("JSON object requested, multiple (or no) rows returned")
            return rows[0]
        return rows

    def insert(self, table, rows):
        self.insert_calls.append((table, rows))
        self._check("insert", table)
        stored = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", uuid.uuid4().hex)
            if table == "event_participants":
                row.setdefault("registered_at", datetime.now(timezone.utc).isoformat())
            self.tables[table].append(row)
            stored.append(row)
        return stored


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def app(fake_backend):
    app = create_app(
        backend_factory=lambda: fake_backend,
        config={"TESTING": True, "SECRET_KEY": "test_secret", "AUTH_INITIAL_WAIT_SECONDS": 5},
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sign_in(client, fake_backend):
    """
    Sign a browser in through the auth page.
    Returns a function taking (email, password, role="user").
    """
    def _sign_in(email="user@example.com", password="password123", role="user", full_name=None):
        if email not in fake_backend.accounts:
            fake_backend.add_account(email, password, role=role, full_name=full_name)
        response = client.post("/auth", data={"email": email, "password": password})
        assert response.status_code == 302
        return fake_backend.accounts[email][1]

    return _sign_in
