"""
Shared fixtures: an in-memory stand-in for the Supabase gateway, an Auth
Context bound to it, and a TestClient with the app's dependencies overridden.
"""
import io
import itertools
import os
import tempfile
import uuid
from types import SimpleNamespace

import pytest
from PIL import Image

os.environ.setdefault("DEBUG_LOGS_DIR", tempfile.mkdtemp(prefix="opportunities-logs-"))

from opportunities.db.backend import BackendError, NOT_FOUND_CODE  # noqa: E402
from opportunities.services.auth_context import AuthContext  # noqa: E402
from opportunities.services.verification_wizard import WizardRegistry  # noqa: E402


class FakeUser:
    def __init__(self, email, metadata):
        self.id = str(uuid.uuid4())
        self.email = email
        self.user_metadata = dict(metadata)


class FakeSubscription:
    def __init__(self, backend, callback):
        self.backend = backend
        self.callback = callback

    def unsubscribe(self):
        if self.callback in self.backend.listeners:
            self.backend.listeners.remove(self.callback)


class FakeBackend:
    """Same surface as SupabaseBackend, backed by dicts. Records every call in .calls."""

    def __init__(self, configured=True):
        self.configured = configured
        self.tables = {"workers": [], "employers": [], "jobs": []}
        self.accounts = {}
        self.current_user = None
        self.listeners = []
        self.uploads = {}
        self.calls = []
        self.sign_up_error = None
        self.fail_uploads = False
        self._tick = itertools.count(1)

    def is_configured(self):
        return self.configured

    def _emit(self, event, user):
        session = SimpleNamespace(user=user) if user is not None else None
        for callback in list(self.listeners):
            callback(event, session)

    # identity
    def sign_up(self, email, password, metadata):
        self.calls.append("sign_up")
        if self.sign_up_error is not None:
            raise self.sign_up_error
        if email in self.accounts:
            raise BackendError("User already registered", code="user_already_exists")
        user = FakeUser(email, metadata)
        self.accounts[email] = (password, user)
        self.current_user = user
        self._emit("SIGNED_IN", user)
        return SimpleNamespace(user=user, session=SimpleNamespace(user=user))

    def sign_in(self, email, password):
        self.calls.append("sign_in")
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise BackendError("Invalid login credentials", code="invalid_credentials")
        self.current_user = account[1]
        self._emit("SIGNED_IN", account[1])
        return SimpleNamespace(user=account[1], session=SimpleNamespace(user=account[1]))

    def sign_out(self):
        self.calls.append("sign_out")
        self.current_user = None
        self._emit("SIGNED_OUT", None)

    def get_current_user(self):
        self.calls.append("get_current_user")
        return self.current_user

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return FakeSubscription(self, callback)

    # tables
    def select_one(self, table, column, value):
        self.calls.append(f"select_one:{table}")
        for row in self.tables[table]:
            if row.get(column) == value:
                return dict(row)
        return None

    def select_many(self, table, columns="*", eq=None, ilike=None, order_by=None, descending=False):
        self.calls.append(f"select_many:{table}")
        rows = [dict(r) for r in self.tables[table]]
        for column, value in (eq or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        for column, pattern in (ilike or {}).items():
            needle = pattern.strip("%").lower()
            rows = [r for r in rows if needle in str(r.get(column) or "").lower()]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by) or 0, reverse=descending)
        return rows

    def insert(self, table, row):
        self.calls.append(f"insert:{table}")
        stored = {"id": str(uuid.uuid4()), "created_at": f"2024-01-01T00:00:{next(self._tick):02d}", **row}
        if table == "workers":
            stored.setdefault("is_verified", False)
            stored.setdefault("rating", 0)
            stored.setdefault("completed_jobs", 0)
        self.tables[table].append(stored)
        return dict(stored)

    def update(self, table, row_id, changes):
        self.calls.append(f"update:{table}")
        for row in self.tables[table]:
            if row.get("id") == row_id:
                row.update(changes)
                return dict(row)
        raise BackendError(f"No {table} row with id {row_id}", code=NOT_FOUND_CODE)

    # storage
    def upload(self, bucket, path, data, content_type):
        self.calls.append(f"upload:{bucket}")
        if self.fail_uploads:
            raise BackendError("The resource already exists", code="409")
        self.uploads[(bucket, path)] = (data, content_type)
        return f"https://storage.test/{bucket}/{path}"


class MatchOutcome:
    """Injectable match decision; flip .is_match to change the next verification's result."""

    def __init__(self, is_match=True):
        self.is_match = is_match
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.is_match


def png_bytes(size=(64, 48), color=(200, 120, 80)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def auth_context(backend):
    context = AuthContext(backend)
    context.init()
    yield context
    context.teardown()


@pytest.fixture
def wizards():
    registry = WizardRegistry()
    yield registry
    registry.close_all()


@pytest.fixture
def match_outcome():
    return MatchOutcome(is_match=True)


@pytest.fixture
def frame_bytes():
    return png_bytes()


@pytest.fixture
def client(backend, auth_context, wizards, match_outcome):
    from fastapi.testclient import TestClient
    from opportunities.main import app
    from opportunities.api import deps

    app.dependency_overrides[deps.get_backend] = lambda: backend
    app.dependency_overrides[deps.get_auth_context] = lambda: auth_context
    app.dependency_overrides[deps.get_wizards] = lambda: wizards
    app.dependency_overrides[deps.get_match_decider] = lambda: match_outcome
    app.dependency_overrides[deps.get_match_delay] = lambda: 0

    yield TestClient(app)

    app.dependency_overrides.clear()


def add_worker(backend, **fields):
    row = {
        "email": "worker@x.com",
        "full_name": "Thandi Mokoena",
        "phone": "0821234567",
        "location": "Soweto",
        "skills": "cleaning, cooking",
        "experience": "5 years",
        "availability": "full-time",
        "is_verified": False,
        "rating": 4.5,
        "completed_jobs": 3,
    }
    row.update(fields)
    return backend.insert("workers", row)


def add_job(backend, employer_id, status, budget=100, **fields):
    row = {
        "employer_id": employer_id,
        "title": f"{status} job",
        "description": "Weekly house cleaning",
        "category": "cleaning",
        "location": "Soweto",
        "budget": budget,
        "status": status,
    }
    row.update(fields)
    return backend.insert("jobs", row)


JANE = {
    "full_name": "Jane Dlamini",
    "email": "jane@x.com",
    "password": "secret1",
    "confirm_password": "secret1",
    "phone": "0820000000",
    "location": "Soweto",
    "skills": "cleaning, cooking",
    "experience": "2 years",
    "availability": "weekends",
}

ACME = {
    "full_name": "Acme Homes",
    "email": "boss@x.com",
    "password": "secret1",
    "confirm_password": "secret1",
    "id_number": "8001015009087",
}
