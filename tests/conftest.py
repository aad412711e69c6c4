"""Pytest configuration and fixtures."""

import json
import os
import re
import time
import uuid
from datetime import datetime, timezone

import httpx
import pytest

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("BOT_TOKEN", "123456:test-token")

from fitcore.core import Settings  # noqa: E402
from fitcore.db.supabase import SupabaseClient  # noqa: E402
from fitcore.portal.session import SessionManager  # noqa: E402


MEMBER_KEY = 4242
MEMBER_EMAIL = "jane@example.com"
MEMBER_PASSWORD = "secret-password"

_EMBED = re.compile(r"(\w+):(\w+)\(\*\)")
_CONTROL_PARAMS = {"select", "order", "limit"}


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


class FakeSupabase:
    """
    In-memory stand-in for the Supabase REST and Auth APIs.

    Supports the subset the portal uses: eq filters, order, limit, embedded
    resources, Prefer return headers and password/refresh token grants.
    """

    def __init__(self):
        self.tables = {
            "profiles": [],
            "trainers": [],
            "programs": [],
            "bookings": [],
            "contact_submissions": [],
        }
        self.requests = []
        self.failures = {}
        self.users = {}
        self.refresh_tokens = {}

    # -- helpers for tests -------------------------------------------------

    def fail(self, method, path, status=400, body=None):
        self.failures[(method, path)] = (status, body or {"message": "Something went wrong"})

    def disconnect(self, method, path):
        """Make requests to the endpoint fail at the transport level."""
        self.failures[(method, path)] = None

    def requests_to(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def add_user(self, email, password, full_name="Jane Doe", **profile):
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": {"full_name": full_name}}
        self.users[email] = (password, user)
        row = {
            "id": user["id"],
            "full_name": full_name,
            "email": email,
            "phone": None,
            "membership_type": "basic",
            "created_at": _now_iso(),
            "updated_at": _now_iso(),
        }
        row.update(profile)
        self.tables["profiles"].append(row)
        return user

    def seed(self, table, **row):
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now_iso())
        self.tables[table].append(row)
        return row

    # -- transport ------------------------------------------------------------

    def handler(self, request):
        self.requests.append(request)
        path = request.url.path
        key = (request.method, path)
        if key in self.failures and self.failures[key] is None:
            raise httpx.ConnectError("connection refused", request=request)
        failure = self.failures.get(key)
        if failure is not None:
            status, body = failure
            return httpx.Response(status, json=body)
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1"):])
        table = path[len("/rest/v1/"):]
        if request.method == "GET":
            return self._get(table, request)
        if request.method == "POST":
            return self._post(table, request)
        if request.method == "PATCH":
            return self._patch(table, request)
        return httpx.Response(405)

    def _matches(self, row, params):
        for key, value in params.multi_items():
            if key in _CONTROL_PARAMS:
                continue
            if not value.startswith("eq."):
                raise AssertionError(f"unsupported filter {key}={value}")
            if str(row.get(key)) != value[3:]:
                return False
        return True

    def _embed(self, row, select):
        row = dict(row)
        for alias, table in _EMBED.findall(select):
            target_id = row.get(f"{alias}_id")
            row[alias] = next((dict(r) for r in self.tables[table] if r["id"] == target_id), None)
        return row

    def _get(self, table, request):
        params = request.url.params
        rows = [r for r in self.tables[table] if self._matches(r, params)]
        if "order" in params:
            column, direction = params["order"].split(".")
            rows = sorted(rows, key=lambda r: r[column], reverse=direction == "desc")
        if "limit" in params:
            rows = rows[: int(params["limit"])]
        select = params.get("select", "*")
        return httpx.Response(200, json=[self._embed(r, select) for r in rows])

    def _post(self, table, request):
        payload = json.loads(request.content)
        row = dict(payload)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now_iso())
        if table == "contact_submissions":
            row.setdefault("status", "new")
        if table == "profiles":
            row.setdefault("phone", None)
            row.setdefault("membership_type", "basic")
            row.setdefault("updated_at", _now_iso())
        self.tables[table].append(row)
        if "return=representation" in request.headers.get("Prefer", ""):
            return httpx.Response(201, json=[row])
        return httpx.Response(201)

    def _patch(self, table, request):
        payload = json.loads(request.content)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, request.url.params):
                row.update(payload)
                updated.append(dict(row))
        return httpx.Response(200, json=updated)

    def _session_for(self, user, expires_in=3600):
        refresh_token = f"refresh-{uuid.uuid4()}"
        self.refresh_tokens[refresh_token] = user
        return {
            "access_token": f"access-{uuid.uuid4()}",
            "token_type": "bearer",
            "expires_in": expires_in,
            "expires_at": int(time.time()) + expires_in,
            "refresh_token": refresh_token,
            "user": user,
        }

    def _auth(self, request, path):
        if path == "/signup":
            body = json.loads(request.content)
            if body["email"] in self.users:
                return httpx.Response(
                    422,
                    json={"code": 422, "error_code": "user_already_exists", "msg": "User already registered"},
                )
            user = {"id": str(uuid.uuid4()), "email": body["email"], "user_metadata": body.get("data", {})}
            self.users[body["email"]] = (body["password"], user)
            return httpx.Response(200, json=self._session_for(user))
        if path == "/token":
            body = json.loads(request.content)
            grant = request.url.params["grant_type"]
            if grant == "password":
                password, user = self.users.get(body["email"], (None, None))
                if user is None or password != body["password"]:
                    return httpx.Response(
                        400,
                        json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
                    )
                return httpx.Response(200, json=self._session_for(user))
            user = self.refresh_tokens.pop(body["refresh_token"], None)
            if user is None:
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "Invalid Refresh Token"},
                )
            return httpx.Response(200, json=self._session_for(user))
        if path == "/logout":
            return httpx.Response(204)
        return httpx.Response(404, json={"msg": "not found"})


@pytest.fixture
def settings():
    """Settings pointing at the fake project."""
    return Settings(
        bot_token="123456:test-token",
        supabase_url="https://test-project.supabase.co",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def backend():
    return FakeSupabase()


@pytest.fixture
async def supabase(settings, backend):
    client = SupabaseClient(settings, transport=httpx.MockTransport(backend.handler))
    yield client
    await client.close()


@pytest.fixture
def sessions(supabase):
    return SessionManager(supabase)


@pytest.fixture
def catalog_data(backend):
    """Two trainers and four programs across three categories."""
    alex = backend.seed(
        "trainers",
        name="Alex Strong",
        specialty="Strength & Conditioning",
        experience="8 years",
        rating=4.9,
    )
    maya = backend.seed(
        "trainers",
        name="Maya Flow",
        specialty="Yoga",
        experience="6 years",
        rating=4.7,
    )
    programs = [
        backend.seed(
            "programs",
            title="Power Lifting",
            description="Build raw strength.",
            category="strength",
            duration="60 min",
            level="Intermediate",
            trainer_id=alex["id"],
            max_participants=10,
            created_at="2024-01-01T00:00:00+00:00",
        ),
        backend.seed(
            "programs",
            title="HIIT Burn",
            description="High intensity intervals.",
            category="cardio",
            duration="45 min",
            level="All levels",
            trainer_id=None,
            max_participants=20,
            created_at="2024-01-02T00:00:00+00:00",
        ),
        backend.seed(
            "programs",
            title="Morning Flow",
            description="Start the day stretched.",
            category="yoga",
            duration="50 min",
            level="Beginner",
            trainer_id=maya["id"],
            max_participants=15,
            created_at="2024-01-03T00:00:00+00:00",
        ),
        backend.seed(
            "programs",
            title="Olympic Lifts",
            description="Technique first.",
            category="strength",
            duration="75 min",
            level="Advanced",
            trainer_id=alex["id"],
            max_participants=8,
            created_at="2024-01-04T00:00:00+00:00",
        ),
    ]
    return {"trainers": [alex, maya], "programs": programs}


@pytest.fixture
async def member(backend, sessions):
    """A signed-in member session."""
    backend.add_user(MEMBER_EMAIL, MEMBER_PASSWORD, full_name="Jane Doe")
    result = await sessions.sign_in(MEMBER_KEY, MEMBER_EMAIL, MEMBER_PASSWORD)
    assert result.ok
    return sessions.get(MEMBER_KEY)
