"""
Shared fixtures: isolated storage, and an in-memory parking API served
through httpx.MockTransport.
"""

import itertools
import json
import secrets
from datetime import datetime, timezone

import httpx
import pytest

import config.app_config as app_config
from config.app_config import AuthConfig
from infrastructure.external.parking_api_client import ParkingAPIClient
from infrastructure.storage.local_storage import LocalStorage
from services.auth_service.auth_manager import AuthManager
from services.auth_service.session_store import SessionStore
from services.ui_service.root_shell import RootShell

BASE_URL = "http://parking.test"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep every test away from the real profile directory and global config"""
    monkeypatch.setenv("PARKING_STORAGE_DIR", str(tmp_path / "profiles"))
    monkeypatch.setenv("PARKING_API_BASE", BASE_URL)
    monkeypatch.delenv("PARKING_API_TIMEOUT", raising=False)
    app_config._config = None
    yield
    app_config._config = None


class FakeParkingAPI:
    """
    Minimal stand-in for the parking REST service.

    Seeded with the demo accounts; keeps users, spots and bookings in
    memory and records every request it receives.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.users = {}
        self.passwords = {}
        self.tokens = {}
        self.spots = {}
        self.bookings = {}
        self.requests = []

        self.add_user("Admin", "admin@carparking.com", "admin123", "admin")
        self.add_user("Attendant", "attendant@carparking.com", "attendant123", "attendant")
        self.add_user("User One", "user1@example.com", "user123", "user")

    def _next_id(self) -> str:
        return f"id{next(self._ids):04d}"

    def add_user(self, name, email, password, role):
        user_id = self._next_id()
        self.users[user_id] = {
            "_id": user_id,
            "name": name,
            "email": email,
            "role": role,
            "isActive": True,
            "createdAt": "2025-01-15T09:30:00.000Z",
        }
        self.passwords[email] = password
        return self.users[user_id]

    def add_spot(self, number, location="", occupied=False):
        spot_id = self._next_id()
        self.spots[spot_id] = {"_id": spot_id, "number": number, "location": location, "occupied": occupied}
        return self.spots[spot_id]

    def issue_token(self, user):
        token = secrets.token_hex(8)
        self.tokens[token] = user["_id"]
        return token

    def token_for(self, email):
        user = next(u for u in self.users.values() if u["email"] == email)
        return self.issue_token(user)

    def _find_by_email(self, email):
        return next((u for u in self.users.values() if u["email"] == email), None)

    @staticmethod
    def _error(status, message):
        return httpx.Response(status, json={"error": message})

    def _current_user(self, request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        user_id = self.tokens.get(header[len("Bearer "):])
        return self.users.get(user_id) if user_id else None

    def _booking_view(self, booking):
        view = dict(booking)
        view["spot"] = self.spots.get(booking["spotId"])
        return view

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        body = json.loads(request.content) if request.content else {}

        if method == "POST" and path == "/api/auth/login":
            user = self._find_by_email(body.get("email"))
            if user is None or self.passwords.get(user["email"]) != body.get("password"):
                return self._error(401, "Invalid credentials")
            return httpx.Response(200, json={"token": self.issue_token(user), "user": user})

        if method == "POST" and path == "/api/auth/register":
            if self._find_by_email(body.get("email")):
                return self._error(400, "User already exists")
            user = self.add_user(body["name"], body["email"], body["password"], "user")
            return httpx.Response(201, json={"token": self.issue_token(user), "user": user})

        current = self._current_user(request)
        if current is None:
            return self._error(401, "Authentication required")

        if method == "POST" and path == "/api/auth/admin/register":
            if current["role"] != "admin":
                return self._error(403, "Access denied")
            if self._find_by_email(body.get("email")):
                return self._error(400, "User already exists")
            user = self.add_user(body["name"], body["email"], body["password"], body["role"])
            return httpx.Response(201, json={"token": self.issue_token(user), "user": user})

        if path == "/api/parking":
            if method == "GET":
                return httpx.Response(200, json=list(self.spots.values()))
            if current["role"] not in ("admin", "attendant"):
                return self._error(403, "Access denied")
            if not body.get("number"):
                return self._error(400, "Spot number is required")
            if any(s["number"] == body["number"] for s in self.spots.values()):
                return self._error(400, "Spot number already exists")
            return httpx.Response(201, json=self.add_spot(body["number"], body.get("location", "")))

        if path == "/api/bookings":
            if method == "GET":
                visible = [
                    b for b in self.bookings.values()
                    if current["role"] != "user" or b["user"] == current["_id"]
                ]
                return httpx.Response(200, json=[self._booking_view(b) for b in visible])
            spot = self.spots.get(body.get("spotId"))
            if spot is None:
                return self._error(404, "Spot not found")
            if spot["occupied"]:
                return self._error(400, "Spot already occupied")
            spot["occupied"] = True
            booking_id = self._next_id()
            self.bookings[booking_id] = {
                "_id": booking_id,
                "vehicleNumber": body["vehicleNumber"],
                "spotId": spot["_id"],
                "user": current["_id"],
                "startTime": datetime.now(timezone.utc).isoformat(),
            }
            return httpx.Response(201, json=self.bookings[booking_id])

        if method == "DELETE" and path.startswith("/api/bookings/"):
            booking = self.bookings.pop(path.rsplit("/", 1)[-1], None)
            if booking is None:
                return self._error(404, "Booking not found")
            self.spots[booking["spotId"]]["occupied"] = False
            return httpx.Response(200, json={"message": "Booking cancelled"})

        if path == "/api/users" and method == "GET":
            if current["role"] != "admin":
                return self._error(403, "Access denied")
            return httpx.Response(200, json=list(self.users.values()))

        if method == "DELETE" and path.startswith("/api/users/"):
            if current["role"] != "admin":
                return self._error(403, "Access denied")
            if self.users.pop(path.rsplit("/", 1)[-1], None) is None:
                return self._error(404, "User not found")
            return httpx.Response(204)

        return self._error(404, "Not found")


@pytest.fixture
def fake_api():
    return FakeParkingAPI()


@pytest.fixture
def api_client(fake_api):
    return ParkingAPIClient(BASE_URL, transport=httpx.MockTransport(fake_api.handle))


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "profile" / "local_storage.json")


@pytest.fixture
def session_store(storage):
    return SessionStore(storage)


@pytest.fixture
def auth_manager(api_client, session_store):
    return AuthManager(api_client=api_client, session_store=session_store, auth_config=AuthConfig())


@pytest.fixture
def shell(session_store, api_client):
    shell = RootShell(session_store, api_client)
    shell.mount()
    return shell
