"""
Tests for the root shell: session restore, login/logout transitions and
the shared refresh
"""

import asyncio
import logging

import httpx
import pytest

from config.app_config import AuthConfig
from infrastructure.external.parking_api_client import ParkingAPIClient
from infrastructure.storage.browser_identity import new_browser_id
from services.auth_service.auth_manager import AuthManager
from services.auth_service.capabilities import Feature, Panel
from services.auth_service.models import Role, Unauthenticated, User
from services.auth_service.session_store import SessionStore, get_session_store
from services.ui_service.root_shell import RootShell, ShellPhase

BASE_URL = "http://parking.test"


def login(auth_manager, shell, email, password):
    asyncio.run(auth_manager.login(email, password))
    return asyncio.run(shell.handle_login_success())


class TestMount:
    """Test initial session restore"""

    def test_starts_loading(self, session_store, api_client):
        """Test the phase before mount"""
        assert RootShell(session_store, api_client).phase == ShellPhase.LOADING

    def test_mount_without_session(self, shell):
        """Test first start"""
        assert shell.phase == ShellPhase.UNAUTHENTICATED
        assert shell.user is None
        assert shell.visible_panels() == []

    def test_mount_restores_session(self, auth_manager, session_store, api_client, fake_api):
        """Test a restart with a stored session"""
        fake_api.add_spot("P-001", "Level 1")
        asyncio.run(auth_manager.login("attendant@carparking.com", "attendant123"))

        restarted = RootShell(SessionStore(session_store.storage), api_client)
        phase = asyncio.run(restarted.start())

        assert phase == ShellPhase.AUTHENTICATED
        assert restarted.role == Role.ATTENDANT
        assert [s.number for s in restarted.spots] == ["P-001"]

    def test_start_without_session_fetches_nothing(self, session_store, api_client, fake_api):
        """Test that no collection request is made while logged out"""
        asyncio.run(RootShell(session_store, api_client).start())

        assert fake_api.requests == []


class TestLoginLogout:
    """Test the AUTHENTICATED transitions"""

    def test_login_loads_collections(self, auth_manager, shell, fake_api):
        """Test that logging in triggers the shared refresh"""
        fake_api.add_spot("P-001")

        assert login(auth_manager, shell, "user1@example.com", "user123")

        assert shell.phase == ShellPhase.AUTHENTICATED
        assert len(shell.spots) == 1
        assert fake_api.calls("GET", "/api/parking")
        assert fake_api.calls("GET", "/api/bookings")

    def test_login_success_without_stored_session(self, shell):
        """Test that the shell stays out when nothing was saved"""
        assert asyncio.run(shell.handle_login_success()) is False
        assert shell.phase == ShellPhase.UNAUTHENTICATED

    def test_logout_resets_everything(self, auth_manager, shell, fake_api, session_store):
        """Test that login then logout is indistinguishable from never logging in"""
        fake_api.add_spot("P-001")
        login(auth_manager, shell, "admin@carparking.com", "admin123")

        shell.logout()

        assert shell.phase == ShellPhase.UNAUTHENTICATED
        assert shell.session == Unauthenticated()
        assert shell.spots == []
        assert shell.bookings == []
        assert session_store.load() == Unauthenticated()

    def test_register_toggle(self, shell):
        """Test switching between login and registration screens"""
        shell.show_register()
        assert shell.showing_register

        shell.show_login()
        assert not shell.showing_register

    def test_register_toggle_ignored_when_logged_in(self, auth_manager, shell):
        """Test that the registration screen is only reachable logged out"""
        login(auth_manager, shell, "user1@example.com", "user123")

        shell.show_register()

        assert not shell.showing_register

    def test_generation_bumps_on_every_transition(self, auth_manager, shell):
        """Test the session generation counter"""
        start = shell.generation
        login(auth_manager, shell, "user1@example.com", "user123")
        shell.logout()

        assert shell.generation == start + 2


class TestRefresh:
    """Test the shared refresh"""

    def test_fetches_run_concurrently(self, session_store, fake_api):
        """Test that spots and bookings are requested at the same time"""
        arrived = []
        events = {}

        async def handler(request):
            if request.method == "GET" and request.url.path in ("/api/parking", "/api/bookings"):
                both_arrived = events.setdefault("both_arrived", asyncio.Event())
                arrived.append(request.url.path)
                if len(arrived) == 2:
                    both_arrived.set()
                # Sequential fetches would never get past this point
                await asyncio.wait_for(both_arrived.wait(), timeout=2)
            return fake_api.handle(request)

        user = next(u for u in fake_api.users.values() if u["role"] == "user")
        token = fake_api.issue_token(user)
        session_store.save(token, User.from_dict(user))

        shell = RootShell(session_store, ParkingAPIClient(BASE_URL, transport=httpx.MockTransport(handler)))
        asyncio.run(shell.start())

        assert sorted(arrived) == ["/api/bookings", "/api/parking"]

    def test_failed_fetch_keeps_previous_list(self, auth_manager, shell, fake_api):
        """Test that an error does not empty the spot list"""
        fake_api.add_spot("P-001")
        login(auth_manager, shell, "user1@example.com", "user123")
        original = fake_api.handle

        def failing(request):
            if request.url.path == "/api/parking":
                return httpx.Response(500, json={"error": "Database unavailable"})
            return original(request)

        shell.api_client.transport = httpx.MockTransport(failing)
        fake_api.add_spot("P-002")

        asyncio.run(shell.refresh())

        assert [s.number for s in shell.spots] == ["P-001"]

    def test_transport_failure_keeps_previous_list(self, auth_manager, shell, fake_api):
        """Test that an unreachable service does not empty the lists"""
        fake_api.add_spot("P-001")
        login(auth_manager, shell, "user1@example.com", "user123")

        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        shell.api_client.transport = httpx.MockTransport(unreachable)
        asyncio.run(shell.refresh())

        assert len(shell.spots) == 1

    def test_late_results_after_logout_are_dropped(self, auth_manager, shell, fake_api):
        """Test that a fetch finishing after logout leaves the lists empty"""
        fake_api.add_spot("P-001")
        login(auth_manager, shell, "attendant@carparking.com", "attendant123")
        original = fake_api.handle

        def logout_mid_flight(request):
            response = original(request)
            if request.url.path == "/api/parking":
                shell.logout()
            return response

        shell.api_client.transport = httpx.MockTransport(logout_mid_flight)
        asyncio.run(shell.refresh())

        assert shell.phase == ShellPhase.UNAUTHENTICATED
        assert shell.spots == []
        assert shell.bookings == []

    def test_refresh_when_logged_out_is_noop(self, shell, fake_api):
        """Test refresh with no session"""
        asyncio.run(shell.refresh())

        assert fake_api.requests == []


class TestAuthorization:
    """Test role-derived panels on the shell"""

    @pytest.mark.parametrize("email, password, panels", [
        ("admin@carparking.com", "admin123",
         [Panel.USER_MANAGEMENT, Panel.ADD_SPOT, Panel.SPOT_LIST, Panel.BOOKING_LIST]),
        ("attendant@carparking.com", "attendant123", [Panel.ADD_SPOT, Panel.SPOT_LIST, Panel.BOOKING_LIST]),
        ("user1@example.com", "user123", [Panel.SPOT_LIST, Panel.BOOKING_LIST]),
    ])
    def test_panels_per_role(self, auth_manager, shell, email, password, panels):
        login(auth_manager, shell, email, password)

        assert shell.visible_panels() == panels

    def test_can_is_false_when_logged_out(self, shell):
        assert not shell.can(Feature.VIEW_SPOTS)

    def test_spot_partitions(self, auth_manager, shell, fake_api):
        """Test available/occupied helpers"""
        fake_api.add_spot("P-001")
        fake_api.add_spot("P-002", occupied=True)
        login(auth_manager, shell, "user1@example.com", "user123")

        assert [s.number for s in shell.available_spots] == ["P-001"]
        assert [s.number for s in shell.occupied_spots] == ["P-002"]


class TestSeparateBrowsers:
    """Test shells of different browsers in one server process"""

    def test_second_browser_starts_logged_out(self, api_client):
        """Test that an admin login in one browser does not leak into another"""
        first_store = get_session_store(new_browser_id())
        first = RootShell(first_store, api_client)
        asyncio.run(first.start())
        asyncio.run(AuthManager(first_store, api_client=api_client, auth_config=AuthConfig())
                    .login("admin@carparking.com", "admin123"))
        asyncio.run(first.handle_login_success())

        second = RootShell(get_session_store(new_browser_id()), api_client)
        asyncio.run(second.start())

        assert first.role == Role.ADMIN
        assert second.phase == ShellPhase.UNAUTHENTICATED
        assert second.visible_panels() == []

    def test_logout_in_one_browser_keeps_the_other(self, api_client):
        """Test that logout only clears the browser it happened in"""
        shells = []
        for email, password in [("admin@carparking.com", "admin123"), ("user1@example.com", "user123")]:
            store = get_session_store(new_browser_id())
            shell = RootShell(store, api_client)
            shell.mount()
            asyncio.run(AuthManager(store, api_client=api_client, auth_config=AuthConfig())
                        .login(email, password))
            asyncio.run(shell.handle_login_success())
            shells.append(shell)

        shells[0].logout()
        restarted = RootShell(shells[1].session_store, api_client)

        assert restarted.mount() == ShellPhase.AUTHENTICATED
        assert restarted.role == Role.USER


class TestRefreshLogging:
    """Test timing logs around the shared refresh"""

    def test_refresh_is_timed(self, auth_manager, shell, caplog):
        login(auth_manager, shell, "user1@example.com", "user123")
        caplog.set_level(logging.INFO, logger="services.ui_service.root_shell")

        asyncio.run(shell.refresh())

        completed = [r for r in caplog.records if r.getMessage() == "Completed refresh"]
        assert len(completed) == 1
        assert completed[0].status == "success"
        assert completed[0].generation == shell.generation
