"""
End-to-end flows through the shell, the views' actions and the fake service
"""

import asyncio

import pytest

from core.errors import RequestError
from services.auth_service.capabilities import Panel
from services.ui_service.actions import ActionState, ConfirmationGate
from services.ui_service.booking_views import cancel_booking
from services.ui_service.parking_views import add_spot, book_spot


def login(auth_manager, shell, email, password):
    asyncio.run(auth_manager.login(email, password))
    asyncio.run(shell.handle_login_success())


class TestScenarios:
    """Walk through the main user journeys"""

    def test_admin_sees_all_panels(self, auth_manager, shell):
        """Admin login shows user management, add spot, spots and bookings"""
        login(auth_manager, shell, "admin@carparking.com", "admin123")

        assert shell.visible_panels() == [
            Panel.USER_MANAGEMENT, Panel.ADD_SPOT, Panel.SPOT_LIST, Panel.BOOKING_LIST
        ]

    def test_attendant_adds_then_books_spot(self, auth_manager, shell):
        """Attendant adds P-001, books it, sees it occupied with the booking listed"""
        login(auth_manager, shell, "attendant@carparking.com", "attendant123")

        asyncio.run(add_spot(shell, ActionState(), "P-001", "Level 1 - Row A"))

        assert [(s.number, s.occupied) for s in shell.spots] == [("P-001", False)]

        asyncio.run(book_spot(shell, ActionState(), shell.spots[0].spot_id, "ABC-1234"))

        assert shell.spots[0].occupied is True
        assert len(shell.bookings) == 1
        assert shell.bookings[0].vehicle_number == "ABC-1234"
        assert shell.bookings[0].spot_number == "P-001"

    def test_cancel_missing_booking_leaves_list(self, auth_manager, shell, fake_api):
        """Cancelling a booking the server no longer has reports the error and changes nothing"""
        spot = fake_api.add_spot("P-001")
        login(auth_manager, shell, "attendant@carparking.com", "attendant123")
        asyncio.run(book_spot(shell, ActionState(), spot["_id"], "ABC-1234"))
        before = list(shell.bookings)

        with pytest.raises(RequestError) as exc_info:
            asyncio.run(shell.api_client.cancel_booking(shell.token, "gone"))
        assert exc_info.value.message == "Booking not found"

        gate = ConfirmationGate({}, "cancel_booking")
        gate.request("gone")
        state = ActionState()
        assert not asyncio.run(cancel_booking(shell, state, gate, "gone"))

        assert state.error == "Booking not found"
        assert shell.bookings == before

    def test_user_never_sees_staff_panels(self, auth_manager, shell):
        """A plain user gets neither the add-spot form nor user management"""
        login(auth_manager, shell, "user1@example.com", "user123")

        panels = shell.visible_panels()
        assert Panel.ADD_SPOT not in panels
        assert Panel.USER_MANAGEMENT not in panels

    def test_attendant_never_sees_user_management(self, auth_manager, shell):
        login(auth_manager, shell, "attendant@carparking.com", "attendant123")

        assert Panel.USER_MANAGEMENT not in shell.visible_panels()

    def test_logout_then_other_user(self, auth_manager, shell, fake_api):
        """Logging out and in as someone else shows only the new user's data"""
        spot = fake_api.add_spot("P-001")
        login(auth_manager, shell, "attendant@carparking.com", "attendant123")
        asyncio.run(book_spot(shell, ActionState(), spot["_id"], "ABC-1234"))

        shell.logout()
        login(auth_manager, shell, "user1@example.com", "user123")

        assert shell.bookings == []
        assert [s.occupied for s in shell.spots] == [True]
