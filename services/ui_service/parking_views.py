"""
Parking spot panels: the add-spot form (admins and attendants) and the spot
list with booking (everyone).
"""

from typing import Optional

import streamlit as st

from core.errors import ValidationError
from services.auth_service.capabilities import Feature
from services.ui_service.actions import ActionState, run_action, run_sync
from services.ui_service.root_shell import RootShell
from utils.logging_config import get_logger, log_user_interaction

logger = get_logger(__name__)

SPOT_FORM_STATE = "spot_form_state"
BOOKING_STATE = "booking_state"
BOOKING_TARGET = "booking_spot_id"


async def add_spot(shell: RootShell, state: ActionState, number: str, location: str) -> bool:
    """Create a spot, then refresh the shell's collections"""
    number = (number or "").strip()
    location = (location or "").strip()

    async def request():
        if not number:
            raise ValidationError("Spot number is required")
        return await shell.api_client.create_spot(shell.token, number, location)

    async def on_success(_):
        log_user_interaction(logger, "spot_added", number=number)
        await shell.refresh()

    return await run_action(state, request, success_message=f"Spot {number} added",
                            on_success=on_success, context="add_spot")


async def book_spot(shell: RootShell, state: ActionState, spot_id: str, vehicle_number: str) -> bool:
    """Book a spot for a vehicle, then refresh"""
    vehicle_number = (vehicle_number or "").strip()

    async def request():
        if not vehicle_number:
            raise ValidationError("Vehicle number is required")
        return await shell.api_client.create_booking(shell.token, spot_id, vehicle_number)

    async def on_success(_):
        log_user_interaction(logger, "spot_booked", spot_id=spot_id, vehicle_number=vehicle_number)
        await shell.refresh()

    return await run_action(state, request, success_message="Spot booked successfully!",
                            on_success=on_success, context="book_spot")


def _state(key: str) -> ActionState:
    if key not in st.session_state:
        st.session_state[key] = ActionState()
    return st.session_state[key]


def _render_feedback(state: ActionState):
    if state.error:
        st.error(state.error)
    if state.success:
        st.success(f"✅ {state.success}")


def render_parking_form(shell: RootShell):
    """Add-spot form"""
    if not shell.can(Feature.ADD_SPOT):
        return

    state = _state(SPOT_FORM_STATE)

    with st.container(border=True):
        st.subheader("➕ Add Parking Spot")
        _render_feedback(state)

        with st.form("parking_form"):
            number = st.text_input("Spot Number", placeholder="e.g., P-001", key="spot_number",
                                   disabled=state.busy)
            location = st.text_input("Location", placeholder="e.g., Level 1 - Row A", key="spot_location",
                                     disabled=state.busy)
            submitted = st.form_submit_button("Add Spot", type="primary", use_container_width=True,
                                              disabled=state.busy)

        if submitted:
            with st.spinner("Adding..."):
                added = run_sync(add_spot(shell, state, number, location))
            if added:
                for key in ("spot_number", "spot_location"):
                    st.session_state.pop(key, None)
            st.rerun()


def _render_booking_form(shell: RootShell, state: ActionState, spot_id: str):
    spot = next((s for s in shell.spots if s.spot_id == spot_id), None)
    label = spot.number if spot else spot_id

    with st.form("booking_form"):
        st.write(f"**Book spot {label}**")
        vehicle_number = st.text_input("Vehicle number", placeholder="e.g., ABC-1234")
        col1, col2 = st.columns(2)
        with col1:
            confirm_clicked = st.form_submit_button("Book", type="primary", use_container_width=True,
                                                    disabled=state.busy)
        with col2:
            cancel_clicked = st.form_submit_button("Cancel", use_container_width=True)

    if cancel_clicked:
        st.session_state[BOOKING_TARGET] = None
        st.rerun()

    if confirm_clicked:
        with st.spinner("Booking..."):
            booked = run_sync(book_spot(shell, state, spot_id, vehicle_number))
        if booked or not vehicle_number.strip():
            st.session_state[BOOKING_TARGET] = None
        st.rerun()


def render_parking_list(shell: RootShell):
    """Spot list with availability badges and a Book button per free spot"""
    if not shell.can(Feature.VIEW_SPOTS):
        return

    state = _state(BOOKING_STATE)
    booking_target: Optional[str] = st.session_state.get(BOOKING_TARGET)

    with st.container(border=True):
        st.subheader("🅿️ Parking Spots")

        col1, col2, col3 = st.columns(3)
        col1.metric("Total", len(shell.spots))
        col2.metric("Available", len(shell.available_spots))
        col3.metric("Occupied", len(shell.occupied_spots))

        _render_feedback(state)

        if not shell.spots:
            st.info("No parking spots yet.")
            return

        if booking_target:
            _render_booking_form(shell, state, booking_target)

        for spot in shell.spots:
            info_col, action_col = st.columns([4, 1])
            with info_col:
                badge = "🔴 Occupied" if spot.occupied else "🟢 Available"
                st.markdown(f"**{spot.number}** {badge}  \n<small>{spot.location}</small>",
                            unsafe_allow_html=True)
            with action_col:
                if shell.can(Feature.BOOK_SPOT):
                    if st.button("Book", key=f"book_{spot.spot_id}", use_container_width=True,
                                 disabled=spot.occupied or state.busy):
                        state.reset_feedback()
                        st.session_state[BOOKING_TARGET] = spot.spot_id
                        st.rerun()
