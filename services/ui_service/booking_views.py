"""
Booking list panel with per-row cancellation.
"""

import streamlit as st

from config.app_config import get_config
from services.auth_service.capabilities import Feature
from services.ui_service.actions import ActionState, ConfirmationGate, run_action, run_sync
from services.ui_service.root_shell import RootShell
from utils.logging_config import get_logger, log_user_interaction

logger = get_logger(__name__)

CANCEL_STATE = "cancel_booking_state"


async def cancel_booking(shell: RootShell, state: ActionState, gate: ConfirmationGate, booking_id: str) -> bool:
    """
    Cancel a booking that the user confirmed

    Nothing is sent unless `booking_id` is the gate's pending target. The
    local booking list is only replaced by the refresh that follows success.
    """
    if not gate.confirm(booking_id):
        logger.debug(f"Cancellation of {booking_id} not confirmed, skipping")
        return False

    async def request():
        return await shell.api_client.cancel_booking(shell.token, booking_id)

    async def on_success(_):
        log_user_interaction(logger, "booking_cancelled", booking_id=booking_id)
        await shell.refresh()

    return await run_action(state, request, success_message="Booking cancelled successfully!",
                            on_success=on_success, context="cancel_booking")


def render_booking_list(shell: RootShell):
    """Bookings table"""
    if not shell.can(Feature.VIEW_BOOKINGS):
        return

    if CANCEL_STATE not in st.session_state:
        st.session_state[CANCEL_STATE] = ActionState()
    state: ActionState = st.session_state[CANCEL_STATE]
    gate = ConfirmationGate(st.session_state, "cancel_booking")
    datetime_format = get_config().ui.datetime_format

    with st.container(border=True):
        st.subheader(f"📋 Bookings ({len(shell.bookings)})")

        if state.error:
            st.error(f"Error: {state.error}")
        if state.success:
            st.success(f"✅ {state.success}")

        if not shell.bookings:
            st.info("No bookings yet.")
            return

        header = st.columns([2, 2, 3, 3, 2])
        for col, title in zip(header, ["Vehicle", "Parking Spot", "Location", "Booked At", "Action"]):
            col.markdown(f"**{title}**")

        for booking in shell.bookings:
            cols = st.columns([2, 2, 3, 3, 2])
            cols[0].markdown(f"**{booking.vehicle_number}**")
            cols[1].write(booking.spot_number)
            cols[2].write(booking.spot_location)
            cols[3].write(booking.start_time.strftime(datetime_format) if booking.start_time else "—")

            with cols[4]:
                if not shell.can(Feature.CANCEL_BOOKING):
                    continue
                if gate.is_pending(booking.booking_id):
                    st.warning("Cancel this booking and free the spot?")
                    yes_col, no_col = st.columns(2)
                    if yes_col.button("Yes", key=f"confirm_cancel_{booking.booking_id}", type="primary",
                                      disabled=state.busy):
                        with st.spinner("Cancelling..."):
                            run_sync(cancel_booking(shell, state, gate, booking.booking_id))
                        st.rerun()
                    if no_col.button("No", key=f"keep_{booking.booking_id}"):
                        gate.cancel()
                        st.rerun()
                elif st.button("Cancel", key=f"cancel_{booking.booking_id}", disabled=state.busy):
                    state.reset_feedback()
                    gate.request(booking.booking_id)
                    st.rerun()
