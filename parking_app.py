import streamlit as st

from config.app_config import get_config
from services.auth_service.auth_manager import AuthManager
from services.auth_service.capabilities import Panel
from services.auth_service.session_store import get_session_store
from infrastructure.external.parking_api_client import get_api_client
from infrastructure.storage.browser_identity import resolve_browser_id
from services.ui_service.actions import run_sync
from services.ui_service.auth_views import LOGIN_STATE, REGISTER_STATE, render_login, render_register
from services.ui_service.booking_views import CANCEL_STATE, render_booking_list
from services.ui_service.parking_views import (
    BOOKING_STATE,
    BOOKING_TARGET,
    SPOT_FORM_STATE,
    render_parking_form,
    render_parking_list,
)
from services.ui_service.root_shell import RootShell, ShellPhase
from services.ui_service.user_management import DIRECTORY_KEY, render_user_management
from utils.logging_config import initialize_logging, get_logger

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

SHELL_KEY = "root_shell"
AUTH_MANAGER_KEY = "auth_manager"

# Per-session view state dropped on logout
VIEW_STATE_KEYS = [
    LOGIN_STATE, REGISTER_STATE, SPOT_FORM_STATE, BOOKING_STATE, BOOKING_TARGET,
    CANCEL_STATE, DIRECTORY_KEY, "confirm_cancel_booking", "confirm_delete_user",
    "spot_number", "spot_location",
]


def get_shell(browser_id: str) -> RootShell:
    """Root shell of this browser, mounted on first use"""
    if SHELL_KEY not in st.session_state:
        session_store = get_session_store(browser_id)
        shell = RootShell(session_store, get_api_client())
        st.session_state[AUTH_MANAGER_KEY] = AuthManager(session_store, api_client=shell.api_client)
        with st.spinner("Loading..."):
            run_sync(shell.start())
        st.session_state[SHELL_KEY] = shell
    return st.session_state[SHELL_KEY]


def get_browser_auth_manager() -> AuthManager:
    """Auth manager bound to the same browser session store as the shell"""
    return st.session_state[AUTH_MANAGER_KEY]


def clear_view_state():
    for key in VIEW_STATE_KEYS:
        if key in st.session_state:
            del st.session_state[key]


def render_header(shell: RootShell):
    user = shell.user
    title_col, user_col, action_col = st.columns([6, 3, 1])
    title_col.markdown(f"### {config.ui.app_title}")
    user_col.markdown(f"**{user.name}**  \n`{user.role.value}`")
    with action_col:
        if st.button("Logout", use_container_width=True):
            shell.logout()
            clear_view_state()
            st.rerun()
        if st.button("🔄", help="Refresh spots and bookings", use_container_width=True):
            run_sync(shell.refresh())
            st.rerun()
    st.divider()


def render_footer(shell: RootShell):
    st.divider()
    st.caption(f"{config.ui.footer_text} | Logged in as {shell.role.value}")


def main_app(shell: RootShell):
    """Main page for an authenticated user"""
    auth_manager = get_browser_auth_manager()
    panel_renderers = {
        Panel.USER_MANAGEMENT: lambda: render_user_management(shell, auth_manager),
        Panel.ADD_SPOT: lambda: render_parking_form(shell),
        Panel.SPOT_LIST: lambda: render_parking_list(shell),
        Panel.BOOKING_LIST: lambda: render_booking_list(shell),
    }

    render_header(shell)

    panels = shell.visible_panels()
    for panel in panels:
        try:
            panel_renderers[panel]()
        except Exception as e:
            error_tracker.track_error(e, f"render_{panel.value}")
            st.error("🔧 Something went wrong while rendering this panel. Please refresh the page.")

    render_footer(shell)


st.set_page_config(page_title="Car Parking Management", page_icon=config.ui.page_icon, layout="wide")

browser_id = resolve_browser_id()
if browser_id is None:
    st.write("Loading...")
    st.stop()

shell = get_shell(browser_id)

if shell.phase == ShellPhase.LOADING:
    st.write("Loading...")
elif shell.phase == ShellPhase.UNAUTHENTICATED:
    if shell.showing_register:
        render_register(shell, get_browser_auth_manager())
    else:
        render_login(shell, get_browser_auth_manager())
else:
    main_app(shell)
