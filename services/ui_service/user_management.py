"""
User management panel (admins only): user table, admin registration form
and user deletion.
"""

from typing import Callable, List, Optional, Union

import streamlit as st

from config.app_config import get_config
from core.errors import ParkingClientError
from services.auth_service.auth_manager import AuthManager
from services.auth_service.capabilities import Feature
from services.auth_service.models import Role, User
from services.ui_service.actions import ActionState, ConfirmationGate, run_action, run_sync, user_message
from services.ui_service.root_shell import RootShell
from utils.logging_config import get_logger, log_user_interaction

DIRECTORY_KEY = "user_directory"


class UserDirectory:
    """
    The admin's view of the user collection.

    Unlike spots and bookings this list is owned by the panel: it is fetched
    when the panel first renders and after each change made through it.
    """

    def __init__(self):
        self.users: List[User] = []
        self.loaded = False
        self.loading = False
        self.load_error: Optional[str] = None
        self.show_form = False
        self.form_state = ActionState()
        self.delete_state = ActionState()
        self.logger = get_logger(__name__)

    async def load(self, shell: RootShell):
        """Fetch the user list; a failure keeps the previous list and records the message"""
        self.loading = True
        try:
            self.users = await shell.api_client.list_users(shell.token)
            self.load_error = None
        except ParkingClientError as e:
            self.logger.warning(f"Error fetching users: {e}")
            self.load_error = user_message(e)
        finally:
            self.loading = False
            self.loaded = True

    async def add_user(self, shell: RootShell, auth_manager: AuthManager, name: str, email: str,
                       password: str, confirm_password: str, role: Union[Role, str]) -> bool:
        """Register a user as admin; the admin's own session is left untouched"""

        created: List[User] = []

        async def request():
            return await auth_manager.admin_register(shell.token, name, email, password,
                                                     confirm_password, role)

        async def on_success(user: User):
            created.append(user)
            self.show_form = False
            await self.load(shell)
            await shell.refresh()

        if not await run_action(self.form_state, request, on_success=on_success, context="add_user"):
            return False
        self.form_state.success = f"User registered successfully as {created[0].role.value}!"
        return True

    async def delete_user(self, shell: RootShell, gate: ConfirmationGate, user_id: str) -> bool:
        """Delete a confirmed user, then reload users and fire the shared refresh"""
        if not gate.confirm(user_id):
            return False

        async def request():
            return await shell.api_client.delete_user(shell.token, user_id)

        async def on_success(_):
            log_user_interaction(self.logger, "user_deleted", user_id=user_id)
            await self.load(shell)
            await shell.refresh()

        return await run_action(self.delete_state, request, success_message="User deleted",
                                on_success=on_success, context="delete_user")


def get_user_directory() -> UserDirectory:
    if DIRECTORY_KEY not in st.session_state:
        st.session_state[DIRECTORY_KEY] = UserDirectory()
    return st.session_state[DIRECTORY_KEY]


def _render_add_user_form(shell: RootShell, directory: UserDirectory, auth_manager: AuthManager):
    state = directory.form_state

    with st.form("admin_register_form"):
        st.write("**Register New User**")
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Full Name", placeholder="Name")
            password = st.text_input("Password", type="password", placeholder="Password (min 6 chars)")
        with col2:
            email = st.text_input("Email", placeholder="Email")
            confirm_password = st.text_input("Confirm Password", type="password", placeholder="Confirm")

        role = st.selectbox("Role", [r.value for r in Role], format_func=lambda value: Role(value).label)
        submitted = st.form_submit_button("Registering..." if state.busy else "Register User",
                                          type="primary", use_container_width=True, disabled=state.busy)

    if submitted:
        with st.spinner("Registering..."):
            run_sync(directory.add_user(shell, auth_manager, name, email, password, confirm_password, role))
        st.rerun()


def _render_user_row(shell: RootShell, directory: UserDirectory, gate: ConfirmationGate, user: User):
    date_format = get_config().ui.date_format
    cols = st.columns([3, 4, 2, 2, 2, 2])
    cols[0].markdown(f"**{user.name}**")
    cols[1].write(user.email)
    cols[2].write(user.role.label)
    cols[3].write("🟢 Active" if user.is_active else "⚪ Inactive")
    cols[4].write(user.created_at.strftime(date_format) if user.created_at else "—")

    with cols[5]:
        if gate.is_pending(user.user_id):
            st.warning("Delete this user?")
            yes_col, no_col = st.columns(2)
            if yes_col.button("Yes", key=f"confirm_delete_{user.user_id}", type="primary",
                              disabled=directory.delete_state.busy):
                with st.spinner("Deleting..."):
                    run_sync(directory.delete_user(shell, gate, user.user_id))
                st.rerun()
            if no_col.button("No", key=f"keep_user_{user.user_id}"):
                gate.cancel()
                st.rerun()
        elif st.button("🗑️", key=f"delete_{user.user_id}", help="Delete user",
                       disabled=directory.delete_state.busy):
            directory.delete_state.reset_feedback()
            gate.request(user.user_id)
            st.rerun()


def render_user_management(shell: RootShell, auth_manager: AuthManager,
                           directory_factory: Callable[[], UserDirectory] = get_user_directory):
    """User management panel"""
    if not shell.can(Feature.USER_MANAGEMENT):
        return

    directory = directory_factory()
    gate = ConfirmationGate(st.session_state, "delete_user")

    if not directory.loaded:
        with st.spinner("Loading users..."):
            run_sync(directory.load(shell))

    with st.container(border=True):
        title_col, toggle_col = st.columns([4, 1])
        title_col.subheader("👥 User Management")
        if toggle_col.button("✕ Close" if directory.show_form else "+ Add User", use_container_width=True):
            directory.show_form = not directory.show_form
            directory.form_state.reset_feedback()
            st.rerun()

        for state in (directory.form_state, directory.delete_state):
            if state.error:
                st.error(state.error)
            if state.success:
                st.success(f"✅ {state.success}")
        if directory.load_error:
            st.error(directory.load_error)

        if directory.show_form:
            _render_add_user_form(shell, directory, auth_manager)

        if not directory.users:
            st.info("No users to show.")
            return

        header = st.columns([3, 4, 2, 2, 2, 2])
        for col, title in zip(header, ["Name", "Email", "Role", "Status", "Joined", "Actions"]):
            col.markdown(f"**{title}**")
        for user in directory.users:
            _render_user_row(shell, directory, gate, user)
