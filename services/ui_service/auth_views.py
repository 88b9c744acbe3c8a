"""
Login and self-registration screens
"""

import time

import streamlit as st

from config.app_config import get_config
from core.errors import MalformedSessionError
from services.auth_service.auth_manager import AuthManager
from services.ui_service.actions import ActionState, run_action, run_sync
from services.ui_service.root_shell import RootShell
from utils.logging_config import get_logger

logger = get_logger(__name__)

LOGIN_STATE = "login_state"
REGISTER_STATE = "register_state"

SESSION_NOT_PERSISTED = "Signed in, but the session could not be stored. Please try again."


async def _enter_shell(shell: RootShell):
    if not await shell.handle_login_success():
        raise MalformedSessionError(SESSION_NOT_PERSISTED)


async def submit_login(shell: RootShell, auth_manager: AuthManager, state: ActionState,
                       email: str, password: str) -> bool:
    """Log in, persist the session, then hand over to the shell"""

    async def request():
        return await auth_manager.login(email, password)

    async def on_success(_):
        await _enter_shell(shell)

    return await run_action(state, request, success_message="Login successful!",
                            on_success=on_success, context="login")


async def submit_registration(shell: RootShell, auth_manager: AuthManager, state: ActionState,
                              name: str, email: str, password: str, confirm_password: str) -> bool:
    """Self-register as a plain user; the new account is logged in straight away"""

    async def request():
        return await auth_manager.register(name, email, password, confirm_password)

    async def on_success(_):
        await _enter_shell(shell)

    registered = await run_action(state, request, on_success=on_success, context="register")
    if registered:
        state.success = f"User registered successfully as {shell.user.role.value}!"
    return registered


def _state(key: str) -> ActionState:
    if key not in st.session_state:
        st.session_state[key] = ActionState()
    return st.session_state[key]


def render_login(shell: RootShell, auth_manager: AuthManager):
    """Login form"""
    config = get_config()
    state = _state(LOGIN_STATE)

    st.title(config.ui.app_title)

    with st.form("login_form"):
        st.subheader("Login")

        if state.error:
            st.error(f"❌ {state.error}")

        email = st.text_input("📧 Email", placeholder="Enter your email", disabled=state.busy)
        password = st.text_input("🔒 Password", type="password", placeholder="Enter your password",
                                 disabled=state.busy)
        login_clicked = st.form_submit_button("Logging in..." if state.busy else "🔑 Login",
                                              type="primary", use_container_width=True,
                                              disabled=state.busy)

    if login_clicked:
        with st.spinner("Authenticating..."):
            logged_in = run_sync(submit_login(shell, auth_manager, state, email, password))
        if logged_in:
            st.success(f"✅ {state.success}")
            state.reset_feedback()
            time.sleep(0.5)
        st.rerun()

    if config.auth.allow_self_registration:
        st.divider()
        if st.button("📝 Create New Account", type="secondary"):
            state.reset_feedback()
            shell.show_register()
            st.rerun()

    if config.auth.show_demo_credentials and config.auth.demo_credentials:
        with st.expander("Demo Credentials"):
            for credential in config.auth.demo_credentials:
                st.write(f"**{credential['label']}:** {credential['email']} / {credential['password']}")


def render_register(shell: RootShell, auth_manager: AuthManager):
    """Public sign-up form (always creates a plain user)"""
    state = _state(REGISTER_STATE)

    st.title("🅿️ Create Account")

    with st.form("register_form"):
        st.subheader("Sign Up")

        if state.error:
            st.error(f"❌ {state.error}")

        name = st.text_input("👤 Full Name", placeholder="Enter your full name", disabled=state.busy)
        email = st.text_input("📧 Email Address", placeholder="Enter your email", disabled=state.busy)
        col1, col2 = st.columns(2)
        with col1:
            password = st.text_input("🔒 Password", type="password", placeholder="Enter password (min 6 chars)",
                                     disabled=state.busy)
        with col2:
            confirm_password = st.text_input("🔒 Confirm Password", type="password",
                                             placeholder="Confirm password", disabled=state.busy)

        register_clicked = st.form_submit_button("Creating Account..." if state.busy else "📝 Sign Up",
                                                 type="primary", use_container_width=True,
                                                 disabled=state.busy)

    if register_clicked:
        with st.spinner("Creating account..."):
            registered = run_sync(submit_registration(shell, auth_manager, state, name, email,
                                                      password, confirm_password))
        if registered:
            st.success(f"✅ {state.success}")
            state.reset_feedback()
            time.sleep(1)
        st.rerun()

    if st.button("⬅️ Back to login"):
        state.reset_feedback()
        shell.show_login()
        st.rerun()
