"""
Authentication service - login, self-registration and admin registration
against the parking API, plus the client-side form checks that run first.
"""

import re
from typing import Optional, Union

from config.app_config import AuthConfig, get_config
from core.errors import ValidationError
from infrastructure.external.parking_api_client import ParkingAPIClient, get_api_client
from services.auth_service.models import AuthResult, Role, User
from services.auth_service.session_store import SessionStore
from utils.logging_config import get_logger, log_user_interaction

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_login(email: str, password: str):
    """Reject an incomplete login form before any request"""
    if not email or not email.strip() or not password:
        raise ValidationError("Please enter both email and password")


def validate_registration(name: str, email: str, password: str, confirm_password: str,
                          role: Union[Role, str] = Role.USER, is_admin: bool = False,
                          auth_config: Optional[AuthConfig] = None):
    """
    Check a registration form, first failing rule wins

    Raises:
        ValidationError: with the message to show next to the form
    """
    auth_config = auth_config or get_config().auth

    if not name or not name.strip():
        raise ValidationError("Name is required")
    if len(name) < auth_config.name_min_length:
        raise ValidationError(f"Name must be at least {auth_config.name_min_length} characters")
    if not EMAIL_PATTERN.match(email or ""):
        raise ValidationError("Invalid email format")
    if len(password or "") < auth_config.password_min_length:
        raise ValidationError(f"Password must be at least {auth_config.password_min_length} characters")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    try:
        requested_role = Role(role)
    except ValueError:
        raise ValidationError(f"Unknown role '{role}'")
    if not is_admin and requested_role != Role.USER:
        raise ValidationError("Non-admin users can only register as user")


class AuthManager:
    """
    Main authentication manager service.

    Successful login and self-registration persist the session before
    returning; the root shell re-reads it from the store.
    """

    def __init__(self, session_store: SessionStore,
                 api_client: Optional[ParkingAPIClient] = None,
                 auth_config: Optional[AuthConfig] = None):
        self.session_store = session_store
        self.api_client = api_client or get_api_client()
        self.auth_config = auth_config or get_config().auth
        self.logger = get_logger(__name__)

    async def login(self, email: str, password: str) -> User:
        """
        Authenticate and persist the session

        Raises:
            ValidationError, RequestError, TransportError
        """
        validate_login(email, password)
        result = await self.api_client.login(email.strip(), password)
        self.session_store.save(result.token, result.user)
        log_user_interaction(self.logger, "login", email=result.user.email, role=result.user.role.value)
        return result.user

    async def register(self, name: str, email: str, password: str, confirm_password: str) -> User:
        """Self-registration as a plain user; logs the new user in"""
        if not self.auth_config.allow_self_registration:
            raise ValidationError("Self-registration is disabled")

        validate_registration(name, email, password, confirm_password,
                              role=Role.USER, is_admin=False, auth_config=self.auth_config)
        result = await self.api_client.register(name, email, password)
        self.session_store.save(result.token, result.user)
        log_user_interaction(self.logger, "self_registration", email=result.user.email)
        return result.user

    async def admin_register(self, admin_token: str, name: str, email: str, password: str,
                             confirm_password: str, role: Union[Role, str]) -> User:
        """
        Create a user on behalf of an admin

        The endpoint answers with the new user's token; it is dropped so the
        admin's own session stays in place.
        """
        validate_registration(name, email, password, confirm_password,
                              role=role, is_admin=True, auth_config=self.auth_config)
        result: AuthResult = await self.api_client.admin_register(admin_token, name, email, password, Role(role))
        log_user_interaction(self.logger, "admin_registration", email=result.user.email,
                             role=result.user.role.value)
        return result.user

