"""
Session persistence for the parking client.

The bearer token and the cached user profile are stored as two entries,
`token` and `user`, in the LocalStorage of one browser.
"""

import json
from typing import Optional

from config.app_config import get_config
from core.errors import MalformedSessionError
from infrastructure.storage.browser_identity import is_valid_browser_id
from infrastructure.storage.local_storage import LocalStorage
from services.auth_service.models import Authenticated, Session, Unauthenticated, User
from utils.logging_config import get_logger

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStore:
    """
    Persists the authentication token and user profile across restarts
    """

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self.logger = get_logger(__name__)

    def _decode(self, token: Optional[str], raw_user: Optional[str]) -> Session:
        if not token or not raw_user:
            return Unauthenticated()

        try:
            user = User.from_dict(json.loads(raw_user))
        except (ValueError, TypeError) as e:
            raise MalformedSessionError(f"Stored user record is invalid: {e}") from e

        return Authenticated(token=token, user=user)

    def load(self) -> Session:
        """
        Read the persisted session

        Returns:
            Authenticated when both entries exist and decode, Unauthenticated otherwise.
            A corrupt entry is logged and reads as Unauthenticated.
        """
        token = self.storage.get_item(TOKEN_KEY)
        raw_user = self.storage.get_item(USER_KEY)

        try:
            session = self._decode(token, raw_user)
        except MalformedSessionError as e:
            self.logger.warning(f"Ignoring malformed stored session: {e}")
            return Unauthenticated()

        if isinstance(session, Authenticated):
            self.logger.info(f"Session restored for {session.user.email} ({session.role.value})")
        return session

    def save(self, token: str, user: User):
        """Persist token and user together in one write"""
        if not token:
            raise ValueError("Cannot save a session without a token")

        self.storage.update({
            TOKEN_KEY: token,
            USER_KEY: json.dumps(user.to_dict()),
        })
        self.logger.info(f"Session saved for {user.email} ({user.role.value})")

    def clear(self):
        """Remove token and user"""
        self.storage.update(remove=[TOKEN_KEY, USER_KEY])
        self.logger.info("Session cleared")


def get_session_store(browser_id: str) -> SessionStore:
    """
    Session store of one browser

    Raises:
        ValueError: browser_id is not a well-formed browser id
    """
    if not is_valid_browser_id(browser_id):
        raise ValueError("Invalid browser id")
    return SessionStore(LocalStorage(get_config().storage.storage_path(browser_id)))
