"""
User and session data models for the authentication service.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class Role(str, Enum):
    """Roles known to the parking service"""
    ADMIN = "admin"
    ATTENDANT = "attendant"
    USER = "user"

    @property
    def label(self) -> str:
        return self.value.title()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the API ('Z' suffix allowed)"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def record_id(data: Dict[str, Any]) -> str:
    """Identifier of an API record; the service sends `_id`, some payloads `id`"""
    value = data.get("_id", data.get("id"))
    if value is None or value == "":
        raise ValueError("record has no id")
    return str(value)


@dataclass(frozen=True)
class User:
    """User data model (a cached copy of the server's record)"""
    user_id: str
    name: str
    email: str
    role: Role = Role.USER
    is_active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """
        Build a user from its wire representation

        Raises:
            ValueError: missing id or unknown role
        """
        if not isinstance(data, dict):
            raise ValueError("user record must be an object")
        return cls(
            user_id=record_id(data),
            name=str(data.get("name", "")),
            email=str(data.get("email", "")),
            role=Role(data.get("role", Role.USER.value)),
            is_active=bool(data.get("isActive", True)),
            created_at=parse_timestamp(data.get("createdAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, as persisted in client storage"""
        return {
            "_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Authenticated:
    """A logged-in session: token and user always travel together"""
    token: str
    user: User

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def role(self) -> Role:
        return self.user.role


@dataclass(frozen=True)
class Unauthenticated:
    """No session"""

    @property
    def is_authenticated(self) -> bool:
        return False


Session = Union[Authenticated, Unauthenticated]


@dataclass(frozen=True)
class AuthResult:
    """Payload of the login and register endpoints"""
    token: str
    user: User
