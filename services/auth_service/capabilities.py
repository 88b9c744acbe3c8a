"""
Role capability table.

The client only uses it to decide what to render; the parking service
enforces the same rules on every request.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Union

from services.auth_service.models import Role


class Feature(str, Enum):
    """Things a role may see or do"""
    USER_MANAGEMENT = "user_management"
    ADD_SPOT = "add_spot"
    VIEW_SPOTS = "view_spots"
    BOOK_SPOT = "book_spot"
    VIEW_BOOKINGS = "view_bookings"
    CANCEL_BOOKING = "cancel_booking"


class Panel(str, Enum):
    """Panels of the main page, in render order"""
    USER_MANAGEMENT = "user_management"
    ADD_SPOT = "add_spot"
    SPOT_LIST = "spot_list"
    BOOKING_LIST = "booking_list"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Feature]] = {
    Role.ADMIN: frozenset(Feature),
    Role.ATTENDANT: frozenset({
        Feature.ADD_SPOT,
        Feature.VIEW_SPOTS,
        Feature.BOOK_SPOT,
        Feature.VIEW_BOOKINGS,
        Feature.CANCEL_BOOKING,
    }),
    # Users see every spot read-only and may cancel their own bookings
    Role.USER: frozenset({
        Feature.VIEW_SPOTS,
        Feature.BOOK_SPOT,
        Feature.VIEW_BOOKINGS,
        Feature.CANCEL_BOOKING,
    }),
}

# Panel -> feature that unlocks it
PANEL_FEATURES: Dict[Panel, Feature] = {
    Panel.USER_MANAGEMENT: Feature.USER_MANAGEMENT,
    Panel.ADD_SPOT: Feature.ADD_SPOT,
    Panel.SPOT_LIST: Feature.VIEW_SPOTS,
    Panel.BOOKING_LIST: Feature.VIEW_BOOKINGS,
}


def _as_role(role: Union[Role, str]) -> Role:
    return role if isinstance(role, Role) else Role(role)


def capabilities_for(role: Union[Role, str]) -> FrozenSet[Feature]:
    """Features enabled for a role"""
    return ROLE_CAPABILITIES.get(_as_role(role), frozenset())


def can(role: Union[Role, str], feature: Feature) -> bool:
    return feature in capabilities_for(role)


def visible_panels(role: Union[Role, str]) -> List[Panel]:
    """Panels a role gets on the main page, in render order"""
    enabled = capabilities_for(role)
    return [panel for panel in Panel if PANEL_FEATURES[panel] in enabled]
