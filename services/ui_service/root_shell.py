"""
Root shell - decides which screen the user gets and keeps the spot and
booking collections of the logged-in session.
"""

import asyncio
from enum import Enum
from typing import List, Optional

from core.errors import ParkingClientError
from infrastructure.external.parking_api_client import ParkingAPIClient
from services.auth_service.capabilities import Feature, Panel, can, visible_panels
from services.auth_service.models import Authenticated, Role, Session, Unauthenticated, User
from services.auth_service.session_store import SessionStore
from services.parking_service.models import Booking, ParkingSpot
from utils.logging_config import get_logger, log_execution_time, log_user_interaction


class ShellPhase(Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class RootShell:
    """
    Authorization gate of the app.

    Phases go LOADING -> UNAUTHENTICATED <-> AUTHENTICATED. Every entry into
    or exit from AUTHENTICATED bumps `generation`; collection fetches carry
    the generation they started under and their results are dropped if it
    has moved on, so a response landing after logout never repopulates the
    page.
    """

    def __init__(self, session_store: SessionStore, api_client: ParkingAPIClient):
        self.session_store = session_store
        self.api_client = api_client
        self.logger = get_logger(__name__)

        self.phase = ShellPhase.LOADING
        self.showing_register = False
        self.session: Session = Unauthenticated()
        self.spots: List[ParkingSpot] = []
        self.bookings: List[Booking] = []
        self.generation = 0

    # Session state

    @property
    def is_authenticated(self) -> bool:
        return self.phase == ShellPhase.AUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        return self.session.token if isinstance(self.session, Authenticated) else None

    @property
    def user(self) -> Optional[User]:
        return self.session.user if isinstance(self.session, Authenticated) else None

    @property
    def role(self) -> Optional[Role]:
        return self.session.role if isinstance(self.session, Authenticated) else None

    def _enter(self, session: Session):
        self.generation += 1
        self.session = session
        if isinstance(session, Authenticated):
            self.phase = ShellPhase.AUTHENTICATED
        else:
            self.phase = ShellPhase.UNAUTHENTICATED
        self.showing_register = False

    def mount(self) -> ShellPhase:
        """Restore the persisted session, if any"""
        session = self.session_store.load()
        self._enter(session)
        self.logger.debug(f"Shell mounted in phase {self.phase.value}")
        return self.phase

    async def start(self) -> ShellPhase:
        """Mount, then load the collections if a session was restored"""
        phase = self.mount()
        if phase == ShellPhase.AUTHENTICATED:
            await self.refresh()
        return phase

    def show_register(self):
        if self.phase == ShellPhase.UNAUTHENTICATED:
            self.showing_register = True

    def show_login(self):
        if self.phase == ShellPhase.UNAUTHENTICATED:
            self.showing_register = False

    async def handle_login_success(self) -> bool:
        """
        Enter AUTHENTICATED after a login or self-registration saved a session

        Returns:
            True if a session was found in the store
        """
        session = self.session_store.load()
        if not isinstance(session, Authenticated):
            self.logger.warning("Login reported success but no session was persisted")
            return False

        self._enter(session)
        await self.refresh()
        return True

    def logout(self):
        """Drop the session and everything fetched under it"""
        user = self.user
        self.session_store.clear()
        self._enter(Unauthenticated())
        self.spots = []
        self.bookings = []
        if user is not None:
            log_user_interaction(self.logger, "logout", email=user.email)

    # Collections

    async def _fetch_spots(self, generation: int, token: str):
        try:
            spots = await self.api_client.list_spots(token)
        except ParkingClientError as e:
            self.logger.warning(f"Error fetching spots: {e}")
            return
        if generation != self.generation:
            self.logger.debug("Discarding spot list from a previous session")
            return
        self.spots = spots

    async def _fetch_bookings(self, generation: int, token: str):
        try:
            bookings = await self.api_client.list_bookings(token)
        except ParkingClientError as e:
            self.logger.warning(f"Error fetching bookings: {e}")
            return
        if generation != self.generation:
            self.logger.debug("Discarding booking list from a previous session")
            return
        self.bookings = bookings

    async def refresh(self):
        """
        Re-fetch spots and bookings concurrently

        A failed fetch keeps the collection it would have replaced.
        """
        if not isinstance(self.session, Authenticated):
            return
        generation = self.generation
        token = self.session.token
        with log_execution_time(self.logger, "refresh", generation=generation):
            await asyncio.gather(
                self._fetch_spots(generation, token),
                self._fetch_bookings(generation, token),
            )

    # Authorization

    def visible_panels(self) -> List[Panel]:
        if self.role is None:
            return []
        return visible_panels(self.role)

    def can(self, feature: Feature) -> bool:
        return self.role is not None and can(self.role, feature)

    @property
    def available_spots(self) -> List[ParkingSpot]:
        return [spot for spot in self.spots if not spot.occupied]

    @property
    def occupied_spots(self) -> List[ParkingSpot]:
        return [spot for spot in self.spots if spot.occupied]
