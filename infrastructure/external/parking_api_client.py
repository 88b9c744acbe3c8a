"""
Parking API client adapter.
Handles every HTTP interaction with the remote parking service.
"""

import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from config.app_config import get_config
from core.errors import RequestError, TransportError
from services.auth_service.models import AuthResult, Role, User
from services.parking_service.models import Booking, ParkingSpot
from utils.logging_config import get_logger, log_api_request

T = TypeVar("T")

UNEXPECTED_RESPONSE = "Unexpected response from server"


def extract_error_message(response: httpx.Response, fallback_message: str) -> str:
    """
    Read the `error` field of a failed response

    Falls back to the caller's generic message when the body is not JSON or
    carries no usable error.
    """
    try:
        payload = response.json()
    except ValueError:
        return fallback_message

    if isinstance(payload, dict):
        message = payload.get("error")
        if isinstance(message, str) and message.strip():
            return message
    return fallback_message


class ParkingAPIClient:
    """
    Adapter for the parking REST API.

    Each request opens its own AsyncClient, so calls can run from any event
    loop (Streamlit runs every action in a fresh one).
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger(__name__)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )

    async def request(self, method: str, path: str, token: Optional[str] = None,
                      body: Optional[Dict[str, Any]] = None,
                      fallback_message: str = "Request failed") -> Any:
        """
        Issue one request against the parking API

        Args:
            method: HTTP method
            path: Path below the base URL, e.g. "/api/parking"
            token: Bearer token, attached when present
            body: JSON body
            fallback_message: Error shown when the server gives no `error` field

        Returns:
            Parsed JSON body, or None for an empty success body

        Raises:
            RequestError: non-2xx response
            TransportError: no response at all
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=headers, json=body)
        except httpx.TransportError as e:
            log_api_request(self.logger, method, path, None, time.perf_counter() - start,
                            error_type=type(e).__name__)
            raise TransportError(cause=e) from e

        log_api_request(self.logger, method, path, response.status_code, time.perf_counter() - start)

        if not response.is_success:
            raise RequestError(extract_error_message(response, fallback_message), response.status_code)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise RequestError(UNEXPECTED_RESPONSE, response.status_code) from e

    def _parse(self, payload: Any, parser: Callable[[Any], T]) -> T:
        try:
            return parser(payload)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            self.logger.warning(f"Could not parse API payload: {e}")
            raise RequestError(UNEXPECTED_RESPONSE) from e

    def _parse_list(self, payload: Any, parser: Callable[[Any], T]) -> List[T]:
        if not isinstance(payload, list):
            self.logger.warning(f"Expected a list from the API, got {type(payload).__name__}")
            raise RequestError(UNEXPECTED_RESPONSE)
        return [self._parse(item, parser) for item in payload]

    @staticmethod
    def _auth_result(payload: Any) -> AuthResult:
        token = payload["token"]
        if not isinstance(token, str) or not token:
            raise ValueError("missing token")
        return AuthResult(token=token, user=User.from_dict(payload["user"]))

    # Authentication

    async def login(self, email: str, password: str) -> AuthResult:
        payload = await self.request(
            "POST", "/api/auth/login",
            body={"email": email, "password": password},
            fallback_message="Login failed",
        )
        return self._parse(payload, self._auth_result)

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Self-registration; the public endpoint only ever creates plain users"""
        payload = await self.request(
            "POST", "/api/auth/register",
            body={"name": name, "email": email, "password": password, "role": Role.USER.value},
            fallback_message="Registration failed",
        )
        return self._parse(payload, self._auth_result)

    async def admin_register(self, token: str, name: str, email: str, password: str,
                             role: Role) -> AuthResult:
        """Create a user of any role; the returned token belongs to the new user"""
        payload = await self.request(
            "POST", "/api/auth/admin/register", token=token,
            body={"name": name, "email": email, "password": password, "role": Role(role).value},
            fallback_message="Registration failed",
        )
        return self._parse(payload, self._auth_result)

    # Parking spots

    async def list_spots(self, token: str) -> List[ParkingSpot]:
        payload = await self.request("GET", "/api/parking", token=token,
                                     fallback_message="Failed to fetch parking spots")
        return self._parse_list(payload, ParkingSpot.from_dict)

    async def create_spot(self, token: str, number: str, location: str) -> Optional[ParkingSpot]:
        payload = await self.request(
            "POST", "/api/parking", token=token,
            body={"number": number, "location": location},
            fallback_message="Failed to add spot",
        )
        return self._parse(payload, ParkingSpot.from_dict) if payload else None

    # Bookings

    async def list_bookings(self, token: str) -> List[Booking]:
        payload = await self.request("GET", "/api/bookings", token=token,
                                     fallback_message="Failed to fetch bookings")
        return self._parse_list(payload, Booking.from_dict)

    async def create_booking(self, token: str, spot_id: str, vehicle_number: str) -> Optional[Booking]:
        payload = await self.request(
            "POST", "/api/bookings", token=token,
            body={"spotId": spot_id, "vehicleNumber": vehicle_number},
            fallback_message="Failed to book spot",
        )
        return self._parse(payload, Booking.from_dict) if payload else None

    async def cancel_booking(self, token: str, booking_id: str):
        await self.request("DELETE", f"/api/bookings/{booking_id}", token=token,
                           fallback_message="Failed to cancel booking")

    # Users (admin only)

    async def list_users(self, token: str) -> List[User]:
        payload = await self.request("GET", "/api/users", token=token,
                                     fallback_message="Failed to fetch users")
        return self._parse_list(payload, User.from_dict)

    async def delete_user(self, token: str, user_id: str):
        await self.request("DELETE", f"/api/users/{user_id}", token=token,
                           fallback_message="Failed to delete user")


# Global client instance
_api_client: Optional[ParkingAPIClient] = None


def get_api_client() -> ParkingAPIClient:
    """Get the global parking API client"""
    global _api_client
    if _api_client is None:
        api_config = get_config().api
        _api_client = ParkingAPIClient(api_config.base_url, timeout=api_config.timeout_seconds)
    return _api_client
