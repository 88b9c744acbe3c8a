"""
Shared plumbing for the mutating actions of the resource views:
busy/feedback state, the request-then-refresh cycle, and the two-step
confirmation used by destructive actions.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, MutableMapping, Optional, TypeVar

from core.errors import (
    MalformedSessionError, ParkingClientError, RequestError, TransportError, ValidationError
)
from utils.logging_config import get_error_tracker, get_logger

T = TypeVar("T")

GENERIC_TRANSPORT_MESSAGE = "Unable to reach the parking service. Check your connection and try again."
GENERIC_UNEXPECTED_MESSAGE = "An unexpected error occurred. Please try again."

logger = get_logger(__name__)


def run_sync(coro: Awaitable[T]) -> T:
    """Run a coroutine to completion from Streamlit's synchronous script thread"""
    return asyncio.run(coro)


def user_message(error: Exception) -> str:
    """Text shown to the user for a failed write"""
    if isinstance(error, TransportError):
        return GENERIC_TRANSPORT_MESSAGE
    if isinstance(error, (RequestError, ValidationError, MalformedSessionError)):
        return error.message
    return GENERIC_UNEXPECTED_MESSAGE


@dataclass
class ActionState:
    """Transient state of one control: busy flag plus last outcome"""
    busy: bool = False
    error: Optional[str] = None
    success: Optional[str] = None

    def reset_feedback(self):
        self.error = None
        self.success = None


async def run_action(state: ActionState, request: Callable[[], Awaitable[Any]],
                     success_message: Optional[str] = None,
                     on_success: Optional[Callable[[Any], Awaitable[None]]] = None,
                     context: str = "action") -> bool:
    """
    One request-then-refresh cycle

    Marks the control busy, issues the request, on success runs `on_success`
    (usually the shared refresh) and records the confirmation, on failure
    records the extracted message. The busy flag is always cleared.

    Returns:
        True if the request succeeded
    """
    state.reset_feedback()
    state.busy = True
    try:
        result = await request()
        if on_success is not None:
            await on_success(result)
        state.success = success_message
        return True
    except ValidationError as e:
        state.error = e.message
    except ParkingClientError as e:
        logger.warning(f"{context} failed: {e}")
        state.error = user_message(e)
    except Exception as e:
        get_error_tracker().track_error(e, context)
        state.error = GENERIC_UNEXPECTED_MESSAGE
    finally:
        state.busy = False
    return False


class ConfirmationGate:
    """
    Two-step confirmation for destructive actions

    The first `request()` arms the target, `confirm()` consumes it. State
    lives in the given mapping (Streamlit's session state in the app).
    """

    def __init__(self, store: MutableMapping[str, Any], name: str):
        self.store = store
        self.key = f"confirm_{name}"

    @property
    def pending(self) -> Optional[str]:
        return self.store.get(self.key)

    def is_pending(self, target_id: str) -> bool:
        return self.pending == target_id

    def request(self, target_id: str):
        self.store[self.key] = target_id

    def confirm(self, target_id: str) -> bool:
        """Consume the pending confirmation; False if target_id was not armed"""
        if self.pending != target_id:
            return False
        self.store[self.key] = None
        return True

    def cancel(self):
        self.store[self.key] = None
