"""Log source protocol shared by the router session and the simulator."""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol, runtime_checkable


class InitResult(IntEnum):
    """Outcome of starting a watch session."""

    OK = 0
    HTTP_REQUEST_FAILED = 1
    NOT_SUPPORTED_DEVICE = 2
    WRONG_PASSWORD = 3


@runtime_checkable
class LogSource(Protocol):
    """Protocol for anything that can authenticate and hand out log batches."""

    async def login(self) -> None:
        """Authenticate. Raises a SessionError subclass on failure."""
        ...

    async def fetch_log(self) -> str:
        """Return the current raw log text.

        Raises SessionExpired when the session must be re-authenticated,
        TransportFailure on network errors.
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...
