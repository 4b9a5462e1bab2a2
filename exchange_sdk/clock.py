"""
Exchange SDK - Signing Clock.

============================================================
RESPONSIBILITY
============================================================
Testable source of signing timestamps and nonces.

- Signers sample time and nonce exactly once per call
- Enables deterministic signature tests
- Millisecond Unix time, UTC only

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Optional
import threading
import time
import uuid


NonceFactory = Callable[[], str]


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the signing clock."""

    @abstractmethod
    def now_ms(self) -> int:
        """Get current Unix time in milliseconds."""
        pass

    def iso_timestamp(self) -> str:
        """
        ISO-8601 UTC with millisecond precision and Z suffix.

        Example: 2020-12-08T09:08:57.715Z
        """
        seconds, millis = divmod(self.now_ms(), 1000)
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Allows time manipulation for deterministic tests.
    """

    def __init__(self, initial_ms: Optional[int] = None):
        """
        Initialize mock clock.

        Args:
            initial_ms: Starting Unix time in ms (defaults to current time)
        """
        self._ms = initial_ms if initial_ms is not None else time.time_ns() // 1_000_000
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            return self._ms

    def set_time(self, ms: int) -> None:
        """Set the current time."""
        with self._lock:
            self._ms = ms

    def advance(self, ms: int) -> None:
        """Advance time by the given number of milliseconds."""
        with self._lock:
            self._ms += ms


# ============================================================
# NONCES
# ============================================================

def uuid4_nonce() -> str:
    """Default nonce factory: random UUID4 text."""
    return str(uuid.uuid4())


def fixed_nonces(values: Iterable[str]) -> NonceFactory:
    """Nonce factory replaying a fixed sequence (tests)."""
    iterator: Iterator[str] = iter(values)
    return lambda: next(iterator)

