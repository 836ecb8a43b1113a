"""
Reentrancy guard.

Bids and settlements call out to the token ledger. A token that calls back
into the auction house mid-transfer would observe a record whose funds have
moved but whose fields have not. The guard is an explicit in-progress flag
held across every external call of a bid or settlement.

A nested entry from the thread that holds the guard is a reentrant call and
is rejected. Entries from other threads wait for the holder to finish, so
guarded operations on one house run one at a time.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from lossless.core.errors import ReentrantCall
from lossless.utils.logger import get_logger

logger = get_logger("guard")


class ReentrancyGuard:
    """Mutual exclusion across an external-call boundary, per house."""

    def __init__(self):
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._active: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def active_operation(self) -> Optional[str]:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        """
        Hold the guard for the duration of operation.

        Raises:
            ReentrantCall: if this thread is already inside a guarded operation
        """
        # Only the holding thread can observe its own id here
        if self._owner == threading.get_ident():
            logger.warning(f"Rejected reentrant {operation} during {self._active}")
            raise ReentrantCall(f"Reentrant call to {operation} while {self._active} is executing")

        with self._lock:
            self._owner = threading.get_ident()
            self._active = operation
            try:
                yield
            finally:
                self._active = None
                self._owner = None
