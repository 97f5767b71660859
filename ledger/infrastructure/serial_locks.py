"""
Process-local locks keyed by serial (and order) identifiers.

The tabular store has no conditional writes, so a read-modify-write on
one record must not interleave with another on the same record. Views
run each request on its own event loop through ``async_to_sync``, which
rules out ``asyncio.Lock``; plain thread locks are acquired off the loop
instead. This only protects a single process.
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Tuple

from asgiref.sync import sync_to_async

from core.domain.exceptions import StoreUnavailableError
from ledger.domain.record import normalize_order_id

logger = logging.getLogger(__name__)

# Guards the next free row; one registry serves one sheet.
APPEND_LOCK_KEY = "append"


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class SerialLockRegistry:
    """
    Registry of one lock per key.

    Entries are reference counted: a key's lock lives only while some
    caller holds or waits on it, so arbitrary client identifiers do not
    accumulate.
    """

    def __init__(self, timeout: float = 30.0):
        """
        Initialize registry.

        Args:
            timeout: Seconds to wait for a lock before giving up
        """
        self.timeout = timeout
        self._locks: Dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _Entry()
                self._locks[key] = entry
            entry.users += 1
            return entry.lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        """
        Hold the locks for every key for the duration of the block.

        Keys are deduplicated and taken in sorted order so that two
        callers locking overlapping sets cannot deadlock.

        Raises:
            StoreUnavailableError: If a lock is not acquired within the timeout
        """
        acquired: List[Tuple[str, threading.Lock]] = []
        try:
            for key in sorted({key for key in keys if key}):
                lock = self._checkout(key)
                try:
                    got = await sync_to_async(lock.acquire, thread_sensitive=False)(
                        timeout=self.timeout
                    )
                except BaseException:
                    self._checkin(key)
                    raise
                if not got:
                    self._checkin(key)
                    logger.warning("Timed out waiting for ledger lock %s", key)
                    raise StoreUnavailableError(
                        f"Timed out waiting for concurrent update of {key}",
                        operation="lock",
                    )
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)


def serial_lock_key(serial_id: str) -> str:
    """Lock key guarding every row write for a serial."""
    return f"serial:{serial_id}" if serial_id else ""


def order_lock_key(order_id: str) -> str:
    """Lock key guarding the activation of an order."""
    normalized = normalize_order_id(order_id)
    return f"order:{normalized}" if normalized else ""
