"""Per-card mutual exclusion for billing cycle regeneration"""

import threading
import zlib
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cardcycle.config import settings
from cardcycle.domain.exceptions import CycleRegenerationInProgressError


def advisory_key(card_id: str) -> int:
    """Stable 32-bit key for pg_advisory_xact_lock"""
    return zlib.crc32(card_id.encode("utf-8"))


class _CardLock:
    """Mutex plus the number of threads holding or waiting on it"""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class CardLockRegistry:
    """
    In-process mutex map keyed by card id.

    Regenerations of the same card are serialized; different cards never
    contend. Callers that cannot get the lock within the timeout receive
    CycleRegenerationInProgressError and should retry. An entry lives only
    while some thread holds or waits on it.
    """

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        self._locks: Dict[str, _CardLock] = {}

    def _checkout(self, card_id: str) -> _CardLock:
        with self._guard:
            entry = self._locks.get(card_id)
            if entry is None:
                entry = _CardLock()
                self._locks[card_id] = entry
            entry.users += 1
            return entry

    def _checkin(self, card_id: str, entry: _CardLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[card_id]

    def is_locked(self, card_id: str) -> bool:
        with self._guard:
            entry = self._locks.get(card_id)
            return entry is not None and entry.lock.locked()

    def tracked_cards(self) -> int:
        """Number of cards currently held or waited on"""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, card_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        entry = self._checkout(card_id)
        wait = self.timeout_seconds if timeout is None else timeout
        try:
            if not entry.lock.acquire(timeout=wait):
                raise CycleRegenerationInProgressError(f"Regeneration already running for card {card_id}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(card_id, entry)


def acquire_advisory_lock(db: Session, card_id: str, timeout_seconds: float) -> None:
    """
    Take a transaction-scoped PostgreSQL advisory lock so that regenerations
    running in other processes are serialized too. No-op on other databases.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    if timeout_seconds <= 0:
        # lock_timeout = 0 would wait forever
        acquired = db.execute(text("SELECT pg_try_advisory_xact_lock(:key)"), {"key": advisory_key(card_id)}).scalar()
        if not acquired:
            raise CycleRegenerationInProgressError(f"Regeneration already running for card {card_id}")
        return
    try:
        db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_seconds * 1000)}ms'"))
        db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": advisory_key(card_id)})
    except OperationalError as e:
        db.rollback()
        raise CycleRegenerationInProgressError(f"Regeneration already running for card {card_id}") from e


card_locks = CardLockRegistry(settings.cycle_lock_timeout_seconds)
