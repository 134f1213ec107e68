"""Unit tests for per-card regeneration locks"""

import threading
import pytest
from unittest.mock import MagicMock
from cardcycle.domain.exceptions import CycleRegenerationInProgressError
from cardcycle.infrastructure.locks import CardLockRegistry, acquire_advisory_lock, advisory_key


def test_second_holder_times_out():
    registry = CardLockRegistry(timeout_seconds=0.05)

    with registry.hold("card_1"):
        assert registry.is_locked("card_1")
        with pytest.raises(CycleRegenerationInProgressError):
            with registry.hold("card_1", timeout=0.01):
                pass

    assert not registry.is_locked("card_1")


def test_different_cards_do_not_contend():
    registry = CardLockRegistry(timeout_seconds=0.05)

    with registry.hold("card_1"):
        with registry.hold("card_2"):
            assert registry.is_locked("card_2")


def test_lock_released_after_error():
    registry = CardLockRegistry(timeout_seconds=0.05)

    with pytest.raises(RuntimeError):
        with registry.hold("card_1"):
            raise RuntimeError("boom")

    assert not registry.is_locked("card_1")


def test_concurrent_threads_serialize():
    registry = CardLockRegistry(timeout_seconds=0.05)
    holding = threading.Event()
    release = threading.Event()
    errors = []

    def first():
        with registry.hold("card_1"):
            holding.set()
            release.wait(timeout=2)

    def second():
        try:
            with registry.hold("card_1"):
                pass
        except CycleRegenerationInProgressError as e:
            errors.append(e)

    t1 = threading.Thread(target=first)
    t1.start()
    holding.wait(timeout=2)

    t2 = threading.Thread(target=second)
    t2.start()
    t2.join()

    release.set()
    t1.join()

    assert len(errors) == 1


def test_advisory_key_is_stable():
    assert advisory_key("card_1") == advisory_key("card_1")
    assert advisory_key("card_1") != advisory_key("card_2")
    assert 0 <= advisory_key("card_1") < 2**32


def test_entries_removed_after_release():
    registry = CardLockRegistry(timeout_seconds=0.05)

    for card_id in ("card_1", "card_2", "card_3"):
        with registry.hold(card_id):
            assert registry.tracked_cards() == 1

    assert registry.tracked_cards() == 0


def test_entry_removed_after_timeout():
    registry = CardLockRegistry(timeout_seconds=0.05)

    with registry.hold("card_1"):
        with pytest.raises(CycleRegenerationInProgressError):
            with registry.hold("card_1", timeout=0):
                pass
        assert registry.tracked_cards() == 1

    assert registry.tracked_cards() == 0


def test_is_locked_does_not_track_unknown_cards():
    registry = CardLockRegistry(timeout_seconds=0.05)

    assert registry.is_locked("never_seen") is False
    assert registry.tracked_cards() == 0


def test_waiter_keeps_entry_until_done():
    registry = CardLockRegistry(timeout_seconds=2)
    holding = threading.Event()
    release = threading.Event()
    acquired = []

    def first():
        with registry.hold("card_1"):
            holding.set()
            release.wait(timeout=2)

    def second():
        with registry.hold("card_1"):
            acquired.append(True)

    t1 = threading.Thread(target=first)
    t1.start()
    holding.wait(timeout=2)
    t2 = threading.Thread(target=second)
    t2.start()

    release.set()
    t1.join()
    t2.join()

    assert acquired == [True]
    assert registry.tracked_cards() == 0


def _postgres_session(try_lock_result: bool) -> MagicMock:
    db = MagicMock()
    db.get_bind.return_value.dialect.name = "postgresql"
    db.execute.return_value.scalar.return_value = try_lock_result
    return db


def test_zero_timeout_uses_try_lock_on_postgres():
    db = _postgres_session(try_lock_result=False)

    with pytest.raises(CycleRegenerationInProgressError):
        acquire_advisory_lock(db, "card_1", timeout_seconds=0)

    statement = str(db.execute.call_args.args[0])
    assert "pg_try_advisory_xact_lock" in statement


def test_zero_timeout_try_lock_acquired():
    db = _postgres_session(try_lock_result=True)
    acquire_advisory_lock(db, "card_1", timeout_seconds=0)
    assert db.execute.call_count == 1


def test_advisory_lock_skipped_on_sqlite():
    db = MagicMock()
    db.get_bind.return_value.dialect.name = "sqlite"
    acquire_advisory_lock(db, "card_1", timeout_seconds=0)
    db.execute.assert_not_called()
