"""Billing cycle regeneration - delete and rebuild a card's cycles as one unit of work"""

import time
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cardcycle.config import settings
from cardcycle.domain.cycles import build_billing_cycles
from cardcycle.domain.exceptions import (
    CardNotFoundError,
    CycleRegenerationInProgressError,
    DomainException,
    PersistenceError,
)
from cardcycle.domain.open_date import correct_open_date, earliest_transaction
from cardcycle.domain.rules import CycleRules
from cardcycle.infrastructure.database.models import BillingCycle
from cardcycle.infrastructure.database.repositories import (
    BillingCycleRepository,
    CardRepository,
    TransactionRepository,
    card_to_domain,
)
from cardcycle.infrastructure.locks import CardLockRegistry, acquire_advisory_lock, card_locks
from cardcycle.infrastructure.observability.logging import log_regeneration
from cardcycle.infrastructure.observability.metrics import (
    fallback_windows_counter,
    history_shortfall_counter,
    open_date_corrections_counter,
    record_regeneration,
)


@dataclass
class RegenerationOutcome:
    """Result for one card in a batch regeneration"""

    card_id: str
    cycles: List[BillingCycle] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BillingCycleService:
    """
    Coordinates open-date correction, cycle derivation and persistence.

    Each regeneration holds the card's lock and runs in a single database
    transaction: the old cycle set is deleted and the new one inserted, or
    nothing changes.
    """

    def __init__(
        self,
        db: Session,
        rules: CycleRules | None = None,
        locks: CardLockRegistry | None = None,
        lock_timeout_seconds: float | None = None,
    ):
        self.db = db
        self.rules = settings.cycle_rules() if rules is None else rules
        self.locks = card_locks if locks is None else locks
        # 0 means fail immediately when the card is busy
        self.lock_timeout_seconds = (
            settings.cycle_lock_timeout_seconds if lock_timeout_seconds is None else lock_timeout_seconds
        )
        self.cards = CardRepository(db)
        self.transactions = TransactionRepository(db)
        self.cycles = BillingCycleRepository(db)

    def regenerate(self, card_id: str, as_of: date, request_id: str = "unknown") -> List[BillingCycle]:
        """
        Replace all billing cycles for a card with freshly computed ones.

        Running it twice with unchanged card and transaction state yields the
        same rows.

        Raises:
            CardNotFoundError: Unknown card id
            CycleRegenerationInProgressError: Card lock not acquired within the timeout
            PersistenceError: Storage failed; the transaction was rolled back
        """
        start_time = time.time()
        try:
            with self.locks.hold(card_id, timeout=self.lock_timeout_seconds):
                rows, deleted = self._regenerate_locked(card_id, as_of)
        except CycleRegenerationInProgressError:
            record_regeneration("busy", time.time() - start_time)
            raise
        except DomainException:
            record_regeneration("failure", time.time() - start_time)
            raise

        duration = time.time() - start_time
        record_regeneration("success", duration, len(rows))
        log_regeneration(card_id, as_of.isoformat(), len(rows), deleted, duration * 1000, request_id)
        return rows

    def _regenerate_locked(self, card_id: str, as_of: date) -> tuple[List[BillingCycle], int]:
        try:
            acquire_advisory_lock(self.db, card_id, self.lock_timeout_seconds)

            card_row = self.cards.get(card_id)
            if card_row is None:
                raise CardNotFoundError(f"Card {card_id} not found")

            transactions = self.transactions.list_for_card(card_id)

            # 1. Correct an implausible open date before it trims history
            correction = correct_open_date(
                card_to_domain(card_row), earliest_transaction(transactions), as_of, self.rules
            )
            if correction is not None:
                logging.warning(
                    "Correcting card open date",
                    extra={
                        "card_id": card_id,
                        "reported_open_date": str(correction.reported_date),
                        "corrected_open_date": correction.corrected_date.isoformat(),
                        "method": correction.method,
                    },
                )
                self.cards.apply_open_date_correction(card_row, correction)
                open_date_corrections_counter.labels(method=correction.method).inc()

            # 2. Derive cycles from the corrected card
            result = build_billing_cycles(card_to_domain(card_row), transactions, as_of, self.rules)
            if result.fallback_reason is not None:
                fallback_windows_counter.labels(reason=result.fallback_reason).inc()
            if result.history_shortfall:
                history_shortfall_counter.inc()
                logging.warning(
                    "Fewer historical cycles than transaction history supports",
                    extra={
                        "card_id": card_id,
                        "cycles": len(result.cycles),
                        "open_date": str(card_row.open_date),
                        "last_statement_date": str(card_row.last_statement_date),
                    },
                )

            # 3. Swap the cycle set
            deleted = self.cycles.delete_for_card(card_id)
            rows = self.cycles.create_many(card_id, result.cycles)
            self.db.commit()
            return rows, deleted

        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to persist billing cycles for card {card_id}: {e}") from e
        except DomainException:
            self.db.rollback()
            raise

    def regenerate_many(self, card_ids: Iterable[str], as_of: date, request_id: str = "unknown") -> List[RegenerationOutcome]:
        """Regenerate several cards independently; one card's failure does not stop the rest"""
        outcomes = []
        for card_id in card_ids:
            try:
                rows = self.regenerate(card_id, as_of, request_id=request_id)
                outcomes.append(RegenerationOutcome(card_id=card_id, cycles=rows))
            except DomainException as e:
                logging.error(
                    f"Regeneration failed: {e}",
                    extra={"request_id": request_id, "card_id": card_id, "error_type": type(e).__name__},
                )
                outcomes.append(RegenerationOutcome(card_id=card_id, error=str(e)))
        return outcomes

    def list_cycles(self, card_id: str) -> List[BillingCycle]:
        """
        Raises:
            CardNotFoundError: Unknown card id
        """
        if self.cards.get(card_id) is None:
            raise CardNotFoundError(f"Card {card_id} not found")
        return self.cycles.list_for_card(card_id)
