"""Card sync - store a fresh aggregator snapshot and transaction feed, then regenerate cycles"""

import logging
from datetime import date
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cardcycle.domain.exceptions import PersistenceError
from cardcycle.domain.models import AccountSnapshot, Transaction
from cardcycle.infrastructure.database.models import BillingCycle
from cardcycle.infrastructure.database.repositories import CardRepository, TransactionRepository
from cardcycle.services.regeneration import BillingCycleService


class CardSyncService:
    """Applies aggregator data to storage; the feed's date range is replaced wholesale"""

    def __init__(self, db: Session, cycle_service: BillingCycleService | None = None):
        self.db = db
        self.cards = CardRepository(db)
        self.transactions = TransactionRepository(db)
        self.cycle_service = cycle_service or BillingCycleService(db)

    def store(self, snapshot: AccountSnapshot, transactions: List[Transaction]) -> int:
        """
        Upsert the card and replace its transactions from the feed's earliest date onward.

        Returns:
            Number of transactions inserted
        """
        resync_since = min((t.date for t in transactions), default=None)
        try:
            self.cards.upsert_snapshot(snapshot)
            if resync_since is None:
                inserted = 0
            else:
                inserted = self.transactions.replace_for_card(snapshot.card_id, transactions, since=resync_since)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to store sync data for card {snapshot.card_id}: {e}") from e

        logging.info(
            "Card synced",
            extra={
                "card_id": snapshot.card_id,
                "transactions_inserted": inserted,
                "resync_since": str(resync_since),
            },
        )
        return inserted

    def sync(
        self,
        snapshot: AccountSnapshot,
        transactions: List[Transaction],
        as_of: date,
        request_id: str = "unknown",
    ) -> List[BillingCycle]:
        """Store the sync data, then regenerate the card's billing cycles"""
        self.store(snapshot, transactions)
        return self.cycle_service.regenerate(snapshot.card_id, as_of, request_id=request_id)
