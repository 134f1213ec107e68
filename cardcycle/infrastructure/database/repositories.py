"""Data access layer for cards, transactions and billing cycles"""

import uuid
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from cardcycle.infrastructure.database.models import CreditCard, CardTransaction, BillingCycle
from cardcycle.domain.models import AccountSnapshot, BillingCycleDraft, Card, OpenDateCorrection, Transaction

CYCLE_KEY_NAMESPACE = uuid.UUID("6f1c2a9e-3b57-4d0a-9a8e-2c1f4e7b5d31")

OPEN_DATE_REPORTED = "reported"


def cycle_key(card_id: str, start: date, end: date) -> str:
    """Stable identifier so regenerating unchanged inputs yields identical rows"""
    return str(uuid.uuid5(CYCLE_KEY_NAMESPACE, f"{card_id}:{start.isoformat()}:{end.isoformat()}"))


def card_to_domain(row: CreditCard) -> Card:
    return Card(
        card_id=row.id,
        name=row.name,
        balance_current_cents=row.balance_current_cents,
        available_credit_cents=row.available_credit_cents,
        reported_limit_cents=row.reported_limit_cents,
        manual_limit_cents=row.manual_limit_cents,
        last_statement_balance_cents=row.last_statement_balance_cents,
        last_statement_date=row.last_statement_date,
        next_payment_due_date=row.next_payment_due_date,
        open_date=row.open_date,
        open_date_source=row.open_date_source,
        minimum_payment_cents=row.minimum_payment_cents,
    )


class CardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, card_id: str) -> Optional[CreditCard]:
        return self.db.get(CreditCard, card_id)

    def list_ids(self) -> List[str]:
        return [row[0] for row in self.db.query(CreditCard.id).order_by(CreditCard.id).all()]

    def upsert_snapshot(self, snapshot: AccountSnapshot) -> CreditCard:
        """
        Create or overwrite a card from an aggregator snapshot.

        Balance and statement fields always take the snapshot's values. The
        open date is only replaced when the aggregator reports one, so earlier
        corrections survive syncs that carry no open date.
        """
        card = self.get(snapshot.card_id)
        if card is None:
            card = CreditCard(id=snapshot.card_id)
            self.db.add(card)

        card.name = snapshot.name
        card.balance_current_cents = snapshot.balance_current_cents
        card.available_credit_cents = snapshot.available_credit_cents
        card.reported_limit_cents = snapshot.reported_limit_cents
        card.last_statement_balance_cents = snapshot.last_statement_balance_cents
        card.last_statement_date = snapshot.last_statement_date
        card.next_payment_due_date = snapshot.next_payment_due_date
        card.minimum_payment_cents = snapshot.minimum_payment_cents
        if snapshot.open_date is not None:
            card.open_date = snapshot.open_date
            card.open_date_source = OPEN_DATE_REPORTED

        self.db.flush()
        return card

    def apply_open_date_correction(self, card: CreditCard, correction: OpenDateCorrection) -> None:
        card.open_date = correction.corrected_date
        card.open_date_source = correction.method
        self.db.flush()

    def set_manual_limit(self, card: CreditCard, limit_cents: Optional[int]) -> None:
        card.manual_limit_cents = limit_cents
        self.db.flush()


class TransactionRepository:
    """Repository for synced card transactions"""

    def __init__(self, db: Session):
        self.db = db

    def list_for_card(self, card_id: str) -> List[Transaction]:
        """Transactions for a card as domain objects, oldest first"""
        rows = (
            self.db.query(CardTransaction)
            .filter(CardTransaction.card_id == card_id)
            .order_by(CardTransaction.date.asc(), CardTransaction.transaction_id.asc())
            .all()
        )
        return [
            Transaction(
                transaction_id=row.transaction_id,
                date=row.date,
                amount_cents=row.amount_cents,
                description=row.description,
                authorized_date=row.authorized_date,
            )
            for row in rows
        ]

    def replace_for_card(
        self,
        card_id: str,
        transactions: Iterable[Transaction],
        since: Optional[date] = None,
    ) -> int:
        """
        Delete the card's transactions (all, or those dated on/after `since`)
        and insert the given ones in the same window.

        Returns:
            Number of inserted rows
        """
        query = self.db.query(CardTransaction).filter(CardTransaction.card_id == card_id)
        if since is not None:
            query = query.filter(CardTransaction.date >= since)
        query.delete(synchronize_session=False)
        self.db.flush()

        existing_ids = {
            row[0]
            for row in self.db.query(CardTransaction.transaction_id).filter(CardTransaction.card_id == card_id).all()
        }

        inserted = 0
        for txn in transactions:
            if since is not None and txn.date < since:
                continue
            if txn.transaction_id in existing_ids:
                continue
            existing_ids.add(txn.transaction_id)
            self.db.add(
                CardTransaction(
                    card_id=card_id,
                    transaction_id=txn.transaction_id,
                    description=txn.description,
                    amount_cents=txn.amount_cents,
                    date=txn.date,
                    authorized_date=txn.authorized_date,
                )
            )
            inserted += 1

        self.db.flush()
        return inserted


class BillingCycleRepository:
    """Repository for derived billing cycles"""

    def __init__(self, db: Session):
        self.db = db

    def delete_for_card(self, card_id: str) -> int:
        deleted = (
            self.db.query(BillingCycle)
            .filter(BillingCycle.card_id == card_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted

    def create_many(self, card_id: str, drafts: Iterable[BillingCycleDraft]) -> List[BillingCycle]:
        rows = []
        for draft in drafts:
            row = BillingCycle(
                cycle_key=cycle_key(card_id, draft.start_date, draft.end_date),
                card_id=card_id,
                kind=draft.kind,
                start_date=draft.start_date,
                end_date=draft.end_date,
                due_date=draft.due_date,
                statement_balance_cents=draft.statement_balance_cents,
                remaining_balance_cents=draft.remaining_balance_cents,
                minimum_payment_cents=draft.minimum_payment_cents,
                total_spend_cents=draft.total_spend_cents,
                transaction_count=draft.transaction_count,
                payment_status=draft.payment_status,
            )
            self.db.add(row)
            rows.append(row)

        self.db.flush()
        return rows

    def list_for_card(self, card_id: str) -> List[BillingCycle]:
        """Persisted cycles ordered by end date, newest first"""
        return (
            self.db.query(BillingCycle)
            .filter(BillingCycle.card_id == card_id)
            .order_by(BillingCycle.end_date.desc())
            .all()
        )
