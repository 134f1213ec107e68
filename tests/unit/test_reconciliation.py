"""Unit tests for statement balance reconciliation"""

from dataclasses import replace
from datetime import date
from cardcycle.domain.models import Card, Transaction
from cardcycle.domain.reconciliation import payments_after_statement, reconcile_statement_balance


def _payment(txn_id: str, day: date, amount_cents: int) -> Transaction:
    return Transaction(transaction_id=txn_id, date=day, amount_cents=amount_cents, description="AUTOPAY PAYMENT")


def _card(**overrides) -> Card:
    card = Card(
        card_id="card_1",
        balance_current_cents=40000,
        last_statement_balance_cents=100000,
        last_statement_date=date(2024, 6, 15),
        next_payment_due_date=date(2024, 7, 10),
    )
    return replace(card, **overrides)


def test_partial_payment_reduces_remaining():
    result = reconcile_statement_balance(_card(), [_payment("p1", date(2024, 6, 20), -40000)])

    assert result.original_balance_cents == 100000
    assert result.total_payments_cents == 40000
    assert result.remaining_balance_cents == 60000
    assert result.fully_paid is False


def test_current_balance_at_or_above_statement_means_unpaid():
    card = _card(balance_current_cents=100000)
    result = reconcile_statement_balance(card, [_payment("p1", date(2024, 6, 20), -40000)])

    assert result.remaining_balance_cents == 100000
    assert result.total_payments_cents == 0


def test_overpayment_floors_at_zero():
    card = _card(balance_current_cents=0)
    result = reconcile_statement_balance(card, [_payment("p1", date(2024, 6, 20), -120000)])

    assert result.remaining_balance_cents == 0
    assert result.fully_paid is True


def test_payments_on_statement_date_not_counted():
    card = _card()
    transactions = [
        _payment("on_close", date(2024, 6, 15), -30000),
        _payment("after", date(2024, 6, 16), -10000),
    ]
    assert payments_after_statement(card, transactions) == 10000


def test_positive_payment_descriptions_ignored():
    card = _card()
    transactions = [Transaction("fee", date(2024, 6, 20), 3900, "LATE PAYMENT FEE")]
    assert payments_after_statement(card, transactions) == 0


def test_unknown_current_balance_scans_payments():
    card = _card(balance_current_cents=None)
    result = reconcile_statement_balance(card, [_payment("p1", date(2024, 6, 20), -25000)])

    assert result.remaining_balance_cents == 75000


def test_missing_statement_data_returns_none():
    assert reconcile_statement_balance(_card(last_statement_balance_cents=None), []) is None
    assert reconcile_statement_balance(_card(last_statement_date=None), []) is None


def test_statement_partially_paid_down():
    """$1,000 statement, $400 paid after close, $600 still on the card"""
    card = _card(balance_current_cents=60000)
    result = reconcile_statement_balance(card, [_payment("p1", date(2024, 6, 20), -40000)])

    assert result.remaining_balance_cents == 60000
