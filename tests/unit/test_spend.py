"""Unit tests for spend aggregation"""

from datetime import date
from cardcycle.domain.models import CycleWindow, Transaction, CYCLE_CLOSED, CYCLE_OPEN
from cardcycle.domain.spend import aggregate_spend, transactions_in_window

JUNE = CycleWindow(kind=CYCLE_CLOSED, start=date(2024, 6, 1), end=date(2024, 6, 30))


def _txn(txn_id: str, day: date, amount_cents: int, description: str = "TRADER JOE'S") -> Transaction:
    return Transaction(transaction_id=txn_id, date=day, amount_cents=amount_cents, description=description)


def test_payments_excluded_from_spend():
    transactions = [
        _txn("1", date(2024, 6, 10), 5000),
        _txn("2", date(2024, 6, 20), -5000, "ONLINE PAYMENT THANK YOU"),
    ]
    summary = aggregate_spend(JUNE, transactions, as_of=date(2024, 7, 1))

    assert summary.total_spend_cents == 5000
    assert summary.transaction_count == 1


def test_refunds_counted_as_absolute_values():
    transactions = [
        _txn("1", date(2024, 6, 10), 5000),
        _txn("2", date(2024, 6, 12), -2210, "AMAZON MKTPLACE REFUND"),
    ]
    summary = aggregate_spend(JUNE, transactions, as_of=date(2024, 7, 1))

    assert summary.total_spend_cents == 7210
    assert summary.transaction_count == 2


def test_window_bounds_inclusive():
    transactions = [
        _txn("before", date(2024, 5, 31), 100),
        _txn("first", date(2024, 6, 1), 200),
        _txn("last", date(2024, 6, 30), 300),
        _txn("after", date(2024, 7, 1), 400),
    ]
    in_window = transactions_in_window(JUNE, transactions, as_of=date(2024, 7, 15))

    assert [t.transaction_id for t in in_window] == ["first", "last"]


def test_open_window_ignores_future_dated_transactions():
    window = CycleWindow(kind=CYCLE_OPEN, start=date(2024, 6, 16), end=date(2024, 7, 15))
    transactions = [
        _txn("1", date(2024, 6, 20), 1000),
        _txn("2", date(2024, 7, 5), 9999),
    ]
    summary = aggregate_spend(window, transactions, as_of=date(2024, 7, 1))

    assert summary.total_spend_cents == 1000
    assert summary.transaction_count == 1


def test_empty_window():
    summary = aggregate_spend(JUNE, [], as_of=date(2024, 7, 1))
    assert summary.total_spend_cents == 0
    assert summary.transaction_count == 0
