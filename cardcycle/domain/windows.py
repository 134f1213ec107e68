"""Billing cycle window generation - reconstructs cycle boundaries from sparse card data"""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional

from cardcycle.domain.cycle_length import estimate_cycle_length, grace_period_days
from cardcycle.domain.exceptions import InvalidCycleWindowError
from cardcycle.domain.models import (
    Card,
    CycleWindow,
    CYCLE_OPEN,
    CYCLE_CLOSED,
    CYCLE_HISTORICAL,
    CYCLE_ESTIMATED,
)
from cardcycle.domain.rules import (
    CycleRules,
    DEFAULT_RULES,
    FALLBACK_CALENDAR_MONTH,
    TRIM_CLAMP_TO_OPEN_DATE,
    TRIM_DROP_PARTIAL,
    TRIM_KEEP_PARTIAL,
)
from cardcycle.utils.date_utils import month_bounds, shift_days, subtract_months

ONE_DAY = timedelta(days=1)

# Reasons for taking the single-window fallback path
REASON_NO_STATEMENT_DATE = "no_statement_date"
REASON_FUTURE_STATEMENT_DATE = "future_statement_date"
REASON_DUE_BEFORE_STATEMENT = "due_before_statement"


def fallback_reason(card: Card, as_of: date) -> Optional[str]:
    """Return why the card cannot support statement-anchored windows, or None if it can"""
    if card.last_statement_date is None:
        return REASON_NO_STATEMENT_DATE
    if card.last_statement_date > as_of:
        return REASON_FUTURE_STATEMENT_DATE
    if card.next_payment_due_date is not None and card.next_payment_due_date <= card.last_statement_date:
        return REASON_DUE_BEFORE_STATEMENT
    return None


def generate_fallback_window(
    as_of: date,
    rules: CycleRules = DEFAULT_RULES,
    open_date: Optional[date] = None,
) -> CycleWindow:
    """
    Single estimated current-cycle window used when no statement anchor is usable.

    Policies:
    - calendar_month: the calendar month containing as_of
    - trailing_cycle: the default cycle length ending on as_of

    Unless the trim policy is keep_partial, a window the card was opened
    inside starts on the open date.
    """
    if rules.fallback_window == FALLBACK_CALENDAR_MONTH:
        start, end = month_bounds(as_of)
    else:
        start = shift_days(as_of, -(rules.default_cycle_length_days - 1))
        end = as_of
    window = CycleWindow(
        kind=CYCLE_ESTIMATED,
        start=start,
        end=end,
        due_date=shift_days(end, rules.fallback_due_offset_days),
    )
    if rules.open_date_trim != TRIM_KEEP_PARTIAL:
        window = clip_to_open_date(window, open_date)
    return window


def clip_to_open_date(window: CycleWindow, open_date: Optional[date]) -> CycleWindow:
    """Move the start of a window that straddles the open date onto the open date"""
    if open_date is not None and window.start < open_date <= window.end:
        return replace(window, start=open_date)
    return window


def generate_windows(card: Card, as_of: date, rules: CycleRules = DEFAULT_RULES) -> List[CycleWindow]:
    """
    Produce the card's cycle windows, newest first.

    Layout:
    1. Open cycle: day after the last statement through the nominal cycle end
       (extended to as_of when the statement is stale)
    2. Closed cycle: ends on the last statement date
    3. Historical cycles: stepping back one cycle length at a time until the
       window end falls before max(open date, as_of - history_months)

    Windows ending before the open date are never created. A window that
    straddles the open date depends on rules.open_date_trim:
    - clamp_to_open_date: it starts on the open date (nothing older follows)
    - drop_partial: it is dropped, except the open cycle, which is clamped
    - keep_partial: it is kept whole
    """
    reason = fallback_reason(card, as_of)
    if reason is not None:
        if reason != REASON_NO_STATEMENT_DATE:
            logging.warning(
                "Implausible statement data, using fallback window",
                extra={
                    "card_id": card.card_id,
                    "reason": reason,
                    "last_statement_date": str(card.last_statement_date),
                    "next_payment_due_date": str(card.next_payment_due_date),
                },
            )
        return [generate_fallback_window(as_of, rules, card.open_date)]

    cycle_length = estimate_cycle_length(card.last_statement_date, card.next_payment_due_date, rules)
    closed_end = card.last_statement_date
    closed_start = shift_days(closed_end, -(cycle_length - 1))

    trim = rules.open_date_trim
    open_window = _open_window(card, closed_end, cycle_length, as_of, rules)

    if card.open_date is not None and closed_end < card.open_date:
        logging.warning(
            "Closed cycle ends before card open date, keeping current cycle only",
            extra={
                "card_id": card.card_id,
                "closed_end": str(closed_end),
                "open_date": str(card.open_date),
            },
        )
        if trim != TRIM_KEEP_PARTIAL:
            open_window = clip_to_open_date(open_window, card.open_date)
        return [open_window]

    closed_window = CycleWindow(
        kind=CYCLE_CLOSED,
        start=closed_start,
        end=closed_end,
        due_date=card.next_payment_due_date,
    )

    if trim != TRIM_KEEP_PARTIAL and card.open_date is not None and closed_start < card.open_date:
        if trim == TRIM_DROP_PARTIAL:
            logging.info(
                "Dropping closed cycle that starts before card open date",
                extra={"card_id": card.card_id, "cycle_start": str(closed_start), "open_date": str(card.open_date)},
            )
            return [open_window]
        windows = [open_window, clip_to_open_date(closed_window, card.open_date)]
        validate_windows(windows)
        return windows

    windows = [open_window, closed_window]
    windows.extend(_historical_windows(card, closed_start, cycle_length, as_of, rules))

    validate_windows(windows)
    return windows


def _open_window(
    card: Card,
    closed_end: date,
    cycle_length: int,
    as_of: date,
    rules: CycleRules,
) -> CycleWindow:
    start = closed_end + ONE_DAY
    end = max(shift_days(closed_end, cycle_length), as_of)

    grace = grace_period_days(card.last_statement_date, card.next_payment_due_date)
    due_offset = grace if grace is not None and grace > 0 else rules.historical_due_offset_days

    return CycleWindow(kind=CYCLE_OPEN, start=start, end=end, due_date=shift_days(end, due_offset))


def _historical_windows(
    card: Card,
    closed_start: date,
    cycle_length: int,
    as_of: date,
    rules: CycleRules,
) -> List[CycleWindow]:
    horizon = subtract_months(as_of, rules.history_months)
    earliest_end = max(card.open_date, horizon) if card.open_date is not None else horizon

    windows: List[CycleWindow] = []
    end = closed_start - ONE_DAY
    while end >= earliest_end:
        start = shift_days(end, -(cycle_length - 1))

        reaches_past_open = card.open_date is not None and start < card.open_date
        if reaches_past_open and rules.open_date_trim == TRIM_DROP_PARTIAL:
            logging.info(
                "Dropping partial cycle that starts before card open date",
                extra={"card_id": card.card_id, "cycle_start": str(start), "open_date": str(card.open_date)},
            )
            break
        if reaches_past_open and rules.open_date_trim == TRIM_CLAMP_TO_OPEN_DATE:
            start = card.open_date

        windows.append(
            CycleWindow(
                kind=CYCLE_HISTORICAL,
                start=start,
                end=end,
                due_date=shift_days(end, rules.historical_due_offset_days),
            )
        )
        end = start - ONE_DAY

    return windows


def validate_windows(windows: List[CycleWindow]) -> None:
    """
    Check that windows (newest first) are well-formed and contiguous.

    Raises:
        InvalidCycleWindowError: On a reversed window, overlap, or gap
    """
    for window in windows:
        if window.end < window.start:
            raise InvalidCycleWindowError(f"Window ends before it starts: {window.start} > {window.end}")

    for newer, older in zip(windows, windows[1:]):
        if newer.start != older.end + ONE_DAY:
            raise InvalidCycleWindowError(
                f"Windows not contiguous: {older.start}..{older.end} then {newer.start}..{newer.end}"
            )
