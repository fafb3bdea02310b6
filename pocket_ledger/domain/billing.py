"""Billing cycle arithmetic: when does a card charge get collected"""

from datetime import date
from typing import List

from pocket_ledger.utils.date_utils import clamp_day, shift_month


def cycle_close_date(charge_date: date, closing_day: int) -> date:
    """
    Close date of the billing cycle a charge falls into.

    A charge on or before the closing day belongs to this month's cycle,
    otherwise to next month's. Closing days past the end of a short month
    are pulled back to its last day.
    """
    close_this_month = clamp_day(charge_date.year, charge_date.month, closing_day)
    if charge_date <= close_this_month:
        return close_this_month
    year, month = shift_month(charge_date.year, charge_date.month, 1)
    return clamp_day(year, month, closing_day)


def _due_after_close(close: date, payment_day: int, months_after: int = 1) -> date:
    year, month = shift_month(close.year, close.month, months_after)
    return clamp_day(year, month, payment_day)


def due_date_for_charge(
    charge_date: date,
    closing_day: int,
    payment_day: int,
    today: date | None = None,
) -> date:
    """
    Date on which a card charge will be collected.

    The due date is the payment day in the month after the cycle close.
    A due date on or before ``today`` has already lapsed, so it rolls to
    the following month.
    """
    if today is None:
        today = date.today()

    close = cycle_close_date(charge_date, closing_day)
    due = _due_after_close(close, payment_day)
    if due <= today:
        due = _due_after_close(close, payment_day, months_after=2)
    return due


def installment_due_dates(
    purchase_date: date,
    count: int,
    closing_day: int,
    payment_day: int,
    today: date | None = None,
) -> List[date]:
    """
    Due dates for installments 1..count of a purchase.

    Installment k is billed in the cycle k months after the purchase's own
    cycle, so there is exactly one due date per calendar month. If the
    first due date has already lapsed the whole series moves one month.
    """
    if today is None:
        today = date.today()

    purchase_close = cycle_close_date(purchase_date, closing_day)
    dues = [
        _due_after_close(purchase_close, payment_day, months_after=k + 1)
        for k in range(1, count + 1)
    ]
    if dues and dues[0] <= today:
        dues = [
            _due_after_close(purchase_close, payment_day, months_after=k + 2)
            for k in range(1, count + 1)
        ]
    return dues


def next_statement_due(today: date, closing_day: int, payment_day: int) -> date:
    """Due date of the statement closing this calendar month"""
    close = clamp_day(today.year, today.month, closing_day)
    return _due_after_close(close, payment_day)


def current_cycle(today: date, closing_day: int, payment_day: int) -> tuple[date, date]:
    """(close, due) of the cycle that is open on ``today``; no lapse guard"""
    close = cycle_close_date(today, closing_day)
    return close, _due_after_close(close, payment_day)
