"""Materialization of due recurring transactions"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List

from pocket_ledger.domain.models import (
    Expense,
    Income,
    Recurrence,
    RecurrenceKind,
    Snapshot,
    Transaction,
)
from pocket_ledger.utils.date_utils import clamp_day, same_month
from pocket_ledger.utils.money import to_money

logger = logging.getLogger(__name__)

DEFAULT_INCOME_CATEGORY = "Salary"
DEFAULT_EXPENSE_CATEGORY = "Other"


@dataclass
class RecurrenceRun:
    snapshot: Snapshot
    created: List[Transaction] = field(default_factory=list)


def is_materialized(snapshot: Snapshot, recurrence_id: str, month: date) -> bool:
    """Whether a transaction for this recurrence already exists in ``month``'s calendar month"""
    return any(
        t.recurrence_id == recurrence_id and same_month(t.date, month)
        for t in snapshot.transactions
    )


def _materialize(recurrence: Recurrence, on: date, transaction_id: str) -> Transaction:
    if recurrence.kind == RecurrenceKind.INCOME:
        return Income(
            id=transaction_id,
            amount=to_money(recurrence.amount),
            description=f"{recurrence.description} (Auto)",
            category=recurrence.category or DEFAULT_INCOME_CATEGORY,
            date=on,
            recurrence_id=recurrence.id,
        )
    return Expense(
        id=transaction_id,
        amount=to_money(recurrence.amount),
        description=f"{recurrence.description} (Auto)",
        category=recurrence.category or DEFAULT_EXPENSE_CATEGORY,
        date=on,
        recurrence_id=recurrence.id,
        card_id=recurrence.card_id,
    )


def materialize_recurrences(
    snapshot: Snapshot,
    today: date | None = None,
    id_factory: Callable[[], str] | None = None,
) -> RecurrenceRun:
    """
    Create this month's transaction for every active recurrence that is due.

    A recurrence is due once today's day of month reaches its configured
    day (clamped to the month length). Safe to call on every load: a
    recurrence that already has a transaction this month is skipped, so a
    second call in the same month creates nothing.

    Card-charged expenses add to the card balance.

    Raises:
        InvalidReference: an active recurrence charges a card that does not exist
    """
    if today is None:
        today = date.today()
    if id_factory is None:
        id_factory = lambda: str(uuid.uuid4())  # noqa: E731

    due: List[Recurrence] = []
    for recurrence in snapshot.recurrences:
        if not recurrence.active:
            continue
        scheduled = clamp_day(today.year, today.month, recurrence.day)
        if today < scheduled or is_materialized(snapshot, recurrence.id, today):
            continue
        if recurrence.kind == RecurrenceKind.EXPENSE and recurrence.card_id is not None:
            snapshot.card(recurrence.card_id)
        due.append(recurrence)

    new_snapshot = copy.deepcopy(snapshot)
    created: List[Transaction] = []
    for recurrence in due:
        on = clamp_day(today.year, today.month, recurrence.day)
        transaction = _materialize(recurrence, on, id_factory())
        new_snapshot.transactions.append(transaction)
        if isinstance(transaction, Expense) and transaction.card_id is not None:
            new_snapshot.card(transaction.card_id).balance += transaction.amount
        created.append(transaction)

    if created:
        logger.info(
            "Recurrences materialized",
            extra={"count": len(created), "month": today.strftime("%Y-%m")},
        )
    return RecurrenceRun(snapshot=new_snapshot, created=created)
