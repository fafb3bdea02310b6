"""Forward cash-flow simulation with per-event risk classification"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pocket_ledger.domain.aggregates import available_cash
from pocket_ledger.domain.billing import due_date_for_charge, next_statement_due
from pocket_ledger.domain.models import (
    EntryState,
    HypotheticalEvent,
    Projection,
    ProjectionEvent,
    RecurrenceKind,
    RiskLevel,
    Snapshot,
)
from pocket_ledger.domain.recurrences import is_materialized
from pocket_ledger.utils.date_utils import add_months, clamp_day, shift_month
from pocket_ledger.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

CARD_DUE = "card_due"
INSTALLMENT = "installment"
RECURRING_INCOME = "recurring_income"
RECURRING_EXPENSE = "recurring_expense"
HYPOTHETICAL = "hypothetical"

DEFAULT_WARNING_BUFFER = Decimal("0.5")


def classify_risk(
    amount: Decimal,
    balance_after: Decimal,
    warning_buffer_ratio: Decimal = DEFAULT_WARNING_BUFFER,
) -> RiskLevel:
    """
    Risk of a single timeline event.

    danger: balance below zero after the event
    warning: an outflow that leaves less than ``ratio`` x its size in hand
    """
    if balance_after < 0:
        return RiskLevel.DANGER
    if amount < 0 and balance_after < abs(amount) * warning_buffer_ratio:
        return RiskLevel.WARNING
    return RiskLevel.SAFE


def _card_due_events(snapshot: Snapshot, months: int, today: date) -> List[ProjectionEvent]:
    events = []
    for card in snapshot.cards:
        if card.balance <= 0:
            continue
        first_due = next_statement_due(today, card.closing_day, card.payment_day)
        carried = False
        for offset in range(months):
            year, month = shift_month(first_due.year, first_due.month, offset)
            due = clamp_day(year, month, card.payment_day)
            if due < today:
                continue
            # Only the first due date carries the balance; later ones keep the series visible
            amount = ZERO if carried else -card.balance
            carried = True
            events.append(
                ProjectionEvent(
                    date=due,
                    event_type=CARD_DUE,
                    description=f"Card payment {card.name}",
                    amount=amount,
                    category="Card Payment",
                    card_id=card.id,
                )
            )
    return events


def _installment_events(snapshot: Snapshot, horizon: date, today: date) -> List[ProjectionEvent]:
    events = []
    for purchase in snapshot.installment_purchases():
        plan = purchase.installment_plan
        for entry in plan.schedule:
            if entry.state not in (EntryState.PENDING, EntryState.PARTIAL):
                continue
            if not today <= entry.due_date <= horizon:
                continue
            events.append(
                ProjectionEvent(
                    date=entry.due_date,
                    event_type=INSTALLMENT,
                    description=f"{purchase.description} {entry.number}/{plan.total_count}",
                    amount=-entry.amount_due,
                    category=purchase.category,
                    card_id=purchase.card_id,
                    transaction_id=purchase.id,
                )
            )
    return events


def _recurrence_events(snapshot: Snapshot, months: int, today: date) -> List[ProjectionEvent]:
    events = []
    for recurrence in snapshot.recurrences:
        if not recurrence.active:
            continue
        # Card-charged recurring expenses surface through the card's due date
        if recurrence.kind == RecurrenceKind.EXPENSE and recurrence.card_id is not None:
            continue
        for offset in range(months):
            year, month = shift_month(today.year, today.month, offset)
            on = clamp_day(year, month, recurrence.day)
            if on < today or is_materialized(snapshot, recurrence.id, on):
                continue
            if recurrence.kind == RecurrenceKind.INCOME:
                event_type, amount = RECURRING_INCOME, recurrence.amount
            else:
                event_type, amount = RECURRING_EXPENSE, -recurrence.amount
            events.append(
                ProjectionEvent(
                    date=on,
                    event_type=event_type,
                    description=recurrence.description,
                    amount=to_money(amount),
                    category=recurrence.category,
                )
            )
    return events


def _apply_hypothetical(
    events: List[ProjectionEvent],
    snapshot: Snapshot,
    hypothetical: HypotheticalEvent,
    today: date,
) -> None:
    amount = to_money(hypothetical.amount)
    if hypothetical.kind == RecurrenceKind.INCOME:
        events.append(
            ProjectionEvent(
                date=hypothetical.date,
                event_type=HYPOTHETICAL,
                description=hypothetical.description,
                amount=amount,
                category="What-if",
                is_hypothetical=True,
            )
        )
        return

    if hypothetical.card_id is None:
        events.append(
            ProjectionEvent(
                date=hypothetical.date,
                event_type=HYPOTHETICAL,
                description=hypothetical.description,
                amount=-amount,
                category="What-if",
                is_hypothetical=True,
            )
        )
        return

    card = snapshot.card(hypothetical.card_id)
    due = due_date_for_charge(hypothetical.date, card.closing_day, card.payment_day, today)
    for event in events:
        if event.event_type == CARD_DUE and event.card_id == card.id and event.date == due:
            event.amount -= amount
            event.description = f"{event.description} + {hypothetical.description}"
            event.is_hypothetical = True
            return

    events.append(
        ProjectionEvent(
            date=due,
            event_type=HYPOTHETICAL,
            description=f"{hypothetical.description} ({card.name})",
            amount=-amount,
            category="What-if",
            card_id=card.id,
            is_hypothetical=True,
        )
    )


def project(
    snapshot: Snapshot,
    months: int = 6,
    hypothetical: Optional[HypotheticalEvent] = None,
    warning_buffer_ratio: Decimal = DEFAULT_WARNING_BUFFER,
    today: date | None = None,
) -> Projection:
    """
    Simulate available cash over the next ``months`` months.

    Timeline sources:
    - one due-date series per card with a balance; the full balance lands
      on the first due date, later dates carry zero
    - pending and partial installment entries due inside the window
    - every active cash recurrence for each month not yet materialized
    - an optional what-if event; a card what-if is moved to the due date
      of its charge and merged into that card's event when one exists

    Events are ordered by date (ties keep insertion order) and folded over
    a running balance that starts at current available cash.

    Raises:
        InvalidReference: the what-if event charges an unknown card
    """
    if today is None:
        today = date.today()
    if months < 1:
        months = 1

    horizon = add_months(today, months)
    events = _card_due_events(snapshot, months, today)
    events.extend(_installment_events(snapshot, horizon, today))
    events.extend(_recurrence_events(snapshot, months, today))
    if hypothetical is not None:
        _apply_hypothetical(events, snapshot, hypothetical, today)

    events.sort(key=lambda e: e.date)

    starting = available_cash(snapshot.transactions)
    balance = starting
    lowest = starting
    first_danger: Optional[date] = None
    for event in events:
        balance += event.amount
        event.balance_after = balance
        event.risk = classify_risk(event.amount, balance, warning_buffer_ratio)
        lowest = min(lowest, balance)
        if event.risk == RiskLevel.DANGER and first_danger is None:
            first_danger = event.date

    logger.debug(
        "Projection computed",
        extra={"months": months, "events": len(events), "ending_balance": str(balance)},
    )
    return Projection(
        starting_balance=starting,
        events=events,
        ending_balance=balance,
        lowest_balance=lowest,
        first_danger_date=first_danger,
    )
