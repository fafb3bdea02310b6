"""Card statement for the open billing cycle"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List

from pocket_ledger.domain.billing import current_cycle
from pocket_ledger.domain.models import EntryState, Snapshot
from pocket_ledger.utils.date_utils import same_month
from pocket_ledger.utils.money import ZERO, to_money

MINIMUM_PAYMENT_FLOOR = Decimal("25.00")
REVOLVING_MINIMUM_DIVISOR = 36


@dataclass
class StatementLine:
    transaction_id: str
    description: str
    number: int
    total_count: int
    due_date: date
    amount_due: Decimal
    state: EntryState


@dataclass
class CardStatement:
    card_id: str
    cycle_close: date
    due_date: date
    balance: Decimal
    credit_limit: Decimal
    available_credit: Decimal
    utilization: Decimal  # percent, one decimal place
    locked_credit: Decimal
    revolving_balance: Decimal
    installments_due: Decimal
    minimum_payment: Decimal
    total_due: Decimal
    overdue: List[StatementLine] = field(default_factory=list)
    due_this_cycle: List[StatementLine] = field(default_factory=list)


def minimum_payment(installments_due: Decimal, revolving_balance: Decimal) -> Decimal:
    """
    Installments due plus a slice of revolving debt.

    The revolving slice is 1/36 of the balance with a 25.00 floor, the
    result is never below 25.00 and never above what is actually owed.
    """
    total_due = installments_due + revolving_balance
    if total_due <= 0:
        return ZERO
    revolving_part = max(to_money(revolving_balance / REVOLVING_MINIMUM_DIVISOR), MINIMUM_PAYMENT_FLOOR)
    minimum = max(installments_due + revolving_part, MINIMUM_PAYMENT_FLOOR)
    return min(minimum, total_due)


def card_statement(snapshot: Snapshot, card_id: str, today: date | None = None) -> CardStatement:
    """
    Statement of ``card_id`` for the cycle open on ``today``.

    Locked credit is what unpaid installment plans still hold on the card;
    the rest of the balance is revolving debt.

    Raises:
        InvalidReference: unknown card
    """
    if today is None:
        today = date.today()

    card = snapshot.card(card_id)
    close, due = current_cycle(today, card.closing_day, card.payment_day)

    overdue: List[StatementLine] = []
    due_this_cycle: List[StatementLine] = []
    locked = ZERO
    for purchase in snapshot.installment_purchases(card.id):
        plan = purchase.installment_plan
        locked += plan.outstanding_balance
        for entry in plan.unpaid_entries():
            line = StatementLine(
                transaction_id=purchase.id,
                description=purchase.description,
                number=entry.number,
                total_count=plan.total_count,
                due_date=entry.due_date,
                amount_due=entry.amount_due,
                state=entry.state,
            )
            if entry.state == EntryState.OVERDUE:
                overdue.append(line)
            elif same_month(entry.due_date, due):
                due_this_cycle.append(line)

    overdue.sort(key=lambda line: (line.due_date, line.transaction_id))
    due_this_cycle.sort(key=lambda line: (line.due_date, line.transaction_id))

    installments_due = sum((line.amount_due for line in overdue + due_this_cycle), ZERO)
    revolving = max(card.balance - locked, ZERO)
    if card.credit_limit > 0:
        utilization = (card.balance / card.credit_limit * 100).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
    else:
        utilization = Decimal("0.0")

    return CardStatement(
        card_id=card.id,
        cycle_close=close,
        due_date=due,
        balance=card.balance,
        credit_limit=card.credit_limit,
        available_credit=card.headroom,
        utilization=utilization,
        locked_credit=locked,
        revolving_balance=revolving,
        installments_due=installments_due,
        minimum_payment=minimum_payment(installments_due, revolving),
        total_due=installments_due + revolving,
        overdue=overdue,
        due_this_cycle=due_this_cycle,
    )
