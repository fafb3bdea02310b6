"""Read-only cash position metrics over a ledger snapshot"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from pocket_ledger.domain.billing import next_statement_due
from pocket_ledger.domain.models import (
    Card,
    CardPayment,
    Expense,
    Goal,
    Income,
    Snapshot,
    Transaction,
)
from pocket_ledger.utils.date_utils import add_months
from pocket_ledger.utils.money import ZERO, to_money

ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class PeriodSummary:
    """Income and expense totals for a closed date range"""

    income: Decimal
    expense: Decimal
    balance: Decimal
    savings_rate: Decimal  # percent, one decimal place


@dataclass(frozen=True)
class CategoryAmount:
    category: str
    amount: Decimal


@dataclass(frozen=True)
class CashflowTotals:
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class UpcomingCardPayment:
    card_id: str
    card_name: str
    due_date: date
    days_left: int
    balance: Decimal
    urgency: str  # high | medium | low


@dataclass(frozen=True)
class GoalProgress:
    goal_id: str
    percent: Decimal
    pending: Decimal
    reached: bool
    days_since_start: int
    days_to_target: Optional[int]
    late: bool
    at_risk: bool


@dataclass(frozen=True)
class GoalTimeline:
    """Estimate of how long a goal takes at a given monthly contribution"""

    reached: bool
    months: Optional[int]
    monthly_contribution: Decimal
    estimated_date: Optional[date]


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def _in_range(transactions: Iterable[Transaction], start: date, end: date) -> List[Transaction]:
    return [t for t in transactions if start <= t.date <= end]


def available_cash(transactions: Iterable[Transaction]) -> Decimal:
    """
    Cash in hand: income - cash expenses - card payments.

    Card-charged expenses are excluded: they only leave the wallet when the
    card is paid, and every card payment counts in full.
    """
    transactions = list(transactions)
    income = _total(t for t in transactions if isinstance(t, Income))
    cash_expense = _total(t for t in transactions if isinstance(t, Expense) and t.is_cash)
    card_payments = _total(t for t in transactions if isinstance(t, CardPayment))
    return income - cash_expense - card_payments


def period_summary(transactions: Iterable[Transaction], start: date, end: date) -> PeriodSummary:
    """Totals for ``start``..``end`` inclusive; expenses count regardless of payment method"""
    selected = _in_range(transactions, start, end)
    income = _total(t for t in selected if isinstance(t, Income))
    expense = _total(t for t in selected if isinstance(t, Expense))
    balance = income - expense
    if income > 0:
        savings_rate = (balance / income * 100).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)
    else:
        savings_rate = Decimal("0.0")
    return PeriodSummary(income=income, expense=expense, balance=balance, savings_rate=savings_rate)


def category_breakdown(
    transactions: Iterable[Transaction], start: date, end: date
) -> List[CategoryAmount]:
    """Expense totals per category, largest first"""
    totals: Dict[str, Decimal] = {}
    for t in _in_range(transactions, start, end):
        if isinstance(t, Expense):
            totals[t.category] = totals.get(t.category, ZERO) + t.amount
    return [
        CategoryAmount(category=category, amount=amount)
        for category, amount in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    ]


def total_cashflow(transactions: Iterable[Transaction]) -> CashflowTotals:
    transactions = list(transactions)
    return CashflowTotals(
        income=_total(t for t in transactions if isinstance(t, Income)),
        expense=_total(t for t in transactions if isinstance(t, Expense)),
    )


def average_cashflow(
    transactions: Iterable[Transaction],
    months: int = 3,
    today: date | None = None,
) -> CashflowTotals:
    """Average monthly income and expense over the trailing ``months`` months"""
    if today is None:
        today = date.today()
    if months < 1:
        months = 1

    start = add_months(today, -months)
    selected = _in_range(transactions, start, today)
    totals = total_cashflow(selected)
    return CashflowTotals(
        income=to_money(totals.income / months),
        expense=to_money(totals.expense / months),
    )


def savings_affordability(snapshot: Snapshot) -> Decimal:
    """Money free to save: available cash - card debt - money already reserved in goals"""
    card_debt = sum((card.balance for card in snapshot.cards), ZERO)
    reserved = sum((goal.saved_amount for goal in snapshot.goals), ZERO)
    return available_cash(snapshot.transactions) - card_debt - reserved


def upcoming_card_payments(cards: Iterable[Card], today: date | None = None) -> List[UpcomingCardPayment]:
    """Next statement due date for every card with a balance, soonest first"""
    if today is None:
        today = date.today()

    payments = []
    for card in cards:
        if card.balance <= 0:
            continue
        due = next_statement_due(today, card.closing_day, card.payment_day)
        days_left = (due - today).days
        if days_left <= 3:
            urgency = "high"
        elif days_left <= 7:
            urgency = "medium"
        else:
            urgency = "low"
        payments.append(
            UpcomingCardPayment(
                card_id=card.id,
                card_name=card.name,
                due_date=due,
                days_left=days_left,
                balance=card.balance,
                urgency=urgency,
            )
        )
    return sorted(payments, key=lambda p: p.due_date)


def goal_progress(goal: Goal, today: date | None = None) -> GoalProgress:
    """
    Progress of a savings goal.

    A goal is late once its target date has passed unreached, and at risk
    with under 30 days left and less than 80% saved.
    """
    if today is None:
        today = date.today()

    if goal.target_amount > 0:
        percent = min(goal.saved_amount / goal.target_amount * 100, Decimal(100))
    else:
        percent = ZERO
    percent = percent.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)

    reached = goal.saved_amount >= goal.target_amount
    days_to_target = (goal.target_date - today).days if goal.target_date else None

    return GoalProgress(
        goal_id=goal.id,
        percent=percent,
        pending=max(goal.target_amount - goal.saved_amount, ZERO),
        reached=reached,
        days_since_start=(today - goal.start_date).days,
        days_to_target=days_to_target,
        late=days_to_target is not None and days_to_target < 0 and not reached,
        at_risk=days_to_target is not None and 0 < days_to_target < 30 and percent < 80,
    )


def time_to_goal(
    target_amount: Decimal,
    saved_amount: Decimal,
    monthly_cashflow: Decimal,
    savings_percent: Decimal = Decimal(100),
    today: date | None = None,
) -> GoalTimeline:
    """Months needed to close a goal by setting aside ``savings_percent`` of monthly cash flow"""
    if today is None:
        today = date.today()

    pending = target_amount - saved_amount
    if pending <= 0:
        return GoalTimeline(reached=True, months=0, monthly_contribution=ZERO, estimated_date=today)

    contribution = to_money(monthly_cashflow * savings_percent / 100)
    if contribution <= 0:
        return GoalTimeline(reached=False, months=None, monthly_contribution=ZERO, estimated_date=None)

    months = int((pending / contribution).to_integral_value(rounding=ROUND_CEILING))
    return GoalTimeline(
        reached=False,
        months=months,
        monthly_contribution=contribution,
        estimated_date=add_months(today, months),
    )
