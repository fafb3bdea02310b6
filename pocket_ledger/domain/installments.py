"""Installment plan generation for card purchases"""

import copy
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import List, Optional

from pocket_ledger.domain.billing import installment_due_dates
from pocket_ledger.domain.exceptions import CreditLimitExceeded, InvalidLedgerData
from pocket_ledger.domain.models import (
    Card,
    EntryState,
    Expense,
    InstallmentEntry,
    InstallmentPlan,
    Snapshot,
)
from pocket_ledger.utils.money import CENT, ZERO, to_decimal, to_money

logger = logging.getLogger(__name__)


@dataclass
class Amortization:
    """Amounts for an installment plan before dates are attached"""

    per_installment_amount: Decimal
    total_payable: Decimal
    interest_total: Decimal
    amounts: List[Decimal]
    interest_portions: List[Decimal]
    principal_portions: List[Decimal]


@dataclass
class InstallmentPurchaseResult:
    snapshot: Snapshot
    transaction: Expense


def monthly_rate(annual_rate: Decimal) -> Decimal:
    """Equivalent monthly rate of an annual effective rate: (1 + TEA)^(1/12) - 1"""
    return (Decimal(1) + annual_rate) ** (Decimal(1) / Decimal(12)) - Decimal(1)


def amortize(
    principal: Decimal,
    count: int,
    annual_rate: Optional[Decimal] = None,
) -> Amortization:
    """
    Split a principal into ``count`` fixed installments.

    Without interest:
    - per-installment amount is principal / count rounded to cents
    - at least one cent per installment, so principal must cover count cents
    - last installment absorbs the rounding remainder so the schedule sums
      to the principal exactly

    With interest (annual effective rate as a fraction, 0.35 = 35%):
    - French amortization: payment = P * i / (1 - (1 + i)^-N)
    - every installment equals the rounded payment; total = payment * N
    - per-entry interest/principal split, last entry takes what is left

    Example:
        1000.00 / 3 -> [333.33, 333.33, 333.34]
    """
    if count < 1:
        raise InvalidLedgerData(f"Installment count must be at least 1, got {count}")
    principal = to_money(principal)
    if principal <= 0:
        raise InvalidLedgerData(f"Principal must be positive, got {principal}")
    if principal < CENT * count:
        raise InvalidLedgerData(
            f"Principal {principal} cannot be split into {count} installments of at least {CENT}"
        )

    if annual_rate is None or to_decimal(annual_rate) <= 0:
        per = to_money(principal / count)
        if per * (count - 1) > principal:
            # Tiny principals: half-up rounding would leave a negative last installment
            per = (principal / count).quantize(CENT, rounding=ROUND_DOWN)
        last = principal - per * (count - 1)
        amounts = [per] * (count - 1) + [last]
        return Amortization(
            per_installment_amount=per,
            total_payable=principal,
            interest_total=ZERO,
            amounts=amounts,
            interest_portions=[ZERO] * count,
            principal_portions=list(amounts),
        )

    rate = monthly_rate(to_decimal(annual_rate))
    payment = to_money(principal * rate / (Decimal(1) - (Decimal(1) + rate) ** (-count)))
    total = payment * count

    interest_portions = []
    principal_portions = []
    balance = principal
    for number in range(1, count + 1):
        if number == count:
            capital = balance
            interest = payment - capital
        else:
            interest = to_money(balance * rate)
            capital = payment - interest
        interest_portions.append(interest)
        principal_portions.append(capital)
        balance -= capital

    return Amortization(
        per_installment_amount=payment,
        total_payable=total,
        interest_total=total - principal,
        amounts=[payment] * count,
        interest_portions=interest_portions,
        principal_portions=principal_portions,
    )


def build_installment_plan(
    principal: Decimal,
    count: int,
    purchase_date: date,
    card: Card,
    has_interest: bool = False,
    annual_rate: Optional[Decimal] = None,
    today: date | None = None,
) -> InstallmentPlan:
    """
    Build a full plan: amounts from :func:`amortize`, due dates from the
    card's billing cycle, every entry pending.
    """
    rate = to_decimal(annual_rate) if has_interest and annual_rate is not None else None
    amortization = amortize(principal, count, rate)
    due_dates = installment_due_dates(
        purchase_date, count, card.closing_day, card.payment_day, today=today
    )

    schedule = [
        InstallmentEntry(
            number=number,
            due_date=due_dates[number - 1],
            amount=amortization.amounts[number - 1],
            state=EntryState.PENDING,
            interest_portion=amortization.interest_portions[number - 1],
            principal_portion=amortization.principal_portions[number - 1],
        )
        for number in range(1, count + 1)
    ]

    return InstallmentPlan(
        total_count=count,
        per_installment_amount=amortization.per_installment_amount,
        total_payable=amortization.total_payable,
        schedule=schedule,
        paid_count=0,
        remaining_count=count,
        has_interest=rate is not None,
        annual_rate=rate,
        interest_total=amortization.interest_total,
    )


def create_installment_purchase(
    snapshot: Snapshot,
    purchase: Expense,
    count: int,
    has_interest: bool = False,
    annual_rate: Optional[Decimal] = None,
    today: date | None = None,
) -> InstallmentPurchaseResult:
    """
    Record a card purchase split into installments.

    The card balance grows by the plan's total payable. The purchase is
    rejected with CreditLimitExceeded when that exceeds the card headroom.
    """
    if purchase.card_id is None:
        raise InvalidLedgerData("Installment purchases must be charged to a card")
    if any(t.id == purchase.id for t in snapshot.transactions):
        raise InvalidLedgerData(f"Transaction id {purchase.id!r} already exists")

    card = snapshot.card(purchase.card_id)
    plan = build_installment_plan(
        purchase.amount,
        count,
        purchase.date,
        card,
        has_interest=has_interest,
        annual_rate=annual_rate,
        today=today,
    )
    if plan.total_payable > card.headroom:
        raise CreditLimitExceeded(card.id, plan.total_payable, card.headroom)

    new_snapshot = copy.deepcopy(snapshot)
    transaction = copy.deepcopy(purchase)
    transaction.amount = to_money(purchase.amount)
    transaction.installment_plan = plan
    new_snapshot.transactions.append(transaction)
    new_snapshot.card(card.id).balance += plan.total_payable

    logger.info(
        "Installment purchase created",
        extra={
            "transaction_id": transaction.id,
            "card_id": card.id,
            "installments": count,
            "total_payable": str(plan.total_payable),
        },
    )
    return InstallmentPurchaseResult(snapshot=new_snapshot, transaction=transaction)
