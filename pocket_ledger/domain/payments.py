"""Card payment allocation across installment plans"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pocket_ledger.domain.exceptions import (
    InsufficientFunds,
    InvalidLedgerData,
    InvalidReference,
    OverAllocation,
)
from pocket_ledger.domain.models import (
    AdvancePaymentRecord,
    CardPayment,
    EntryState,
    Expense,
    InstallmentEntry,
    PaymentType,
    Snapshot,
)
from pocket_ledger.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

CARD_PAYMENT_CATEGORY = "Card Payment"
ADVANCE_PAYMENT_CATEGORY = "Advance Installment Payment"


@dataclass
class ResolvedInstallments:
    """Installments of one purchase settled by a bulk payment"""

    transaction_id: str
    description: str
    numbers: List[int]
    total_count: int
    amount: Decimal


@dataclass
class CardPaymentResult:
    snapshot: Snapshot
    payment: CardPayment
    resolved: List[ResolvedInstallments] = field(default_factory=list)
    unconsumed: Decimal = ZERO


@dataclass
class AdvancePaymentResult:
    snapshot: Snapshot
    payment: CardPayment
    installments_covered: int
    partial_amount: Decimal


def _settle(entry: InstallmentEntry) -> None:
    entry.state = EntryState.PAID
    entry.partial_amount_paid = ZERO
    entry.remaining_amount_due = None


def _format_numbers(numbers: List[int]) -> str:
    if len(numbers) > 1 and numbers[-1] - numbers[0] == len(numbers) - 1:
        return f"{numbers[0]}-{numbers[-1]}"
    return ",".join(str(n) for n in numbers)


def _describe_resolved(resolved: List[ResolvedInstallments]) -> str:
    return "; ".join(
        f"{r.description} {_format_numbers(r.numbers)}/{r.total_count}" for r in resolved
    )


def _validate_amount(amount: Decimal, available_cash: Optional[Decimal]) -> Decimal:
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidLedgerData(f"Payment amount must be positive, got {amount}")
    if available_cash is not None and amount > available_cash:
        raise InsufficientFunds(amount, to_money(available_cash))
    return amount


def allocate_card_payment(
    snapshot: Snapshot,
    card_id: str,
    amount: Decimal,
    available_cash: Optional[Decimal] = None,
    today: date | None = None,
    payment_id: Optional[str] = None,
) -> CardPaymentResult:
    """
    Apply a regular card payment.

    Allocation rules:
    - purchases with installments left, oldest purchase first (ties by id)
    - per purchase, settle min(floor(budget / per_installment), remaining)
      whole installments, in schedule order
    - whatever cannot cover a full installment stays unconsumed

    The card balance drops by the full payment: the part not retiring
    installments still pays down revolving balance.

    Raises:
        InvalidReference: unknown card
        InsufficientFunds: amount above ``available_cash``
    """
    if today is None:
        today = date.today()

    card = snapshot.card(card_id)
    amount = _validate_amount(amount, available_cash)

    new_snapshot = copy.deepcopy(snapshot)
    purchases = [
        p
        for p in new_snapshot.installment_purchases(card.id)
        if p.installment_plan.remaining_count > 0
    ]
    purchases.sort(key=lambda p: (p.date, p.id))

    budget = amount
    resolved: List[ResolvedInstallments] = []
    for purchase in purchases:
        plan = purchase.installment_plan
        per = plan.per_installment_amount
        if per <= 0 or budget < per:
            continue

        to_settle = min(int(budget // per), plan.remaining_count)
        settled = plan.unpaid_entries()[:to_settle]
        for entry in settled:
            _settle(entry)
        plan.recount()
        budget -= per * to_settle

        resolved.append(
            ResolvedInstallments(
                transaction_id=purchase.id,
                description=purchase.description,
                numbers=[entry.number for entry in settled],
                total_count=plan.total_count,
                amount=per * to_settle,
            )
        )

    new_card = new_snapshot.card(card.id)
    new_card.balance = max(ZERO, new_card.balance - amount)

    description = f"Payment {card.name}"
    if resolved:
        description = f"{description} ({_describe_resolved(resolved)})"

    payment = CardPayment(
        id=payment_id or str(uuid.uuid4()),
        amount=amount,
        description=description,
        category=CARD_PAYMENT_CATEGORY,
        date=today,
        card_id=card.id,
        payment_type=PaymentType.REGULAR,
        installments_covered_count=sum(len(r.numbers) for r in resolved),
    )
    new_snapshot.transactions.append(payment)

    logger.info(
        "Card payment allocated",
        extra={
            "card_id": card.id,
            "amount": str(amount),
            "installments_settled": payment.installments_covered_count,
            "unconsumed": str(budget),
        },
    )
    return CardPaymentResult(
        snapshot=new_snapshot, payment=payment, resolved=resolved, unconsumed=budget
    )


def pay_installments_in_advance(
    snapshot: Snapshot,
    transaction_id: str,
    amount: Decimal,
    available_cash: Optional[Decimal] = None,
    today: date | None = None,
    payment_id: Optional[str] = None,
) -> AdvancePaymentResult:
    """
    Pay ahead on one installment purchase.

    Whole installments are settled first in schedule order; a remainder
    becomes a partial payment on the next unpaid installment, which then
    carries ``partial_amount_paid`` and ``remaining_amount_due``. Since the
    walk is in order, at most one entry of a plan is ever partial.

    The ceiling is the plan's outstanding balance, not remaining count
    times the per-installment amount: the last installment carries the
    rounding remainder, so 1000.00 in 3 is paid off with 1000.00, not 999.99.

    Raises:
        InvalidReference: unknown transaction, not an installment purchase,
            or its card is missing
        OverAllocation: amount above the plan's outstanding balance
        InsufficientFunds: amount above ``available_cash``
    """
    if today is None:
        today = date.today()

    purchase = snapshot.transaction(transaction_id)
    if not isinstance(purchase, Expense) or purchase.installment_plan is None:
        raise InvalidReference("installment purchase", transaction_id)
    card = snapshot.card(purchase.card_id)

    amount = to_money(amount)
    if amount <= 0:
        raise InvalidLedgerData(f"Payment amount must be positive, got {amount}")
    outstanding = purchase.installment_plan.outstanding_balance
    if amount > outstanding:
        raise OverAllocation(transaction_id, amount, outstanding)
    amount = _validate_amount(amount, available_cash)

    new_snapshot = copy.deepcopy(snapshot)
    plan = new_snapshot.transaction(transaction_id).installment_plan

    budget = amount
    covered = 0
    partial = ZERO
    for entry in plan.unpaid_entries():
        if budget <= 0:
            break
        due = entry.amount_due
        if budget >= due:
            _settle(entry)
            budget -= due
            covered += 1
        else:
            entry.state = EntryState.PARTIAL
            entry.partial_amount_paid = entry.partial_amount_paid + budget
            entry.remaining_amount_due = entry.amount - entry.partial_amount_paid
            partial = budget
            budget = ZERO
    plan.recount()

    new_card = new_snapshot.card(card.id)
    new_card.balance = max(ZERO, new_card.balance - amount)

    payment = CardPayment(
        id=payment_id or str(uuid.uuid4()),
        amount=amount,
        description=f"Advance payment {purchase.description} ({covered} installments)",
        category=ADVANCE_PAYMENT_CATEGORY,
        date=today,
        card_id=card.id,
        payment_type=PaymentType.ADVANCE,
        original_transaction_id=purchase.id,
        installments_covered_count=covered,
        partial_amount=partial,
    )
    new_snapshot.transactions.append(payment)
    plan.advance_payments.append(
        AdvancePaymentRecord(
            date=today,
            amount=amount,
            installments_covered=covered,
            partial_amount=partial,
            payment_transaction_id=payment.id,
        )
    )

    logger.info(
        "Advance payment applied",
        extra={
            "transaction_id": purchase.id,
            "card_id": card.id,
            "amount": str(amount),
            "installments_covered": covered,
            "partial_amount": str(partial),
        },
    )
    return AdvancePaymentResult(
        snapshot=new_snapshot,
        payment=payment,
        installments_covered=covered,
        partial_amount=partial,
    )
