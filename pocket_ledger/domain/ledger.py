"""
Ledger mutations: transactions, cards, recurrences and goals.

Every function validates against the caller's snapshot, applies the change
to a deep copy and returns it in a LedgerResult. A raised exception means
nothing was committed.
"""

import copy
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pocket_ledger.domain.aggregates import savings_affordability
from pocket_ledger.domain.exceptions import (
    CreditLimitExceeded,
    InsufficientFunds,
    InvalidLedgerData,
    OverAllocation,
    ReferenceInUse,
)
from pocket_ledger.domain.models import (
    Card,
    CardPayment,
    Expense,
    Goal,
    PaymentType,
    Recurrence,
    RecurrenceKind,
    Snapshot,
    Transaction,
)
from pocket_ledger.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)


@dataclass
class LedgerResult:
    snapshot: Snapshot
    entity_id: str


def _require_positive(amount: Decimal, what: str) -> Decimal:
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidLedgerData(f"{what} must be positive, got {amount}")
    return amount


def _require_day(day: int, what: str) -> None:
    if not 1 <= day <= 31:
        raise InvalidLedgerData(f"{what} must be between 1 and 31, got {day}")


# Transactions


def _check_references(snapshot: Snapshot, transaction: Transaction) -> None:
    if transaction.recurrence_id is not None:
        snapshot.recurrence(transaction.recurrence_id)
    if isinstance(transaction, (Expense, CardPayment)) and transaction.card_id is not None:
        snapshot.card(transaction.card_id)
    if isinstance(transaction, CardPayment) and transaction.original_transaction_id is not None:
        snapshot.transaction(transaction.original_transaction_id)


def _apply_balance_effect(snapshot: Snapshot, transaction: Transaction) -> None:
    """Book a transaction against its card; ``snapshot`` must be the working copy"""
    if isinstance(transaction, Expense) and transaction.card_id is not None:
        card = snapshot.card(transaction.card_id)
        charge = (
            transaction.installment_plan.outstanding_balance
            if transaction.installment_plan is not None
            else transaction.amount
        )
        if charge > card.headroom:
            raise CreditLimitExceeded(card.id, charge, card.headroom)
        card.balance += charge
    elif isinstance(transaction, CardPayment):
        card = snapshot.card(transaction.card_id)
        card.balance = max(ZERO, card.balance - transaction.amount)


def _reverse_balance_effect(snapshot: Snapshot, transaction: Transaction) -> None:
    if isinstance(transaction, Expense) and transaction.card_id is not None:
        card = snapshot.card(transaction.card_id)
        charge = (
            transaction.installment_plan.outstanding_balance
            if transaction.installment_plan is not None
            else transaction.amount
        )
        card.balance = max(ZERO, card.balance - charge)
    elif isinstance(transaction, CardPayment):
        snapshot.card(transaction.card_id).balance += transaction.amount


def _settled_installments(transaction: Transaction) -> bool:
    """True for card payments that moved installment schedules forward"""
    return isinstance(transaction, CardPayment) and (
        transaction.payment_type == PaymentType.ADVANCE
        or transaction.installments_covered_count > 0
    )


def add_transaction(
    snapshot: Snapshot,
    transaction: Transaction,
    available_cash: Optional[Decimal] = None,
) -> LedgerResult:
    """
    Record a plain income, expense or card payment.

    Card expenses add to the card balance and must fit in its headroom;
    card payments reduce it (never below zero). Installment purchases go
    through ``create_installment_purchase`` instead.

    Raises:
        InvalidLedgerData: non-positive amount, duplicate id, or an installment plan
        InvalidReference: unknown card, recurrence or original transaction
        CreditLimitExceeded: card expense above the card headroom
        InsufficientFunds: cash outflow above ``available_cash``
    """
    amount = _require_positive(transaction.amount, "Amount")
    if any(t.id == transaction.id for t in snapshot.transactions):
        raise InvalidLedgerData(f"Transaction id {transaction.id!r} already exists")
    if isinstance(transaction, Expense) and transaction.installment_plan is not None:
        raise InvalidLedgerData("Installment purchases must be created with create_installment_purchase")
    _check_references(snapshot, transaction)

    is_cash_outflow = isinstance(transaction, CardPayment) or (
        isinstance(transaction, Expense) and transaction.is_cash
    )
    if is_cash_outflow and available_cash is not None and amount > available_cash:
        raise InsufficientFunds(amount, to_money(available_cash))

    new_snapshot = copy.deepcopy(snapshot)
    new_transaction = copy.deepcopy(transaction)
    new_transaction.amount = amount
    _apply_balance_effect(new_snapshot, new_transaction)
    new_snapshot.transactions.append(new_transaction)

    logger.info(
        "Transaction added",
        extra={
            "transaction_id": new_transaction.id,
            "kind": new_transaction.kind.value,
            "amount": str(amount),
        },
    )
    return LedgerResult(snapshot=new_snapshot, entity_id=new_transaction.id)


def edit_transaction(snapshot: Snapshot, transaction: Transaction) -> LedgerResult:
    """
    Replace a transaction, re-booking its card effect.

    The kind cannot change. Installment purchases keep their plan, card and
    amount; only the descriptive fields may be edited. The same holds for
    card payments that settled installments, since the schedules they
    moved are not rewound.

    Raises:
        InvalidReference: unknown transaction or new references
        InvalidLedgerData: kind change, or amount/card change on an installment purchase
        ReferenceInUse: amount/card change on a payment that settled installments
        CreditLimitExceeded: the edited card charge no longer fits
    """
    existing = snapshot.transaction(transaction.id)
    if existing.kind != transaction.kind:
        raise InvalidLedgerData(
            f"Cannot change transaction kind from {existing.kind.value} to {transaction.kind.value}"
        )
    amount = _require_positive(transaction.amount, "Amount")
    _check_references(snapshot, transaction)

    edited = copy.deepcopy(transaction)
    edited.amount = amount
    if isinstance(existing, Expense) and existing.installment_plan is not None:
        if amount != existing.amount or edited.card_id != existing.card_id:
            raise InvalidLedgerData("Amount and card of an installment purchase cannot be edited")
        edited.installment_plan = copy.deepcopy(existing.installment_plan)
    if _settled_installments(existing):
        if amount != existing.amount or edited.card_id != existing.card_id:
            raise ReferenceInUse(
                "transaction", existing.id, "payment settled installments of a plan"
            )
        edited.payment_type = existing.payment_type
        edited.original_transaction_id = existing.original_transaction_id
        edited.installments_covered_count = existing.installments_covered_count
        edited.partial_amount = existing.partial_amount

    new_snapshot = copy.deepcopy(snapshot)
    _reverse_balance_effect(new_snapshot, existing)
    _apply_balance_effect(new_snapshot, edited)
    index = next(i for i, t in enumerate(new_snapshot.transactions) if t.id == edited.id)
    new_snapshot.transactions[index] = edited

    logger.info("Transaction edited", extra={"transaction_id": edited.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=edited.id)


def delete_transaction(snapshot: Snapshot, transaction_id: str) -> LedgerResult:
    """
    Remove a transaction and undo its card effect.

    - card expense: balance drops by the amount (installment purchases by
      what is still outstanding), never below zero
    - card payment: balance is restored

    Payments that settled installments (advance payments and regular
    payments that retired whole installments) and the purchases carrying
    advance payments are part of each other's history and cannot be
    deleted.

    Raises:
        InvalidReference: unknown transaction
        ReferenceInUse: payment that settled installments, or purchase with advance payments
    """
    existing = snapshot.transaction(transaction_id)
    if _settled_installments(existing):
        raise ReferenceInUse(
            "transaction", transaction_id, "payment settled installments of a plan"
        )
    if isinstance(existing, Expense) and existing.installment_plan is not None:
        if existing.installment_plan.advance_payments:
            raise ReferenceInUse(
                "transaction", transaction_id, "installment plan has advance payments"
            )

    new_snapshot = copy.deepcopy(snapshot)
    _reverse_balance_effect(new_snapshot, existing)
    new_snapshot.transactions = [t for t in new_snapshot.transactions if t.id != transaction_id]

    logger.info(
        "Transaction deleted",
        extra={"transaction_id": transaction_id, "kind": existing.kind.value},
    )
    return LedgerResult(snapshot=new_snapshot, entity_id=transaction_id)


# Cards


def _validate_card(card: Card) -> None:
    _require_day(card.closing_day, "Closing day")
    _require_day(card.payment_day, "Payment day")
    if card.credit_limit < 0:
        raise InvalidLedgerData(f"Credit limit cannot be negative, got {card.credit_limit}")
    if card.balance < 0:
        raise InvalidLedgerData(f"Card balance cannot be negative, got {card.balance}")


def add_card(snapshot: Snapshot, card: Card) -> LedgerResult:
    _validate_card(card)
    if any(c.id == card.id for c in snapshot.cards):
        raise InvalidLedgerData(f"Card id {card.id!r} already exists")

    new_snapshot = copy.deepcopy(snapshot)
    new_card = copy.deepcopy(card)
    new_card.credit_limit = to_money(card.credit_limit)
    new_card.balance = to_money(card.balance)
    new_snapshot.cards.append(new_card)

    logger.info("Card added", extra={"card_id": card.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=card.id)


def edit_card(snapshot: Snapshot, card: Card) -> LedgerResult:
    """Replace card details; the balance is not re-checked against a lowered limit"""
    snapshot.card(card.id)
    _validate_card(card)

    new_snapshot = copy.deepcopy(snapshot)
    index = next(i for i, c in enumerate(new_snapshot.cards) if c.id == card.id)
    new_card = copy.deepcopy(card)
    new_card.credit_limit = to_money(card.credit_limit)
    new_card.balance = to_money(card.balance)
    new_snapshot.cards[index] = new_card

    logger.info("Card edited", extra={"card_id": card.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=card.id)


def delete_card(snapshot: Snapshot, card_id: str) -> LedgerResult:
    """
    Remove a card that nothing depends on any more.

    Raises:
        InvalidReference: unknown card
        ReferenceInUse: the card still has a balance, unpaid installment
            plans or active recurrences charging it
    """
    card = snapshot.card(card_id)
    if card.balance > 0:
        raise ReferenceInUse("card", card_id, f"balance of {card.balance} is still owed")
    if any(p.installment_plan.remaining_count > 0 for p in snapshot.installment_purchases(card_id)):
        raise ReferenceInUse("card", card_id, "installment plans are still outstanding")
    if any(r.active and r.card_id == card_id for r in snapshot.recurrences):
        raise ReferenceInUse("card", card_id, "active recurrences are charged to it")

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.cards = [c for c in new_snapshot.cards if c.id != card_id]

    logger.info("Card deleted", extra={"card_id": card_id})
    return LedgerResult(snapshot=new_snapshot, entity_id=card_id)


# Recurrences


def _validate_recurrence(snapshot: Snapshot, recurrence: Recurrence) -> None:
    _require_positive(recurrence.amount, "Recurrence amount")
    _require_day(recurrence.day, "Recurrence day")
    if recurrence.card_id is not None:
        if recurrence.kind == RecurrenceKind.INCOME:
            raise InvalidLedgerData("Recurring income cannot be charged to a card")
        snapshot.card(recurrence.card_id)


def add_recurrence(snapshot: Snapshot, recurrence: Recurrence) -> LedgerResult:
    _validate_recurrence(snapshot, recurrence)
    if any(r.id == recurrence.id for r in snapshot.recurrences):
        raise InvalidLedgerData(f"Recurrence id {recurrence.id!r} already exists")

    new_snapshot = copy.deepcopy(snapshot)
    new_recurrence = copy.deepcopy(recurrence)
    new_recurrence.amount = to_money(recurrence.amount)
    new_snapshot.recurrences.append(new_recurrence)

    logger.info("Recurrence added", extra={"recurrence_id": recurrence.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=recurrence.id)


def edit_recurrence(snapshot: Snapshot, recurrence: Recurrence) -> LedgerResult:
    """Replace a recurrence; already materialized transactions are left as they are"""
    snapshot.recurrence(recurrence.id)
    _validate_recurrence(snapshot, recurrence)

    new_snapshot = copy.deepcopy(snapshot)
    index = next(i for i, r in enumerate(new_snapshot.recurrences) if r.id == recurrence.id)
    new_recurrence = copy.deepcopy(recurrence)
    new_recurrence.amount = to_money(recurrence.amount)
    new_snapshot.recurrences[index] = new_recurrence

    logger.info("Recurrence edited", extra={"recurrence_id": recurrence.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=recurrence.id)


def delete_recurrence(snapshot: Snapshot, recurrence_id: str) -> LedgerResult:
    """Remove a recurrence; its transactions stay and lose the back-reference"""
    snapshot.recurrence(recurrence_id)

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.recurrences = [r for r in new_snapshot.recurrences if r.id != recurrence_id]
    for transaction in new_snapshot.transactions:
        if transaction.recurrence_id == recurrence_id:
            transaction.recurrence_id = None

    logger.info("Recurrence deleted", extra={"recurrence_id": recurrence_id})
    return LedgerResult(snapshot=new_snapshot, entity_id=recurrence_id)


# Goals


def add_goal(snapshot: Snapshot, goal: Goal) -> LedgerResult:
    _require_positive(goal.target_amount, "Goal target")
    if goal.saved_amount < 0:
        raise InvalidLedgerData(f"Saved amount cannot be negative, got {goal.saved_amount}")
    if goal.target_date is not None and goal.target_date < goal.start_date:
        raise InvalidLedgerData("Goal target date is before its start date")
    if any(g.id == goal.id for g in snapshot.goals):
        raise InvalidLedgerData(f"Goal id {goal.id!r} already exists")

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.goals.append(copy.deepcopy(goal))

    logger.info("Goal added", extra={"goal_id": goal.id})
    return LedgerResult(snapshot=new_snapshot, entity_id=goal.id)


def delete_goal(snapshot: Snapshot, goal_id: str) -> LedgerResult:
    snapshot.goal(goal_id)

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.goals = [g for g in new_snapshot.goals if g.id != goal_id]

    logger.info("Goal deleted", extra={"goal_id": goal_id})
    return LedgerResult(snapshot=new_snapshot, entity_id=goal_id)


def contribute_to_goal(snapshot: Snapshot, goal_id: str, amount: Decimal) -> LedgerResult:
    """
    Move money into a goal.

    Raises:
        InvalidReference: unknown goal
        InsufficientFunds: more than the money currently free to save
    """
    snapshot.goal(goal_id)
    amount = _require_positive(amount, "Contribution")
    free = savings_affordability(snapshot)
    if amount > free:
        raise InsufficientFunds(amount, free)

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.goal(goal_id).saved_amount += amount

    logger.info("Goal contribution", extra={"goal_id": goal_id, "amount": str(amount)})
    return LedgerResult(snapshot=new_snapshot, entity_id=goal_id)


def withdraw_from_goal(snapshot: Snapshot, goal_id: str, amount: Decimal) -> LedgerResult:
    """
    Take money back out of a goal.

    Raises:
        InvalidReference: unknown goal
        OverAllocation: more than the goal holds
    """
    goal = snapshot.goal(goal_id)
    amount = _require_positive(amount, "Withdrawal")
    if amount > goal.saved_amount:
        raise OverAllocation(goal_id, amount, goal.saved_amount)

    new_snapshot = copy.deepcopy(snapshot)
    new_snapshot.goal(goal_id).saved_amount -= amount

    logger.info("Goal withdrawal", extra={"goal_id": goal_id, "amount": str(amount)})
    return LedgerResult(snapshot=new_snapshot, entity_id=goal_id)
