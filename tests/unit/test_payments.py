"""Unit tests for card payment allocation"""

from datetime import date
from decimal import Decimal

import pytest

from pocket_ledger.domain.exceptions import (
    InsufficientFunds,
    InvalidLedgerData,
    InvalidReference,
    OverAllocation,
)
from pocket_ledger.domain.installments import build_installment_plan
from pocket_ledger.domain.models import (
    Card,
    EntryState,
    Expense,
    PaymentType,
    Snapshot,
)
from pocket_ledger.domain.payments import allocate_card_payment, pay_installments_in_advance

TODAY = date(2024, 5, 15)


def _installment_purchase(card: Card, txn_id: str, amount: str, count: int, purchase_date: date) -> Expense:
    return Expense(
        id=txn_id,
        amount=Decimal(amount),
        description=txn_id.title(),
        category="Shopping",
        date=purchase_date,
        card_id=card.id,
        installment_plan=build_installment_plan(Decimal(amount), count, purchase_date, card, today=TODAY),
    )


@pytest.fixture
def card() -> Card:
    return Card(
        id="visa",
        name="Visa",
        issuer="Bank A",
        credit_limit=Decimal("5000.00"),
        balance=Decimal("600.00"),
        closing_day=20,
        payment_day=5,
    )


@pytest.fixture
def snapshot(card: Card) -> Snapshot:
    """One 600.00 purchase in 4 installments of 150.00"""
    return Snapshot(
        cards=[card],
        transactions=[_installment_purchase(card, "laptop", "600.00", 4, date(2024, 5, 10))],
    )


def test_bulk_payment_settles_whole_installments(snapshot):
    result = allocate_card_payment(snapshot, "visa", Decimal("320.00"), today=TODAY, payment_id="pay-1")
    plan = result.snapshot.transaction("laptop").installment_plan

    assert [entry.state for entry in plan.schedule] == [
        EntryState.PAID,
        EntryState.PAID,
        EntryState.PENDING,
        EntryState.PENDING,
    ]
    assert plan.paid_count == 2
    assert plan.remaining_count == 2
    assert result.unconsumed == Decimal("20.00")
    assert result.resolved[0].numbers == [1, 2]


def test_bulk_payment_reduces_balance_by_full_amount(snapshot):
    result = allocate_card_payment(snapshot, "visa", Decimal("320.00"), today=TODAY)

    assert result.snapshot.card("visa").balance == Decimal("280.00")
    assert result.payment.amount == Decimal("320.00")
    assert result.payment.payment_type == PaymentType.REGULAR
    assert "Laptop 1-2/4" in result.payment.description
    assert result.snapshot.transactions[-1] is result.payment


def test_bulk_payment_leaves_input_untouched(snapshot):
    allocate_card_payment(snapshot, "visa", Decimal("320.00"), today=TODAY)

    assert snapshot.card("visa").balance == Decimal("600.00")
    assert snapshot.transaction("laptop").installment_plan.paid_count == 0
    assert len(snapshot.transactions) == 1


def test_bulk_payment_oldest_purchase_first(card, snapshot):
    snapshot.transactions.append(
        _installment_purchase(card, "phone", "300.00", 3, date(2024, 4, 1))
    )
    result = allocate_card_payment(snapshot, "visa", Decimal("250.00"), today=TODAY)

    phone = result.snapshot.transaction("phone").installment_plan
    laptop = result.snapshot.transaction("laptop").installment_plan
    assert phone.paid_count == 2  # 2 x 100
    assert laptop.paid_count == 0  # 50 left is less than 150
    assert result.unconsumed == Decimal("50.00")


def test_bulk_payment_moves_to_next_purchase(card, snapshot):
    snapshot.transactions.append(
        _installment_purchase(card, "phone", "300.00", 3, date(2024, 4, 1))
    )
    result = allocate_card_payment(snapshot, "visa", Decimal("500.00"), today=TODAY)

    assert result.snapshot.transaction("phone").installment_plan.remaining_count == 0
    assert result.snapshot.transaction("laptop").installment_plan.paid_count == 1
    assert result.unconsumed == Decimal("50.00")


def test_bulk_payment_conservation(snapshot):
    before = snapshot.transaction("laptop").installment_plan.remaining_count
    for amount in ("10.00", "150.00", "449.99", "600.00", "900.00"):
        result = allocate_card_payment(snapshot, "visa", Decimal(amount), today=TODAY)
        settled = sum(r.amount for r in result.resolved)
        after = result.snapshot.transaction("laptop").installment_plan.remaining_count

        assert settled <= Decimal(amount)
        assert after <= before
        assert settled + result.unconsumed == Decimal(amount)


def test_bulk_payment_balance_never_negative(snapshot):
    result = allocate_card_payment(snapshot, "visa", Decimal("900.00"), today=TODAY)
    assert result.snapshot.card("visa").balance == Decimal("0.00")


def test_bulk_payment_above_cash_rejected(snapshot):
    with pytest.raises(InsufficientFunds):
        allocate_card_payment(
            snapshot, "visa", Decimal("320.00"), available_cash=Decimal("300.00"), today=TODAY
        )


def test_bulk_payment_unknown_card(snapshot):
    with pytest.raises(InvalidReference):
        allocate_card_payment(snapshot, "nope", Decimal("10.00"), today=TODAY)


def test_bulk_payment_non_positive_amount(snapshot):
    with pytest.raises(InvalidLedgerData):
        allocate_card_payment(snapshot, "visa", Decimal("0"), today=TODAY)


def test_advance_payment_leaves_partial_installment(snapshot):
    result = pay_installments_in_advance(snapshot, "laptop", Decimal("170.00"), today=TODAY)
    plan = result.snapshot.transaction("laptop").installment_plan

    assert result.installments_covered == 1
    assert result.partial_amount == Decimal("20.00")
    assert plan.schedule[0].state == EntryState.PAID
    assert plan.schedule[1].state == EntryState.PARTIAL
    assert plan.schedule[1].partial_amount_paid == Decimal("20.00")
    assert plan.schedule[1].remaining_amount_due == Decimal("130.00")
    assert plan.paid_count == 1
    assert plan.remaining_count == 3
    assert sum(1 for entry in plan.schedule if entry.state == EntryState.PARTIAL) == 1


def test_advance_payment_records_audit_and_reduces_balance(snapshot):
    result = pay_installments_in_advance(snapshot, "laptop", Decimal("170.00"), today=TODAY, payment_id="adv-1")
    plan = result.snapshot.transaction("laptop").installment_plan

    assert result.snapshot.card("visa").balance == Decimal("430.00")
    assert result.payment.payment_type == PaymentType.ADVANCE
    assert result.payment.original_transaction_id == "laptop"
    assert result.payment.installments_covered_count == 1
    assert result.payment.partial_amount == Decimal("20.00")
    assert len(plan.advance_payments) == 1
    assert plan.advance_payments[0].payment_transaction_id == "adv-1"


def test_advance_payment_completes_partial_first(snapshot):
    first = pay_installments_in_advance(snapshot, "laptop", Decimal("170.00"), today=TODAY)
    second = pay_installments_in_advance(first.snapshot, "laptop", Decimal("130.00"), today=TODAY)
    plan = second.snapshot.transaction("laptop").installment_plan

    assert second.installments_covered == 1
    assert second.partial_amount == Decimal("0.00")
    assert plan.schedule[1].state == EntryState.PAID
    assert plan.schedule[1].remaining_amount_due is None
    assert plan.paid_count == 2


def test_advance_payment_full_payoff(snapshot):
    result = pay_installments_in_advance(snapshot, "laptop", Decimal("600.00"), today=TODAY)
    plan = result.snapshot.transaction("laptop").installment_plan

    assert plan.remaining_count == 0
    assert plan.outstanding_balance == Decimal("0.00")


def test_advance_payment_over_remaining_rejected(snapshot):
    with pytest.raises(OverAllocation):
        pay_installments_in_advance(snapshot, "laptop", Decimal("600.01"), today=TODAY)

    assert snapshot.transaction("laptop").installment_plan.paid_count == 0


def test_advance_payment_ceiling_includes_rounding_remainder(card):
    """1000.00 / 3 is 333.33 + 333.33 + 333.34; paying it all off takes 1000.00"""
    snapshot = Snapshot(
        cards=[card],
        transactions=[_installment_purchase(card, "sofa", "1000.00", 3, date(2024, 5, 10))],
    )
    plan = snapshot.transaction("sofa").installment_plan
    assert plan.remaining_count * plan.per_installment_amount == Decimal("999.99")

    result = pay_installments_in_advance(snapshot, "sofa", Decimal("1000.00"), today=TODAY)
    paid_off = result.snapshot.transaction("sofa").installment_plan
    assert result.installments_covered == 3
    assert paid_off.remaining_count == 0
    assert paid_off.outstanding_balance == Decimal("0.00")

    with pytest.raises(OverAllocation):
        pay_installments_in_advance(snapshot, "sofa", Decimal("1000.01"), today=TODAY)


def test_advance_payment_over_cash_rejected(snapshot):
    with pytest.raises(InsufficientFunds):
        pay_installments_in_advance(
            snapshot, "laptop", Decimal("300.00"), available_cash=Decimal("100.00"), today=TODAY
        )
    assert snapshot.card("visa").balance == Decimal("600.00")


def test_advance_payment_requires_installment_purchase(card):
    snapshot = Snapshot(
        cards=[card],
        transactions=[
            Expense(
                id="coffee",
                amount=Decimal("5.00"),
                description="Coffee",
                category="Food",
                date=TODAY,
                card_id=card.id,
            )
        ],
    )
    with pytest.raises(InvalidReference):
        pay_installments_in_advance(snapshot, "coffee", Decimal("5.00"), today=TODAY)
    with pytest.raises(InvalidReference):
        pay_installments_in_advance(snapshot, "missing", Decimal("5.00"), today=TODAY)
