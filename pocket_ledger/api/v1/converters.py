"""Conversion between API schemas and domain dataclasses"""

from pocket_ledger.api.v1 import schemas
from pocket_ledger.domain.models import (
    AdvancePaymentRecord,
    Card,
    CardPayment,
    Expense,
    Goal,
    HypotheticalEvent,
    Income,
    InstallmentEntry,
    InstallmentPlan,
    Recurrence,
    Snapshot,
    Transaction,
)
from pocket_ledger.utils.money import to_money


def _plan_to_domain(plan: schemas.InstallmentPlanSchema) -> InstallmentPlan:
    domain_plan = InstallmentPlan(
        total_count=plan.total_count,
        per_installment_amount=to_money(plan.per_installment_amount),
        total_payable=to_money(plan.total_payable),
        schedule=[
            InstallmentEntry(
                number=e.number,
                due_date=e.due_date,
                amount=to_money(e.amount),
                state=e.state,
                partial_amount_paid=to_money(e.partial_amount_paid),
                remaining_amount_due=(
                    to_money(e.remaining_amount_due) if e.remaining_amount_due is not None else None
                ),
                interest_portion=to_money(e.interest_portion),
                principal_portion=to_money(e.principal_portion),
            )
            for e in plan.schedule
        ],
        has_interest=plan.has_interest,
        annual_rate=plan.annual_rate,
        interest_total=to_money(plan.interest_total),
        advance_payments=[
            AdvancePaymentRecord(
                date=r.date,
                amount=to_money(r.amount),
                installments_covered=r.installments_covered,
                partial_amount=to_money(r.partial_amount),
                payment_transaction_id=r.payment_transaction_id,
            )
            for r in plan.advance_payments
        ],
    )
    domain_plan.recount()
    return domain_plan


def transaction_to_domain(txn) -> Transaction:
    common = dict(
        id=txn.id,
        amount=to_money(txn.amount),
        description=txn.description,
        category=txn.category,
        date=txn.date,
        recurrence_id=txn.recurrence_id,
        is_investment=txn.is_investment,
    )
    if isinstance(txn, schemas.IncomeSchema):
        return Income(**common)
    if isinstance(txn, schemas.ExpenseSchema):
        return Expense(
            **common,
            card_id=txn.card_id,
            installment_plan=_plan_to_domain(txn.installment_plan) if txn.installment_plan else None,
        )
    return CardPayment(
        **common,
        card_id=txn.card_id,
        payment_type=txn.payment_type,
        original_transaction_id=txn.original_transaction_id,
        installments_covered_count=txn.installments_covered_count,
        partial_amount=to_money(txn.partial_amount),
    )


def card_to_domain(card: schemas.CardSchema) -> Card:
    return Card(
        id=card.id,
        name=card.name,
        issuer=card.issuer,
        credit_limit=to_money(card.credit_limit),
        balance=to_money(card.balance),
        closing_day=card.closing_day,
        payment_day=card.payment_day,
    )


def snapshot_to_domain(snapshot: schemas.SnapshotSchema) -> Snapshot:
    return Snapshot(
        cards=[card_to_domain(c) for c in snapshot.cards],
        transactions=[transaction_to_domain(t) for t in snapshot.transactions],
        recurrences=[
            Recurrence(
                id=r.id,
                kind=r.kind,
                description=r.description,
                amount=to_money(r.amount),
                day=r.day,
                category=r.category,
                card_id=r.card_id,
                active=r.active,
            )
            for r in snapshot.recurrences
        ],
        goals=[
            Goal(
                id=g.id,
                name=g.name,
                category=g.category,
                target_amount=to_money(g.target_amount),
                saved_amount=to_money(g.saved_amount),
                start_date=g.start_date,
                target_date=g.target_date,
                active=g.active,
            )
            for g in snapshot.goals
        ],
    )


def hypothetical_to_domain(event: schemas.HypotheticalSchema) -> HypotheticalEvent:
    return HypotheticalEvent(
        kind=event.kind,
        amount=to_money(event.amount),
        date=event.date,
        description=event.description,
        card_id=event.card_id,
    )


def _plan_from_domain(plan: InstallmentPlan) -> schemas.InstallmentPlanSchema:
    return schemas.InstallmentPlanSchema(
        total_count=plan.total_count,
        per_installment_amount=plan.per_installment_amount,
        total_payable=plan.total_payable,
        schedule=[
            schemas.InstallmentEntrySchema(
                number=e.number,
                due_date=e.due_date,
                amount=e.amount,
                state=e.state,
                partial_amount_paid=e.partial_amount_paid,
                remaining_amount_due=e.remaining_amount_due,
                interest_portion=e.interest_portion,
                principal_portion=e.principal_portion,
            )
            for e in plan.schedule
        ],
        has_interest=plan.has_interest,
        annual_rate=plan.annual_rate,
        interest_total=plan.interest_total,
        advance_payments=[
            schemas.AdvancePaymentRecordSchema(
                date=r.date,
                amount=r.amount,
                installments_covered=r.installments_covered,
                partial_amount=r.partial_amount,
                payment_transaction_id=r.payment_transaction_id,
            )
            for r in plan.advance_payments
        ],
    )


def transaction_from_domain(txn: Transaction):
    common = dict(
        id=txn.id,
        amount=txn.amount,
        description=txn.description,
        category=txn.category,
        date=txn.date,
        recurrence_id=txn.recurrence_id,
        is_investment=txn.is_investment,
    )
    if isinstance(txn, Income):
        return schemas.IncomeSchema(**common)
    if isinstance(txn, Expense):
        return schemas.ExpenseSchema(
            **common,
            card_id=txn.card_id,
            installment_plan=_plan_from_domain(txn.installment_plan) if txn.installment_plan else None,
        )
    return schemas.CardPaymentSchema(
        **common,
        card_id=txn.card_id,
        payment_type=txn.payment_type,
        original_transaction_id=txn.original_transaction_id,
        installments_covered_count=txn.installments_covered_count,
        partial_amount=txn.partial_amount,
    )


def snapshot_from_domain(snapshot: Snapshot) -> schemas.SnapshotSchema:
    return schemas.SnapshotSchema(
        cards=[
            schemas.CardSchema(
                id=c.id,
                name=c.name,
                issuer=c.issuer,
                credit_limit=c.credit_limit,
                balance=c.balance,
                closing_day=c.closing_day,
                payment_day=c.payment_day,
            )
            for c in snapshot.cards
        ],
        transactions=[transaction_from_domain(t) for t in snapshot.transactions],
        recurrences=[
            schemas.RecurrenceSchema(
                id=r.id,
                kind=r.kind,
                description=r.description,
                amount=r.amount,
                day=r.day,
                category=r.category,
                card_id=r.card_id,
                active=r.active,
            )
            for r in snapshot.recurrences
        ],
        goals=[
            schemas.GoalSchema(
                id=g.id,
                name=g.name,
                category=g.category,
                target_amount=g.target_amount,
                saved_amount=g.saved_amount,
                start_date=g.start_date,
                target_date=g.target_date,
                active=g.active,
            )
            for g in snapshot.goals
        ],
    )
