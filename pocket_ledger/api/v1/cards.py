"""Card endpoints: statement and deletion"""

import time

from fastapi import APIRouter, Request

from pocket_ledger.api.dependencies import domain_error_to_http, get_request_id, resolve_today
from pocket_ledger.api.v1.converters import snapshot_from_domain, snapshot_to_domain
from pocket_ledger.api.v1.schemas import (
    CardStatementResponse,
    SnapshotRequest,
    SnapshotResponse,
    StatementLineSchema,
)
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.ledger import delete_card
from pocket_ledger.domain.statements import StatementLine, card_statement
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import record_mutation

router = APIRouter()


def _line(line: StatementLine) -> StatementLineSchema:
    return StatementLineSchema(
        transaction_id=line.transaction_id,
        description=line.description,
        number=line.number,
        total_count=line.total_count,
        due_date=line.due_date,
        amount_due=line.amount_due,
        state=line.state,
    )


@router.post("/cards/{card_id}/statement", response_model=CardStatementResponse)
def get_card_statement(card_id: str, request_body: SnapshotRequest):
    """Statement for the billing cycle open today, with the minimum payment"""
    snapshot = snapshot_to_domain(request_body.snapshot)
    try:
        statement = card_statement(snapshot, card_id, today=resolve_today(request_body.today))
    except DomainException as e:
        raise domain_error_to_http(e)

    return CardStatementResponse(
        card_id=statement.card_id,
        cycle_close=statement.cycle_close,
        due_date=statement.due_date,
        balance=statement.balance,
        credit_limit=statement.credit_limit,
        available_credit=statement.available_credit,
        utilization=statement.utilization,
        locked_credit=statement.locked_credit,
        revolving_balance=statement.revolving_balance,
        installments_due=statement.installments_due,
        minimum_payment=statement.minimum_payment,
        total_due=statement.total_due,
        overdue=[_line(line) for line in statement.overdue],
        due_this_cycle=[_line(line) for line in statement.due_this_cycle],
    )


@router.post("/cards/{card_id}/delete", response_model=SnapshotResponse)
def remove_card(card_id: str, request_body: SnapshotRequest, request: Request):
    """Delete a card; rejected with 409 while anything still depends on it"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = delete_card(snapshot_to_domain(request_body.snapshot), card_id)
    except DomainException as e:
        record_mutation("delete_card", committed=False)
        log_mutation(request_id, "delete_card", "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    record_mutation("delete_card", committed=True)
    log_mutation(request_id, "delete_card", "committed", (time.time() - start_time) * 1000)
    return SnapshotResponse(snapshot=snapshot_from_domain(result.snapshot))
