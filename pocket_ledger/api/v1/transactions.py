"""Transaction endpoints: add and delete"""

import time

from fastapi import APIRouter, Depends, Request

from pocket_ledger.api.dependencies import cash_ceiling, domain_error_to_http, get_request_id, get_settings
from pocket_ledger.api.v1.converters import snapshot_from_domain, snapshot_to_domain, transaction_to_domain
from pocket_ledger.api.v1.schemas import SnapshotRequest, SnapshotResponse, TransactionRequest
from pocket_ledger.config import Settings
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.ledger import add_transaction, delete_transaction
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.post("/transactions", response_model=SnapshotResponse)
def create_transaction(
    request_body: TransactionRequest,
    request: Request,
    app_settings: Settings = Depends(get_settings),
):
    """Add an income, a cash or card expense, or a direct card payment"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        snapshot = snapshot_to_domain(request_body.snapshot)
        result = add_transaction(
            snapshot,
            transaction_to_domain(request_body.transaction),
            available_cash=cash_ceiling(snapshot, request_body.available_cash, app_settings),
        )
    except DomainException as e:
        record_mutation("add_transaction", committed=False)
        log_mutation(request_id, "add_transaction", "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    record_mutation("add_transaction", committed=True)
    log_mutation(request_id, "add_transaction", "committed", (time.time() - start_time) * 1000)
    return SnapshotResponse(snapshot=snapshot_from_domain(result.snapshot))


@router.post("/transactions/{transaction_id}/delete", response_model=SnapshotResponse)
def remove_transaction(transaction_id: str, request_body: SnapshotRequest, request: Request):
    """Delete a transaction, reversing its effect on the card balance"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = delete_transaction(snapshot_to_domain(request_body.snapshot), transaction_id)
    except DomainException as e:
        record_mutation("delete_transaction", committed=False)
        log_mutation(
            request_id, "delete_transaction", "rejected", (time.time() - start_time) * 1000, e.code
        )
        raise domain_error_to_http(e)

    record_mutation("delete_transaction", committed=True)
    log_mutation(request_id, "delete_transaction", "committed", (time.time() - start_time) * 1000)
    return SnapshotResponse(snapshot=snapshot_from_domain(result.snapshot))
