"""POST /v1/installments - Installment purchase on a card"""

import time

from fastapi import APIRouter, Request

from pocket_ledger.api.dependencies import domain_error_to_http, get_request_id, resolve_today
from pocket_ledger.api.v1.converters import (
    snapshot_from_domain,
    snapshot_to_domain,
    transaction_from_domain,
    transaction_to_domain,
)
from pocket_ledger.api.v1.schemas import InstallmentPurchaseRequest, InstallmentPurchaseResponse
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.installments import create_installment_purchase
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.post("/installments", response_model=InstallmentPurchaseResponse)
def create_installments(request_body: InstallmentPurchaseRequest, request: Request):
    """
    Split a card purchase into installments.

    Returns 422 with code credit_limit_exceeded when the total payable does
    not fit in the card's available credit.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = create_installment_purchase(
            snapshot_to_domain(request_body.snapshot),
            transaction_to_domain(request_body.purchase),
            request_body.count,
            has_interest=request_body.has_interest,
            annual_rate=request_body.annual_rate,
            today=resolve_today(request_body.today),
        )
    except DomainException as e:
        record_mutation("installment_purchase", committed=False)
        log_mutation(
            request_id, "installment_purchase", "rejected", (time.time() - start_time) * 1000, e.code
        )
        raise domain_error_to_http(e)

    record_mutation("installment_purchase", committed=True)
    log_mutation(request_id, "installment_purchase", "committed", (time.time() - start_time) * 1000)
    return InstallmentPurchaseResponse(
        snapshot=snapshot_from_domain(result.snapshot),
        transaction=transaction_from_domain(result.transaction),
    )
