"""Card payment endpoints: bulk allocation and targeted advance payment"""

import time

from fastapi import APIRouter, Depends, Request

from pocket_ledger.api.dependencies import (
    cash_ceiling,
    domain_error_to_http,
    get_request_id,
    get_settings,
    resolve_today,
)
from pocket_ledger.api.v1.converters import snapshot_from_domain, snapshot_to_domain, transaction_from_domain
from pocket_ledger.api.v1.schemas import (
    AdvancePaymentRequest,
    AdvancePaymentResponse,
    CardPaymentRequest,
    CardPaymentResponse,
    ResolvedInstallmentsSchema,
)
from pocket_ledger.config import Settings
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.models import PaymentType
from pocket_ledger.domain.payments import allocate_card_payment, pay_installments_in_advance
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import record_mutation, record_payment

router = APIRouter()


@router.post("/payments/card", response_model=CardPaymentResponse)
def pay_card(
    request_body: CardPaymentRequest,
    request: Request,
    app_settings: Settings = Depends(get_settings),
):
    """
    Regular card payment.

    Settles whole installments oldest purchase first; the full amount
    reduces the card balance.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        snapshot = snapshot_to_domain(request_body.snapshot)
        result = allocate_card_payment(
            snapshot,
            request_body.card_id,
            request_body.amount,
            available_cash=cash_ceiling(snapshot, request_body.available_cash, app_settings),
            today=resolve_today(request_body.today),
        )
    except DomainException as e:
        record_mutation("card_payment", committed=False)
        log_mutation(request_id, "card_payment", "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    record_mutation("card_payment", committed=True)
    record_payment(PaymentType.REGULAR.value, result.payment.amount)
    log_mutation(request_id, "card_payment", "committed", (time.time() - start_time) * 1000)
    return CardPaymentResponse(
        snapshot=snapshot_from_domain(result.snapshot),
        payment=transaction_from_domain(result.payment),
        resolved=[
            ResolvedInstallmentsSchema(
                transaction_id=r.transaction_id,
                description=r.description,
                numbers=r.numbers,
                total_count=r.total_count,
                amount=r.amount,
            )
            for r in result.resolved
        ],
        unconsumed=result.unconsumed,
    )


@router.post("/payments/advance", response_model=AdvancePaymentResponse)
def pay_in_advance(
    request_body: AdvancePaymentRequest,
    request: Request,
    app_settings: Settings = Depends(get_settings),
):
    """Advance payment on one installment purchase, possibly leaving a partial installment"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        snapshot = snapshot_to_domain(request_body.snapshot)
        result = pay_installments_in_advance(
            snapshot,
            request_body.transaction_id,
            request_body.amount,
            available_cash=cash_ceiling(snapshot, request_body.available_cash, app_settings),
            today=resolve_today(request_body.today),
        )
    except DomainException as e:
        record_mutation("advance_payment", committed=False)
        log_mutation(request_id, "advance_payment", "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    record_mutation("advance_payment", committed=True)
    record_payment(PaymentType.ADVANCE.value, result.payment.amount)
    log_mutation(request_id, "advance_payment", "committed", (time.time() - start_time) * 1000)
    return AdvancePaymentResponse(
        snapshot=snapshot_from_domain(result.snapshot),
        payment=transaction_from_domain(result.payment),
        installments_covered=result.installments_covered,
        partial_amount=result.partial_amount,
    )
