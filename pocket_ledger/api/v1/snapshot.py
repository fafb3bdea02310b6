"""POST /v1/snapshot/refresh - Bring a loaded snapshot up to date"""

import time

from fastapi import APIRouter, Request

from pocket_ledger.api.dependencies import domain_error_to_http, get_request_id, resolve_today
from pocket_ledger.api.v1.converters import snapshot_from_domain, snapshot_to_domain
from pocket_ledger.api.v1.schemas import RefreshResponse, SnapshotRequest
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.overdue import mark_overdue
from pocket_ledger.domain.recurrences import materialize_recurrences
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import (
    record_mutation,
    recurrences_materialized_counter,
)

router = APIRouter()


@router.post("/snapshot/refresh", response_model=RefreshResponse)
def refresh_snapshot(request_body: SnapshotRequest, request: Request):
    """
    Run the on-load passes over a snapshot.

    Flow:
    1. Materialize recurrences due this month (idempotent)
    2. Mark lapsed installment entries as overdue
    3. Return the refreshed snapshot
    """
    start_time = time.time()
    request_id = get_request_id(request)
    today = resolve_today(request_body.today)

    try:
        snapshot = snapshot_to_domain(request_body.snapshot)
        run = materialize_recurrences(snapshot, today=today)
        overdue = mark_overdue(run.snapshot, today=today)
    except DomainException as e:
        record_mutation("refresh", committed=False)
        log_mutation(request_id, "refresh", "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    recurrences_materialized_counter.inc(len(run.created))
    record_mutation("refresh", committed=True)
    log_mutation(request_id, "refresh", "committed", (time.time() - start_time) * 1000)

    return RefreshResponse(
        snapshot=snapshot_from_domain(overdue.snapshot),
        materialized=[t.id for t in run.created],
        marked_overdue=overdue.marked,
    )
