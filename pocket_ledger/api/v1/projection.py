"""POST /v1/projection - Forward cash-flow simulation"""

import time

from fastapi import APIRouter, Depends, Request

from pocket_ledger.api.dependencies import domain_error_to_http, get_request_id, get_settings, resolve_today
from pocket_ledger.api.v1.converters import hypothetical_to_domain, snapshot_to_domain
from pocket_ledger.api.v1.schemas import ProjectionEventSchema, ProjectionRequest, ProjectionResponse
from pocket_ledger.config import Settings
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.projection import project
from pocket_ledger.infrastructure.observability.logging import log_projection
from pocket_ledger.infrastructure.observability.metrics import record_projection

router = APIRouter()


@router.post("/projection", response_model=ProjectionResponse)
def create_projection(
    request_body: ProjectionRequest,
    request: Request,
    app_settings: Settings = Depends(get_settings),
):
    """
    Simulate available cash over the coming months.

    An optional what-if income or expense can be injected; it is flagged
    as hypothetical in the returned timeline.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    months = request_body.months or app_settings.projection_months

    snapshot = snapshot_to_domain(request_body.snapshot)
    hypothetical = (
        hypothetical_to_domain(request_body.hypothetical) if request_body.hypothetical else None
    )
    try:
        result = project(
            snapshot,
            months=months,
            hypothetical=hypothetical,
            warning_buffer_ratio=app_settings.warning_buffer_ratio,
            today=resolve_today(request_body.today),
        )
    except DomainException as e:
        raise domain_error_to_http(e)

    record_projection(event.risk.value for event in result.events)
    log_projection(
        request_id,
        months,
        len(result.events),
        str(result.lowest_balance),
        result.first_danger_date.isoformat() if result.first_danger_date else None,
        (time.time() - start_time) * 1000,
    )

    return ProjectionResponse(
        starting_balance=result.starting_balance,
        ending_balance=result.ending_balance,
        lowest_balance=result.lowest_balance,
        first_danger_date=result.first_danger_date,
        events=[
            ProjectionEventSchema(
                date=e.date,
                event_type=e.event_type,
                description=e.description,
                amount=e.amount,
                category=e.category,
                card_id=e.card_id,
                transaction_id=e.transaction_id,
                is_hypothetical=e.is_hypothetical,
                balance_after=e.balance_after,
                risk=e.risk,
            )
            for e in result.events
        ],
    )
