"""POST /v1/goals/{goal_id}/contribute - Move money into or out of a goal"""

import time

from fastapi import APIRouter, Request

from pocket_ledger.api.dependencies import domain_error_to_http, get_request_id
from pocket_ledger.api.v1.converters import snapshot_from_domain, snapshot_to_domain
from pocket_ledger.api.v1.schemas import GoalContributionRequest, SnapshotResponse
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.ledger import contribute_to_goal, withdraw_from_goal
from pocket_ledger.infrastructure.observability.logging import log_mutation
from pocket_ledger.infrastructure.observability.metrics import record_mutation

router = APIRouter()


@router.post("/goals/{goal_id}/contribute", response_model=SnapshotResponse)
def contribute(goal_id: str, request_body: GoalContributionRequest, request: Request):
    """
    Positive amounts are contributions, capped by the money free to save.
    Negative amounts are withdrawals, capped by what the goal holds.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    operation = "goal_withdrawal" if request_body.amount < 0 else "goal_contribution"

    try:
        snapshot = snapshot_to_domain(request_body.snapshot)
        if request_body.amount < 0:
            result = withdraw_from_goal(snapshot, goal_id, -request_body.amount)
        else:
            result = contribute_to_goal(snapshot, goal_id, request_body.amount)
    except DomainException as e:
        record_mutation(operation, committed=False)
        log_mutation(request_id, operation, "rejected", (time.time() - start_time) * 1000, e.code)
        raise domain_error_to_http(e)

    record_mutation(operation, committed=True)
    log_mutation(request_id, operation, "committed", (time.time() - start_time) * 1000)
    return SnapshotResponse(snapshot=snapshot_from_domain(result.snapshot))
