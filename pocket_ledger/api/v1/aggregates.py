"""POST /v1/aggregates - Cash position metrics"""

from fastapi import APIRouter, Depends, HTTPException

from pocket_ledger.api.dependencies import get_settings, resolve_today
from pocket_ledger.api.v1.converters import snapshot_to_domain
from pocket_ledger.api.v1.schemas import (
    AggregatesRequest,
    AggregatesResponse,
    CashflowSchema,
    CategoryAmountSchema,
    GoalProgressSchema,
    PeriodSummarySchema,
    UpcomingCardPaymentSchema,
)
from pocket_ledger.config import Settings
from pocket_ledger.domain import aggregates

router = APIRouter()


def _cashflow(totals: aggregates.CashflowTotals) -> CashflowSchema:
    return CashflowSchema(income=totals.income, expense=totals.expense, net=totals.net)


@router.post("/aggregates", response_model=AggregatesResponse)
def get_aggregates(request_body: AggregatesRequest, app_settings: Settings = Depends(get_settings)):
    """Read-only metrics over the snapshot for the requested period"""
    if request_body.end < request_body.start:
        raise HTTPException(status_code=400, detail="Period end is before its start")

    today = resolve_today(request_body.today)
    snapshot = snapshot_to_domain(request_body.snapshot)
    transactions = snapshot.transactions
    summary = aggregates.period_summary(transactions, request_body.start, request_body.end)

    return AggregatesResponse(
        available_cash=aggregates.available_cash(transactions),
        period=PeriodSummarySchema(
            income=summary.income,
            expense=summary.expense,
            balance=summary.balance,
            savings_rate=summary.savings_rate,
        ),
        categories=[
            CategoryAmountSchema(category=c.category, amount=c.amount)
            for c in aggregates.category_breakdown(transactions, request_body.start, request_body.end)
        ],
        average_cashflow=_cashflow(
            aggregates.average_cashflow(
                transactions,
                months=request_body.average_months or app_settings.average_cashflow_months,
                today=today,
            )
        ),
        total_cashflow=_cashflow(aggregates.total_cashflow(transactions)),
        savings_affordability=aggregates.savings_affordability(snapshot),
        upcoming_card_payments=[
            UpcomingCardPaymentSchema(
                card_id=p.card_id,
                card_name=p.card_name,
                due_date=p.due_date,
                days_left=p.days_left,
                balance=p.balance,
                urgency=p.urgency,
            )
            for p in aggregates.upcoming_card_payments(snapshot.cards, today=today)
        ],
        goals=[
            GoalProgressSchema(
                goal_id=g.goal_id,
                percent=g.percent,
                pending=g.pending,
                reached=g.reached,
                days_since_start=g.days_since_start,
                days_to_target=g.days_to_target,
                late=g.late,
                at_risk=g.at_risk,
            )
            for g in (aggregates.goal_progress(goal, today=today) for goal in snapshot.goals if goal.active)
        ],
    )
