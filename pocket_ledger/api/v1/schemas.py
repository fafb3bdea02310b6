"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from pocket_ledger.domain.models import EntryState, PaymentType, RecurrenceKind, RiskLevel


# Snapshot


class CardSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    issuer: str = ""
    credit_limit: Decimal = Field(..., ge=0)
    balance: Decimal = Field(Decimal("0"), ge=0)
    closing_day: int = Field(..., ge=1, le=31)
    payment_day: int = Field(..., ge=1, le=31)


class InstallmentEntrySchema(BaseModel):
    number: int = Field(..., ge=1)
    due_date: date
    amount: Decimal
    state: EntryState = EntryState.PENDING
    partial_amount_paid: Decimal = Decimal("0")
    remaining_amount_due: Optional[Decimal] = None
    interest_portion: Decimal = Decimal("0")
    principal_portion: Decimal = Decimal("0")


class AdvancePaymentRecordSchema(BaseModel):
    date: date
    amount: Decimal
    installments_covered: int
    partial_amount: Decimal
    payment_transaction_id: str


class InstallmentPlanSchema(BaseModel):
    total_count: int = Field(..., ge=1)
    per_installment_amount: Decimal
    total_payable: Decimal
    schedule: List[InstallmentEntrySchema]
    paid_count: Optional[int] = Field(None, ge=0)
    remaining_count: Optional[int] = Field(None, ge=0)
    has_interest: bool = False
    annual_rate: Optional[Decimal] = None
    interest_total: Decimal = Decimal("0")
    advance_payments: List[AdvancePaymentRecordSchema] = []

    @model_validator(mode="after")
    def validate_schedule(self) -> "InstallmentPlanSchema":
        """Counters are optional; the schedule is the source of truth"""
        if len(self.schedule) != self.total_count:
            raise ValueError(
                f"Schedule has {len(self.schedule)} entries, expected {self.total_count}"
            )
        if [e.number for e in self.schedule] != list(range(1, self.total_count + 1)):
            raise ValueError("Schedule entries must be numbered 1..total_count in order")
        paid = sum(1 for e in self.schedule if e.state == EntryState.PAID)
        if self.paid_count is not None and self.paid_count != paid:
            raise ValueError(f"paid_count is {self.paid_count}, schedule has {paid} paid entries")
        if self.remaining_count is not None and self.remaining_count != self.total_count - paid:
            raise ValueError(
                f"remaining_count is {self.remaining_count}, "
                f"schedule has {self.total_count - paid} unpaid entries"
            )
        return self


class _TransactionFields(BaseModel):
    id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    description: str = ""
    category: str = ""
    date: date
    recurrence_id: Optional[str] = None
    is_investment: bool = False


class IncomeSchema(_TransactionFields):
    kind: Literal["income"] = "income"


class ExpenseSchema(_TransactionFields):
    kind: Literal["expense"] = "expense"
    card_id: Optional[str] = None
    installment_plan: Optional[InstallmentPlanSchema] = None


class CardPaymentSchema(_TransactionFields):
    kind: Literal["card_payment"] = "card_payment"
    card_id: str
    payment_type: PaymentType = PaymentType.REGULAR
    original_transaction_id: Optional[str] = None
    installments_covered_count: int = 0
    partial_amount: Decimal = Decimal("0")


TransactionSchema = Annotated[
    Union[IncomeSchema, ExpenseSchema, CardPaymentSchema],
    Field(discriminator="kind"),
]


class RecurrenceSchema(BaseModel):
    id: str = Field(..., min_length=1)
    kind: RecurrenceKind
    description: str = ""
    amount: Decimal = Field(..., gt=0)
    day: int = Field(..., ge=1, le=31)
    category: str = ""
    card_id: Optional[str] = None
    active: bool = True


class GoalSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    category: str = ""
    target_amount: Decimal = Field(..., gt=0)
    saved_amount: Decimal = Field(Decimal("0"), ge=0)
    start_date: date
    target_date: Optional[date] = None
    active: bool = True


class SnapshotSchema(BaseModel):
    """Full ledger state; the service keeps nothing between requests"""

    cards: List[CardSchema] = []
    transactions: List[TransactionSchema] = []
    recurrences: List[RecurrenceSchema] = []
    goals: List[GoalSchema] = []


# Requests


class SnapshotRequest(BaseModel):
    """Base request: the snapshot plus an optional fixed 'today'"""

    snapshot: SnapshotSchema
    today: Optional[date] = None


class HypotheticalSchema(BaseModel):
    kind: RecurrenceKind
    amount: Decimal = Field(..., gt=0)
    date: date
    description: str = "What-if"
    card_id: Optional[str] = None


class ProjectionRequest(SnapshotRequest):
    months: Optional[int] = Field(None, ge=1, le=36)
    hypothetical: Optional[HypotheticalSchema] = None


class AggregatesRequest(SnapshotRequest):
    start: date
    end: date
    average_months: Optional[int] = Field(None, ge=1, le=24)


class InstallmentPurchaseRequest(SnapshotRequest):
    purchase: ExpenseSchema
    count: int = Field(..., ge=1, le=72)
    has_interest: bool = False
    annual_rate: Optional[Decimal] = Field(None, ge=0, description="Annual effective rate as a fraction")


class CardPaymentRequest(SnapshotRequest):
    card_id: str
    amount: Decimal = Field(..., gt=0)
    available_cash: Optional[Decimal] = None


class AdvancePaymentRequest(SnapshotRequest):
    transaction_id: str
    amount: Decimal = Field(..., gt=0)
    available_cash: Optional[Decimal] = None


class TransactionRequest(SnapshotRequest):
    transaction: TransactionSchema
    available_cash: Optional[Decimal] = None


class GoalContributionRequest(SnapshotRequest):
    amount: Decimal = Field(..., description="Positive to contribute, negative to withdraw")


# Responses


class SnapshotResponse(BaseModel):
    snapshot: SnapshotSchema


class RefreshResponse(SnapshotResponse):
    materialized: List[str]
    marked_overdue: int


class ProjectionEventSchema(BaseModel):
    date: date
    event_type: str
    description: str
    amount: Decimal
    category: str
    card_id: Optional[str] = None
    transaction_id: Optional[str] = None
    is_hypothetical: bool = False
    balance_after: Decimal
    risk: RiskLevel


class ProjectionResponse(BaseModel):
    starting_balance: Decimal
    ending_balance: Decimal
    lowest_balance: Decimal
    first_danger_date: Optional[date] = None
    events: List[ProjectionEventSchema]


class PeriodSummarySchema(BaseModel):
    income: Decimal
    expense: Decimal
    balance: Decimal
    savings_rate: Decimal


class CategoryAmountSchema(BaseModel):
    category: str
    amount: Decimal


class CashflowSchema(BaseModel):
    income: Decimal
    expense: Decimal
    net: Decimal


class UpcomingCardPaymentSchema(BaseModel):
    card_id: str
    card_name: str
    due_date: date
    days_left: int
    balance: Decimal
    urgency: str


class GoalProgressSchema(BaseModel):
    goal_id: str
    percent: Decimal
    pending: Decimal
    reached: bool
    days_since_start: int
    days_to_target: Optional[int] = None
    late: bool
    at_risk: bool


class AggregatesResponse(BaseModel):
    available_cash: Decimal
    period: PeriodSummarySchema
    categories: List[CategoryAmountSchema]
    average_cashflow: CashflowSchema
    total_cashflow: CashflowSchema
    savings_affordability: Decimal
    upcoming_card_payments: List[UpcomingCardPaymentSchema]
    goals: List[GoalProgressSchema]


class StatementLineSchema(BaseModel):
    transaction_id: str
    description: str
    number: int
    total_count: int
    due_date: date
    amount_due: Decimal
    state: EntryState


class CardStatementResponse(BaseModel):
    card_id: str
    cycle_close: date
    due_date: date
    balance: Decimal
    credit_limit: Decimal
    available_credit: Decimal
    utilization: Decimal
    locked_credit: Decimal
    revolving_balance: Decimal
    installments_due: Decimal
    minimum_payment: Decimal
    total_due: Decimal
    overdue: List[StatementLineSchema]
    due_this_cycle: List[StatementLineSchema]


class InstallmentPurchaseResponse(SnapshotResponse):
    transaction: ExpenseSchema


class ResolvedInstallmentsSchema(BaseModel):
    transaction_id: str
    description: str
    numbers: List[int]
    total_count: int
    amount: Decimal


class CardPaymentResponse(SnapshotResponse):
    payment: CardPaymentSchema
    resolved: List[ResolvedInstallmentsSchema]
    unconsumed: Decimal


class AdvancePaymentResponse(SnapshotResponse):
    payment: CardPaymentSchema
    installments_covered: int
    partial_amount: Decimal

