"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar, List, Optional

from pocket_ledger.domain.exceptions import InvalidReference
from pocket_ledger.utils.money import ZERO


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    CARD_PAYMENT = "card_payment"


class PaymentType(str, Enum):
    REGULAR = "regular"
    ADVANCE = "advance"


class EntryState(str, Enum):
    """Installment entry state. Only PENDING <-> OVERDUE moves without a payment."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class RecurrenceKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


@dataclass
class Card:
    """Credit card with its billing cycle"""

    id: str
    name: str
    issuer: str
    credit_limit: Decimal
    balance: Decimal
    closing_day: int  # 1-31, clamped in short months
    payment_day: int

    @property
    def headroom(self) -> Decimal:
        return self.credit_limit - self.balance


@dataclass
class InstallmentEntry:
    """Single scheduled installment of a plan"""

    number: int
    due_date: date
    amount: Decimal
    state: EntryState = EntryState.PENDING
    partial_amount_paid: Decimal = ZERO
    remaining_amount_due: Optional[Decimal] = None
    interest_portion: Decimal = ZERO
    principal_portion: Decimal = ZERO

    @property
    def is_paid(self) -> bool:
        return self.state == EntryState.PAID

    @property
    def amount_due(self) -> Decimal:
        """What is still owed on this entry"""
        if self.is_paid:
            return ZERO
        if self.remaining_amount_due is not None:
            return self.remaining_amount_due
        return self.amount


@dataclass
class AdvancePaymentRecord:
    """Audit entry for a targeted advance payment"""

    date: date
    amount: Decimal
    installments_covered: int
    partial_amount: Decimal
    payment_transaction_id: str


@dataclass
class InstallmentPlan:
    """Amortization of one purchase into fixed installments"""

    total_count: int
    per_installment_amount: Decimal
    total_payable: Decimal
    schedule: List[InstallmentEntry]
    paid_count: int = 0
    remaining_count: int = 0
    has_interest: bool = False
    annual_rate: Optional[Decimal] = None
    interest_total: Decimal = ZERO
    advance_payments: List[AdvancePaymentRecord] = field(default_factory=list)

    @property
    def outstanding_balance(self) -> Decimal:
        return sum((entry.amount_due for entry in self.schedule), ZERO)

    def unpaid_entries(self) -> List[InstallmentEntry]:
        """Entries not yet fully paid, in sequence order"""
        return [entry for entry in self.schedule if not entry.is_paid]

    def recount(self) -> None:
        """Resync paid/remaining counters from the schedule"""
        self.paid_count = sum(1 for entry in self.schedule if entry.is_paid)
        self.remaining_count = self.total_count - self.paid_count


@dataclass(kw_only=True)
class Transaction:
    """Base ledger entry; use Income, Expense or CardPayment"""

    kind: ClassVar[TransactionKind]

    id: str
    amount: Decimal
    description: str
    category: str
    date: date
    recurrence_id: Optional[str] = None
    is_investment: bool = False

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_id is not None


@dataclass(kw_only=True)
class Income(Transaction):
    kind: ClassVar[TransactionKind] = TransactionKind.INCOME


@dataclass(kw_only=True)
class Expense(Transaction):
    """Purchase paid in cash (card_id is None) or charged to a card"""

    kind: ClassVar[TransactionKind] = TransactionKind.EXPENSE

    card_id: Optional[str] = None
    installment_plan: Optional[InstallmentPlan] = None

    @property
    def is_cash(self) -> bool:
        return self.card_id is None

    @property
    def is_installment(self) -> bool:
        return self.installment_plan is not None


@dataclass(kw_only=True)
class CardPayment(Transaction):
    """Cash paid towards a card, regular or targeted at one installment purchase"""

    kind: ClassVar[TransactionKind] = TransactionKind.CARD_PAYMENT

    card_id: str
    payment_type: PaymentType = PaymentType.REGULAR
    original_transaction_id: Optional[str] = None
    installments_covered_count: int = 0
    partial_amount: Decimal = ZERO


@dataclass
class Recurrence:
    """Monthly template that materializes into transactions"""

    id: str
    kind: RecurrenceKind
    description: str
    amount: Decimal
    day: int
    category: str
    card_id: Optional[str] = None
    active: bool = True


@dataclass
class Goal:
    """Savings target"""

    id: str
    name: str
    category: str
    target_amount: Decimal
    saved_amount: Decimal
    start_date: date
    target_date: Optional[date] = None
    active: bool = True


@dataclass
class Snapshot:
    """Full ledger state exchanged with the persistence collaborator"""

    cards: List[Card] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    recurrences: List[Recurrence] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)

    def card(self, card_id: str) -> Card:
        for card in self.cards:
            if card.id == card_id:
                return card
        raise InvalidReference("card", card_id)

    def transaction(self, transaction_id: str) -> Transaction:
        for txn in self.transactions:
            if txn.id == transaction_id:
                return txn
        raise InvalidReference("transaction", transaction_id)

    def recurrence(self, recurrence_id: str) -> Recurrence:
        for rec in self.recurrences:
            if rec.id == recurrence_id:
                return rec
        raise InvalidReference("recurrence", recurrence_id)

    def goal(self, goal_id: str) -> Goal:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        raise InvalidReference("goal", goal_id)

    def installment_purchases(self, card_id: Optional[str] = None) -> List[Expense]:
        """Expenses carrying an installment plan, optionally for one card"""
        return [
            t
            for t in self.transactions
            if isinstance(t, Expense)
            and t.installment_plan is not None
            and (card_id is None or t.card_id == card_id)
        ]


@dataclass
class ProjectionEvent:
    """One dated, signed cash movement in the forward timeline"""

    date: date
    event_type: str  # card_due | installment | recurring_income | recurring_expense | hypothetical
    description: str
    amount: Decimal
    category: str
    card_id: Optional[str] = None
    transaction_id: Optional[str] = None
    is_hypothetical: bool = False
    balance_after: Decimal = ZERO
    risk: RiskLevel = RiskLevel.SAFE


@dataclass
class HypotheticalEvent:
    """What-if movement injected into a projection"""

    kind: RecurrenceKind
    amount: Decimal
    date: date
    description: str
    card_id: Optional[str] = None  # None means cash


@dataclass
class Projection:
    """Output of the projection engine"""

    starting_balance: Decimal
    events: List[ProjectionEvent]
    ending_balance: Decimal
    lowest_balance: Decimal
    first_danger_date: Optional[date] = None
