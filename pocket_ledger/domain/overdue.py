"""Date-driven overdue marking for installment schedules"""

import copy
from dataclasses import dataclass
from datetime import date

from pocket_ledger.domain.models import EntryState, Snapshot


@dataclass
class OverdueResult:
    snapshot: Snapshot
    marked: int


def mark_overdue(snapshot: Snapshot, today: date | None = None) -> OverdueResult:
    """
    Flag pending or partial entries whose due date is before ``today``.

    Idempotent: a converged snapshot comes back unchanged with marked == 0.
    Partial entries keep their partial amounts when they go overdue.
    """
    if today is None:
        today = date.today()

    new_snapshot = copy.deepcopy(snapshot)
    marked = 0
    for purchase in new_snapshot.installment_purchases():
        for entry in purchase.installment_plan.schedule:
            if entry.state in (EntryState.PENDING, EntryState.PARTIAL) and entry.due_date < today:
                entry.state = EntryState.OVERDUE
                marked += 1

    return OverdueResult(snapshot=new_snapshot, marked=marked)
