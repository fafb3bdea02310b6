"""Prometheus metrics for ledger mutations, payments and projections"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Mutation metrics
mutation_counter = Counter(
    "pocket_ledger_mutations_total",
    "Snapshot mutations by operation and outcome",
    ["operation", "outcome"],  # outcome: committed | rejected
)

# Payment metrics
payment_amount_histogram = Histogram(
    "pocket_ledger_payment_amount",
    "Card payment amounts",
    ["payment_type"],  # regular | advance
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

# Recurrence metrics
recurrences_materialized_counter = Counter(
    "pocket_ledger_recurrences_materialized_total",
    "Transactions created from recurrences",
)

# Projection metrics
projection_event_counter = Counter(
    "pocket_ledger_projection_events_total",
    "Projected events by risk level",
    ["risk"],  # safe | warning | danger
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_mutation(operation: str, committed: bool) -> None:
    mutation_counter.labels(
        operation=operation, outcome="committed" if committed else "rejected"
    ).inc()


def record_payment(payment_type: str, amount: Decimal) -> None:
    payment_amount_histogram.labels(payment_type=payment_type).observe(float(amount))


def record_projection(risks) -> None:
    """Count projected events per risk level"""
    for risk in risks:
        projection_event_counter.labels(risk=risk).inc()
