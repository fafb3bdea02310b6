"""Integration tests for API endpoints"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

TODAY = "2024-05-15"


def _laptop_purchase(card_id: str = "visa", amount: str = "600.00") -> dict:
    return {
        "kind": "expense",
        "id": "laptop",
        "amount": amount,
        "description": "Laptop",
        "category": "Electronics",
        "date": "2024-05-10",
        "card_id": card_id,
    }


@pytest.fixture
def installment_snapshot(client: TestClient, snapshot_payload: dict) -> dict:
    """Sample snapshot plus a 600.00 laptop in 4 installments on the Visa"""
    response = client.post(
        "/v1/installments",
        json={"snapshot": snapshot_payload, "today": TODAY, "purchase": _laptop_purchase(), "count": 4},
    )
    assert response.status_code == 200
    return response.json()["snapshot"]


def test_health_endpoint(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "pocket_ledger_mutations_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_refresh_materializes_due_recurrences(client: TestClient, snapshot_payload: dict):
    response = client.post("/v1/snapshot/refresh", json={"snapshot": snapshot_payload, "today": "2024-05-25"})

    assert response.status_code == 200
    data = response.json()
    assert len(data["materialized"]) == 1  # gym on the 20th; salary already recorded
    assert len(data["snapshot"]["transactions"]) == 4

    again = client.post("/v1/snapshot/refresh", json={"snapshot": data["snapshot"], "today": "2024-05-28"})
    assert again.json()["materialized"] == []


def test_refresh_marks_overdue(client: TestClient, installment_snapshot: dict):
    response = client.post("/v1/snapshot/refresh", json={"snapshot": installment_snapshot, "today": "2024-07-10"})

    assert response.status_code == 200
    assert response.json()["marked_overdue"] == 1
    laptop = next(t for t in response.json()["snapshot"]["transactions"] if t["id"] == "laptop")
    assert laptop["installment_plan"]["schedule"][0]["state"] == "overdue"


def test_projection(client: TestClient, snapshot_payload: dict):
    response = client.post("/v1/projection", json={"snapshot": snapshot_payload, "today": TODAY, "months": 2})

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["starting_balance"]) == Decimal("2000.00")
    assert [e["date"] for e in data["events"]] == sorted(e["date"] for e in data["events"])
    assert {e["risk"] for e in data["events"]} <= {"safe", "warning", "danger"}


def test_projection_with_card_what_if(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/projection",
        json={
            "snapshot": snapshot_payload,
            "today": TODAY,
            "months": 1,
            "hypothetical": {
                "kind": "expense",
                "amount": "100.00",
                "date": "2024-05-16",
                "description": "Headphones",
                "card_id": "visa",
            },
        },
    )

    assert response.status_code == 200
    visa_due = next(e for e in response.json()["events"] if e["card_id"] == "visa")
    assert visa_due["is_hypothetical"] is True
    assert Decimal(visa_due["amount"]) == Decimal("-300.00")


def test_projection_unknown_card_what_if(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/projection",
        json={
            "snapshot": snapshot_payload,
            "today": TODAY,
            "hypothetical": {"kind": "expense", "amount": "1", "date": TODAY, "card_id": "ghost"},
        },
    )
    assert response.status_code == 404


def test_aggregates(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/aggregates",
        json={"snapshot": snapshot_payload, "today": TODAY, "start": "2024-05-01", "end": "2024-05-31"},
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["available_cash"]) == Decimal("2000.00")
    assert Decimal(data["savings_affordability"]) == Decimal("800.00")
    assert Decimal(data["period"]["savings_rate"]) == Decimal("60.0")
    assert data["categories"][0]["category"] == "Housing"
    assert [p["card_id"] for p in data["upcoming_card_payments"]] == ["visa", "amex"]
    assert data["goals"][0]["goal_id"] == "goal-trip"


def test_aggregates_rejects_inverted_period(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/aggregates",
        json={"snapshot": snapshot_payload, "start": "2024-05-31", "end": "2024-05-01"},
    )
    assert response.status_code == 400


def test_card_statement(client: TestClient, installment_snapshot: dict):
    response = client.post("/v1/cards/visa/statement", json={"snapshot": installment_snapshot, "today": TODAY})

    assert response.status_code == 200
    data = response.json()
    assert data["due_date"] == "2024-06-05"
    assert Decimal(data["locked_credit"]) == Decimal("600.00")
    assert Decimal(data["revolving_balance"]) == Decimal("200.00")


def test_card_statement_unknown_card(client: TestClient, snapshot_payload: dict):
    response = client.post("/v1/cards/ghost/statement", json={"snapshot": snapshot_payload})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "invalid_reference"


def test_installment_purchase(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/installments",
        json={
            "snapshot": snapshot_payload,
            "today": TODAY,
            "purchase": _laptop_purchase(amount="1200.00"),
            "count": 12,
        },
    )

    assert response.status_code == 200
    plan = response.json()["transaction"]["installment_plan"]
    assert Decimal(plan["per_installment_amount"]) == Decimal("100.00")
    assert len(plan["schedule"]) == 12
    visa = next(c for c in response.json()["snapshot"]["cards"] if c["id"] == "visa")
    assert Decimal(visa["balance"]) == Decimal("1400.00")


def test_installment_purchase_over_limit(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/installments",
        json={"snapshot": snapshot_payload, "today": TODAY, "purchase": _laptop_purchase("amex"), "count": 6},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "credit_limit_exceeded"


def test_installment_purchase_invalid_count(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/installments",
        json={"snapshot": snapshot_payload, "purchase": _laptop_purchase(), "count": 0},
    )
    assert response.status_code == 422


def test_card_payment(client: TestClient, installment_snapshot: dict):
    response = client.post(
        "/v1/payments/card",
        json={"snapshot": installment_snapshot, "today": TODAY, "card_id": "visa", "amount": "320.00"},
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["unconsumed"]) == Decimal("20.00")
    assert data["resolved"][0]["numbers"] == [1, 2]
    assert data["payment"]["kind"] == "card_payment"


def test_card_payment_above_available_cash(client: TestClient, installment_snapshot: dict):
    response = client.post(
        "/v1/payments/card",
        json={"snapshot": installment_snapshot, "today": TODAY, "card_id": "visa", "amount": "2000.01"},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "insufficient_funds"


def _laptop_plan(snapshot: dict) -> dict:
    laptop = next(t for t in snapshot["transactions"] if t["id"] == "laptop")
    return laptop["installment_plan"]


def test_card_payment_rejects_truncated_schedule(client: TestClient, installment_snapshot: dict):
    plan = _laptop_plan(installment_snapshot)
    plan["schedule"] = plan["schedule"][:1]
    del plan["remaining_count"]

    response = client.post(
        "/v1/payments/card",
        json={"snapshot": installment_snapshot, "today": TODAY, "card_id": "visa", "amount": "300.00"},
    )

    assert response.status_code == 422


def test_card_payment_rejects_inconsistent_counters(client: TestClient, installment_snapshot: dict):
    _laptop_plan(installment_snapshot)["remaining_count"] = 0

    response = client.post(
        "/v1/payments/card",
        json={"snapshot": installment_snapshot, "today": TODAY, "card_id": "visa", "amount": "300.00"},
    )

    assert response.status_code == 422


def test_card_payment_recounts_plan_without_counters(client: TestClient, installment_snapshot: dict):
    plan = _laptop_plan(installment_snapshot)
    del plan["paid_count"]
    del plan["remaining_count"]

    response = client.post(
        "/v1/payments/card",
        json={"snapshot": installment_snapshot, "today": TODAY, "card_id": "visa", "amount": "300.00"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["resolved"][0]["numbers"] == [1, 2]
    plan = _laptop_plan(data["snapshot"])
    assert (plan["paid_count"], plan["remaining_count"]) == (2, 2)


def test_advance_payment(client: TestClient, installment_snapshot: dict):
    response = client.post(
        "/v1/payments/advance",
        json={"snapshot": installment_snapshot, "today": TODAY, "transaction_id": "laptop", "amount": "170.00"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["installments_covered"] == 1
    assert Decimal(data["partial_amount"]) == Decimal("20.00")
    assert data["payment"]["payment_type"] == "advance"


def test_advance_payment_over_allocation(client: TestClient, installment_snapshot: dict):
    response = client.post(
        "/v1/payments/advance",
        json={"snapshot": installment_snapshot, "today": TODAY, "transaction_id": "laptop", "amount": "600.01"},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "over_allocation"


def test_add_and_delete_transaction(client: TestClient, snapshot_payload: dict):
    added = client.post(
        "/v1/transactions",
        json={
            "snapshot": snapshot_payload,
            "transaction": {
                "kind": "expense",
                "id": "shoes",
                "amount": "80.00",
                "description": "Shoes",
                "category": "Clothing",
                "date": TODAY,
                "card_id": "visa",
            },
        },
    )
    assert added.status_code == 200
    snapshot = added.json()["snapshot"]
    assert Decimal(next(c for c in snapshot["cards"] if c["id"] == "visa")["balance"]) == Decimal("280.00")

    deleted = client.post("/v1/transactions/shoes/delete", json={"snapshot": snapshot})
    assert deleted.status_code == 200
    cards = deleted.json()["snapshot"]["cards"]
    assert Decimal(next(c for c in cards if c["id"] == "visa")["balance"]) == Decimal("200.00")


def test_add_transaction_rejects_unknown_kind(client: TestClient, snapshot_payload: dict):
    response = client.post(
        "/v1/transactions",
        json={
            "snapshot": snapshot_payload,
            "transaction": {"kind": "refund", "id": "x", "amount": "1", "date": TODAY},
        },
    )
    assert response.status_code == 422


def test_delete_card_in_use(client: TestClient, snapshot_payload: dict):
    response = client.post("/v1/cards/visa/delete", json={"snapshot": snapshot_payload})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "reference_in_use"


def test_goal_contribution_and_withdrawal(client: TestClient, snapshot_payload: dict):
    too_much = client.post("/v1/goals/goal-trip/contribute", json={"snapshot": snapshot_payload, "amount": "900"})
    assert too_much.status_code == 422
    assert too_much.json()["detail"]["code"] == "insufficient_funds"

    withdrawn = client.post("/v1/goals/goal-trip/contribute", json={"snapshot": snapshot_payload, "amount": "-200"})
    assert withdrawn.status_code == 200
    assert Decimal(withdrawn.json()["snapshot"]["goals"][0]["saved_amount"]) == Decimal("300.00")
