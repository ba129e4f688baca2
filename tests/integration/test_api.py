"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from finance_core.infrastructure.database.models import (
    MovementRecord,
    PendingOccurrenceRecord,
    RecurringPostingRecord,
    RecurringRuleRecord,
)
from finance_core.infrastructure.database.repositories import LedgerRepository

pytestmark = pytest.mark.integration


@pytest.fixture
def movements_payload():
    return [
        {
            "id": "salary-1",
            "description": "Salario",
            "amount_cents": 500000000,
            "direction": "income",
            "category": "salary",
            "date": "2026-03-01",
            "entity_id": "bank",
            "payment_method": "transfer",
        },
        {
            "id": "groceries-1",
            "description": "Mercado Éxito",
            "amount_cents": 600000,
            "direction": "expense",
            "category": "groceries",
            "date": "2026-03-10",
            "entity_id": "cash",
            "payment_method": "cash",
        },
    ]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/amounts/format", json={"cents": 100})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finance_engine_computations_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_parse_amount_default_locale(client: TestClient):
    response = client.post("/v1/amounts/parse", json={"text": "$ 1.234.567,89"})

    assert response.status_code == 200
    assert response.json() == {"cents": 123456789, "formatted": "1.234.567,89", "locale": "es-CO"}


def test_parse_amount_invalid_is_422(client: TestClient):
    response = client.post("/v1/amounts/parse", json={"text": "doce mil"})

    assert response.status_code == 422
    assert "not numeric" in response.json()["detail"]


def test_format_amount_locale(client: TestClient):
    response = client.post("/v1/amounts/format", json={"cents": 123456, "locale": "en-US"})
    assert response.json()["formatted"] == "1,234.56"


def test_amortization_schedule(client: TestClient):
    response = client.post(
        "/v1/amortization/schedule",
        json={"principal_cents": 10000000, "annual_rate": 0.12, "term_months": 12, "start_date": "2026-01-15"},
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["entries"]) == 12
    assert data["entries"][0]["due_date"] == "2026-02-15"
    assert data["entries"][-1]["remaining_principal_cents"] == 0
    assert sum(e["principal_cents"] for e in data["entries"]) == 10000000
    assert data["total_paid_cents"] == 10000000 + data["total_interest_cents"]


def test_amortization_invalid_rate(client: TestClient):
    response = client.post(
        "/v1/amortization/schedule",
        json={"principal_cents": 10000000, "annual_rate": 0, "term_months": 12, "start_date": "2026-01-15"},
    )
    assert response.status_code == 422


def test_amortization_recompute(client: TestClient):
    schedule = client.post(
        "/v1/amortization/schedule",
        json={"principal_cents": 10000000, "annual_rate": 0.12, "term_months": 12, "start_date": "2026-01-15"},
    ).json()["entries"]

    response = client.post(
        "/v1/amortization/recompute",
        json={
            "schedule": schedule,
            "from_period": 7,
            "new_principal_cents": schedule[5]["remaining_principal_cents"] - 1000000,
            "annual_rate": 0.12,
            "strategy": "reduce_term",
        },
    )

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert entries[:6] == schedule[:6]
    assert entries[-1]["remaining_principal_cents"] == 0


def test_budget_evaluation(client: TestClient, movements_payload):
    body = {
        "budgets": [
            {"id": "food", "name": "Mercado", "limit_cents": 500000, "period": "monthly", "categories": ["groceries"]}
        ],
        "movements": movements_payload,
        "today": "2026-03-20",
    }
    response = client.post("/v1/budgets/evaluate", json=body)

    assert response.status_code == 200
    [status] = response.json()
    assert status["usage_percentage"] == 120
    assert status["status"] == "exceeded"
    assert [a["threshold"] for a in status["pending_alerts"]] == [0.8, 1.0]

    body["fired_alerts"] = status["pending_alerts"]
    [again] = client.post("/v1/budgets/evaluate", json=body).json()
    assert again["pending_alerts"] == []


def test_budget_with_zero_limit_is_422(client: TestClient):
    response = client.post(
        "/v1/budgets/evaluate",
        json={"budgets": [{"id": "b", "name": "Zero", "limit_cents": 0, "period": "monthly"}], "today": "2026-03-20"},
    )
    assert response.status_code == 422


def test_analytics_report_defaults_granularity(client: TestClient, movements_payload):
    response = client.post(
        "/v1/analytics/report",
        json={"movements": movements_payload, "start_date": "2026-03-01", "end_date": "2026-03-10"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["granularity"] == "daily"
    assert len(data["time_series"]) == 10
    assert data["net_cents"] == 500000000 - 600000


def test_analytics_inverted_range_is_422(client: TestClient):
    response = client.post(
        "/v1/analytics/report",
        json={"start_date": "2026-03-10", "end_date": "2026-03-01", "granularity": "daily"},
    )
    assert response.status_code == 422


def test_health_snapshot_zero_income(client: TestClient):
    response = client.post(
        "/v1/health/snapshot",
        json={
            "movements": [
                {
                    "id": "rent",
                    "description": "Arriendo",
                    "amount_cents": 150000,
                    "direction": "expense",
                    "category": "housing",
                    "date": "2026-03-05",
                    "entity_id": "bank",
                }
            ],
            "entities": [{"id": "bank", "name": "Bancolombia", "total_cents": 99999999}],
            "today": "2026-03-31",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["savings_rate"] == 0.0
    assert data["debt_to_income_ratio"] == "undefined"
    assert data["total_assets_cents"] == -150000


def test_forecast_first_negative_date(client: TestClient):
    response = client.post(
        "/v1/forecast",
        json={
            "rules": [
                {
                    "id": "rent",
                    "description": "Arriendo",
                    "amount_cents": 50000,
                    "category": "housing",
                    "frequency": "monthly",
                    "start_date": "2026-01-15",
                    "next_due_date": "2026-01-15",
                }
            ],
            "start_date": "2026-01-01",
            "horizon_months": 3,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["first_negative_date"] == "2026-01-15"
    assert [p["closing_balance_cents"] for p in data["entries"]] == [-50000, -100000, -150000]


def test_forecast_uses_default_horizon(client: TestClient):
    response = client.post("/v1/forecast", json={"start_date": "2026-01-01"})

    assert response.status_code == 200
    assert len(response.json()["entries"]) == 6


def test_movement_search(client: TestClient, movements_payload):
    response = client.post(
        "/v1/movements/search",
        json={"movements": movements_payload, "search": "éxito", "period": "month", "today": "2026-03-31"},
    )

    assert response.status_code == 200
    assert [m["id"] for m in response.json()] == ["groceries-1"]


def test_entity_balances(client: TestClient, movements_payload):
    response = client.post(
        "/v1/entities/balances",
        json={
            "entities": [{"id": "bank", "name": "Bancolombia"}, {"id": "savings", "name": "Ahorros"}],
            "movements": movements_payload,
        },
    )

    assert response.json() == {
        "balances": {"bank": 500000000, "savings": 0, "cash": -600000},
        "total_cents": 500000000 - 600000,
    }


def test_entity_transfer(client: TestClient, movements_payload):
    body = {
        "from_entity": {"id": "bank", "name": "Bancolombia"},
        "to_entity": {"id": "cash", "name": "Efectivo"},
        "amount_cents": 20000000,
        "movements": movements_payload,
        "today": "2026-03-12",
        "transfer_id": "atm-1",
    }
    response = client.post("/v1/entities/transfer", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["outgoing"]["id"] == "atm-1:out"
    assert data["outgoing"]["direction"] == "expense"
    assert data["incoming"]["entity_id"] == "cash"
    assert data["incoming"]["category"] == "transfer"
    assert data["incoming"]["description"] == "Transfer Bancolombia -> Efectivo"
    assert data["balances"] == {"bank": 480000000, "cash": 19400000}


def test_entity_transfer_insufficient_balance(client: TestClient, movements_payload):
    body = {
        "from_entity": {"id": "cash", "name": "Efectivo"},
        "to_entity": {"id": "bank", "name": "Bancolombia"},
        "amount_cents": 100,
        "movements": movements_payload,
        "today": "2026-03-12",
    }
    response = client.post("/v1/entities/transfer", json=body)

    assert response.status_code == 422
    assert "Efectivo" in response.json()["detail"]


def test_goal_progress(client: TestClient):
    response = client.post(
        "/v1/goals/progress",
        json={
            "goals": [{"id": "trip", "name": "Viaje", "target_cents": 1000000}],
            "contributions": [{"goal_id": "trip", "amount_cents": 250000, "date": "2026-01-01"}],
            "today": "2026-01-11",
        },
    )

    [progress] = response.json()
    assert progress["percentage"] == 25
    assert progress["projected_completion"] == "2026-02-10"


def test_recurring_due_is_stateless(client: TestClient, db: Session):
    rule = {
        "id": "netflix",
        "description": "Netflix",
        "amount_cents": 3890000,
        "category": "subscriptions",
        "frequency": "monthly",
        "start_date": "2026-01-31",
        "next_due_date": "2026-01-31",
    }
    response = client.post("/v1/recurring/due", json={"rules": [rule], "today": "2026-02-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["due_rule_ids"] == ["netflix"]
    assert [m["id"] for m in data["movements"]] == ["netflix:2026-01"]
    assert data["rules"][0]["next_due_date"] == "2026-02-28"
    assert db.query(MovementRecord).count() == 0


def test_recurring_run_posts_once_per_period(client: TestClient, db: Session):
    """A second run on the same day does not double-post"""
    client.put(
        "/v1/recurring/rules/netflix",
        json={
            "id": "ignored",
            "description": "Netflix",
            "amount_cents": 3890000,
            "category": "subscriptions",
            "frequency": "monthly",
            "start_date": "2026-01-31",
            "next_due_date": "2026-01-31",
        },
    )

    first = client.post("/v1/recurring/run", json={"today": "2026-03-05"})
    assert first.status_code == 200
    assert first.json()["posted_movement_ids"] == ["netflix:2026-01", "netflix:2026-02"]

    second = client.post("/v1/recurring/run", json={"today": "2026-03-05"})
    assert second.json()["posted_movement_ids"] == []

    assert db.query(MovementRecord).count() == 2
    assert db.query(RecurringPostingRecord).count() == 2
    assert db.get(RecurringRuleRecord, "netflix").next_due_date.isoformat() == "2026-03-31"


def test_posted_movements_load_as_ledger(client: TestClient, db: Session):
    client.put(
        "/v1/recurring/rules/salary",
        json={
            "id": "salary",
            "description": "Salario",
            "amount_cents": 500000000,
            "direction": "income",
            "category": "salary",
            "entity_id": "bank",
            "frequency": "biweekly",
            "start_date": "2026-01-02",
            "next_due_date": "2026-01-02",
        },
    )
    client.post("/v1/recurring/run", json={"today": "2026-01-20"})

    movements = LedgerRepository(db).load_movements()
    assert [(m.id, m.direction, m.date.isoformat()) for m in movements] == [
        ("salary:2026-W01", "income", "2026-01-02"),
        ("salary:2026-W03", "income", "2026-01-16"),
    ]


def test_forecast_zero_horizon_is_422(client: TestClient):
    response = client.post("/v1/forecast", json={"start_date": "2026-01-01", "horizon_months": 0})
    assert response.status_code == 422


def test_manual_rule_queues_then_confirms(client: TestClient, db: Session):
    """Queued occurrences survive the run and post only when confirmed"""
    client.put(
        "/v1/recurring/rules/power",
        json={
            "id": "power",
            "description": "Energía",
            "amount_cents": 12000000,
            "category": "utilities",
            "frequency": "monthly",
            "start_date": "2026-01-31",
            "next_due_date": "2026-01-31",
            "auto_post": False,
            "is_estimated": True,
        },
    )

    run = client.post("/v1/recurring/run", json={"today": "2026-03-05"}).json()
    assert run["posted_movement_ids"] == []
    assert [q["period_label"] for q in run["queued"]] == ["2026-01", "2026-02"]

    pending = client.get("/v1/recurring/pending", params={"rule_id": "power"}).json()
    assert [p["period_label"] for p in pending] == ["2026-01", "2026-02"]

    # A repeated run does not queue the same periods again
    assert client.post("/v1/recurring/run", json={"today": "2026-03-05"}).json()["queued"] == []
    assert db.query(PendingOccurrenceRecord).count() == 2

    confirmed = client.post(
        "/v1/recurring/confirm",
        json={"rule_id": "power", "period_label": "2026-01", "amount_cents": 13450000},
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["id"] == "power:2026-01"
    assert confirmed.json()["amount_cents"] == 13450000
    assert confirmed.json()["date"] == "2026-01-31"

    assert [p["period_label"] for p in client.get("/v1/recurring/pending").json()] == ["2026-02"]
    assert db.query(MovementRecord).count() == 1
    assert db.query(RecurringPostingRecord).count() == 1

    again = client.post("/v1/recurring/confirm", json={"rule_id": "power", "period_label": "2026-01"})
    assert again.status_code == 404


def test_confirm_unknown_rule_is_404(client: TestClient):
    response = client.post("/v1/recurring/confirm", json={"rule_id": "ghost", "period_label": "2026-01"})
    assert response.status_code == 404
