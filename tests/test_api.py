from datetime import datetime

import pytest

from conftest import FakeLedger, FixedClock
from finplan.config import Settings
from finplan.data_model import Expense, RecurrenceType
from finplan.engine.lifecycle import PlanCoordinator
from finplan.engine.state import JsonPlanStore
from finplan.api import create_app

PLAN_PAYLOAD = {
    "name": "Emergency fund",
    "startDate": "2026-01-01",
    "durationInMonths": 3,
    "monthlyIncome": 1000,
    "manualMonthlyExpenses": 600,
    "useAppExpenseData": False,
}


@pytest.fixture
def api(tmp_path):
    ledger = FakeLedger()
    clock = FixedClock(datetime(2026, 3, 15))
    coordinator = PlanCoordinator(JsonPlanStore(str(tmp_path / "plans.json")), ledger, clock=clock)
    app = create_app(coordinator=coordinator, settings=Settings(data_dir=str(tmp_path), default_currency="EUR"))
    app.config["TESTING"] = True
    return app.test_client(), ledger


def _create(client, **overrides):
    response = client.post("/api/plans", json={**PLAN_PAYLOAD, **overrides})
    assert response.status_code == 201
    return response.get_json()


def test_healthcheck_sets_cors_header(api):
    client, _ = api

    response = client.get("/api/health")

    assert response.get_json() == {"status": "ok"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_create_plan_returns_breakdowns(api):
    client, _ = api

    body = _create(client)

    assert body["plan"]["defaultCurrency"] == "EUR"
    assert [row["cumulativeNet"] for row in body["breakdowns"]] == [400.0, 800.0, 1200.0]
    assert body["totalProjectedSavings"] == 1200.0


def test_create_plan_reports_validation_errors(api):
    client, _ = api

    response = client.post("/api/plans", json={**PLAN_PAYLOAD, "monthlyIncome": 0, "durationInMonths": 0})

    assert response.status_code == 400
    assert len(response.get_json()["errors"]) == 2
    assert client.get("/api/plans").get_json() == {"plans": []}


def test_create_plan_rejects_unparseable_payload(api):
    client, _ = api

    response = client.post("/api/plans", json={"name": "No start date"})

    assert response.status_code == 400


def test_unknown_plan_is_404(api):
    client, _ = api

    assert client.get("/api/plans/nope").status_code == 404
    assert client.post("/api/plans/nope/refresh").status_code == 404
    assert client.get("/api/plans/nope/position").status_code == 404


def test_update_plan_regenerates(api):
    client, _ = api
    plan_id = _create(client)["plan"]["id"]

    response = client.put(f"/api/plans/{plan_id}", json={"durationInMonths": 4})

    body = response.get_json()
    assert response.status_code == 200
    assert body["plan"]["name"] == "Emergency fund"
    assert len(body["breakdowns"]) == 4


def test_edit_breakdown_then_recalculate(api):
    client, _ = api
    plan_id = _create(client)["plan"]["id"]

    edited = client.put(f"/api/plans/{plan_id}/breakdowns/1", json={"totalProjectedExpenses": 900}).get_json()
    assert edited["netAmount"] == 100.0
    assert edited["cumulativeNet"] == 800.0

    recalculated = client.post(f"/api/plans/{plan_id}/recalculate").get_json()
    assert [row["cumulativeNet"] for row in recalculated["breakdowns"]] == [400.0, 500.0, 900.0]


def test_quarterly_breakdowns(api):
    client, _ = api
    plan_id = _create(client)["plan"]["id"]

    body = client.get(f"/api/plans/{plan_id}/breakdowns?freq=q").get_json()

    assert body["freq"] == "Q"
    assert len(body["data"]) == 1
    assert body["data"][0]["Period"] == "2026 Q1"
    assert body["data"][0]["CumulativeNet"] == 1200.0


def test_position_endpoint(api):
    client, ledger = api
    plan_id = _create(client)["plan"]["id"]
    ledger.expenses.append(Expense(amount=1300.0, currency="EUR", date=datetime(2026, 2, 1)))

    position = client.get(f"/api/plans/{plan_id}/position").get_json()["position"]

    assert position["monthsElapsed"] == 2
    assert position["variance"] == -100.0
    assert position["isOnTrack"] is False


def test_delete_plan(api):
    client, _ = api
    plan_id = _create(client)["plan"]["id"]

    response = client.delete(f"/api/plans/{plan_id}")

    assert response.get_json()["plans"] == []
    assert client.get(f"/api/plans/{plan_id}").status_code == 404


def test_create_plan_with_utc_start_date_projects_and_reconciles(api):
    client, ledger = api
    ledger.expenses.append(
        Expense(amount=200.0, currency="EUR", date=datetime(2026, 1, 5), recurrence_type=RecurrenceType.MONTHLY)
    )

    body = _create(
        client,
        startDate="2026-01-01T00:00:00Z",
        useAppExpenseData=True,
        manualMonthlyExpenses=0,
    )
    position = client.get(f"/api/plans/{body['plan']['id']}/position")

    assert body["plan"]["startDate"] == "2026-01-01T00:00:00"
    assert [row["totalProjectedExpenses"] for row in body["breakdowns"]] == [200.0, 200.0, 0.0]
    assert position.status_code == 200
    assert position.get_json()["position"]["monthsElapsed"] == 2


def test_create_plan_reads_string_flags(api):
    client, _ = api

    body = _create(client, useAppExpenseData="false")
    response = client.post("/api/plans", json={**PLAN_PAYLOAD, "isInterestApplied": "maybe"})

    assert body["plan"]["useAppExpenseData"] is False
    assert response.status_code == 400
