"""REST backend for financial plans and their monthly projections."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Dict, List

from flask import Flask, jsonify, request

from finplan.config import Settings, configure_logging, load_settings_from_env
from finplan.data_model import FinancialPlan
from finplan.engine.aggregate import aggregate_period, breakdowns_to_frame
from finplan.engine.lifecycle import PlanCoordinator
from finplan.engine.state import JsonPlanStore
from finplan.engine.validation import SUGGESTED_PLAN_DURATIONS
from finplan.ledger.expenses import SqliteExpenseLedger


def _is_nan(value: Any) -> bool:
    try:
        return not math.isfinite(value)
    except (TypeError, ValueError):
        return False


def _sanitize_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    clean_rows: List[Dict[str, Any]] = []
    for row in records:
        clean_rows.append({key: (None if _is_nan(value) else value) for key, value in row.items()})
    return clean_rows


def _plan_from_payload(payload: dict, default_currency: str) -> FinancialPlan:
    row = dict(payload)
    if not row.get("defaultCurrency"):
        row["defaultCurrency"] = default_currency
    return FinancialPlan.from_dict(row)


def build_coordinator(settings: Settings) -> PlanCoordinator:
    store = JsonPlanStore(settings.plans_path)
    ledger = SqliteExpenseLedger(settings.ledger_path)
    return PlanCoordinator(store, ledger)


def create_app(coordinator: PlanCoordinator | None = None, settings: Settings | None = None) -> Flask:
    settings = settings or load_settings_from_env()
    coordinator = coordinator or build_coordinator(settings)

    app = Flask(__name__)
    app.config["COORDINATOR"] = coordinator
    app.config["SETTINGS"] = settings

    def _not_found(plan_id: str):
        return jsonify({"error": f"Plan {plan_id} not found."}), 404

    @app.after_request
    def apply_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/health")
    def healthcheck():
        return jsonify({"status": "ok"})

    @app.get("/api/durations")
    def suggested_durations():
        return jsonify({"durations": [{"months": months, "label": label} for months, label in SUGGESTED_PLAN_DURATIONS]})

    @app.get("/api/plans")
    def list_plans():
        plans = [item.to_dict() for item in coordinator.get_all_plans_with_breakdowns()]
        return jsonify({"plans": plans})

    @app.post("/api/plans")
    def create_plan():
        payload = request.get_json(silent=True) or {}
        payload.pop("id", None)
        try:
            plan = _plan_from_payload(payload, settings.default_currency)
        except (KeyError, TypeError, ValueError):
            return jsonify({"error": "Invalid plan parameters."}), 400
        result = coordinator.create_plan(plan)
        if not result.is_valid:
            return jsonify({"errors": result.errors}), 400
        return jsonify(coordinator.get_plan_with_breakdowns(plan.id).to_dict()), 201

    @app.get("/api/plans/<plan_id>")
    def get_plan(plan_id: str):
        item = coordinator.get_plan_with_breakdowns(plan_id)
        if item is None:
            return _not_found(plan_id)
        return jsonify(item.to_dict())

    @app.put("/api/plans/<plan_id>")
    def update_plan(plan_id: str):
        existing = coordinator.get_plan(plan_id)
        if existing is None:
            return _not_found(plan_id)
        payload = request.get_json(silent=True) or {}
        merged = {**existing.to_dict(), **payload, "id": plan_id, "createdAt": existing.to_dict()["createdAt"]}
        try:
            plan = _plan_from_payload(merged, settings.default_currency)
        except (KeyError, TypeError, ValueError):
            return jsonify({"error": "Invalid plan parameters."}), 400
        result = coordinator.update_plan(plan)
        if not result.is_valid:
            return jsonify({"errors": result.errors}), 400
        return jsonify(coordinator.get_plan_with_breakdowns(plan_id).to_dict())

    @app.delete("/api/plans/<plan_id>")
    def delete_plan(plan_id: str):
        coordinator.delete_plan(plan_id)
        return jsonify({"message": "Plan deleted.", "plans": [plan.id for plan in coordinator.get_all_plans()]})

    @app.post("/api/plans/<plan_id>/regenerate")
    def regenerate_plan(plan_id: str):
        rows = coordinator.regenerate_plan_breakdowns(plan_id)
        if rows is None:
            return _not_found(plan_id)
        return jsonify({"breakdowns": _sanitize_records([row.to_dict() for row in rows])})

    @app.post("/api/plans/<plan_id>/refresh")
    def refresh_plan(plan_id: str):
        rows = coordinator.update_expense_data(plan_id)
        if rows is None:
            return _not_found(plan_id)
        return jsonify({"breakdowns": _sanitize_records([row.to_dict() for row in rows])})

    @app.post("/api/plans/<plan_id>/recalculate")
    def recalculate_plan(plan_id: str):
        if coordinator.get_plan(plan_id) is None:
            return _not_found(plan_id)
        rows = coordinator.recalculate_cumulative_amounts(plan_id)
        return jsonify({"breakdowns": _sanitize_records([row.to_dict() for row in rows])})

    @app.put("/api/plans/<plan_id>/breakdowns/<int:month_index>")
    def edit_breakdown(plan_id: str, month_index: int):
        item = coordinator.get_plan_with_breakdowns(plan_id)
        if item is None:
            return _not_found(plan_id)
        row = next((r for r in item.breakdowns if r.month_index == month_index), None)
        if row is None:
            return jsonify({"error": f"Month {month_index} not found."}), 404
        payload = request.get_json(silent=True) or {}
        try:
            edited = replace(
                row,
                projected_income=float(payload.get("projectedIncome", row.projected_income)),
                total_projected_expenses=float(payload.get("totalProjectedExpenses", row.total_projected_expenses)),
            )
        except (TypeError, ValueError):
            return jsonify({"error": "Invalid breakdown values."}), 400
        saved = coordinator.update_breakdown(edited)
        if payload.get("recalculate"):
            rows = coordinator.recalculate_cumulative_amounts(plan_id)
            saved = next(r for r in rows if r.month_index == month_index)
        return jsonify(saved.to_dict())

    @app.get("/api/plans/<plan_id>/breakdowns")
    def plan_breakdowns(plan_id: str):
        item = coordinator.get_plan_with_breakdowns(plan_id)
        if item is None:
            return _not_found(plan_id)
        freq = (request.args.get("freq") or "M").upper()
        if freq not in {"M", "Q", "Y"}:
            return jsonify({"error": "freq must be one of M, Q, Y."}), 400
        frame = aggregate_period(breakdowns_to_frame(item.plan, item.breakdowns), freq=freq)
        return jsonify({"freq": freq, "data": _sanitize_records(frame.to_dict(orient="records"))})

    @app.get("/api/plans/<plan_id>/position")
    def plan_position(plan_id: str):
        if coordinator.get_plan(plan_id) is None:
            return _not_found(plan_id)
        position = coordinator.get_current_financial_position(plan_id)
        return jsonify({"position": position.to_dict() if position else None})

    return app


if __name__ == "__main__":
    runtime_settings = load_settings_from_env()
    configure_logging(runtime_settings.log_level)
    create_app(settings=runtime_settings).run(debug=False, port=runtime_settings.api_port)
