# engine/state.py
import logging
import threading
from typing import Dict, Iterable, List, Optional

from ..data_model import FinancialPlan, PlanMonthlyBreakdown, PlanWithBreakdowns
from .storage import load_plan_document, save_plan_document

logger = logging.getLogger(__name__)


class JsonPlanStore:
    """Plans and their breakdown rows, kept in memory and mirrored to one JSON file."""

    def __init__(self, storage_path: str = "user_data/plans.json"):
        self.storage_path = storage_path
        self._lock = threading.RLock()
        document = load_plan_document(storage_path)
        self.plans: Dict[str, FinancialPlan] = {
            plan_id: FinancialPlan.from_dict(row) for plan_id, row in document["plans"].items()
        }
        self.breakdowns: Dict[str, List[PlanMonthlyBreakdown]] = {
            plan_id: [PlanMonthlyBreakdown.from_dict(row) for row in rows]
            for plan_id, rows in document["breakdowns"].items()
        }

    # plans

    def get_plan(self, plan_id: str) -> Optional[FinancialPlan]:
        with self._lock:
            return self.plans.get(plan_id)

    def get_all_plans(self) -> List[FinancialPlan]:
        with self._lock:
            return sorted(self.plans.values(), key=lambda plan: plan.updated_at, reverse=True)

    def insert_plan(self, plan: FinancialPlan) -> None:
        with self._lock:
            if plan.id in self.plans:
                raise ValueError(f"Plan {plan.id} already exists.")
            self.plans[plan.id] = plan
            self._save()

    def update_plan(self, plan: FinancialPlan) -> None:
        with self._lock:
            if plan.id not in self.plans:
                raise KeyError(plan.id)
            self.plans[plan.id] = plan
            self._save()

    def delete_plan_by_id(self, plan_id: str) -> None:
        with self._lock:
            if self.plans.pop(plan_id, None) is not None:
                self._save()

    # breakdowns

    def get_plan_breakdowns(self, plan_id: str) -> List[PlanMonthlyBreakdown]:
        with self._lock:
            return sorted(self.breakdowns.get(plan_id, []), key=lambda row: row.month_index)

    def insert_breakdowns(self, rows: Iterable[PlanMonthlyBreakdown]) -> None:
        with self._lock:
            snapshot = {plan_id: list(existing) for plan_id, existing in self.breakdowns.items()}
            try:
                for row in rows:
                    self._append_breakdown(row)
            except (KeyError, ValueError):
                self.breakdowns = snapshot
                raise
            self._save()

    def update_breakdown(self, row: PlanMonthlyBreakdown) -> None:
        with self._lock:
            existing = self.breakdowns.get(row.plan_id, [])
            for position, current in enumerate(existing):
                if current.id == row.id:
                    existing[position] = row
                    self._save()
                    return
            raise KeyError(row.id)

    def delete_breakdowns_for_plan(self, plan_id: str) -> None:
        with self._lock:
            if self.breakdowns.pop(plan_id, None) is not None:
                self._save()

    def replace_breakdowns(self, plan_id: str, rows: Iterable[PlanMonthlyBreakdown]) -> None:
        with self._lock:
            snapshot = {key: list(existing) for key, existing in self.breakdowns.items()}
            self.breakdowns.pop(plan_id, None)
            try:
                for row in rows:
                    if row.plan_id != plan_id:
                        raise ValueError(f"Breakdown {row.id} belongs to plan {row.plan_id}, not {plan_id}.")
                    self._append_breakdown(row)
            except (KeyError, ValueError):
                self.breakdowns = snapshot
                raise
            self._save()

    # composites

    def get_plan_with_breakdowns(self, plan_id: str) -> Optional[PlanWithBreakdowns]:
        with self._lock:
            plan = self.plans.get(plan_id)
            if plan is None:
                return None
            return PlanWithBreakdowns(plan=plan, breakdowns=self.get_plan_breakdowns(plan_id))

    def get_all_plans_with_breakdowns(self) -> List[PlanWithBreakdowns]:
        with self._lock:
            return [
                PlanWithBreakdowns(plan=plan, breakdowns=self.get_plan_breakdowns(plan.id))
                for plan in self.get_all_plans()
            ]

    def _append_breakdown(self, row: PlanMonthlyBreakdown) -> None:
        if row.plan_id not in self.plans:
            raise KeyError(row.plan_id)
        existing = self.breakdowns.setdefault(row.plan_id, [])
        if any(current.month_index == row.month_index for current in existing):
            raise ValueError(f"Plan {row.plan_id} already has a breakdown for month {row.month_index}.")
        existing.append(row)

    def _save(self) -> None:
        document = {
            "plans": {plan_id: plan.to_dict() for plan_id, plan in self.plans.items()},
            "breakdowns": {
                plan_id: [row.to_dict() for row in rows] for plan_id, rows in self.breakdowns.items()
            },
        }
        save_plan_document(self.storage_path, document)
        logger.debug("Saved %d plans to %s", len(self.plans), self.storage_path)
