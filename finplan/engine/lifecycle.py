"""Create, edit and refresh financial plans while keeping their breakdowns consistent."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from ..data_model import (
    FinancialPlan,
    PlanCurrentPosition,
    PlanMonthlyBreakdown,
    PlanValidationResult,
    PlanWithBreakdowns,
)
from .projection import generate_breakdowns, project_months, recalculate_cumulative
from .reconciler import get_current_financial_position
from .validation import validate_plan

logger = logging.getLogger(__name__)


class PlanCoordinator:
    """Orchestrates plan persistence and breakdown generation.

    ``store`` is a plan store (see ``JsonPlanStore``) and ``ledger`` is any
    object with a ``list_all()`` returning ``Expense`` rows. ``clock`` supplies
    "now" and is injectable for tests.

    Mutating calls for the same plan id are serialised; different plans run
    independently.
    """

    def __init__(self, store, ledger, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _plan_lock(self, plan_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(plan_id, threading.Lock())
        with lock:
            yield

    # reads

    def get_plan(self, plan_id: str) -> Optional[FinancialPlan]:
        return self.store.get_plan(plan_id)

    def get_all_plans(self) -> List[FinancialPlan]:
        return self.store.get_all_plans()

    def get_plan_with_breakdowns(self, plan_id: str) -> Optional[PlanWithBreakdowns]:
        return self.store.get_plan_with_breakdowns(plan_id)

    def get_all_plans_with_breakdowns(self) -> List[PlanWithBreakdowns]:
        return self.store.get_all_plans_with_breakdowns()

    def validate(self, plan: FinancialPlan) -> PlanValidationResult:
        return validate_plan(plan)

    # lifecycle

    def create_plan(self, plan: FinancialPlan) -> PlanValidationResult:
        result = self.validate(plan)
        if not result.is_valid:
            logger.info("Rejected plan %s: %s", plan.id, "; ".join(result.errors))
            return result

        with self._plan_lock(plan.id):
            self.store.insert_plan(plan)
            try:
                self._generate(plan)
            except Exception:
                logger.warning("Breakdown generation failed for plan %s; removing plan record", plan.id)
                self.store.delete_breakdowns_for_plan(plan.id)
                self.store.delete_plan_by_id(plan.id)
                raise
        logger.info("Created plan %s (%s, %d months)", plan.id, plan.name, plan.duration_in_months)
        return result

    def update_plan(self, plan: FinancialPlan) -> PlanValidationResult:
        result = self.validate(plan)
        if not result.is_valid:
            logger.info("Rejected update for plan %s: %s", plan.id, "; ".join(result.errors))
            return result

        with self._plan_lock(plan.id):
            updated = replace(plan, updated_at=self.clock())
            self.store.update_plan(updated)
            self.store.delete_breakdowns_for_plan(plan.id)
            self._generate(updated)
        logger.info("Updated plan %s and regenerated breakdowns", plan.id)
        return result

    def delete_plan(self, plan_id: str) -> None:
        with self._plan_lock(plan_id):
            self.store.delete_breakdowns_for_plan(plan_id)
            self.store.delete_plan_by_id(plan_id)
        logger.info("Deleted plan %s", plan_id)

    def regenerate_plan_breakdowns(self, plan_id: str) -> Optional[List[PlanMonthlyBreakdown]]:
        with self._plan_lock(plan_id):
            plan = self.store.get_plan(plan_id)
            if plan is None:
                return None
            self.store.delete_breakdowns_for_plan(plan_id)
            rows = self._generate(plan)
        logger.info("Regenerated %d breakdowns for plan %s", len(rows), plan_id)
        return rows

    def update_expense_data(self, plan_id: str) -> Optional[List[PlanMonthlyBreakdown]]:
        """Refresh the not-yet-elapsed months from current expense history.

        Months before the current month index keep their stored rows, including
        any manual edits, and their stored ``cumulative_net`` seeds the rest.
        """
        with self._plan_lock(plan_id):
            plan = self.store.get_plan(plan_id)
            if plan is None:
                return None
            existing = self.store.get_plan_breakdowns(plan_id)
            if not plan.use_app_expense_data:
                return existing

            now = self.clock()
            current_month_index = plan.months_elapsed(now)
            by_month = {row.month_index: row for row in existing}

            # elapsed months with no stored row are recomputed in place
            preserved = {
                index: row for index, row in by_month.items() if index < current_month_index
            }
            rows, _ = project_months(
                plan,
                range(plan.duration_in_months),
                self.ledger.list_all(),
                now,
                existing_ids={index: row.id for index, row in by_month.items()},
                kept_rows=preserved,
            )
            self.store.replace_breakdowns(plan_id, rows)
            self.store.update_plan(replace(plan, updated_at=now))
        logger.info(
            "Refreshed plan %s: kept %d elapsed months, recomputed %d",
            plan_id,
            len(preserved),
            len(rows) - len(preserved),
        )
        return rows

    def update_breakdown(self, breakdown: PlanMonthlyBreakdown) -> PlanMonthlyBreakdown:
        """Store a manual override of one month.

        Only that row's ``net_amount`` is re-derived; ``cumulative_net`` on every
        row is left alone until ``recalculate_cumulative_amounts`` runs.
        """
        edited = replace(
            breakdown,
            net_amount=breakdown.projected_income - breakdown.total_projected_expenses,
        )
        with self._plan_lock(breakdown.plan_id):
            self.store.update_breakdown(edited)
        return edited

    def recalculate_cumulative_amounts(self, plan_id: str) -> List[PlanMonthlyBreakdown]:
        with self._plan_lock(plan_id):
            rows = recalculate_cumulative(self.store.get_plan_breakdowns(plan_id))
            for row in rows:
                self.store.update_breakdown(row)
        return rows

    # reconciliation

    def get_current_financial_position(self, plan_id: str) -> Optional[PlanCurrentPosition]:
        return get_current_financial_position(self.store, self.ledger, plan_id, self.clock())

    def _generate(self, plan: FinancialPlan) -> List[PlanMonthlyBreakdown]:
        expenses = self.ledger.list_all() if plan.use_app_expense_data else []
        rows = generate_breakdowns(plan, expenses, self.clock())
        self.store.insert_breakdowns(rows)
        return rows
