from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..data_model import Expense, FinancialPlan, PlanCurrentPosition
from ..data_model.dates import add_months

ON_TRACK_RATIO = 0.9


def actual_expenses_for_plan(plan: FinancialPlan, expenses: Iterable[Expense], months_elapsed: int) -> float:
    """Recorded spend strictly inside the elapsed part of the plan, in the plan's currency."""
    window_end = add_months(plan.start_date, months_elapsed)
    return sum(
        expense.amount_in_currency(plan.default_currency)
        for expense in expenses
        if plan.start_date < expense.date < window_end
    )


def is_on_track(actual_net: float, expected_cumulative_net: float) -> bool:
    # the tolerance scales the expected value, so a negative forecast gets a tighter bar
    return actual_net >= expected_cumulative_net * ON_TRACK_RATIO


def get_current_financial_position(store, ledger, plan_id: str, now: datetime) -> Optional[PlanCurrentPosition]:
    plan_with_breakdowns = store.get_plan_with_breakdowns(plan_id)
    if plan_with_breakdowns is None:
        return None
    plan = plan_with_breakdowns.plan
    if not plan.is_active(now):
        return None

    months_elapsed = plan.months_elapsed(now)
    current = next(
        (row for row in plan_with_breakdowns.breakdowns if row.month_index == months_elapsed - 1),
        None,
    )
    expected = current.cumulative_net if current is not None else 0.0

    actual_expenses = actual_expenses_for_plan(plan, ledger.list_all(), months_elapsed)
    actual_income = plan.monthly_income * months_elapsed
    actual_net = actual_income - actual_expenses

    return PlanCurrentPosition(
        plan_id=plan_id,
        months_elapsed=months_elapsed,
        expected_cumulative_net=expected,
        actual_cumulative_net=actual_net,
        variance=actual_net - expected,
        is_on_track=is_on_track(actual_net, expected),
    )
