"""Month-by-month cash-flow projection for a financial plan.

Everything here is pure: callers hand in the plan, the expense history and
the reference "now", and get breakdown rows back. The running cumulative
balance is carried explicitly in a ``ProjectionState`` so a projection can
resume from any month (see ``project_months``).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ..data_model import Expense, FinancialPlan, InterestType, PlanMonthlyBreakdown
from ..data_model.dates import add_months, end_of_month, start_of_month

ONE_TIME_WINDOW_MONTHS = 3
EXPENSE_COLUMNS = ["Date", "Amount", "Recurring"]


@dataclass(frozen=True)
class ProjectionState:
    cumulative_net: float = 0.0


def expenses_to_frame(expenses: Iterable[Expense], default_currency: str) -> pd.DataFrame:
    rows = [
        {
            "Date": expense.date,
            "Amount": expense.amount_in_currency(default_currency),
            "Recurring": expense.is_recurring,
        }
        for expense in expenses
    ]
    if not rows:
        return pd.DataFrame(columns=EXPENSE_COLUMNS)
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def _window_sum(frame: pd.DataFrame, mask: pd.Series) -> float:
    return float(frame.loc[mask, "Amount"].sum())


def recurring_expenses_for_month(frame: pd.DataFrame, month_date: datetime) -> float:
    """Recurring spend dated from one month before the target month through its last day."""
    if frame.empty:
        return 0.0
    window_start = add_months(start_of_month(month_date), -1)
    window_end = end_of_month(month_date)
    dates = frame["Date"]
    mask = frame["Recurring"].astype(bool) & (dates >= window_start) & (dates <= window_end)
    return _window_sum(frame, mask)


def average_one_time_expenses(frame: pd.DataFrame, now: datetime) -> float:
    """Trailing three-month average of one-time spend, measured back from ``now``."""
    if frame.empty:
        return 0.0
    window_start = add_months(now, -ONE_TIME_WINDOW_MONTHS)
    dates = frame["Date"]
    mask = ~frame["Recurring"].astype(bool) & (dates > window_start) & (dates < now)
    return _window_sum(frame, mask) / ONE_TIME_WINDOW_MONTHS


def inflation_adjusted(plan: FinancialPlan, base_expenses: float, month_index: int) -> float:
    if plan.is_inflation_applied and plan.inflation_rate > 0:
        monthly_rate = plan.inflation_rate / 12 / 100
        return base_expenses * (1 + monthly_rate) ** month_index
    return base_expenses


def interest_for_month(plan: FinancialPlan, cumulative_before: float) -> float:
    # only a positive balance carried in from the previous month earns interest
    if not plan.is_interest_applied or plan.interest_rate <= 0 or cumulative_before <= 0:
        return 0.0
    annual_rate = plan.interest_rate / 100
    if plan.interest_type == InterestType.SIMPLE:
        return cumulative_before * (annual_rate / 12)
    return cumulative_before * ((1 + annual_rate) ** (1.0 / 12.0) - 1)


def base_expenses_for_month(
    plan: FinancialPlan,
    month_index: int,
    frame: Optional[pd.DataFrame],
    one_time_average: float,
) -> float:
    if not plan.use_app_expense_data:
        return plan.manual_monthly_expenses
    recurring = 0.0
    if frame is not None:
        recurring = recurring_expenses_for_month(frame, plan.month_date(month_index))
    return recurring + one_time_average


def project_month(
    plan: FinancialPlan,
    month_index: int,
    base_expenses: float,
    state: ProjectionState,
    breakdown_id: Optional[str] = None,
) -> Tuple[PlanMonthlyBreakdown, ProjectionState]:
    projected_income = plan.monthly_income_at(month_index)
    adjusted = inflation_adjusted(plan, base_expenses, month_index)
    net_amount = projected_income - adjusted
    interest = interest_for_month(plan, state.cumulative_net)
    cumulative = state.cumulative_net + net_amount + interest

    # fixed/average split is display-only; the total is the same either way
    manual = plan.manual_monthly_expenses > 0
    fields = dict(
        plan_id=plan.id,
        month_index=month_index,
        projected_income=projected_income,
        fixed_expenses=0.0 if manual else adjusted,
        average_expenses=adjusted if manual else 0.0,
        total_projected_expenses=adjusted,
        net_amount=net_amount,
        interest_earned=interest,
        cumulative_net=cumulative,
    )
    if breakdown_id:
        fields["id"] = breakdown_id
    return PlanMonthlyBreakdown(**fields), ProjectionState(cumulative_net=cumulative)


def project_months(
    plan: FinancialPlan,
    month_indices: Iterable[int],
    expense_history: Iterable[Expense],
    now: datetime,
    opening: ProjectionState = ProjectionState(),
    existing_ids: Optional[Dict[int, str]] = None,
    kept_rows: Optional[Dict[int, PlanMonthlyBreakdown]] = None,
) -> Tuple[List[PlanMonthlyBreakdown], ProjectionState]:
    """Fold ``project_month`` over ``month_indices`` starting from ``opening``.

    Months found in ``kept_rows`` are emitted unchanged and their stored
    ``cumulative_net`` becomes the running balance for the next month.
    """
    frame: Optional[pd.DataFrame] = None
    one_time_average = 0.0
    if plan.use_app_expense_data:
        frame = expenses_to_frame(expense_history, plan.default_currency)
        one_time_average = average_one_time_expenses(frame, now)

    existing_ids = existing_ids or {}
    kept_rows = kept_rows or {}
    rows: List[PlanMonthlyBreakdown] = []
    state = opening
    for month_index in month_indices:
        kept = kept_rows.get(month_index)
        if kept is not None:
            rows.append(kept)
            state = ProjectionState(cumulative_net=kept.cumulative_net)
            continue
        base = base_expenses_for_month(plan, month_index, frame, one_time_average)
        row, state = project_month(plan, month_index, base, state, existing_ids.get(month_index))
        rows.append(row)
    return rows, state


def generate_breakdowns(
    plan: FinancialPlan,
    expense_history: Iterable[Expense],
    now: datetime,
) -> List[PlanMonthlyBreakdown]:
    if plan.duration_in_months <= 0:
        return []
    rows, _ = project_months(plan, range(plan.duration_in_months), expense_history, now)
    return rows


def recalculate_cumulative(rows: Sequence[PlanMonthlyBreakdown]) -> List[PlanMonthlyBreakdown]:
    cumulative = 0.0
    updated: List[PlanMonthlyBreakdown] = []
    for row in sorted(rows, key=lambda r: r.month_index):
        cumulative += row.net_amount + row.interest_earned
        updated.append(replace(row, cumulative_net=cumulative))
    return updated
