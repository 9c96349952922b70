from __future__ import annotations

from typing import List, Optional

from ..data_model import FinancialPlan, PlanValidationResult

MAX_DURATION_MONTHS = 120
INFLATION_RATE_RANGE = (-50.0, 100.0)
INTEREST_RATE_RANGE = (0.0, 100.0)

SUGGESTED_PLAN_DURATIONS: List[tuple[int, str]] = [
    (3, "3 months"),
    (6, "6 months"),
    (12, "1 year"),
    (18, "1.5 years"),
    (24, "2 years"),
    (36, "3 years"),
    (60, "5 years"),
]


def validate_plan_input(
    name: str,
    monthly_income: float,
    duration_in_months: int,
    inflation_rate: Optional[float] = None,
    interest_rate: Optional[float] = None,
) -> PlanValidationResult:
    errors: List[str] = []

    if not str(name or "").strip():
        errors.append("Plan name cannot be empty.")
    if monthly_income <= 0:
        errors.append("Monthly income must be greater than zero.")
    if duration_in_months <= 0:
        errors.append("Duration must be at least one month.")
    if duration_in_months > MAX_DURATION_MONTHS:
        errors.append("Duration cannot exceed 10 years.")
    if inflation_rate is not None:
        low, high = INFLATION_RATE_RANGE
        if inflation_rate < low or inflation_rate > high:
            errors.append(f"Inflation rate must be between {low:g}% and {high:g}%.")
    if interest_rate is not None:
        low, high = INTEREST_RATE_RANGE
        if interest_rate < low or interest_rate > high:
            errors.append(f"Interest rate must be between {low:g}% and {high:g}%.")

    return PlanValidationResult(is_valid=not errors, errors=errors)


def validate_plan(plan: FinancialPlan) -> PlanValidationResult:
    """Validate a plan, checking rates only for the adjustments it switches on."""
    return validate_plan_input(
        name=plan.name,
        monthly_income=plan.monthly_income,
        duration_in_months=plan.duration_in_months,
        inflation_rate=plan.inflation_rate if plan.is_inflation_applied else None,
        interest_rate=plan.interest_rate if plan.is_interest_applied else None,
    )
