from .breakdown import PlanMonthlyBreakdown
from .expense import Expense, RecurrenceType
from .plan import (
    PLAN_STATUS_ACTIVE,
    PLAN_STATUS_COMPLETED,
    PLAN_STATUS_NOT_STARTED,
    FinancialPlan,
    InterestType,
    PlanWithBreakdowns,
)
from .reports import PlanCurrentPosition, PlanValidationResult

__all__ = [
    "PLAN_STATUS_ACTIVE",
    "PLAN_STATUS_COMPLETED",
    "PLAN_STATUS_NOT_STARTED",
    "Expense",
    "FinancialPlan",
    "InterestType",
    "PlanCurrentPosition",
    "PlanMonthlyBreakdown",
    "PlanValidationResult",
    "PlanWithBreakdowns",
    "RecurrenceType",
]
