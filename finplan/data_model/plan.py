# data_model/plan.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List

import pandas as pd

from .breakdown import PlanMonthlyBreakdown
from .dates import add_months, month_label as format_month, to_datetime, to_iso, whole_months_between


class InterestType(str, Enum):
    SIMPLE = "SIMPLE"  # P * r * t
    COMPOUND = "COMPOUND"  # P * (1 + r)^t - P


PLAN_STATUS_NOT_STARTED = "not_started"
PLAN_STATUS_ACTIVE = "active"
PLAN_STATUS_COMPLETED = "completed"

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _parse_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, (bool, int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean flag: {value!r}")


@dataclass(frozen=True)
class FinancialPlan:
    name: str
    start_date: datetime
    duration_in_months: int
    monthly_income: float
    default_currency: str
    manual_monthly_expenses: float = 0.0
    use_app_expense_data: bool = True
    is_inflation_applied: bool = False
    inflation_rate: float = 0.0
    is_interest_applied: bool = False
    interest_rate: float = 0.0
    interest_type: InterestType = InterestType.COMPOUND
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def end_date(self) -> datetime:
        return add_months(self.start_date, self.duration_in_months)

    def monthly_income_at(self, month_index: int) -> float:
        """Income for one projected month; flat for now, growth rules plug in here."""
        return self.monthly_income

    def total_expected_income(self) -> float:
        return sum(self.monthly_income_at(m) for m in range(max(0, self.duration_in_months)))

    def is_active(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date

    def months_elapsed(self, now: datetime) -> int:
        elapsed = whole_months_between(self.start_date, now)
        return min(max(elapsed, 0), max(self.duration_in_months, 0))

    def progress_percentage(self, now: datetime) -> float:
        if self.duration_in_months <= 0:
            return 0.0
        return self.months_elapsed(now) / self.duration_in_months

    def status(self, now: datetime) -> str:
        if now < self.start_date:
            return PLAN_STATUS_NOT_STARTED
        if now > self.end_date:
            return PLAN_STATUS_COMPLETED
        return PLAN_STATUS_ACTIVE

    def month_date(self, month_index: int) -> datetime:
        return add_months(self.start_date, month_index)

    def month_label(self, month_index: int) -> str:
        return format_month(self.month_date(month_index))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": to_iso(self.start_date),
            "durationInMonths": self.duration_in_months,
            "monthlyIncome": self.monthly_income,
            "manualMonthlyExpenses": self.manual_monthly_expenses,
            "useAppExpenseData": self.use_app_expense_data,
            "isInflationApplied": self.is_inflation_applied,
            "inflationRate": self.inflation_rate,
            "isInterestApplied": self.is_interest_applied,
            "interestRate": self.interest_rate,
            "interestType": self.interest_type.value,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
            "defaultCurrency": self.default_currency,
        }

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "FinancialPlan":
        now = datetime.now()
        created_at = row.get("createdAt")
        updated_at = row.get("updatedAt")
        return cls(
            id=str(row.get("id") or uuid.uuid4()),
            name=str(row.get("name", "")),
            start_date=to_datetime(row["startDate"]),
            duration_in_months=int(row.get("durationInMonths", 0) or 0),
            monthly_income=float(row.get("monthlyIncome", 0.0) or 0.0),
            manual_monthly_expenses=float(row.get("manualMonthlyExpenses", 0.0) or 0.0),
            use_app_expense_data=_parse_flag(row.get("useAppExpenseData"), True),
            is_inflation_applied=_parse_flag(row.get("isInflationApplied"), False),
            inflation_rate=float(row.get("inflationRate", 0.0) or 0.0),
            is_interest_applied=_parse_flag(row.get("isInterestApplied"), False),
            interest_rate=float(row.get("interestRate", 0.0) or 0.0),
            interest_type=InterestType(str(row.get("interestType") or "COMPOUND").upper()),
            created_at=to_datetime(created_at) if created_at else now,
            updated_at=to_datetime(updated_at) if updated_at else now,
            default_currency=str(row.get("defaultCurrency", "") or ""),
        )


@dataclass(frozen=True)
class PlanWithBreakdowns:
    plan: FinancialPlan
    breakdowns: List[PlanMonthlyBreakdown] = field(default_factory=list)

    def __post_init__(self) -> None:
        ordered = sorted(self.breakdowns, key=lambda row: row.month_index)
        object.__setattr__(self, "breakdowns", ordered)

    @property
    def total_projected_savings(self) -> float:
        if not self.breakdowns:
            return 0.0
        return self.breakdowns[-1].cumulative_net

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([row.to_dict() for row in self.breakdowns])

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan.to_dict(),
            "breakdowns": [row.to_dict() for row in self.breakdowns],
            "totalProjectedSavings": self.total_projected_savings,
        }
