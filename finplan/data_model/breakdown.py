from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PlanMonthlyBreakdown:
    """One forecasted month of a plan, indexed from the plan start."""

    plan_id: str
    month_index: int
    projected_income: float
    fixed_expenses: float
    average_expenses: float
    total_projected_expenses: float
    net_amount: float
    cumulative_net: float
    interest_earned: float = 0.0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def savings_rate(self) -> float:
        if self.projected_income > 0:
            return self.net_amount / self.projected_income
        return 0.0

    def expense_ratio(self) -> float:
        if self.projected_income > 0:
            return self.total_projected_expenses / self.projected_income
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "planId": self.plan_id,
            "monthIndex": self.month_index,
            "projectedIncome": self.projected_income,
            "fixedExpenses": self.fixed_expenses,
            "averageExpenses": self.average_expenses,
            "totalProjectedExpenses": self.total_projected_expenses,
            "netAmount": self.net_amount,
            "interestEarned": self.interest_earned,
            "cumulativeNet": self.cumulative_net,
        }

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "PlanMonthlyBreakdown":
        return cls(
            id=str(row.get("id") or uuid.uuid4()),
            plan_id=str(row["planId"]),
            month_index=int(row["monthIndex"]),
            projected_income=float(row.get("projectedIncome", 0.0) or 0.0),
            fixed_expenses=float(row.get("fixedExpenses", 0.0) or 0.0),
            average_expenses=float(row.get("averageExpenses", 0.0) or 0.0),
            total_projected_expenses=float(row.get("totalProjectedExpenses", 0.0) or 0.0),
            net_amount=float(row.get("netAmount", 0.0) or 0.0),
            interest_earned=float(row.get("interestEarned", 0.0) or 0.0),
            cumulative_net=float(row.get("cumulativeNet", 0.0) or 0.0),
        )
