from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List


@dataclass(frozen=True)
class PlanCurrentPosition:
    """Where a running plan stands against its forecast. Computed on demand, never stored."""

    plan_id: str
    months_elapsed: int
    expected_cumulative_net: float
    actual_cumulative_net: float
    variance: float
    is_on_track: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "planId": self.plan_id,
            "monthsElapsed": self.months_elapsed,
            "expectedCumulativeNet": self.expected_cumulative_net,
            "actualCumulativeNet": self.actual_cumulative_net,
            "variance": self.variance,
            "isOnTrack": self.is_on_track,
        }


@dataclass(frozen=True)
class PlanValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors)}
