from datetime import datetime

import pytest

from finplan.data_model import FinancialPlan
from finplan.engine.lifecycle import PlanCoordinator
from finplan.engine.state import JsonPlanStore


class FakeLedger:
    def __init__(self, expenses=None):
        self.expenses = list(expenses or [])
        self.calls = 0

    def list_all(self):
        self.calls += 1
        return list(self.expenses)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_plan(**overrides) -> FinancialPlan:
    fields = dict(
        name="Emergency fund",
        start_date=datetime(2026, 1, 1),
        duration_in_months=3,
        monthly_income=1000.0,
        manual_monthly_expenses=600.0,
        use_app_expense_data=False,
        default_currency="USD",
    )
    fields.update(overrides)
    return FinancialPlan(**fields)


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 2, 10))


@pytest.fixture
def store(tmp_path):
    return JsonPlanStore(str(tmp_path / "plans.json"))


@pytest.fixture
def coordinator(store, ledger, clock):
    return PlanCoordinator(store, ledger, clock=clock)
