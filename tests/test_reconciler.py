from datetime import datetime

import pytest

from conftest import make_plan
from finplan.data_model import Expense, RecurrenceType
from finplan.engine.reconciler import actual_expenses_for_plan, is_on_track


def test_position_reports_variance_against_forecast(coordinator, ledger, clock):
    plan = make_plan()
    coordinator.create_plan(plan)
    ledger.expenses.extend(
        [
            Expense(amount=600.0, currency="USD", date=datetime(2026, 1, 10)),
            Expense(amount=700.0, currency="USD", date=datetime(2026, 2, 10)),
            Expense(amount=5000.0, currency="USD", date=datetime(2026, 3, 2)),
        ]
    )
    clock.now = datetime(2026, 3, 15)

    position = coordinator.get_current_financial_position(plan.id)

    assert position.plan_id == plan.id
    assert position.months_elapsed == 2
    assert position.expected_cumulative_net == 800.0
    assert position.actual_cumulative_net == 700.0
    assert position.variance == -100.0
    assert position.is_on_track is False


def test_position_on_track_within_tolerance(coordinator, ledger, clock):
    plan = make_plan()
    coordinator.create_plan(plan)
    ledger.expenses.append(Expense(amount=1250.0, currency="USD", date=datetime(2026, 1, 20)))
    clock.now = datetime(2026, 3, 1)

    position = coordinator.get_current_financial_position(plan.id)

    assert position.actual_cumulative_net == 750.0
    assert position.is_on_track is True


def test_position_is_none_for_unknown_plan(coordinator):
    assert coordinator.get_current_financial_position("missing") is None


@pytest.mark.parametrize("now", [datetime(2025, 12, 31), datetime(2026, 4, 2)])
def test_position_is_none_outside_plan_window(coordinator, clock, now):
    plan = make_plan()
    coordinator.create_plan(plan)
    clock.now = now

    assert coordinator.get_current_financial_position(plan.id) is None


def test_position_in_first_month_expects_zero(coordinator, ledger, clock):
    plan = make_plan()
    coordinator.create_plan(plan)
    ledger.expenses.append(Expense(amount=50.0, currency="USD", date=datetime(2026, 1, 3)))
    clock.now = datetime(2026, 1, 20)

    position = coordinator.get_current_financial_position(plan.id)

    assert position.months_elapsed == 0
    assert position.expected_cumulative_net == 0.0
    assert position.actual_cumulative_net == 0.0
    assert position.is_on_track is True


def test_actual_expenses_exclude_window_edges_and_convert_currency():
    plan = make_plan()
    expenses = [
        Expense(amount=10.0, currency="USD", date=datetime(2026, 1, 1)),
        Expense(amount=20.0, currency="EUR", exchange_rate=2.0, date=datetime(2026, 1, 15)),
        Expense(amount=30.0, currency="USD", date=datetime(2026, 2, 1), recurrence_type=RecurrenceType.MONTHLY),
        Expense(amount=40.0, currency="USD", date=datetime(2026, 3, 1)),
    ]

    assert actual_expenses_for_plan(plan, expenses, 2) == pytest.approx(70.0)


@pytest.mark.parametrize(
    "actual, expected, on_track",
    [
        (720.0, 800.0, True),
        (719.99, 800.0, False),
        (-95.0, -100.0, False),
        (-90.0, -100.0, True),
        (0.0, 0.0, True),
    ],
)
def test_on_track_threshold_is_ninety_percent_of_expected(actual, expected, on_track):
    assert is_on_track(actual, expected) is on_track
