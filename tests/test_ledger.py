from datetime import datetime

from finplan.data_model import Expense, RecurrenceType
from finplan.ledger.expenses import SqliteExpenseLedger


def test_ledger_round_trips_expenses(tmp_path):
    ledger = SqliteExpenseLedger(str(tmp_path / "ledger" / "expenses.sqlite"))
    rent = Expense(
        amount=1200.0,
        currency="EUR",
        exchange_rate=1.1,
        date=datetime(2026, 1, 1),
        description="Rent",
        recurrence_type=RecurrenceType.MONTHLY,
        end_date=datetime(2026, 12, 31),
    )
    coffee = Expense(amount=4.5, currency="USD", date=datetime(2026, 1, 2, 8, 30))

    assert ledger.add_expenses([rent, coffee]) == 2
    stored = {expense.id: expense for expense in ledger.list_all()}

    assert stored == {rent.id: rent, coffee.id: coffee}


def test_ledger_lists_newest_first_and_deletes(tmp_path):
    ledger = SqliteExpenseLedger(str(tmp_path / "expenses.sqlite"))
    older = Expense(amount=1.0, currency="USD", date=datetime(2025, 5, 1))
    newer = Expense(amount=2.0, currency="USD", date=datetime(2026, 5, 1))
    ledger.add_expense(older)
    ledger.add_expense(newer)

    assert [expense.id for expense in ledger.list_all()] == [newer.id, older.id]

    ledger.delete_expense(newer.id)

    assert [expense.id for expense in ledger.list_all()] == [older.id]


def test_ledger_reopens_existing_database(tmp_path):
    path = str(tmp_path / "expenses.sqlite")
    SqliteExpenseLedger(path).add_expense(Expense(amount=3.0, currency="USD", date=datetime(2026, 1, 1)))

    assert len(SqliteExpenseLedger(path).list_all()) == 1
