"""SQLite-backed expense ledger.

The projection engine only ever reads the full expense list through
``list_all()``; the write helpers exist so other parts of the app (and
tests) can seed the ledger.
"""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable, List

from ..data_model import Expense, RecurrenceType
from ..data_model.dates import to_datetime, to_iso

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS expenses (
    expense_id TEXT PRIMARY KEY,
    amount REAL NOT NULL,
    currency TEXT NOT NULL,
    category_id TEXT,
    sub_category_id TEXT,
    description TEXT,
    date TEXT NOT NULL,
    recurrence_type TEXT NOT NULL DEFAULT 'NONE',
    end_date TEXT,
    exchange_rate REAL,
    recurrence_group_id TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
"""

COLUMNS = (
    "expense_id",
    "amount",
    "currency",
    "category_id",
    "sub_category_id",
    "description",
    "date",
    "recurrence_type",
    "end_date",
    "exchange_rate",
    "recurrence_group_id",
)


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=row["expense_id"],
        amount=float(row["amount"]),
        currency=row["currency"],
        category_id=row["category_id"] or "",
        sub_category_id=row["sub_category_id"] or "",
        description=row["description"] or "",
        date=to_datetime(row["date"]),
        recurrence_type=RecurrenceType(row["recurrence_type"] or "NONE"),
        end_date=to_datetime(row["end_date"]) if row["end_date"] else None,
        exchange_rate=row["exchange_rate"],
        recurrence_group_id=row["recurrence_group_id"],
    )


def _expense_params(expense: Expense) -> tuple:
    return (
        expense.id,
        expense.amount,
        expense.currency,
        expense.category_id,
        expense.sub_category_id,
        expense.description,
        to_iso(expense.date),
        expense.recurrence_type.value,
        to_iso(expense.end_date),
        expense.exchange_rate,
        expense.recurrence_group_id,
    )


class SqliteExpenseLedger:
    def __init__(self, db_path: str = "user_data/ledger/expenses.sqlite"):
        self.db_path = db_path
        self.ensure_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_db(self) -> None:
        """Create the DB file and schema if missing."""
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    def add_expense(self, expense: Expense) -> None:
        self.add_expenses([expense])

    def add_expenses(self, expenses: Iterable[Expense]) -> int:
        placeholders = ",".join("?" for _ in COLUMNS)
        sql = f"INSERT INTO expenses({', '.join(COLUMNS)}) VALUES ({placeholders})"
        conn = self._connect()
        try:
            cur = conn.executemany(sql, [_expense_params(expense) for expense in expenses])
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    def delete_expense(self, expense_id: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM expenses WHERE expense_id = ?", (expense_id,))
            conn.commit()
        finally:
            conn.close()

    def list_all(self) -> List[Expense]:
        conn = self._connect()
        try:
            cur = conn.execute(f"SELECT {', '.join(COLUMNS)} FROM expenses ORDER BY date DESC")
            return [_row_to_expense(row) for row in cur.fetchall()]
        finally:
            conn.close()
