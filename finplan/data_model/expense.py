from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .dates import to_datetime, to_iso


class RecurrenceType(str, Enum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKDAYS = "WEEKDAYS"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


@dataclass(frozen=True)
class Expense:
    amount: float
    currency: str
    date: datetime
    category_id: str = ""
    sub_category_id: str = ""
    description: str = ""
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    end_date: Optional[datetime] = None
    exchange_rate: Optional[float] = None
    recurrence_group_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_type != RecurrenceType.NONE

    def amount_in_currency(self, default_currency: str) -> float:
        if self.currency == default_currency or self.exchange_rate is None:
            return self.amount
        return self.amount * self.exchange_rate

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "categoryId": self.category_id,
            "subCategoryId": self.sub_category_id,
            "description": self.description,
            "date": to_iso(self.date),
            "recurrenceType": self.recurrence_type.value,
            "endDate": to_iso(self.end_date),
            "exchangeRate": self.exchange_rate,
            "recurrenceGroupId": self.recurrence_group_id,
        }

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "Expense":
        end_date = row.get("endDate")
        exchange_rate = row.get("exchangeRate")
        return cls(
            id=str(row.get("id") or uuid.uuid4()),
            amount=float(row.get("amount", 0.0) or 0.0),
            currency=str(row.get("currency", "")),
            category_id=str(row.get("categoryId", "") or ""),
            sub_category_id=str(row.get("subCategoryId", "") or ""),
            description=str(row.get("description", "") or ""),
            date=to_datetime(row["date"]),
            recurrence_type=RecurrenceType(row.get("recurrenceType") or "NONE"),
            end_date=to_datetime(end_date) if end_date else None,
            exchange_rate=float(exchange_rate) if exchange_rate is not None else None,
            recurrence_group_id=row.get("recurrenceGroupId"),
        )
