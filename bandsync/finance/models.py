"""Data models for the finance blueprint."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from bandsync.core.collection import GroupRecord
from bandsync.core.documents import (
    as_choice,
    as_datetime,
    as_float,
    optional_str,
    require_str,
)
from bandsync.errors import DecodeError, ValidationError


class FinanceType(str, Enum):
    """Direction of a money movement."""

    INCOME = "income"
    EXPENSE = "expense"


INCOME_CATEGORIES = ("performance", "merch", "royalties", "sponsorship", "other")
EXPENSE_CATEGORIES = ("logistics", "accommodation", "food", "gear", "promo", "other")


def categories_for(finance_type: FinanceType) -> tuple[str, ...]:
    """Return the suggested categories for income or expense records."""
    if FinanceType(finance_type) is FinanceType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


@dataclass
class FinanceRecord(GroupRecord):
    """An income or expense entry of a group."""

    id: str
    group_id: str
    type: FinanceType
    amount: float
    currency: str
    category: str
    date: datetime.datetime
    details: Optional[str] = None
    receipt_url: Optional[str] = None

    @classmethod
    def from_document(
        cls, data: dict[str, Any], error: Any = DecodeError
    ) -> FinanceRecord:
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            type=as_choice(data, "type", FinanceType, error=error),
            amount=as_float(data, "amount", error=error),
            currency=require_str(data, "currency", error=error),
            category=require_str(data, "category", error=error),
            date=as_datetime(data, "date", error=error),
            details=optional_str(data, "details", error=error),
            receipt_url=optional_str(data, "receiptUrl", error=error),
        )

    def validate(self) -> None:
        if not math.isfinite(self.amount) or self.amount <= 0:
            raise ValidationError("Amount must be greater than zero.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "type": self.type.value,
            "amount": self.amount,
            "currency": self.currency,
            "category": self.category,
            "date": self.date,
            "details": self.details,
            "receiptUrl": self.receipt_url,
        }
