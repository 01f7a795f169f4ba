"""Filtering, sorting and totals over fetched finance records.

Everything here is pure: records go in, a new list comes out, and nothing
touches the store.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional

from bandsync.core.documents import parse_datetime
from bandsync.errors import ValidationError

from .models import FinanceRecord, FinanceType

Predicate = Callable[[FinanceRecord], bool]


class SortOrder(str, Enum):
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"
    AMOUNT_ASC = "amount_asc"
    AMOUNT_DESC = "amount_desc"


@dataclass(frozen=True)
class FinanceFilter:
    """Inclusion criteria for finance records.

    Empty sets and ``None`` bounds do not restrict anything, so the default
    filter accepts every record.
    """

    types: frozenset[FinanceType] = field(default_factory=frozenset)
    categories: frozenset[str] = field(default_factory=frozenset)
    start_date: Optional[datetime.datetime] = None
    end_date: Optional[datetime.datetime] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    def predicates(self) -> list[Predicate]:
        """Return one predicate per active criterion."""
        checks: list[Predicate] = []
        if self.types:
            checks.append(lambda record: record.type in self.types)
        if self.categories:
            checks.append(lambda record: record.category in self.categories)
        if self.start_date is not None:
            checks.append(lambda record: record.date >= self.start_date)
        if self.end_date is not None:
            checks.append(lambda record: record.date <= self.end_date)
        if self.min_amount is not None:
            checks.append(lambda record: record.amount >= self.min_amount)
        if self.max_amount is not None:
            checks.append(lambda record: record.amount <= self.max_amount)
        return checks

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> FinanceFilter:
        """Build a filter from query-string arguments.

        ``type`` and ``category`` may be repeated or comma separated.
        """
        try:
            types = frozenset(
                FinanceType(value.lower()) for value in _multi(args, "type")
            )
        except ValueError as e:
            raise ValidationError("Type must be 'income' or 'expense'.") from e
        categories = frozenset(_multi(args, "category"))
        try:
            start = _optional(args, "start", parse_datetime)
            end = _optional(args, "end", parse_datetime)
        except ValueError as e:
            raise ValidationError("Dates must be ISO-8601.") from e
        try:
            min_amount = _optional(args, "min_amount", float)
            max_amount = _optional(args, "max_amount", float)
        except ValueError as e:
            raise ValidationError("Amount bounds must be numbers.") from e
        if start and end and start > end:
            raise ValidationError("Start date must not be after end date.")
        return cls(types, categories, start, end, min_amount, max_amount)


def _multi(args: Mapping[str, Any], key: str) -> list[str]:
    if hasattr(args, "getlist"):
        raw = args.getlist(key)
    else:
        value = args.get(key)
        raw = [] if value is None else [value]
    values = []
    for item in raw:
        values.extend(part.strip() for part in item.split(",") if part.strip())
    return values


def _optional(args: Mapping[str, Any], key: str, convert: Callable[[Any], Any]) -> Any:
    value = args.get(key)
    if value in (None, ""):
        return None
    return convert(value)


def filter_records(
    records: Iterable[FinanceRecord], predicates: Iterable[Predicate]
) -> list[FinanceRecord]:
    """Keep the records that satisfy every predicate."""
    checks = list(predicates)
    return [record for record in records if all(check(record) for check in checks)]


_SORT_KEYS: dict[SortOrder, tuple[Callable[[FinanceRecord], Any], bool]] = {
    SortOrder.DATE_ASC: (lambda record: record.date, False),
    SortOrder.DATE_DESC: (lambda record: record.date, True),
    SortOrder.AMOUNT_ASC: (lambda record: record.amount, False),
    SortOrder.AMOUNT_DESC: (lambda record: record.amount, True),
}


def sort_records(
    records: Iterable[FinanceRecord], order: SortOrder = SortOrder.DATE_DESC
) -> list[FinanceRecord]:
    """Sort records, breaking ties by ascending id."""
    key, descending = _SORT_KEYS[SortOrder(order)]
    # Two stable passes: id first, then the primary key.
    by_id = sorted(records, key=lambda record: record.id)
    return sorted(by_id, key=key, reverse=descending)


def apply_filter(
    records: Iterable[FinanceRecord],
    finance_filter: FinanceFilter,
    order: SortOrder = SortOrder.DATE_DESC,
) -> list[FinanceRecord]:
    return sort_records(filter_records(records, finance_filter.predicates()), order)


def unique_categories(records: Iterable[FinanceRecord]) -> list[str]:
    """Return the categories used by the records, alphabetically."""
    return sorted({record.category for record in records})


def summarize(records: Iterable[FinanceRecord]) -> dict[str, float]:
    """Total income, expense and the resulting balance."""
    income = 0.0
    expense = 0.0
    for record in records:
        if record.type is FinanceType.INCOME:
            income += record.amount
        else:
            expense += record.amount
    return {"income": income, "expense": expense, "balance": income - expense}
