"""Service layer for finance records."""

from __future__ import annotations

from typing import Optional

from bandsync.constants import FINANCES_COLLECTION
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module

from .filters import FinanceFilter, SortOrder, apply_filter, sort_records
from .models import FinanceRecord


class FinanceService(GroupCollection[FinanceRecord]):
    """Income and expense records of a group."""

    collection = FINANCES_COLLECTION
    module = Module.FINANCES
    model = FinanceRecord
    editor_only = True
    label = "Finance record"

    def sort(self, records: list[FinanceRecord]) -> list[FinanceRecord]:
        return sort_records(records, SortOrder.DATE_DESC)

    async def list_filtered(
        self,
        group_id: str,
        finance_filter: Optional[FinanceFilter] = None,
        order: SortOrder = SortOrder.DATE_DESC,
    ) -> list[FinanceRecord]:
        """Return the group's records that pass ``finance_filter``, sorted."""
        records = await self.list(group_id)
        return apply_filter(records, finance_filter or FinanceFilter(), order)
