"""Service layer for merchandise items and sales."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Optional

from bandsync.constants import (
    DEFAULT_CURRENCY,
    FINANCES_COLLECTION,
    MERCH_COLLECTION,
    MERCH_SALES_COLLECTION,
    MERCH_SIZES,
)
from bandsync.core.collection import GroupCollection
from bandsync.core.types import Module
from bandsync.errors import NotFoundError, ValidationError
from bandsync.finance.models import FinanceRecord, FinanceType
from bandsync.store.base import where

from .models import MerchItem, MerchSale, MerchSaleChannel

if TYPE_CHECKING:
    from bandsync.auth.session import IdentitySession
    from bandsync.permissions.services import PermissionService
    from bandsync.store.base import DocumentStore

logger = logging.getLogger(__name__)


class MerchService(GroupCollection[MerchItem]):
    """Merchandise catalogue of a group, with sales bookkeeping."""

    collection = MERCH_COLLECTION
    module = Module.MERCHANDISE
    model = MerchItem
    editor_only = True
    label = "Item"

    def __init__(
        self,
        store: DocumentStore,
        session: IdentitySession,
        permissions: Optional[PermissionService] = None,
        *,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        super().__init__(store, session, permissions)
        self.currency = currency

    def sort(self, records: list[MerchItem]) -> list[MerchItem]:
        return sorted(records, key=lambda item: (item.name.lower(), item.id))

    async def list_sales(self, group_id: str) -> list[MerchSale]:
        """Return the group's sales, newest first."""
        await self._permissions.check_access(group_id, self.module)
        docs = await self._store.query(
            MERCH_SALES_COLLECTION, [where("groupId", "==", group_id)]
        )
        sales = [MerchSale.from_document(doc) for doc in docs]
        return sorted(sales, key=lambda sale: (sale.date, sale.id), reverse=True)

    async def record_sale(
        self,
        group_id: str,
        item_id: str,
        size: str,
        quantity: int,
        channel: Any = MerchSaleChannel.CONCERT,
    ) -> tuple[MerchSale, FinanceRecord]:
        """Sell ``quantity`` units of one size.

        The stock decrement is transactional. The sale and the matching
        income record are written once the stock update has committed.
        """
        await self._check_write(group_id)
        if size not in MERCH_SIZES:
            raise ValidationError(f"Unknown size: {size}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer.")
        try:
            channel = MerchSaleChannel(
                channel.lower() if isinstance(channel, str) else channel
            )
        except ValueError as e:
            raise ValidationError(f"Unknown sales channel: {channel}") from e

        def mutate(current: dict[str, Any]) -> dict[str, Any]:
            if current.get("groupId") != group_id:
                raise NotFoundError("Item not found.")
            item = MerchItem.from_document(current)
            available = item.stock.get(size, 0)
            if available < quantity:
                raise ValidationError(
                    f"Not enough stock for size {size}: {available} left."
                )
            item.stock[size] = available - quantity
            return item.to_document()

        try:
            updated = await self._store.transactional_update(
                self.collection, item_id, mutate
            )
        except NotFoundError as e:
            raise NotFoundError("Item not found.") from e
        item = MerchItem.from_document(updated)

        now = datetime.datetime.now(datetime.timezone.utc)
        sale = MerchSale(
            id="",
            group_id=group_id,
            item_id=item_id,
            size=size,
            quantity=quantity,
            channel=channel,
            date=now,
        )
        sale.id = await self._store.add(MERCH_SALES_COLLECTION, sale.to_document())

        income = FinanceRecord(
            id="",
            group_id=group_id,
            type=FinanceType.INCOME,
            amount=quantity * item.price,
            currency=self.currency,
            category="merch",
            date=now,
            details=f"{item.name} ({size}) x{quantity}",
        )
        income.id = await self._store.add(FINANCES_COLLECTION, income.to_document())
        logger.info(
            f"Sold {quantity} x {item_id} ({size}) in group {group_id} "
            f"via {channel.value}"
        )
        return sale, income
