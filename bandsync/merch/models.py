"""Data models for the merchandise blueprint."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from bandsync.constants import MERCH_SIZES
from bandsync.core.collection import GroupRecord
from bandsync.core.documents import (
    as_choice,
    as_datetime,
    as_float,
    as_int,
    optional_str,
    require_str,
)
from bandsync.errors import DecodeError, ValidationError


class MerchCategory(str, Enum):
    CLOTHING = "clothing"
    MUSIC = "music"
    ACCESSORY = "accessory"
    OTHER = "other"


class MerchSaleChannel(str, Enum):
    CONCERT = "concert"
    ONLINE = "online"
    PARTNER = "partner"


def _decode_stock(data: dict[str, Any], error: Any) -> dict[str, int]:
    raw = data.get("stock") or {}
    if not isinstance(raw, dict):
        raise error("Field 'stock' must be an object of size to quantity.")
    stock = {size: 0 for size in MERCH_SIZES}
    for size in raw:
        if size not in stock:
            raise error(f"Unknown size: {size}")
        stock[size] = as_int(raw, size, default=0, error=error)
    return stock


@dataclass
class MerchItem(GroupRecord):
    """A merchandise item with per-size stock."""

    id: str
    group_id: str
    name: str
    price: float
    category: MerchCategory = MerchCategory.OTHER
    description: Optional[str] = None
    stock: dict[str, int] = field(
        default_factory=lambda: {size: 0 for size in MERCH_SIZES}
    )

    @property
    def total_stock(self) -> int:
        return sum(self.stock.values())

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> MerchItem:
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            name=require_str(data, "name", error=error),
            price=as_float(data, "price", error=error),
            category=as_choice(
                data,
                "category",
                MerchCategory,
                default=MerchCategory.OTHER,
                error=error,
            ),
            description=optional_str(data, "description", error=error),
            stock=_decode_stock(data, error),
        )

    def validate(self) -> None:
        if not math.isfinite(self.price) or self.price < 0:
            raise ValidationError("Price must be a non-negative number.")
        if any(quantity < 0 for quantity in self.stock.values()):
            raise ValidationError("Stock cannot be negative.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "name": self.name,
            "price": self.price,
            "category": self.category.value,
            "description": self.description,
            "stock": dict(self.stock),
        }

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["totalStock"] = self.total_stock
        return data


@dataclass
class MerchSale(GroupRecord):
    """A recorded sale of one item in one size."""

    id: str
    group_id: str
    item_id: str
    size: str
    quantity: int
    channel: MerchSaleChannel
    date: datetime.datetime

    @classmethod
    def from_document(cls, data: dict[str, Any], error: Any = DecodeError) -> MerchSale:
        return cls(
            id=data.get("id") or "",
            group_id=require_str(data, "groupId", error=error),
            item_id=require_str(data, "itemId", error=error),
            size=require_str(data, "size", error=error),
            quantity=as_int(data, "quantity", error=error),
            channel=as_choice(
                data,
                "channel",
                MerchSaleChannel,
                default=MerchSaleChannel.CONCERT,
                error=error,
            ),
            date=as_datetime(data, "date", error=error),
        )

    def validate(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero.")

    def to_document(self) -> dict[str, Any]:
        return {
            "groupId": self.group_id,
            "itemId": self.item_id,
            "size": self.size,
            "quantity": self.quantity,
            "channel": self.channel.value,
            "date": self.date,
        }
