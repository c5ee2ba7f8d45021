from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime

from django.db import models


class OrderStatus(models.TextChoices):
    OPEN = "open"
    DELETED = "deleted"


@dataclass(frozen=True)
class LineItem:
    dish_id: str
    quantity: int

    @classmethod
    def coerce(cls, value):
        """Accept a LineItem or a mapping with ``dish_id`` and ``quantity``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(dish_id=value.get("dish_id"), quantity=value.get("quantity"))
        raise TypeError(f"cannot build a line item from {type(value).__name__}")


@dataclass
class Order:
    """
    One customer order at one table.

    ``id`` and ``created_at`` are fixed once the store assigns them; only
    ``status`` and ``updated_at`` change, and only through a delete.
    """

    id: int
    table_number: int
    items: tuple[LineItem, ...]
    # estimated minutes until the kitchen has it ready
    cooking_time: int | None = None
    status: str = OrderStatus.OPEN
    created_at: datetime | None = None
    updated_at: datetime | None = field(default=None)

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.OPEN

    def copy(self) -> "Order":
        return replace(self)

    def has_dish(self, dish_id: str) -> bool:
        return any(item.dish_id == dish_id for item in self.items)

    def __str__(self):
        return f"Order({self.id}, table={self.table_number}, status={self.status}, items={len(self.items)})"
