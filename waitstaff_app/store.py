from __future__ import annotations

import itertools
import logging
import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable

from django.utils import timezone

from .exceptions import NotFound, ValidationError
from .models import LineItem, Order, OrderStatus

logger = logging.getLogger(__name__)

COOKING_TIME_MINUTES = (5, 15)


def estimate_cooking_time() -> int:
    return random.randint(*COOKING_TIME_MINUTES)


class OrderStorage(ABC):
    """
    Storage capability behind the order service.

    The in-memory store is one implementation; a durable backend must keep the
    same guarantees: ids are unique and never reused, ``list`` returns a
    consistent snapshot of open orders in ascending id order, and ``delete`` of
    an unknown or already deleted order raises ``NotFound``.
    """

    @abstractmethod
    def create(self, table_number, items) -> Order:
        """Store a new open order and return it."""

    @abstractmethod
    def get(self, order_id) -> Order:
        """Return the open order with ``order_id`` or raise ``NotFound``."""

    @abstractmethod
    def list(self, table_number=None, dish_id=None) -> list[Order]:
        """Return open orders, ascending by id, optionally filtered."""

    @abstractmethod
    def delete(self, order_id) -> Order:
        """Mark an open order deleted or raise ``NotFound``."""

    @abstractmethod
    def purge_deleted(self, keep: Iterable = ()) -> int:
        """Hard-remove deleted orders whose id is not in ``keep``."""


def validate_order_input(table_number, items) -> tuple[LineItem, ...]:
    if isinstance(table_number, bool) or not isinstance(table_number, int) or table_number <= 0:
        raise ValidationError("table_number must be a positive integer")
    if items is None or isinstance(items, (str, bytes)):
        raise ValidationError("items must be a sequence of line items")
    try:
        line_items = tuple(LineItem.coerce(item) for item in items)
    except TypeError as exc:
        raise ValidationError(str(exc)) from exc
    if not line_items:
        raise ValidationError("an order needs at least one line item")
    for position, item in enumerate(line_items):
        if not isinstance(item.dish_id, str) or not item.dish_id.strip():
            raise ValidationError(f"items[{position}].dish_id must be a non-empty string")
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"items[{position}].quantity must be a positive integer")
    return line_items


class InMemoryOrderStore(OrderStorage):
    """
    Thread-safe volatile order store.

    A single lock guards the map, the id counter and the timestamp watermark,
    so id assignment and insertion are applied atomically and every read sees
    a state that existed at one point in time.
    """

    def __init__(self, now=timezone.now, cooking_time=estimate_cooking_time):
        self._orders: dict[int, Order] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._now = now
        self._cooking_time = cooking_time
        self._last_ts = None

    def _timestamp(self):
        # caller holds self._lock
        ts = self._now()
        if self._last_ts is not None and ts < self._last_ts:
            ts = self._last_ts
        self._last_ts = ts
        return ts

    def create(self, table_number, items) -> Order:
        line_items = validate_order_input(table_number, items)
        cooking_time = self._cooking_time()
        with self._lock:
            ts = self._timestamp()
            order = Order(
                id=next(self._ids),
                table_number=table_number,
                items=line_items,
                cooking_time=cooking_time,
                status=OrderStatus.OPEN,
                created_at=ts,
                updated_at=ts,
            )
            self._orders[order.id] = order
            result = order.copy()
        logger.info("created %s", result)
        return result

    def get(self, order_id) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or not order.is_open:
                raise NotFound(order_id)
            return order.copy()

    def list(self, table_number=None, dish_id=None) -> list[Order]:
        with self._lock:
            orders = [o.copy() for o in self._orders.values() if o.is_open]
        if table_number is not None:
            orders = [o for o in orders if o.table_number == table_number]
        if dish_id is not None:
            orders = [o for o in orders if o.has_dish(dish_id)]
        orders.sort(key=lambda o: o.id)
        return orders

    def delete(self, order_id) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or not order.is_open:
                raise NotFound(order_id)
            order.status = OrderStatus.DELETED
            order.updated_at = self._timestamp()
            result = order.copy()
        logger.info("deleted %s", result)
        return result

    def purge_deleted(self, keep: Iterable = ()) -> int:
        keep = set(keep)
        with self._lock:
            doomed = [
                oid for oid, order in self._orders.items()
                if not order.is_open and oid not in keep
            ]
            for oid in doomed:
                del self._orders[oid]
        if doomed:
            logger.debug("purged %d deleted orders", len(doomed))
        return len(doomed)

    def __len__(self):
        with self._lock:
            return len(self._orders)
