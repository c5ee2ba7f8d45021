import logging

from .exceptions import Conflict, NotFound, ValidationError
from .idempotency import DEDUP_TTL, RESERVED, DedupCache
from .store import InMemoryOrderStore, OrderStorage

logger = logging.getLogger(__name__)


class OrderService:
    """
    Entry point used by the transport layer.

    Combines the dedup cache with the order store. The two components each
    guard their own state; no call here holds both locks at once.
    """

    def __init__(self, store: OrderStorage, cache: DedupCache, evict_on_create=False):
        self.store = store
        self.cache = cache
        # set when no background sweeper runs, so creates keep memory bounded
        self.evict_on_create = evict_on_create

    @classmethod
    def build(cls, dedup_ttl=DEDUP_TTL, clock=None, evict_on_create=False, cooking_time=None):
        cache = DedupCache(dedup_ttl) if clock is None else DedupCache(dedup_ttl, clock=clock)
        store = InMemoryOrderStore() if cooking_time is None else InMemoryOrderStore(cooking_time=cooking_time)
        return cls(store, cache, evict_on_create=evict_on_create)

    def create_order(self, request_token, table_number, items, timeout=None):
        if not isinstance(request_token, str) or not request_token.strip():
            raise ValidationError("request_token must be a non-empty string")

        if self.evict_on_create:
            self.evict_expired()

        outcome = self.cache.reserve_or_get(request_token, timeout=timeout)
        if outcome is RESERVED:
            try:
                order = self.store.create(table_number, items)
            except BaseException:
                self.cache.abandon(request_token)
                raise
            self.cache.complete(request_token, order.id)
            return order

        try:
            return self.store.get(outcome.order_id)
        except NotFound as exc:
            logger.warning("token %r resolved to order %s which is gone", request_token, outcome.order_id)
            raise Conflict(
                f"request token {request_token!r} resolved to order {outcome.order_id}, which no longer exists"
            ) from exc

    def list_orders(self, table_number=None, dish_id=None):
        return self.store.list(table_number=table_number, dish_id=dish_id)

    def get_order(self, order_id):
        return self.store.get(order_id)

    def delete_order(self, order_id):
        self.store.delete(order_id)

    def evict_expired(self):
        """
        Drop expired tokens, then purge deleted orders no live token still
        points at. Returns ``(tokens_evicted, orders_purged)``.
        """
        evicted = self.cache.evict_expired()
        purged = self.store.purge_deleted(keep=self.cache.referenced_order_ids())
        return len(evicted), purged
