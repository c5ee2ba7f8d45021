import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta

from .exceptions import ReservationPending

logger = logging.getLogger(__name__)

DEDUP_TTL = timedelta(minutes=5)


class Reserved:
    """The caller owns the token and must create the order, then ``complete``."""

    def __repr__(self):
        return "RESERVED"


RESERVED = Reserved()


@dataclass(frozen=True)
class Existing:
    order_id: int


class _Entry:
    __slots__ = ("order_id", "expires_at", "settled")

    def __init__(self, settled):
        self.order_id = None
        self.expires_at = None
        # signalled when the reservation is completed or abandoned
        self.settled = settled

    @property
    def in_flight(self):
        return self.order_id is None

    def expired(self, now):
        return not self.in_flight and self.expires_at <= now


def _seconds(ttl):
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


class DedupCache:
    """
    Short-lived map from client request token to the order it produced.

    A token is first *reserved* (in flight) by the request that will perform
    the create, then *completed* with the order id. Concurrent duplicates that
    arrive while the token is in flight block on a condition variable owned by
    that token until it is completed or abandoned, so two retries of one
    logical request can never both create an order.

    ``clock`` must be monotonic; it only drives expiry.
    """

    def __init__(self, ttl=DEDUP_TTL, clock=time.monotonic):
        self.ttl = _seconds(ttl)
        if self.ttl <= 0:
            raise ValueError("dedup ttl must be positive")
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def reserve_or_get(self, request_token, timeout=None):
        """
        Return ``RESERVED`` if the caller now owns ``request_token``, or
        ``Existing(order_id)`` if an earlier request already created the order.

        Blocks while another request holds the token in flight. If that request
        abandons the token, one waiter takes the reservation over. Raises
        ``ReservationPending`` if ``timeout`` seconds pass first; the pending
        reservation is left in place.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            while True:
                entry = self._entries.get(request_token)
                if entry is not None and entry.expired(self._clock()):
                    del self._entries[request_token]
                    logger.debug("token %r expired, releasing it", request_token)
                    entry = None

                if entry is None:
                    self._entries[request_token] = _Entry(threading.Condition(self._lock))
                    logger.debug("reserved token %r", request_token)
                    return RESERVED

                if not entry.in_flight:
                    logger.debug("replaying token %r -> order %s", request_token, entry.order_id)
                    return Existing(entry.order_id)

                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise ReservationPending()
                logger.debug("token %r in flight, waiting", request_token)
                if not entry.settled.wait_for(lambda: self._entries.get(request_token) is not entry
                                              or not entry.in_flight, remaining):
                    raise ReservationPending()

    def complete(self, request_token, order_id):
        """Bind ``request_token`` to ``order_id`` until ``now + ttl``."""
        with self._lock:
            entry = self._entries.get(request_token)
            if entry is None:
                entry = self._entries[request_token] = _Entry(threading.Condition(self._lock))
            elif not entry.in_flight and entry.order_id != order_id:
                raise RuntimeError(f"token {request_token!r} is already bound to order {entry.order_id}")
            entry.order_id = order_id
            entry.expires_at = self._clock() + self.ttl
            entry.settled.notify_all()
        logger.debug("completed token %r -> order %s", request_token, order_id)

    def abandon(self, request_token):
        """Drop an in-flight reservation whose create failed and wake its waiters."""
        with self._lock:
            entry = self._entries.get(request_token)
            if entry is None or not entry.in_flight:
                return
            del self._entries[request_token]
            entry.settled.notify_all()
        logger.debug("abandoned token %r", request_token)

    def evict_expired(self) -> list:
        """Remove completed entries past their expiry; return the order ids they referenced."""
        now = self._clock()
        with self._lock:
            expired = [token for token, entry in self._entries.items() if entry.expired(now)]
            evicted = [self._entries.pop(token).order_id for token in expired]
        if evicted:
            logger.debug("evicted %d expired tokens", len(evicted))
        return evicted

    def referenced_order_ids(self) -> set:
        with self._lock:
            return {e.order_id for e in self._entries.values() if not e.in_flight}

    def __contains__(self, request_token):
        with self._lock:
            return request_token in self._entries

    def __len__(self):
        with self._lock:
            return len(self._entries)
