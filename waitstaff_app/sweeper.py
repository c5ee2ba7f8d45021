import logging
import threading

logger = logging.getLogger(__name__)


class EvictionSweeper:
    """Background thread that periodically expires dedup tokens and purges deleted orders."""

    def __init__(self, service, interval: float = 30.0) -> None:
        if interval <= 0:
            raise ValueError("sweep interval must be positive")
        self.service = service
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="order-eviction-sweeper", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, join: bool = True, timeout: float | None = None) -> None:
        self._stop_event.set()
        if join and self._thread.is_alive():
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def sweep_once(self):
        try:
            evicted, purged = self.service.evict_expired()
        except Exception:
            # one bad sweep must not kill the thread
            logger.exception("eviction sweep failed")
            return None
        if evicted or purged:
            logger.debug("sweep evicted %d tokens, purged %d orders", evicted, purged)
        return evicted, purged

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.sweep_once()
