import logging
from concurrent.futures import ThreadPoolExecutor

from django.core.servers.basehttp import WSGIServer

logger = logging.getLogger(__name__)


class PooledWSGIServer(WSGIServer):
    """
    WSGI server that hands each accepted connection to a fixed-size worker pool.

    Connections are closed after one response, so a worker is never parked on
    an idle keep-alive socket.
    """

    def __init__(self, *args, workers, **kwargs):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        super().__init__(*args, **kwargs)
        self.workers = workers
        self.pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="orders-worker")

    def process_request(self, request, client_address):
        self.pool.submit(self._handle, request, client_address)

    def _handle(self, request, client_address):
        try:
            self.finish_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
        finally:
            self.shutdown_request(request)

    def server_close(self):
        super().server_close()
        self.pool.shutdown(wait=True)
        logger.info("worker pool stopped")
