import atexit
import logging

from django.apps import AppConfig, apps
from django.conf import settings

logger = logging.getLogger(__name__)


class WaitstaffAppConfig(AppConfig):
    name = "waitstaff_app"
    verbose_name = "Waitstaff orders"

    service = None
    sweeper = None

    def ready(self):
        from .service import OrderService
        from .sweeper import EvictionSweeper

        interval = settings.ORDERS_SWEEP_INTERVAL
        sweeping = bool(interval and interval > 0)
        self.service = OrderService.build(dedup_ttl=settings.ORDERS_DEDUP_TTL, evict_on_create=not sweeping)
        if sweeping:
            self.sweeper = EvictionSweeper(self.service, interval=interval)
            self.sweeper.start()
            atexit.register(self.sweeper.stop)
        logger.info(
            "order service ready (dedup ttl=%ss, sweep interval=%ss)",
            self.service.cache.ttl, interval,
        )


def get_order_service():
    return apps.get_app_config("waitstaff_app").service
