from django.conf import settings
from django.core.management.base import BaseCommand
from django.core.servers.basehttp import WSGIRequestHandler, get_internal_wsgi_application

from waitstaff_app.dispatch import PooledWSGIServer


class Command(BaseCommand):
    help = "Serve the order API on a fixed-size worker pool."

    def add_arguments(self, parser):
        parser.add_argument("--host", default="0.0.0.0")
        parser.add_argument("--port", type=int, default=settings.ORDERS_PORT)
        parser.add_argument("--workers", type=int, default=settings.ORDERS_WORKERS)

    def handle(self, *args, **options):
        server = PooledWSGIServer(
            (options["host"], options["port"]), WSGIRequestHandler, workers=options["workers"],
        )
        server.set_app(get_internal_wsgi_application())
        self.stdout.write(
            f"Serving orders on http://{options['host']}:{server.server_port}/orders "
            f"with {options['workers']} workers"
        )
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.server_close()
