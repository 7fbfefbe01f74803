"""
Management command: run the storefront data hub in the foreground. Keeps the
collections in sync, logs new orders and rings the order alarm to the console
(and to connected admin sockets) until interrupted.
"""
import threading

from django.core.management.base import BaseCommand

from storefront.constants import ORDERS, OrderStatus
from storefront.hub import get_hub, reset_hub


class Command(BaseCommand):
    help = 'Run the storefront sync loop and order alarm in the foreground'

    def add_arguments(self, parser):
        parser.add_argument(
            '--acknowledge-all',
            action='store_true',
            help='Acknowledge every waiting new order on startup',
        )

    def handle(self, *args, **options):
        hub = get_hub()
        self.stdout.write(self.style.SUCCESS(f'Storefront sync running in {hub.mode} mode. Ctrl-C to stop.'))
        if options['acknowledge_all']:
            hub.acknowledge_all_orders()
            self.stdout.write('Acknowledged all waiting orders.')

        def report(event, payload):
            if event == 'newOrders':
                self.stdout.write(self.style.WARNING(f'New order(s): {", ".join(payload)}'))
            elif event == ORDERS:
                waiting = sum(1 for o in payload if o['status'] == OrderStatus.NEW)
                self.stdout.write(f'{len(payload)} order(s), {waiting} waiting')

        hub.add_listener(report)
        stopped = threading.Event()
        try:
            while not stopped.wait(1):
                pass
        except KeyboardInterrupt:
            self.stdout.write('Stopping.')
        finally:
            hub.remove_listener(report)
            reset_hub()
