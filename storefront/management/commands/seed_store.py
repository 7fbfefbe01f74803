"""
Management command: write the built-in menu, coupons and store config into the
active backend (realtime database or local storage mirror). Empty collections
only, unless --reset. Safe to run multiple times.
"""
from django.core.management.base import BaseCommand

from storefront.constants import ORDERS
from storefront.store import build_store
from storefront.store.base import SEED_DATA


class Command(BaseCommand):
    help = 'Seed empty storefront collections with the default dataset'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only print which collections would be written, do not save',
        )
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite menu, coupons and store config even when they hold data',
        )
        parser.add_argument(
            '--clear-orders',
            action='store_true',
            help='With --reset, also empty the orders collection',
        )

    def handle(self, *args, **options):
        store = build_store()
        self.stdout.write(f'Backend: {store.mode}')
        targets = list(SEED_DATA)
        if options['reset'] and options['clear_orders']:
            targets.append(ORDERS)
        if not options['reset']:
            targets = [c for c in targets if not store.fetch(c)]
        if not targets:
            self.stdout.write(self.style.SUCCESS('Nothing to seed; every collection has data.'))
            return
        if options['dry_run']:
            for collection in targets:
                self.stdout.write(f'Would write: {collection}')
            self.stdout.write(self.style.WARNING(f'Dry run: would write {len(targets)} collection(s).'))
            return
        if options['reset']:
            store.restore_defaults(targets)
        else:
            store.seed()
        self.stdout.write(self.style.SUCCESS(f'Wrote {len(targets)} collection(s): {", ".join(targets)}'))
