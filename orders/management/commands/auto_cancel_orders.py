"""
Management command to cancel pending orders past the confirmation window.

Usage:
    python manage.py auto_cancel_orders [--hours 24] [--dry-run]

Intended for an hourly cron entry; the HTTP endpoint
``POST /api/orders/auto-cancel/`` triggers the same sweep.
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from orders import services
from orders.models import Order


class Command(BaseCommand):
    help = 'Cancel pending orders that were not confirmed within the window'

    def add_arguments(self, parser):
        parser.add_argument(
            '--hours',
            type=int,
            default=None,
            help='Confirmation window in hours (default: ORDER_AUTO_CANCEL_HOURS)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the orders that would be cancelled without changing them',
        )

    def handle(self, *args, **options):
        window = timedelta(hours=options['hours']) if options['hours'] else services.auto_cancel_window()

        if options['dry_run']:
            cutoff = timezone.now() - window
            numbers = list(
                Order.objects.filter(status=Order.OrderStatus.PENDING, created_at__lt=cutoff)
                .order_by('created_at')
                .values_list('order_number', flat=True)
            )
            self.stdout.write(f'{len(numbers)} pending order(s) would be cancelled')
            for number in numbers:
                self.stdout.write(f'  {number}')
            return

        result = services.auto_cancel_stale_orders(window=window)

        if result.cancelled_count:
            self.stdout.write(
                self.style.SUCCESS(f'Cancelled {result.cancelled_count} pending order(s)')
            )
            for number in result.order_numbers:
                self.stdout.write(f'  {number}')
        else:
            self.stdout.write('No pending orders to cancel')

        for error in result.errors:
            self.stdout.write(
                self.style.ERROR(f'Failed to cancel {error["orderNumber"]}: {error["error"]}')
            )
