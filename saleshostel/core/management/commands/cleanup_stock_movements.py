"""
Management command to prune old audit and adjustment stock movements
Usage: python manage.py cleanup_stock_movements --days 365
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from saleshostel.inventory.services import cleanup_old_movements


class Command(BaseCommand):
    help = "Deletes non-reversed audit/adjustment stock movements older than the retention window"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=settings.SALESHOSTEL['MOVEMENT_RETENTION_DAYS'],
            help='Retention window in days',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days < 1:
            raise CommandError('--days must be at least 1')
        deleted = cleanup_old_movements(days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} stock movements older than {days} days"))
