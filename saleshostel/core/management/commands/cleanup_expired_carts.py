"""
Management command to delete expired, inactive carts
Usage: python manage.py cleanup_expired_carts
"""
from django.core.management.base import BaseCommand
from saleshostel.cart.services import cleanup_expired_carts


class Command(BaseCommand):
    help = "Deletes inactive carts past their expiry date"

    def handle(self, *args, **options):
        deleted = cleanup_expired_carts()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired carts"))
