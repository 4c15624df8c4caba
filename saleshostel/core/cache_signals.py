"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_products_cache, invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

CATALOG_MODELS = {'Product', 'ProductUnit', 'Category'}
DASHBOARD_MODELS = {'Order', 'Supply', 'StockMovement'}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations (seeding, cleanup) to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_on_change(sender, instance, **kwargs):
    """Invalidate product and dashboard caches when their source rows change"""
    if is_suspended():
        return

    model_name = sender.__name__
    if model_name in CATALOG_MODELS:
        logger.debug(f"{model_name} changed, invalidating products cache")
        invalidate_products_cache()
    if model_name in DASHBOARD_MODELS or model_name == 'ProductUnit':
        invalidate_dashboard_cache()
