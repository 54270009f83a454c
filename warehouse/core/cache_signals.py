"""
Cache invalidation signals
Automatically invalidate per-location stats when scan data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_location_stats

logger = logging.getLogger(__name__)

# Models whose changes affect the per-location stats
STATS_MODELS = ('InventoryItem', 'LoadMetadata', 'ProductLocation', 'TrackedPart')

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Used by bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    previous = is_suspended()
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = previous


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_location_stats_cache(sender, instance, **kwargs):
    """Invalidate a location's stats cache when inventory or scan rows change"""
    if is_suspended():
        return

    if sender.__name__ not in STATS_MODELS:
        return

    location_id = getattr(instance, 'location_id', None)
    if not location_id:
        return

    try:
        invalidate_location_stats(location_id)
    except Exception as e:
        logger.warning(f"Error invalidating stats cache for location {location_id}: {e}")
