"""
Cache invalidation signals
Automatically invalidate cached aggregates when inventory data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

INVENTORY_MODELS = {
    'equipment.Equipment',
    'events.Event',
    'events.EquipmentEvent',
    'inventory.DamagedEquipment',
}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Used for bulk operations (seeding); invalidate manually after the block.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_inventory_cache(sender, instance, **kwargs):
    """Invalidate dashboard cache when equipment, events, reservations or damage records change"""
    if is_suspended():
        return

    if sender._meta.label not in INVENTORY_MODELS:
        return

    try:
        # Runs immediately when no transaction is open
        transaction.on_commit(invalidate_dashboard_cache)
    except Exception as e:
        logger.warning(f"Error in invalidate_inventory_cache signal: {e}")
