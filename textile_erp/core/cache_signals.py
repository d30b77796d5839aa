"""
Cache invalidation signals
Automatically invalidate a company's dashboard cache when its data changes
"""
from django.apps import apps
from django.db.models.signals import post_save, post_delete
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Models whose writes change dashboard numbers
DASHBOARD_MODELS = [
    'crm.Customer',
    'crm.Supplier',
    'inventory.InventoryItem',
    'production.ProductionOrder',
    'production.ProductionStage',
    'production.FoldingChecking',
    'dispatch.Dispatch',
    'hr.Employee',
    'hr.Attendance',
]

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals during bulk operations.
    Invalidate the cache manually after the block.
    """
    try:
        _thread_locals.suspended = True
        logger.debug("Dashboard cache signals suspended")
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def _company_id_of(instance):
    company_id = getattr(instance, 'company_id', None)
    if company_id is None and hasattr(instance, 'order_id'):
        # ProductionStage is owned through its order
        order = getattr(instance, 'order', None)
        company_id = getattr(order, 'company_id', None)
    return company_id


def invalidate_dashboard_on_change(sender, instance, **kwargs):
    if is_suspended():
        return
    invalidate_dashboard_cache(_company_id_of(instance))


for label in DASHBOARD_MODELS:
    model = apps.get_model(label)
    post_save.connect(invalidate_dashboard_on_change, sender=model, dispatch_uid=f'dashboard_cache_save_{label}')
    post_delete.connect(invalidate_dashboard_on_change, sender=model, dispatch_uid=f'dashboard_cache_delete_{label}')
