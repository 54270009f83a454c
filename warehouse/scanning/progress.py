"""
Denormalized load scanning progress

A load's progress counters on LoadMetadata are recomputed from the items in
the load and the scan positions recorded at the location.
"""
import logging

from django.db import DatabaseError

from warehouse.inventory.models import InventoryItem, LoadMetadata
from .models import ProductLocation

logger = logging.getLogger(__name__)


def scanned_item_ids(location):
    """Ids of every item at the location that has at least one scan position"""
    return set(
        ProductLocation.objects.filter(location=location, inventory_item_id__isnull=False)
        .values_list('inventory_item_id', flat=True)
        .distinct()
    )


def update_load_scanning_progress(location, load_name, scanned_ids=None):
    """
    Recompute items_scanned_count/items_total_count/scanning_complete for
    every load at the location named load_name.

    A blank name or missing location is a no-op. Database errors are logged
    and swallowed so the caller's mutation still succeeds.
    """
    if location is None or not load_name or not str(load_name).strip():
        return None

    try:
        load_item_ids = set(
            InventoryItem.objects.filter(location=location, sub_inventory=load_name)
            .values_list('id', flat=True)
        )
        if scanned_ids is None:
            scanned_ids = scanned_item_ids(location)

        total = len(load_item_ids)
        scanned = len(load_item_ids & scanned_ids)
        progress = {
            'items_scanned_count': scanned,
            'items_total_count': total,
            'scanning_complete': total > 0 and scanned == total,
        }
        LoadMetadata.objects.filter(location=location, sub_inventory_name=load_name).update(**progress)
        logger.debug(f"Load {load_name} progress at location {location.id}: {scanned}/{total}")
        return progress
    except DatabaseError as e:
        logger.error(f"Failed to update scanning progress for load {load_name}: {str(e)}")
        return None


def update_loads_scanning_progress(location, load_names):
    """Recompute progress for several loads, sharing one scan-position query"""
    names = {name for name in load_names if name and str(name).strip()}
    if location is None or not names:
        return
    scanned_ids = scanned_item_ids(location)
    for name in sorted(names):
        update_load_scanning_progress(location, name, scanned_ids=scanned_ids)


def recalculate_all_load_scanning_progress(location):
    """Recompute progress for every load at the location"""
    if location is None:
        return 0
    load_names = set(
        LoadMetadata.objects.filter(location=location).values_list('sub_inventory_name', flat=True)
    )
    update_loads_scanning_progress(location, load_names)
    logger.info(f"Recalculated scanning progress for {len(load_names)} loads at location {location.id}")
    return len(load_names)
