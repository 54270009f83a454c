"""
Aggregate warehouse stats

Each stat is computed from two or three querysets and merged in memory, then
cached per location. Cache entries are keyed on the location's stats version,
so any change to items, loads, scan positions or tracked parts invalidates them.
"""
from collections import defaultdict
from datetime import timedelta
import logging

from django.db.models import Q
from django.utils import timezone

from warehouse.core.cache_utils import (
    cached_location_stat, FOG_OF_WAR_CACHE_TTL, ASIS_OVERVIEW_CACHE_TTL,
    ITEM_COUNT_CACHE_TTL, SCAN_COUNTS_CACHE_TTL, DATA_QUALITY_CACHE_TTL
)
from warehouse.core.models import LocationSettings
from warehouse.core.tenant import tenant_filter
from warehouse.inventory.models import InventoryItem, LoadMetadata
from warehouse.scanning.models import ProductLocation
from warehouse.scanning.progress import scanned_item_ids

logger = logging.getLogger(__name__)

PARTS_TYPE = 'Parts'
DELIVERED_STATUS = 'Delivered'
RECENT_SCANS_LIMIT = 10
SCAN_RECENCY_DAYS = 30


def _normalize(value):
    return (value or '').lower().strip()


def _percent(part, whole):
    return round(part / whole * 100) if whole > 0 else 0


def _delivered_load_names(location, inventory_type=None):
    loads = LoadMetadata.objects.filter(ge_cso_status=DELIVERED_STATUS, **tenant_filter(location))
    if inventory_type:
        loads = loads.filter(inventory_type=inventory_type)
    return set(loads.values_list('sub_inventory_name', flat=True))


@cached_location_stat('fog_of_war', cache_ttl=FOG_OF_WAR_CACHE_TTL)
def get_fog_of_war(location):
    """Share of (non-Parts) items with at least one recorded map position"""
    total = InventoryItem.objects.filter(**tenant_filter(location)).exclude(inventory_type=PARTS_TYPE).count()
    mapped = len(scanned_item_ids(location))

    recent = (
        ProductLocation.objects.filter(**tenant_filter(location))
        .order_by('-created_at', '-id')
        .values('id', 'product_type', 'sub_inventory', 'scanned_by', 'created_at')[:RECENT_SCANS_LIMIT]
    )
    return {
        'total_items': total,
        'mapped_items': mapped,
        'coverage_percent': _percent(mapped, total),
        'recent_scans': list(recent),
    }


@cached_location_stat('asis_overview', cache_ttl=ASIS_OVERVIEW_CACHE_TTL)
def get_asis_overview(location):
    """ASIS floor summary; items in delivered loads are left out"""
    if location is None:
        return None

    delivered = _delivered_load_names(location, inventory_type='ASIS')
    asis_loads = list(
        InventoryItem.objects.filter(inventory_type='ASIS', **tenant_filter(location))
        .values_list('sub_inventory', flat=True)
    )
    active = [load for load in asis_loads if not load or load not in delivered]
    unassigned = sum(1 for load in active if not load)

    loads = LoadMetadata.objects.filter(inventory_type='ASIS', **tenant_filter(location)).filter(
        Q(ge_cso_status__isnull=True) | ~Q(ge_cso_status=DELIVERED_STATUS)
    ).values_list('ge_source_status', 'ge_cso_status')

    for_sale = 0
    picked = 0
    for source_status, cso_status in loads:
        if _normalize(source_status) == 'for sale':
            for_sale += 1
        elif _normalize(source_status) == 'sold' and _normalize(cso_status) == 'picked':
            picked += 1

    return {
        'total_items': len(active),
        'unassigned_items': unassigned,
        'on_floor_loads': for_sale + picked,
        'for_sale_loads': for_sale,
        'picked_loads': picked,
    }


@cached_location_stat('item_count', cache_ttl=ITEM_COUNT_CACHE_TTL)
def get_inventory_item_count(location):
    """Items at the location, excluding those in delivered loads"""
    delivered = _delivered_load_names(location)
    items = InventoryItem.objects.filter(**tenant_filter(location))
    if delivered:
        items = items.filter(Q(sub_inventory__isnull=True) | ~Q(sub_inventory__in=delivered))
    return items.count()


@cached_location_stat('scan_counts', cache_ttl=SCAN_COUNTS_CACHE_TTL)
def get_inventory_scan_counts(location):
    """Total and scanned item counts per inventory type and per type:load"""
    scanned = scanned_item_ids(location)
    total_by_key = defaultdict(int)
    scanned_by_key = defaultdict(int)

    rows = (
        InventoryItem.objects.filter(**tenant_filter(location))
        .exclude(inventory_type=PARTS_TYPE)
        .values_list('id', 'inventory_type', 'sub_inventory')
    )
    for item_id, inventory_type, sub_inventory in rows:
        keys = [inventory_type]
        if sub_inventory:
            keys.append(f"{inventory_type}:{sub_inventory}")
        for key in keys:
            total_by_key[key] += 1
            if item_id in scanned:
                scanned_by_key[key] += 1

    return {'total_by_key': dict(total_by_key), 'scanned_by_key': dict(scanned_by_key)}


def deduplicate_items(items):
    """
    Collapse rows that share a serial.

    An ASIS row and an STA row for the same serial are expected (the STA row
    is kept). Any other repeated serial is a data problem and its first row
    is kept. Rows without a serial are always kept.

    Returns (kept_rows, asis_sta_duplicates, duplicate_serials).
    """
    by_serial = defaultdict(list)
    kept = []
    for item in items:
        if item['serial']:
            by_serial[item['serial']].append(item)
        else:
            kept.append(item)

    asis_sta_duplicates = 0
    duplicate_serials = 0
    for rows in by_serial.values():
        if len(rows) == 1:
            kept.append(rows[0])
            continue
        sta_row = next((row for row in rows if row['inventory_type'] == 'STA'), None)
        asis_row = next((row for row in rows if row['inventory_type'] == 'ASIS'), None)
        if sta_row and asis_row:
            asis_sta_duplicates += 1
            kept.append(sta_row)
        else:
            duplicate_serials += 1
            kept.append(rows[0])
    return kept, asis_sta_duplicates, duplicate_serials


@cached_location_stat('data_quality', cache_ttl=DATA_QUALITY_CACHE_TTL)
def get_data_quality(location):
    """Integrity, catalog coverage, load assignment and scan coverage metrics"""
    items = list(
        InventoryItem.objects.filter(**tenant_filter(location))
        .order_by('id')
        .values('id', 'serial', 'inventory_type', 'model', 'product_id', 'sub_inventory', 'ge_orphaned')
    )
    items, asis_sta_duplicates, duplicate_serials = deduplicate_items(items)
    total = len(items)

    inventory_integrity = {
        'total_items': total,
        'asis_sta_duplicates': asis_sta_duplicates,
        'duplicate_serials': duplicate_serials,
        'orphaned_items': sum(1 for item in items if item['ge_orphaned']),
    }

    models = {item['model'] for item in items}
    models_with_product = {item['model'] for item in items if item['product_id']}
    product_catalog = {
        'total_models': len(models),
        'models_with_product': len(models_with_product),
        'models_missing_product': len(models) - len(models_with_product),
        'coverage_percent': _percent(len(models_with_product), len(models)),
    }

    load_names = set(
        LoadMetadata.objects.filter(**tenant_filter(location)).values_list('sub_inventory_name', flat=True)
    )
    load_count = LoadMetadata.objects.filter(**tenant_filter(location)).count()
    load_assignments = {
        'total_loads': load_count,
        'items_with_loads': sum(1 for item in items if item['sub_inventory']),
        'loads_with_metadata': load_count,
        'orphaned_load_assignments': sum(
            1 for item in items if item['sub_inventory'] and item['sub_inventory'] not in load_names
        ),
    }

    cutoff = timezone.now() - timedelta(days=SCAN_RECENCY_DAYS)
    scanned_ids = set()
    recent_ids = set()
    for item_id, created_at in (
        ProductLocation.objects.filter(inventory_item_id__isnull=False, **tenant_filter(location))
        .values_list('inventory_item_id', 'created_at')
    ):
        scanned_ids.add(item_id)
        if created_at > cutoff:
            recent_ids.add(item_id)

    with_scans = sum(1 for item in items if item['id'] in scanned_ids)
    scan_coverage = {
        'total_items': total,
        'items_with_scans': with_scans,
        'scanned_last_30_days': sum(1 for item in items if item['id'] in recent_ids),
        'never_scanned': total - with_scans,
        'coverage_percent': _percent(with_scans, total),
    }

    settings_row = LocationSettings.objects.filter(location=location).first()
    sync_health = {
        field: getattr(settings_row, field, None) if settings_row else None
        for field in ('last_sync_asis_at', 'last_sync_sta_at', 'last_sync_fg_at',
                      'last_sync_inbound_at', 'last_sync_orders_at')
    }

    return {
        'inventory_integrity': inventory_integrity,
        'product_catalog': product_catalog,
        'load_assignments': load_assignments,
        'scan_coverage': scan_coverage,
        'sync_health': sync_health,
    }
