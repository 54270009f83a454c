"""Stock lookups, count history and snapshots for tracked parts"""
from datetime import timedelta

from django.db.models import Q
from django.utils import timezone

from warehouse.catalog.models import Product
from warehouse.catalog.serializers import ProductSummarySerializer
from warehouse.core.cache_utils import cached_location_stat
from warehouse.core.tenant import tenant_filter
from warehouse.inventory.models import InventoryItem
from .models import TrackedPart, InventoryCount

PARTS_TYPE = 'Parts'
REORDER_ALERTS_CACHE_TTL = 60
DEFAULT_HISTORY_DAYS = 90
DEFAULT_AVAILABLE_LIMIT = 1000
SNAPSHOT_BATCH_SIZE = 500
DEFAULT_SNAPSHOT_NOTES = 'snapshot: manual'


def get_parts_stock_map(location, product_ids=None):
    """Map of product id to {'id', 'qty'} of the location's Parts item for it"""
    items = InventoryItem.objects.filter(
        inventory_type=PARTS_TYPE, product_id__isnull=False, **tenant_filter(location)
    )
    if product_ids is not None:
        items = items.filter(product_id__in=product_ids)

    stock_map = {}
    for item_id, product_id, qty in items.order_by('id').values_list('id', 'product_id', 'qty'):
        # First row wins when a product has more than one Parts row
        stock_map.setdefault(product_id, {'id': item_id, 'qty': qty})
    return stock_map


def get_active_tracked_parts(location):
    return TrackedPart.objects.filter(is_active=True, **tenant_filter(location)).select_related('product')


@cached_location_stat('reorder_alerts', cache_ttl=REORDER_ALERTS_CACHE_TTL)
def get_reorder_alerts(location):
    """
    Tracked parts at or below their reorder threshold.

    Parts not yet reordered come first, then lowest quantity.
    """
    tracked = list(get_active_tracked_parts(location))
    stock_map = get_parts_stock_map(location, [part.product_id for part in tracked])

    alerts = []
    for part in tracked:
        stock = stock_map.get(part.product_id)
        qty = stock['qty'] if stock else 0
        if qty > part.reorder_threshold:
            continue
        alerts.append({
            'tracked_part_id': part.id,
            'product': dict(ProductSummarySerializer(part.product).data),
            'inventory_item_id': stock['id'] if stock else None,
            'current_qty': qty,
            'reorder_threshold': part.reorder_threshold,
            'is_critical': qty == 0,
            'reordered': part.reordered_at is not None,
            'reordered_at': part.reordered_at,
        })

    alerts.sort(key=lambda alert: (alert['reordered'], alert['current_qty']))
    return alerts


def get_count_history_with_products(location, product_id=None, days=DEFAULT_HISTORY_DAYS):
    """Count snapshots of the last `days` days at the location, oldest first"""
    since = timezone.now() - timedelta(days=days)
    counts = InventoryCount.objects.filter(created_at__gte=since, **tenant_filter(location)).select_related('product')
    if product_id:
        counts = counts.filter(product_id=product_id)
    return counts.order_by('created_at', 'id')


def get_available_parts_to_track(location, search=None, limit=DEFAULT_AVAILABLE_LIMIT):
    """
    Products that can be added to tracking.

    Without a search term only parts are listed. A search matches any product
    by model, description or brand; matches that are already tracked come back
    separately so the caller can tell the user why they are missing.

    Returns (parts, tracked_matches).
    """
    tracked_ids = set(
        TrackedPart.objects.filter(is_active=True, **tenant_filter(location)).values_list('product_id', flat=True)
    )
    search = (search or '').strip()

    products = Product.objects.order_by('model')
    if search:
        products = products.filter(
            Q(model__icontains=search) | Q(description__icontains=search) | Q(brand__icontains=search)
        )
    else:
        products = products.filter(Q(is_part=True) | Q(product_category='part'))

    candidates = list(products[:limit])
    parts = [product for product in candidates if product.id not in tracked_ids]
    tracked_matches = [product for product in candidates if product.id in tracked_ids] if search else []
    return parts, tracked_matches


def snapshot_tracked_parts(location, counted_by=None, notes=DEFAULT_SNAPSHOT_NOTES, tracked_part_ids=None):
    """Record a count row at the current quantity for each active tracked part"""
    parts = get_active_tracked_parts(location)
    if tracked_part_ids is not None:
        parts = parts.filter(id__in=tracked_part_ids)
    parts = list(parts.order_by('id'))
    if not parts:
        return 0

    stock_map = get_parts_stock_map(location, [part.product_id for part in parts])
    counts = []
    for part in parts:
        stock = stock_map.get(part.product_id)
        qty = stock['qty'] if stock else 0
        counts.append(InventoryCount(
            company_id=location.company_id,
            location=location,
            product_id=part.product_id,
            tracked_part=part,
            qty=qty,
            previous_qty=qty,
            delta=0,
            counted_by=counted_by,
            notes=notes,
        ))
    InventoryCount.objects.bulk_create(counts, batch_size=SNAPSHOT_BATCH_SIZE)
    return len(counts)
