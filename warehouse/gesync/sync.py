"""
GE ASIS reconciliation

Pulls the ASIS inventory and load exports from the GE portal and reconciles
them with the location's ASIS inventory items:
- items are matched by serial; unmatched existing items are orphans
- sub_inventory comes from the load each serial is listed in
- load GE status fields are upserted onto LoadMetadata

prepare_ge_sync() computes the changes without writing; execute_ge_sync()
applies them in one transaction.
"""
import logging

from django.db import transaction
from django.utils import timezone

from warehouse.catalog.models import Product
from warehouse.core.cache_signals import suspend_cache_signals
from warehouse.core.cache_utils import invalidate_location_stats
from warehouse.core.models import LocationSettings
from warehouse.core.tenant import tenant_filter
from warehouse.core.utils import log_activity, parse_leading_int
from warehouse.inventory.models import InventoryItem, LoadMetadata
from warehouse.scanning.progress import recalculate_all_load_scanning_progress
from .client import GEClient, GESyncError

logger = logging.getLogger(__name__)

ASIS_TYPE = 'ASIS'
ASIS_CSO = 'ASIS'
UNKNOWN_PRODUCT_TYPE = 'UNKNOWN'
DEFAULT_BATCH_SIZE = 500
DEFAULT_ORPHAN_STATUS = 'NOT_IN_GE'

INVENTORY_PATH = 'ASIS.json'
LOAD_DATA_PATH = 'ASISLoadData.json'
REPORT_HISTORY_PATH = 'ASISReportHistoryData.json'

# Fields written on existing rows during an update
UPSERT_FIELDS = [
    'serial', 'model', 'cso', 'qty', 'product_type', 'product_id', 'inventory_type', 'sub_inventory',
    'ge_model', 'ge_serial', 'ge_inv_qty', 'is_scanned', 'scanned_at', 'scanned_by', 'notes', 'status',
    'ge_orphaned', 'ge_orphaned_at', 'ge_availability_status', 'ge_availability_message',
]


class GESyncResult:
    """Outcome of prepare_ge_sync: stats plus the rows to write"""

    def __init__(self, stats, items_to_upsert, orphan_ids, load_info):
        self.stats = stats
        self.items_to_upsert = items_to_upsert
        self.orphan_ids = orphan_ids
        self.load_info = load_info

    def __repr__(self):
        return f"<GESyncResult {self.stats}>"


def _text(value):
    if value is None:
        return ''
    return str(value).strip()


def is_on_floor(load):
    """FOR SALE loads, and SOLD loads that have been picked, are still in the building"""
    return load['status'] == 'FOR SALE' or (load['status'] == 'SOLD' and load['cso_status'] == 'Picked')


def fetch_load_items(client, load_number):
    """Items of one load; falls back to the ASISLoadData copy, then to no items"""
    for path in (f'ASISReportHistoryData/{load_number}.json', f'ASISLoadData/{load_number}.json'):
        try:
            return client.fetch_json(path)
        except GESyncError as e:
            logger.debug(f"Load {load_number} not available at {path}: {str(e)}")
    logger.warning(f"Could not fetch items for load {load_number}")
    return []


def fetch_ge_data(client):
    """
    Fetch the ASIS inventory and the items of every load still on the floor.

    Returns (inventory, serial_to_load, load_info).
    """
    inventory = client.fetch_json(INVENTORY_PATH)
    load_metadata = client.fetch_json(LOAD_DATA_PATH)
    report_history = client.fetch_json(REPORT_HISTORY_PATH)

    if not isinstance(inventory, list) or not isinstance(load_metadata, list) or not isinstance(report_history, list):
        raise GESyncError("Unexpected GE export format: expected JSON arrays")

    load_info_map = {}
    for load in report_history:
        load_number = _text(load.get('Load Number'))
        if not load_number:
            continue
        load_info_map[load_number] = {
            'load_number': load_number,
            'status': load.get('Status'),
            'cso_status': load.get('CSO Status'),
            'units': parse_leading_int(load.get('Units')) or 0,
            'submitted_date': load.get('Submitted Date') or None,
            'cso': load.get('CSO') or None,
            'notes': None,
        }

    # ASISLoadData only lists FOR SALE loads, but carries their notes
    for load in load_metadata:
        existing = load_info_map.get(_text(load.get('Load Number')))
        if existing is not None:
            existing['notes'] = load.get('Notes')

    load_info = list(load_info_map.values())

    serial_to_load = {}
    for load in load_info:
        if not is_on_floor(load):
            continue
        for item in fetch_load_items(client, load['load_number']):
            serial = _text(item.get('SERIALS'))
            if serial:
                serial_to_load[serial] = load['load_number']

    logger.info(f"Fetched {len(inventory)} GE items across {len(load_info)} loads")
    return inventory, serial_to_load, load_info


def _load_counts(load_info):
    for_sale = sum(1 for load in load_info if load['status'] == 'FOR SALE')
    picked = sum(1 for load in load_info if load['status'] == 'SOLD' and load['cso_status'] == 'Picked')
    return for_sale, picked


def calculate_ge_sync_stats(client):
    """Item and load counts from GE, without touching the database"""
    inventory, serial_to_load, load_info = fetch_ge_data(client)

    total = len(inventory)
    in_loads = sum(1 for item in inventory if _text(item.get('Serial #')) in serial_to_load)
    for_sale, picked = _load_counts(load_info)

    return {
        'total_items': total,
        'items_in_loads': in_loads,
        'unassigned_items': total - in_loads,
        'for_sale_loads': for_sale,
        'picked_loads': picked,
        'load_info': load_info,
    }


def prepare_ge_sync(location, client):
    """Compute the upserts and orphans for the location's ASIS inventory"""
    inventory, serial_to_load, load_info = fetch_ge_data(client)

    models = {_text(item.get('Model #')) for item in inventory}
    product_lookup = {
        model: (product_id, product_type)
        for model, product_id, product_type in Product.objects.filter(model__in=models)
        .values_list('model', 'id', 'product_type')
    }

    existing_by_serial = {}
    existing_ids = set()
    for item_id, serial in (
        InventoryItem.objects.filter(inventory_type=ASIS_TYPE, **tenant_filter(location))
        .order_by('id')
        .values_list('id', 'serial')
    ):
        if not serial:
            continue
        existing_by_serial.setdefault(serial, item_id)
        existing_ids.add(item_id)

    items_to_upsert = []
    matched_ids = set()
    new_items = 0
    updated_items = 0
    items_in_loads = 0

    for ge_item in inventory:
        serial = _text(ge_item.get('Serial #'))
        if not serial:
            continue

        model = _text(ge_item.get('Model #'))
        product_id, product_type = product_lookup.get(model, (None, UNKNOWN_PRODUCT_TYPE))
        load_number = serial_to_load.get(serial)
        existing_id = existing_by_serial.get(serial)

        if load_number:
            items_in_loads += 1
        if existing_id:
            matched_ids.add(existing_id)
            updated_items += 1
        else:
            new_items += 1

        qty_value = parse_leading_int(ge_item.get('Inv Qty'))
        items_to_upsert.append({
            'id': existing_id,
            'serial': serial,
            'model': model,
            'cso': ASIS_CSO,
            'qty': qty_value if qty_value and qty_value > 0 else 1,
            'product_type': product_type,
            'product_id': product_id,
            'inventory_type': ASIS_TYPE,
            'sub_inventory': load_number,
            'ge_model': model or None,
            'ge_serial': serial,
            'ge_inv_qty': qty_value,
            'is_scanned': False,
            'scanned_at': None,
            'scanned_by': None,
            'notes': None,
            'status': None,
            'ge_orphaned': False,
            'ge_orphaned_at': None,
            'ge_availability_status': _text(ge_item.get('Availability Status')) or None,
            'ge_availability_message': _text(ge_item.get('Availability Message')) or None,
        })

    orphan_ids = sorted(existing_ids - matched_ids)
    for_sale, picked = _load_counts(load_info)

    stats = {
        'total_ge_items': len(inventory),
        'items_in_loads': items_in_loads,
        'unassigned_items': len(inventory) - items_in_loads,
        'new_items': new_items,
        'updated_items': updated_items,
        'orphaned_items': len(orphan_ids),
        'for_sale_loads': for_sale,
        'picked_loads': picked,
    }
    return GESyncResult(stats, items_to_upsert, orphan_ids, load_info)


def _upsert_load_metadata(location, load_info):
    for load in load_info:
        LoadMetadata.objects.update_or_create(
            location=location,
            inventory_type=ASIS_TYPE,
            sub_inventory_name=load['load_number'],
            defaults={
                'company_id': location.company_id,
                'ge_source_status': load['status'],
                'ge_cso_status': load['cso_status'],
                'ge_cso': load['cso'],
                'ge_units': load['units'],
                'ge_submitted_date': load['submitted_date'],
                'ge_notes': load['notes'],
            },
        )


def execute_ge_sync(location, result, batch_size=DEFAULT_BATCH_SIZE, mark_orphans=False,
                    orphan_status=DEFAULT_ORPHAN_STATUS, user=None, request=None):
    """
    Apply a prepared sync: insert new items, update matched items, optionally
    flag orphans, refresh load metadata and progress, and stamp the sync time.
    """
    now = timezone.now()
    new_rows = [row for row in result.items_to_upsert if not row.get('id')]
    existing_rows = [row for row in result.items_to_upsert if row.get('id')]
    orphans_marked = 0

    with suspend_cache_signals():
        with transaction.atomic():
            InventoryItem.objects.bulk_create(
                [
                    InventoryItem(company_id=location.company_id, location=location,
                                  **{key: value for key, value in row.items() if key != 'id'})
                    for row in new_rows
                ],
                batch_size=batch_size,
            )

            for start in range(0, len(existing_rows), batch_size):
                chunk = existing_rows[start:start + batch_size]
                objects = InventoryItem.objects.in_bulk([row['id'] for row in chunk])
                to_update = []
                for row in chunk:
                    obj = objects.get(row['id'])
                    if obj is None:
                        continue
                    for field in UPSERT_FIELDS:
                        setattr(obj, field, row[field])
                    obj.updated_at = now
                    to_update.append(obj)
                InventoryItem.objects.bulk_update(to_update, UPSERT_FIELDS + ['updated_at'])

            if mark_orphans and result.orphan_ids:
                orphans_marked = InventoryItem.objects.filter(
                    id__in=result.orphan_ids, **tenant_filter(location)
                ).update(status=orphan_status, ge_orphaned=True, ge_orphaned_at=now)

            _upsert_load_metadata(location, result.load_info)
            recalculate_all_load_scanning_progress(location)

            settings_row = LocationSettings.for_location(location)
            settings_row.last_sync_asis_at = now
            settings_row.save(update_fields=['last_sync_asis_at', 'updated_at'])

    invalidate_location_stats(location.id)

    summary = {
        'inserted': len(new_rows),
        'updated': len(existing_rows),
        'orphans_marked': orphans_marked,
        'loads': len(result.load_info),
    }
    logger.info(f"ASIS sync for location {location.id}: {summary}")

    if user is not None:
        log_activity(
            location=location,
            user=user,
            action='asis_sync',
            entity_type='inventory',
            details={**result.stats, **summary},
            request=request,
        )
    return summary


def default_client(location, base_url=None):
    """GE client carrying the location's stored portal cookies"""
    settings_row = LocationSettings.objects.filter(location=location).first()
    cookies = settings_row.ge_cookies if settings_row else None
    return GEClient(base_url=base_url, cookies=cookies)
