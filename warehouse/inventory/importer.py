"""
FG / STA inventory snapshot import

GE publishes finished-goods (FG) and staged (STA) inventory as spreadsheets
with 'Model #', 'Serial #', 'Inv Qty' and availability columns. An import
replaces the location's view of that inventory type:
- rows are matched to existing items of the same type by serial
- serials already present under another inventory type are skipped
- existing serialized items missing from the file are flagged as orphans
- the location's last_sync_<source>_at stamp is set
"""
import csv
import io
import logging

import xlrd
from django.db import transaction
from django.utils import timezone

from warehouse.catalog.models import Product
from warehouse.core.cache_signals import suspend_cache_signals
from warehouse.core.cache_utils import invalidate_location_stats
from warehouse.core.models import LocationSettings
from warehouse.core.tenant import tenant_filter
from warehouse.core.utils import parse_leading_int
from .models import InventoryItem

logger = logging.getLogger(__name__)

IMPORT_SOURCES = {
    'FG': {'inventory_type': 'FG', 'cso': 'FG', 'sync_field': 'last_sync_fg_at'},
    'STA': {'inventory_type': 'STA', 'cso': 'STA', 'sync_field': 'last_sync_sta_at'},
}
DEFAULT_BATCH_SIZE = 500
LOOKUP_CHUNK_SIZE = 500
UNKNOWN_PRODUCT_TYPE = 'UNKNOWN'
ORPHAN_STATUS = 'NOT_IN_GE'

UPDATE_FIELDS = [
    'cso', 'model', 'qty', 'serial', 'product_type', 'product_id', 'inventory_type', 'is_scanned',
    'ge_model', 'ge_serial', 'ge_inv_qty', 'ge_availability_status', 'ge_availability_message',
    'ge_orphaned',
]


class ImportFileError(ValueError):
    """Raised when an uploaded snapshot cannot be read"""


def _chunks(values, size):
    for start in range(0, len(values), size):
        yield values[start:start + size]


def _cell_text(value):
    if value is None:
        return ''
    # Spreadsheet numbers come back as floats; 1234.0 is the serial '1234'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def rows_from_sheet(sheet):
    """Rows of a worksheet as dicts keyed by the header row"""
    if sheet.nrows == 0:
        return []
    header = [_cell_text(value) for value in sheet.row_values(0)]
    return [dict(zip(header, sheet.row_values(index))) for index in range(1, sheet.nrows)]


def read_import_rows(filename, content):
    """Parse an uploaded .xls or .csv snapshot into row dicts"""
    if filename.lower().endswith('.xls'):
        try:
            workbook = xlrd.open_workbook(file_contents=content)
        except xlrd.XLRDError as e:
            raise ImportFileError(f"Could not read {filename}: {str(e)}") from e
        return rows_from_sheet(workbook.sheet_by_index(0))

    if filename.lower().endswith('.csv'):
        try:
            text = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ImportFileError(f"{filename} is not UTF-8 text") from e
        return list(csv.DictReader(io.StringIO(text)))

    raise ImportFileError(f"Unsupported file type for {filename}; expected .xls or .csv")


def build_product_lookup(models):
    """Map of model number to (product id, product type)"""
    unique_models = sorted({model for model in models if model})
    lookup = {}
    for chunk in _chunks(unique_models, LOOKUP_CHUNK_SIZE):
        for model, product_id, product_type in Product.objects.filter(model__in=chunk).values_list(
            'model', 'id', 'product_type'
        ):
            if product_type:
                lookup[model] = (product_id, product_type)
    return lookup


def find_cross_type_serials(location, serials, inventory_type):
    """Serials that already exist at the location under a different inventory type"""
    conflicts = set()
    for chunk in _chunks(sorted(serials), LOOKUP_CHUNK_SIZE):
        conflicts.update(
            InventoryItem.objects.filter(serial__in=chunk, **tenant_filter(location))
            .exclude(inventory_type=inventory_type)
            .values_list('serial', flat=True)
        )
    return conflicts


def _row_to_item(row, source, product_lookup):
    model = _cell_text(row.get('Model #'))
    if not model:
        return None
    serial = _cell_text(row.get('Serial #')) or None
    qty_value = parse_leading_int(row.get('Inv Qty'))
    product_id, product_type = product_lookup.get(model, (None, UNKNOWN_PRODUCT_TYPE))
    return {
        'cso': source['cso'],
        'model': model,
        'qty': qty_value if qty_value and qty_value > 0 else 1,
        'serial': serial,
        'product_type': product_type,
        'product_id': product_id,
        'inventory_type': source['inventory_type'],
        'is_scanned': False,
        'ge_model': model,
        'ge_serial': serial,
        'ge_inv_qty': qty_value,
        'ge_availability_status': _cell_text(row.get('Availability Status')) or None,
        'ge_availability_message': _cell_text(row.get('Availability Message')) or None,
        'ge_orphaned': False,
    }


def import_inventory_snapshot(location, source_name, rows, batch_size=DEFAULT_BATCH_SIZE):
    """
    Reconcile the location's items of one inventory type with a GE snapshot.

    Returns the stats dict: total_rows, processed_rows, cross_type_skipped,
    inserted, updated and orphans_marked.
    """
    source = IMPORT_SOURCES[source_name]
    inventory_type = source['inventory_type']

    if not rows:
        return {'total_rows': 0, 'processed_rows': 0, 'cross_type_skipped': 0,
                'inserted': 0, 'updated': 0, 'orphans_marked': 0}

    product_lookup = build_product_lookup(_cell_text(row.get('Model #')) for row in rows)
    items = [item for item in (_row_to_item(row, source, product_lookup) for row in rows) if item]

    incoming_serials = {item['serial'] for item in items if item['serial']}
    cross_type_serials = find_cross_type_serials(location, incoming_serials, inventory_type)

    without_serial = []
    by_serial = {}
    for item in items:
        if not item['serial']:
            without_serial.append(item)
        elif item['serial'] not in cross_type_serials:
            by_serial.setdefault(item['serial'], item)

    existing_by_serial = {}
    existing_ids = set()
    for item_id, serial in (
        InventoryItem.objects.filter(inventory_type=inventory_type, **tenant_filter(location))
        .exclude(serial__isnull=True).exclude(serial='')
        .order_by('id')
        .values_list('id', 'serial')
    ):
        existing_by_serial.setdefault(serial, item_id)
        existing_ids.add(item_id)

    new_rows = list(without_serial)
    updates = {}
    for serial, item in by_serial.items():
        existing_id = existing_by_serial.get(serial)
        if existing_id:
            updates[existing_id] = item
        else:
            new_rows.append(item)

    now = timezone.now()
    orphan_ids = sorted(existing_ids - set(updates))
    orphans_marked = 0

    with suspend_cache_signals():
        with transaction.atomic():
            InventoryItem.objects.bulk_create(
                [InventoryItem(company_id=location.company_id, location=location, **row) for row in new_rows],
                batch_size=batch_size,
            )

            update_ids = sorted(updates)
            for chunk in _chunks(update_ids, batch_size):
                objects = InventoryItem.objects.in_bulk(chunk)
                for item_id, obj in objects.items():
                    for field in UPDATE_FIELDS:
                        setattr(obj, field, updates[item_id][field])
                    obj.updated_at = now
                InventoryItem.objects.bulk_update(list(objects.values()), UPDATE_FIELDS + ['updated_at'])

            for chunk in _chunks(orphan_ids, batch_size):
                orphans_marked += InventoryItem.objects.filter(id__in=chunk).update(
                    status=ORPHAN_STATUS, ge_orphaned=True, ge_orphaned_at=now
                )

            settings_row = LocationSettings.for_location(location)
            setattr(settings_row, source['sync_field'], now)
            settings_row.save(update_fields=[source['sync_field'], 'updated_at'])

    invalidate_location_stats(location.id)

    stats = {
        'total_rows': len(rows),
        'processed_rows': len(items),
        'cross_type_skipped': len(cross_type_serials),
        'inserted': len(new_rows),
        'updated': len(updates),
        'orphans_marked': orphans_marked,
    }
    logger.info(f"{source_name} import for location {location.id}: {stats}")
    return stats
