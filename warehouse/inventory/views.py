import csv
import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q
from django.http import StreamingHttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import InventoryItem, LoadMetadata, LoadConflict, InventoryConversion
from .serializers import (
    InventoryItemSerializer, LoadMetadataSerializer, LoadConflictSerializer,
    MoveItemsSerializer, NukeInventorySerializer, InventoryImportSerializer
)
from .importer import ImportFileError, read_import_rows, import_inventory_snapshot
from .filters import InventoryItemFilter, LoadMetadataFilter, parse_sort, SORT_FIELDS, ALL_VALUE
from warehouse.catalog.models import Product
from warehouse.core.cache_signals import suspend_cache_signals
from warehouse.core.cache_utils import invalidate_location_stats
from warehouse.core.tenant import get_active_location, tenant_filter
from warehouse.core.utils import get_actor_name, log_activity
from warehouse.scanning.progress import update_load_scanning_progress, update_loads_scanning_progress

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500
DEFAULT_EXPORT_BATCH_SIZE = 1000
MAX_EXPORT_BATCH_SIZE = 5000

EXPORT_COLUMNS = [
    'id', 'cso', 'serial', 'model', 'product_type', 'inventory_type', 'sub_inventory', 'qty',
    'status', 'notes', 'consumer_customer_name', 'date', 'route_id', 'stop',
    'is_scanned', 'scanned_at', 'scanned_by', 'ge_model', 'ge_serial', 'ge_inv_qty',
    'ge_availability_status', 'ge_availability_message', 'ge_ordc', 'ge_orphaned',
    'created_at', 'updated_at',
]
DEFAULT_EXPORT_COLUMNS = ['cso', 'serial', 'model', 'product_type', 'inventory_type',
                          'sub_inventory', 'qty', 'status', 'is_scanned', 'created_at']


def _parse_int(value, default, name):
    if value in (None, ''):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{name} must be an integer')


def _filtered_items(request, location):
    """
    Apply the inventory page filters and sort.
    Returns (queryset, error_response).
    """
    item_filter = InventoryItemFilter(
        request.query_params,
        queryset=InventoryItem.objects.filter(**tenant_filter(location)).select_related('product'),
    )
    if not item_filter.is_valid():
        return None, Response(item_filter.errors, status=status.HTTP_400_BAD_REQUEST)

    sort = parse_sort(request.query_params.get('sort'))
    if sort is None:
        return None, Response(
            {'sort': f'Sort must be one of {", ".join(SORT_FIELDS)} (prefix with - for descending)'},
            status=status.HTTP_400_BAD_REQUEST
        )
    return item_filter.qs.order_by(sort, '-id' if sort.startswith('-') else 'id'), None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """Paged inventory page query, or create an inventory item"""
    location = get_active_location(request)

    if request.method == 'POST':
        serializer = InventoryItemSerializer(data=request.data)
        if serializer.is_valid():
            extra = {}
            if not serializer.validated_data.get('product'):
                extra['product'] = Product.objects.filter(model=serializer.validated_data['model']).first()
            item = serializer.save(company_id=location.company_id, location=location, **extra)
            update_load_scanning_progress(location, item.sub_inventory)
            return Response(InventoryItemSerializer(item).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    queryset, error = _filtered_items(request, location)
    if error:
        return error

    try:
        page = max(_parse_int(request.query_params.get('page'), 0, 'page'), 0)
        page_size = _parse_int(request.query_params.get('page_size'), DEFAULT_PAGE_SIZE, 'page_size')
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

    count = queryset.count()
    start = page * page_size
    items = queryset[start:start + page_size]
    return Response({
        'items': InventoryItemSerializer(items, many=True).data,
        'count': count,
        'page': page,
        'page_size': page_size,
        'next_page': None if (page + 1) * page_size >= count else page + 1,
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    """Retrieve or update an inventory item of the active location"""
    location = get_active_location(request)
    item = get_object_or_404(InventoryItem.objects.select_related('product'), pk=pk, **tenant_filter(location))

    if request.method == 'GET':
        return Response(InventoryItemSerializer(item).data)

    previous_load = item.sub_inventory
    serializer = InventoryItemSerializer(item, data=request.data, partial=True)
    if serializer.is_valid():
        item = serializer.save()
        if item.sub_inventory != previous_load:
            update_loads_scanning_progress(location, [previous_load, item.sub_inventory])
        return Response(InventoryItemSerializer(item).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sub_inventory_options(request):
    """Load names in use for an inventory type, with item counts and load metadata"""
    location = get_active_location(request)
    inventory_type = request.query_params.get('inventory_type')

    items = InventoryItem.objects.filter(**tenant_filter(location)).exclude(
        Q(sub_inventory__isnull=True) | Q(sub_inventory='')
    )
    loads = LoadMetadata.objects.filter(**tenant_filter(location))
    if inventory_type and inventory_type != ALL_VALUE:
        items = items.filter(inventory_type=inventory_type)
        loads = loads.filter(inventory_type=inventory_type)

    counts = {
        row['sub_inventory']: row['count']
        for row in items.values('sub_inventory').annotate(count=Count('id'))
    }
    metadata = {load.sub_inventory_name: load for load in loads}

    options = []
    for name in sorted(set(counts) | set(metadata)):
        load = metadata.get(name)
        options.append({
            'name': name,
            'count': counts.get(name, 0),
            'load_id': load.id if load else None,
            'friendly_name': load.friendly_name if load else None,
            'primary_color': load.primary_color if load else None,
        })
    return Response(options)


class Echo:
    """File-like object whose write returns the value, for streaming csv rows"""
    def write(self, value):
        return value


def _format_cell(value):
    if value is None:
        return ''
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_export_csv(request):
    """Stream the filtered inventory as CSV"""
    location = get_active_location(request)
    queryset, error = _filtered_items(request, location)
    if error:
        return error

    columns_param = request.query_params.get('columns')
    columns = [c.strip() for c in columns_param.split(',') if c.strip()] if columns_param else DEFAULT_EXPORT_COLUMNS
    unknown = [c for c in columns if c not in EXPORT_COLUMNS]
    if unknown or not columns:
        return Response(
            {'columns': f'Unknown columns: {", ".join(unknown)}' if unknown else 'No columns selected'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        batch_size = _parse_int(request.query_params.get('batch_size'), DEFAULT_EXPORT_BATCH_SIZE, 'batch_size')
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    batch_size = min(max(batch_size, 1), MAX_EXPORT_BATCH_SIZE)
    row_numbers = request.query_params.get('row_numbers') in ('1', 'true', 'yes')

    rows = queryset.values_list(*columns)

    def generate():
        writer = csv.writer(Echo())
        yield writer.writerow((['#'] if row_numbers else []) + columns)
        index = 0
        offset = 0
        while True:
            batch = list(rows[offset:offset + batch_size])
            if not batch:
                break
            for row in batch:
                index += 1
                cells = [_format_cell(value) for value in row]
                yield writer.writerow(([index] if row_numbers else []) + cells)
            offset += batch_size

    filename = f"inventory-{location.slug}-{timezone.now().strftime('%Y%m%d-%H%M%S')}.csv"
    response = StreamingHttpResponse(generate(), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    logger.info(f"User {request.user.username} exported inventory for location {location.id}")
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_nuke(request):
    """Delete every item of the given inventory types at the active location (admin only)"""
    location = get_active_location(request)
    if not request.user.is_location_admin:
        return Response({'error': 'Only admins can delete inventory'}, status=status.HTTP_403_FORBIDDEN)

    serializer = NukeInventorySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    inventory_types = serializer.validated_data['inventory_types']

    items = InventoryItem.objects.filter(inventory_type__in=inventory_types, **tenant_filter(location))
    with suspend_cache_signals():
        with transaction.atomic():
            deleted = items.count()
            items.delete()
    invalidate_location_stats(location.id)

    # Loads keep their metadata; their counters drop to zero
    load_names = LoadMetadata.objects.filter(
        inventory_type__in=inventory_types, **tenant_filter(location)
    ).values_list('sub_inventory_name', flat=True)
    update_loads_scanning_progress(location, load_names)

    if 'ASIS' in inventory_types:
        log_activity(location=location, user=request.user, action='asis_wipe',
                     entity_type='inventory', details={'deleted': deleted}, request=request)
    logger.warning(f"User {request.user.username} deleted {deleted} items ({', '.join(inventory_types)}) at location {location.id}")
    return Response({'deleted': deleted})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_move(request):
    """Move items into a load (and optionally another inventory type)"""
    location = get_active_location(request)
    serializer = MoveItemsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    item_ids = list(dict.fromkeys(data['item_ids']))
    target_load = (data.get('sub_inventory') or '').strip() or None
    target_type = (data.get('inventory_type') or '').strip() or None
    actor = get_actor_name(request.user)

    items = list(InventoryItem.objects.filter(id__in=item_ids, **tenant_filter(location)))
    missing = sorted(set(item_ids) - {item.id for item in items})
    if missing:
        return Response({'error': f'Items not found: {missing}'}, status=status.HTTP_400_BAD_REQUEST)

    affected_loads = {target_load}
    conversions = []
    with transaction.atomic():
        for item in items:
            new_type = target_type or item.inventory_type
            if item.sub_inventory == target_load and item.inventory_type == new_type:
                continue
            affected_loads.add(item.sub_inventory)
            conversions.append(InventoryConversion(
                company_id=location.company_id,
                location=location,
                inventory_item=item,
                from_inventory_type=item.inventory_type,
                to_inventory_type=new_type,
                from_sub_inventory=item.sub_inventory,
                to_sub_inventory=target_load,
                converted_by=actor,
                notes=data.get('notes') or None,
            ))
            item.sub_inventory = target_load
            item.inventory_type = new_type
            item.save(update_fields=['sub_inventory', 'inventory_type', 'updated_at'])
        InventoryConversion.objects.bulk_create(conversions)

    update_loads_scanning_progress(location, affected_loads)
    return Response({'moved': len(conversions), 'item_ids': [item.id for item in items]})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_import(request):
    """Import an FG or STA snapshot for the active location (admin only)"""
    location = get_active_location(request)
    if not request.user.is_location_admin:
        return Response({'error': 'Only admins can import inventory'}, status=status.HTTP_403_FORBIDDEN)

    serializer = InventoryImportSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if 'file' in data:
        upload = data['file']
        try:
            rows = read_import_rows(upload.name, upload.read())
        except ImportFileError as e:
            return Response({'file': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    else:
        rows = data['rows']

    stats = import_inventory_snapshot(location, data['source'], rows, batch_size=data['batch_size'])
    log_activity(
        location=location,
        user=request.user,
        action=f"{data['source'].lower()}_sync",
        entity_type='inventory',
        details=stats,
        request=request
    )
    return Response(stats)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def load_list_create(request):
    """List loads of the active location or create a load"""
    location = get_active_location(request)

    if request.method == 'GET':
        load_filter = LoadMetadataFilter(
            request.query_params,
            queryset=LoadMetadata.objects.filter(**tenant_filter(location)),
        )
        if not load_filter.is_valid():
            return Response(load_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = LoadMetadataSerializer(load_filter.qs.order_by('-created_at', '-id'), many=True)
        return Response(serializer.data)

    serializer = LoadMetadataSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    inventory_type = serializer.validated_data['inventory_type']
    name = serializer.validated_data['sub_inventory_name']
    if LoadMetadata.objects.filter(inventory_type=inventory_type, sub_inventory_name=name, **tenant_filter(location)).exists():
        return Response({'sub_inventory_name': f'Load {name} already exists for {inventory_type}'},
                        status=status.HTTP_400_BAD_REQUEST)

    load = serializer.save(company_id=location.company_id, location=location,
                           created_by=get_actor_name(request.user))
    update_load_scanning_progress(location, load.sub_inventory_name)
    load.refresh_from_db()
    return Response(LoadMetadataSerializer(load).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def load_detail(request, pk):
    """Retrieve, update (with rename cascade) or delete a load"""
    location = get_active_location(request)
    load = get_object_or_404(LoadMetadata, pk=pk, **tenant_filter(location))

    if request.method == 'GET':
        return Response(LoadMetadataSerializer(load).data)

    if request.method == 'DELETE':
        with transaction.atomic():
            unassigned = InventoryItem.objects.filter(
                inventory_type=load.inventory_type,
                sub_inventory=load.sub_inventory_name,
                **tenant_filter(location)
            ).update(sub_inventory=None)
            load.delete()
        logger.info(f"Deleted load {load.sub_inventory_name}, unassigned {unassigned} items")
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_name = load.sub_inventory_name
    old_type = load.inventory_type
    serializer = LoadMetadataSerializer(load, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_name = serializer.validated_data.get('sub_inventory_name', old_name)
    new_type = serializer.validated_data.get('inventory_type', old_type)
    renamed = new_name != old_name
    retyped = new_type != old_type
    if (renamed or retyped) and LoadMetadata.objects.filter(
        inventory_type=new_type, sub_inventory_name=new_name, **tenant_filter(location)
    ).exclude(pk=load.pk).exists():
        return Response({'sub_inventory_name': f'Load {new_name} already exists for {new_type}'},
                        status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        load = serializer.save()
        renamed_items = 0
        if renamed or retyped:
            # Items follow the load so they keep matching it by type and name
            renamed_items = InventoryItem.objects.filter(
                inventory_type=old_type, sub_inventory=old_name, **tenant_filter(location)
            ).update(sub_inventory=new_name, inventory_type=new_type)

    if renamed or retyped:
        update_loads_scanning_progress(location, [old_name, new_name])
        invalidate_location_stats(location.id)
        load.refresh_from_db()

    changes = sorted(serializer.validated_data.keys())
    log_activity(
        location=location,
        user=request.user,
        action='load_update',
        entity_type='load',
        entity_id=load.id,
        details={
            'load_number': load.sub_inventory_name,
            'previous_name': old_name if renamed else None,
            'previous_type': old_type if retyped else None,
            'renamed_items': renamed_items,
            'fields': changes,
        },
        request=request
    )
    return Response(LoadMetadataSerializer(load).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def load_request_sanity_check(request, pk):
    """Flag a load for a sanity check"""
    location = get_active_location(request)
    load = get_object_or_404(LoadMetadata, pk=pk, **tenant_filter(location))
    actor = get_actor_name(request.user)

    load.sanity_check_requested = True
    load.sanity_check_requested_at = timezone.now()
    load.sanity_check_requested_by = actor
    load.sanity_check_completed_at = None
    load.sanity_check_completed_by = None
    load.save()

    log_activity(location=location, user=request.user, action='sanity_check_requested',
                 entity_type='load', entity_id=load.id,
                 details={'load_number': load.sub_inventory_name}, request=request)
    return Response(LoadMetadataSerializer(load).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def load_complete_sanity_check(request, pk):
    """Mark a load's sanity check as done"""
    location = get_active_location(request)
    load = get_object_or_404(LoadMetadata, pk=pk, **tenant_filter(location))
    actor = get_actor_name(request.user)

    load.sanity_check_requested = False
    load.sanity_check_completed_at = timezone.now()
    load.sanity_check_completed_by = actor
    load.save()

    log_activity(location=location, user=request.user, action='sanity_check_completed',
                 entity_type='load', entity_id=load.id,
                 details={'load_number': load.sub_inventory_name}, request=request)
    return Response(LoadMetadataSerializer(load).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def load_conflict_list(request):
    """Open load conflicts at the active location (status=all for every conflict)"""
    location = get_active_location(request)
    conflicts = LoadConflict.objects.filter(**tenant_filter(location))

    conflict_status = request.query_params.get('status', 'open')
    if conflict_status != ALL_VALUE:
        conflicts = conflicts.filter(status=conflict_status)
    inventory_type = request.query_params.get('inventory_type')
    if inventory_type:
        conflicts = conflicts.filter(inventory_type=inventory_type)

    return Response(LoadConflictSerializer(conflicts.order_by('-detected_at', '-id'), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def load_conflict_resolve(request, pk):
    """Resolve a load conflict"""
    location = get_active_location(request)
    conflict = get_object_or_404(LoadConflict, pk=pk, **tenant_filter(location))
    conflict.status = 'resolved'
    conflict.resolved_at = timezone.now()
    if request.data.get('notes'):
        conflict.notes = request.data['notes']
    conflict.save()
    return Response(LoadConflictSerializer(conflict).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_load_metadata(request):
    """Map of load name to display metadata for the loads referenced by sessions"""
    location = get_active_location(request)
    names_param = request.query_params.get('names', '')
    names = [name.strip() for name in names_param.split(',') if name.strip()]
    if not names:
        return Response({})

    loads = LoadMetadata.objects.filter(sub_inventory_name__in=names, **tenant_filter(location))
    inventory_type = request.query_params.get('inventory_type')
    if inventory_type and inventory_type != ALL_VALUE:
        loads = loads.filter(inventory_type=inventory_type)

    metadata = {}
    for load in loads.order_by('created_at'):
        metadata[load.sub_inventory_name] = {
            'sub_inventory_name': load.sub_inventory_name,
            'friendly_name': load.friendly_name,
            'primary_color': load.primary_color,
            'ge_cso': load.ge_cso,
            'ge_source_status': load.ge_source_status,
        }
    return Response(metadata)
