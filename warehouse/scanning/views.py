import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import ScanningSession, ProductLocation
from .serializers import (
    ScanningSessionSummarySerializer, ScanningSessionSerializer, ScanningSessionCreateSerializer,
    SessionStatusSerializer, ScannedItemsSerializer, ProductLocationSerializer,
    ProductLocationCreateSerializer, PositionIdsSerializer
)
from .progress import update_load_scanning_progress, update_loads_scanning_progress, recalculate_all_load_scanning_progress
from warehouse.core.cache_signals import suspend_cache_signals
from warehouse.core.cache_utils import invalidate_location_stats
from warehouse.core.tenant import get_active_location, tenant_filter
from warehouse.core.utils import get_actor_name, log_activity
from warehouse.inventory.models import InventoryItem
from warehouse.inventory.serializers import InventorySnapshotSerializer

User = get_user_model()

logger = logging.getLogger(__name__)

ALL_VALUE = 'all'
RECENT_POSITIONS_LIMIT = 1000


def _session_items(location, inventory_type, sub_inventory):
    items = InventoryItem.objects.filter(inventory_type=inventory_type, **tenant_filter(location))
    if sub_inventory and sub_inventory != ALL_VALUE:
        items = items.filter(sub_inventory=sub_inventory)
    return items


# Scanning sessions
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def session_list_create(request):
    """List session summaries or start a session from current inventory"""
    location = get_active_location(request)

    if request.method == 'GET':
        sessions = ScanningSession.objects.filter(**tenant_filter(location))
        session_status = request.query_params.get('status')
        if session_status:
            sessions = sessions.filter(status=session_status)
        serializer = ScanningSessionSummarySerializer(sessions.order_by('-created_at', '-id'), many=True)
        return Response(serializer.data)

    serializer = ScanningSessionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    sub_inventory = (data.get('sub_inventory') or '').strip() or None
    if sub_inventory == ALL_VALUE:
        sub_inventory = None

    items = _session_items(location, data['inventory_type'], sub_inventory).select_related('product').order_by('sub_inventory', 'model', 'id')
    snapshot = InventorySnapshotSerializer(items, many=True).data
    if not snapshot:
        return Response({'error': 'No items found for this inventory type'}, status=status.HTTP_400_BAD_REQUEST)

    actor = get_actor_name(request.user)
    session = ScanningSession.objects.create(
        company_id=location.company_id,
        location=location,
        name=data['name'],
        inventory_type=data['inventory_type'],
        sub_inventory=sub_inventory,
        items=[dict(row) for row in snapshot],
        scanned_item_ids=[],
        created_by=actor,
        updated_by=actor,
    )

    log_activity(
        location=location,
        user=request.user,
        action='session_started',
        entity_type='session',
        entity_id=session.id,
        details={
            'name': session.name,
            'inventory_type': session.inventory_type,
            'sub_inventory': session.sub_inventory,
            'item_count': len(snapshot),
        },
        request=request
    )
    return Response(ScanningSessionSerializer(session).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def session_detail(request, pk):
    """Retrieve a session with its snapshot, or delete it"""
    location = get_active_location(request)
    session = get_object_or_404(ScanningSession, pk=pk, **tenant_filter(location))

    if request.method == 'GET':
        return Response(ScanningSessionSerializer(session).data)

    session.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def session_update_status(request, pk):
    """Close or reopen a session"""
    location = get_active_location(request)
    session = get_object_or_404(ScanningSession, pk=pk, **tenant_filter(location))

    serializer = SessionStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data['status']
    actor = get_actor_name(request.user)

    if new_status == 'closed':
        session.status = 'closed'
        session.closed_at = timezone.now()
        session.closed_by = actor
    elif new_status == 'active':
        session.status = 'active'
        session.closed_at = None
        session.closed_by = None
    else:
        return Response({'status': f'Invalid status: {new_status}'}, status=status.HTTP_400_BAD_REQUEST)

    session.updated_by = actor
    session.save()

    if new_status == 'closed':
        log_activity(
            location=location,
            user=request.user,
            action='session_completed',
            entity_type='session',
            entity_id=session.id,
            details={
                'name': session.name,
                'item_count': len(session.items or []),
                'scanned_count': len(session.scanned_item_ids or []),
            },
            request=request
        )
    return Response(ScanningSessionSerializer(session).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def session_update_scanned_items(request, pk):
    """Replace the scanned item ids of an active session"""
    location = get_active_location(request)
    session = get_object_or_404(ScanningSession, pk=pk, **tenant_filter(location))

    if session.status == 'closed':
        return Response({'error': 'Session is closed'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ScannedItemsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    scanned_ids = list(dict.fromkeys(serializer.validated_data['scanned_item_ids']))
    unknown = [item_id for item_id in scanned_ids if item_id not in set(session.item_ids)]
    if unknown:
        return Response({'scanned_item_ids': f'Items not in this session: {unknown}'},
                        status=status.HTTP_400_BAD_REQUEST)

    session.scanned_item_ids = scanned_ids
    session.updated_by = get_actor_name(request.user)
    session.save(update_fields=['scanned_item_ids', 'updated_by', 'updated_at'])
    return Response(ScanningSessionSerializer(session).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_sub_inventories(request):
    """Distinct load names for an inventory type"""
    location = get_active_location(request)
    inventory_type = request.query_params.get('inventory_type')
    if not inventory_type:
        return Response({'inventory_type': 'This parameter is required'}, status=status.HTTP_400_BAD_REQUEST)

    names = (
        InventoryItem.objects.filter(inventory_type=inventory_type, **tenant_filter(location))
        .exclude(Q(sub_inventory__isnull=True) | Q(sub_inventory=''))
        .values_list('sub_inventory', flat=True)
        .distinct()
    )
    return Response(sorted(set(names)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_preview_count(request):
    """How many items a new session would snapshot"""
    location = get_active_location(request)
    inventory_type = request.query_params.get('inventory_type')
    if not inventory_type:
        return Response({'inventory_type': 'This parameter is required'}, status=status.HTTP_400_BAD_REQUEST)

    count = _session_items(location, inventory_type, request.query_params.get('sub_inventory')).count()
    return Response({'count': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_creator_avatars(request):
    """Map of creator name (username or email) to avatar URL"""
    names = [name.strip() for name in request.query_params.get('names', '').split(',') if name.strip()]
    if not names:
        return Response({})

    avatars = {}
    for user in User.objects.filter(Q(username__in=names) | Q(email__in=names)).exclude(image__isnull=True).exclude(image=''):
        if user.username:
            avatars[user.username] = user.image
        if user.email:
            avatars[user.email] = user.image
    return Response(avatars)


# Map positions
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_location_list_create(request):
    """List scan positions at the active location, or record a scan"""
    location = get_active_location(request)

    if request.method == 'GET':
        positions = ProductLocation.objects.filter(**tenant_filter(location)).order_by('-created_at', '-id')
        session_id = request.query_params.get('scanning_session')
        if session_id:
            positions = positions.filter(scanning_session_id=session_id)
        serializer = ProductLocationSerializer(positions[:RECENT_POSITIONS_LIMIT], many=True)
        return Response(serializer.data)

    serializer = ProductLocationCreateSerializer(data=request.data, context={'location': location})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    item = serializer.validated_data.get('inventory_item')
    product = serializer.validated_data.get('product') or (item.product if item else None)
    session = serializer.validated_data.get('scanning_session')
    actor = get_actor_name(request.user)
    now = timezone.now()

    with transaction.atomic():
        position = serializer.save(
            company_id=location.company_id,
            location=location,
            product=product,
            product_type=item.product_type if item else product.product_type,
            sub_inventory=item.sub_inventory if item else None,
            scanned_by=actor,
        )

        if item:
            item.is_scanned = True
            item.scanned_at = now
            item.scanned_by = actor
            item.save(update_fields=['is_scanned', 'scanned_at', 'scanned_by', 'updated_at'])

            if session and session.status == 'active' and item.id not in (session.scanned_item_ids or []):
                session.scanned_item_ids = list(session.scanned_item_ids or []) + [item.id]
                session.updated_by = actor
                session.save(update_fields=['scanned_item_ids', 'updated_by', 'updated_at'])

    if item:
        update_load_scanning_progress(location, item.sub_inventory)

    log_activity(
        location=location,
        user=request.user,
        action='item_scanned',
        entity_type='inventory_item' if item else 'product',
        entity_id=item.id if item else product.id,
        details={
            'serial': item.serial if item else None,
            'model': item.model if item else product.model,
            'sub_inventory': position.sub_inventory,
            'session_id': session.id if session else None,
        },
        request=request
    )
    return Response(ProductLocationSerializer(position).data, status=status.HTTP_201_CREATED)


def _affected_loads(positions):
    loads = set()
    for sub_inventory, item_load in positions.values_list('sub_inventory', 'inventory_item__sub_inventory'):
        loads.add(sub_inventory)
        loads.add(item_load)
    return loads


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def product_location_delete(request, pk):
    """Delete one scan position"""
    location = get_active_location(request)
    positions = ProductLocation.objects.filter(pk=pk, **tenant_filter(location))
    get_object_or_404(positions)

    affected = _affected_loads(positions)
    positions.delete()
    update_loads_scanning_progress(location, affected)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_location_bulk_delete(request):
    """Delete scan positions by id"""
    location = get_active_location(request)
    serializer = PositionIdsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    positions = ProductLocation.objects.filter(id__in=serializer.validated_data['ids'], **tenant_filter(location))
    affected = _affected_loads(positions)
    with suspend_cache_signals():
        deleted, _ = positions.delete()
    invalidate_location_stats(location.id)
    update_loads_scanning_progress(location, affected)
    return Response({'deleted': deleted})


@api_view(['DELETE', 'POST'])
@permission_classes([IsAuthenticated])
def product_location_clear(request):
    """Remove every scan position at the active location"""
    location = get_active_location(request)
    with suspend_cache_signals():
        deleted, _ = ProductLocation.objects.filter(**tenant_filter(location)).delete()
    invalidate_location_stats(location.id)
    recalculate_all_load_scanning_progress(location)
    logger.warning(f"User {request.user.username} cleared {deleted} scan positions at location {location.id}")
    return Response({'deleted': deleted})
