import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import DatabaseError, transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import TrackedPart, InventoryCount
from .queries import (
    PARTS_TYPE, DEFAULT_HISTORY_DAYS, DEFAULT_AVAILABLE_LIMIT, DEFAULT_SNAPSHOT_NOTES,
    get_parts_stock_map, get_active_tracked_parts, get_reorder_alerts, get_count_history_with_products,
    get_available_parts_to_track, snapshot_tracked_parts
)
from .serializers import (
    TrackedPartSerializer, ThresholdSerializer, PartCountSerializer, InventoryCountSerializer,
    CountHistorySerializer, SnapshotSerializer
)
from warehouse.catalog.models import Product
from warehouse.catalog.serializers import ProductSummarySerializer
from warehouse.core.tenant import get_active_location, tenant_filter
from warehouse.core.utils import get_actor_name
from warehouse.inventory.models import InventoryItem
from warehouse.inventory.serializers import InventoryItemSerializer

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def _tracked_part_response(location, part, status_code=status.HTTP_200_OK):
    stock_map = get_parts_stock_map(location, [part.product_id])
    return Response(TrackedPartSerializer(part, context={'stock_map': stock_map}).data, status=status_code)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tracked_part_list_create(request):
    """List active tracked parts with current stock, or start tracking a part"""
    location = get_active_location(request)

    if request.method == 'GET':
        parts = get_active_tracked_parts(location).order_by('-created_at', '-id')
        stock_map = get_parts_stock_map(location)
        return Response(TrackedPartSerializer(parts, many=True, context={'stock_map': stock_map}).data)

    serializer = TrackedPartSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = serializer.validated_data['product']
    if TrackedPart.objects.filter(product=product, is_active=True, **tenant_filter(location)).exists():
        return Response({'error': f'{product.model} is already tracked'}, status=status.HTTP_400_BAD_REQUEST)

    part = serializer.save(company_id=location.company_id, location=location,
                           created_by=get_actor_name(request.user))
    return _tracked_part_response(location, part, status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def tracked_part_remove(request, pk):
    """Stop tracking a part (soft delete)"""
    location = get_active_location(request)
    part = get_object_or_404(TrackedPart, pk=pk, **tenant_filter(location))
    part.is_active = False
    part.save(update_fields=['is_active', 'updated_at'])
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def tracked_part_threshold(request, pk):
    """Update a tracked part's reorder threshold"""
    location = get_active_location(request)
    part = get_object_or_404(TrackedPart, pk=pk, **tenant_filter(location))

    serializer = ThresholdSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    part.reorder_threshold = serializer.validated_data['reorder_threshold']
    part.save(update_fields=['reorder_threshold', 'updated_at'])
    return _tracked_part_response(location, part)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def tracked_part_reordered(request, pk):
    """POST marks a part as reordered, DELETE clears the flag"""
    location = get_active_location(request)
    part = get_object_or_404(TrackedPart, pk=pk, **tenant_filter(location))
    part.reordered_at = timezone.now() if request.method == 'POST' else None
    part.save(update_fields=['reordered_at', 'updated_at'])
    return _tracked_part_response(location, part)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_part_count(request):
    """Set the counted quantity of a part and record a count snapshot"""
    location = get_active_location(request)
    serializer = PartCountSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    product = get_object_or_404(Product, pk=data['product_id'])
    qty = data['qty']
    counted_by = data.get('counted_by') or get_actor_name(request.user)

    with transaction.atomic():
        item = InventoryItem.objects.filter(
            inventory_type=PARTS_TYPE, product=product, **tenant_filter(location)
        ).order_by('id').first()
        previous_qty = item.qty if item else 0

        if item:
            item.qty = qty
            item.save(update_fields=['qty', 'updated_at'])
        else:
            item = InventoryItem.objects.create(
                company_id=location.company_id,
                location=location,
                cso=f"PART-{product.model}",
                model=product.model,
                product_type=product.product_type,
                product=product,
                inventory_type=PARTS_TYPE,
                qty=qty,
            )

    tracked = TrackedPart.objects.filter(product=product, is_active=True, **tenant_filter(location)).first()

    count = None
    try:
        with transaction.atomic():
            count = InventoryCount.objects.create(
                company_id=location.company_id,
                location=location,
                product=product,
                tracked_part=tracked,
                qty=qty,
                previous_qty=previous_qty,
                count_reason=data.get('reason'),
                counted_by=counted_by,
                notes=data.get('notes') or None,
            )
    except DatabaseError as e:
        # The count itself succeeded; only the history row is lost
        logger.warning(f"Failed to record count snapshot for {product.model}: {str(e)}")

    if tracked and tracked.reordered_at and qty > tracked.reorder_threshold:
        tracked.reordered_at = None
        tracked.save(update_fields=['reordered_at', 'updated_at'])

    return Response({
        'item': InventoryItemSerializer(item).data,
        'previous_qty': previous_qty,
        'delta': qty - previous_qty,
        'count_id': count.id if count else None,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def part_count_history(request, product_id):
    """Count snapshots for a product, newest first"""
    location = get_active_location(request)
    try:
        limit = int(request.query_params.get('limit', DEFAULT_HISTORY_LIMIT))
    except ValueError:
        return Response({'limit': 'Must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    counts = InventoryCount.objects.filter(product_id=product_id, **tenant_filter(location)).order_by('-created_at', '-id')
    return Response(InventoryCountSerializer(counts[:max(limit, 1)], many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reorder_alerts(request):
    """Tracked parts at or below threshold"""
    location = get_active_location(request)
    return Response(get_reorder_alerts(location))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def count_history(request):
    """Location-wide count history with product pricing, oldest first"""
    location = get_active_location(request)
    try:
        days = int(request.query_params.get('days', DEFAULT_HISTORY_DAYS))
        product_id = int(request.query_params['product_id']) if request.query_params.get('product_id') else None
    except ValueError:
        return Response({'error': 'days and product_id must be integers'}, status=status.HTTP_400_BAD_REQUEST)

    counts = get_count_history_with_products(location, product_id=product_id, days=max(days, 1))
    return Response(CountHistorySerializer(counts, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_parts(request):
    """Products that can still be tracked, plus tracked products matching the search"""
    location = get_active_location(request)
    try:
        limit = int(request.query_params.get('limit', DEFAULT_AVAILABLE_LIMIT))
    except ValueError:
        return Response({'limit': 'Must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    parts, tracked_matches = get_available_parts_to_track(
        location, search=request.query_params.get('search'), limit=max(limit, 1)
    )
    return Response({
        'parts': ProductSummarySerializer(parts, many=True).data,
        'tracked_matches': ProductSummarySerializer(tracked_matches, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def snapshot_parts(request):
    """Record the current quantity of every (or the listed) tracked part"""
    location = get_active_location(request)
    serializer = SnapshotSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    inserted = snapshot_tracked_parts(
        location,
        counted_by=data.get('counted_by') or get_actor_name(request.user),
        notes=data.get('notes') or DEFAULT_SNAPSHOT_NOTES,
        tracked_part_ids=data.get('tracked_part_ids'),
    )
    logger.info(f"Recorded {inserted} part snapshots at location {location.id}")
    return Response({'inserted': inserted}, status=status.HTTP_201_CREATED)
