from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from warehouse.core.tenant import get_active_location, get_requested_location_id
from .stats import (
    get_fog_of_war, get_asis_overview, get_inventory_item_count,
    get_inventory_scan_counts, get_data_quality
)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def fog_of_war(request):
    """Map coverage for the active location"""
    location = get_active_location(request)
    return Response(get_fog_of_war(location))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def asis_overview(request):
    """ASIS floor overview; null when no location is selected"""
    if not get_requested_location_id(request):
        return Response(None)
    location = get_active_location(request)
    return Response(get_asis_overview(location))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_item_count(request):
    """Item count excluding delivered loads"""
    location = get_active_location(request)
    return Response({'count': get_inventory_item_count(location)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_scan_counts(request):
    """Total/scanned counts keyed by inventory type and type:load"""
    location = get_active_location(request)
    return Response(get_inventory_scan_counts(location))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def data_quality(request):
    """Data quality dashboard metrics"""
    location = get_active_location(request)
    return Response(get_data_quality(location))
