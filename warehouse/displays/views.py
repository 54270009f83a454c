import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import FloorDisplay
from .serializers import FloorDisplaySerializer, FloorDisplaySummarySerializer
from warehouse.core.tenant import get_active_location, tenant_filter

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def display_list_create(request):
    """List the location's floor displays or create one with a fresh pairing code"""
    location = get_active_location(request)

    if request.method == 'GET':
        displays = FloorDisplay.objects.filter(**tenant_filter(location)).order_by('-created_at', '-id')
        return Response(FloorDisplaySummarySerializer(displays, many=True).data)

    serializer = FloorDisplaySerializer(data=request.data)
    if serializer.is_valid():
        display = serializer.save(company_id=location.company_id, location=location)
        logger.info(f"Created floor display {display.id} with pairing code {display.pairing_code}")
        return Response(FloorDisplaySerializer(display).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def display_detail(request, pk):
    """Retrieve, update (name/state) or delete a floor display"""
    location = get_active_location(request)
    display = get_object_or_404(FloorDisplay, pk=pk, **tenant_filter(location))

    if request.method == 'GET':
        return Response(FloorDisplaySerializer(display).data)

    if request.method == 'DELETE':
        display.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = FloorDisplaySerializer(display, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([AllowAny])
def display_pair(request):
    """Pair a screen with a display by its 6-digit code"""
    code = str(request.data.get('pairing_code') or '').strip()
    if not code:
        return Response({'pairing_code': 'This field is required'}, status=status.HTTP_400_BAD_REQUEST)

    # A code can be claimed once; the conditional update keeps two screens from racing for it
    now = timezone.now()
    claimed = FloorDisplay.objects.filter(pairing_code=code, paired=False).update(
        paired=True, last_heartbeat=now, updated_at=now
    )
    if not claimed:
        return Response({'error': 'Display not found or already paired'}, status=status.HTTP_404_NOT_FOUND)

    display = FloorDisplay.objects.get(pairing_code=code)
    logger.info(f"Paired floor display {display.id}")
    return Response(FloorDisplaySerializer(display).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def display_heartbeat(request, pk):
    """Record that a paired screen is alive and return its current state"""
    display = get_object_or_404(FloorDisplay, pk=pk)
    display.last_heartbeat = timezone.now()
    display.save(update_fields=['last_heartbeat'])
    return Response({
        'id': display.id,
        'name': display.name,
        'state_json': display.state_json,
        'last_heartbeat': display.last_heartbeat,
    })
