import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from warehouse.core.tenant import get_active_location
from .client import GESyncError
from .serializers import AsisSyncRunSerializer
from .sync import calculate_ge_sync_stats, prepare_ge_sync, execute_ge_sync, default_client

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def asis_sync_preview(request):
    """GE item and load counts, without writing anything"""
    location = get_active_location(request)
    try:
        stats = calculate_ge_sync_stats(default_client(location))
    except GESyncError as e:
        logger.warning(f"GE preview failed for location {location.id}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response(stats)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def asis_sync_run(request):
    """Run the ASIS sync for the active location (admin only)"""
    location = get_active_location(request)
    if not request.user.is_location_admin:
        return Response({'error': 'Only admins can run the GE sync'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AsisSyncRunSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    options = serializer.validated_data

    try:
        result = prepare_ge_sync(location, default_client(location))
    except GESyncError as e:
        logger.warning(f"GE sync failed for location {location.id}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    summary = execute_ge_sync(
        location,
        result,
        batch_size=options.get('batch_size', settings.GE_SYNC_BATCH_SIZE),
        mark_orphans=options['mark_orphans'],
        orphan_status=options['orphan_status'],
        user=request.user,
        request=request,
    )
    return Response({'stats': result.stats, **summary})
