"""
Active location resolution

Every warehouse record belongs to a company and a location. The active
location for a request comes from, in order:
1. the X-Location-Id header
2. the location_id query parameter
3. settings.WAREHOUSE_DEFAULT_LOCATION_ID
"""
import logging

from django.conf import settings
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from .models import Location

logger = logging.getLogger(__name__)

LOCATION_HEADER = 'HTTP_X_LOCATION_ID'
LOCATION_PARAM = 'location_id'


def get_requested_location_id(request):
    """Return the raw location id requested, or None"""
    location_id = request.META.get(LOCATION_HEADER)
    if not location_id:
        params = getattr(request, 'query_params', request.GET)
        location_id = params.get(LOCATION_PARAM)
    if not location_id:
        location_id = getattr(settings, 'WAREHOUSE_DEFAULT_LOCATION_ID', None)
    return str(location_id).strip() if location_id else None


def get_active_location(request):
    """
    Resolve the active Location for a request.

    Raises ValidationError when no location is given, NotFound when the
    location does not exist or is inactive, and PermissionDenied when the
    user has no access to the location's company.
    """
    location_id = get_requested_location_id(request)
    if not location_id:
        raise ValidationError({'location_id': 'Missing active location ID. Set it in Settings or WAREHOUSE_DEFAULT_LOCATION_ID.'})

    if not location_id.isdigit():
        raise ValidationError({'location_id': f'Invalid location ID: {location_id}'})

    location = Location.objects.select_related('company').filter(
        id=int(location_id), active=True
    ).first()
    if location is None:
        raise NotFound(f'Location {location_id} not found')

    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated and not user.has_company_access(location.company_id):
        logger.warning(f"User {user.username} denied access to location {location.id}")
        raise PermissionDenied('You do not have access to this location')

    return location


def tenant_filter(location):
    """Filter kwargs scoping a queryset to a location"""
    return {'company_id': location.company_id, 'location_id': location.id}
