"""Utility functions for activity logging and export parsing"""
import logging
import math
import re

from django.db import transaction

from .models import ActivityLog

logger = logging.getLogger(__name__)

LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_actor_name(user):
    """Display name for a user: username, then email, then a placeholder"""
    if not user:
        return 'Unknown User'
    return user.username or user.email or 'Unknown User'


def log_activity(location=None, user=None, action=None, entity_type=None,
                 entity_id=None, details=None, request=None):
    """
    Create an activity log entry

    Args:
        location: Location the activity happened at (required)
        user: Acting user (required, defaults to request.user)
        action: One of ActivityLog.ACTION_CHOICES
        entity_type: Kind of entity acted upon (e.g. 'load', 'session')
        entity_id: ID of that entity
        details: JSON-serializable dictionary with extra context
        request: Optional request used for the user and IP address

    Never raises; returns the created entry or None.
    """
    try:
        if user is None and request is not None and hasattr(request, 'user'):
            user = request.user

        if not location:
            logger.error("Activity log failed: missing location")
            return None

        if not user or not getattr(user, 'is_authenticated', False) or not user.pk:
            logger.error("Activity log failed: missing user")
            return None

        if not action:
            logger.warning(f"Activity log skipped: missing action (location={location.pk})")
            return None

        with transaction.atomic():
            return ActivityLog.objects.create(
                company_id=location.company_id,
                location=location,
                user=user,
                actor_name=get_actor_name(user),
                actor_image=user.image or None,
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=details,
                ip_address=get_client_ip(request) if request else None,
            )
    except Exception as e:
        # Don't fail the main operation if activity logging fails
        logger.error(f"Activity log insert failed: {str(e)}")
        return None


def parse_leading_int(value):
    """
    Integer at the start of an export cell ('12 units' -> 12).

    Returns None when the value does not start with a number.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None
