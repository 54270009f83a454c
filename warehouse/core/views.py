import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q
from django.utils import timezone
from .models import Location, LocationSettings, ActivityLog
from .serializers import (
    UserSerializer, UserCreateSerializer, CompanySerializer, LocationSerializer,
    LocationSettingsSerializer, ActivityLogSerializer, ActivityLogCreateSerializer
)
from .tenant import get_active_location
from .utils import log_activity

User = get_user_model()

logger = logging.getLogger(__name__)

ACTIVITY_PAGE_SIZE = 50


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['company_ids'] = list(user.companies.values_list('id', flat=True))
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that rejects deleted and disabled users"""
    def validate(self, attrs):
        try:
            refresh = self.token_class(attrs['refresh'])
        except TokenError:
            raise InvalidToken('Token is invalid or expired.')

        user_id = refresh.payload.get(jwt_settings.USER_ID_CLAIM)
        user = User.objects.filter(**{jwt_settings.USER_ID_FIELD: user_id}).first()
        if user is None:
            raise InvalidToken('Token is invalid. User no longer exists.')
        if not user.is_active:
            raise AuthenticationFailed('User account is disabled.')

        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint. New users wait for company access."""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered user {user.username} (pending access)")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with companies and access state"""
    user = request.user
    user_data = UserSerializer(user).data
    companies = user.companies.filter(active=True)
    user_data['companies'] = CompanySerializer(companies, many=True).data
    user_data['is_admin'] = user.is_location_admin
    user_data['pending_access'] = not user.is_superuser and not companies.exists()
    return Response(user_data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_list(request):
    """List locations the current user can access"""
    locations = Location.objects.filter(active=True, company__active=True).select_related('company')
    if not request.user.is_superuser:
        locations = locations.filter(company__in=request.user.companies.all())
    serializer = LocationSerializer(locations.order_by('company__name', 'name'), many=True)
    return Response(serializer.data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def location_settings(request):
    """Retrieve or update the settings of the active location"""
    location = get_active_location(request)
    settings_row = LocationSettings.for_location(location)

    if request.method == 'GET':
        return Response(LocationSettingsSerializer(settings_row).data)

    previous_cookies = settings_row.ge_cookies
    serializer = LocationSettingsSerializer(settings_row, data=request.data, partial=True)
    if serializer.is_valid():
        if 'ge_cookies' in serializer.validated_data and serializer.validated_data['ge_cookies'] != previous_cookies:
            serializer.save(ge_cookies_updated_at=timezone.now())
        else:
            serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _profile(user):
    return {'username': user.username or None, 'email': user.email or None, 'image': user.image or None}


def hydrate_activity_entries(entries):
    """
    Refresh actor names/images from the current user records.

    Entries are matched first on their user, then on actor_name against
    usernames and emails. Stored actor fields are the fallback.
    """
    user_ids = {entry['user'] for entry in entries if entry.get('user')}
    actor_names = {entry['actor_name'] for entry in entries if entry.get('actor_name')}

    profile_map = {}
    if user_ids:
        for user in User.objects.filter(id__in=user_ids):
            profile_map[user.id] = _profile(user)

    name_map = {}
    if actor_names:
        for user in User.objects.filter(Q(username__in=actor_names) | Q(email__in=actor_names)):
            if user.username:
                name_map[user.username] = _profile(user)
            if user.email:
                name_map[user.email] = _profile(user)

    hydrated = []
    for entry in entries:
        profile = profile_map.get(entry.get('user')) or {}
        name_profile = name_map.get(entry.get('actor_name')) or {}
        hydrated.append({
            **entry,
            'actor_name': (profile.get('username') or profile.get('email')
                           or name_profile.get('username') or name_profile.get('email')
                           or entry.get('actor_name')),
            'actor_image': profile.get('image') or name_profile.get('image') or entry.get('actor_image'),
        })
    return hydrated


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def activity_log_list_create(request):
    """List the activity feed of the active location (paged) or record an activity"""
    location = get_active_location(request)

    if request.method == 'POST':
        serializer = ActivityLogCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        entry = log_activity(
            location=location,
            user=request.user,
            request=request,
            **serializer.validated_data
        )
        if entry is None:
            return Response({'error': 'Failed to record activity'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(ActivityLogSerializer(entry).data, status=status.HTTP_201_CREATED)

    try:
        page = max(int(request.query_params.get('page', 0)), 0)
    except ValueError:
        return Response({'page': 'Must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    start = page * ACTIVITY_PAGE_SIZE
    queryset = ActivityLog.objects.filter(location=location).order_by('-created_at', '-id')

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    entries = ActivityLogSerializer(queryset[start:start + ACTIVITY_PAGE_SIZE], many=True).data
    return Response({
        'results': hydrate_activity_entries(entries),
        'next_page': page + 1 if len(entries) == ACTIVITY_PAGE_SIZE else None,
    })
