from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    location_list, location_settings, activity_log_list_create
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Tenant endpoints
    path('locations/', location_list, name='location-list'),
    path('settings/', location_settings, name='location-settings'),

    # Activity feed
    path('activity/', activity_log_list_create, name='activity-list-create'),
]
