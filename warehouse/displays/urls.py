from django.urls import path
from .views import display_list_create, display_detail, display_pair, display_heartbeat

urlpatterns = [
    path('displays/', display_list_create, name='display-list-create'),
    path('displays/pair/', display_pair, name='display-pair'),
    path('displays/<int:pk>/', display_detail, name='display-detail'),
    path('displays/<int:pk>/heartbeat/', display_heartbeat, name='display-heartbeat'),
]
