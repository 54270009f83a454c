from django.urls import path
from .views import (
    session_list_create, session_detail, session_update_status, session_update_scanned_items,
    session_sub_inventories, session_preview_count, session_creator_avatars,
    product_location_list_create, product_location_delete, product_location_bulk_delete,
    product_location_clear
)

urlpatterns = [
    path('sessions/', session_list_create, name='session-list-create'),
    path('sessions/sub-inventories/', session_sub_inventories, name='session-sub-inventories'),
    path('sessions/preview-count/', session_preview_count, name='session-preview-count'),
    path('sessions/creator-avatars/', session_creator_avatars, name='session-creator-avatars'),
    path('sessions/<int:pk>/', session_detail, name='session-detail'),
    path('sessions/<int:pk>/status/', session_update_status, name='session-update-status'),
    path('sessions/<int:pk>/scanned-items/', session_update_scanned_items, name='session-scanned-items'),
    path('product-locations/', product_location_list_create, name='product-location-list-create'),
    path('product-locations/bulk-delete/', product_location_bulk_delete, name='product-location-bulk-delete'),
    path('product-locations/clear/', product_location_clear, name='product-location-clear'),
    path('product-locations/<int:pk>/', product_location_delete, name='product-location-delete'),
]
