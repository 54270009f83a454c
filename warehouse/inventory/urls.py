from django.urls import path
from .views import (
    inventory_list_create, inventory_detail, sub_inventory_options, inventory_export_csv,
    inventory_nuke, inventory_move, inventory_import, load_list_create, load_detail,
    load_request_sanity_check, load_complete_sanity_check, load_conflict_list, load_conflict_resolve,
    session_load_metadata
)

urlpatterns = [
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/sub-inventories/', sub_inventory_options, name='inventory-sub-inventories'),
    path('inventory/export/', inventory_export_csv, name='inventory-export'),
    path('inventory/nuke/', inventory_nuke, name='inventory-nuke'),
    path('inventory/move/', inventory_move, name='inventory-move'),
    path('inventory/import/', inventory_import, name='inventory-import'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('loads/', load_list_create, name='load-list-create'),
    path('loads/session-metadata/', session_load_metadata, name='load-session-metadata'),
    path('loads/conflicts/', load_conflict_list, name='load-conflict-list'),
    path('loads/conflicts/<int:pk>/resolve/', load_conflict_resolve, name='load-conflict-resolve'),
    path('loads/<int:pk>/', load_detail, name='load-detail'),
    path('loads/<int:pk>/sanity-check/request/', load_request_sanity_check, name='load-sanity-check-request'),
    path('loads/<int:pk>/sanity-check/complete/', load_complete_sanity_check, name='load-sanity-check-complete'),
]
