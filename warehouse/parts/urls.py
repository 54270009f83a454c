from django.urls import path
from .views import (
    tracked_part_list_create, tracked_part_remove, tracked_part_threshold, tracked_part_reordered,
    update_part_count, part_count_history, reorder_alerts, count_history, available_parts, snapshot_parts
)

urlpatterns = [
    path('parts/tracked/', tracked_part_list_create, name='tracked-part-list-create'),
    path('parts/tracked/<int:pk>/', tracked_part_remove, name='tracked-part-remove'),
    path('parts/tracked/<int:pk>/threshold/', tracked_part_threshold, name='tracked-part-threshold'),
    path('parts/tracked/<int:pk>/reordered/', tracked_part_reordered, name='tracked-part-reordered'),
    path('parts/available/', available_parts, name='part-available'),
    path('parts/snapshot/', snapshot_parts, name='part-snapshot'),
    path('parts/count/', update_part_count, name='part-count'),
    path('parts/count-history/', count_history, name='part-count-history-all'),
    path('parts/history/<int:product_id>/', part_count_history, name='part-count-history'),
    path('parts/reorder-alerts/', reorder_alerts, name='part-reorder-alerts'),
]
