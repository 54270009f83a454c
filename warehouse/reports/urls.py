from django.urls import path
from .views import fog_of_war, asis_overview, inventory_item_count, inventory_scan_counts, data_quality

urlpatterns = [
    path('reports/fog-of-war/', fog_of_war, name='report-fog-of-war'),
    path('reports/asis-overview/', asis_overview, name='report-asis-overview'),
    path('reports/item-count/', inventory_item_count, name='report-item-count'),
    path('reports/scan-counts/', inventory_scan_counts, name='report-scan-counts'),
    path('reports/data-quality/', data_quality, name='report-data-quality'),
]
