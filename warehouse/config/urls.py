"""
URL configuration for the warehouse scanner backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Warehouse Scanner Admin"
admin.site.site_title = "Warehouse Scanner Admin Portal"
admin.site.index_title = "Warehouse Scanner Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('warehouse.core.urls')),
    path('api/v1/', include('warehouse.catalog.urls')),
    path('api/v1/', include('warehouse.inventory.urls')),
    path('api/v1/', include('warehouse.scanning.urls')),
    path('api/v1/', include('warehouse.parts.urls')),
    path('api/v1/', include('warehouse.reports.urls')),
    path('api/v1/', include('warehouse.gesync.urls')),
    path('api/v1/', include('warehouse.displays.urls')),
]
