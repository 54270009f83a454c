from django.urls import path
from .views import asis_sync_preview, asis_sync_run

urlpatterns = [
    path('ge-sync/asis/preview/', asis_sync_preview, name='ge-sync-asis-preview'),
    path('ge-sync/asis/run/', asis_sync_run, name='ge-sync-asis-run'),
]
