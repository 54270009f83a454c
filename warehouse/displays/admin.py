from django.contrib import admin
from .models import FloorDisplay


@admin.register(FloorDisplay)
class FloorDisplayAdmin(admin.ModelAdmin):
    list_display = ['name', 'pairing_code', 'paired', 'last_heartbeat', 'location', 'created_at']
    list_filter = ['paired', 'location']
    search_fields = ['name', 'pairing_code']
    readonly_fields = ['created_at', 'updated_at']
