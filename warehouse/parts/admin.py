from django.contrib import admin
from .models import TrackedPart, InventoryCount


@admin.register(TrackedPart)
class TrackedPartAdmin(admin.ModelAdmin):
    list_display = ['product', 'reorder_threshold', 'is_active', 'reordered_at', 'location', 'created_at']
    list_filter = ['is_active', 'location']
    search_fields = ['product__model', 'product__description']
    raw_id_fields = ['product']


@admin.register(InventoryCount)
class InventoryCountAdmin(admin.ModelAdmin):
    list_display = ['product', 'qty', 'previous_qty', 'delta', 'count_reason', 'counted_by', 'created_at']
    list_filter = ['count_reason', 'location']
    search_fields = ['product__model', 'counted_by']
    raw_id_fields = ['product', 'tracked_part']
