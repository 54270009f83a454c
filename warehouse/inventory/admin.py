from django.contrib import admin
from .models import InventoryItem, LoadMetadata, LoadConflict, InventoryConversion


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['serial', 'cso', 'model', 'inventory_type', 'sub_inventory', 'qty', 'is_scanned', 'location']
    list_filter = ['inventory_type', 'is_scanned', 'ge_orphaned', 'location']
    search_fields = ['serial', 'cso', 'model', 'consumer_customer_name']
    raw_id_fields = ['product']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(LoadMetadata)
class LoadMetadataAdmin(admin.ModelAdmin):
    list_display = ['sub_inventory_name', 'inventory_type', 'friendly_name', 'status', 'ge_cso_status',
                    'items_scanned_count', 'items_total_count', 'scanning_complete', 'location']
    list_filter = ['inventory_type', 'status', 'scanning_complete', 'sanity_check_requested', 'location']
    search_fields = ['sub_inventory_name', 'friendly_name', 'ge_cso']
    readonly_fields = ['items_scanned_count', 'items_total_count', 'scanning_complete', 'created_at', 'updated_at']


@admin.register(LoadConflict)
class LoadConflictAdmin(admin.ModelAdmin):
    list_display = ['serial', 'load_number', 'conflicting_load', 'inventory_type', 'status', 'detected_at']
    list_filter = ['status', 'inventory_type']
    search_fields = ['serial', 'load_number', 'conflicting_load']


@admin.register(InventoryConversion)
class InventoryConversionAdmin(admin.ModelAdmin):
    list_display = ['inventory_item', 'from_inventory_type', 'to_inventory_type',
                    'from_sub_inventory', 'to_sub_inventory', 'converted_by', 'created_at']
    list_filter = ['from_inventory_type', 'to_inventory_type']
    raw_id_fields = ['inventory_item']
