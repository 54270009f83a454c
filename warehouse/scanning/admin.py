from django.contrib import admin
from .models import ScanningSession, ProductLocation


@admin.register(ScanningSession)
class ScanningSessionAdmin(admin.ModelAdmin):
    list_display = ['name', 'inventory_type', 'sub_inventory', 'status', 'created_by', 'created_at', 'closed_at']
    list_filter = ['status', 'inventory_type', 'location']
    search_fields = ['name', 'sub_inventory', 'created_by']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ProductLocation)
class ProductLocationAdmin(admin.ModelAdmin):
    list_display = ['id', 'inventory_item', 'product_type', 'sub_inventory', 'position_x', 'position_y', 'scanned_by', 'created_at']
    list_filter = ['product_type', 'location']
    raw_id_fields = ['inventory_item', 'product', 'scanning_session']
