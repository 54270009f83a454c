from rest_framework import serializers
from .importer import IMPORT_SOURCES, DEFAULT_BATCH_SIZE as DEFAULT_IMPORT_BATCH_SIZE
from .models import InventoryItem, LoadMetadata, LoadConflict, InventoryConversion
from warehouse.catalog.models import Product
from warehouse.catalog.serializers import ProductSummarySerializer


class InventoryItemSerializer(serializers.ModelSerializer):
    product = ProductSummarySerializer(read_only=True)
    product_id = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(), source='product', write_only=True, required=False, allow_null=True
    )

    class Meta:
        model = InventoryItem
        fields = ['id', 'cso', 'serial', 'model', 'product_type', 'product', 'product_id',
                  'inventory_type', 'sub_inventory', 'qty', 'status', 'notes',
                  'consumer_customer_name', 'date', 'route_id', 'stop',
                  'is_scanned', 'scanned_at', 'scanned_by',
                  'ge_model', 'ge_serial', 'ge_inv_qty', 'ge_availability_status',
                  'ge_availability_message', 'ge_ordc', 'ge_orphaned', 'ge_orphaned_at',
                  'created_at', 'updated_at']
        read_only_fields = ['ge_orphaned', 'ge_orphaned_at', 'created_at', 'updated_at']

    def validate_qty(self, value):
        if value < 0:
            raise serializers.ValidationError("Quantity cannot be negative")
        return value

    def validate_inventory_type(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Inventory type is required")
        return value


class InventorySnapshotSerializer(serializers.ModelSerializer):
    """Item fields captured in a scanning session snapshot"""
    product = ProductSummarySerializer(read_only=True)

    class Meta:
        model = InventoryItem
        fields = ['id', 'cso', 'serial', 'model', 'product_type', 'product', 'inventory_type',
                  'sub_inventory', 'qty', 'status', 'consumer_customer_name', 'is_scanned']


class LoadMetadataSerializer(serializers.ModelSerializer):
    class Meta:
        model = LoadMetadata
        fields = ['id', 'inventory_type', 'sub_inventory_name', 'friendly_name', 'primary_color',
                  'category', 'status', 'notes', 'created_by',
                  'ge_source_status', 'ge_cso_status', 'ge_cso', 'ge_inv_org', 'ge_units',
                  'ge_submitted_date', 'ge_pricing', 'ge_notes', 'ge_scanned_at',
                  'pickup_date', 'pickup_tba', 'prep_tagged', 'prep_wrapped',
                  'sanity_check_requested', 'sanity_check_requested_at', 'sanity_check_requested_by',
                  'sanity_check_completed_at', 'sanity_check_completed_by',
                  'items_scanned_count', 'items_total_count', 'scanning_complete',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'sanity_check_requested', 'sanity_check_requested_at',
                            'sanity_check_requested_by', 'sanity_check_completed_at',
                            'sanity_check_completed_by', 'items_scanned_count',
                            'items_total_count', 'scanning_complete', 'created_at', 'updated_at']
        # Uniqueness is checked in the views against the active location
        validators = []

    def validate_sub_inventory_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Load name cannot be blank")
        return value


class LoadConflictSerializer(serializers.ModelSerializer):
    class Meta:
        model = LoadConflict
        fields = ['id', 'inventory_type', 'load_number', 'serial', 'conflicting_load',
                  'status', 'notes', 'detected_at', 'resolved_at']


class InventoryConversionSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryConversion
        fields = ['id', 'inventory_item', 'from_inventory_type', 'to_inventory_type',
                  'from_sub_inventory', 'to_sub_inventory', 'converted_by', 'notes', 'created_at']


class MoveItemsSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    sub_inventory = serializers.CharField(allow_null=True, allow_blank=True)
    inventory_type = serializers.CharField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class NukeInventorySerializer(serializers.Serializer):
    inventory_types = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class InventoryImportSerializer(serializers.Serializer):
    """An FG/STA snapshot as an uploaded .xls/.csv file or as JSON rows"""
    source = serializers.ChoiceField(choices=sorted(IMPORT_SOURCES))
    file = serializers.FileField(required=False)
    rows = serializers.ListField(child=serializers.DictField(), required=False)
    batch_size = serializers.IntegerField(min_value=1, required=False, default=DEFAULT_IMPORT_BATCH_SIZE)

    def validate(self, attrs):
        if 'file' not in attrs and 'rows' not in attrs:
            raise serializers.ValidationError("Provide a file or rows to import")
        return attrs
