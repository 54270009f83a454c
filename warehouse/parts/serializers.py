from rest_framework import serializers
from .models import TrackedPart, InventoryCount
from warehouse.catalog.models import Product
from warehouse.catalog.serializers import ProductSummarySerializer


class TrackedPartSerializer(serializers.ModelSerializer):
    """Tracked part with its current stock, read from the stock map in context"""
    product = ProductSummarySerializer(read_only=True)
    product_id = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), source='product', write_only=True)
    current_qty = serializers.SerializerMethodField()
    inventory_item_id = serializers.SerializerMethodField()

    class Meta:
        model = TrackedPart
        fields = ['id', 'product', 'product_id', 'reorder_threshold', 'is_active', 'reordered_at',
                  'created_by', 'created_at', 'updated_at', 'current_qty', 'inventory_item_id']
        read_only_fields = ['is_active', 'reordered_at', 'created_by', 'created_at', 'updated_at']

    def _stock(self, obj):
        return self.context.get('stock_map', {}).get(obj.product_id)

    def get_current_qty(self, obj):
        stock = self._stock(obj)
        return stock['qty'] if stock else 0

    def get_inventory_item_id(self, obj):
        stock = self._stock(obj)
        return stock['id'] if stock else None

    def validate_reorder_threshold(self, value):
        if value < 0:
            raise serializers.ValidationError("Threshold cannot be negative")
        return value


class ThresholdSerializer(serializers.Serializer):
    reorder_threshold = serializers.IntegerField(min_value=0)


class PartCountSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    qty = serializers.IntegerField(min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reason = serializers.ChoiceField(choices=InventoryCount.REASON_CHOICES, required=False, allow_null=True)
    counted_by = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class InventoryCountSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryCount
        fields = ['id', 'product', 'tracked_part', 'qty', 'previous_qty', 'delta',
                  'count_reason', 'counted_by', 'notes', 'created_at']


class CountHistorySerializer(serializers.ModelSerializer):
    """Count row with the product pricing used by the parts reports"""
    model = serializers.CharField(source='product.model', read_only=True)
    price = serializers.DecimalField(source='product.price', max_digits=10, decimal_places=2, read_only=True)
    msrp = serializers.DecimalField(source='product.msrp', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryCount
        fields = ['id', 'product', 'tracked_part', 'qty', 'previous_qty', 'delta', 'count_reason',
                  'counted_by', 'notes', 'created_at', 'model', 'price', 'msrp']


class SnapshotSerializer(serializers.Serializer):
    tracked_part_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    counted_by = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
