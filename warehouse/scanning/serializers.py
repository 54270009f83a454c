from rest_framework import serializers
from .models import ScanningSession, ProductLocation
from warehouse.catalog.models import Product
from warehouse.inventory.models import InventoryItem


class ScanningSessionSummarySerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()
    scanned_count = serializers.SerializerMethodField()

    class Meta:
        model = ScanningSession
        fields = ['id', 'name', 'inventory_type', 'sub_inventory', 'status', 'created_by',
                  'created_at', 'updated_at', 'closed_at', 'item_count', 'scanned_count']

    def get_item_count(self, obj):
        return len(obj.items or [])

    def get_scanned_count(self, obj):
        return len(obj.scanned_item_ids or [])


class ScanningSessionSerializer(ScanningSessionSummarySerializer):
    class Meta(ScanningSessionSummarySerializer.Meta):
        fields = ScanningSessionSummarySerializer.Meta.fields + [
            'items', 'scanned_item_ids', 'updated_by', 'closed_by'
        ]


class ScanningSessionCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    inventory_type = serializers.CharField(max_length=50)
    sub_inventory = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Session name cannot be blank")
        return value


class SessionStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class ScannedItemsSerializer(serializers.Serializer):
    scanned_item_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=True)


class ProductLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductLocation
        fields = ['id', 'inventory_item', 'product', 'product_type', 'sub_inventory', 'scanning_session',
                  'position_x', 'position_y', 'accuracy', 'scanned_by', 'raw_lat', 'raw_lng', 'created_at']


class ProductLocationCreateSerializer(serializers.ModelSerializer):
    inventory_item = serializers.PrimaryKeyRelatedField(queryset=InventoryItem.objects.all(), required=False, allow_null=True)
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), required=False, allow_null=True)
    scanning_session = serializers.PrimaryKeyRelatedField(queryset=ScanningSession.objects.all(), required=False, allow_null=True)

    class Meta:
        model = ProductLocation
        fields = ['inventory_item', 'product', 'scanning_session', 'position_x', 'position_y',
                  'accuracy', 'raw_lat', 'raw_lng']

    def validate(self, attrs):
        if not attrs.get('inventory_item') and not attrs.get('product'):
            raise serializers.ValidationError("Either inventory_item or product is required")
        location = self.context.get('location')
        if location is not None:
            item = attrs.get('inventory_item')
            if item and item.location_id != location.id:
                raise serializers.ValidationError({'inventory_item': 'Item does not belong to this location'})
            session = attrs.get('scanning_session')
            if session and session.location_id != location.id:
                raise serializers.ValidationError({'scanning_session': 'Session does not belong to this location'})
        return attrs


class PositionIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
