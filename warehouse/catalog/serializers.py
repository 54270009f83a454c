from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'model', 'product_type', 'brand', 'description', 'image_url', 'product_url',
                  'product_category', 'commercial_category', 'capacity', 'color', 'availability',
                  'price', 'msrp', 'is_part', 'specs', 'dimensions', 'created_at', 'updated_at']

    def validate_model(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Model number cannot be blank")
        return value


class ProductSummarySerializer(serializers.ModelSerializer):
    """Compact product representation embedded in other payloads"""
    class Meta:
        model = Product
        fields = ['id', 'model', 'product_type', 'brand', 'description', 'image_url']
