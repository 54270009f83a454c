from rest_framework import serializers
from .models import FloorDisplay


class FloorDisplaySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = FloorDisplay
        fields = ['id', 'name', 'pairing_code', 'paired', 'last_heartbeat', 'created_at']


class FloorDisplaySerializer(serializers.ModelSerializer):
    class Meta:
        model = FloorDisplay
        fields = ['id', 'name', 'pairing_code', 'paired', 'state_json', 'last_heartbeat',
                  'location', 'created_at', 'updated_at']
        read_only_fields = ['pairing_code', 'paired', 'last_heartbeat', 'location', 'created_at', 'updated_at']

    def validate_state_json(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Display state must be an object")
        return value
