from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Company, Location, LocationSettings, ActivityLog


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ['id', 'name', 'slug', 'active', 'created_at']


class LocationSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)

    class Meta:
        model = Location
        fields = ['id', 'company', 'company_name', 'name', 'slug', 'active', 'created_at']


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role', 'image',
                  'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['is_staff', 'is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class LocationSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = LocationSettings
        fields = ['id', 'company', 'location', 'sso_username', 'ge_cookies', 'ge_cookies_updated_at',
                  'last_sync_asis_at', 'last_sync_sta_at', 'last_sync_fg_at',
                  'last_sync_inbound_at', 'last_sync_orders_at', 'updated_at']
        read_only_fields = ['company', 'location', 'ge_cookies_updated_at',
                            'last_sync_asis_at', 'last_sync_sta_at', 'last_sync_fg_at',
                            'last_sync_inbound_at', 'last_sync_orders_at', 'updated_at']


class ActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityLog
        fields = ['id', 'action', 'entity_type', 'entity_id', 'details', 'actor_name',
                  'actor_image', 'user', 'created_at']


class ActivityLogCreateSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ActivityLog.ACTION_CHOICES)
    entity_type = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    entity_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    details = serializers.JSONField(required=False, allow_null=True)
