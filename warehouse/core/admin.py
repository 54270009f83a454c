from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Company, Location, LocationSettings, ActivityLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'role', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    filter_horizontal = BaseUserAdmin.filter_horizontal + ('companies',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Warehouse Access', {'fields': ('role', 'image', 'companies')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Warehouse Access', {'fields': ('role', 'companies')}),
    )


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'active', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'slug', 'active', 'created_at']
    list_filter = ['company', 'active']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(LocationSettings)
class LocationSettingsAdmin(admin.ModelAdmin):
    list_display = ['location', 'sso_username', 'last_sync_asis_at', 'updated_at']
    readonly_fields = ['ge_cookies_updated_at', 'updated_at']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['actor_name', 'action', 'entity_type', 'entity_id', 'location', 'created_at']
    list_filter = ['action', 'location', 'created_at']
    search_fields = ['actor_name', 'entity_id']
    ordering = ['-created_at']
    readonly_fields = ['user', 'actor_name', 'action', 'entity_type', 'entity_id', 'details', 'ip_address', 'created_at']
