from django.contrib.auth.models import AbstractUser
from django.db import models


class Company(models.Model):
    """Tenant company"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'companies'
        verbose_name_plural = 'companies'


class Location(models.Model):
    """Warehouse location belonging to a company"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='locations')
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'locations'
        unique_together = [['company', 'slug']]


class User(AbstractUser):
    """Extended user model with role, avatar and company access"""
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('manager', 'Manager'),
        ('member', 'Member'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='member')
    image = models.URLField(max_length=500, blank=True, null=True)
    companies = models.ManyToManyField(Company, blank=True, related_name='users')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_location_admin(self):
        return self.is_superuser or self.is_staff or self.role == 'admin'

    def has_company_access(self, company_id):
        if self.is_superuser:
            return True
        return self.companies.filter(id=company_id).exists()

    class Meta:
        db_table = 'users'


class LocationSettings(models.Model):
    """Per-location settings, including GE portal credentials and sync stamps"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='location_settings')
    location = models.OneToOneField(Location, on_delete=models.CASCADE, related_name='settings')
    sso_username = models.CharField(max_length=200, blank=True, null=True)
    ge_cookies = models.JSONField(blank=True, null=True)
    ge_cookies_updated_at = models.DateTimeField(blank=True, null=True)
    last_sync_asis_at = models.DateTimeField(blank=True, null=True)
    last_sync_sta_at = models.DateTimeField(blank=True, null=True)
    last_sync_fg_at = models.DateTimeField(blank=True, null=True)
    last_sync_inbound_at = models.DateTimeField(blank=True, null=True)
    last_sync_orders_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Settings for {self.location}"

    @classmethod
    def for_location(cls, location):
        settings_row, _ = cls.objects.get_or_create(
            location=location,
            defaults={'company_id': location.company_id},
        )
        return settings_row

    class Meta:
        db_table = 'settings'
        verbose_name_plural = 'location settings'


class ActivityLog(models.Model):
    """Activity feed for a location"""
    ACTION_CHOICES = [
        # GE sync actions (system)
        ('asis_sync', 'ASIS Sync'),
        ('asis_wipe', 'ASIS Wipe'),
        ('fg_sync', 'FG Sync'),
        ('sta_sync', 'STA Sync'),
        ('inventory_sync', 'Inventory Sync'),
        ('inbound_sync', 'Inbound Sync'),
        # User actions
        ('load_update', 'Load Updated'),
        ('sanity_check_requested', 'Sanity Check Requested'),
        ('sanity_check_completed', 'Sanity Check Completed'),
        ('item_scanned', 'Item Scanned'),
        ('session_started', 'Session Started'),
        ('session_completed', 'Session Completed'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='activity_logs')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='activity_logs')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    actor_name = models.CharField(max_length=255)
    actor_image = models.URLField(max_length=500, blank=True, null=True)
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=100, blank=True, null=True)
    entity_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.JSONField(blank=True, null=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'activity_log'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['location', '-created_at'], name='idx_activity_location_created'),
            models.Index(fields=['action'], name='idx_activity_action'),
        ]
