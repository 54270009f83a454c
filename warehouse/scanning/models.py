from django.db import models
from warehouse.core.models import Company, Location
from warehouse.catalog.models import Product
from warehouse.inventory.models import InventoryItem


class ScanningSession(models.Model):
    """A bounded scanning pass over a snapshot of items"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('closed', 'Closed'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='scanning_sessions')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='scanning_sessions')
    name = models.CharField(max_length=200)
    inventory_type = models.CharField(max_length=50)
    sub_inventory = models.CharField(max_length=100, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    # Serialized items taken when the session was created
    items = models.JSONField(default=list, blank=True)
    scanned_item_ids = models.JSONField(default=list, blank=True)
    created_by = models.CharField(max_length=150, blank=True, null=True)
    updated_by = models.CharField(max_length=150, blank=True, null=True)
    closed_by = models.CharField(max_length=150, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    closed_at = models.DateTimeField(blank=True, null=True)

    def __str__(self):
        return self.name

    @property
    def item_ids(self):
        return [item.get('id') for item in (self.items or []) if isinstance(item, dict)]

    class Meta:
        db_table = 'scanning_sessions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['location', 'status'], name='idx_session_location_status'),
        ]


class ProductLocation(models.Model):
    """A recorded scan position on the warehouse map"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='product_locations')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='product_locations')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='positions')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='positions')
    product_type = models.CharField(max_length=100, blank=True, null=True)
    sub_inventory = models.CharField(max_length=100, blank=True, null=True)
    scanning_session = models.ForeignKey(ScanningSession, on_delete=models.SET_NULL, null=True, blank=True, related_name='positions')
    position_x = models.FloatField()
    position_y = models.FloatField()
    accuracy = models.FloatField(blank=True, null=True)
    scanned_by = models.CharField(max_length=150, blank=True, null=True)
    raw_lat = models.FloatField(blank=True, null=True)
    raw_lng = models.FloatField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'product_location_history'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['location', '-created_at'], name='idx_position_location_created'),
            models.Index(fields=['inventory_item'], name='idx_position_item'),
        ]
