from django.db import models
from warehouse.core.models import Company, Location
from warehouse.catalog.models import Product


class TrackedPart(models.Model):
    """A part whose stock level is watched for reordering"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='tracked_parts')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='tracked_parts')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='tracked_parts')
    reorder_threshold = models.IntegerField(default=5)
    is_active = models.BooleanField(default=True)
    reordered_at = models.DateTimeField(blank=True, null=True)
    created_by = models.CharField(max_length=150, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.model} (threshold {self.reorder_threshold})"

    class Meta:
        db_table = 'tracked_parts'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['location', 'is_active'], name='idx_tracked_location_active'),
        ]


class InventoryCount(models.Model):
    """Snapshot of a part count change"""
    REASON_CHOICES = [
        ('usage', 'Usage'),
        ('return', 'Return'),
        ('restock', 'Restock'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='inventory_counts')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='inventory_counts')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='inventory_counts')
    tracked_part = models.ForeignKey(TrackedPart, on_delete=models.SET_NULL, null=True, blank=True, related_name='counts')
    qty = models.IntegerField()
    previous_qty = models.IntegerField(blank=True, null=True)
    delta = models.IntegerField(blank=True, null=True)
    count_reason = models.CharField(max_length=20, choices=REASON_CHOICES, blank=True, null=True)
    counted_by = models.CharField(max_length=150, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        if self.previous_qty is not None:
            self.delta = self.qty - self.previous_qty
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'inventory_counts'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['location', 'product', '-created_at'], name='idx_count_product_created'),
        ]
