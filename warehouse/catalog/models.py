from django.db import models


class Product(models.Model):
    """Appliance/part catalog entry, keyed by model number"""
    model = models.CharField(max_length=100, unique=True)
    product_type = models.CharField(max_length=100)
    brand = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    product_url = models.URLField(max_length=500, blank=True, null=True)
    product_category = models.CharField(max_length=100, blank=True, null=True)
    commercial_category = models.CharField(max_length=100, blank=True, null=True)
    capacity = models.CharField(max_length=100, blank=True, null=True)
    color = models.CharField(max_length=100, blank=True, null=True)
    availability = models.CharField(max_length=100, blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    msrp = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    is_part = models.BooleanField(default=False)
    specs = models.JSONField(blank=True, null=True)
    dimensions = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.model

    class Meta:
        db_table = 'products'
        ordering = ['model']
        indexes = [
            models.Index(fields=['brand'], name='idx_product_brand'),
            models.Index(fields=['product_type'], name='idx_product_type'),
        ]
