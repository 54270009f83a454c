from django.db import models
from warehouse.core.models import Company, Location
from warehouse.catalog.models import Product


class InventoryItem(models.Model):
    """A single inventory row (one appliance, or a counted stock line)"""
    INVENTORY_TYPES = ['ASIS', 'FG', 'LocalStock', 'Parts', 'STA', 'BackHaul', 'Staged', 'Inbound']

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='inventory_items')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='inventory_items')
    cso = models.CharField(max_length=100)
    serial = models.CharField(max_length=100, blank=True, null=True)
    model = models.CharField(max_length=100)
    product_type = models.CharField(max_length=100)
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_items')
    # Free-form: the known types above plus anything the GE feeds report
    inventory_type = models.CharField(max_length=50)
    sub_inventory = models.CharField(max_length=100, blank=True, null=True)
    qty = models.IntegerField(default=1)
    status = models.CharField(max_length=50, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    consumer_customer_name = models.CharField(max_length=200, blank=True, null=True)
    date = models.DateField(blank=True, null=True)
    route_id = models.CharField(max_length=50, blank=True, null=True)
    stop = models.IntegerField(blank=True, null=True)

    is_scanned = models.BooleanField(default=False)
    scanned_at = models.DateTimeField(blank=True, null=True)
    scanned_by = models.CharField(max_length=150, blank=True, null=True)

    ge_model = models.CharField(max_length=100, blank=True, null=True)
    ge_serial = models.CharField(max_length=100, blank=True, null=True)
    ge_inv_qty = models.IntegerField(blank=True, null=True)
    ge_availability_status = models.CharField(max_length=100, blank=True, null=True)
    ge_availability_message = models.TextField(blank=True, null=True)
    ge_ordc = models.CharField(max_length=100, blank=True, null=True)
    ge_orphaned = models.BooleanField(default=False)
    ge_orphaned_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.inventory_type} {self.serial or self.cso} ({self.model})"

    class Meta:
        db_table = 'inventory_items'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['location', 'inventory_type'], name='idx_item_location_type'),
            models.Index(fields=['location', 'sub_inventory'], name='idx_item_location_sub'),
            models.Index(fields=['serial'], name='idx_item_serial'),
            models.Index(fields=['model'], name='idx_item_model'),
        ]


class LoadMetadata(models.Model):
    """A load: a named sub-inventory with GE status, prep flags and scan progress"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('staged', 'Staged'),
        ('in_transit', 'In Transit'),
        ('delivered', 'Delivered'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='loads')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='loads')
    inventory_type = models.CharField(max_length=50)
    sub_inventory_name = models.CharField(max_length=100)
    friendly_name = models.CharField(max_length=200, blank=True, null=True)
    primary_color = models.CharField(max_length=20, blank=True, null=True)
    category = models.CharField(max_length=100, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    notes = models.TextField(blank=True, null=True)
    created_by = models.CharField(max_length=150, blank=True, null=True)

    ge_source_status = models.CharField(max_length=50, blank=True, null=True)
    ge_cso_status = models.CharField(max_length=50, blank=True, null=True)
    ge_cso = models.CharField(max_length=100, blank=True, null=True)
    ge_inv_org = models.CharField(max_length=50, blank=True, null=True)
    ge_units = models.IntegerField(blank=True, null=True)
    ge_submitted_date = models.CharField(max_length=50, blank=True, null=True)
    ge_pricing = models.CharField(max_length=100, blank=True, null=True)
    ge_notes = models.TextField(blank=True, null=True)
    ge_scanned_at = models.DateTimeField(blank=True, null=True)

    pickup_date = models.DateField(blank=True, null=True)
    pickup_tba = models.BooleanField(default=False)
    prep_tagged = models.BooleanField(default=False)
    prep_wrapped = models.BooleanField(default=False)

    sanity_check_requested = models.BooleanField(default=False)
    sanity_check_requested_at = models.DateTimeField(blank=True, null=True)
    sanity_check_requested_by = models.CharField(max_length=150, blank=True, null=True)
    sanity_check_completed_at = models.DateTimeField(blank=True, null=True)
    sanity_check_completed_by = models.CharField(max_length=150, blank=True, null=True)

    # Denormalized scan progress
    items_scanned_count = models.IntegerField(default=0)
    items_total_count = models.IntegerField(default=0)
    scanning_complete = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.inventory_type}/{self.sub_inventory_name}"

    class Meta:
        db_table = 'load_metadata'
        ordering = ['-created_at']
        unique_together = [['location', 'inventory_type', 'sub_inventory_name']]
        indexes = [
            models.Index(fields=['location', 'sub_inventory_name'], name='idx_load_location_name'),
            models.Index(fields=['ge_cso_status'], name='idx_load_cso_status'),
        ]


class LoadConflict(models.Model):
    """A serial that the GE feeds place in more than one load"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('resolved', 'Resolved'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='load_conflicts')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='load_conflicts')
    inventory_type = models.CharField(max_length=50)
    load_number = models.CharField(max_length=100)
    serial = models.CharField(max_length=100)
    conflicting_load = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    notes = models.TextField(blank=True, null=True)
    detected_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(blank=True, null=True)

    def __str__(self):
        return f"{self.serial}: {self.load_number} vs {self.conflicting_load}"

    class Meta:
        db_table = 'load_conflicts'
        ordering = ['-detected_at']


class InventoryConversion(models.Model):
    """History of an item moving between inventory types or loads"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='inventory_conversions')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='inventory_conversions')
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='conversions')
    from_inventory_type = models.CharField(max_length=50)
    to_inventory_type = models.CharField(max_length=50)
    from_sub_inventory = models.CharField(max_length=100, blank=True, null=True)
    to_sub_inventory = models.CharField(max_length=100, blank=True, null=True)
    converted_by = models.CharField(max_length=150, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'inventory_conversions'
        ordering = ['-created_at']
