# Generated manually for inventory items and loads

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('cso', models.CharField(max_length=100)),
                ('serial', models.CharField(blank=True, max_length=100, null=True)),
                ('model', models.CharField(max_length=100)),
                ('product_type', models.CharField(max_length=100)),
                ('inventory_type', models.CharField(max_length=50)),
                ('sub_inventory', models.CharField(blank=True, max_length=100, null=True)),
                ('qty', models.IntegerField(default=1)),
                ('status', models.CharField(blank=True, max_length=50, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('consumer_customer_name', models.CharField(blank=True, max_length=200, null=True)),
                ('date', models.DateField(blank=True, null=True)),
                ('route_id', models.CharField(blank=True, max_length=50, null=True)),
                ('stop', models.IntegerField(blank=True, null=True)),
                ('is_scanned', models.BooleanField(default=False)),
                ('scanned_at', models.DateTimeField(blank=True, null=True)),
                ('scanned_by', models.CharField(blank=True, max_length=150, null=True)),
                ('ge_model', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_serial', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_inv_qty', models.IntegerField(blank=True, null=True)),
                ('ge_availability_status', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_availability_message', models.TextField(blank=True, null=True)),
                ('ge_ordc', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_orphaned', models.BooleanField(default=False)),
                ('ge_orphaned_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='core.location')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_items', to='catalog.product')),
            ],
            options={
                'db_table': 'inventory_items',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['location', 'inventory_type'], name='idx_item_location_type'),
                    models.Index(fields=['location', 'sub_inventory'], name='idx_item_location_sub'),
                    models.Index(fields=['serial'], name='idx_item_serial'),
                    models.Index(fields=['model'], name='idx_item_model'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LoadMetadata',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('inventory_type', models.CharField(max_length=50)),
                ('sub_inventory_name', models.CharField(max_length=100)),
                ('friendly_name', models.CharField(blank=True, max_length=200, null=True)),
                ('primary_color', models.CharField(blank=True, max_length=20, null=True)),
                ('category', models.CharField(blank=True, max_length=100, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('staged', 'Staged'), ('in_transit', 'In Transit'), ('delivered', 'Delivered')], default='active', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_by', models.CharField(blank=True, max_length=150, null=True)),
                ('ge_source_status', models.CharField(blank=True, max_length=50, null=True)),
                ('ge_cso_status', models.CharField(blank=True, max_length=50, null=True)),
                ('ge_cso', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_inv_org', models.CharField(blank=True, max_length=50, null=True)),
                ('ge_units', models.IntegerField(blank=True, null=True)),
                ('ge_submitted_date', models.CharField(blank=True, max_length=50, null=True)),
                ('ge_pricing', models.CharField(blank=True, max_length=100, null=True)),
                ('ge_notes', models.TextField(blank=True, null=True)),
                ('ge_scanned_at', models.DateTimeField(blank=True, null=True)),
                ('pickup_date', models.DateField(blank=True, null=True)),
                ('pickup_tba', models.BooleanField(default=False)),
                ('prep_tagged', models.BooleanField(default=False)),
                ('prep_wrapped', models.BooleanField(default=False)),
                ('sanity_check_requested', models.BooleanField(default=False)),
                ('sanity_check_requested_at', models.DateTimeField(blank=True, null=True)),
                ('sanity_check_requested_by', models.CharField(blank=True, max_length=150, null=True)),
                ('sanity_check_completed_at', models.DateTimeField(blank=True, null=True)),
                ('sanity_check_completed_by', models.CharField(blank=True, max_length=150, null=True)),
                ('items_scanned_count', models.IntegerField(default=0)),
                ('items_total_count', models.IntegerField(default=0)),
                ('scanning_complete', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='loads', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='loads', to='core.location')),
            ],
            options={
                'db_table': 'load_metadata',
                'ordering': ['-created_at'],
                'unique_together': {('location', 'inventory_type', 'sub_inventory_name')},
                'indexes': [
                    models.Index(fields=['location', 'sub_inventory_name'], name='idx_load_location_name'),
                    models.Index(fields=['ge_cso_status'], name='idx_load_cso_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LoadConflict',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('inventory_type', models.CharField(max_length=50)),
                ('load_number', models.CharField(max_length=100)),
                ('serial', models.CharField(max_length=100)),
                ('conflicting_load', models.CharField(max_length=100)),
                ('status', models.CharField(choices=[('open', 'Open'), ('resolved', 'Resolved')], default='open', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('detected_at', models.DateTimeField(auto_now_add=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='load_conflicts', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='load_conflicts', to='core.location')),
            ],
            options={
                'db_table': 'load_conflicts',
                'ordering': ['-detected_at'],
            },
        ),
        migrations.CreateModel(
            name='InventoryConversion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_inventory_type', models.CharField(max_length=50)),
                ('to_inventory_type', models.CharField(max_length=50)),
                ('from_sub_inventory', models.CharField(blank=True, max_length=100, null=True)),
                ('to_sub_inventory', models.CharField(blank=True, max_length=100, null=True)),
                ('converted_by', models.CharField(blank=True, max_length=150, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_conversions', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_conversions', to='core.location')),
                ('inventory_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='conversions', to='inventory.inventoryitem')),
            ],
            options={
                'db_table': 'inventory_conversions',
                'ordering': ['-created_at'],
            },
        ),
    ]
