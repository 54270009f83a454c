# Generated manually for scanning sessions and map positions

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('catalog', '0001_initial'),
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ScanningSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('inventory_type', models.CharField(max_length=50)),
                ('sub_inventory', models.CharField(blank=True, max_length=100, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('closed', 'Closed')], default='active', max_length=20)),
                ('items', models.JSONField(blank=True, default=list)),
                ('scanned_item_ids', models.JSONField(blank=True, default=list)),
                ('created_by', models.CharField(blank=True, max_length=150, null=True)),
                ('updated_by', models.CharField(blank=True, max_length=150, null=True)),
                ('closed_by', models.CharField(blank=True, max_length=150, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scanning_sessions', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scanning_sessions', to='core.location')),
            ],
            options={
                'db_table': 'scanning_sessions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['location', 'status'], name='idx_session_location_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductLocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_type', models.CharField(blank=True, max_length=100, null=True)),
                ('sub_inventory', models.CharField(blank=True, max_length=100, null=True)),
                ('position_x', models.FloatField()),
                ('position_y', models.FloatField()),
                ('accuracy', models.FloatField(blank=True, null=True)),
                ('scanned_by', models.CharField(blank=True, max_length=150, null=True)),
                ('raw_lat', models.FloatField(blank=True, null=True)),
                ('raw_lng', models.FloatField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='product_locations', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='product_locations', to='core.location')),
                ('inventory_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='positions', to='inventory.inventoryitem')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='positions', to='catalog.product')),
                ('scanning_session', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='positions', to='scanning.scanningsession')),
            ],
            options={
                'db_table': 'product_location_history',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['location', '-created_at'], name='idx_position_location_created'),
                    models.Index(fields=['inventory_item'], name='idx_position_item'),
                ],
            },
        ),
    ]
