# Generated manually for parts tracking

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
            name='TrackedPart',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reorder_threshold', models.IntegerField(default=5)),
                ('is_active', models.BooleanField(default=True)),
                ('reordered_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.CharField(blank=True, max_length=150, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracked_parts', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracked_parts', to='core.location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracked_parts', to='catalog.product')),
            ],
            options={
                'db_table': 'tracked_parts',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['location', 'is_active'], name='idx_tracked_location_active'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InventoryCount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('qty', models.IntegerField()),
                ('previous_qty', models.IntegerField(blank=True, null=True)),
                ('delta', models.IntegerField(blank=True, null=True)),
                ('count_reason', models.CharField(blank=True, choices=[('usage', 'Usage'), ('return', 'Return'), ('restock', 'Restock')], max_length=20, null=True)),
                ('counted_by', models.CharField(blank=True, max_length=150, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_counts', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_counts', to='core.location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_counts', to='catalog.product')),
                ('tracked_part', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='counts', to='parts.trackedpart')),
            ],
            options={
                'db_table': 'inventory_counts',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['location', 'product', '-created_at'], name='idx_count_product_created'),
                ],
            },
        ),
    ]
