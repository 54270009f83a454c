# Generated manually for floor displays

import django.db.models.deletion
import warehouse.displays.models
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FloorDisplay',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(default='Floor Display', max_length=200)),
                ('pairing_code', models.CharField(max_length=6, unique=True)),
                ('paired', models.BooleanField(default=False)),
                ('state_json', models.JSONField(blank=True, default=warehouse.displays.models.default_display_state)),
                ('last_heartbeat', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='floor_displays', to='core.company')),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='floor_displays', to='core.location')),
            ],
            options={
                'db_table': 'floor_displays',
                'ordering': ['-created_at'],
            },
        ),
    ]
