import random

from django.db import models
from warehouse.core.models import Company, Location


def default_display_state():
    return {
        'theme': 'dark',
        'refreshInterval': 30000,
        'layout': {
            'columns': 2,
            'rows': 2,
            'widgets': [
                {'id': '1', 'type': 'loads-summary', 'title': 'Active Loads'},
                {'id': '2', 'type': 'parts-alerts', 'title': 'Parts Alerts'},
                {'id': '3', 'type': 'active-sessions', 'title': 'Scanning Sessions'},
                {'id': '4', 'type': 'clock', 'title': 'Time'},
            ],
        },
    }


def generate_pairing_code():
    """Random 6-digit code not used by another display"""
    while True:
        code = str(random.randint(100000, 999999))
        if not FloorDisplay.objects.filter(pairing_code=code).exists():
            return code


class FloorDisplay(models.Model):
    """A wall-mounted screen showing location widgets"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='floor_displays')
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='floor_displays')
    name = models.CharField(max_length=200, default='Floor Display')
    pairing_code = models.CharField(max_length=6, unique=True)
    paired = models.BooleanField(default=False)
    state_json = models.JSONField(default=default_display_state, blank=True)
    last_heartbeat = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.pairing_code})"

    def save(self, *args, **kwargs):
        if not self.pairing_code:
            self.pairing_code = generate_pairing_code()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'floor_displays'
        ordering = ['-created_at']
