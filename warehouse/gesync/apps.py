from django.apps import AppConfig


class GESyncConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'warehouse.gesync'
    verbose_name = 'GE sync'
