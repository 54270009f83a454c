"""
WSGI config for the warehouse scanner backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'warehouse.config.settings')

application = get_wsgi_application()
