"""
WSGI config for the SalesHostel backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'saleshostel.config.settings')

application = get_wsgi_application()
