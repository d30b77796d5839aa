"""
WSGI config for the textile ERP backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'textile_erp.config.settings')

application = get_wsgi_application()
