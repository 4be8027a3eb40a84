"""
WSGI config for the SoundStock backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'soundstock.config.settings')

application = get_wsgi_application()
