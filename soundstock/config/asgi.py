"""
ASGI config for the SoundStock backend.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'soundstock.config.settings')

application = get_asgi_application()
