"""
URL configuration for the SoundStock backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "SoundStock Admin Panel"
admin.site.site_title = "SoundStock Admin Portal"
admin.site.index_title = "Sound equipment inventory"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('soundstock.core.urls')),
    path('api/v1/', include('soundstock.equipment.urls')),
    path('api/v1/', include('soundstock.events.urls')),
    path('api/v1/', include('soundstock.inventory.urls')),
    path('api/v1/', include('soundstock.notifications.urls')),
    path('api/v1/', include('soundstock.assistant.urls')),
    path('api/v1/', include('soundstock.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
