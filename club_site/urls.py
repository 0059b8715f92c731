"""
URL configuration for club_site project.

The public calendar lives under ``/calendario/`` and its read-only JSON API
under ``/api/calendario/``.
"""
from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('calendario/', include('calendario.urls')),
    path('api/calendario/', include('calendario.api_urls')),
    path('', RedirectView.as_view(pattern_name='calendario:calendar', permanent=False), name='home'),
]
