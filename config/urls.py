"""
URL configuration for tuition center API
"""
from django.contrib import admin
from django.db import DatabaseError, connection
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.views.generic import RedirectView
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)


@require_http_methods(["GET"])
def health_view(request):
    """Minimal health check for connectivity verification. No auth required."""
    return JsonResponse({'status': 'ok', 'service': 'tuition-center'})


@require_http_methods(["GET"])
def system_health_view(request):
    """
    Full system health check for monitoring.
    Returns db and auth status. No auth required.
    """
    result = {'db': 'ok', 'auth': 'ok'}
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        result['db'] = f'error: {str(e)[:80]}'
    try:
        from django.contrib.auth import get_user_model
        get_user_model().objects.exists()
    except DatabaseError as e:
        result['auth'] = f'error: {str(e)[:80]}'
    healthy = all(value == 'ok' for value in result.values())
    return JsonResponse(result, status=200 if healthy else 503)


@require_http_methods(["GET"])
def api_root(request):
    """Root endpoint - API information"""
    return JsonResponse({
        'name': 'Tuition Center API',
        'version': '1.0.0',
        'description': 'Multi-tenant tuition center management: students, attendance and fees',
        'endpoints': {
            'health': '/api/health/',
            'auth': '/api/auth/',
            'students': '/api/students',
            'attendance': '/api/attendance',
            'fees': '/api/fees',
            'docs': '/api/docs/',
            'schema': '/api/schema/',
        }
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin', RedirectView.as_view(url='/admin/', permanent=False)),
    path('admin/', admin.site.urls),
    path('api/', api_root),
    path('api/health/', health_view, name='api-health'),
    path('api/system/health/', system_health_view, name='api-system-health'),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # API endpoints
    path('api/auth/', include('accounts.urls')),
    path('api/students', include('students.urls')),
    path('api/attendance', include('attendance.urls')),
    path('api/fees', include('payments.urls')),
    path('api/notifications/', include('notifications.urls')),
]
