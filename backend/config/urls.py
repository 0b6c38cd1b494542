"""
URL configuration for Livepoll project.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    """API root endpoint that lists available endpoints."""
    return Response(
        {
            "message": "Welcome to Livepoll API",
            "version": "1.0.0",
            "documentation": {
                "swagger_ui": "/api/docs/",
                "redoc": "/api/redoc/",
                "schema": "/api/schema/",
            },
            "endpoints": {
                "polls": "/api/v1/polls/",
                "vote": "/api/v1/polls/{poll_id}/vote/",
                "websocket": "/ws/polls/",
            },
        }
    )


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/v1/", api_root, name="api-root"),
    path("api/v1/", include("apps.polls.urls")),
    path("api/v1/", include("apps.votes.urls")),
    # API Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
