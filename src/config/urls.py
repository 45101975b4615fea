from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("modules.core.urls")),
    # Versioned domain API
    path("api/v1/", include("modules.users.urls")),
    path("api/v1/", include("modules.restaurants.urls")),
    path("api/v1/", include("modules.orders.urls")),
    path("api/v1/", include("modules.agents.urls")),
    path("api/v1/", include("modules.ratings.urls")),
    # OpenAPI schema and docs (public)
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path(
        "api/docs/",
        SpectacularSwaggerView.as_view(url_name="schema"),
        name="swagger-ui",
    ),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]
