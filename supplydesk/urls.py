from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("users/", include("users.urls")),
    path("inventory/", include("inventory.urls")),
    path("requests/", include("supply_requests.urls")),
    path("limits/", include("usage_limits.urls")),
    path("dashboard/", include("dashboard.urls")),
]
