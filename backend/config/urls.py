from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("apps.accounts.urls")),
    path("goals/", include("apps.goals.urls")),
    path("dashboard/", include("apps.dashboard.urls")),
]
