from django.urls import path
from . import views

urlpatterns = [
    path("admin/overview/", views.admin_overview),
    path("reports/", views.reports),
    path("employee/<int:employee_id>/summary/", views.employee_dashboard_summary),
]
