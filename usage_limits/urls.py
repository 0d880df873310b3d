from django.urls import path
from . import views

urlpatterns = [
    path('', views.list_limitations),
    path('add/', views.add_limitation),
    path('<int:limitation_id>/update/', views.update_limitation),
    path('<int:limitation_id>/delete/', views.delete_limitation),
    path('check/', views.check),
    path('usage/', views.my_usage),
]
