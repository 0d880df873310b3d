from django.urls import path
from .views import (
    add_inventory,
    update_inventory,
    delete_inventory,
    list_inventory,
    inventory_detail,
    adjust_stock,
    list_categories,
    add_category,
    edit_category,
    remove_category,
)

urlpatterns = [
    path('add/', add_inventory, name='add_inventory'),
    path('update/', update_inventory, name='update_inventory'),
    path('delete/', delete_inventory, name='delete_inventory'),
    path('list/', list_inventory, name='list_inventory'),
    path('<int:item_id>/', inventory_detail, name='inventory_detail'),
    path('<int:item_id>/adjust/', adjust_stock, name='adjust_stock'),
    path('categories/', list_categories, name='list_categories'),
    path('categories/add/', add_category, name='add_category'),
    path('categories/<int:category_id>/edit/', edit_category, name='edit_category'),
    path('categories/<int:category_id>/remove/', remove_category, name='remove_category'),
]
