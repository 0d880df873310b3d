from django.contrib import admin

from .models import Category, InventoryItem


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "available", "total_stock", "low_stock_threshold", "updated_at")
    list_filter = ("category",)
    search_fields = ("name", "description")
