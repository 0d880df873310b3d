from django.contrib import admin

from .models import ItemLimitation, MonthlyUsage


@admin.register(ItemLimitation)
class ItemLimitationAdmin(admin.ModelAdmin):
    list_display = ("item_name", "position", "monthly_limit", "updated_at")
    list_filter = ("position",)
    search_fields = ("item_name", "position")


@admin.register(MonthlyUsage)
class MonthlyUsageAdmin(admin.ModelAdmin):
    list_display = ("user", "item_name", "year", "month", "quantity")
    list_filter = ("year", "month")
    search_fields = ("item_name", "user__email")
