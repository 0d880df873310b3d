from django.contrib import admin

from .models import NewItemRequest, Notification, Request


@admin.register(Request)
class RequestAdmin(admin.ModelAdmin):
    list_display = ("id", "employee_name", "item_name", "quantity", "status", "priority", "group_id", "created_at")
    list_filter = ("status", "priority", "department")
    search_fields = ("employee_name", "item_name", "group_id")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "type", "read", "created_at")
    list_filter = ("type", "read")


@admin.register(NewItemRequest)
class NewItemRequestAdmin(admin.ModelAdmin):
    list_display = ("item_name", "employee_name", "status", "created_at")
    list_filter = ("status",)
