from django.contrib import admin

from .models import Department, User


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "email", "name", "surname", "department", "position", "role")
    search_fields = ("employee_id", "email", "name", "surname")
    list_filter = ("role", "department")
    exclude = ("password",)
