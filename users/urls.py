from django.urls import path
from .views import (
    login_user,
    add_user,
    update_user,
    delete_user,
    list_users,
    set_role,
    reset_password,
    save_push_token,
    list_departments,
    add_department,
)

urlpatterns = [
    path("login/", login_user, name="login"),
    path("add/", add_user, name="add_user"),
    path("update/", update_user, name="update_user"),
    path("delete/", delete_user, name="delete_user"),
    path("list/", list_users, name="list_users"),
    path("<int:user_id>/role/", set_role, name="set_role"),
    path("<int:user_id>/reset-password/", reset_password, name="reset_password"),
    path("<int:user_id>/push-token/", save_push_token, name="save_push_token"),
    path("departments/", list_departments, name="list_departments"),
    path("departments/add/", add_department, name="add_department"),
]
