import json
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from supply_requests.exceptions import NotPermitted
from supplydesk.subscriptions import notify_changed
from .models import Department, User
from .permissions import get_actor, require_admin

logger = logging.getLogger(__name__)

DASHBOARD_MAP = {
    User.ROLE_EMPLOYEE: "/",
    User.ROLE_ADMIN: "/admin/dashboard",
}


def _load_admin(actor_id, action):
    """Returns (actor, None) or (None, error response)."""
    try:
        actor = get_actor(actor_id)
        require_admin(actor, action)
    except User.DoesNotExist:
        return None, JsonResponse({"error": "Actor not found"}, status=404)
    except NotPermitted as e:
        return None, JsonResponse({"error": str(e)}, status=403)
    return actor, None


@csrf_exempt
@require_http_methods(["POST"])
def login_user(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    login = (data.get("employee_id") or data.get("email") or "").strip()
    password = data.get("password") or ""

    if not login or not password:
        return JsonResponse({"error": "employee_id (or email) and password are required"}, status=400)

    user = User.objects.filter(Q(employee_id=login) | Q(email__iexact=login)).first()
    if user is None or not user.check_password(password):
        logger.warning("Failed login for %s", login)
        return JsonResponse({"error": "Invalid credentials"}, status=401)

    return JsonResponse({
        "message": "Login successful",
        "user": user.to_dict(),
        "redirect_url": DASHBOARD_MAP[user.role],
    })


@csrf_exempt
@require_http_methods(["POST"])
def add_user(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "add users")
    if error:
        return error

    required = ["employee_id", "name", "email", "password"]
    missing = [f for f in required if not data.get(f)]
    if missing:
        return JsonResponse({"error": f"Missing fields: {', '.join(missing)}"}, status=400)

    role = data.get("role", User.ROLE_EMPLOYEE)
    if role not in dict(User.ROLE_CHOICES):
        return JsonResponse({"error": f"Invalid role '{role}'"}, status=400)

    user = User(
        employee_id=data["employee_id"],
        name=data["name"],
        surname=data.get("surname", ""),
        email=data["email"],
        department=data.get("department", ""),
        position=data.get("position", ""),
        role=role,
    )
    user.set_password(data["password"])
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        return JsonResponse({"error": "A user with this employee_id or email already exists"}, status=409)

    logger.info("User %s added by %s", user.id, actor.id)
    return JsonResponse({
        "message": "User added successfully",
        "user": user.to_dict(),
    }, status=201)


@csrf_exempt
@require_http_methods(["PUT"])
def update_user(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "edit users")
    if error:
        return error

    user_id = data.get("id")
    if not user_id:
        return JsonResponse({"error": "User ID is required"}, status=400)

    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return JsonResponse({"error": "User not found"}, status=404)

    for field in ("employee_id", "name", "surname", "email", "department", "position"):
        if field in data:
            setattr(user, field, data[field])

    # password is kept unless a new one is given
    if data.get("password"):
        user.set_password(data["password"])

    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        return JsonResponse({"error": "A user with this employee_id or email already exists"}, status=409)

    return JsonResponse({
        "message": "User updated successfully",
        "user": user.to_dict(),
    })


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_user(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "remove users")
    if error:
        return error

    user_id = data.get("id")
    if not user_id:
        return JsonResponse({"error": "User ID is required"}, status=400)

    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return JsonResponse({"error": "User not found"}, status=404)

    if user.id == actor.id:
        return JsonResponse({"error": "You cannot remove your own account"}, status=400)

    user.delete()
    logger.info("User %s removed by %s", user_id, actor.id)
    return JsonResponse({"message": "User deleted successfully"})


@require_http_methods(["GET"])
def list_users(request):
    actor, error = _load_admin(request.GET.get("actor_id"), "list users")
    if error:
        return error

    users = User.objects.all().order_by("name", "surname")

    department = request.GET.get("department")
    if department:
        users = users.filter(department=department)

    users_list = [user.to_dict() for user in users]

    return JsonResponse({
        "total_users": len(users_list),
        "users": users_list
    }, status=200)


@csrf_exempt
@require_http_methods(["PATCH"])
def set_role(request, user_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "change roles")
    if error:
        return error

    role = data.get("role")
    if role not in dict(User.ROLE_CHOICES):
        return JsonResponse({"error": f"role must be one of {list(dict(User.ROLE_CHOICES))}"}, status=400)

    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return JsonResponse({"error": "User not found"}, status=404)

    user.role = role
    user.save(update_fields=["role", "updated_at"])
    logger.info("Role of user %s set to %s by %s", user.id, role, actor.id)
    return JsonResponse({"id": user.id, "role": user.role})


@csrf_exempt
@require_http_methods(["POST"])
def reset_password(request, user_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "reset passwords")
    if error:
        return error

    new_password = data.get("password") or ""
    if len(new_password) < 6:
        return JsonResponse({"error": "password must be at least 6 characters"}, status=400)

    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        return JsonResponse({"error": "User not found"}, status=404)

    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    return JsonResponse({"message": "Password reset successfully"})


@csrf_exempt
@require_http_methods(["POST"])
def save_push_token(request, user_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    token = (data.get("token") or "").strip()
    if not token:
        return JsonResponse({"error": "token is required"}, status=400)

    updated = User.objects.filter(id=user_id).update(fcm_token=token)
    if not updated:
        return JsonResponse({"error": "User not found"}, status=404)
    notify_changed(User)
    return JsonResponse({"message": "Token saved"})


@require_http_methods(["GET"])
def list_departments(request):
    departments = Department.objects.all().values("id", "name")
    return JsonResponse(list(departments), safe=False)


@csrf_exempt
@require_http_methods(["POST"])
def add_department(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _load_admin(data.get("actor_id"), "add departments")
    if error:
        return error

    name = (data.get("name") or "").strip()
    if not name:
        return JsonResponse({"error": "name is required"}, status=400)

    department, created = Department.objects.get_or_create(name=name)
    return JsonResponse({"id": department.id, "name": department.name, "created": created},
                        status=201 if created else 200)
