import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from inventory.models import InventoryItem
from users.models import User
from users.permissions import get_actor
from . import lifecycle, notifications, services
from .exceptions import SupplyError
from .models import NewItemRequest, Request


def _error(e):
    return JsonResponse(e.payload(), status=e.status_code)


def _actor_or_error(actor_id):
    """Returns (actor, None) or (None, error response)."""
    try:
        return get_actor(actor_id), None
    except User.DoesNotExist:
        return None, JsonResponse({"error": "Actor not found"}, status=404)


# ---------------------------
# Creating requests
# ---------------------------
@csrf_exempt
@require_http_methods(["POST"])
def create_request(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    if not data.get("item_id"):
        return JsonResponse({"error": "item_id is required"}, status=400)

    try:
        req = services.create_request(
            actor,
            data["item_id"],
            data.get("quantity"),
            notes=data.get("notes", ""),
            priority=data.get("priority", "medium"),
        )
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)
    except SupplyError as e:
        return _error(e)

    return JsonResponse({"message": "Request created successfully", "request": req.to_dict()}, status=201)


@csrf_exempt
@require_http_methods(["POST"])
def create_bulk_request(request):
    """
    Body:
    {
      "actor_id": 3,
      "items": [{"item_id": 1, "quantity": 2}, {"item_id": 4, "quantity": 1}],
      "notes": "Onboarding kit"
    }
    """
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    items = data.get("items")
    if not isinstance(items, list):
        return JsonResponse({"error": "items must be a list"}, status=400)

    try:
        group_id, created = services.create_bulk_request(
            actor,
            items,
            notes=data.get("notes", ""),
            priority=data.get("priority", "medium"),
        )
    except InventoryItem.DoesNotExist as e:
        return JsonResponse({"error": str(e) or "Inventory item not found"}, status=404)
    except SupplyError as e:
        return _error(e)

    return JsonResponse({
        "message": f"{len(created)} requests created",
        "group_id": group_id,
        "requests": [r.to_dict() for r in created],
    }, status=201)


# ---------------------------
# Listing
# ---------------------------
def _listing(requests, grouped):
    if grouped:
        return JsonResponse(services.grouped_view(requests))
    return JsonResponse([r.to_dict() for r in requests], safe=False)


@require_http_methods(["GET"])
def my_requests(request):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error
    requests = services.requests_for_user(actor.id)
    return _listing(requests, request.GET.get("grouped") in ("1", "true"))


@require_http_methods(["GET"])
def list_requests(request):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error
    if not actor.is_admin:
        return JsonResponse({"error": "Only administrators can list all requests."}, status=403)

    status = request.GET.get("status")
    if status and status not in dict(lifecycle.STATUS_CHOICES):
        return JsonResponse({"error": f"Invalid status '{status}'"}, status=400)

    requests = services.all_requests(status=status, department=request.GET.get("department"))
    return _listing(requests, request.GET.get("grouped") in ("1", "true"))


@require_http_methods(["GET"])
def request_detail(request, request_id):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error
    try:
        req = Request.objects.get(id=request_id)
    except Request.DoesNotExist:
        return JsonResponse({"error": "Request not found"}, status=404)
    if not actor.is_admin and req.employee_id != actor.id:
        return JsonResponse({"error": "You can only view your own requests."}, status=403)
    return JsonResponse(req.to_dict())


# ---------------------------
# Status transitions
# ---------------------------
def _transition_view(request, target_id, apply, not_found):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return None, JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return None, error

    try:
        return apply(target_id, actor, data), None
    except Request.DoesNotExist:
        return None, JsonResponse({"error": not_found}, status=404)
    except SupplyError as e:
        return None, _error(e)


def _single_action(action):
    def apply(request_id, actor, data):
        if action == lifecycle.REJECT:
            return services.reject(request_id, actor, reason=data.get("reason"))
        return services.transition(request_id, action, actor)

    @csrf_exempt
    @require_http_methods(["POST"])
    def view(request, request_id):
        req, error = _transition_view(request, request_id, apply, "Request not found")
        if error:
            return error
        return JsonResponse({"message": f"Request {req.status}", "request": req.to_dict()})

    view.__name__ = f"{action}_request"
    return view


def _group_action(action):
    def apply(group_id, actor, data):
        if action == lifecycle.REJECT:
            return services.reject_group(group_id, actor, reason=data.get("reason"))
        return services.group_transition(group_id, action, actor)

    @csrf_exempt
    @require_http_methods(["POST"])
    def view(request, group_id):
        siblings, error = _transition_view(request, group_id, apply, "Request group not found")
        if error:
            return error
        return JsonResponse({
            "message": f"{len(siblings)} requests {siblings[0].status}",
            "group_id": group_id,
            "requests": [r.to_dict() for r in siblings],
        })

    view.__name__ = f"{action}_group"
    return view


approve_request = _single_action(lifecycle.APPROVE)
reject_request = _single_action(lifecycle.REJECT)
fulfill_request = _single_action(lifecycle.FULFILL)
cancel_request = _single_action(lifecycle.CANCEL)

approve_group = _group_action(lifecycle.APPROVE)
reject_group = _group_action(lifecycle.REJECT)
fulfill_group = _group_action(lifecycle.FULFILL)


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_request(request, request_id):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    try:
        services.delete_request(request_id, actor)
    except Request.DoesNotExist:
        return JsonResponse({"error": "Request not found"}, status=404)
    except SupplyError as e:
        return _error(e)

    return JsonResponse({"message": "Request deleted successfully"})


# ---------------------------
# Notifications
# ---------------------------
@require_http_methods(["GET"])
def list_notifications(request):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error
    unread_only = request.GET.get("unread") in ("1", "true")
    items = notifications.for_user(actor.id, unread_only=unread_only)
    return JsonResponse([n.to_dict() for n in items], safe=False)


@require_http_methods(["GET"])
def unread_count(request):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error
    return JsonResponse({"unread": notifications.unread_count(actor.id)})


@csrf_exempt
@require_http_methods(["POST"])
def mark_notification_read(request, notification_id):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    if not notifications.mark_read(notification_id, actor.id):
        return JsonResponse({"error": "Notification not found"}, status=404)
    return JsonResponse({"message": "Notification marked as read"})


@csrf_exempt
@require_http_methods(["POST"])
def mark_all_notifications_read(request):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    updated = notifications.mark_all_read(actor.id)
    return JsonResponse({"message": f"{updated} notifications marked as read"})


# ---------------------------
# New item requests
# ---------------------------
@csrf_exempt
@require_http_methods(["POST"])
def submit_new_item_request(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    try:
        new_item = services.submit_new_item_request(actor, data.get("item_name"), data.get("reason", ""))
    except SupplyError as e:
        return _error(e)

    return JsonResponse({"message": "New item request submitted", "new_item_request": new_item.to_dict()}, status=201)


@require_http_methods(["GET"])
def list_new_item_requests(request):
    actor, error = _actor_or_error(request.GET.get("actor_id"))
    if error:
        return error

    qs = NewItemRequest.objects.all()
    if not actor.is_admin:
        qs = qs.filter(user=actor)
    status = request.GET.get("status")
    if status:
        qs = qs.filter(status=status)
    return JsonResponse([n.to_dict() for n in qs], safe=False)


@csrf_exempt
@require_http_methods(["POST"])
def decide_new_item_request(request, new_item_id):
    """Body: {"actor_id": 1, "approved": true}"""
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    if not isinstance(data.get("approved"), bool):
        return JsonResponse({"error": "approved must be true or false"}, status=400)

    try:
        new_item = services.decide_new_item_request(new_item_id, actor, data["approved"])
    except NewItemRequest.DoesNotExist:
        return JsonResponse({"error": "New item request not found"}, status=404)
    except SupplyError as e:
        return _error(e)

    return JsonResponse({"message": f"New item request {new_item.status}", "new_item_request": new_item.to_dict()})


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_new_item_request(request, new_item_id):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    actor, error = _actor_or_error(data.get("actor_id"))
    if error:
        return error

    try:
        services.delete_new_item_request(new_item_id, actor)
    except NewItemRequest.DoesNotExist:
        return JsonResponse({"error": "New item request not found"}, status=404)
    except SupplyError as e:
        return _error(e)

    return JsonResponse({"message": "New item request deleted successfully"})
