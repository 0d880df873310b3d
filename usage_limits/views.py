import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from inventory.models import InventoryItem
from supply_requests.exceptions import NotPermitted, RequestValidationError
from users.models import User
from users.permissions import get_actor, require_admin
from .models import ItemLimitation
from . import services


def _admin_or_error(actor_id, action):
    try:
        require_admin(get_actor(actor_id), action)
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)
    except NotPermitted as e:
        return JsonResponse({"error": str(e)}, status=403)
    return None


@require_http_methods(["GET"])
def list_limitations(request):
    """Optional filters: ?position=Analyst, ?item_id=3"""
    limitations = ItemLimitation.objects.all()
    position = request.GET.get("position")
    if position:
        limitations = limitations.filter(position=position)
    item_id = request.GET.get("item_id")
    if item_id:
        limitations = limitations.filter(item_id=item_id)
    return JsonResponse([limitation.to_dict() for limitation in limitations], safe=False)


@csrf_exempt
@require_http_methods(["POST"])
def add_limitation(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data.get("actor_id"), "manage item limitations")
    if error:
        return error

    try:
        limitation, created = services.set_limitation(
            data.get("item_id"), data.get("position"), data.get("monthly_limit")
        )
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({
        "message": "Limitation saved",
        "limitation": limitation.to_dict(),
    }, status=201 if created else 200)


@csrf_exempt
@require_http_methods(["PUT"])
def update_limitation(request, limitation_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data.get("actor_id"), "manage item limitations")
    if error:
        return error

    try:
        limitation = ItemLimitation.objects.get(id=limitation_id)
    except ItemLimitation.DoesNotExist:
        return JsonResponse({"error": "Limitation not found"}, status=404)

    try:
        services.update_limitation(limitation, data)
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({"message": "Limitation updated", "limitation": limitation.to_dict()})


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_limitation(request, limitation_id):
    try:
        data = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data.get("actor_id"), "manage item limitations")
    if error:
        return error

    deleted, _ = ItemLimitation.objects.filter(id=limitation_id).delete()
    if not deleted:
        return JsonResponse({"error": "Limitation not found"}, status=404)
    return JsonResponse({"message": "Limitation deleted"})


@require_http_methods(["GET"])
def check(request):
    """
    GET /limits/check/?actor_id=5&item_id=3&quantity=2

    Answers for the actor's own position. Unrestricted items return only
    {"allowed": true}.
    """
    try:
        actor = get_actor(request.GET.get("actor_id"))
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)

    try:
        item_id = int(request.GET.get("item_id"))
        quantity = int(request.GET.get("quantity", 1))
    except (TypeError, ValueError):
        return JsonResponse({"error": "item_id and quantity must be integers"}, status=400)
    if quantity < 1:
        return JsonResponse({"error": "quantity must be at least 1"}, status=400)

    result = services.check_limit(actor.id, item_id, actor.position, quantity)
    if not result.restricted:
        return JsonResponse({"allowed": True})
    return JsonResponse(result.to_dict())


@require_http_methods(["GET"])
def my_usage(request):
    try:
        actor = get_actor(request.GET.get("actor_id"))
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)
    return JsonResponse([u.to_dict() for u in services.usage_for_month(actor.id)], safe=False)
