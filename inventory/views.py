import json

from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from supply_requests.exceptions import InsufficientStock, NotPermitted, RequestValidationError
from users.models import User
from users.permissions import get_actor, require_admin
from .models import Category, InventoryItem
from . import services


def _admin_or_error(data, action):
    try:
        require_admin(get_actor(data.get("actor_id")), action)
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)
    except NotPermitted as e:
        return JsonResponse({"error": str(e)}, status=403)
    return None


@csrf_exempt
@require_http_methods(["POST"])
def add_inventory(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "add inventory items")
    if error:
        return error

    try:
        item = services.add_item(data)
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({
        "message": "Inventory item added successfully",
        "item": item.to_dict(),
    }, status=201)


@csrf_exempt
@require_http_methods(["PUT"])
def update_inventory(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "edit inventory items")
    if error:
        return error

    try:
        item = InventoryItem.objects.get(id=data.get("id"))
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)

    try:
        services.update_item(item, data)
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({"message": "Inventory item updated successfully", "item": item.to_dict()})


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_inventory(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "delete inventory items")
    if error:
        return error

    try:
        item = InventoryItem.objects.get(id=data.get("id"))
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)

    item.delete()
    return JsonResponse({"message": "Inventory item deleted successfully"})


@require_http_methods(["GET"])
def list_inventory(request):
    if request.GET.get("low_stock") in ("1", "true"):
        items = services.low_stock_items()
    else:
        items = InventoryItem.objects.all()

    category = request.GET.get("category")
    if category and category != "all":
        items = items.filter(category=category)

    search = (request.GET.get("search") or "").strip()
    if search:
        items = items.filter(Q(name__icontains=search) | Q(description__icontains=search))

    return JsonResponse([item.to_dict() for item in items.order_by("name")], safe=False)


@require_http_methods(["GET"])
def inventory_detail(request, item_id):
    try:
        item = InventoryItem.objects.get(id=item_id)
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)
    return JsonResponse(item.to_dict())


@csrf_exempt
@require_http_methods(["POST"])
def adjust_stock(request, item_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "adjust stock")
    if error:
        return error

    try:
        item = services.adjust_stock(item_id, data.get("quantity"), data.get("direction"))
    except InventoryItem.DoesNotExist:
        return JsonResponse({"error": "Inventory item not found"}, status=404)
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except InsufficientStock as e:
        return JsonResponse({"error": str(e)}, status=409)

    return JsonResponse({
        "message": "Stock updated",
        "item": item.to_dict(),
    })


@require_http_methods(["GET"])
def list_categories(request):
    return JsonResponse(list(Category.objects.all().values("id", "name")), safe=False)


@csrf_exempt
@require_http_methods(["POST"])
def add_category(request):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "add categories")
    if error:
        return error

    try:
        category, created = services.add_category(data.get("name"))
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({"id": category.id, "name": category.name, "created": created},
                        status=201 if created else 200)


@csrf_exempt
@require_http_methods(["PUT"])
def edit_category(request, category_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "edit categories")
    if error:
        return error

    try:
        category = Category.objects.get(id=category_id)
    except Category.DoesNotExist:
        return JsonResponse({"error": "Category not found"}, status=404)

    try:
        services.rename_category(category, data.get("name"))
    except RequestValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse({"id": category.id, "name": category.name})


@csrf_exempt
@require_http_methods(["DELETE"])
def remove_category(request, category_id):
    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    error = _admin_or_error(data, "remove categories")
    if error:
        return error

    deleted, _ = Category.objects.filter(id=category_id).delete()
    if not deleted:
        return JsonResponse({"error": "Category not found"}, status=404)
    return JsonResponse({"message": "Category removed"})
