"""Stock mutations. Callers needing atomicity across several writes wrap these in transaction.atomic."""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from supply_requests.exceptions import InsufficientStock, RequestValidationError
from supplydesk.subscriptions import notify_changed
from .models import Category, InventoryItem

logger = logging.getLogger(__name__)

INCREASE = "increase"
DECREASE = "decrease"


def _positive_int(value, field):
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise RequestValidationError(f"{field} must be an integer")
    if value <= 0:
        raise RequestValidationError(f"{field} must be greater than 0")
    return value


def _non_negative_int(value, field):
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise RequestValidationError(f"{field} must be an integer")
    if value < 0:
        raise RequestValidationError(f"{field} cannot be negative")
    return value


def add_item(data):
    name = (data.get("name") or "").strip()
    if not name:
        raise RequestValidationError("name is required")

    total_stock = _non_negative_int(data.get("total_stock", 0), "total_stock")
    available = _non_negative_int(data.get("available", total_stock), "available")
    if available > total_stock:
        raise RequestValidationError("available cannot exceed total_stock")

    item = InventoryItem.objects.create(
        name=name,
        category=data.get("category", ""),
        description=data.get("description", ""),
        image=data.get("image", ""),
        total_stock=total_stock,
        available=available,
        reserved=_non_negative_int(data.get("reserved", 0), "reserved"),
        low_stock_threshold=_non_negative_int(data.get("low_stock_threshold", 0), "low_stock_threshold"),
    )
    logger.info("Inventory item %s (%s) added", item.id, item.name)
    return item


def update_item(item, data):
    for field in ("name", "category", "description", "image"):
        if field in data:
            setattr(item, field, data[field])
    for field in ("available", "total_stock", "reserved", "low_stock_threshold"):
        if field in data:
            setattr(item, field, _non_negative_int(data[field], field))

    if item.available > item.total_stock:
        raise RequestValidationError("available cannot exceed total_stock")

    item.save()
    return item


@transaction.atomic
def adjust_stock(item_id, quantity, direction):
    """Add or remove units of an item. Both available and total stock move."""
    quantity = _positive_int(quantity, "quantity")
    if direction not in (INCREASE, DECREASE):
        raise RequestValidationError(f"direction must be '{INCREASE}' or '{DECREASE}'")

    item = InventoryItem.objects.select_for_update().get(id=item_id)

    if direction == INCREASE:
        item.available += quantity
        item.total_stock += quantity
        item.last_restocked = timezone.now()
    else:
        if item.available < quantity:
            raise InsufficientStock(item.name, item.available, quantity)
        item.available -= quantity
        item.total_stock -= quantity

    item.save()
    logger.info("Stock of item %s %sd by %s (available=%s)", item.id, direction, quantity, item.available)
    return item


def issue_stock(item_id, quantity):
    """
    Take `quantity` units out of `available` for a fulfilled request.

    Must run inside transaction.atomic; the row stays locked until commit.
    """
    item = InventoryItem.objects.select_for_update().get(id=item_id)
    if item.available < quantity:
        raise InsufficientStock(item.name, item.available, quantity)
    item.available -= quantity
    item.save(update_fields=["available", "updated_at"])
    return item


def low_stock_items():
    return InventoryItem.objects.filter(available__lte=F("low_stock_threshold")).order_by("name")


@transaction.atomic
def rename_category(category, new_name):
    new_name = (new_name or "").strip()
    if not new_name:
        raise RequestValidationError("name is required")

    old_name = category.name
    category.name = new_name
    category.save(update_fields=["name"])
    if InventoryItem.objects.filter(category=old_name).update(category=new_name):
        notify_changed(InventoryItem)
    return category


def add_category(name):
    name = (name or "").strip()
    if not name:
        raise RequestValidationError("name is required")
    return Category.objects.get_or_create(name=name)
