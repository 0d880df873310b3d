"""
Request creation and status transitions.

Each operation takes the acting User explicitly. Transitions lock the
request rows (and, for fulfillment, the inventory rows) and run in one
transaction together with their side effects: usage recording on approve,
stock decrement on fulfill, and the requester's notification. Either all of
it is stored or none of it.
"""
import logging
from uuid import uuid4

from django.db import transaction
from django.utils import timezone

from inventory.models import InventoryItem
from inventory.services import issue_stock
from usage_limits.services import check_limit, record_usage, usage_key
from . import lifecycle
from .exceptions import (
    InsufficientStock,
    InvalidTransition,
    LimitExceeded,
    NotPermitted,
    RequestValidationError,
)
from .models import NewItemRequest, Request
from .notifications import notify, notify_admins

logger = logging.getLogger(__name__)

PRIORITIES = dict(Request.PRIORITY_CHOICES)


def _quantity(value):
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise RequestValidationError("quantity must be an integer")
    if value < 1:
        raise RequestValidationError("quantity must be at least 1")
    return value


# ---------------------------
# Creation
# ---------------------------
def _check_line(actor, item, quantity, in_batch, check_limits):
    if in_batch + quantity > item.available:
        raise InsufficientStock(item.name, item.available - in_batch, quantity)
    if check_limits:
        check = check_limit(actor.id, item.id, actor.position, quantity, in_batch=in_batch)
        if not check.allowed:
            raise LimitExceeded(item.name, check)


def _build_request(actor, item, quantity, notes, priority, group_id=None):
    return Request(
        employee=actor,
        employee_name=actor.full_name,
        department=actor.department,
        item=item,
        item_name=item.name,
        quantity=quantity,
        notes=notes or "",
        priority=priority,
        group_id=group_id,
    )


def create_request(actor, item_id, quantity, notes="", priority="medium", check_limits=True):
    """Create one pending request after checking stock and the monthly limit."""
    quantity = _quantity(quantity)
    if priority not in PRIORITIES:
        raise RequestValidationError(f"priority must be one of {list(PRIORITIES)}")

    with transaction.atomic():
        item = InventoryItem.objects.get(id=item_id)
        _check_line(actor, item, quantity, 0, check_limits)
        req = _build_request(actor, item, quantity, notes, priority)
        req.save()
        notify_admins(
            lifecycle.NotificationType.NEW_REQUEST,
            request=req,
            params={"id": req.id, "userName": req.employee_name, "itemName": req.item_name, "quantity": quantity},
        )

    logger.info("Request %s created by %s: %s x%s", req.id, actor.id, item.name, quantity)
    return req


def create_bulk_request(actor, items, notes="", priority="medium", check_limits=True):
    """
    Create one request per line, all sharing a new group_id.

    `items` is a list of {"item_id", "quantity"}. Lines for the same item
    count against its stock and monthly limit together. Nothing is created
    unless every line passes.
    """
    if not items:
        raise RequestValidationError("items must be a non-empty list")
    if priority not in PRIORITIES:
        raise RequestValidationError(f"priority must be one of {list(PRIORITIES)}")

    lines = []
    for i, line in enumerate(items, start=1):
        if not isinstance(line, dict) or not line.get("item_id"):
            raise RequestValidationError(f"Line {i}: item_id is required")
        try:
            item_id = int(line["item_id"])
        except (TypeError, ValueError):
            raise RequestValidationError(f"Line {i}: item_id must be an integer")
        lines.append((item_id, _quantity(line.get("quantity"))))

    group_id = str(uuid4())
    with transaction.atomic():
        stock = InventoryItem.objects.in_bulk({item_id for item_id, _ in lines})
        claimed = {}
        created = []
        for item_id, quantity in lines:
            item = stock.get(item_id)
            if item is None:
                raise InventoryItem.DoesNotExist(f"Inventory item {item_id} not found")
            _check_line(actor, item, quantity, claimed.get(item.id, 0), check_limits)
            claimed[item.id] = claimed.get(item.id, 0) + quantity
            created.append(_build_request(actor, item, quantity, notes, priority, group_id))

        for req in created:
            req.save()

        notify_admins(
            lifecycle.NotificationType.NEW_REQUEST,
            group_id=group_id,
            params={"count": len(created), "userName": actor.full_name},
        )

    logger.info("Bulk request %s created by %s with %s line(s)", group_id, actor.id, len(created))
    return group_id, created


# ---------------------------
# Transitions
# ---------------------------
def _check_transition(req, action, actor):
    target = lifecycle.next_status(
        req.status,
        action,
        actor_is_admin=actor.is_admin,
        actor_is_owner=req.employee_id == actor.id,
        request_id=req.id,
    )
    if action in (lifecycle.APPROVE, lifecycle.FULFILL) and req.item_id is None:
        raise RequestValidationError(f"Request #{req.id} refers to an item that no longer exists.")
    return target


def _commit(req, action, target, actor, reason, now):
    req.status = target
    timestamp_field = lifecycle.TIMESTAMP_FIELDS.get(action)
    if timestamp_field:
        setattr(req, timestamp_field, now)

    if action == lifecycle.APPROVE:
        req.approved_by = actor
        record_usage(req.employee, req.item, req.quantity, item_name=req.item_name, key=usage_key(req.id))
    elif action == lifecycle.REJECT:
        req.admin_notes = reason or ""
    elif action == lifecycle.FULFILL:
        issue_stock(req.item_id, req.quantity)

    req.save()


@transaction.atomic
def transition(request_id, action, actor, reason=None):
    req = Request.objects.select_for_update().select_related("employee").get(id=request_id)
    try:
        target = _check_transition(req, action, actor)
    except (InvalidTransition, NotPermitted) as e:
        logger.warning("Refused %s of request %s by %s: %s", action, request_id, actor.id, e)
        raise

    now = timezone.now()
    _commit(req, action, target, actor, reason, now)

    notification_type = lifecycle.notification_for(action)
    if notification_type:
        params = {"id": req.id, "itemName": req.item_name, "quantity": req.quantity}
        if reason:
            params["reason"] = reason
        notify(req.employee, notification_type, request=req, params=params)

    logger.info("Request %s %s by %s -> %s", req.id, action, actor.id, req.status)
    return req


def approve(request_id, actor):
    return transition(request_id, lifecycle.APPROVE, actor)


def reject(request_id, actor, reason=None):
    return transition(request_id, lifecycle.REJECT, actor, reason=reason)


def fulfill(request_id, actor):
    return transition(request_id, lifecycle.FULFILL, actor)


def cancel(request_id, actor):
    return transition(request_id, lifecycle.CANCEL, actor)


@transaction.atomic
def group_transition(group_id, action, actor, reason=None):
    """
    Apply `action` to every request sharing `group_id` as one unit.

    All siblings are checked before anything is written; one grouped
    notification carrying the sibling count goes to the requester.
    """
    if action == lifecycle.CANCEL:
        raise RequestValidationError("Grouped requests are cancelled one by one.")

    siblings = list(
        Request.objects.select_for_update().select_related("employee").filter(group_id=group_id).order_by("id")
    )
    if not siblings:
        raise Request.DoesNotExist(f"No requests in group {group_id}")

    try:
        targets = [_check_transition(req, action, actor) for req in siblings]
    except (InvalidTransition, NotPermitted) as e:
        logger.warning("Refused group %s of %s by %s: %s", action, group_id, actor.id, e)
        raise

    now = timezone.now()
    for req, target in zip(siblings, targets):
        _commit(req, action, target, actor, reason, now)

    params = {"count": len(siblings)}
    if reason:
        params["reason"] = reason
    notify(
        siblings[0].employee,
        lifecycle.notification_for(action, grouped=True),
        group_id=group_id,
        params=params,
    )

    logger.info("Group %s %s by %s (%s requests)", group_id, action, actor.id, len(siblings))
    return siblings


def approve_group(group_id, actor):
    return group_transition(group_id, lifecycle.APPROVE, actor)


def reject_group(group_id, actor, reason=None):
    return group_transition(group_id, lifecycle.REJECT, actor, reason=reason)


def fulfill_group(group_id, actor):
    return group_transition(group_id, lifecycle.FULFILL, actor)


def delete_request(request_id, actor):
    if not actor.is_admin:
        raise NotPermitted("Only administrators can delete requests.")
    deleted, _ = Request.objects.filter(id=request_id).delete()
    if not deleted:
        raise Request.DoesNotExist(f"Request {request_id} not found")
    logger.info("Request %s deleted by %s", request_id, actor.id)


# ---------------------------
# Queries
# ---------------------------
def requests_for_user(user_id):
    return Request.objects.filter(employee_id=user_id).order_by("-created_at", "-id")


def all_requests(status=None, department=None):
    qs = Request.objects.all().order_by("-created_at", "-id")
    if status:
        qs = qs.filter(status=status)
    if department:
        qs = qs.filter(department=department)
    return qs


def grouped_view(requests):
    """Serialize requests for display with bulk siblings nested under their group."""
    singles, groups = lifecycle.group_by_group_id(requests)
    return {
        "singles": [r.to_dict() for r in singles],
        "groups": [
            {
                "group_id": group_id,
                "count": len(members),
                "total_quantity": sum(r.quantity for r in members),
                "statuses": sorted({r.status for r in members}),
                "requests": [r.to_dict() for r in members],
            }
            for group_id, members in groups.items()
        ],
    }


# ---------------------------
# New item requests
# ---------------------------
def submit_new_item_request(actor, item_name, reason=""):
    item_name = (item_name or "").strip()
    if not item_name:
        raise RequestValidationError("item_name is required")

    with transaction.atomic():
        new_item = NewItemRequest.objects.create(
            user=actor,
            employee_name=actor.full_name,
            item_name=item_name,
            reason=reason or "",
        )
        notify_admins(
            lifecycle.NotificationType.NEW_ITEM_REQUEST,
            params={"itemName": item_name, "userName": actor.full_name or "User"},
        )
    return new_item


@transaction.atomic
def decide_new_item_request(new_item_id, actor, approved):
    if not actor.is_admin:
        raise NotPermitted("Only administrators can review new item requests.")

    new_item = NewItemRequest.objects.select_for_update().select_related("user").get(id=new_item_id)
    action = lifecycle.APPROVE if approved else lifecycle.REJECT
    if new_item.status != lifecycle.PENDING:
        raise InvalidTransition(new_item.id, new_item.status, action)

    new_item.status = lifecycle.APPROVED if approved else lifecycle.REJECTED
    new_item.decided_at = timezone.now()
    new_item.save(update_fields=["status", "decided_at"])

    notify(
        new_item.user,
        lifecycle.NotificationType.NEW_ITEM_REQUEST_APPROVED if approved
        else lifecycle.NotificationType.NEW_ITEM_REQUEST_REJECTED,
        params={"itemName": new_item.item_name},
    )
    return new_item


def delete_new_item_request(new_item_id, actor):
    if not actor.is_admin:
        raise NotPermitted("Only administrators can delete new item requests.")
    deleted, _ = NewItemRequest.objects.filter(id=new_item_id).delete()
    if not deleted:
        raise NewItemRequest.DoesNotExist(f"New item request {new_item_id} not found")
