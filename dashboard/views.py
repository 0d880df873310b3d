from datetime import datetime, time, timedelta

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_http_methods

from inventory.models import InventoryItem
from inventory.services import low_stock_items
from supply_requests import lifecycle
from supply_requests.exceptions import NotPermitted
from supply_requests.models import Request
from usage_limits.services import usage_for_month
from users.models import User
from users.permissions import get_actor, require_admin

LATEST_PENDING = 5
TOP_ITEMS = 10


def _admin_or_error(actor_id, action):
    try:
        require_admin(get_actor(actor_id), action)
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)
    except NotPermitted as e:
        return JsonResponse({"error": str(e)}, status=403)
    return None


def _status_counts(qs):
    counts = dict(qs.values("status").annotate(count=Count("id")).values_list("status", "count"))
    return {status: counts.get(status, 0) for status, _ in lifecycle.STATUS_CHOICES}


@require_http_methods(["GET"])
def admin_overview(request):
    error = _admin_or_error(request.GET.get("actor_id"), "view the dashboard")
    if error:
        return error

    requests_qs = Request.objects.all()
    pending = requests_qs.filter(status=lifecycle.PENDING).order_by("-created_at", "-id")[:LATEST_PENDING]
    low_stock = low_stock_items()

    return JsonResponse({
        "requests": {
            "total": requests_qs.count(),
            "by_status": _status_counts(requests_qs),
        },
        "inventory": {
            "total_items": InventoryItem.objects.count(),
            "total_units": InventoryItem.objects.aggregate(total=Coalesce(Sum("available"), 0))["total"],
            "low_stock_count": low_stock.count(),
            "low_stock": [item.to_dict() for item in low_stock],
        },
        "latest_pending": [r.to_dict() for r in pending],
    }, status=200)


def _day_bounds(value, end=False):
    day = parse_date(value)
    if day is None:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")
    if end:
        day += timedelta(days=1)
    return timezone.make_aware(datetime.combine(day, time.min))


@require_http_methods(["GET"])
def reports(request):
    """
    Request statistics for admins.

    Query params: start_date, end_date (inclusive, YYYY-MM-DD), department,
    top (number of items in the top list, default 10).
    """
    error = _admin_or_error(request.GET.get("actor_id"), "view reports")
    if error:
        return error

    qs = Request.objects.all()
    try:
        if request.GET.get("start_date"):
            qs = qs.filter(created_at__gte=_day_bounds(request.GET["start_date"]))
        if request.GET.get("end_date"):
            qs = qs.filter(created_at__lt=_day_bounds(request.GET["end_date"], end=True))
        top = int(request.GET.get("top", TOP_ITEMS))
    except ValueError as e:
        return JsonResponse({"error": str(e)}, status=400)
    if top < 1:
        return JsonResponse({"error": "top must be at least 1"}, status=400)

    department = request.GET.get("department")
    if department and department != "all":
        qs = qs.filter(department=department)

    by_status = _status_counts(qs)

    per_department = list(
        qs.values("department")
        .annotate(
            total=Count("id"),
            approved=Count("id", filter=Q(status__in=[lifecycle.APPROVED, lifecycle.FULFILLED])),
            quantity=Coalesce(Sum("quantity"), 0),
        )
        .order_by("-total", "department")
    )

    top_items = list(
        qs.values("item_name")
        .annotate(quantity=Coalesce(Sum("quantity"), 0), requests=Count("id"))
        .order_by("-quantity", "item_name")[:top]
    )

    per_category = list(
        qs.exclude(item__isnull=True)
        .values("item__category")
        .annotate(total=Count("id"), quantity=Coalesce(Sum("quantity"), 0))
        .order_by("-total", "item__category")
    )

    return JsonResponse({
        "total": qs.count(),
        "approved": by_status[lifecycle.APPROVED] + by_status[lifecycle.FULFILLED],
        "rejected": by_status[lifecycle.REJECTED],
        "pending": by_status[lifecycle.PENDING],
        "cancelled": by_status[lifecycle.CANCELLED],
        "by_status": by_status,
        "per_department": per_department,
        "top_items": top_items,
        "per_category": [
            {"category": row["item__category"], "total": row["total"], "quantity": row["quantity"]}
            for row in per_category
        ],
    }, status=200)


@require_http_methods(["GET"])
def employee_dashboard_summary(request, employee_id):
    try:
        actor = get_actor(request.GET.get("actor_id"))
    except User.DoesNotExist:
        return JsonResponse({"error": "Actor not found"}, status=404)
    if not actor.is_admin and actor.id != employee_id:
        return JsonResponse({"error": "You can only view your own summary."}, status=403)

    try:
        employee = User.objects.get(id=employee_id)
    except User.DoesNotExist:
        return JsonResponse({"error": "Employee not found"}, status=404)

    requests_qs = Request.objects.filter(employee_id=employee_id)
    fulfilled_quantity = requests_qs.filter(status=lifecycle.FULFILLED).aggregate(
        total=Coalesce(Sum("quantity"), 0)
    )["total"]

    return JsonResponse({
        "employee": {
            "id": employee.id,
            "name": employee.full_name,
            "email": employee.email,
            "department": employee.department,
            "position": employee.position,
        },
        "requests": {
            "total_created": requests_qs.count(),
            "by_status": _status_counts(requests_qs),
            "fulfilled_quantity": fulfilled_quantity,
        },
        "usage_this_month": [u.to_dict() for u in usage_for_month(employee.id)],
    }, status=200)
