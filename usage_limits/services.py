"""
Monthly usage limits.

check_limit() answers whether a user may request more of an item this
month given the ItemLimitation for their position; record_usage() adds
approved quantities to the user's MonthlyUsage row for the month.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from inventory.models import InventoryItem
from supply_requests import lifecycle
from supply_requests.exceptions import RequestValidationError
from supply_requests.models import Request
from .models import ItemLimitation, MonthlyUsage, UsageEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimitCheck:
    allowed: bool
    current_usage: Optional[int] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None

    @property
    def restricted(self):
        return self.limit is not None

    def to_dict(self):
        return asdict(self)


UNRESTRICTED = LimitCheck(allowed=True)


def counted_statuses():
    return tuple(getattr(settings, "SUPPLY_LIMIT_COUNTED_STATUSES", lifecycle.COUNTED_STATUSES))


def current_period(now=None):
    """(year, month, first instant of the month) in the configured time zone."""
    local = timezone.localtime(now or timezone.now())
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return local.year, local.month, start


def usage_key(request_id, action=lifecycle.APPROVE):
    return f"request:{request_id}:{action}"


def find_limitation(item_id, position):
    if not position:
        return None
    return ItemLimitation.objects.filter(item_id=item_id, position=position).first()


def stored_usage(user_id, item_id, year, month):
    usage = MonthlyUsage.objects.filter(user_id=user_id, item_id=item_id, year=year, month=month).first()
    return usage.quantity if usage else 0


def live_request_quantity(user_id, item_id, since):
    return Request.objects.filter(
        employee_id=user_id,
        item_id=item_id,
        created_at__gte=since,
        status__in=counted_statuses(),
    ).aggregate(total=Coalesce(Sum("quantity"), 0))["total"]


def check_limit(user_id, item_id, position, requested_qty, *, in_batch=0, now=None):
    """
    Check `requested_qty` against the item's monthly limit for `position`.

    The counted quantity is the stored MonthlyUsage for this month plus
    every request of the user for the item created this month whose status
    is in SUPPLY_LIMIT_COUNTED_STATUSES. `in_batch` adds quantities that are
    about to be created alongside this one (bulk checkout).
    """
    limitation = find_limitation(item_id, position)
    if limitation is None:
        return UNRESTRICTED

    year, month, start = current_period(now)
    current = (
        stored_usage(user_id, item_id, year, month)
        + live_request_quantity(user_id, item_id, start)
        + in_batch
    )
    limit = limitation.monthly_limit

    if current + requested_qty > limit:
        logger.warning(
            "Monthly limit refused: user=%s item=%s position=%s current=%s requested=%s limit=%s",
            user_id, item_id, position, current, requested_qty, limit,
        )
        return LimitCheck(allowed=False, current_usage=current, limit=limit, remaining=max(0, limit - current))

    return LimitCheck(allowed=True, current_usage=current, limit=limit, remaining=limit - current)


@transaction.atomic
def record_usage(user, item, quantity, *, item_name=None, key=None, now=None):
    """
    Add `quantity` to the user's usage of `item` for the current month.

    With a `key` (see usage_key) the increment is recorded at most once;
    repeating the call returns the existing row unchanged.
    """
    if key and UsageEntry.objects.filter(key=key).exists():
        logger.info("Usage for %s already recorded", key)
        return MonthlyUsage.objects.get(entries__key=key)

    year, month, _ = current_period(now)
    usage, created = MonthlyUsage.objects.select_for_update().get_or_create(
        user=user,
        item=item,
        year=year,
        month=month,
        defaults={"item_name": item_name or item.name, "quantity": 0},
    )
    usage.quantity = F("quantity") + quantity
    usage.save(update_fields=["quantity", "updated_at"])
    usage.refresh_from_db()

    if key:
        UsageEntry.objects.create(usage=usage, key=key, quantity=quantity)

    logger.info("Usage recorded: user=%s item=%s %s-%02d +%s -> %s", user.id, item.id, year, month, quantity, usage.quantity)
    return usage


def usage_for_month(user_id, now=None):
    year, month, _ = current_period(now)
    return MonthlyUsage.objects.filter(user_id=user_id, year=year, month=month)


def _monthly_limit(value):
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise RequestValidationError("monthly_limit must be an integer")
    if value < 1:
        raise RequestValidationError("monthly_limit must be at least 1")
    return value


def set_limitation(item_id, position, monthly_limit):
    """Create the limitation for (item, position) or replace its monthly limit."""
    position = (position or "").strip()
    if not position:
        raise RequestValidationError("position is required")
    monthly_limit = _monthly_limit(monthly_limit)

    item = InventoryItem.objects.get(id=item_id)
    limitation, created = ItemLimitation.objects.update_or_create(
        item=item,
        position=position,
        defaults={"item_name": item.name, "monthly_limit": monthly_limit},
    )
    logger.info("Limitation %s/%s set to %s", item.name, position, monthly_limit)
    return limitation, created


def update_limitation(limitation, data):
    if "monthly_limit" in data:
        limitation.monthly_limit = _monthly_limit(data["monthly_limit"])
    if "position" in data:
        position = (data["position"] or "").strip()
        if not position:
            raise RequestValidationError("position is required")
        if ItemLimitation.objects.filter(item_id=limitation.item_id, position=position).exclude(id=limitation.id).exists():
            raise RequestValidationError(f"A limitation for {limitation.item_name} / {position} already exists")
        limitation.position = position
    limitation.save()
    return limitation
