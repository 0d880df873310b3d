import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from inventory.services import low_stock_items
from .lifecycle import NotificationType
from .models import Notification
from .notifications import notify_admins

logger = logging.getLogger(__name__)

SUBJECTS = dict(NotificationType.CHOICES)


def render_body(notification):
    params = notification.message_params or {}
    lines = [SUBJECTS.get(notification.type, notification.type) + "."]
    if notification.request_id:
        lines.append(f"Request #{notification.request_id}")
    for key, value in sorted(params.items()):
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


@shared_task
def send_notification_email(notification_id):
    try:
        notification = Notification.objects.select_related("user").get(id=notification_id)
    except Notification.DoesNotExist:
        logger.warning("Notification %s vanished before delivery", notification_id)
        return "missing"

    email = notification.user.email
    if not email:
        return "no-email"

    try:
        send_mail(
            SUBJECTS.get(notification.type, "Supply desk notification"),
            render_body(notification),
            getattr(settings, "DEFAULT_FROM_EMAIL", None),
            [email],
            fail_silently=False,
        )
    except Exception:
        logger.exception("Failed to mail notification %s to %s", notification_id, email)
        raise
    return "sent"


@shared_task
def alert_low_stock():
    if not getattr(settings, "SUPPLY_LOW_STOCK_ALERTS", True):
        return "Low stock alerts disabled"

    items = list(low_stock_items())
    if not items:
        return "No low stock items"

    notify_admins(
        NotificationType.LOW_STOCK,
        params={
            "count": len(items),
            "items": [{"id": i.id, "name": i.name, "available": i.available} for i in items],
        },
    )
    logger.info("Low stock alert sent for %s item(s)", len(items))
    return f"Alerted on {len(items)} low stock items"
