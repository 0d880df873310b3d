"""
In-app notifications.

A Notification row is the unit of delivery; when SUPPLY_NOTIFY_BY_EMAIL is
on, a Celery task mails a copy after the surrounding transaction commits.
"""
import logging

from django.conf import settings
from django.db import transaction

from supplydesk.subscriptions import notify_changed
from users.models import User
from .lifecycle import MESSAGE_KEYS
from .models import Notification

logger = logging.getLogger(__name__)


def notify(user, notification_type, *, request=None, group_id=None, params=None):
    notification = Notification.objects.create(
        user=user,
        type=notification_type,
        request=request,
        group_id=group_id,
        message=MESSAGE_KEYS[notification_type],
        message_params=params or {},
    )
    if getattr(settings, "SUPPLY_NOTIFY_BY_EMAIL", False):
        from .tasks import send_notification_email

        transaction.on_commit(lambda: send_notification_email.delay(notification.id))
    return notification


def notify_admins(notification_type, *, request=None, group_id=None, params=None):
    admins = User.objects.filter(role=User.ROLE_ADMIN).order_by("id")
    return [
        notify(admin, notification_type, request=request, group_id=group_id, params=params)
        for admin in admins
    ]


def for_user(user_id, unread_only=False):
    qs = Notification.objects.filter(user_id=user_id)
    if unread_only:
        qs = qs.filter(read=False)
    return qs.order_by("-created_at", "-id")


def unread_count(user_id):
    return Notification.objects.filter(user_id=user_id, read=False).count()


def mark_read(notification_id, user_id):
    updated = Notification.objects.filter(id=notification_id, user_id=user_id).update(read=True)
    if updated:
        notify_changed(Notification)
    return updated


def mark_all_read(user_id):
    updated = Notification.objects.filter(user_id=user_id, read=False).update(read=True)
    if updated:
        notify_changed(Notification)
    return updated
