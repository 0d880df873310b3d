import pytest
from django.core import mail

from supply_requests import lifecycle
from supply_requests.models import Notification
from supply_requests.notifications import notify
from supply_requests.tasks import alert_low_stock, send_notification_email

pytestmark = pytest.mark.django_db


class TestAlertLowStock:

    def test_notifies_admins_once_with_all_items(self, admin_user, make_item):
        make_item("Toner", available=1, low_stock_threshold=2)
        make_item("Pens", available=0, low_stock_threshold=5)
        make_item("Paper", available=40, low_stock_threshold=5)

        alert_low_stock()

        notification = Notification.objects.get(user=admin_user)
        assert notification.type == lifecycle.NotificationType.LOW_STOCK
        assert notification.message_params["count"] == 2
        assert {i["name"] for i in notification.message_params["items"]} == {"Toner", "Pens"}

    def test_quiet_when_stock_is_fine(self, admin_user, item):
        assert alert_low_stock() == "No low stock items"
        assert not Notification.objects.exists()

    def test_can_be_disabled(self, settings, admin_user, make_item):
        settings.SUPPLY_LOW_STOCK_ALERTS = False
        make_item("Toner", available=0)

        alert_low_stock()

        assert not Notification.objects.exists()


class TestNotificationEmail:

    def test_sends_mail(self, employee):
        notification = notify(employee, lifecycle.NotificationType.REQUEST_APPROVED, params={"itemName": "Paper"})

        assert send_notification_email(notification.id) == "sent"
        assert mail.outbox[0].to == [employee.email]
        assert "itemName: Paper" in mail.outbox[0].body

    def test_missing_notification(self):
        assert send_notification_email(12345) == "missing"

    def test_queued_after_commit_when_enabled(self, settings, django_capture_on_commit_callbacks, employee):
        settings.SUPPLY_NOTIFY_BY_EMAIL = True

        with django_capture_on_commit_callbacks(execute=True):
            notify(employee, lifecycle.NotificationType.REQUEST_FULFILLED)

        assert len(mail.outbox) == 1
