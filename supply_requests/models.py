from django.core.validators import MinValueValidator
from django.db import models

from inventory.models import InventoryItem
from users.models import User
from . import lifecycle


class Request(models.Model):

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    employee = models.ForeignKey(User, on_delete=models.CASCADE, related_name='supply_requests')
    employee_name = models.CharField(max_length=200)
    department = models.CharField(max_length=100, blank=True, default="")

    # item is kept as a name too so history survives item deletion
    item = models.ForeignKey(InventoryItem, on_delete=models.SET_NULL, null=True, related_name='requests')
    item_name = models.CharField(max_length=100)

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    notes = models.TextField(blank=True, default="")
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=lifecycle.STATUS_CHOICES, default=lifecycle.PENDING)
    group_id = models.CharField(max_length=36, blank=True, null=True, db_index=True)

    admin_notes = models.TextField(blank=True, default="")
    approved_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_requests'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    fulfilled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"#{self.id} {self.item_name} x{self.quantity} - {self.status}"

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "department": self.department,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "notes": self.notes,
            "priority": self.priority,
            "status": self.status,
            "group_id": self.group_id,
            "admin_notes": self.admin_notes,
            "approved_by": self.approved_by_id,
            "created_at": self.created_at,
            "approved_at": self.approved_at,
            "rejected_at": self.rejected_at,
            "fulfilled_at": self.fulfilled_at,
        }


class Notification(models.Model):

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=40, choices=lifecycle.NotificationType.CHOICES)
    request = models.ForeignKey(Request, on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    group_id = models.CharField(max_length=36, blank=True, null=True)
    message = models.CharField(max_length=200)
    message_params = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.type} -> {self.user_id}"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "request_id": self.request_id,
            "group_id": self.group_id,
            "message": self.message,
            "message_params": self.message_params,
            "read": self.read,
            "created_at": self.created_at,
        }


class NewItemRequest(models.Model):
    """An employee's ask for an item that is not in the catalog yet."""

    STATUS_CHOICES = [
        (lifecycle.PENDING, 'Pending'),
        (lifecycle.APPROVED, 'Approved'),
        (lifecycle.REJECTED, 'Rejected'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='new_item_requests')
    employee_name = models.CharField(max_length=200)
    item_name = models.CharField(max_length=100)
    reason = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=lifecycle.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.item_name} ({self.status})"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "employee_name": self.employee_name,
            "item_name": self.item_name,
            "reason": self.reason,
            "status": self.status,
            "created_at": self.created_at,
            "decided_at": self.decided_at,
        }
