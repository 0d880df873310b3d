from django.core.validators import MinValueValidator
from django.db import models

from inventory.models import InventoryItem
from users.models import User


class ItemLimitation(models.Model):
    """Monthly quota of one item for everyone holding a given position."""

    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name="limitations")
    item_name = models.CharField(max_length=100)
    position = models.CharField(max_length=100)
    monthly_limit = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["item_name", "position"]
        constraints = [
            models.UniqueConstraint(fields=["item", "position"], name="unique_limitation_per_position"),
        ]

    def __str__(self):
        return f"{self.item_name} / {self.position}: {self.monthly_limit}"

    def to_dict(self):
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "position": self.position,
            "monthly_limit": self.monthly_limit,
        }


class MonthlyUsage(models.Model):
    """Approved quantity of one item for one user in one calendar month."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="monthly_usage")
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name="monthly_usage")
    item_name = models.CharField(max_length=100)
    year = models.PositiveIntegerField()
    month = models.PositiveSmallIntegerField()
    quantity = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-year", "-month", "item_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "item", "year", "month"],
                name="unique_monthly_usage",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} {self.item_name} {self.year}-{self.month:02d}: {self.quantity}"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "year": self.year,
            "month": self.month,
            "quantity": self.quantity,
        }


class UsageEntry(models.Model):
    """One recorded increment. The unique key makes recording idempotent."""

    usage = models.ForeignKey(MonthlyUsage, on_delete=models.CASCADE, related_name="entries")
    key = models.CharField(max_length=100, unique=True)
    quantity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.key}: +{self.quantity}"
