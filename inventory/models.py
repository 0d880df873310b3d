from django.core.exceptions import ValidationError
from django.db import models


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class InventoryItem(models.Model):

    name = models.CharField(max_length=100)
    # category is stored by name, as items are listed and filtered by it
    category = models.CharField(max_length=100, blank=True, default="")
    description = models.TextField(blank=True, default="")
    image = models.CharField(max_length=500, blank=True, default="")

    available = models.PositiveIntegerField(default=0)
    total_stock = models.PositiveIntegerField(default=0)
    reserved = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=0)

    last_restocked = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available__lte=models.F("total_stock")),
                name="inventory_available_lte_total_stock",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.available}/{self.total_stock})"

    @property
    def is_low_stock(self):
        return self.available <= self.low_stock_threshold

    def clean(self):
        if self.available > self.total_stock:
            raise ValidationError({"available": "available cannot exceed total_stock"})

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "image": self.image,
            "available": self.available,
            "total_stock": self.total_stock,
            "reserved": self.reserved,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "last_restocked": self.last_restocked,
        }
