from django.core.management.base import BaseCommand
from django.db import transaction

from inventory.models import Category, InventoryItem
from usage_limits.models import ItemLimitation
from users.models import Department, User

DEPARTMENTS = ["Finance", "Engineering", "Operations"]

CATEGORIES = ["Writing", "Paper", "Desk"]

ITEMS = [
    # name, category, stock, low stock threshold
    ("Ballpoint pen", "Writing", 200, 20),
    ("Notebook A5", "Paper", 80, 10),
    ("Printer paper (ream)", "Paper", 40, 5),
    ("Stapler", "Desk", 15, 3),
    ("Sticky notes", "Paper", 60, 10),
]

LIMITS = [
    # item name, position, monthly limit
    ("Ballpoint pen", "Analyst", 10),
    ("Notebook A5", "Analyst", 2),
]


class Command(BaseCommand):
    help = "Create sample departments, users, inventory and limits. Safe to run twice."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="changeme", help="Password for the seeded users")

    @transaction.atomic
    def handle(self, *args, **options):
        for name in DEPARTMENTS:
            Department.objects.get_or_create(name=name)
        for name in CATEGORIES:
            Category.objects.get_or_create(name=name)

        users = [
            ("ADM001", "Ada", "Admin", "admin@example.com", "Operations", "Office Manager", User.ROLE_ADMIN),
            ("EMP001", "Eli", "Employee", "employee@example.com", "Finance", "Analyst", User.ROLE_EMPLOYEE),
        ]
        for employee_id, name, surname, email, department, position, role in users:
            user, created = User.objects.get_or_create(
                employee_id=employee_id,
                defaults={
                    "name": name,
                    "surname": surname,
                    "email": email,
                    "department": department,
                    "position": position,
                    "role": role,
                },
            )
            if created:
                user.set_password(options["password"])
                user.save(update_fields=["password"])
                self.stdout.write(f"Created {role} {email}")

        for name, category, stock, threshold in ITEMS:
            InventoryItem.objects.get_or_create(
                name=name,
                defaults={
                    "category": category,
                    "total_stock": stock,
                    "available": stock,
                    "low_stock_threshold": threshold,
                },
            )

        for item_name, position, monthly_limit in LIMITS:
            item = InventoryItem.objects.get(name=item_name)
            ItemLimitation.objects.get_or_create(
                item=item,
                position=position,
                defaults={"item_name": item.name, "monthly_limit": monthly_limit},
            )

        self.stdout.write(self.style.SUCCESS("Seed data ready"))
