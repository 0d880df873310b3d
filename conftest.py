"""
Shared pytest fixtures.

Runs against supplydesk.test_settings (in-memory SQLite, eager Celery,
locmem e-mail). Every view takes the acting user's id in the payload, so
the json client helpers below just add ``actor_id``.
"""
import json

import pytest

from inventory.models import InventoryItem
from usage_limits.models import ItemLimitation
from users.models import User


def _make_user(employee_id, email, role=User.ROLE_EMPLOYEE, **extra):
    user = User(employee_id=employee_id, email=email, role=role, **extra)
    user.set_password("secret123")
    user.save()
    return user


@pytest.fixture
def make_user(db):
    return _make_user


@pytest.fixture
def admin_user(db):
    return _make_user(
        "ADM001", "admin@example.com", role=User.ROLE_ADMIN,
        name="Ada", surname="Admin", department="Operations", position="Office Manager",
    )


@pytest.fixture
def employee(db):
    return _make_user(
        "EMP001", "employee@example.com",
        name="Eli", surname="Employee", department="Finance", position="Officer",
    )


@pytest.fixture
def make_item(db):
    def _make_item(name="Paper", available=10, total_stock=None, low_stock_threshold=2, category="Paper"):
        return InventoryItem.objects.create(
            name=name,
            category=category,
            available=available,
            total_stock=available if total_stock is None else total_stock,
            low_stock_threshold=low_stock_threshold,
        )
    return _make_item


@pytest.fixture
def item(make_item):
    return make_item("Paper", available=50)


@pytest.fixture
def limitation(item):
    return ItemLimitation.objects.create(item=item, item_name=item.name, position="Officer", monthly_limit=10)


class JsonClient:
    """Thin wrapper over the Django test client that speaks JSON."""

    def __init__(self, client):
        self.client = client

    def _send(self, method, path, data):
        return getattr(self.client, method)(
            path, data=json.dumps(data or {}), content_type="application/json"
        )

    def get(self, path, params=None):
        return self.client.get(path, params or {})

    def post(self, path, data=None):
        return self._send("post", path, data)

    def put(self, path, data=None):
        return self._send("put", path, data)

    def delete(self, path, data=None):
        return self._send("delete", path, data)

    def patch(self, path, data=None):
        return self._send("patch", path, data)


@pytest.fixture
def api(client):
    return JsonClient(client)
