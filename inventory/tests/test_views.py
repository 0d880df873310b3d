import pytest

from inventory.models import InventoryItem

pytestmark = pytest.mark.django_db


class TestInventoryViews:

    def test_admin_adds_item(self, api, admin_user):
        response = api.post("/inventory/add/", {"actor_id": admin_user.id, "name": "Stapler", "total_stock": 4})

        assert response.status_code == 201
        assert response.json()["item"]["available"] == 4

    def test_employee_cannot_add_item(self, api, employee):
        response = api.post("/inventory/add/", {"actor_id": employee.id, "name": "Stapler", "total_stock": 4})

        assert response.status_code == 403
        assert not InventoryItem.objects.exists()

    def test_list_filters(self, api, make_item):
        make_item("Toner", available=1, low_stock_threshold=2, category="Printing")
        make_item("Pens", available=30, category="Writing")

        assert [i["name"] for i in api.get("/inventory/list/", {"low_stock": "1"}).json()] == ["Toner"]
        assert [i["name"] for i in api.get("/inventory/list/", {"category": "Writing"}).json()] == ["Pens"]
        assert [i["name"] for i in api.get("/inventory/list/", {"search": "ton"}).json()] == ["Toner"]

    def test_adjust_below_zero_is_a_conflict(self, api, admin_user, make_item):
        item = make_item("Toner", available=1)

        response = api.post(f"/inventory/{item.id}/adjust/", {
            "actor_id": admin_user.id, "quantity": 2, "direction": "decrease",
        })

        assert response.status_code == 409

    def test_detail_not_found(self, api):
        assert api.get("/inventory/999/").status_code == 404
