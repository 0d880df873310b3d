import pytest

from inventory import services
from inventory.models import Category, InventoryItem
from supply_requests.exceptions import InsufficientStock, RequestValidationError

pytestmark = pytest.mark.django_db


class TestAddItem:

    def test_available_defaults_to_total_stock(self):
        item = services.add_item({"name": "Stapler", "total_stock": 12})
        assert item.available == 12

    def test_available_above_total_is_refused(self):
        with pytest.raises(RequestValidationError):
            services.add_item({"name": "Stapler", "total_stock": 2, "available": 5})

    def test_name_required(self):
        with pytest.raises(RequestValidationError):
            services.add_item({"total_stock": 2})


class TestAdjustStock:

    def test_increase_moves_both_counts(self, item):
        item = services.adjust_stock(item.id, 5, services.INCREASE)

        assert (item.available, item.total_stock) == (55, 55)
        assert item.last_restocked is not None

    def test_decrease_moves_both_counts(self, item):
        item = services.adjust_stock(item.id, 5, services.DECREASE)
        assert (item.available, item.total_stock) == (45, 45)

    def test_never_below_zero(self, make_item):
        item = make_item("Toner", available=2)

        with pytest.raises(InsufficientStock):
            services.adjust_stock(item.id, 3, services.DECREASE)

        item.refresh_from_db()
        assert item.available == 2

    @pytest.mark.parametrize("quantity,direction", [(0, "increase"), (2, "sideways")])
    def test_bad_input(self, item, quantity, direction):
        with pytest.raises(RequestValidationError):
            services.adjust_stock(item.id, quantity, direction)


class TestLowStock:

    def test_threshold_is_inclusive(self, make_item):
        make_item("Toner", available=2, low_stock_threshold=2)
        make_item("Pens", available=3, low_stock_threshold=2)

        assert [i.name for i in services.low_stock_items()] == ["Toner"]
        assert InventoryItem.objects.get(name="Toner").is_low_stock


class TestCategories:

    def test_rename_updates_items(self, make_item):
        category, _ = services.add_category("Paper")
        make_item("A4", category="Paper")

        services.rename_category(category, "Stationery")

        assert InventoryItem.objects.get(name="A4").category == "Stationery"
        assert Category.objects.get(id=category.id).name == "Stationery"

    def test_add_is_idempotent(self):
        services.add_category("Desk")
        _, created = services.add_category("Desk")
        assert created is False
