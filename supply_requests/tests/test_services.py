import pytest

from supply_requests import lifecycle, services
from supply_requests.exceptions import (
    InsufficientStock,
    InvalidTransition,
    LimitExceeded,
    NotPermitted,
    RequestValidationError,
)
from supply_requests.models import NewItemRequest, Notification, Request
from usage_limits.models import MonthlyUsage

pytestmark = pytest.mark.django_db


class TestCreateRequest:

    def test_creates_pending_request_and_notifies_admins(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 2, notes="for the printer")

        assert req.status == lifecycle.PENDING
        assert req.employee_name == "Eli Employee"
        assert req.department == "Finance"
        assert req.item_name == item.name
        assert req.group_id is None
        assert Notification.objects.get(user=admin_user).type == lifecycle.NotificationType.NEW_REQUEST

    @pytest.mark.parametrize("quantity", [0, -3, "two", None])
    def test_rejects_bad_quantity(self, employee, item, quantity):
        with pytest.raises(RequestValidationError):
            services.create_request(employee, item.id, quantity)

    def test_rejects_unknown_priority(self, employee, item):
        with pytest.raises(RequestValidationError):
            services.create_request(employee, item.id, 1, priority="urgent")

    def test_more_than_available(self, employee, make_item):
        scarce = make_item("Toner", available=1)
        with pytest.raises(InsufficientStock):
            services.create_request(employee, scarce.id, 2)

    def test_monthly_limit_enforced(self, employee, item, limitation):
        services.create_request(employee, item.id, 8)

        with pytest.raises(LimitExceeded) as exc:
            services.create_request(employee, item.id, 3)

        assert exc.value.check.remaining == 2
        assert Request.objects.count() == 1


class TestBulkRequest:

    def test_lines_share_a_group_id(self, employee, admin_user, item, make_item):
        pens = make_item("Pens", available=20)

        group_id, created = services.create_bulk_request(
            employee, [{"item_id": item.id, "quantity": 2}, {"item_id": pens.id, "quantity": 5}]
        )

        assert len(created) == 2
        assert {r.group_id for r in created} == {group_id}
        notification = Notification.objects.get(user=admin_user)
        assert notification.group_id == group_id
        assert notification.message_params["count"] == 2

    def test_one_bad_line_creates_nothing(self, employee, item, make_item):
        scarce = make_item("Toner", available=1)

        with pytest.raises(InsufficientStock):
            services.create_bulk_request(
                employee, [{"item_id": item.id, "quantity": 2}, {"item_id": scarce.id, "quantity": 5}]
            )

        assert not Request.objects.exists()

    def test_repeated_item_lines_count_together(self, employee, item, limitation):
        with pytest.raises(LimitExceeded):
            services.create_bulk_request(
                employee, [{"item_id": item.id, "quantity": 6}, {"item_id": item.id, "quantity": 6}]
            )

    def test_empty_cart(self, employee):
        with pytest.raises(RequestValidationError):
            services.create_bulk_request(employee, [])


class TestTransitions:

    def test_approve_then_fulfill(self, employee, admin_user, make_item):
        x = make_item("X", available=5)
        req = services.create_request(employee, x.id, 2)

        req = services.approve(req.id, admin_user)
        assert req.status == lifecycle.APPROVED
        assert req.approved_at is not None
        assert req.approved_by == admin_user
        assert MonthlyUsage.objects.get(user=employee, item=x).quantity == 2

        req = services.fulfill(req.id, admin_user)
        assert req.status == lifecycle.FULFILLED
        assert req.fulfilled_at is not None
        x.refresh_from_db()
        assert x.available == 3

    def test_requester_is_notified(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 1)
        services.reject(req.id, admin_user, reason="Out of budget")

        notification = Notification.objects.get(user=employee)
        assert notification.type == lifecycle.NotificationType.REQUEST_REJECTED
        assert notification.message_params["reason"] == "Out of budget"
        req.refresh_from_db()
        assert req.admin_notes == "Out of budget"
        assert req.rejected_at is not None

    def test_fulfill_pending_is_refused(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 1)

        with pytest.raises(InvalidTransition):
            services.fulfill(req.id, admin_user)

        req.refresh_from_db()
        assert req.status == lifecycle.PENDING

    def test_approve_twice_records_usage_once(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 4)
        services.approve(req.id, admin_user)

        with pytest.raises(InvalidTransition):
            services.approve(req.id, admin_user)

        assert MonthlyUsage.objects.get(user=employee, item=item).quantity == 4

    def test_fulfill_without_stock_changes_nothing(self, employee, admin_user, make_item):
        x = make_item("X", available=5)
        req = services.create_request(employee, x.id, 4)
        services.approve(req.id, admin_user)
        x.available = 1
        x.save()

        with pytest.raises(InsufficientStock):
            services.fulfill(req.id, admin_user)

        req.refresh_from_db()
        x.refresh_from_db()
        assert req.status == lifecycle.APPROVED
        assert x.available == 1

    def test_employee_cannot_approve(self, employee, item):
        req = services.create_request(employee, item.id, 1)
        with pytest.raises(NotPermitted):
            services.approve(req.id, employee)

    def test_owner_cancels(self, employee, item):
        req = services.create_request(employee, item.id, 1)
        assert services.cancel(req.id, employee).status == lifecycle.CANCELLED

    def test_only_owner_cancels(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 1)
        with pytest.raises(NotPermitted):
            services.cancel(req.id, admin_user)

    def test_approving_request_for_deleted_item(self, employee, admin_user, item):
        req = services.create_request(employee, item.id, 1)
        item.delete()

        with pytest.raises(RequestValidationError):
            services.approve(req.id, admin_user)


class TestGroupTransitions:

    def _group(self, employee, item, make_item):
        pens = make_item("Pens", available=20)
        return services.create_bulk_request(
            employee, [{"item_id": item.id, "quantity": 2}, {"item_id": pens.id, "quantity": 3}]
        )

    def test_approve_group_moves_every_sibling(self, employee, admin_user, item, make_item):
        group_id, _ = self._group(employee, item, make_item)

        siblings = services.approve_group(group_id, admin_user)

        assert {r.status for r in siblings} == {lifecycle.APPROVED}
        assert MonthlyUsage.objects.filter(user=employee).count() == 2
        notification = Notification.objects.get(user=employee)
        assert notification.type == lifecycle.NotificationType.REQUEST_GROUP_APPROVED
        assert notification.message_params == {"count": 2}

    def test_one_sibling_in_wrong_status_blocks_the_group(self, employee, admin_user, item, make_item):
        group_id, created = self._group(employee, item, make_item)
        services.cancel(created[0].id, employee)

        with pytest.raises(InvalidTransition):
            services.approve_group(group_id, admin_user)

        assert Request.objects.get(id=created[1].id).status == lifecycle.PENDING
        assert not MonthlyUsage.objects.exists()

    def test_fulfill_group_rolls_back_on_short_stock(self, employee, admin_user, item, make_item):
        group_id, created = self._group(employee, item, make_item)
        services.approve_group(group_id, admin_user)
        pens = created[1].item
        pens.available = 1
        pens.save()

        with pytest.raises(InsufficientStock):
            services.fulfill_group(group_id, admin_user)

        item.refresh_from_db()
        assert item.available == 50
        assert set(Request.objects.values_list("status", flat=True)) == {lifecycle.APPROVED}

    def test_unknown_group(self, admin_user):
        with pytest.raises(Request.DoesNotExist):
            services.approve_group("nope", admin_user)


class TestGroupedView:

    def test_nests_siblings(self, employee, item, make_item):
        services.create_request(employee, item.id, 1)
        pens = make_item("Pens", available=20)
        group_id, _ = services.create_bulk_request(
            employee, [{"item_id": item.id, "quantity": 2}, {"item_id": pens.id, "quantity": 3}]
        )

        view = services.grouped_view(services.requests_for_user(employee.id))

        assert len(view["singles"]) == 1
        assert view["groups"][0]["group_id"] == group_id
        assert view["groups"][0]["total_quantity"] == 5


class TestNewItemRequests:

    def test_submit_and_approve(self, employee, admin_user):
        new_item = services.submit_new_item_request(employee, "Standing desk", "Back pain")
        assert Notification.objects.get(user=admin_user).type == lifecycle.NotificationType.NEW_ITEM_REQUEST

        new_item = services.decide_new_item_request(new_item.id, admin_user, approved=True)

        assert new_item.status == lifecycle.APPROVED
        assert Notification.objects.get(user=employee).type == lifecycle.NotificationType.NEW_ITEM_REQUEST_APPROVED

    def test_decided_once(self, employee, admin_user):
        new_item = services.submit_new_item_request(employee, "Standing desk")
        services.decide_new_item_request(new_item.id, admin_user, approved=False)

        with pytest.raises(InvalidTransition):
            services.decide_new_item_request(new_item.id, admin_user, approved=True)

    def test_employee_cannot_decide(self, employee):
        new_item = services.submit_new_item_request(employee, "Standing desk")
        with pytest.raises(NotPermitted):
            services.decide_new_item_request(new_item.id, employee, approved=True)

    def test_name_required(self, employee):
        with pytest.raises(RequestValidationError):
            services.submit_new_item_request(employee, "  ")
        assert not NewItemRequest.objects.exists()
