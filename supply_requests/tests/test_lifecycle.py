"""Pure rule tests: no database."""
from types import SimpleNamespace

import pytest

from supply_requests import lifecycle
from supply_requests.exceptions import InvalidTransition, NotPermitted


def _next(status, action, admin=True, owner=False):
    return lifecycle.next_status(status, action, actor_is_admin=admin, actor_is_owner=owner, request_id=7)


class TestNextStatus:

    @pytest.mark.parametrize("status,action,expected", [
        (lifecycle.PENDING, lifecycle.APPROVE, lifecycle.APPROVED),
        (lifecycle.PENDING, lifecycle.REJECT, lifecycle.REJECTED),
        (lifecycle.APPROVED, lifecycle.FULFILL, lifecycle.FULFILLED),
    ])
    def test_admin_transitions(self, status, action, expected):
        assert _next(status, action) == expected

    def test_owner_can_cancel_pending(self):
        assert _next(lifecycle.PENDING, lifecycle.CANCEL, admin=False, owner=True) == lifecycle.CANCELLED

    def test_fulfill_requires_approval_first(self):
        with pytest.raises(InvalidTransition) as exc:
            _next(lifecycle.PENDING, lifecycle.FULFILL)
        assert exc.value.status == lifecycle.PENDING
        assert "#7" in str(exc.value)

    @pytest.mark.parametrize("status", sorted(lifecycle.TERMINAL_STATUSES))
    @pytest.mark.parametrize("action", [lifecycle.APPROVE, lifecycle.REJECT, lifecycle.FULFILL])
    def test_terminal_statuses_never_move(self, status, action):
        with pytest.raises(InvalidTransition):
            _next(status, action)

    def test_cannot_cancel_approved(self):
        with pytest.raises(InvalidTransition):
            _next(lifecycle.APPROVED, lifecycle.CANCEL, admin=False, owner=True)

    def test_employee_cannot_approve(self):
        with pytest.raises(NotPermitted):
            _next(lifecycle.PENDING, lifecycle.APPROVE, admin=False, owner=True)

    def test_admin_cannot_cancel_someone_elses_request(self):
        with pytest.raises(NotPermitted):
            _next(lifecycle.PENDING, lifecycle.CANCEL, admin=True, owner=False)

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            _next(lifecycle.PENDING, "archive")


class TestNotifications:

    def test_single_and_grouped_types_differ(self):
        assert lifecycle.notification_for(lifecycle.APPROVE) == lifecycle.NotificationType.REQUEST_APPROVED
        assert (
            lifecycle.notification_for(lifecycle.APPROVE, grouped=True)
            == lifecycle.NotificationType.REQUEST_GROUP_APPROVED
        )

    def test_cancel_sends_nothing(self):
        assert lifecycle.notification_for(lifecycle.CANCEL) is None

    def test_every_type_has_a_message_key(self):
        for value, _ in lifecycle.NotificationType.CHOICES:
            assert lifecycle.MESSAGE_KEYS[value].startswith("notificationMessages.")


class TestGroupByGroupId:

    def test_splits_singles_and_groups_in_order(self):
        rows = [
            SimpleNamespace(id=1, group_id=None),
            SimpleNamespace(id=2, group_id="g2"),
            SimpleNamespace(id=3, group_id="g1"),
            SimpleNamespace(id=4, group_id="g2"),
        ]
        singles, groups = lifecycle.group_by_group_id(rows)

        assert [r.id for r in singles] == [1]
        assert list(groups) == ["g2", "g1"]
        assert [r.id for r in groups["g2"]] == [2, 4]
