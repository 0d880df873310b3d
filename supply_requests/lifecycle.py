"""
Request lifecycle rules.

Pure data and functions, no database access. services.py applies these
rules to Request rows; usage_limits reads COUNTED_STATUSES.

    pending -> approved -> fulfilled
    pending -> rejected
    pending -> cancelled      (requester only)
"""
from collections import OrderedDict

from .exceptions import InvalidTransition, NotPermitted

PENDING = 'pending'
APPROVED = 'approved'
REJECTED = 'rejected'
FULFILLED = 'fulfilled'
CANCELLED = 'cancelled'

STATUS_CHOICES = [
    (PENDING, 'Pending'),
    (APPROVED, 'Approved'),
    (REJECTED, 'Rejected'),
    (FULFILLED, 'Fulfilled'),
    (CANCELLED, 'Cancelled'),
]

TERMINAL_STATUSES = frozenset({REJECTED, FULFILLED, CANCELLED})

# Statuses whose quantities count toward a monthly quota while the request is live.
COUNTED_STATUSES = (PENDING, APPROVED, FULFILLED)

APPROVE = 'approve'
REJECT = 'reject'
FULFILL = 'fulfill'
CANCEL = 'cancel'

# action -> (required current status, resulting status)
TRANSITIONS = {
    APPROVE: (PENDING, APPROVED),
    REJECT: (PENDING, REJECTED),
    FULFILL: (APPROVED, FULFILLED),
    CANCEL: (PENDING, CANCELLED),
}

ADMIN_ACTIONS = frozenset({APPROVE, REJECT, FULFILL})

TIMESTAMP_FIELDS = {
    APPROVE: 'approved_at',
    REJECT: 'rejected_at',
    FULFILL: 'fulfilled_at',
}


class NotificationType:
    NEW_REQUEST = 'new_request'
    REQUEST_APPROVED = 'request_approved'
    REQUEST_REJECTED = 'request_rejected'
    REQUEST_FULFILLED = 'request_fulfilled'
    REQUEST_CANCELLED = 'request_cancelled'
    REQUEST_GROUP_APPROVED = 'request_group_approved'
    REQUEST_GROUP_REJECTED = 'request_group_rejected'
    REQUEST_GROUP_FULFILLED = 'request_group_fulfilled'
    NEW_ITEM_REQUEST = 'new_item_request'
    NEW_ITEM_REQUEST_APPROVED = 'new_item_request_approved'
    NEW_ITEM_REQUEST_REJECTED = 'new_item_request_rejected'
    LOW_STOCK = 'low_stock'

    CHOICES = [
        (NEW_REQUEST, 'New request'),
        (REQUEST_APPROVED, 'Request approved'),
        (REQUEST_REJECTED, 'Request rejected'),
        (REQUEST_FULFILLED, 'Request fulfilled'),
        (REQUEST_CANCELLED, 'Request cancelled'),
        (REQUEST_GROUP_APPROVED, 'Request group approved'),
        (REQUEST_GROUP_REJECTED, 'Request group rejected'),
        (REQUEST_GROUP_FULFILLED, 'Request group fulfilled'),
        (NEW_ITEM_REQUEST, 'New item request'),
        (NEW_ITEM_REQUEST_APPROVED, 'New item request approved'),
        (NEW_ITEM_REQUEST_REJECTED, 'New item request rejected'),
        (LOW_STOCK, 'Low stock'),
    ]


# (action, grouped) -> notification sent to the requester. Cancel sends none.
TRANSITION_NOTIFICATIONS = {
    (APPROVE, False): NotificationType.REQUEST_APPROVED,
    (REJECT, False): NotificationType.REQUEST_REJECTED,
    (FULFILL, False): NotificationType.REQUEST_FULFILLED,
    (APPROVE, True): NotificationType.REQUEST_GROUP_APPROVED,
    (REJECT, True): NotificationType.REQUEST_GROUP_REJECTED,
    (FULFILL, True): NotificationType.REQUEST_GROUP_FULFILLED,
}

MESSAGE_KEYS = {
    NotificationType.NEW_REQUEST: 'notificationMessages.newRequest',
    NotificationType.REQUEST_APPROVED: 'notificationMessages.requestApproved',
    NotificationType.REQUEST_REJECTED: 'notificationMessages.requestRejected',
    NotificationType.REQUEST_FULFILLED: 'notificationMessages.requestFulfilled',
    NotificationType.REQUEST_CANCELLED: 'notificationMessages.requestCancelled',
    NotificationType.REQUEST_GROUP_APPROVED: 'notificationMessages.requestGroupApproved',
    NotificationType.REQUEST_GROUP_REJECTED: 'notificationMessages.requestGroupRejected',
    NotificationType.REQUEST_GROUP_FULFILLED: 'notificationMessages.requestGroupFulfilled',
    NotificationType.NEW_ITEM_REQUEST: 'notificationMessages.newItemRequestSubmitted',
    NotificationType.NEW_ITEM_REQUEST_APPROVED: 'notificationMessages.newItemRequestApproved',
    NotificationType.NEW_ITEM_REQUEST_REJECTED: 'notificationMessages.newItemRequestRejected',
    NotificationType.LOW_STOCK: 'notificationMessages.lowStock',
}


def notification_for(action, grouped=False):
    """Notification type for a transition, or None when nothing is sent."""
    return TRANSITION_NOTIFICATIONS.get((action, grouped))


def next_status(status, action, *, actor_is_admin, actor_is_owner, request_id=None):
    """
    Return the status a request moves to when `action` is applied.

    Raises NotPermitted when the actor may not perform the action at all and
    InvalidTransition when the request is not in the required status.
    """
    if action not in TRANSITIONS:
        raise ValueError(f"Unknown action: {action}")

    if action in ADMIN_ACTIONS and not actor_is_admin:
        raise NotPermitted(f"Only administrators can {action} requests.")
    if action == CANCEL and not actor_is_owner:
        raise NotPermitted("Only the requester can cancel a request.")

    required, target = TRANSITIONS[action]
    if status != required:
        raise InvalidTransition(request_id, status, action)
    return target


def group_by_group_id(requests):
    """
    Split requests into singles and bulk groups for display.

    Returns (singles, groups) where groups maps group_id -> list of sibling
    requests, in first-seen order.
    """
    singles = []
    groups = OrderedDict()
    for req in requests:
        group_id = getattr(req, "group_id", None)
        if group_id:
            groups.setdefault(group_id, []).append(req)
        else:
            singles.append(req)
    return singles, groups
