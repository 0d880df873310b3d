"""Errors raised by the request, inventory and usage services.

Each carries the HTTP status the views answer with.
"""


class SupplyError(Exception):
    """Base class. ``str(error)`` is safe to show to the user."""

    status_code = 400

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message

    def payload(self):
        return {"error": self.message}


class RequestValidationError(SupplyError):
    pass


class NotPermitted(SupplyError):
    status_code = 403


class InvalidTransition(SupplyError):
    status_code = 409

    def __init__(self, request_id, status, action):
        super().__init__(f"Cannot {action} request #{request_id}: its status is {status}.")
        self.request_id = request_id
        self.status = status
        self.action = action

    def payload(self):
        return {"error": self.message, "status": self.status}


class InsufficientStock(SupplyError):
    status_code = 409

    def __init__(self, item_name, available, requested):
        super().__init__(f"Only {available} unit(s) of {item_name} available, {requested} requested.")
        self.item_name = item_name
        self.available = available
        self.requested = requested

    def payload(self):
        return {"error": self.message, "available": self.available, "requested": self.requested}


class LimitExceeded(SupplyError):
    status_code = 409

    def __init__(self, item_name, check):
        super().__init__(
            f"Monthly limit for {item_name} reached: {check.current_usage} of {check.limit} "
            f"already counted this month, {check.remaining} remaining."
        )
        self.item_name = item_name
        self.check = check

    def payload(self):
        return {"error": self.message, "limit": self.check.to_dict()}
