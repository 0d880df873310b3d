"""
Actor lookup and role checks.

Every view passes the acting user's id explicitly (``actor_id``) instead of
reading a session, and services receive the loaded User.
"""
from supply_requests.exceptions import NotPermitted

from .models import User


def get_actor(actor_id):
    """Load the acting user. Raises User.DoesNotExist for missing, malformed or unknown ids."""
    if not actor_id:
        raise User.DoesNotExist("actor_id is required")
    try:
        actor_id = int(actor_id)
    except (TypeError, ValueError):
        raise User.DoesNotExist(f"Invalid actor_id {actor_id!r}")
    return User.objects.get(id=actor_id)


def require_admin(actor, action="perform this action"):
    if not actor.is_admin:
        raise NotPermitted(f"Only administrators can {action}.")
    return actor
