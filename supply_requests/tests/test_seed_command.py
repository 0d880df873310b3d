import pytest
from django.core.management import call_command

from inventory.models import InventoryItem
from usage_limits.models import ItemLimitation
from users.models import User

pytestmark = pytest.mark.django_db


def test_seed_twice_creates_once():
    call_command("seed_supplies")
    call_command("seed_supplies")

    assert User.objects.filter(role=User.ROLE_ADMIN).count() == 1
    assert InventoryItem.objects.count() == 5
    assert ItemLimitation.objects.count() == 2
    assert User.objects.get(employee_id="EMP001").check_password("changeme")
