import pytest

from users.models import User
from users.permissions import get_actor

pytestmark = pytest.mark.django_db


class TestGetActor:

    def test_loads_by_numeric_string(self, employee):
        assert get_actor(str(employee.id)) == employee

    @pytest.mark.parametrize("actor_id", [None, "", "abc", "1.5", ["1"]])
    def test_malformed_ids_are_unknown_actors(self, actor_id):
        with pytest.raises(User.DoesNotExist):
            get_actor(actor_id)
