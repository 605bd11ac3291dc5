import pytest

from app.domain.access import order_filter_for, require_admin
from app.domain.errors import PermissionDenied
from app.domain.models import OrderFilterKind

from conftest import ADMIN, CUSTOMER, GUEST


def test_require_admin():
    require_admin(ADMIN)
    with pytest.raises(PermissionDenied):
        require_admin(CUSTOMER)
    with pytest.raises(PermissionDenied):
        require_admin(GUEST)


def test_admin_sees_all_orders():
    order_filter = order_filter_for(ADMIN)
    assert order_filter.kind == OrderFilterKind.ALL


def test_admin_may_narrow_by_phone():
    order_filter = order_filter_for(ADMIN, phone="0812345")
    assert order_filter.kind == OrderFilterKind.ALL
    assert order_filter.phone == "0812345"


def test_customer_scoped_to_own_username():
    order_filter = order_filter_for(CUSTOMER, phone="0812345")
    assert order_filter.kind == OrderFilterKind.BY_USER
    assert order_filter.value == "sari"
    assert order_filter.phone == "0812345"


def test_guest_lookup_by_phone_or_order_id():
    by_phone = order_filter_for(GUEST, phone="0812345")
    assert (by_phone.kind, by_phone.value) == (OrderFilterKind.BY_PHONE, "0812345")

    by_id = order_filter_for(GUEST, order_id="17607000000001234")
    assert (by_id.kind, by_id.value) == (OrderFilterKind.BY_ID, "17607000000001234")


def test_guest_without_lookup_key_gets_nothing():
    assert order_filter_for(GUEST) is None
    assert order_filter_for(GUEST, phone="", order_id="") is None
