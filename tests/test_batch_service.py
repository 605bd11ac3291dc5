from datetime import date

import pytest

from app.domain.errors import BatchNotFound, PermissionDenied, ValidationError

from conftest import ADMIN, CUSTOMER, make_batch


def test_catalog_hides_sold_out_batches(batch_service):
    entries = batch_service.catalog()
    assert [e.batch_id for e in entries] == [1, 2]
    assert entries[1].age_days == 7
    assert entries[1].orderable is False


def test_catalog_filters(batch_service):
    assert [e.batch_id for e in batch_service.catalog(status_filter="growing")] == [2]
    assert [e.batch_id for e in batch_service.catalog(sort_key="stock-low")] == [2, 1]


def test_writes_require_admin(batch_service):
    with pytest.raises(PermissionDenied):
        batch_service.replace_all([make_batch(1)], CUSTOMER)
    with pytest.raises(PermissionDenied):
        batch_service.create_batch("Bibit Tomat", date(2026, 10, 1), 10, CUSTOMER)
    with pytest.raises(PermissionDenied):
        batch_service.delete_batch(1, CUSTOMER)


def test_create_batch_defaults_name(batch_service):
    batch = batch_service.create_batch("  ", date(2026, 10, 15), 30, ADMIN)
    assert batch.id == 4
    assert batch.name == "Bibit Cabai"
    assert batch.stock == 30
    assert batch.ready_for_sale is False


@pytest.mark.parametrize("quantity", [0, -5, True, "ten", 2**31])
def test_create_batch_rejects_bad_quantity(batch_service, quantity):
    with pytest.raises(ValidationError):
        batch_service.create_batch("Bibit Tomat", date(2026, 10, 1), quantity, ADMIN)


def test_set_ready_toggles_or_sets(batch_service):
    assert batch_service.set_ready(2, ADMIN).ready_for_sale is True
    assert batch_service.set_ready(2, ADMIN).ready_for_sale is False
    assert batch_service.set_ready(2, ADMIN, ready=False).ready_for_sale is False
    with pytest.raises(BatchNotFound):
        batch_service.set_ready(99, ADMIN)


def test_set_stock_bounds(batch_service):
    assert batch_service.set_stock(2, 8, ADMIN).stock == 8
    with pytest.raises(ValidationError):
        batch_service.set_stock(2, 9, ADMIN)
    with pytest.raises(BatchNotFound):
        batch_service.set_stock(99, 1, ADMIN)


def test_delete_then_missing(batch_service):
    assert batch_service.delete_batch(3, ADMIN).id == 3
    with pytest.raises(BatchNotFound):
        batch_service.delete_batch(3, ADMIN)
    with pytest.raises(BatchNotFound):
        batch_service.get_batch(3)
