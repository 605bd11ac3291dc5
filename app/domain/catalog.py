"""
Catalog presentation rules: what a customer sees for each batch and
whether it can be ordered.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Union

from app.domain.errors import ValidationError
from app.domain.inventory import compute_age_days
from app.domain.models import Batch, DisplayEntry

DEFAULT_MATURATION_DAYS = 14

STATUS_FILTERS = ("all", "available", "growing", "ready")
SORT_KEYS = ("newest", "oldest", "stock-high", "stock-low")

Now = Union[date, datetime]


def display_entry(batch: Batch, now: Now, maturation_days: int = DEFAULT_MATURATION_DAYS) -> DisplayEntry:
    age_days = compute_age_days(batch.plant_date, now)
    entry = DisplayEntry(
        batch_id=batch.id,
        name=batch.name,
        plant_date=batch.plant_date,
        age_days=age_days,
        stock=batch.stock,
        ready_for_sale=batch.ready_for_sale,
        orderable=batch.ready_for_sale,
    )
    if not batch.ready_for_sale:
        grown = max(0, min(age_days, maturation_days))
        entry.progress_percent = grown / maturation_days * 100
        entry.days_to_ready = max(0, maturation_days - age_days)
    return entry


def visible_catalog(
    batches: Iterable[Batch], now: Now, maturation_days: int = DEFAULT_MATURATION_DAYS
) -> List[DisplayEntry]:
    """Every batch with stock left, ready or still growing."""
    return [display_entry(b, now, maturation_days) for b in batches if b.stock > 0]


def orderable_catalog(
    batches: Iterable[Batch], now: Now, maturation_days: int = DEFAULT_MATURATION_DAYS
) -> List[DisplayEntry]:
    return [e for e in visible_catalog(batches, now, maturation_days) if e.orderable]


def matches_search(batch: Batch, search_term: Optional[str]) -> bool:
    if not search_term:
        return True
    term = search_term.lower()
    return (
        term in str(batch.id).lower()
        or term in batch.plant_date.isoformat().lower()
        or term in str(batch.quantity)
    )


def matches_status(batch: Batch, status_filter: str, now: Now, maturation_days: int) -> bool:
    if status_filter == "all":
        return True
    if status_filter == "available":
        return batch.stock > 0
    if status_filter == "growing":
        age_days = compute_age_days(batch.plant_date, now)
        return batch.stock > 0 and not batch.ready_for_sale and age_days < maturation_days
    if status_filter == "ready":
        return batch.ready_for_sale and batch.stock > 0
    raise ValidationError(
        f"Unknown status filter '{status_filter}'. Allowed: {', '.join(STATUS_FILTERS)}"
    )


def sort_batches(batches: Sequence[Batch], sort_key: Optional[str]) -> List[Batch]:
    # sorted() is stable, including with reverse=True, so ties keep input order
    if sort_key == "newest":
        return sorted(batches, key=lambda b: b.plant_date, reverse=True)
    if sort_key == "oldest":
        return sorted(batches, key=lambda b: b.plant_date)
    if sort_key == "stock-high":
        return sorted(batches, key=lambda b: b.stock, reverse=True)
    if sort_key == "stock-low":
        return sorted(batches, key=lambda b: b.stock)
    return list(batches)


def filter_and_sort(
    batches: Iterable[Batch],
    search_term: Optional[str] = None,
    status_filter: Optional[str] = "all",
    sort_key: Optional[str] = None,
    now: Optional[Now] = None,
    maturation_days: int = DEFAULT_MATURATION_DAYS,
) -> List[DisplayEntry]:
    now = now or date.today()
    status_filter = (status_filter or "all").lower()
    selected = [
        b for b in batches
        if matches_search(b, search_term) and matches_status(b, status_filter, now, maturation_days)
    ]
    return visible_catalog(sort_batches(selected, sort_key), now, maturation_days)
