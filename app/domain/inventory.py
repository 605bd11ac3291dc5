"""
Inventory and order lifecycle rules.

Pure functions only: callers pass in batches, orders and the current time.
"""

import secrets
from datetime import date, datetime
from typing import Dict, FrozenSet, Iterable, Union

from app.domain.errors import InvalidStatusTransition, ValidationError
from app.domain.models import Batch, Order, OrderStatus, OrderSummary

# Allowed moves when strict transitions are enforced
STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Largest id, quantity or stock an Integer column holds
MAX_STORED_INT = 2**31 - 1


def compute_age_days(plant_date: date, now: Union[date, datetime]) -> int:
    """Whole days since planting. Day 0 is the planting day; future dates go negative."""
    today = now.date() if isinstance(now, datetime) else now
    return (today - plant_date).days


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status '{value}'. Allowed: {allowed}")


def is_terminal(status: OrderStatus) -> bool:
    return not STATUS_TRANSITIONS[status]


def check_transition(current: OrderStatus, requested: OrderStatus, strict: bool = True) -> None:
    """Raise InvalidStatusTransition if ``current -> requested`` is not allowed."""
    if not strict:
        return
    if requested not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, requested.value)


def order_total(quantity: int, unit_price: int) -> int:
    return quantity * unit_price


def generate_order_id(now: datetime) -> str:
    # Millisecond timestamp keeps ids roughly time-ordered; the random tail
    # separates orders created in the same millisecond.
    return f"{int(now.timestamp() * 1000)}{secrets.randbelow(10_000):04d}"


def validate_batch(batch: Batch) -> None:
    if batch.id <= 0:
        raise ValidationError(f"Batch id must be positive, got {batch.id}")
    if max(batch.id, batch.quantity, batch.stock) > MAX_STORED_INT:
        raise ValidationError(f"Batch {batch.id} numbers must not exceed {MAX_STORED_INT}")
    if not batch.name or not batch.name.strip():
        raise ValidationError(f"Batch {batch.id} needs a name")
    if batch.quantity < 0:
        raise ValidationError(f"Batch {batch.id} quantity cannot be negative")
    if not 0 <= batch.stock <= batch.quantity:
        raise ValidationError(
            f"Batch {batch.id} stock must be between 0 and {batch.quantity}, got {batch.stock}"
        )


def next_batch_id(existing_ids: Iterable[int], high_water_mark: int = 0) -> int:
    return max([high_water_mark, *existing_ids], default=0) + 1


def summarize_orders(orders: Iterable[Order]) -> OrderSummary:
    orders = list(orders)
    return OrderSummary(
        total_orders=len(orders),
        total_spent=sum(o.total_price for o in orders),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
    )
