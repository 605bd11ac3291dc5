import copy
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from app.domain.errors import DuplicateOrderId, UsernameTaken, ValidationError
from app.domain.inventory import next_batch_id, validate_batch
from app.domain.models import Batch, Order, OrderFilter, OrderFilterKind, OrderStatus, User
from app.interfaces.IInventoryRepository import IInventoryRepository


class InMemoryInventoryRepository(IInventoryRepository):
    """
    Process-local gateway. One re-entrant lock guards all state, so every
    method is atomic; ``transaction()`` holds the lock for the whole block and
    restores a snapshot if the block raises.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._batches: Dict[int, Batch] = {}
        self._orders: Dict[str, Order] = {}
        self._users: Dict[str, User] = {}
        self._batch_id_high_water = 0

    @contextmanager
    def transaction(self) -> Iterator["InMemoryInventoryRepository"]:
        with self._lock:
            snapshot = (
                copy.deepcopy(self._batches),
                copy.deepcopy(self._orders),
                copy.deepcopy(self._users),
                self._batch_id_high_water,
            )
            try:
                yield self
            except BaseException:
                self._batches, self._orders, self._users, self._batch_id_high_water = snapshot
                raise

    def ping(self) -> bool:
        return True

    # --- Batches ---

    def get_batch(self, batch_id: int) -> Optional[Batch]:
        with self._lock:
            batch = self._batches.get(batch_id)
            return batch.model_copy() if batch else None

    def list_batches(self) -> List[Batch]:
        with self._lock:
            return [self._batches[i].model_copy() for i in sorted(self._batches)]

    def replace_all_batches(self, batches: List[Batch]) -> int:
        ids = [b.id for b in batches]
        if len(ids) != len(set(ids)):
            raise ValidationError("Batch ids must be unique")
        for batch in batches:
            validate_batch(batch)

        with self._lock:
            self._batches = {b.id: b.model_copy() for b in batches}
            self._batch_id_high_water = max([self._batch_id_high_water, *ids])
        return len(batches)

    def create_batch(self, name: str, plant_date: date, quantity: int) -> Batch:
        with self._lock:
            new_id = next_batch_id(self._batches, self._batch_id_high_water)
            batch = Batch(
                id=new_id,
                name=name,
                plant_date=plant_date,
                quantity=quantity,
                stock=quantity,
                ready_for_sale=False,
            )
            self._batches[new_id] = batch
            self._batch_id_high_water = new_id
            return batch.model_copy()

    def set_ready_for_sale(self, batch_id: int, ready: bool) -> Optional[Batch]:
        with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None:
                return None
            batch.ready_for_sale = ready
            return batch.model_copy()

    def set_stock(self, batch_id: int, stock: int) -> Optional[Batch]:
        with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None:
                return None
            if not 0 <= stock <= batch.quantity:
                raise ValidationError(
                    f"Stock for batch {batch_id} must be between 0 and {batch.quantity}"
                )
            batch.stock = stock
            return batch.model_copy()

    def delete_batch(self, batch_id: int) -> Optional[Batch]:
        with self._lock:
            batch = self._batches.pop(batch_id, None)
            return batch.model_copy() if batch else None

    def decrement_if_sufficient(self, batch_id: int, amount: int) -> bool:
        if amount <= 0:
            raise ValidationError("Amount to take from stock must be positive")
        with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None or batch.stock < amount:
                return False
            batch.stock -= amount
            return True

    def restock(self, batch_id: int, amount: int) -> bool:
        if amount <= 0:
            raise ValidationError("Amount to return to stock must be positive")
        with self._lock:
            batch = self._batches.get(batch_id)
            if batch is None:
                return False
            batch.stock = min(batch.stock + amount, batch.quantity)
            return True

    # --- Orders ---

    def insert_order(self, order: Order) -> Order:
        with self._lock:
            if order.id in self._orders:
                raise DuplicateOrderId(f"Order id {order.id} already exists")
            self._orders[order.id] = order.model_copy()
            return order

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return order.model_copy() if order else None

    def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        def wanted(order: Order) -> bool:
            if order_filter.kind == OrderFilterKind.BY_USER and order.user_id != order_filter.value:
                return False
            if order_filter.kind == OrderFilterKind.BY_PHONE and order.phone != order_filter.value:
                return False
            if order_filter.kind == OrderFilterKind.BY_ID and order.id != order_filter.value:
                return False
            if order_filter.phone and order.phone != order_filter.phone:
                return False
            if order_filter.order_id and order.id != order_filter.order_id:
                return False
            return True

        with self._lock:
            matches = [o.model_copy() for o in self._orders.values() if wanted(o)]
        return sorted(matches, key=lambda o: (o.order_date, o.id), reverse=True)

    def update_order_status(
        self, order_id: str, status: OrderStatus, last_updated: datetime
    ) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            order.status = status
            order.last_updated = last_updated
            return order.model_copy()

    # --- Users ---

    def get_user(self, username: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(username)
            return user.model_copy() if user else None

    def insert_user(self, user: User) -> User:
        with self._lock:
            if user.username in self._users:
                raise UsernameTaken(user.username)
            self._users[user.username] = user.model_copy()
            return user
