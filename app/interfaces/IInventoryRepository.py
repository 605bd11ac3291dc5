from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import List, Optional

from app.domain.models import Batch, Order, OrderFilter, OrderStatus, User


class IInventoryRepository(ABC):
    """
    Persistence gateway for batches, orders and users.

    Every method commits on its own unless it is called on the repository
    yielded by ``transaction()``, in which case the whole block commits or
    rolls back together.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager["IInventoryRepository"]:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass

    # --- Batches ---

    @abstractmethod
    def get_batch(self, batch_id: int) -> Optional[Batch]:
        pass

    @abstractmethod
    def list_batches(self) -> List[Batch]:
        pass

    @abstractmethod
    def replace_all_batches(self, batches: List[Batch]) -> int:
        pass

    @abstractmethod
    def create_batch(self, name: str, plant_date: date, quantity: int) -> Batch:
        """Insert a batch with stock == quantity and a never-used id."""
        pass

    @abstractmethod
    def set_ready_for_sale(self, batch_id: int, ready: bool) -> Optional[Batch]:
        pass

    @abstractmethod
    def set_stock(self, batch_id: int, stock: int) -> Optional[Batch]:
        pass

    @abstractmethod
    def delete_batch(self, batch_id: int) -> Optional[Batch]:
        pass

    @abstractmethod
    def decrement_if_sufficient(self, batch_id: int, amount: int) -> bool:
        """Atomically take ``amount`` from stock; False when stock is short or the batch is gone."""
        pass

    @abstractmethod
    def restock(self, batch_id: int, amount: int) -> bool:
        """Give ``amount`` back to stock, never above the batch quantity."""
        pass

    # --- Orders ---

    @abstractmethod
    def insert_order(self, order: Order) -> Order:
        pass

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        """Matching orders, newest first."""
        pass

    @abstractmethod
    def update_order_status(
        self, order_id: str, status: OrderStatus, last_updated: datetime
    ) -> Optional[Order]:
        pass

    # --- Users ---

    @abstractmethod
    def get_user(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    def insert_user(self, user: User) -> User:
        pass
