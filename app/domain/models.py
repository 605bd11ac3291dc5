from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GUEST_MARKER = "guest"


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    GUEST = "guest"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Delivery(str, Enum):
    PICKUP = "pickup"
    DELIVER = "deliver"


class CamelModel(BaseModel):
    # JSON uses camelCase (plantDate, readyForSale, ...), Python uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Batch(CamelModel):
    id: int
    name: str
    plant_date: date
    quantity: int
    stock: int
    ready_for_sale: bool = False


class Order(CamelModel):
    id: str
    user_id: str
    batch_id: int
    quantity: int
    phone: str
    address: str
    delivery: Delivery
    payment: str
    status: OrderStatus = OrderStatus.PENDING
    order_date: datetime
    total_price: int
    last_updated: datetime


class User(CamelModel):
    username: str
    password_hash: str = Field(exclude=True)
    role: Role = Role.CUSTOMER


class Actor(CamelModel):
    """Whoever is making the current request."""
    username: Optional[str] = None
    role: Role = Role.GUEST

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_authenticated(self) -> bool:
        return self.role != Role.GUEST and self.username is not None

    @classmethod
    def guest(cls) -> "Actor":
        return cls(username=None, role=Role.GUEST)


class OrderFilterKind(str, Enum):
    ALL = "all"
    BY_USER = "by_user"
    BY_PHONE = "by_phone"
    BY_ID = "by_id"


class OrderFilter(BaseModel):
    kind: OrderFilterKind
    value: Optional[str] = None
    # Extra exact-match narrowing applied on top of ``kind``
    phone: Optional[str] = None
    order_id: Optional[str] = None


class DisplayEntry(CamelModel):
    batch_id: int
    name: str
    plant_date: date
    age_days: int
    stock: int
    ready_for_sale: bool
    orderable: bool
    progress_percent: Optional[float] = None
    days_to_ready: Optional[int] = None


class OrderSummary(CamelModel):
    total_orders: int
    total_spent: int
    pending_orders: int
