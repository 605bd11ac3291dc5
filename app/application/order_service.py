import logging
from datetime import datetime
from typing import Callable, List, Optional

import pytz

from app.core.config import Settings
from app.domain.access import order_filter_for, require_admin
from app.domain.errors import (
    BatchNotFound, DependencyUnavailable, DuplicateOrderId, InsufficientStock,
    OrderNotFound, ValidationError,
)
from app.domain.inventory import (
    check_transition, generate_order_id, order_total, parse_status, summarize_orders,
)
from app.domain.messages import new_order_message
from app.domain.models import (
    GUEST_MARKER, Actor, Delivery, Order, OrderStatus, OrderSummary,
)
from app.interfaces.IInventoryRepository import IInventoryRepository
from app.interfaces.INotifier import INotifier

logger = logging.getLogger(__name__)

# Fresh ids to try when the generated one already exists
ORDER_ID_ATTEMPTS = 3

REQUIRED_TEXT_FIELDS = ("phone", "address", "payment")


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def _positive_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"'{field}' must be a positive integer")
    # isdecimal, not isdigit: superscripts like "²" are digits int() rejects
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"'{field}' must be a positive integer")
    return value


def _delivery(value) -> Delivery:
    try:
        return Delivery(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(d.value for d in Delivery)
        raise ValidationError(f"'delivery' must be one of: {allowed}")


class OrderService:
    def __init__(
        self,
        order_repo: IInventoryRepository,
        notifier: INotifier,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.order_repo = order_repo
        self.notifier = notifier  # Injected NotificationService
        self.settings = settings
        self.clock = clock

    # ---------------------------------------------------------
    # PLACEMENT
    # ---------------------------------------------------------

    def place_order(
        self,
        batch_id,
        quantity,
        phone: Optional[str],
        address: Optional[str],
        delivery,
        payment: Optional[str],
        actor: Actor,
    ) -> Order:
        """
        Take ``quantity`` seedlings from a batch and record the order.

        The stock decrement and the order insert share one transaction; a
        failure in either leaves the batch untouched. The admin notification
        goes out after commit and can never fail the order.
        """
        contact = {"phone": phone, "address": address, "payment": payment}
        missing = [f for f in REQUIRED_TEXT_FIELDS if not contact[f] or not str(contact[f]).strip()]
        if delivery is None or not str(delivery).strip():
            missing.append("delivery")
        if batch_id in (None, ""):
            missing.append("batchId")
        if quantity in (None, ""):
            missing.append("quantity")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        batch_id = _positive_int(batch_id, "batchId")
        quantity = _positive_int(quantity, "quantity")
        delivery = _delivery(delivery)
        user_id = actor.username if actor.is_authenticated else GUEST_MARKER

        order = None
        for attempt in range(ORDER_ID_ATTEMPTS):
            now = self.clock()
            candidate = Order(
                id=generate_order_id(now),
                user_id=user_id,
                batch_id=batch_id,
                quantity=quantity,
                phone=str(phone).strip(),
                address=str(address).strip(),
                delivery=delivery,
                payment=str(payment).strip(),
                status=OrderStatus.PENDING,
                order_date=now,
                total_price=order_total(quantity, self.settings.UNIT_PRICE),
                last_updated=now,
            )
            try:
                with self.order_repo.transaction() as tx:
                    if not tx.decrement_if_sufficient(batch_id, quantity):
                        batch = tx.get_batch(batch_id)
                        if batch is None:
                            raise BatchNotFound(batch_id)
                        raise InsufficientStock(batch_id, quantity, batch.stock)
                    tx.insert_order(candidate)
                order = candidate
                break
            except DuplicateOrderId:
                logger.warning(f"⚠️ Order id {candidate.id} collided (attempt {attempt + 1}), retrying")

        if order is None:
            raise DependencyUnavailable("Could not allocate a unique order id")

        logger.info(
            f"🛒 Order {order.id} placed by {order.user_id}: "
            f"{order.quantity} from batch {order.batch_id}, total {order.total_price}"
        )
        self._notify_new_order(order, actor.is_authenticated)
        return order

    def _notify_new_order(self, order: Order, authenticated: bool) -> None:
        try:
            text = new_order_message(order, authenticated, self.settings.CURRENCY_LABEL)
            self.notifier.notify(text)
        except Exception as e:
            # The order is already committed; a lost alert is acceptable
            logger.error(f"❌ Notification for order {order.id} failed: {e}")

    # ---------------------------------------------------------
    # STATUS
    # ---------------------------------------------------------

    def update_order_status(self, order_id: str, new_status, actor: Actor) -> Order:
        require_admin(actor, "change order status")
        status = parse_status(new_status)

        with self.order_repo.transaction() as tx:
            current = tx.get_order(order_id)
            if current is None:
                raise OrderNotFound(order_id)
            check_transition(current.status, status, strict=self.settings.STRICT_STATUS_TRANSITIONS)

            updated = tx.update_order_status(order_id, status, self.clock())
            if updated is None:
                raise OrderNotFound(order_id)

            if (
                self.settings.RESTOCK_ON_CANCEL
                and status == OrderStatus.CANCELLED
                and current.status != OrderStatus.CANCELLED
            ):
                if tx.restock(current.batch_id, current.quantity):
                    logger.info(f"↩️ Returned {current.quantity} to batch {current.batch_id}")
                else:
                    logger.warning(
                        f"⚠️ Batch {current.batch_id} no longer exists, order {order_id} not restocked"
                    )

        logger.info(f"📋 Order {order_id}: {current.status.value} -> {status.value} by {actor.username}")
        return updated

    # ---------------------------------------------------------
    # LOOKUP
    # ---------------------------------------------------------

    def list_orders(
        self, actor: Actor, phone: Optional[str] = None, order_id: Optional[str] = None
    ) -> List[Order]:
        order_filter = order_filter_for(actor, phone, order_id)
        if order_filter is None:
            return []
        return self.order_repo.list_orders(order_filter)

    def summary(
        self, actor: Actor, phone: Optional[str] = None, order_id: Optional[str] = None
    ) -> OrderSummary:
        return summarize_orders(self.list_orders(actor, phone, order_id))
