import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, List, Optional

import pytz
from sqlalchemy import case, delete, desc, func, select, text, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.errors import DependencyUnavailable, DuplicateOrderId, UsernameTaken, ValidationError
from app.domain.inventory import MAX_STORED_INT, next_batch_id, validate_batch
from app.domain.models import (
    Batch, Delivery, Order, OrderFilter, OrderFilterKind, OrderStatus, Role, User,
)
from app.infrastructure.tables import BATCH_ID_COUNTER, BatchRow, CounterRow, OrderRow, UserRow
from app.interfaces.IInventoryRepository import IInventoryRepository

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return pytz.utc.localize(value)
    return value


def _storable(*values: int) -> bool:
    # Out-of-range ints cannot match a row and overflow the driver
    return all(0 <= v <= MAX_STORED_INT for v in values)


def _to_batch(row: BatchRow) -> Batch:
    return Batch(
        id=row.id,
        name=row.name,
        plant_date=row.plant_date,
        quantity=row.quantity,
        stock=row.stock,
        ready_for_sale=bool(row.ready_for_sale),
    )


def _to_order(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        batch_id=row.batch_id,
        quantity=row.quantity,
        phone=row.phone,
        address=row.address,
        delivery=Delivery(row.delivery),
        payment=row.payment,
        status=OrderStatus(row.status),
        order_date=_aware(row.order_date),
        total_price=row.total_price,
        last_updated=_aware(row.last_updated),
    )


def _to_user(row: UserRow) -> User:
    return User(username=row.username, password_hash=row.password_hash, role=Role(row.role))


class SqlInventoryRepository(IInventoryRepository):
    """
    SQLAlchemy-backed gateway (Postgres in production, SQLite locally).

    A repository built with ``session`` set is bound to an open unit of work
    and never commits by itself; ``transaction()`` hands out such instances.
    """

    def __init__(self, session_factory: sessionmaker, session: Optional[Session] = None):
        self._session_factory = session_factory
        self._session = session

    @property
    def engine(self):
        return self._session_factory.kw["bind"]

    # ---------------------------------------------------------
    # SESSION HANDLING
    # ---------------------------------------------------------

    @contextmanager
    def _scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error(f"❌ DB Error: {e}")
            raise DependencyUnavailable("Database unavailable") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator["SqlInventoryRepository"]:
        if self._session is not None:
            # Already inside a unit of work
            yield self
            return

        session = self._session_factory()
        try:
            yield SqlInventoryRepository(self._session_factory, session=session)
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error(f"❌ DB Error, transaction rolled back: {e}")
            raise DependencyUnavailable("Database unavailable") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self._scope() as session:
                session.execute(text("SELECT 1"))
            return True
        except (DependencyUnavailable, SQLAlchemyError) as e:
            logger.warning(f"⚠️ DB ping failed: {e}")
            return False

    # ---------------------------------------------------------
    # BATCHES
    # ---------------------------------------------------------

    def get_batch(self, batch_id: int) -> Optional[Batch]:
        if not _storable(batch_id):
            return None
        with self._scope() as session:
            row = session.get(BatchRow, batch_id)
            return _to_batch(row) if row else None

    def list_batches(self) -> List[Batch]:
        with self._scope() as session:
            rows = session.scalars(select(BatchRow).order_by(BatchRow.id)).all()
            return [_to_batch(r) for r in rows]

    def _bump_batch_counter(self, session: Session, value: int) -> None:
        counter = session.get(CounterRow, BATCH_ID_COUNTER, with_for_update=True)
        if counter is None:
            session.add(CounterRow(name=BATCH_ID_COUNTER, value=value))
        elif value > counter.value:
            counter.value = value

    def replace_all_batches(self, batches: List[Batch]) -> int:
        ids = [b.id for b in batches]
        if len(ids) != len(set(ids)):
            raise ValidationError("Batch ids must be unique")
        for batch in batches:
            validate_batch(batch)

        with self._scope() as session:
            session.execute(delete(BatchRow))
            for batch in batches:
                session.add(BatchRow(
                    id=batch.id,
                    name=batch.name,
                    plant_date=batch.plant_date,
                    quantity=batch.quantity,
                    stock=batch.stock,
                    ready_for_sale=batch.ready_for_sale,
                ))
            if ids:
                self._bump_batch_counter(session, max(ids))
            session.flush()
        return len(batches)

    def create_batch(self, name: str, plant_date: date, quantity: int) -> Batch:
        with self._scope() as session:
            counter = session.get(CounterRow, BATCH_ID_COUNTER, with_for_update=True)
            max_existing = session.scalar(select(func.max(BatchRow.id))) or 0
            new_id = next_batch_id([max_existing], counter.value if counter else 0)

            row = BatchRow(
                id=new_id,
                name=name,
                plant_date=plant_date,
                quantity=quantity,
                stock=quantity,
                ready_for_sale=False,
            )
            session.add(row)
            self._bump_batch_counter(session, new_id)
            session.flush()
            return _to_batch(row)

    def set_ready_for_sale(self, batch_id: int, ready: bool) -> Optional[Batch]:
        if not _storable(batch_id):
            return None
        with self._scope() as session:
            row = session.get(BatchRow, batch_id, with_for_update=True)
            if row is None:
                return None
            row.ready_for_sale = ready
            session.flush()
            return _to_batch(row)

    def set_stock(self, batch_id: int, stock: int) -> Optional[Batch]:
        if not _storable(batch_id):
            return None
        with self._scope() as session:
            row = session.get(BatchRow, batch_id, with_for_update=True)
            if row is None:
                return None
            if not 0 <= stock <= row.quantity:
                raise ValidationError(
                    f"Stock for batch {batch_id} must be between 0 and {row.quantity}"
                )
            row.stock = stock
            session.flush()
            return _to_batch(row)

    def delete_batch(self, batch_id: int) -> Optional[Batch]:
        if not _storable(batch_id):
            return None
        with self._scope() as session:
            row = session.get(BatchRow, batch_id)
            if row is None:
                return None
            deleted = _to_batch(row)
            session.delete(row)
            return deleted

    def decrement_if_sufficient(self, batch_id: int, amount: int) -> bool:
        if amount <= 0:
            raise ValidationError("Amount to take from stock must be positive")
        if not _storable(batch_id, amount):
            return False
        with self._scope() as session:
            # Single conditional UPDATE, the check and the write cannot interleave
            result = session.execute(
                update(BatchRow)
                .where(BatchRow.id == batch_id, BatchRow.stock >= amount)
                .values(stock=BatchRow.stock - amount)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def restock(self, batch_id: int, amount: int) -> bool:
        if amount <= 0:
            raise ValidationError("Amount to return to stock must be positive")
        if not _storable(batch_id, amount):
            return False
        with self._scope() as session:
            refilled = BatchRow.stock + amount
            result = session.execute(
                update(BatchRow)
                .where(BatchRow.id == batch_id)
                .values(stock=case((refilled > BatchRow.quantity, BatchRow.quantity), else_=refilled))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # ---------------------------------------------------------
    # ORDERS
    # ---------------------------------------------------------

    def insert_order(self, order: Order) -> Order:
        with self._scope() as session:
            if session.get(OrderRow, order.id) is not None:
                raise DuplicateOrderId(f"Order id {order.id} already exists")
            session.add(OrderRow(
                id=order.id,
                user_id=order.user_id,
                batch_id=order.batch_id,
                quantity=order.quantity,
                phone=order.phone,
                address=order.address,
                delivery=order.delivery.value,
                payment=order.payment,
                status=order.status.value,
                order_date=order.order_date,
                total_price=order.total_price,
                last_updated=order.last_updated,
            ))
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateOrderId(f"Order id {order.id} already exists") from e
            return order

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._scope() as session:
            row = session.get(OrderRow, order_id, with_for_update=self._session is not None)
            return _to_order(row) if row else None

    def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        query = select(OrderRow)
        if order_filter.kind == OrderFilterKind.BY_USER:
            query = query.where(OrderRow.user_id == order_filter.value)
        elif order_filter.kind == OrderFilterKind.BY_PHONE:
            query = query.where(OrderRow.phone == order_filter.value)
        elif order_filter.kind == OrderFilterKind.BY_ID:
            query = query.where(OrderRow.id == order_filter.value)
        if order_filter.phone:
            query = query.where(OrderRow.phone == order_filter.phone)
        if order_filter.order_id:
            query = query.where(OrderRow.id == order_filter.order_id)
        query = query.order_by(desc(OrderRow.order_date), desc(OrderRow.id))

        with self._scope() as session:
            return [_to_order(r) for r in session.scalars(query).all()]

    def update_order_status(
        self, order_id: str, status: OrderStatus, last_updated: datetime
    ) -> Optional[Order]:
        with self._scope() as session:
            row = session.get(OrderRow, order_id, with_for_update=True)
            if row is None:
                return None
            row.status = status.value
            row.last_updated = last_updated
            session.flush()
            return _to_order(row)

    # ---------------------------------------------------------
    # USERS
    # ---------------------------------------------------------

    def get_user(self, username: str) -> Optional[User]:
        with self._scope() as session:
            row = session.get(UserRow, username)
            return _to_user(row) if row else None

    def insert_user(self, user: User) -> User:
        with self._scope() as session:
            if session.get(UserRow, user.username) is not None:
                raise UsernameTaken(user.username)
            session.add(UserRow(
                username=user.username,
                password_hash=user.password_hash,
                role=user.role.value,
            ))
            try:
                session.flush()
            except IntegrityError as e:
                raise UsernameTaken(user.username) from e
            return user
