from sqlalchemy import BigInteger, Boolean, Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.infrastructure.database import Base

BATCH_ID_COUNTER = "batch_id"


class BatchRow(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    plant_date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False)
    ready_for_sale = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OrderRow(Base):
    __tablename__ = "orders"

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    # No foreign key: orders outlive deleted batches
    batch_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    address = Column(Text, nullable=False)
    delivery = Column(String(20), nullable=False)
    payment = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    order_date = Column(DateTime(timezone=True), nullable=False)
    total_price = Column(BigInteger, nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    username = Column(String(50), primary_key=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="customer")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CounterRow(Base):
    """Named high-water marks, e.g. the largest batch id ever issued."""
    __tablename__ = "counters"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
