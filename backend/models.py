# models.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from database import Base

ORDER_STATUSES = ("pending", "preparing", "ready", "completed")
EMPLOYEE_STATUSES = ("working", "not-working")

Money = Numeric(12, 2)
# largest value Money can hold
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = 10000


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    price = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    preparation_time = Column(Integer, nullable=False)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    national_id = Column(String(30), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=False)
    joining_date = Column(DateTime, nullable=False)
    status = Column(String(20), default="working", nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    purchase_date = Column(DateTime, nullable=False)
    purchase_price = Column(Money, nullable=False)
    expiry_date = Column(DateTime, nullable=True)
    has_no_expiry = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(30), nullable=False)
    customer_address = Column(Text, nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    subtotal = Column(Money, nullable=False)
    tax = Column(Money, nullable=False)
    discount = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )


class OrderLine(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    # plain id, not a foreign key to menu_items
    menu_item_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)

    order = relationship("Order", back_populates="lines")
