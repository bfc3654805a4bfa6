"""
Order pricing, status workflow and sales statistics.

Line prices are copied from the menu when the order is created and never
re-read, so later menu edits do not change past orders.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from config import DEFAULT_TAX_RATE
from errors import InternalError, InvalidReference, InvalidStatus, NotFound, ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class CartLine:
    menu_item_id: int
    quantity: int


@dataclass
class Cart:
    """Lines collected before checkout. Lives for one request, never shared."""

    lines: List[CartLine] = field(default_factory=list)

    @classmethod
    def from_items(cls, items: Iterable) -> "Cart":
        cart = cls()
        for item in items:
            cart.add(item.menu_item_id, item.quantity)
        return cart

    def add(self, menu_item_id: int, quantity: int = 1) -> None:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        for line in self.lines:
            if line.menu_item_id == menu_item_id:
                line.quantity += quantity
                return
        self.lines.append(CartLine(menu_item_id, quantity))

    def remove(self, menu_item_id: int) -> None:
        self.lines = [line for line in self.lines if line.menu_item_id != menu_item_id]

    def is_empty(self) -> bool:
        return not self.lines


@dataclass
class Totals:
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(priced_lines: Iterable, tax_rate=None, discount=None) -> Totals:
    """priced_lines yields (unit_price, quantity) pairs."""
    rate = DEFAULT_TAX_RATE if tax_rate is None else Decimal(str(tax_rate))
    discount_amount = Decimal("0") if discount is None else Decimal(str(discount))
    if rate < 0:
        raise ValidationError("Tax rate cannot be negative")
    if discount_amount < 0:
        raise ValidationError("Discount cannot be negative")

    try:
        subtotal = sum((to_money(price) * quantity for price, quantity in priced_lines), Decimal("0"))
        subtotal = to_money(subtotal)
        tax = to_money(subtotal * rate / 100)
        discount_amount = to_money(discount_amount)
    except InvalidOperation:
        raise ValidationError("Amount out of range")
    # may go negative when the discount exceeds subtotal + tax
    total = subtotal + tax - discount_amount
    if max(subtotal, tax, discount_amount, abs(total)) > models.MAX_AMOUNT:
        raise ValidationError("Amount out of range")
    return Totals(subtotal=subtotal, tax=tax, discount=discount_amount, total=total)


def _require(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


def create_order(
    db: Session,
    customer_name: str,
    customer_phone: str,
    customer_address: str,
    cart: Cart,
    tax_rate=None,
    discount=None,
) -> models.Order:
    customer_name = _require(customer_name, "Customer name")
    customer_phone = _require(customer_phone, "Customer phone")
    customer_address = _require(customer_address, "Customer address")
    if cart is None or cart.is_empty():
        raise ValidationError("Customer details and at least one item are required")

    resolved = []
    for line in cart.lines:
        if line.quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")
        if line.quantity > models.MAX_QUANTITY:
            raise ValidationError(f"Quantity cannot exceed {models.MAX_QUANTITY}")
        menu_item = db.get(models.MenuItem, line.menu_item_id)
        if menu_item is None:
            raise InvalidReference(line.menu_item_id)
        resolved.append((menu_item, line.quantity))

    totals = compute_totals(
        ((menu_item.price, quantity) for menu_item, quantity in resolved),
        tax_rate=tax_rate,
        discount=discount,
    )

    order = models.Order(
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_address=customer_address,
        status="pending",
        subtotal=totals.subtotal,
        tax=totals.tax,
        discount=totals.discount,
        total=totals.total,
        lines=[
            models.OrderLine(
                menu_item_id=menu_item.id,
                name=menu_item.name,
                quantity=quantity,
                price=to_money(menu_item.price),
            )
            for menu_item, quantity in resolved
        ],
    )

    try:
        db.add(order)
        db.commit()
        db.refresh(order)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save order for %s", customer_name)
        raise InternalError("Error creating order")

    logger.info("Order %s created: %s line(s), total %s", order.id, len(order.lines), order.total)
    return order


def get_order(db: Session, order_id: int) -> models.Order:
    order = db.get(models.Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    return order


def list_orders(db: Session) -> List[models.Order]:
    return (
        db.query(models.Order)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def set_status(db: Session, order_id: int, new_status: str) -> models.Order:
    # membership check only; any known status may follow any other
    if new_status not in models.ORDER_STATUSES:
        raise InvalidStatus("Invalid status")

    order = get_order(db, order_id)
    previous = order.status
    order.status = new_status
    try:
        db.commit()
        db.refresh(order)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update status of order %s", order_id)
        raise InternalError("Error updating order status")

    logger.info("Order %s status %s -> %s", order_id, previous, new_status)
    return order


def get_stats(db: Session, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.now()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)

    today_orders, today_revenue = (
        db.query(func.count(models.Order.id), func.sum(models.Order.total))
        .filter(models.Order.created_at >= day_start, models.Order.created_at < day_end)
        .one()
    )
    total_orders, total_revenue = db.query(func.count(models.Order.id), func.sum(models.Order.total)).one()

    return {
        "today_revenue": to_money(today_revenue or 0),
        "today_orders": today_orders,
        "total_orders": total_orders,
        "total_revenue": to_money(total_revenue or 0),
    }


def order_response(db: Session, order: models.Order) -> Dict:
    """
    Serialize an order with each line's snapshot plus the current menu record.
    menu_item is None when the referenced row no longer exists.
    """
    menu_ids = {line.menu_item_id for line in order.lines}
    menu_items = {}
    if menu_ids:
        menu_items = {
            item.id: item
            for item in db.query(models.MenuItem).filter(models.MenuItem.id.in_(menu_ids)).all()
        }

    lines = []
    for line in order.lines:
        menu_item = menu_items.get(line.menu_item_id)
        lines.append({
            "id": line.id,
            "menu_item_id": line.menu_item_id,
            "name": line.name,
            "quantity": line.quantity,
            "price": float(line.price),
            "line_total": float(to_money(line.price) * line.quantity),
            "menu_item": menu_item_response(menu_item) if menu_item else None,
        })

    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_address": order.customer_address,
        "status": order.status,
        "items": lines,
        "subtotal": float(order.subtotal),
        "tax": float(order.tax),
        "discount": float(order.discount),
        "total": float(order.total),
        "created_at": order.created_at,
    }


def menu_item_response(item: models.MenuItem) -> Dict:
    return {
        "id": item.id,
        "name": item.name,
        "price": float(item.price),
        "description": item.description,
        "preparation_time": item.preparation_time,
        "image": item.image,
        "is_active": item.is_active,
        "created_at": item.created_at,
    }
