from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, validator

from models import EMPLOYEE_STATUSES, MAX_AMOUNT, MAX_QUANTITY


def _not_blank(v: str, label: str) -> str:
    if v is None or len(v.strip()) == 0:
        raise ValueError(f"{label} cannot be empty")
    return v.strip()


def _amount(v: Decimal, label: str) -> Decimal:
    if v < 0:
        raise ValueError(f"{label} cannot be negative")
    if v > MAX_AMOUNT:
        raise ValueError(f"{label} cannot exceed {MAX_AMOUNT}")
    return round(v, 2)


def _naive_local(v: Optional[datetime]) -> Optional[datetime]:
    # timestamps are stored as naive server-local time
    if v is not None and v.tzinfo is not None:
        return v.astimezone().replace(tzinfo=None)
    return v


# ========== Menu ==========

class MenuItemCreate(BaseModel):
    name: str
    price: Decimal
    description: str
    preparation_time: int
    image: Optional[str] = None

    @validator("name")
    def validate_name(cls, v: str) -> str:
        v = _not_blank(v, "Menu item name")
        if len(v) > 100:
            raise ValueError("Menu item name cannot exceed 100 characters")
        return v

    @validator("description")
    def validate_description(cls, v: str) -> str:
        return _not_blank(v, "Description")

    @validator("price")
    def validate_price(cls, v: Decimal) -> Decimal:
        return _amount(v, "Price")

    @validator("preparation_time")
    def validate_preparation_time(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Preparation time cannot be negative")
        return v


class MenuItemResponse(BaseModel):
    id: int
    name: str
    price: float
    description: str
    preparation_time: int
    image: Optional[str] = None
    is_active: bool
    created_at: datetime


# ========== Employees ==========

class EmployeeCreate(BaseModel):
    name: str
    national_id: str
    phone: str
    joining_date: datetime
    status: str = "working"

    @validator("name")
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Name")

    @validator("national_id")
    def validate_national_id(cls, v: str) -> str:
        return _not_blank(v, "National ID")

    @validator("phone")
    def validate_phone(cls, v: str) -> str:
        return _not_blank(v, "Phone")

    @validator("joining_date")
    def validate_joining_date(cls, v: datetime) -> datetime:
        return _naive_local(v)

    @validator("status")
    def validate_status(cls, v: str) -> str:
        if v not in EMPLOYEE_STATUSES:
            raise ValueError("Status must be either 'working' or 'not-working'")
        return v


class EmployeeResponse(BaseModel):
    id: int
    name: str
    national_id: str
    phone: str
    joining_date: datetime
    status: str
    created_at: datetime


# ========== Inventory ==========

class InventoryItemCreate(BaseModel):
    name: str
    quantity: int
    purchase_date: datetime
    purchase_price: Decimal
    expiry_date: Optional[datetime] = None
    has_no_expiry: bool = False

    @validator("name")
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Item name")

    @validator("quantity")
    def validate_quantity(cls, v: int) -> int:
        if abs(v) > 2147483647:
            raise ValueError("Quantity is out of range")
        return v

    @validator("purchase_price")
    def validate_purchase_price(cls, v: Decimal) -> Decimal:
        return _amount(v, "Purchase price")

    @validator("purchase_date", "expiry_date")
    def validate_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_local(v)


class InventoryItemResponse(BaseModel):
    id: int
    name: str
    quantity: int
    purchase_date: datetime
    purchase_price: float
    expiry_date: Optional[datetime] = None
    has_no_expiry: bool
    is_expired: bool
    created_at: datetime


# ========== Orders ==========

class OrderItemCreate(BaseModel):
    menu_item_id: int
    quantity: int

    @validator("quantity")
    def validate_quantity(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        if v > MAX_QUANTITY:
            raise ValueError(f"Quantity cannot exceed {MAX_QUANTITY}")
        return v


class OrderCreate(BaseModel):
    customer_name: str
    customer_phone: str
    customer_address: str
    items: List[OrderItemCreate]
    tax: Optional[Decimal] = None
    discount: Optional[Decimal] = None

    @validator("tax")
    def validate_tax(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Tax rate cannot be negative")
        if v is not None and v > 100:
            raise ValueError("Tax rate cannot exceed 100")
        return v

    @validator("discount")
    def validate_discount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None:
            return _amount(v, "Discount")
        return v


class OrderLineResponse(BaseModel):
    id: int
    menu_item_id: int
    name: str
    quantity: int
    price: float
    line_total: float
    menu_item: Optional[MenuItemResponse] = None


class OrderResponse(BaseModel):
    id: int
    customer_name: str
    customer_phone: str
    customer_address: str
    status: str
    items: List[OrderLineResponse]
    subtotal: float
    tax: float
    discount: float
    total: float
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    status: str


class SalesStats(BaseModel):
    today_revenue: float
    today_orders: int
    total_orders: int
    total_revenue: float


# ========== Auth ==========

class UserLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
