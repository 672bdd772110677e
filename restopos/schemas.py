from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .domain import (
    DEFAULT_CUSTOMER_NAME,
    DEFAULT_PAYMENT_METHOD,
    MAX_ID,
    MAX_PRICE,
    NewOrder,
    OrderLine,
    OrderStatus,
    TableStatus,
    UserRole,
)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.CASHIER


class UserUpdate(BaseModel):
    id: int = Field(gt=0, le=MAX_ID)
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    role: Optional[UserRole] = None


class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole

    class Config:
        from_attributes = True


class IdIn(BaseModel):
    id: int = Field(gt=0, le=MAX_ID)


class MenuItemBase(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    category: str = Field(min_length=2, max_length=80)
    price: int = Field(ge=0, le=MAX_PRICE)
    is_available: bool = True
    photo_url: Optional[str] = Field(default=None, max_length=500)


class MenuItemCreate(MenuItemBase):
    pass


class MenuItemUpdate(MenuItemBase):
    id: int = Field(gt=0, le=MAX_ID)


class MenuItemOut(MenuItemBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TableCreate(BaseModel):
    label: str = Field(min_length=1, max_length=40)
    capacity: int = Field(default=2, gt=0, le=MAX_ID)
    status: TableStatus = TableStatus.AVAILABLE
    note: Optional[str] = Field(default=None, max_length=140)


class TableUpdate(BaseModel):
    id: int = Field(gt=0, le=MAX_ID)
    label: Optional[str] = Field(default=None, min_length=1, max_length=40)
    capacity: Optional[int] = Field(default=None, gt=0, le=MAX_ID)
    status: Optional[TableStatus] = None
    note: Optional[str] = Field(default=None, max_length=140)


class TableOut(BaseModel):
    id: int
    label: str
    capacity: int
    status: TableStatus
    note: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderItemIn(BaseModel):
    menu_item_id: int
    quantity: int
    note: Optional[str] = None


class OrderCreate(BaseModel):
    table_id: Optional[int] = None
    customer_name: str = DEFAULT_CUSTOMER_NAME
    payment_method: str = DEFAULT_PAYMENT_METHOD
    items: List[OrderItemIn]

    def to_new_order(self) -> NewOrder:
        return NewOrder(
            lines=tuple(
                OrderLine(item.menu_item_id, item.quantity, item.note)
                for item in self.items
            ),
            customer_name=self.customer_name,
            payment_method=self.payment_method,
            table_id=self.table_id,
        )


class OrderStatusIn(BaseModel):
    id: int = Field(gt=0, le=MAX_ID)
    status: OrderStatus


class OrderItemOut(BaseModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int
    price: int
    note: Optional[str] = None
    menu_name: Optional[str] = None
    menu_category: Optional[str] = None

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    table_id: Optional[int] = None
    customer_name: Optional[str] = None
    status: OrderStatus
    total: int
    payment_method: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderWithItemsOut(OrderOut):
    items: List[OrderItemOut]


class DashboardSummary(BaseModel):
    open_orders: int = Field(alias="openOrders")
    revenue_today: int = Field(alias="revenueToday")
    menu_count: int = Field(alias="menuCount")
    available_tables: int = Field(alias="availableTables")

    class Config:
        populate_by_name = True


class DashboardOut(BaseModel):
    menu_items: List[MenuItemOut] = Field(alias="menuItems")
    tables: List[TableOut]
    orders: List[OrderWithItemsOut]
    summary: DashboardSummary

    class Config:
        populate_by_name = True
