from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .config import TransitionMode
from .errors import ErrorCode, ValidationError

# bounds of the store's integer columns
MAX_ID = 2**31 - 1
MAX_PRICE = 10**12
MAX_TOTAL = 2**63 - 1

MIN_QUANTITY = 1
MAX_QUANTITY = 99
MAX_NOTE_LENGTH = 120
MAX_CUSTOMER_NAME_LENGTH = 120
DEFAULT_CUSTOMER_NAME = "Walk-in"
DEFAULT_PAYMENT_METHOD = "cash"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    SERVED = "served"
    PAID = "paid"
    CANCELLED = "cancelled"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    DIRTY = "dirty"


class UserRole(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"


CLOSED_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.CANCELLED})

ORDER_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED}),
    OrderStatus.SERVED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def is_open(status) -> bool:
    return OrderStatus(status) not in CLOSED_STATUSES


def check_transition(
    current: OrderStatus, target: OrderStatus, mode: TransitionMode
) -> None:
    if mode == TransitionMode.PERMISSIVE:
        return
    if target not in ORDER_TRANSITIONS[OrderStatus(current)]:
        raise ValidationError(
            ErrorCode.ILLEGAL_TRANSITION,
            f"cannot change order status from {OrderStatus(current).value} "
            f"to {OrderStatus(target).value}",
        )


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    if len(note) > MAX_NOTE_LENGTH:
        raise ValidationError(
            ErrorCode.NOTE_TOO_LONG,
            f"note must be at most {MAX_NOTE_LENGTH} characters",
        )
    return note or None


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: int
    quantity: int
    note: Optional[str] = None

    def __post_init__(self):
        if not 0 < self.menu_item_id <= MAX_ID:
            raise ValidationError(
                ErrorCode.INVALID_MENU_ITEM_ID, "menu item id out of range"
            )
        if not MIN_QUANTITY <= self.quantity <= MAX_QUANTITY:
            raise ValidationError(
                ErrorCode.INVALID_QUANTITY,
                f"quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}",
            )
        object.__setattr__(self, "note", _clean_note(self.note))


@dataclass(frozen=True)
class NewOrder:
    lines: Tuple[OrderLine, ...]
    customer_name: str = DEFAULT_CUSTOMER_NAME
    payment_method: str = DEFAULT_PAYMENT_METHOD
    table_id: Optional[int] = None

    def __post_init__(self):
        lines = tuple(self.lines)
        if not lines:
            raise ValidationError(
                ErrorCode.EMPTY_ORDER, "an order needs at least 1 item"
            )
        object.__setattr__(self, "lines", lines)

        if self.table_id is not None and not 0 < self.table_id <= MAX_ID:
            raise ValidationError(
                ErrorCode.INVALID_TABLE_ID, "table id out of range"
            )

        name = (self.customer_name or "").strip()
        if not 1 <= len(name) <= MAX_CUSTOMER_NAME_LENGTH:
            raise ValidationError(
                ErrorCode.INVALID_CUSTOMER_NAME,
                f"customer name must be 1 to {MAX_CUSTOMER_NAME_LENGTH} characters",
            )
        object.__setattr__(self, "customer_name", name)

        method = (self.payment_method or "").strip()
        if len(method) < 2:
            raise ValidationError(
                ErrorCode.INVALID_PAYMENT_METHOD,
                "payment method must be at least 2 characters",
            )
        object.__setattr__(self, "payment_method", method)

    @property
    def menu_item_ids(self) -> frozenset:
        return frozenset(line.menu_item_id for line in self.lines)


def order_total(lines: Iterable[OrderLine], prices: Mapping[int, int]) -> int:
    """Sum of unit price times quantity over ``lines``."""
    return sum(prices[line.menu_item_id] * line.quantity for line in lines)
