import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from . import crud, models
from .clock import utcnow
from .config import TransitionMode
from .domain import (
    MAX_TOTAL,
    NewOrder,
    OrderStatus,
    TableStatus,
    check_transition,
    order_total,
)
from .errors import ErrorCode, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def create_order(db: Session, new_order: NewOrder) -> models.Order:
    menu_items = crud.get_menu_items(db, new_order.menu_item_ids)
    missing = new_order.menu_item_ids - menu_items.keys()
    if missing:
        raise ValidationError(ErrorCode.MENU_ITEM_NOT_FOUND, "menu item not found")
    unavailable = sorted(i for i, item in menu_items.items() if not item.is_available)
    if unavailable:
        names = ", ".join(menu_items[i].name for i in unavailable)
        raise ValidationError(
            ErrorCode.MENU_ITEM_UNAVAILABLE, f"menu item not available: {names}"
        )
    if new_order.table_id is not None and not crud.get_table(db, new_order.table_id):
        raise ValidationError(ErrorCode.TABLE_NOT_FOUND, "table not found")

    prices = {item_id: item.price for item_id, item in menu_items.items()}
    total = order_total(new_order.lines, prices)
    if total > MAX_TOTAL:
        raise ValidationError(ErrorCode.TOTAL_TOO_LARGE, "order total too large")

    order = models.Order(
        table_id=new_order.table_id,
        customer_name=new_order.customer_name,
        status=OrderStatus.PENDING.value,
        total=total,
        payment_method=new_order.payment_method,
        items=[
            models.OrderItem(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                price=prices[line.menu_item_id],
                note=line.note,
            )
            for line in new_order.lines
        ],
    )
    try:
        db.add(order)
        if new_order.table_id is not None:
            crud.set_table_status(db, new_order.table_id, TableStatus.OCCUPIED)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("order creation failed")
        raise StorageError(ErrorCode.STORAGE, "could not create order") from exc
    db.refresh(order)
    logger.info(
        "order created",
        extra={"order_id": order.id, "table_id": order.table_id, "total": total},
    )
    return order


def update_order_status(
    db: Session,
    order_id: int,
    new_status: OrderStatus,
    mode: TransitionMode = TransitionMode.PERMISSIVE,
) -> None:
    new_status = OrderStatus(new_status)
    order = db.query(models.Order).filter(models.Order.id == order_id).first()
    if not order:
        raise NotFoundError(ErrorCode.ORDER_NOT_FOUND, "order not found")
    check_transition(OrderStatus(order.status), new_status, mode)

    previous = order.status
    try:
        order.status = new_status.value
        order.updated_at = utcnow()
        if new_status == OrderStatus.PAID and order.table_id is not None:
            crud.set_table_status(db, order.table_id, TableStatus.AVAILABLE)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("order status update failed", extra={"order_id": order_id})
        raise StorageError(ErrorCode.STORAGE, "could not update order status") from exc
    logger.info(
        "order status changed",
        extra={"order_id": order_id, "from": previous, "to": new_status.value},
    )


def list_recent_orders(db: Session, limit: int) -> List[models.Order]:
    """Newest ``limit`` orders with their items and the items' menu rows."""
    return (
        db.query(models.Order)
        .options(
            selectinload(models.Order.items).joinedload(models.OrderItem.menu_item)
        )
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .limit(limit)
        .all()
    )
