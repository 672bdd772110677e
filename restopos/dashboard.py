from datetime import date
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .clock import local_day_bounds
from .domain import OrderStatus, TableStatus, is_open
from .orders import list_recent_orders


def revenue_for_day(db: Session, day: date) -> int:
    """Sum of paid order totals created on the server-local ``day``."""
    start, end = local_day_bounds(day)
    total = (
        db.query(func.coalesce(func.sum(models.Order.total), 0))
        .filter(
            models.Order.status == OrderStatus.PAID.value,
            models.Order.created_at >= start,
            models.Order.created_at < end,
        )
        .scalar()
    )
    return int(total)


def summarize(
    orders: Iterable[models.Order],
    menu_items: Iterable[models.MenuItem],
    tables: Iterable[models.Table],
    revenue_today: int,
) -> schemas.DashboardSummary:
    return schemas.DashboardSummary(
        open_orders=sum(1 for order in orders if is_open(order.status)),
        revenue_today=revenue_today,
        menu_count=len(list(menu_items)),
        available_tables=sum(
            1 for table in tables if table.status == TableStatus.AVAILABLE.value
        ),
    )


def build_dashboard(
    db: Session, limit: int = 24, today: Optional[date] = None
) -> schemas.DashboardOut:
    today = today or date.today()
    menu_items = crud.list_menu(db)
    tables = crud.list_tables(db)
    orders = list_recent_orders(db, limit)
    summary = summarize(orders, menu_items, tables, revenue_for_day(db, today))
    return schemas.DashboardOut(
        menu_items=[schemas.MenuItemOut.model_validate(item) for item in menu_items],
        tables=[schemas.TableOut.model_validate(table) for table in tables],
        orders=[schemas.OrderWithItemsOut.model_validate(order) for order in orders],
        summary=summary,
    )
