from datetime import date, datetime, time, timedelta

from restopos import crud, dashboard, orders
from restopos.clock import local_day_bounds, local_to_utc
from restopos.domain import NewOrder, OrderLine, OrderStatus, TableStatus


def place(db, menu, quantity=1, status=None, created_local=None):
    nasi, _ = menu
    order = orders.create_order(db, NewOrder(lines=(OrderLine(nasi.id, quantity),)))
    if status is not None:
        order.status = OrderStatus(status).value
    if created_local is not None:
        order.created_at = local_to_utc(created_local)
    db.commit()
    return order


def test_local_day_bounds_span_one_day():
    start, end = local_day_bounds(date(2024, 3, 5))
    assert start < end
    assert timedelta(hours=23) <= end - start <= timedelta(hours=25)


def test_revenue_counts_only_paid_orders_from_today(db, menu):
    today = date(2024, 3, 5)
    noon = datetime.combine(today, time(12, 0))
    place(db, menu, quantity=1, status="paid", created_local=noon)
    place(db, menu, quantity=2, status="paid", created_local=datetime.combine(today, time(0, 0)))
    # paid yesterday, open today, cancelled today
    place(db, menu, quantity=5, status="paid", created_local=noon - timedelta(days=1))
    place(db, menu, quantity=3, status="served", created_local=noon)
    place(db, menu, quantity=4, status="cancelled", created_local=noon)

    assert dashboard.revenue_for_day(db, today) == 3 * 20000
    assert dashboard.revenue_for_day(db, today - timedelta(days=1)) == 5 * 20000
    assert dashboard.revenue_for_day(db, today + timedelta(days=1)) == 0


def test_open_orders_exclude_paid_and_cancelled(db, menu):
    for status in OrderStatus:
        place(db, menu, status=status)

    recent = orders.list_recent_orders(db, limit=24)
    summary = dashboard.summarize(recent, [], [], 0)
    assert summary.open_orders == 4


def test_build_dashboard(db, menu, table):
    crud.create_table(db, {"label": "T2", "status": TableStatus.RESERVED})
    crud.create_table(db, {"label": "T3"})
    place(db, menu, status="paid")
    place(db, menu)

    result = dashboard.build_dashboard(db, limit=24)

    assert result.summary.menu_count == 2
    assert result.summary.available_tables == 2
    assert result.summary.open_orders == 1
    assert result.summary.revenue_today == 20000
    assert [t.label for t in result.tables] == ["T1", "T2", "T3"]
    assert [m.name for m in result.menu_items] == ["Nasi Goreng", "Es Teh"]
    assert result.orders[0].items[0].menu_name == "Nasi Goreng"


def test_open_orders_only_counts_the_recent_window(db, menu):
    for _ in range(3):
        place(db, menu)
    result = dashboard.build_dashboard(db, limit=2)
    assert len(result.orders) == 2
    assert result.summary.open_orders == 2
