from fastapi.testclient import TestClient

from restopos import models
from restopos.config import TransitionMode
from restopos.domain import TableStatus
from restopos.main import create_app


def order_payload(menu, table_id=None, **extra):
    nasi, teh = menu
    payload = {
        "customer_name": "Sari",
        "payment_method": "qris",
        "items": [
            {"menu_item_id": nasi.id, "quantity": 2},
            {"menu_item_id": teh.id, "quantity": 1, "note": "less ice"},
        ],
    }
    if table_id is not None:
        payload["table_id"] = table_id
    payload.update(extra)
    return payload


def test_create_order_is_public(client, menu, table, db):
    resp = client.post("/orders", json=order_payload(menu, table.id))
    assert resp.status_code == 201, resp.text
    order = resp.json()["order"]
    assert order["total"] == 55000
    assert order["status"] == "pending"
    assert order["table_id"] == table.id
    assert order["payment_method"] == "qris"
    assert "items" not in order

    db.refresh(table)
    assert table.status == TableStatus.OCCUPIED.value


def test_create_order_defaults(client, menu):
    nasi, _ = menu
    resp = client.post(
        "/orders", json={"items": [{"menu_item_id": nasi.id, "quantity": 1}]}
    )
    assert resp.status_code == 201
    order = resp.json()["order"]
    assert order["customer_name"] == "Walk-in"
    assert order["payment_method"] == "cash"
    assert order["table_id"] is None


def test_create_order_unknown_menu_item(client, menu, db):
    payload = order_payload(menu)
    payload["items"].append({"menu_item_id": 777, "quantity": 1})
    resp = client.post("/orders", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "menu item not found", "code": "menu_item_not_found"}
    assert db.query(models.Order).count() == 0


def test_create_order_validation_errors(client, menu):
    resp = client.post("/orders", json=order_payload(menu, items=[]))
    assert resp.status_code == 400
    assert resp.json()["code"] == "empty_order"

    nasi, _ = menu
    resp = client.post(
        "/orders", json={"items": [{"menu_item_id": nasi.id, "quantity": 100}]}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_quantity"

    resp = client.post("/orders", json={"customer_name": "x"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_request"
    assert "items" in resp.json()["error"]


def test_update_status_requires_staff(client, menu):
    order_id = client.post("/orders", json=order_payload(menu)).json()["order"]["id"]
    resp = client.put("/orders", json={"id": order_id, "status": "accepted"})
    assert resp.status_code == 401


def test_paying_through_api_frees_table(cashier_client, menu, table, db):
    order_id = cashier_client.post(
        "/orders", json=order_payload(menu, table.id)
    ).json()["order"]["id"]

    resp = cashier_client.put("/orders", json={"id": order_id, "status": "served"})
    assert resp.json() == {"ok": True}
    db.refresh(table)
    assert table.status == TableStatus.OCCUPIED.value

    resp = cashier_client.put("/orders", json={"id": order_id, "status": "paid"})
    assert resp.status_code == 200
    db.refresh(table)
    assert table.status == TableStatus.AVAILABLE.value


def test_update_status_rejects_unknown_status_and_order(admin_client, menu):
    order_id = admin_client.post("/orders", json=order_payload(menu)).json()["order"]["id"]

    resp = admin_client.put("/orders", json={"id": order_id, "status": "eaten"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_request"

    resp = admin_client.put("/orders", json={"id": 9999, "status": "paid"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "order_not_found"


def test_list_orders_includes_items(admin_client, menu):
    admin_client.post("/orders", json=order_payload(menu))
    resp = admin_client.get("/orders")
    assert resp.status_code == 200
    (order,) = resp.json()["orders"]
    assert [item["menu_name"] for item in order["items"]] == ["Nasi Goreng", "Es Teh"]
    assert order["items"][1]["note"] == "less ice"
    assert order["items"][0]["price"] == 20000


def test_dashboard(admin_client, menu, table):
    admin_client.post("/orders", json=order_payload(menu, table.id))
    paid_id = admin_client.post("/orders", json=order_payload(menu)).json()["order"]["id"]
    admin_client.put("/orders", json={"id": paid_id, "status": "paid"})

    resp = admin_client.get("/dashboard")
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"menuItems", "tables", "orders", "summary"}
    assert body["summary"] == {
        "openOrders": 1,
        "revenueToday": 55000,
        "menuCount": 2,
        "availableTables": 0,
    }


def test_dashboard_requires_login(client):
    assert client.get("/dashboard").status_code == 401


def test_strict_transitions_setting(settings, database, menu):
    strict = settings.model_copy(update={"order_transitions": TransitionMode.STRICT})
    with TestClient(create_app(strict, database=database)) as client:
        client.post(
            "/auth/login",
            json={"email": "admin@example.com", "password": "adminpass"},
        )
        order_id = client.post("/orders", json=order_payload(menu)).json()["order"]["id"]

        resp = client.put("/orders", json={"id": order_id, "status": "paid"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "illegal_transition"

        resp = client.put("/orders", json={"id": order_id, "status": "accepted"})
        assert resp.json() == {"ok": True}


def test_ids_beyond_store_range_are_rejected(client, menu, db):
    resp = client.post(
        "/orders", json={"items": [{"menu_item_id": 2**70, "quantity": 1}]}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_menu_item_id"

    resp = client.post("/orders", json=order_payload(menu, table_id=2**70))
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_table_id"
    assert db.query(models.Order).count() == 0
