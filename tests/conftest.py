"""Shared fixtures: an in-memory store, the app built around it and clients."""
import pytest
from fastapi.testclient import TestClient

from restopos import crud
from restopos.config import Settings
from restopos.db import Database
from restopos.domain import UserRole
from restopos.main import create_app

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass"
CASHIER_EMAIL = "kasir@example.com"
CASHIER_PASSWORD = "cashierpass"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        secret_key="x" * 32,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        log_level="WARNING",
    )


@pytest.fixture
def database(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def menu(db):
    """Two menu items priced like the receipt examples."""
    nasi = crud.create_menu_item(
        db, {"name": "Nasi Goreng", "category": "Makanan", "price": 20000}
    )
    teh = crud.create_menu_item(
        db, {"name": "Es Teh", "category": "Minuman", "price": 15000}
    )
    return nasi, teh


@pytest.fixture
def table(db):
    return crud.create_table(db, {"label": "T1", "capacity": 4})


@pytest.fixture
def app(settings, database):
    return create_app(settings, database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def login(client, email, password):
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp


@pytest.fixture
def admin_client(client):
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return client


@pytest.fixture
def cashier_client(app, client, db):
    crud.create_user(
        db, CASHIER_EMAIL, "Kasir", CASHIER_PASSWORD, role=UserRole.CASHIER
    )
    cashier = TestClient(app)
    login(cashier, CASHIER_EMAIL, CASHIER_PASSWORD)
    return cashier
