import logging
from typing import Dict, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import auth, models
from .config import Settings
from .domain import TableStatus, UserRole
from .errors import ErrorCode, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email.lower()).first()


def list_users(db: Session):
    return db.query(models.User).order_by(models.User.id).all()


def create_user(
    db: Session, email: str, name: str, password: str, role: UserRole = UserRole.CASHIER
):
    if get_user_by_email(db, email):
        raise ValidationError(ErrorCode.EMAIL_TAKEN, "email already registered")
    user = models.User(
        email=email.lower(),
        name=name,
        password_hash=auth.get_password_hash(password),
        role=UserRole(role).value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: models.User, user_data: dict):
    if user_data.get("email"):
        email = user_data["email"].lower()
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise ValidationError(ErrorCode.EMAIL_TAKEN, "email already registered")
        user.email = email
    if user_data.get("name"):
        user.name = user_data["name"]
    if user_data.get("role"):
        user.role = UserRole(user_data["role"]).value
    if user_data.get("password"):
        user.password_hash = auth.get_password_hash(user_data["password"])
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: models.User):
    db.delete(user)
    db.commit()


def ensure_admin_user(db: Session, settings: Settings):
    if not settings.admin_email or not settings.admin_password:
        return None
    existing = (
        db.query(models.User).filter(models.User.role == UserRole.ADMIN.value).first()
    )
    if existing:
        return existing
    logger.info("creating bootstrap admin", extra={"email": settings.admin_email})
    return create_user(
        db,
        settings.admin_email,
        settings.admin_name,
        settings.admin_password,
        role=UserRole.ADMIN,
    )


def authenticate_user(db: Session, email: str, password: str):
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not auth.verify_password(password, user.password_hash):
        return None
    return user


def list_menu(db: Session):
    return (
        db.query(models.MenuItem)
        .order_by(models.MenuItem.category, models.MenuItem.name)
        .all()
    )


def get_menu_item(db: Session, item_id: int):
    return db.query(models.MenuItem).filter(models.MenuItem.id == item_id).first()


def get_menu_items(db: Session, item_ids: Iterable[int]) -> Dict[int, models.MenuItem]:
    """Look up several menu items in one query, keyed by id."""
    ids = set(item_ids)
    if not ids:
        return {}
    rows = db.query(models.MenuItem).filter(models.MenuItem.id.in_(ids)).all()
    return {item.id: item for item in rows}


def create_menu_item(db: Session, item_data: dict):
    item = models.MenuItem(
        name=item_data["name"],
        category=item_data["category"],
        price=item_data["price"],
        is_available=item_data.get("is_available", True),
        photo_url=item_data.get("photo_url") or None,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_menu_item(db: Session, item: models.MenuItem, item_data: dict):
    for key in ["name", "category", "price", "is_available"]:
        if key in item_data:
            setattr(item, key, item_data[key])
    if "photo_url" in item_data:
        item.photo_url = item_data["photo_url"] or None
    db.commit()
    db.refresh(item)
    return item


def delete_menu_item(db: Session, item: models.MenuItem):
    db.delete(item)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(
            ErrorCode.MENU_ITEM_IN_USE, "menu item is referenced by existing orders"
        ) from exc


def list_tables(db: Session):
    return db.query(models.Table).order_by(models.Table.id).all()


def get_table(db: Session, table_id: int):
    return db.query(models.Table).filter(models.Table.id == table_id).first()


def create_table(db: Session, table_data: dict):
    table = models.Table(
        label=table_data["label"],
        capacity=table_data.get("capacity", 2),
        status=TableStatus(table_data.get("status", TableStatus.AVAILABLE)).value,
        note=table_data.get("note") or None,
    )
    db.add(table)
    db.commit()
    db.refresh(table)
    return table


def update_table(db: Session, table: models.Table, table_data: dict):
    for key in ["label", "capacity"]:
        if table_data.get(key) is not None:
            setattr(table, key, table_data[key])
    # a blank note means "not supplied", as on create
    if table_data.get("note"):
        table.note = table_data["note"]
    if table_data.get("status") is not None:
        table.status = TableStatus(table_data["status"]).value
    db.commit()
    db.refresh(table)
    return table


def set_table_status(db: Session, table_id: int, status: TableStatus):
    table = get_table(db, table_id)
    if not table:
        raise NotFoundError(ErrorCode.TABLE_NOT_FOUND, "table not found")
    table.status = TableStatus(status).value
    return table


def delete_table(db: Session, table: models.Table):
    db.delete(table)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(
            ErrorCode.TABLE_IN_USE, "table is referenced by existing orders"
        ) from exc


def seed_menu(db: Session):
    if db.query(models.MenuItem).count() > 0:
        return
    samples = [
        {"name": "Nasi Goreng Spesial", "category": "Makanan", "price": 28000},
        {"name": "Mie Ayam Bakso", "category": "Makanan", "price": 22000},
        {"name": "Sate Ayam", "category": "Makanan", "price": 30000},
        {"name": "Es Teh Manis", "category": "Minuman", "price": 6000},
        {"name": "Kopi Susu", "category": "Minuman", "price": 18000},
        {"name": "Pisang Goreng", "category": "Camilan", "price": 12000},
    ]
    for item in samples:
        create_menu_item(db, item)


def seed_tables(db: Session, count: int = 6):
    if db.query(models.Table).count() > 0:
        return
    for number in range(1, count + 1):
        create_table(db, {"label": f"T{number}", "capacity": 4 if number % 2 else 2})
