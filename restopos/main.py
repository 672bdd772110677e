import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import auth, crud, dashboard, models, orders, schemas
from .config import Settings, get_settings
from .db import Database, get_db
from .errors import (
    AuthenticationError,
    ErrorCode,
    NotFoundError,
    PosError,
    ValidationError,
)
from .log import configure_logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/auth/login")
def login(
    login_in: schemas.LoginIn,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings_dep),
):
    user = crud.authenticate_user(db, login_in.email, login_in.password)
    if not user:
        logger.warning("login failed", extra={"email": login_in.email})
        raise AuthenticationError("incorrect email or password")
    auth.set_session_cookie(response, settings, user)
    return {"user": schemas.UserOut.model_validate(user)}


@router.delete("/auth/login")
def logout(response: Response, settings: Settings = Depends(auth.get_settings_dep)):
    auth.clear_session_cookie(response, settings)
    return {"ok": True}


@router.get("/me", response_model=schemas.UserOut)
def get_me(current_user: models.User = Depends(auth.get_current_user)):
    return current_user


def _get_menu_item_or_error(db: Session, item_id: int) -> models.MenuItem:
    item = crud.get_menu_item(db, item_id)
    if not item:
        raise NotFoundError(ErrorCode.MENU_ITEM_NOT_FOUND, "menu item not found")
    return item


@router.get("/menu")
def get_menu(db: Session = Depends(get_db)):
    items = crud.list_menu(db)
    return {"menuItems": [schemas.MenuItemOut.model_validate(item) for item in items]}


@router.post("/menu", status_code=201)
def create_menu(
    menu_in: schemas.MenuItemCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    item = crud.create_menu_item(db, menu_in.model_dump())
    return {"menuItem": schemas.MenuItemOut.model_validate(item)}


@router.put("/menu")
def update_menu(
    menu_in: schemas.MenuItemUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    item = _get_menu_item_or_error(db, menu_in.id)
    crud.update_menu_item(db, item, menu_in.model_dump(exclude={"id"}))
    return {"ok": True}


@router.delete("/menu")
def delete_menu(
    body: schemas.IdIn,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    item = _get_menu_item_or_error(db, body.id)
    crud.delete_menu_item(db, item)
    return {"ok": True}


def _get_table_or_error(db: Session, table_id: int) -> models.Table:
    table = crud.get_table(db, table_id)
    if not table:
        raise NotFoundError(ErrorCode.TABLE_NOT_FOUND, "table not found")
    return table


@router.get("/tables")
def get_tables(db: Session = Depends(get_db)):
    tables = crud.list_tables(db)
    return {"tables": [schemas.TableOut.model_validate(table) for table in tables]}


@router.post("/tables", status_code=201)
def create_table(
    table_in: schemas.TableCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    table = crud.create_table(db, table_in.model_dump())
    return {"table": schemas.TableOut.model_validate(table)}


@router.put("/tables")
def update_table(
    table_in: schemas.TableUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_staff),
):
    table = _get_table_or_error(db, table_in.id)
    crud.update_table(db, table, table_in.model_dump(exclude={"id"}))
    return {"ok": True}


@router.delete("/tables")
def delete_table(
    body: schemas.IdIn,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    table = _get_table_or_error(db, body.id)
    crud.delete_table(db, table)
    return {"ok": True}


def _get_user_or_error(db: Session, user_id: int) -> models.User:
    user = crud.get_user(db, user_id)
    if not user:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "user not found")
    return user


@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    return {"users": [schemas.UserOut.model_validate(u) for u in crud.list_users(db)]}


@router.post("/users", status_code=201)
def create_user(
    user_in: schemas.UserCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    user = crud.create_user(
        db, user_in.email, user_in.name, user_in.password, role=user_in.role
    )
    return {"user": schemas.UserOut.model_validate(user)}


@router.put("/users")
def update_user(
    user_in: schemas.UserUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(auth.require_admin),
):
    user = _get_user_or_error(db, user_in.id)
    crud.update_user(db, user, user_in.model_dump(exclude={"id"}))
    return {"ok": True}


@router.delete("/users")
def delete_user(
    body: schemas.IdIn,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_admin),
):
    if current_user.id == body.id:
        raise ValidationError(ErrorCode.SELF_DELETE, "cannot delete your own account")
    user = _get_user_or_error(db, body.id)
    crud.delete_user(db, user)
    return {"ok": True}


@router.get("/orders")
def list_orders(
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings_dep),
    _: models.User = Depends(auth.require_staff),
):
    recent = orders.list_recent_orders(db, settings.orders_list_limit)
    return {"orders": [schemas.OrderWithItemsOut.model_validate(o) for o in recent]}


@router.post("/orders", status_code=201)
def create_order(order_in: schemas.OrderCreate, db: Session = Depends(get_db)):
    order = orders.create_order(db, order_in.to_new_order())
    return {"order": schemas.OrderOut.model_validate(order)}


@router.put("/orders")
def update_order_status(
    status_in: schemas.OrderStatusIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings_dep),
    _: models.User = Depends(auth.require_staff),
):
    orders.update_order_status(
        db, status_in.id, status_in.status, settings.order_transitions
    )
    return {"ok": True}


@router.get("/dashboard", response_model=schemas.DashboardOut)
def get_dashboard(
    db: Session = Depends(get_db),
    settings: Settings = Depends(auth.get_settings_dep),
    _: models.User = Depends(auth.require_staff),
):
    return dashboard.build_dashboard(db, settings.dashboard_order_limit)


async def pos_error_handler(request: Request, exc: PosError):
    logger.warning(
        exc.message,
        extra={"code": exc.code.value, "route": request.url.path},
    )
    return JSONResponse(
        {"error": exc.message, "code": exc.code.value}, status_code=exc.status_code
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    message = ", ".join(messages) or "invalid request"
    logger.warning(message, extra={"route": request.url.path})
    return JSONResponse(
        {"error": message, "code": ErrorCode.INVALID_REQUEST.value}, status_code=400
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.database
    database.create_all()
    db = database.session()
    try:
        crud.ensure_admin_user(db, settings)
        if settings.seed_demo_data:
            crud.seed_menu(db)
            crud.seed_tables(db)
    finally:
        db.close()
    logger.info("restopos started")
    yield
    if app.state.owns_database:
        database.close()


def create_app(
    settings: Optional[Settings] = None, database: Optional[Database] = None
) -> FastAPI:
    """Build the application.

    A ``database`` passed in stays owned by the caller; otherwise one is
    opened from ``settings.database_url`` and closed at shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="restopos", lifespan=lifespan)
    app.state.settings = settings
    app.state.owns_database = database is None
    app.state.database = database or Database(settings.database_url)
    app.add_exception_handler(PosError, pos_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)
    return app
