import logging
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import Depends, Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from . import models
from .config import Settings
from .db import get_db
from .domain import UserRole
from .errors import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

ph = PasswordHasher()

SESSION_SALT = "restopos-session"


def get_password_hash(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=SESSION_SALT)


def create_session_token(settings: Settings, user: models.User) -> str:
    return _serializer(settings).dumps({"id": user.id, "role": user.role})


def read_session_token(settings: Settings, token: str) -> Optional[dict]:
    """Return the session payload, or ``None`` if the token is bad or expired."""
    try:
        data = _serializer(settings).loads(token, max_age=settings.session_max_age)
    except SignatureExpired:
        logger.info("session expired")
        return None
    except BadSignature:
        logger.warning("invalid session cookie")
        return None
    if not isinstance(data, dict) or "id" not in data or "role" not in data:
        return None
    return data


def set_session_cookie(response: Response, settings: Settings, user: models.User):
    response.set_cookie(
        settings.session_cookie_name,
        create_session_token(settings, user),
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings):
    response.delete_cookie(settings.session_cookie_name, path="/")


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
) -> models.User:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise AuthenticationError()
    session = read_session_token(settings, token)
    if session is None:
        raise AuthenticationError()
    user = db.query(models.User).filter(models.User.id == session["id"]).first()
    # a role change or deleted account invalidates outstanding cookies
    if not user or user.role != session["role"]:
        raise AuthenticationError()
    return user


def require_roles(*roles: UserRole):
    allowed = {UserRole(role).value for role in roles}

    def dependency(current_user: models.User = Depends(get_current_user)):
        if current_user.role not in allowed:
            raise PermissionDeniedError()
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_staff = require_roles(UserRole.ADMIN, UserRole.CASHIER)
