from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class TransitionMode(str, Enum):
    """How order status changes are checked.

    ``PERMISSIVE`` lets staff move an order to any status, which is how
    mistakes get corrected at the counter. ``STRICT`` only allows the kitchen
    workflow order and treats paid and cancelled as terminal.
    """

    PERMISSIVE = "permissive"
    STRICT = "strict"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESTOPOS_", env_file=".env", extra="ignore"
    )

    database_url: str = "sqlite:///./restopos.db"
    secret_key: str = "change-me"
    session_cookie_name: str = "pos_session"
    session_max_age: int = 60 * 60 * 8
    order_transitions: TransitionMode = TransitionMode.PERMISSIVE
    dashboard_order_limit: int = 24
    orders_list_limit: int = 30
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    admin_name: str = "Admin"
    seed_demo_data: bool = False
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
