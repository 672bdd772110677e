from enum import Enum


class ErrorCode(str, Enum):
    INVALID_REQUEST = "invalid_request"
    EMPTY_ORDER = "empty_order"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_MENU_ITEM_ID = "invalid_menu_item_id"
    INVALID_TABLE_ID = "invalid_table_id"
    INVALID_CUSTOMER_NAME = "invalid_customer_name"
    INVALID_PAYMENT_METHOD = "invalid_payment_method"
    NOTE_TOO_LONG = "note_too_long"
    MENU_ITEM_NOT_FOUND = "menu_item_not_found"
    MENU_ITEM_UNAVAILABLE = "menu_item_unavailable"
    MENU_ITEM_IN_USE = "menu_item_in_use"
    TABLE_NOT_FOUND = "table_not_found"
    TABLE_IN_USE = "table_in_use"
    ORDER_NOT_FOUND = "order_not_found"
    ILLEGAL_TRANSITION = "illegal_transition"
    USER_NOT_FOUND = "user_not_found"
    EMAIL_TAKEN = "email_taken"
    SELF_DELETE = "self_delete"
    TOTAL_TOO_LARGE = "total_too_large"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    STORAGE = "storage"


class PosError(Exception):
    """Base class for failures reported to API callers."""

    status_code = 400

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ValidationError(PosError):
    """Malformed input or a reference to a row that does not exist."""


class NotFoundError(PosError):
    """The row being acted upon does not exist.

    Reported with the same 400 status as validation failures.
    """


class AuthenticationError(PosError):
    status_code = 401

    def __init__(self, message: str = "not authenticated"):
        super().__init__(ErrorCode.UNAUTHENTICATED, message)


class PermissionDeniedError(PosError):
    status_code = 403

    def __init__(self, message: str = "insufficient role"):
        super().__init__(ErrorCode.FORBIDDEN, message)


class StorageError(PosError):
    status_code = 500
