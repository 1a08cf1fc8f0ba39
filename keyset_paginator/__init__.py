"""Keyset (cursor) pagination for multi-key ordered SQL result sets."""

from .config import Settings, get_settings
from .errors import (
    PaginationError,
    NoRuleError,
    InvalidLimitError,
    InvalidOrderError,
    InvalidRuleError,
    UnknownKeyError,
    UnknownSchemaError,
    InvalidCursorError,
    ExecutionFailedError
)
from .pagination import (
    Order,
    ValueKind,
    CustomCodec,
    Rule,
    Direction,
    PagingQuery,
    Cursor,
    CursorCodec,
    Page,
    PaginationParams,
    Paginator,
    create_link_header
)

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "PaginationError",
    "NoRuleError",
    "InvalidLimitError",
    "InvalidOrderError",
    "InvalidRuleError",
    "UnknownKeyError",
    "UnknownSchemaError",
    "InvalidCursorError",
    "ExecutionFailedError",
    "Order",
    "ValueKind",
    "CustomCodec",
    "Rule",
    "Direction",
    "PagingQuery",
    "Cursor",
    "CursorCodec",
    "Page",
    "PaginationParams",
    "Paginator",
    "create_link_header"
]
