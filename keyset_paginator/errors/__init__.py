"""Error handling module for the keyset paginator."""

from .problem_details import (
    ProblemDetail,
    ProblemDetailException,
    BadRequestError,
    InternalServerError,
    create_problem_response
)
from .pagination import (
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
from .handlers import register_exception_handlers

__all__ = [
    "ProblemDetail",
    "ProblemDetailException",
    "BadRequestError",
    "InternalServerError",
    "create_problem_response",
    "PaginationError",
    "NoRuleError",
    "InvalidLimitError",
    "InvalidOrderError",
    "InvalidRuleError",
    "UnknownKeyError",
    "UnknownSchemaError",
    "InvalidCursorError",
    "ExecutionFailedError",
    "register_exception_handlers"
]
