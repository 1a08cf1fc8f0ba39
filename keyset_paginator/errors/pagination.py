"""Pagination error taxonomy.

Every error is a problem-details exception so it renders as an RFC 9457
response when it escapes into a FastAPI app, and a ``PaginationError`` so
library callers can catch the whole family at once.
"""

from typing import Any, Optional

from .problem_details import BadRequestError, InternalServerError


class PaginationError(Exception):
    """Marker base class for all pagination errors."""

    code: str = "pagination_error"


class NoRuleError(PaginationError, InternalServerError):
    """The paginator was configured without any sort rule."""

    code = "no_rule"

    def __init__(self, detail: str = "Paginator requires at least one rule", **extensions: Any):
        super().__init__(detail, error_code=self.code, **extensions)


class InvalidLimitError(PaginationError, BadRequestError):
    """The page size is not a positive integer within bounds."""

    code = "invalid_limit"

    def __init__(self, limit: Any, maximum: Optional[int] = None, **extensions: Any):
        if maximum is None:
            detail = f"Invalid limit: {limit} (must be greater than 0)"
        else:
            detail = f"Invalid limit: {limit} (must be between 1 and {maximum})"
        self.limit = limit
        super().__init__(detail, error_code=self.code, **extensions)


class InvalidOrderError(PaginationError, BadRequestError):
    """The sort direction is neither ASC nor DESC."""

    code = "invalid_order"

    def __init__(self, order: Any, **extensions: Any):
        self.order = order
        super().__init__(
            f"Invalid order: {order!r} (must be 'ASC' or 'DESC')",
            error_code=self.code,
            **extensions
        )


class InvalidRuleError(PaginationError, InternalServerError):
    """A rule is structurally malformed."""

    code = "invalid_rule"

    def __init__(self, detail: str, **extensions: Any):
        super().__init__(detail, error_code=self.code, **extensions)


class UnknownKeyError(PaginationError, InternalServerError):
    """A rule key does not map to a column of the record type."""

    code = "unknown_key"

    def __init__(self, key: str, record_type: Any = None, **extensions: Any):
        self.key = key
        if record_type is None:
            detail = f"Unknown key: '{key}'"
        else:
            name = getattr(record_type, "__name__", record_type)
            detail = f"Unknown key: '{key}' on '{name}'"
        super().__init__(detail, error_code=self.code, **extensions)


class UnknownSchemaError(PaginationError, InternalServerError):
    """The schema resolver does not know the record type."""

    code = "unknown_schema"

    def __init__(self, record_type: Any, **extensions: Any):
        self.record_type = record_type
        name = getattr(record_type, "__name__", record_type)
        super().__init__(f"Unknown schema: '{name}'", error_code=self.code, **extensions)


class InvalidCursorError(PaginationError, BadRequestError):
    """A client supplied cursor could not be decoded.

    The detail is always generic; reasons are only logged.
    """

    code = "invalid_cursor"

    def __init__(self, **extensions: Any):
        super().__init__("Invalid cursor", error_code=self.code, **extensions)


class ExecutionFailedError(PaginationError, InternalServerError):
    """The query engine failed to execute the paging query."""

    code = "execution_failed"

    def __init__(self, detail: str = "Query execution failed", **extensions: Any):
        super().__init__(detail, error_code=self.code, **extensions)
