"""RFC 9457 problem details for paginated endpoints.

Pagination errors carry a machine readable ``error_code`` next to the
standard members so clients can tell an expired or tampered cursor from a
bad page size without parsing ``detail``.
"""

from typing import Optional, Any
from pydantic import BaseModel, Field
from fastapi import Request
from fastapi.responses import JSONResponse


PROBLEM_JSON = "application/problem+json"


class ProblemDetail(BaseModel):
    """Problem details body; extension members are allowed."""

    type: str = Field(default="about:blank", description="A URI reference that identifies the problem type")
    title: str = Field(description="A short, human-readable summary of the problem type")
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(default=None, description="A human-readable explanation specific to this occurrence")
    instance: Optional[str] = Field(default=None, description="A URI reference that identifies the specific occurrence")
    error_code: Optional[str] = Field(default=None, description="Pagination error code, e.g. invalid_cursor")

    model_config = {"extra": "allow"}


def _render(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        headers={"Content-Type": PROBLEM_JSON}
    )


class ProblemDetailException(Exception):
    """Exception that renders as a problem details response.

    Args:
        status: HTTP status code
        title: Short summary of the problem type
        detail: Explanation of this occurrence, safe to show to clients
        type_uri: Problem type URI
        instance: Occurrence URI, defaults to the request path
        error_code: Pagination error code
        **extensions: Further extension members
    """

    def __init__(
        self,
        status: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: str = "about:blank",
        instance: Optional[str] = None,
        error_code: Optional[str] = None,
        **extensions: Any
    ):
        self.status = status
        self.title = title
        self.detail = detail
        self.type_uri = type_uri
        self.instance = instance
        self.error_code = error_code
        self.extensions = extensions
        super().__init__(detail or title)

    def to_problem_detail(self, request: Optional[Request] = None) -> ProblemDetail:
        instance = self.instance
        if instance is None and request:
            instance = str(request.url.path)

        return ProblemDetail(
            type=self.type_uri,
            title=self.title,
            status=self.status,
            detail=self.detail,
            instance=instance,
            error_code=self.error_code,
            **self.extensions
        )

    def to_response(self, request: Optional[Request] = None) -> JSONResponse:
        return _render(self.to_problem_detail(request))


class BadRequestError(ProblemDetailException):
    """400: the client sent a bad cursor, limit or order."""

    def __init__(self, detail: str, **extensions: Any):
        super().__init__(status=400, title="Bad Request", detail=detail, **extensions)


class InternalServerError(ProblemDetailException):
    """500: the paginator is misconfigured or the query failed."""

    def __init__(self, detail: str = "Internal server error", **extensions: Any):
        super().__init__(status=500, title="Internal Server Error", detail=detail, **extensions)


def create_problem_response(
    status: int,
    title: str,
    detail: Optional[str] = None,
    request: Optional[Request] = None,
    **extensions: Any
) -> JSONResponse:
    """Problem details response for errors raised outside the paginator."""
    instance = str(request.url.path) if request else None
    return _render(ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        **extensions
    ))
