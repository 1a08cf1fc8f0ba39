"""Pydantic models for page requests and page results."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .cursor import Cursor


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Query parameters for a page request."""

    limit: Optional[int] = Field(default=None, ge=1, description="Number of items per page")
    after: Optional[str] = Field(default=None, description="Cursor of the page to continue after")
    before: Optional[str] = Field(default=None, description="Cursor of the page to continue before")
    order: Optional[str] = Field(
        default=None,
        pattern="^(asc|desc|ASC|DESC)$",
        description="Default sort order"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "limit": 20,
                "after": "W3siayI6ImlkIiwidCI6ImludCIsInYiOjd9XQ",
                "order": "desc"
            }
        }
    )

    @property
    def cursor(self) -> Cursor:
        return Cursor(after=self.after, before=self.before)


class Page(BaseModel, Generic[T]):
    """One page of rows and the cursors around it."""

    items: List[T] = Field(default_factory=list, description="Rows of this page in display order")
    cursor: Cursor = Field(default_factory=Cursor, description="Cursors to the adjacent pages")
    has_more: bool = Field(default=False, description="Whether more rows exist in the traversal direction")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def next_cursor(self) -> Optional[str]:
        return self.cursor.after

    @property
    def prev_cursor(self) -> Optional[str]:
        return self.cursor.before
