"""Seek predicate, ORDER BY and LIMIT construction."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..config import get_settings
from ..errors.pagination import InvalidCursorError, InvalidLimitError
from .rules import CompiledRule, Order, sql_literal


class Direction(str, Enum):
    """Traversal direction of a page request."""

    FORWARD = "forward"
    BACKWARD = "backward"
    NONE = "none"


PARAMSTYLES = ("numeric", "qmark")


def _operator(rule: CompiledRule, direction: Direction) -> str:
    if (direction is Direction.FORWARD and rule.order is Order.ASC) or \
            (direction is Direction.BACKWARD and rule.order is Order.DESC):
        return ">"
    return "<"


def _seek(
    rules: Sequence[CompiledRule],
    direction: Direction,
    placeholder: Callable[[int], str]
) -> str:
    # a > ? OR (a = ? AND b > ?) OR (a = ? AND b = ? AND c > ?)
    clauses = []
    position = 0
    for i, rule in enumerate(rules):
        parts = []
        for prefix in rules[:i]:
            parts.append(f"{prefix.expr} = {placeholder(position)}")
            position += 1
        parts.append(f"{rule.expr} {_operator(rule, direction)} {placeholder(position)}")
        position += 1
        clause = " AND ".join(parts)
        clauses.append(clause if i == 0 else f"({clause})")
    return " OR ".join(clauses)


def _placeholders(start: int, paramstyle: str) -> Callable[[int], str]:
    if paramstyle == "qmark":
        return lambda position: "?"
    if paramstyle == "numeric":
        return lambda position: f"${start + position}"
    raise ValueError(f"Unsupported paramstyle: {paramstyle!r} (expected one of {PARAMSTYLES})")


def build_order(rules: Sequence[CompiledRule], direction: Direction) -> List[Tuple[str, Order]]:
    """ORDER BY pairs in rule order, flipped for backward traversal."""
    return [
        (rule.expr, rule.order.flip() if direction is Direction.BACKWARD else rule.order)
        for rule in rules
    ]


def build_predicate(
    rules: Sequence[CompiledRule],
    values: Sequence[Any],
    direction: Direction,
    start: int = 1,
    paramstyle: str = "numeric"
) -> Optional[str]:
    """Build the keyset range predicate.

    Args:
        rules: Compiled rules in tie-break order
        values: Decoded boundary values, empty on the first page
        direction: Traversal direction
        start: First placeholder number for the numeric style
        paramstyle: ``numeric`` ($1, $2, ...) or ``qmark`` (?)

    Returns:
        Predicate text, or None when there are no boundary values
    """
    if not values:
        return None
    if len(values) != len(rules):
        raise InvalidCursorError()
    return _seek(rules, direction, _placeholders(start, paramstyle))


def build_args(values: Sequence[Any]) -> List[Any]:
    """Arguments for the predicate: values[0..i] for each clause i."""
    args: List[Any] = []
    for i in range(1, len(values) + 1):
        args.extend(values[:i])
    return args


def fetch_limit(limit: int) -> int:
    """Rows to fetch: one extra to detect a further page."""
    if limit <= 0:
        raise InvalidLimitError(limit)
    return limit + 1


@dataclass(frozen=True)
class PagingQuery:
    """Query parts for one page, ready for a query engine."""

    rules: Tuple[CompiledRule, ...]
    values: Tuple[Any, ...]
    direction: Direction
    limit: int

    @property
    def fetch_limit(self) -> int:
        return fetch_limit(self.limit)

    @property
    def args(self) -> List[Any]:
        return build_args(self.values)

    @property
    def order_by(self) -> List[Tuple[str, Order]]:
        return build_order(self.rules, self.direction)

    @property
    def where(self) -> Optional[str]:
        return self.where_clause()

    def where_clause(self, start: int = 1, paramstyle: str = "numeric") -> Optional[str]:
        return build_predicate(self.rules, self.values, self.direction, start, paramstyle)

    def order_by_clause(self) -> str:
        return ", ".join(f"{expr} {order.value}" for expr, order in self.order_by)

    def to_sql(
        self,
        select: str,
        filters: Optional[str] = None,
        filter_args: Sequence[Any] = (),
        paramstyle: Optional[str] = None
    ) -> Tuple[str, List[Any]]:
        """Render a complete statement.

        The seek predicate is ANDed after the caller's own filters and its
        placeholders are numbered after ``filter_args``.

        Args:
            select: ``SELECT ... FROM ...`` head of the statement
            filters: Optional caller WHERE condition
            filter_args: Arguments for ``filters``
            paramstyle: Placeholder style shared with ``filters``, defaults to
                the ``paramstyle`` setting

        Returns:
            Tuple of (sql, args)
        """
        paramstyle = paramstyle or get_settings().paramstyle
        args = list(filter_args)
        conditions = []
        if filters:
            conditions.append(f"({filters})")

        predicate = self.where_clause(start=len(args) + 1, paramstyle=paramstyle)
        if predicate:
            conditions.append(f"({predicate})")
            args.extend(self.args)

        sql = select.strip()
        if conditions:
            sql += "\nWHERE " + " AND ".join(conditions)
        sql += "\nORDER BY " + self.order_by_clause()
        sql += "\nLIMIT " + _placeholders(len(args) + 1, paramstyle)(0)
        args.append(self.fetch_limit)
        return sql, args

    def explain(self) -> str:
        """Statement tail with literals inlined, for logs only."""
        tail = ""
        if self.values:
            args = self.args
            tail = "WHERE " + _seek(self.rules, self.direction, lambda i: sql_literal(args[i])) + " "
        return f"{tail}ORDER BY {self.order_by_clause()} LIMIT {self.fetch_limit}"


def build_query(
    rules: Sequence[CompiledRule],
    values: Sequence[Any],
    direction: Direction,
    limit: int
) -> PagingQuery:
    """Bundle rules, boundary values, direction and page size into a query."""
    if values and len(values) != len(rules):
        raise InvalidCursorError()
    return PagingQuery(
        rules=tuple(rules),
        values=tuple(values),
        direction=direction,
        limit=limit
    )
