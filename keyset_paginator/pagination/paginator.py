"""Keyset paginator: validates, builds the paging query and assembles pages."""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

from ..config import get_settings
from ..errors.pagination import (
    ExecutionFailedError, InvalidLimitError, NoRuleError, PaginationError, UnknownKeyError
)
from .page import Page, PaginationParams
from .cursor import Cursor, CursorCodec
from .query import Direction, PagingQuery, build_query
from .rules import CompiledRule, Order, Rule, compile_rules, rules_from_keys


logger = logging.getLogger(__name__)


def _item(row: Any, names: Sequence[str]) -> Any:
    for name in names:
        try:
            return row[name]
        except (KeyError, IndexError, TypeError):
            continue
    raise KeyError(names[0])


def _field_value(row: Any, rule: CompiledRule) -> Any:
    """Read a sort key from a mapping row or an object row.

    Item access tries the logical key, then the resolved column name.
    """
    names = [rule.key]
    if rule.column and rule.column != rule.key:
        names.append(rule.column)

    if not isinstance(row, Mapping) and hasattr(row, rule.key):
        return getattr(row, rule.key)
    # asyncpg Records support item access without being Mappings
    try:
        return _item(row, names)
    except KeyError:
        raise UnknownKeyError(rule.key, type(row))


class Paginator:
    """Keyset paginator for one query shape.

    Rules are validated and compiled once here; the compiled plan is
    immutable, so one instance can serve concurrent requests. Cursors are
    passed per call.

    Args:
        rules: Sort rules in tie-break order, most significant first
        keys: Shorthand for ``[Rule(key) for key in keys]`` when no rules are given
        limit: Page size, defaults to ``default_page_size``
        order: Default order for rules without one, defaults to ``default_order``
        resolver: Optional schema resolver for key to column mapping
        record_type: Record type handed to the resolver
        codec: Cursor codec, defaults to one configured from settings

    Raises:
        NoRuleError: If there are no rules
        InvalidLimitError: If the limit is not positive
        InvalidOrderError: If the order is not ASC or DESC
        InvalidRuleError: If a rule is malformed
        UnknownKeyError: If the resolver can't map a key
        UnknownSchemaError: If the resolver doesn't know the record type
    """

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        keys: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        order: Union[Order, str, None] = None,
        resolver: Any = None,
        record_type: Any = None,
        codec: Optional[CursorCodec] = None
    ):
        settings = get_settings()

        if rules is None:
            rules = rules_from_keys(keys if keys is not None else settings.default_keys)
        self.rules: Tuple[Rule, ...] = tuple(rules)
        self.limit = settings.default_page_size if limit is None else limit
        self.codec = codec or CursorCodec.from_settings()

        # validate
        if not self.rules:
            raise NoRuleError()
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise InvalidLimitError(self.limit)
        self.order = Order.parse(order if order is not None else settings.default_order)

        # setup
        self.plan: Tuple[CompiledRule, ...] = compile_rules(
            self.rules, self.order, resolver, record_type
        )

    @classmethod
    def from_params(
        cls,
        params: PaginationParams,
        rules: Optional[Sequence[Rule]] = None,
        keys: Optional[Sequence[str]] = None,
        **kwargs: Any
    ) -> "Paginator":
        """Build a paginator from request parameters.

        Raises:
            InvalidLimitError: If the requested limit exceeds ``max_page_size``
        """
        settings = get_settings()
        if params.limit is not None and params.limit > settings.max_page_size:
            raise InvalidLimitError(params.limit, settings.max_page_size)
        return cls(rules=rules, keys=keys, limit=params.limit, order=params.order, **kwargs)

    @staticmethod
    def _cursor(cursor: Optional[Cursor], after: Optional[str], before: Optional[str]) -> Cursor:
        if cursor is not None:
            return cursor
        return Cursor(after=after, before=before)

    def decode_cursor(self, cursor: Cursor) -> Tuple[Any, ...]:
        """Decode the active token, backfilling NULLs from rule replacements.

        Returns an empty tuple on the first page.

        Raises:
            InvalidCursorError: If the token doesn't match the rules
        """
        token = cursor.active
        if token is None:
            return ()

        values = self.codec.decode(token, self.plan)
        return tuple(
            rule.null_replacement if value is None else value
            for rule, value in zip(self.plan, values)
        )

    def build_query(
        self,
        cursor: Optional[Cursor] = None,
        after: Optional[str] = None,
        before: Optional[str] = None
    ) -> PagingQuery:
        """Build the paging query without executing it.

        Pass either a ``Cursor`` or the ``after``/``before`` tokens. ``after``
        takes precedence when both are set.
        """
        cursor = self._cursor(cursor, after, before)
        values = self.decode_cursor(cursor)
        query = build_query(self.plan, values, cursor.direction, self.limit)
        logger.debug(f"Paging query ({cursor.direction.value}): {query.explain()}")
        return query

    async def paginate(
        self,
        engine: Any,
        cursor: Optional[Cursor] = None,
        after: Optional[str] = None,
        before: Optional[str] = None
    ) -> Page:
        """Fetch one page through a query engine.

        Args:
            engine: Object with ``async execute(query) -> rows``
            cursor: Incoming cursor pair
            after: Forward token, if no cursor is given
            before: Backward token, if no cursor is given

        Returns:
            Page with rows in display order and the adjacent cursors

        Raises:
            PaginationError: For invalid configuration or cursors
            ExecutionFailedError: If the engine fails
        """
        cursor = self._cursor(cursor, after, before)
        query = self.build_query(cursor)

        try:
            rows = await engine.execute(query)
        except PaginationError:
            raise
        except Exception as e:
            logger.error(f"Paging query failed: {type(e).__name__}: {e}")
            raise ExecutionFailedError() from e

        return self.page_from_rows(rows, cursor)

    def encode_row(self, row: Any) -> str:
        """Encode a row's sort-key values into a token."""
        return self.codec.encode(self.plan, [_field_value(row, rule) for rule in self.plan])

    def page_from_rows(
        self,
        rows: Iterable[Any],
        cursor: Optional[Cursor] = None,
        after: Optional[str] = None,
        before: Optional[str] = None
    ) -> Page:
        """Trim, reorder and encode rows fetched for ``build_query()``.

        ``rows`` must be the engine result for the same cursor, in fetch
        order and up to ``limit + 1`` long.
        """
        direction = self._cursor(cursor, after, before).direction
        items = list(rows)
        if not items:
            return Page(items=[], cursor=Cursor(), has_more=False)

        has_more = len(items) > self.limit
        if has_more:
            items = items[:self.limit]
        if direction is Direction.BACKWARD:
            items.reverse()

        outgoing = Cursor()
        if direction is Direction.BACKWARD or has_more:
            outgoing.after = self.encode_row(items[-1])
        if direction is Direction.FORWARD or (has_more and direction is Direction.BACKWARD):
            outgoing.before = self.encode_row(items[0])

        logger.debug(
            f"Page of {len(items)} rows ({direction.value}), has_more={has_more}, "
            f"after={outgoing.after is not None}, before={outgoing.before is not None}"
        )
        return Page(items=items, cursor=outgoing, has_more=has_more)
