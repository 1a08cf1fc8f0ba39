"""Keyset pagination engine: rules, cursor codec, query builder, paginator."""

from .rules import (
    Order,
    ValueKind,
    CustomCodec,
    Rule,
    CompiledRule,
    compile_rules,
    rules_from_keys,
    sql_literal
)
from .query import (
    Direction,
    PagingQuery,
    build_order,
    build_predicate,
    build_args,
    build_query,
    fetch_limit
)
from .cursor import Cursor, CursorCodec, encode_cursor, decode_cursor
from .page import Page, PaginationParams
from .links import create_link_header
from .paginator import Paginator

__all__ = [
    "Order",
    "ValueKind",
    "CustomCodec",
    "Rule",
    "CompiledRule",
    "compile_rules",
    "rules_from_keys",
    "sql_literal",
    "Direction",
    "PagingQuery",
    "build_order",
    "build_predicate",
    "build_args",
    "build_query",
    "fetch_limit",
    "Cursor",
    "CursorCodec",
    "encode_cursor",
    "decode_cursor",
    "Page",
    "PaginationParams",
    "create_link_header",
    "Paginator"
]
