"""Sort rule model: orders, value kinds, custom codecs and compiled rules."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Tuple, Union
from uuid import UUID

from ..errors.pagination import InvalidOrderError, InvalidRuleError


logger = logging.getLogger(__name__)


class Order(str, Enum):
    """Sort direction of a single key."""

    ASC = "ASC"
    DESC = "DESC"

    def flip(self) -> "Order":
        """Return the opposite direction."""
        return Order.DESC if self is Order.ASC else Order.ASC

    @classmethod
    def parse(cls, value: Union["Order", str, None]) -> "Order":
        """Resolve a member or a case-insensitive name.

        Raises:
            InvalidOrderError: If the value is not ASC or DESC
        """
        if isinstance(value, Order):
            return value
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        raise InvalidOrderError(value)


class ValueKind(str, Enum):
    """Closed set of value kinds a cursor position can hold."""

    INTEGER = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT = "str"
    BOOLEAN = "bool"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"

    @property
    def python_type(self) -> type:
        return _KIND_TYPES[self]

    @classmethod
    def for_type(cls, python_type: type) -> Optional["ValueKind"]:
        """Map a Python type to its kind, or None when unsupported."""
        # bool before int, datetime before date
        for kind in (cls.BOOLEAN, cls.INTEGER, cls.FLOAT, cls.DECIMAL,
                     cls.TEXT, cls.DATETIME, cls.DATE, cls.UUID):
            if issubclass(python_type, _KIND_TYPES[kind]):
                return kind
        return None

    @classmethod
    def infer(cls, value: Any) -> Optional["ValueKind"]:
        """Infer the kind of a concrete value."""
        return cls.for_type(type(value))


_KIND_TYPES = {
    ValueKind.INTEGER: int,
    ValueKind.FLOAT: float,
    ValueKind.DECIMAL: Decimal,
    ValueKind.TEXT: str,
    ValueKind.BOOLEAN: bool,
    ValueKind.DATETIME: datetime,
    ValueKind.DATE: date,
    ValueKind.UUID: UUID,
}


@dataclass(frozen=True)
class CustomCodec:
    """Encode/decode hooks for values the token format can't carry natively.

    ``name`` is written into the token as the value's type tag, so it must be
    stable and must not clash with a built-in kind tag.
    """

    name: str
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]

    def __post_init__(self):
        if not self.name:
            raise InvalidRuleError("Custom codec requires a name")
        if self.name in {kind.value for kind in ValueKind}:
            raise InvalidRuleError(f"Custom codec name '{self.name}' clashes with a built-in kind")


@dataclass(frozen=True)
class Rule:
    """Configuration of one sort key."""

    key: str
    expr: Optional[str] = None
    order: Optional[Union[Order, str]] = None
    null_replacement: Any = None
    sql_type: Optional[str] = None
    kind: Optional[ValueKind] = None
    codec: Optional[CustomCodec] = None

    def validate(self) -> None:
        """Check the rule's structure without touching the schema.

        Raises:
            InvalidRuleError: If the rule is malformed
            InvalidOrderError: If an explicit order is not ASC or DESC
        """
        if not isinstance(self.key, str) or not self.key.strip():
            raise InvalidRuleError("Rule key must be a non-empty string")
        if self.kind is not None and self.codec is not None:
            raise InvalidRuleError(f"Rule '{self.key}' declares both a kind and a custom codec")
        if self.kind is not None and not isinstance(self.kind, ValueKind):
            raise InvalidRuleError(f"Rule '{self.key}' has an unknown kind: {self.kind!r}")
        if self.sql_type is not None and not self.sql_type.strip():
            raise InvalidRuleError(f"Rule '{self.key}' has an empty sql_type")
        if self.expr is not None and not self.expr.strip():
            raise InvalidRuleError(f"Rule '{self.key}' has an empty expression")
        if self.order is not None:
            Order.parse(self.order)


@dataclass(frozen=True)
class CompiledRule:
    """A rule with its expression, order and kind fully resolved.

    ``column`` is the physical column name when the schema resolver mapped
    the key; rows keyed by column name are read through it.
    """

    key: str
    expr: str
    order: Order
    null_replacement: Any = None
    kind: Optional[ValueKind] = None
    codec: Optional[CustomCodec] = None
    column: Optional[str] = None

    @property
    def type_tag(self) -> Optional[str]:
        """Tag the token records for this position, if fixed by the rule."""
        if self.codec is not None:
            return self.codec.name
        if self.kind is not None:
            return self.kind.value
        return None


def sql_literal(value: Any) -> str:
    """Render a Python value as an SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        text = value.isoformat()
    else:
        text = str(value)
    return "'" + text.replace("'", "''") + "'"


def compile_rules(
    rules: Sequence[Rule],
    order: Union[Order, str, None],
    resolver: Any = None,
    record_type: Any = None
) -> Tuple[CompiledRule, ...]:
    """Resolve rules into an immutable plan.

    Per rule: inherit the default order, resolve the physical expression
    from the schema, wrap it in COALESCE for a NULL replacement and finally
    CAST it to ``sql_type``.

    Args:
        rules: Rules in tie-break priority, most significant first
        order: Default order for rules that don't set one
        resolver: Optional schema resolver (see ``keyset_paginator.db.schema``)
        record_type: Record type the resolver should look keys up on

    Returns:
        Tuple of compiled rules in the same order

    Raises:
        InvalidRuleError: If a rule is malformed or keys repeat
        InvalidOrderError: If neither the rule nor the default sets an order
        UnknownKeyError: If the resolver can't map a key
        UnknownSchemaError: If the resolver doesn't know the record type
    """
    default_order = Order.parse(order) if order is not None else None

    seen = set()
    for rule in rules:
        rule.validate()
        if rule.key in seen:
            raise InvalidRuleError(f"Duplicate rule key: '{rule.key}'")
        seen.add(rule.key)

    use_schema = resolver is not None and record_type is not None
    table = None
    compiled = []

    for rule in rules:
        if rule.order is not None:
            rule_order = Order.parse(rule.order)
        elif default_order is not None:
            rule_order = default_order
        else:
            raise InvalidOrderError(None)

        expr = rule.expr
        kind = rule.kind
        column = None
        if expr is None:
            if use_schema:
                if table is None:
                    table = resolver.resolve_table(record_type)
                column = resolver.resolve_column(record_type, rule.key)
                expr = f"{table}.{column}"
                if kind is None and rule.codec is None and hasattr(resolver, "resolve_kind"):
                    kind = resolver.resolve_kind(record_type, rule.key)
            else:
                expr = rule.key

        if rule.null_replacement is not None:
            expr = f"COALESCE({expr}, {sql_literal(rule.null_replacement)})"
        if rule.sql_type is not None:
            expr = f"CAST({expr} AS {rule.sql_type})"

        compiled.append(CompiledRule(
            key=rule.key,
            expr=expr,
            order=rule_order,
            null_replacement=rule.null_replacement,
            kind=kind,
            codec=rule.codec,
            column=column
        ))

    logger.debug(
        "Compiled rules: " + ", ".join(f"{r.key} -> {r.expr} {r.order.value}" for r in compiled)
    )
    return tuple(compiled)


def rules_from_keys(keys: Sequence[str]) -> Tuple[Rule, ...]:
    """Build default rules for bare keys."""
    return tuple(Rule(key=key) for key in keys)
