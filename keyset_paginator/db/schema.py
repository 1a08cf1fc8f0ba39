"""Schema resolvers mapping record types and logical keys to tables and columns."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Union

from sqlalchemy import Column, Table, inspect
from sqlalchemy.exc import NoInspectionAvailable

from ..errors.pagination import UnknownKeyError, UnknownSchemaError
from ..pagination.rules import ValueKind


logger = logging.getLogger(__name__)


class SchemaResolver(Protocol):
    """What ``compile_rules`` needs from a schema."""

    def resolve_table(self, record_type: Any) -> str:
        ...

    def resolve_column(self, record_type: Any, key: str) -> str:
        ...


class SQLAlchemySchemaResolver:
    """Resolve keys on SQLAlchemy declarative models or ``Table`` objects.

    A key matches a mapped attribute name first, then a column name, so
    ``created`` finds ``created = Column("created_at", ...)`` either way.
    """

    def _table(self, record_type: Any) -> Table:
        if isinstance(record_type, Table):
            return record_type
        try:
            mapper = inspect(record_type)
        except NoInspectionAvailable:
            raise UnknownSchemaError(record_type)
        table = getattr(mapper, "local_table", None)
        if not isinstance(table, Table):
            raise UnknownSchemaError(record_type)
        return table

    def _column(self, record_type: Any, key: str) -> Column:
        table = self._table(record_type)

        if not isinstance(record_type, Table):
            mapper = inspect(record_type)
            if key in mapper.column_attrs:
                return mapper.column_attrs[key].columns[0]

        if key in table.c:
            return table.c[key]
        for column in table.columns:
            if column.name == key:
                return column
        raise UnknownKeyError(key, record_type)

    def resolve_table(self, record_type: Any) -> str:
        table = self._table(record_type)
        return f"{table.schema}.{table.name}" if table.schema else table.name

    def resolve_column(self, record_type: Any, key: str) -> str:
        return self._column(record_type, key).name

    def resolve_kind(self, record_type: Any, key: str) -> Optional[ValueKind]:
        """Kind of the column's Python type, or None when it has none."""
        column = self._column(record_type, key)
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            logger.debug(f"Column {column.name} has no python_type, inferring kind per value")
            return None
        return ValueKind.for_type(python_type)


@dataclass(frozen=True)
class TableSpec:
    """Hand-written table description for raw SQL callers."""

    name: str
    columns: Dict[str, str] = field(default_factory=dict)
    kinds: Dict[str, ValueKind] = field(default_factory=dict)


class MappingSchemaResolver:
    """Resolve keys from an explicit registry of ``TableSpec`` entries.

    Keys absent from ``columns`` are unknown; map a key to itself to expose a
    column under its own name.
    """

    def __init__(self, tables: Optional[Dict[Any, Union[TableSpec, str]]] = None):
        self._tables: Dict[Any, TableSpec] = {}
        for record_type, spec in (tables or {}).items():
            self.register(record_type, spec)

    def register(self, record_type: Any, spec: Union[TableSpec, str]) -> None:
        if isinstance(spec, str):
            spec = TableSpec(name=spec)
        self._tables[record_type] = spec

    def _spec(self, record_type: Any) -> TableSpec:
        try:
            return self._tables[record_type]
        except (KeyError, TypeError):
            raise UnknownSchemaError(record_type)

    def resolve_table(self, record_type: Any) -> str:
        return self._spec(record_type).name

    def resolve_column(self, record_type: Any, key: str) -> str:
        spec = self._spec(record_type)
        if key not in spec.columns:
            raise UnknownKeyError(key, record_type)
        return spec.columns[key]

    def resolve_kind(self, record_type: Any, key: str) -> Optional[ValueKind]:
        return self._spec(record_type).kinds.get(key)
