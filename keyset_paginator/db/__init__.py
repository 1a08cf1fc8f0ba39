"""Database collaborators: connection pool, schema resolvers, query engines."""

from .connection import DatabaseManager, db_manager, get_db_pool
from .schema import SchemaResolver, SQLAlchemySchemaResolver, MappingSchemaResolver, TableSpec
from .engine import QueryEngine, AsyncpgQueryEngine

__all__ = [
    "DatabaseManager",
    "db_manager",
    "get_db_pool",
    "SchemaResolver",
    "SQLAlchemySchemaResolver",
    "MappingSchemaResolver",
    "TableSpec",
    "QueryEngine",
    "AsyncpgQueryEngine"
]
