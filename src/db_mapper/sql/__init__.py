"""SQL statement builders.

Usage:
    from db_mapper.sql import QueryBuilder, table_ref
"""

from db_mapper.sql.builder import (
    POSTGRES,
    DeleteBuilder,
    Dialect,
    InsertBuilder,
    QueryBuilder,
    SelectBuilder,
    UpdateBuilder,
    table_ref,
)

__all__ = [
    "QueryBuilder",
    "Dialect",
    "POSTGRES",
    "InsertBuilder",
    "UpdateBuilder",
    "DeleteBuilder",
    "SelectBuilder",
    "table_ref",
]
