"""Database connections.

Provides the ``Connection`` Protocol and two async implementations:
``AsyncPsycopgConnection`` (psycopg 3, true row streaming) and
``AsyncPostgresConnection`` (SQLAlchemy async engine over asyncpg).

Usage:
    from db_mapper.connection import AsyncPsycopgConnection, Connection
"""

from db_mapper.connection.base import Connection, QueryResult, rewrite_placeholders
from db_mapper.connection.postgres import AsyncPostgresConnection
from db_mapper.connection.psycopg_async import AsyncPsycopgConnection

__all__ = [
    "Connection",
    "QueryResult",
    "rewrite_placeholders",
    "AsyncPsycopgConnection",
    "AsyncPostgresConnection",
]
