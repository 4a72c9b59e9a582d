"""db-mapper: async relational data mapping for PostgreSQL.

Declare a model once, get change-tracking instances, and persist them through
a DAO that issues parameterized SQL over an explicitly passed connection.

Usage:
    from db_mapper import Attribute, DAO, Types, define_model, in_transaction
    from db_mapper import AsyncPsycopgConnection, connect, load_db_config
    from db_mapper import ValidationError, is_in_range
"""

__version__ = "0.1.0"

# Models
from db_mapper.model.define import define_model
from db_mapper.model.instance import ModelInstance
from db_mapper.model.schema import Attribute, ModelSchema, Types

# Validation
from db_mapper.validation.validators import (
    is_boolean,
    is_date,
    is_in_range,
    is_not_null,
    is_number,
    is_string,
)

# Errors
from db_mapper.errors import (
    AggregateCountError,
    DataMapperError,
    MultipleResultsError,
    ValidationError,
)

# SQL
from db_mapper.sql.builder import Dialect, QueryBuilder, table_ref

# Connections
from db_mapper.connection.base import Connection, QueryResult
from db_mapper.connection.postgres import AsyncPostgresConnection
from db_mapper.connection.psycopg_async import AsyncPsycopgConnection

# Data access
from db_mapper.dao.dao import DAO
from db_mapper.dao.query import QueryHandle
from db_mapper.dao.transaction import in_transaction, transaction

# Config
from db_mapper.config.loader import load_db_config
from db_mapper.config.models import DatabaseConfig, DatabaseProfile

# Factory
from db_mapper.factory import (
    ProfileNotFoundError,
    builder_for,
    connect,
    namespace_for,
    resolve_url,
)

__all__ = [
    # Models
    "define_model",
    "ModelInstance",
    "ModelSchema",
    "Attribute",
    "Types",
    # Validation
    "is_string",
    "is_number",
    "is_boolean",
    "is_date",
    "is_not_null",
    "is_in_range",
    # Errors
    "DataMapperError",
    "ValidationError",
    "MultipleResultsError",
    "AggregateCountError",
    # SQL
    "QueryBuilder",
    "Dialect",
    "table_ref",
    # Connections
    "Connection",
    "QueryResult",
    "AsyncPsycopgConnection",
    "AsyncPostgresConnection",
    # Data access
    "DAO",
    "QueryHandle",
    "in_transaction",
    "transaction",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    # Factory
    "connect",
    "namespace_for",
    "builder_for",
    "resolve_url",
    "ProfileNotFoundError",
]
