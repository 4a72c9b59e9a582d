"""Data access: DAO, streaming query handles and transactions.

Usage:
    from db_mapper.dao import DAO, QueryHandle, in_transaction, transaction
"""

from db_mapper.dao.dao import DAO
from db_mapper.dao.query import QueryHandle
from db_mapper.dao.transaction import in_transaction, transaction

__all__ = [
    "DAO",
    "QueryHandle",
    "in_transaction",
    "transaction",
]
