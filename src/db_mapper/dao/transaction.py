"""Explicit transactions over a single connection.

The connection runs in autocommit mode; these helpers bracket a unit of work
with ``BEGIN;`` and ``COMMIT;`` (or ``ROLLBACK;``) statements.  Nesting is
not supported: a nested ``BEGIN;`` is sent to the server as-is.

Usage:
    from db_mapper import in_transaction, transaction

    async def transfer():
        await accounts.update(conn, source)
        await accounts.update(conn, target)

    await in_transaction(conn, transfer)

    async with transaction(conn, read_only=True):
        total = await accounts.count(conn)
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from db_mapper.connection.base import Connection

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def transaction(conn: Connection, *, read_only: bool = False) -> AsyncIterator[Connection]:
    """Run the ``async with`` block inside a transaction.

    The block commits on success, or rolls back when ``read_only`` is set.
    Any exception, including a failing ``COMMIT;``, rolls back and propagates
    unchanged.  A failing ``ROLLBACK;`` is logged and does not replace it.

    Args:
        conn: Connection the transaction is opened on.
        read_only: Always roll back, even on success.

    Yields:
        The same connection.
    """
    logger.debug("BEGIN")
    await conn.query_async("BEGIN;")
    try:
        yield conn
        if read_only:
            logger.debug("ROLLBACK (read-only)")
            await conn.query_async("ROLLBACK;")
        else:
            logger.debug("COMMIT")
            await conn.query_async("COMMIT;")
    except Exception as e:
        logger.warning(f"Rolling back transaction: {type(e).__name__}: {e}")
        try:
            await conn.query_async("ROLLBACK;")
        except Exception as rollback_error:
            logger.error(
                f"ROLLBACK failed: {type(rollback_error).__name__}: {rollback_error}"
            )
        raise


async def in_transaction(
    conn: Connection,
    unit_of_work: Callable[[], Awaitable[T]],
    *,
    read_only: bool = False,
) -> T:
    """Run ``unit_of_work()`` inside a transaction and return its result.

    Args:
        conn: Connection the transaction is opened on.
        unit_of_work: Zero-argument coroutine function.
        read_only: Roll back instead of committing on success.

    Returns:
        Whatever ``unit_of_work()`` returned.

    Raises:
        Exception: Whatever ``unit_of_work()`` raised, after ``ROLLBACK;``.

    Example:
        >>> saved = await in_transaction(conn, lambda: dao.save(conn, movie))
    """
    async with transaction(conn, read_only=read_only):
        return await unit_of_work()
