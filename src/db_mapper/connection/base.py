"""Connection protocol definition.

Defines the ``Connection`` Protocol the DAO and transaction manager run
against.  SQL handed to a connection uses positional ``$1, $2, ...``
placeholders with a matching sequence of parameters; each implementation
rewrites them into its driver's parameter style.

Usage:
    from db_mapper.connection.base import Connection

    async def do_work(conn: Connection) -> None:
        result = await conn.query_async("SELECT * FROM movies WHERE id = $1", [7])
        print(result.rows)

        async for row in conn.query("SELECT * FROM movies ORDER BY id ASC"):
            print(row)
"""

import re
from collections.abc import AsyncGenerator, Sequence
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

# $1, $2, ... but not dollar-quoted strings ($$ or $tag$)
_PLACEHOLDER = re.compile(r"(?<![\w$])\$(\d+)(?![\w$])")


class QueryResult(BaseModel):
    """Rows returned by ``Connection.query_async``, in server order."""

    rows: list[dict[str, Any]] = Field(default_factory=list)


class Connection(Protocol):
    """Database connection interface used by ``DAO`` and ``in_transaction``.

    A connection is one database session.  Statements run in the order they
    are awaited; callers must not share a connection between concurrent
    units of work.
    """

    async def query_async(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        """Execute a statement and return all rows.

        Args:
            sql: SQL text with ``$n`` placeholders.
            params: Positional parameters; ``params[0]`` binds ``$1``.

        Returns:
            ``QueryResult`` (empty ``rows`` for statements returning nothing).
        """
        ...

    def query(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> AsyncGenerator[dict[str, Any], None]:
        """Execute a statement and yield rows as they arrive.

        Exhausting the generator is the end-of-results signal; driver errors
        are raised from the iteration.
        """
        ...

    async def close(self) -> None:
        """Close the session."""
        ...


def rewrite_placeholders(
    sql: str,
    params: Sequence[Any] | None,
    style: Literal["pyformat", "named"],
) -> tuple[str, dict[str, Any] | None]:
    """Rewrite ``$n`` placeholders into a driver's named parameter style.

    ``pyformat`` produces ``%(p_n)s`` (psycopg) and escapes literal ``%``;
    ``named`` produces ``:p_n`` (SQLAlchemy ``text()``) and escapes literal
    ``:`` as ``\\:``, since ``text()`` binds any ``:word``.  Parameters are
    returned as a ``{"p_n": value}`` dict.  Without parameters ``None`` is
    returned and only the ``named`` escaping is applied.

    Raises:
        ValueError: If a placeholder has no matching parameter.

    Example:
        >>> rewrite_placeholders("SELECT * FROM t WHERE a = $1", ["x"], "named")
        ('SELECT * FROM t WHERE a = :p_1', {'p_1': 'x'})
    """
    if style == "named":
        sql = sql.replace(":", "\\:")
    if not params:
        return sql, None

    values = {f"p_{i}": value for i, value in enumerate(params, start=1)}

    def _replace(match: re.Match[str]) -> str:
        position = int(match.group(1))
        if not 1 <= position <= len(values):
            raise ValueError(
                f"Placeholder ${position} has no parameter ({len(values)} given)"
            )
        if style == "pyformat":
            return f"%(p_{position})s"
        return f":p_{position}"

    if style == "pyformat":
        sql = sql.replace("%", "%%")
    return _PLACEHOLDER.sub(_replace, sql), values
