"""Streaming query results.

``QueryHandle`` wraps one statement whose rows become model instances.
The handle is lazy: nothing runs until it is awaited or iterated, so the
result mode is always chosen before the first row arrives.

Usage:
    # Stream instances as they arrive
    async for movie in dao.list(conn, limit=10):
        print(movie.title)

    # Collect everything
    movies = await dao.list(conn).collect_results()

    # Exactly zero or one row expected
    movie = await dao.query(conn, q, "Alien").unique_result()

    # Per-instance callbacks, no result kept
    await dao.query(conn, q, "Alien").progress(seen.append)
"""

from collections.abc import AsyncIterator, Callable, Generator, Sequence
from contextlib import aclosing
from typing import Any, Generic, TypeVar

from db_mapper.connection.base import Connection
from db_mapper.errors import MultipleResultsError

T = TypeVar("T")

_UNIQUE = "unique"
_COLLECT = "collect"


class QueryHandle(Generic[T]):
    """Lazy, single-use handle on a streaming query.

    Args:
        connection: Connection the statement runs on.
        sql: SQL text with ``$n`` placeholders.
        params: Positional parameters.
        factory: Builds a result object (a model instance) from a row dict.
    """

    def __init__(
        self,
        connection: Connection,
        sql: str,
        params: Sequence[Any],
        factory: Callable[[dict[str, Any]], T],
    ) -> None:
        self._connection = connection
        self._sql = sql
        self._params = list(params)
        self._factory = factory
        self._mode: str | None = None
        self._callbacks: list[Callable[[T], Any]] = []
        self._started = False

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def params(self) -> list[Any]:
        return list(self._params)

    # ------------------------------------------------------------------
    # Result mode selection (before execution only)
    # ------------------------------------------------------------------

    def _check_not_started(self, what: str) -> None:
        if self._started:
            raise RuntimeError(f"{what} must be called before the query runs")

    def unique_result(self) -> "QueryHandle[T]":
        """Resolve to the single instance (or ``None``); a second row fails."""
        self._check_not_started("unique_result()")
        self._mode = _UNIQUE
        return self

    def collect_results(self) -> "QueryHandle[T]":
        """Resolve to the ordered list of every instance."""
        self._check_not_started("collect_results()")
        self._mode = _COLLECT
        return self

    def progress(self, callback: Callable[[T], Any]) -> "QueryHandle[T]":
        """Call ``callback(instance)`` for each instance, in row order."""
        self._check_not_started("progress()")
        self._callbacks.append(callback)
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _start(self) -> None:
        if self._started:
            raise RuntimeError("Query handle already consumed")
        self._started = True

    async def _instances(self) -> AsyncIterator[T]:
        async with aclosing(self._connection.query(self._sql, self._params)) as rows:
            async for row in rows:
                yield self._factory(row)

    def _notify(self, instance: T) -> None:
        for callback in self._callbacks:
            callback(instance)

    async def _run(self) -> T | list[T] | None:
        self._start()
        mode = self._mode
        result: Any = [] if mode == _COLLECT else None

        async with aclosing(self._instances()) as instances:
            async for instance in instances:
                if mode == _UNIQUE:
                    if result is not None:
                        raise MultipleResultsError(
                            f"Expected at most one result for: {self._sql}"
                        )
                    result = instance
                elif mode == _COLLECT:
                    result.append(instance)
                self._notify(instance)

        return result

    def __await__(self) -> Generator[Any, None, T | list[T] | None]:
        return self._run().__await__()

    async def __aiter__(self) -> AsyncIterator[T]:
        self._start()
        async with aclosing(self._instances()) as instances:
            async for instance in instances:
                self._notify(instance)
                yield instance
