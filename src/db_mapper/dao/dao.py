"""Schema-aware data-access object.

A ``DAO`` binds one model class to the SQL that persists it.  Every
operation receives the connection explicitly; the DAO keeps no state
between calls other than the model, its default namespace, and the
statement builder.

Operations run strictly in this order: hooks, validation, SQL, row merge,
checkpoint, hooks.  Nothing is caught along the way: a failing hook,
validator or statement aborts the operation and propagates.

Usage:
    from db_mapper import DAO, in_transaction

    movies = DAO(Movie, schema="catalog")

    async with AsyncPsycopgConnection(url) as conn:
        movie = await movies.save(conn, Movie(title="Alien"))
        movie.title = "Aliens"
        await movies.update(conn, movie)

        same = await movies.get(conn, movie.id)
        total = await movies.count(conn)
        first_page = await movies.list(conn, limit=10).collect_results()

        await movies.destroy(conn, movie)
"""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from db_mapper.connection.base import Connection
from db_mapper.dao.query import QueryHandle
from db_mapper.dao.transaction import in_transaction
from db_mapper.errors import AggregateCountError, MultipleResultsError
from db_mapper.model.instance import ModelInstance
from db_mapper.model.schema import ModelSchema
from db_mapper.sql.builder import QueryBuilder, _Statement, table_ref

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=ModelInstance)


class DAO(Generic[M]):
    """Persistence operations for one model type.

    Args:
        model: Model class returned by ``define_model()``.
        schema: Default namespace (PostgreSQL schema) qualifying the table.
            Per-call ``schema=`` arguments override it.
        builder: Statement builder; defaults to a PostgreSQL ``QueryBuilder``.
    """

    in_transaction = staticmethod(in_transaction)

    def __init__(
        self,
        model: type[M],
        schema: str | None = None,
        builder: QueryBuilder | None = None,
    ) -> None:
        self.model = model
        self.schema = schema
        self.builder = builder or QueryBuilder()

    @property
    def model_schema(self) -> ModelSchema:
        return self.model.model_schema

    @staticmethod
    def table_ref(namespace: str | None, table: str) -> str:
        return table_ref(namespace, table)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _table(self, schema: str | None) -> str:
        table = self.model_schema.table
        if not table:
            raise ValueError(f"Model '{self.model_schema.name}' has no table")
        return table_ref(schema or self.schema, table)

    def _id_column(self) -> str:
        column = self.model_schema.id_column
        if column is None:
            raise ValueError(
                f"Model '{self.model_schema.name}' has no identity attribute"
            )
        return column

    def _placeholder(self, position: int) -> str:
        return self.builder.dialect.placeholder(position)

    def _check_instance(self, instance: Any) -> M:
        if not isinstance(instance, self.model):
            raise TypeError(
                f"Expected a {self.model.__name__} instance, got {type(instance).__name__}"
            )
        return instance

    async def _run_hooks(self, phase: str, instance: M) -> None:
        hooks = self.model_schema.hooks_for(phase)
        if hooks:
            logger.debug(f"{self.model_schema.name}: running {len(hooks)} {phase} hook(s)")
        for hook in hooks:
            result = hook(instance)
            if inspect.isawaitable(result):
                await result

    def _merge_row(self, instance: M, row: Mapping[str, Any]) -> None:
        """Copy returned columns that map to declared attributes onto ``instance``."""
        for column, value in row.items():
            attribute = self.model_schema.attribute_for(column)
            if attribute is not None:
                instance.set(attribute, value)

    def _build(self, row: dict[str, Any]) -> M:
        return self.model(row)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def save(self, conn: Connection, instance: M, *, schema: str | None = None) -> M:
        """Insert ``instance`` and merge the returned row onto it.

        The identity column is omitted when its value is ``None`` so the
        database can generate it; every other attribute is written.

        Returns:
            The same instance, checkpointed.

        Raises:
            ValidationError: If ``validate()`` fails (nothing is written).
        """
        instance = self._check_instance(instance)
        model_schema = self.model_schema

        await self._run_hooks("pre_create", instance)
        instance.validate()

        q = self.builder.insert().into(self._table(schema))
        values: list[Any] = []
        for name, value in instance.attr().items():
            if name == model_schema.id_attribute and value is None:
                continue
            values.append(value)
            q.set(model_schema.column_for(name), self._placeholder(len(values)))
        q.returning("*")

        res = await conn.query_async(str(q), values)
        if len(res.rows) == 1:
            self._merge_row(instance, res.rows[0])

        instance.checkpoint()
        await self._run_hooks("post_create", instance)
        return instance

    async def update(self, conn: Connection, instance: M, *, schema: str | None = None) -> M:
        """Write the dirty attributes of ``instance``.

        With nothing dirty no statement is issued; hooks still run and the
        instance is still checkpointed.

        Returns:
            The same instance, checkpointed.
        """
        instance = self._check_instance(instance)
        model_schema = self.model_schema

        await self._run_hooks("pre_update", instance)
        instance.validate()

        dirty = instance.changed()
        if dirty:
            values: list[Any] = [instance.id]
            q = (
                self.builder.update()
                .table(self._table(schema))
                .where(f"{self._id_column()} = {self._placeholder(1)}")
            )
            for name, value in dirty.items():
                values.append(value)
                q.set(model_schema.column_for(name), self._placeholder(len(values)))
            q.returning("*")

            res = await conn.query_async(str(q), values)
            if len(res.rows) == 1:
                self._merge_row(instance, res.rows[0])
        else:
            logger.debug(f"{model_schema.name}: nothing changed, skipping UPDATE")

        instance.checkpoint()
        await self._run_hooks("post_update", instance)
        return instance

    async def destroy(
        self, conn: Connection, id_or_instance: Any, *, schema: str | None = None
    ) -> None:
        """Delete a row by identifier or by instance.

        Destroy hooks only run when an instance is given.
        """
        instance: M | None = None
        if isinstance(id_or_instance, ModelInstance):
            instance = self._check_instance(id_or_instance)
            identifier = instance.id
        else:
            identifier = id_or_instance

        q = (
            self.builder.delete()
            .from_(self._table(schema))
            .where(f"{self._id_column()} = {self._placeholder(1)}")
        )

        if instance is not None:
            await self._run_hooks("pre_destroy", instance)

        await conn.query_async(str(q), [identifier])

        if instance is not None:
            await self._run_hooks("post_destroy", instance)

    async def get(self, conn: Connection, id: Any, *, schema: str | None = None) -> M | None:
        """Fetch one instance by identifier, or ``None`` when absent.

        Raises:
            MultipleResultsError: If more than one row matches.
        """
        q = (
            self.builder.select()
            .from_(self._table(schema))
            .where(f"{self._id_column()} = {self._placeholder(1)}")
        )
        res = await conn.query_async(str(q), [id])

        if len(res.rows) > 1:
            raise MultipleResultsError(
                f"{self.model_schema.name}: {len(res.rows)} rows for id {id!r}"
            )
        if not res.rows:
            return None
        return self._build(res.rows[0])

    def list(
        self,
        conn: Connection,
        *,
        schema: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryHandle[M]:
        """Stream instances ordered by identity.

        Returns the unawaited ``QueryHandle``; the caller picks the result
        mode (``collect_results()``, ``progress()``, ``async for``).
        """
        q = self.builder.select().from_(self._table(schema))
        if self.model_schema.id_column is not None:
            q.order(self.model_schema.id_column)
        if limit is not None:
            q.limit(limit)
        if offset is not None:
            q.offset(offset)
        return self.query(conn, q)

    async def count(self, conn: Connection, *, schema: str | None = None) -> int:
        """Count the rows of the model's table.

        Raises:
            AggregateCountError: If the aggregate did not return exactly one row.
        """
        q = self.builder.select().from_(self._table(schema)).field("count(*)", "count")
        res = await conn.query_async(str(q))

        if len(res.rows) != 1:
            raise AggregateCountError(
                f"Expected one row from count(*), got {len(res.rows)}"
            )
        return int(res.rows[0]["count"])

    def query(
        self, conn: Connection, statement: _Statement | str, *params: Any
    ) -> QueryHandle[M]:
        """Run an arbitrary statement and build instances from its rows.

        Args:
            conn: Connection to run on.
            statement: A builder or SQL text with ``$n`` placeholders.
            *params: Positional parameters for the placeholders.

        Returns:
            Lazy ``QueryHandle`` of model instances.
        """
        return QueryHandle(conn, str(statement), params, self._build)
