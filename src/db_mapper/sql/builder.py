"""Fluent SQL statement builders.

Builders only render text: values never go into the SQL, callers pass
placeholders (``$1``, ``$2``, ...) and hand the parameters to the
connection separately.  The dialect is an explicit value given to
``QueryBuilder``; there is no process-wide flavour switch.

Usage:
    from db_mapper.sql import QueryBuilder

    sql = QueryBuilder()
    q = (
        sql.update()
        .table("public.movies")
        .set("title", "$2")
        .where("id = $1")
        .returning("*")
    )
    str(q)  # 'UPDATE public.movies SET title = $2 WHERE (id = $1) RETURNING *'
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class Dialect(BaseModel):
    """SQL dialect settings shared by every builder of a ``QueryBuilder``."""

    model_config = ConfigDict(frozen=True)

    name: Literal["postgres"] = "postgres"

    def placeholder(self, position: int) -> str:
        """Positional placeholder for the 1-based parameter ``position``."""
        if position < 1:
            raise ValueError(f"Placeholder positions start at 1, got {position}")
        return f"${position}"


POSTGRES = Dialect()


def table_ref(namespace: str | None, table: str) -> str:
    """Qualify ``table`` with ``namespace`` when one is given."""
    return f"{namespace}.{table}" if namespace else table


# ============================================================================
# Statement builders
# ============================================================================


class _Statement:
    """Shared table/WHERE/RETURNING handling."""

    _verb = ""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self._table: str | None = None
        self._where: list[str] = []
        self._returning: list[str] = []

    def where(self, predicate: str) -> "_Statement":
        """Add a predicate; several predicates are joined with AND."""
        self._where.append(predicate)
        return self

    def returning(self, expression: str) -> "_Statement":
        self._returning.append(expression)
        return self

    def _table_name(self) -> str:
        if not self._table:
            raise ValueError(f"{self._verb} statement has no table")
        return self._table

    def _where_clause(self) -> str:
        if not self._where:
            return ""
        return " WHERE " + " AND ".join(f"({p})" for p in self._where)

    def _returning_clause(self) -> str:
        if not self._returning:
            return ""
        return " RETURNING " + ", ".join(self._returning)

    def to_string(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        try:
            return f"<{type(self).__name__} {self.to_string()!r}>"
        except ValueError:
            return f"<{type(self).__name__} (incomplete)>"


class InsertBuilder(_Statement):
    _verb = "INSERT"

    def __init__(self, dialect: Dialect) -> None:
        super().__init__(dialect)
        self._values: dict[str, str] = {}

    def into(self, table: str) -> "InsertBuilder":
        self._table = table
        return self

    def set(self, column: str, expression: str) -> "InsertBuilder":
        self._values[column] = expression
        return self

    def to_string(self) -> str:
        table = self._table_name()
        if self._values:
            columns = ", ".join(self._values)
            values = ", ".join(self._values.values())
            body = f"INSERT INTO {table} ({columns}) VALUES ({values})"
        else:
            body = f"INSERT INTO {table} DEFAULT VALUES"
        return body + self._returning_clause()


class UpdateBuilder(_Statement):
    _verb = "UPDATE"

    def __init__(self, dialect: Dialect) -> None:
        super().__init__(dialect)
        self._values: dict[str, str] = {}

    def table(self, table: str) -> "UpdateBuilder":
        self._table = table
        return self

    def set(self, column: str, expression: str) -> "UpdateBuilder":
        self._values[column] = expression
        return self

    def to_string(self) -> str:
        table = self._table_name()
        if not self._values:
            raise ValueError("UPDATE statement has no SET columns")
        assignments = ", ".join(f"{col} = {expr}" for col, expr in self._values.items())
        return (
            f"UPDATE {table} SET {assignments}"
            + self._where_clause()
            + self._returning_clause()
        )


class DeleteBuilder(_Statement):
    _verb = "DELETE"

    def from_(self, table: str) -> "DeleteBuilder":
        self._table = table
        return self

    def to_string(self) -> str:
        return (
            f"DELETE FROM {self._table_name()}"
            + self._where_clause()
            + self._returning_clause()
        )


class SelectBuilder(_Statement):
    _verb = "SELECT"

    def __init__(self, dialect: Dialect) -> None:
        super().__init__(dialect)
        self._fields: list[str] = []
        self._order: list[str] = []
        self._limit: int | None = None
        self._offset: int | None = None

    def from_(self, table: str) -> "SelectBuilder":
        self._table = table
        return self

    def field(self, expression: str, alias: str | None = None) -> "SelectBuilder":
        self._fields.append(f"{expression} AS {alias}" if alias else expression)
        return self

    def order(self, column: str, asc: bool = True) -> "SelectBuilder":
        self._order.append(f"{column} {'ASC' if asc else 'DESC'}")
        return self

    def limit(self, count: int) -> "SelectBuilder":
        if count < 0:
            raise ValueError(f"LIMIT must be >= 0, got {count}")
        self._limit = int(count)
        return self

    def offset(self, count: int) -> "SelectBuilder":
        if count < 0:
            raise ValueError(f"OFFSET must be >= 0, got {count}")
        self._offset = int(count)
        return self

    def to_string(self) -> str:
        fields = ", ".join(self._fields) if self._fields else "*"
        sql = f"SELECT {fields} FROM {self._table_name()}" + self._where_clause()
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        if self._limit is not None:
            sql += f" LIMIT {self._limit}"
        if self._offset is not None:
            sql += f" OFFSET {self._offset}"
        return sql


class QueryBuilder:
    """Entry point producing statement builders for one dialect.

    Args:
        dialect: SQL dialect settings (default: PostgreSQL).
    """

    def __init__(self, dialect: Dialect = POSTGRES) -> None:
        self.dialect = dialect

    def insert(self) -> InsertBuilder:
        return InsertBuilder(self.dialect)

    def update(self) -> UpdateBuilder:
        return UpdateBuilder(self.dialect)

    def delete(self) -> DeleteBuilder:
        return DeleteBuilder(self.dialect)

    def select(self) -> SelectBuilder:
        return SelectBuilder(self.dialect)
