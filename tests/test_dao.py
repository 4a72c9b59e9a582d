"""Tests for the DAO against the in-memory connection."""

from unittest.mock import AsyncMock

import pytest

from db_mapper import (
    DAO,
    AggregateCountError,
    Attribute,
    MultipleResultsError,
    QueryHandle,
    ValidationError,
    define_model,
)
from db_mapper.connection.base import QueryResult
from fakes import FakeConnection


def _hooked_model(calls: list[str], **extra):
    """Model whose hooks record their phase (async for post_* phases)."""

    def sync_hook(phase):
        return lambda instance: calls.append(phase)

    def async_hook(phase):
        async def hook(instance):
            calls.append(phase)

        return hook

    return define_model(
        "Film",
        {"id": Attribute(id=True), "title": Attribute()},
        table="films",
        hooks={
            "pre_create": [sync_hook("pre_create")],
            "post_create": [async_hook("post_create")],
            "pre_update": [sync_hook("pre_update")],
            "post_update": [async_hook("post_update")],
            "pre_destroy": [sync_hook("pre_destroy")],
            "post_destroy": [async_hook("post_destroy")],
        },
        **extra,
    )


# ============================================================================
# Test: save()
# ============================================================================


class TestSave:
    """Verify INSERT generation, row merge and checkpointing."""

    @pytest.mark.asyncio
    async def test_save_fills_generated_identity(self, Movie, conn: FakeConnection) -> None:
        movie = await DAO(Movie).save(conn, Movie(title="Alien", rating=8))

        assert movie.id == 1
        assert movie.changed() == {}
        assert conn.statements == [
            (
                "INSERT INTO movies (movie_title, rating, tags) VALUES ($1, $2, $3) RETURNING *",
                ["Alien", 8, []],
            )
        ]

    @pytest.mark.asyncio
    async def test_save_returns_same_instance(self, Movie, conn: FakeConnection) -> None:
        movie = Movie(title="Alien")
        assert await DAO(Movie).save(conn, movie) is movie

    @pytest.mark.asyncio
    async def test_identity_kept_when_not_none(self, Movie, conn: FakeConnection) -> None:
        await DAO(Movie).save(conn, Movie(id=0, title="Zero"))

        sql, params = conn.statements[0]
        assert sql.startswith("INSERT INTO movies (id, movie_title, rating, tags)")
        assert params[0] == 0

    @pytest.mark.asyncio
    async def test_namespace_qualifies_table(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie, schema="catalog")
        await dao.save(conn, Movie(title="Alien"))
        await dao.save(conn, Movie(title="Heat"), schema="archive")

        assert conn.sql_log()[0].startswith("INSERT INTO catalog.movies ")
        assert conn.sql_log()[1].startswith("INSERT INTO archive.movies ")

    @pytest.mark.asyncio
    async def test_default_values_when_only_identity(self, conn: FakeConnection) -> None:
        Counter = define_model("Counter", {"id": Attribute(id=True)}, table="movies")
        counter = await DAO(Counter).save(conn, Counter())

        assert conn.sql_log() == ["INSERT INTO movies DEFAULT VALUES RETURNING *"]
        assert counter.id == 1

    @pytest.mark.asyncio
    async def test_returned_row_merged_by_column(self, Movie) -> None:
        """Returned columns overwrite attributes; unknown columns are ignored."""
        conn = AsyncMock()
        conn.query_async.return_value = QueryResult(
            rows=[{"id": 42, "movie_title": "ALIEN", "rating": 8, "tags": [], "created_at": "now"}]
        )

        movie = await DAO(Movie).save(conn, Movie(title="Alien", rating=8))

        assert movie.id == 42
        assert movie.title == "ALIEN"
        assert movie.changed() == {}

    @pytest.mark.asyncio
    async def test_validation_failure_issues_no_sql(self, Movie, conn: FakeConnection) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await DAO(Movie).save(conn, Movie(title="Alien", rating=11))

        assert exc_info.value.failed == [("rating", "expected 0 <= x <= 10")]
        assert conn.statements == []

    @pytest.mark.asyncio
    async def test_hooks_run_around_insert(self, conn: FakeConnection) -> None:
        calls: list[str] = []
        Film = _hooked_model(calls)
        await DAO(Film).save(conn, Film(title="Alien"))
        assert calls == ["pre_create", "post_create"]

    @pytest.mark.asyncio
    async def test_failing_pre_hook_aborts(self, conn: FakeConnection) -> None:
        def refuse(instance):
            raise PermissionError("read-only catalog")

        Film = define_model(
            "Film", {"id": Attribute(id=True)}, table="films", hooks={"pre_create": [refuse]}
        )
        with pytest.raises(PermissionError):
            await DAO(Film).save(conn, Film())
        assert conn.statements == []

    @pytest.mark.asyncio
    async def test_other_model_rejected(self, Movie, conn: FakeConnection) -> None:
        Other = define_model("Other", {"id": Attribute(id=True)}, table="others")
        with pytest.raises(TypeError):
            await DAO(Movie).save(conn, Other())

    @pytest.mark.asyncio
    async def test_model_without_table_rejected(self, conn: FakeConnection) -> None:
        Loose = define_model("Loose", {"id": Attribute(id=True)})
        with pytest.raises(ValueError, match="has no table"):
            await DAO(Loose).save(conn, Loose())


# ============================================================================
# Test: update()
# ============================================================================


class TestUpdate:
    """Verify UPDATE of the dirty set only."""

    @pytest.mark.asyncio
    async def test_update_writes_dirty_columns(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        movie = await dao.save(conn, Movie(title="Alien", rating=7))
        movie.title = "Aliens"

        await dao.update(conn, movie)

        assert conn.statements[-1] == (
            "UPDATE movies SET movie_title = $2 WHERE (id = $1) RETURNING *",
            [1, "Aliens"],
        )
        assert movie.changed() == {}
        assert conn.rows("movies")[0]["movie_title"] == "Aliens"

    @pytest.mark.asyncio
    async def test_noop_update_issues_no_sql_but_runs_hooks(self, conn: FakeConnection) -> None:
        calls: list[str] = []
        Film = _hooked_model(calls)
        dao = DAO(Film)
        film = await dao.save(conn, Film(title="Alien"))
        issued = len(conn.statements)

        await dao.update(conn, film)

        assert len(conn.statements) == issued
        assert calls[-2:] == ["pre_update", "post_update"]

    @pytest.mark.asyncio
    async def test_save_update_get(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        movie = await dao.save(conn, Movie(title="Alien", rating=7))
        movie.rating = 9
        await dao.update(conn, movie)

        fetched = await dao.get(conn, movie.id)

        assert fetched is not movie
        assert fetched.attr() == movie.attr()
        assert fetched.changed() == {}

    @pytest.mark.asyncio
    async def test_update_validates(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        movie = await dao.save(conn, Movie(title="Alien"))
        movie.rating = 11
        with pytest.raises(ValidationError):
            await dao.update(conn, movie)
        assert movie.has_changed("rating")

    @pytest.mark.asyncio
    async def test_update_requires_identity(self, conn: FakeConnection) -> None:
        Note = define_model("Note", {"body": Attribute()}, table="notes")
        note = Note(body="a")
        note.body = "b"
        with pytest.raises(ValueError, match="no identity attribute"):
            await DAO(Note).update(conn, note)


# ============================================================================
# Test: destroy() and get()
# ============================================================================


class TestDestroyAndGet:

    @pytest.mark.asyncio
    async def test_destroy_then_get_returns_none(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        movie = await dao.save(conn, Movie(title="Alien"))

        assert await dao.destroy(conn, movie) is None
        assert await dao.get(conn, movie.id) is None
        assert "DELETE FROM movies WHERE (id = $1)" in conn.sql_log()

    @pytest.mark.asyncio
    async def test_destroy_by_instance_runs_hooks(self, conn: FakeConnection) -> None:
        calls: list[str] = []
        Film = _hooked_model(calls)
        dao = DAO(Film)
        film = await dao.save(conn, Film(title="Alien"))
        calls.clear()

        await dao.destroy(conn, film)

        assert calls == ["pre_destroy", "post_destroy"]

    @pytest.mark.asyncio
    async def test_destroy_by_id_skips_hooks(self, conn: FakeConnection) -> None:
        calls: list[str] = []
        Film = _hooked_model(calls)
        dao = DAO(Film)
        film = await dao.save(conn, Film(title="Alien"))
        calls.clear()

        await dao.destroy(conn, film.id)

        assert calls == []
        assert conn.rows("films") == []

    @pytest.mark.asyncio
    async def test_get_builds_instance_from_columns(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        await dao.save(conn, Movie(title="Alien", rating=8))

        movie = await dao.get(conn, 1)

        assert isinstance(movie, Movie)
        assert movie.title == "Alien"
        assert conn.statements[-1] == ("SELECT * FROM movies WHERE (id = $1)", [1])

    @pytest.mark.asyncio
    async def test_get_with_duplicate_rows_raises(self, Movie, conn: FakeConnection) -> None:
        conn.tables["movies"] = [{"id": 1, "movie_title": "A"}, {"id": 1, "movie_title": "B"}]
        with pytest.raises(MultipleResultsError):
            await DAO(Movie).get(conn, 1)


# ============================================================================
# Test: list(), count() and query()
# ============================================================================


class TestListCountQuery:

    @pytest.mark.asyncio
    async def test_collect_ten_saved_rows(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        for i in range(10):
            await dao.save(conn, Movie(title=f"Movie {i}", rating=i))

        movies = await dao.list(conn).collect_results()

        assert [m.title for m in movies] == [f"Movie {i}" for i in range(10)]
        assert await dao.count(conn) == 10

    @pytest.mark.asyncio
    async def test_list_returns_unawaited_handle(self, Movie, conn: FakeConnection) -> None:
        handle = DAO(Movie).list(conn, limit=3, offset=6)

        assert isinstance(handle, QueryHandle)
        assert handle.sql == "SELECT * FROM movies ORDER BY id ASC LIMIT 3 OFFSET 6"
        assert conn.statements == []

    @pytest.mark.asyncio
    async def test_list_limit_zero_is_rendered(self, Movie, conn: FakeConnection) -> None:
        handle = DAO(Movie).list(conn, limit=0)
        assert handle.sql.endswith("LIMIT 0")

    @pytest.mark.asyncio
    async def test_list_pages(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        for i in range(5):
            await dao.save(conn, Movie(title=str(i)))

        page = await dao.list(conn, limit=2, offset=2).collect_results()

        assert [m.id for m in page] == [3, 4]

    def test_list_without_identity_has_no_order(self, conn: FakeConnection) -> None:
        Note = define_model("Note", {"body": Attribute()}, table="notes")
        assert DAO(Note).list(conn).sql == "SELECT * FROM notes"

    @pytest.mark.asyncio
    async def test_count_sql(self, Movie, conn: FakeConnection) -> None:
        assert await DAO(Movie, schema="catalog").count(conn) == 0
        assert conn.statements == [("SELECT count(*) AS count FROM catalog.movies", [])]

    @pytest.mark.asyncio
    async def test_count_requires_single_row(self, Movie) -> None:
        conn = AsyncMock()
        conn.query_async.return_value = QueryResult(rows=[])
        with pytest.raises(AggregateCountError):
            await DAO(Movie).count(conn)

    @pytest.mark.asyncio
    async def test_custom_query(self, Movie, conn: FakeConnection) -> None:
        dao = DAO(Movie)
        await dao.save(conn, Movie(title="Alien", rating=8))
        await dao.save(conn, Movie(title="Heat", rating=9))

        q = dao.builder.select().from_("movies").where("rating = $1")
        movie = await dao.query(conn, q, 9).unique_result()

        assert movie.title == "Heat"
        assert conn.statements[-1] == ("SELECT * FROM movies WHERE (rating = $1)", [9])

    def test_in_transaction_exposed_on_dao(self) -> None:
        from db_mapper import in_transaction

        assert DAO.in_transaction is in_transaction
