"""Shared fixtures: a movie model and an in-memory connection."""

import pytest

from db_mapper import Attribute, Types, define_model, is_in_range, is_not_null, is_string
from fakes import FakeConnection


@pytest.fixture
def Movie():
    """Movie model with a serial identity, a column alias and validators."""
    return define_model(
        "Movie",
        {
            "id": Attribute(type=Types.Serial, id=True),
            "title": Attribute(type=str, column="movie_title"),
            "rating": Attribute(type=int),
            "tags": Attribute(type=list, default_of_type=True),
        },
        table="movies",
        validations={
            "title": [is_not_null, is_string],
            "rating": [(is_in_range, 0, 10)],
        },
    )


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection(serial={"movies": "id", "catalog.movies": "id", "films": "id"})
