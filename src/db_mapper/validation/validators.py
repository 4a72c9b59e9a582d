"""Validator primitives.

Each validator takes the attribute value (plus any extra arguments bound in
the schema) and returns ``(True, None)`` on success or
``(False, message)`` on failure.  Validators have no side effects.

Usage:
    from db_mapper.validation import is_in_range, is_string

    Movie = define_model(
        "Movie",
        {"title": Attribute(type=str), "rating": Attribute(type=int)},
        validations={
            "title": [is_string],
            "rating": [(is_in_range, 0, 10)],
        },
    )
"""

from datetime import date
from typing import Any

ValidatorResult = tuple[bool, str | None]

_OK: ValidatorResult = (True, None)


def is_string(value: Any) -> ValidatorResult:
    if not isinstance(value, str):
        return (False, "expected string")
    return _OK


def is_number(value: Any) -> ValidatorResult:
    """Accept ints and floats; ``bool`` is rejected even though it subclasses int."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return (False, "expected number")
    return _OK


def is_boolean(value: Any) -> ValidatorResult:
    if value is not True and value is not False:
        return (False, "expected boolean")
    return _OK


def is_date(value: Any) -> ValidatorResult:
    # datetime is a subclass of date
    if not isinstance(value, date):
        return (False, "expected date")
    return _OK


def is_not_null(value: Any) -> ValidatorResult:
    if value is None:
        return (False, "expected not null")
    return _OK


def is_in_range(value: Any, minimum: Any, maximum: Any) -> ValidatorResult:
    """Check ``minimum <= value <= maximum``.

    ``None`` passes; combine with ``is_not_null`` to require a value.
    Values that cannot be compared with the bounds fail.
    """
    if value is None:
        return _OK

    message = f"expected {minimum} <= x <= {maximum}"
    try:
        if value < minimum or value > maximum:
            return (False, message)
    except TypeError:
        return (False, message)
    return _OK
