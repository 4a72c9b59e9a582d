"""Validator primitives and the error they feed.

Usage:
    from db_mapper.validation import is_string, is_in_range, ValidationError
"""

from db_mapper.errors import ValidationError
from db_mapper.validation.validators import (
    ValidatorResult,
    is_boolean,
    is_date,
    is_in_range,
    is_not_null,
    is_number,
    is_string,
)

__all__ = [
    "ValidationError",
    "ValidatorResult",
    "is_string",
    "is_number",
    "is_boolean",
    "is_date",
    "is_not_null",
    "is_in_range",
]
