"""Exceptions raised by db-mapper.

Driver and SQL errors are never wrapped: they propagate exactly as the
connection raised them.  The classes here cover the failures this package
detects itself.

Usage:
    from db_mapper.errors import ValidationError

    try:
        instance.validate()
    except ValidationError as e:
        print(e.format_report())
"""


class DataMapperError(Exception):
    """Base class for errors raised by db-mapper."""

    pass


class ValidationError(DataMapperError):
    """Raised by ``validate()`` when one or more validators fail.

    All failing validators of all attributes are collected before this is
    raised, so ``failed`` is always the complete list.

    Args:
        failed: Ordered list of ``(attribute, message)`` tuples.

    Example:
        >>> err = ValidationError([("rating", "expected 0 <= x <= 10")])
        >>> err.attributes
        ['rating']
    """

    def __init__(self, failed: list[tuple[str, str]]) -> None:
        self.failed: list[tuple[str, str]] = list(failed)
        super().__init__(self._summary())

    @property
    def attributes(self) -> list[str]:
        """Names of the failing attributes, in failure order."""
        return [attribute for attribute, _ in self.failed]

    def _summary(self) -> str:
        parts = [f"{attribute}: {message}" for attribute, message in self.failed]
        return f"Validation failed ({len(self.failed)}): " + "; ".join(parts)

    def format_report(self) -> str:
        """Format the failures as a human-readable report."""
        lines = [f"Validation failed ({len(self.failed)}):"]
        for attribute, message in self.failed:
            lines.append(f"  - {attribute}: {message}")
        return "\n".join(lines)


class MultipleResultsError(DataMapperError):
    """Raised when a query expected at most one row but saw more."""

    pass


class AggregateCountError(DataMapperError):
    """Raised when an aggregate query did not return exactly one row."""

    pass
