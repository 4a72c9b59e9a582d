"""Change-tracking model instances.

``ModelInstance`` is the base class of every class produced by
``define_model()``.  It keeps two maps:

- ``_current``: every declared attribute and its current value.
- ``_original``: baselines for attributes whose value diverged since the
  last ``checkpoint()``.  Its key set is the dirty set.

Attribute properties generated per model route writes through ``set()``,
which maintains the dirty set and fires change notifications.

Usage:
    movie = Movie(title="Alien")
    movie.on("change", lambda name, old, new: print(name, old, new))

    movie.title = "Aliens"
    movie.has_changed("title")   # True
    movie.changed()              # {"title": "Aliens"}
    movie.original("title")      # "Alien"

    movie.title = "Alien"        # back to the baseline
    movie.has_changed("title")   # False
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, ClassVar

from db_mapper.errors import ValidationError
from db_mapper.model.schema import ModelSchema

# Names used by the instance API; declared attributes may not shadow them.
RESERVED_NAMES: frozenset[str] = frozenset(
    {
        "model_schema",
        "attr",
        "changed",
        "original",
        "has_changed",
        "checkpoint",
        "validate",
        "get",
        "set",
        "on",
        "off",
        "emit",
    }
)

WILDCARD_EVENT = "change"


class ModelInstance:
    """A live record with per-attribute change tracking.

    Not instantiated directly: use the class returned by ``define_model()``.

    Args:
        attrs: Optional raw mapping keyed by attribute or column names.
        *args: Extra arguments forwarded to the schema's initializer.
        **kwargs: Attribute values, merged over ``attrs``.
    """

    __slots__ = ("_current", "_original", "_listeners")

    model_schema: ClassVar[ModelSchema]

    def __init__(
        self, attrs: Mapping[str, Any] | None = None, /, *args: Any, **kwargs: Any
    ) -> None:
        schema = self.model_schema
        raw: dict[str, Any] = {**(attrs or {}), **kwargs}

        self._current: dict[str, Any] = {}
        self._original: dict[str, Any] = {}
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

        if schema.initializer is not None:
            schema.initializer(self, raw, *args)

        for name, attribute in schema.attributes.items():
            if name in raw:
                value = raw[name]
            elif attribute.column in raw:
                value = raw[attribute.column]
            else:
                value = attribute.initial_value()
            self._current[name] = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._current!r})"

    # ------------------------------------------------------------------
    # Reflection access
    # ------------------------------------------------------------------

    def _resolve(self, name: str) -> str | None:
        if name == "id":
            return self.model_schema.id_attribute
        return name

    def get(self, name: str) -> Any:
        """Current value of ``name``; ``None`` for undeclared names."""
        resolved = self._resolve(name)
        if resolved is None:
            return None
        return self._current.get(resolved)

    def set(self, name: str, value: Any) -> None:
        """Write an attribute, maintaining the dirty set.

        ``id`` writes go to the identity attribute and are ignored when the
        schema declares none.

        Raises:
            AttributeError: If ``name`` is not a declared attribute.
        """
        resolved = self._resolve(name)
        if resolved is None:
            return
        if resolved not in self._current:
            raise AttributeError(
                f"'{type(self).__name__}' has no attribute '{name}'"
            )

        old = self._current[resolved]
        if resolved not in self._original:
            self._original[resolved] = old
        if value == self._original[resolved]:
            del self._original[resolved]

        self._current[resolved] = value

        self.emit(WILDCARD_EVENT, resolved, old, value)
        self.emit(f"{WILDCARD_EVENT}:{resolved}", old, value)

    # ------------------------------------------------------------------
    # Derived reads
    # ------------------------------------------------------------------

    def attr(self, name: str | Iterable[str] | None = None) -> Any:
        """Current values.

        No argument returns a copy of every value, a string returns one
        value, and a list of names returns the matching sub-dict.
        """
        if name is None:
            return dict(self._current)
        if isinstance(name, str):
            return self._current.get(name)
        return {n: self._current[n] for n in name if n in self._current}

    def changed(self, name: str | Iterable[str] | None = None) -> Any:
        """Current values of dirty attributes only."""
        if name is None:
            return {n: self._current[n] for n in self._original}
        if isinstance(name, str):
            if name in self._original:
                return self._current[name]
            return None
        return {n: self._current[n] for n in name if n in self._original}

    def original(self, name: str | Iterable[str] | None = None) -> Any:
        """Baseline values of dirty attributes."""
        if name is None:
            return dict(self._original)
        if isinstance(name, str):
            return self._original.get(name)
        return {n: self._original[n] for n in name if n in self._original}

    def has_changed(self, name: str) -> bool:
        return name in self._original

    def checkpoint(self) -> None:
        """Make the current values the new baseline."""
        self._original = {}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Run every declared validator and raise once with all failures.

        Raises:
            ValidationError: If any validator fails.
        """
        failed: list[tuple[str, str]] = []

        validations = self.model_schema.validations
        for name in self.model_schema.attributes:
            value = self._current.get(name)
            for entry in validations.get(name, ()):
                if isinstance(entry, (tuple, list)):
                    fn, extra = entry[0], tuple(entry[1:])
                else:
                    fn, extra = entry, ()

                result = fn(value, *extra)
                if not result[0]:
                    message = result[1] if len(result) > 1 else None
                    failed.append((name, message or "invalid"))

        if failed:
            raise ValidationError(failed)

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Subscribe to ``"change"`` or ``"change:<attribute>"``."""
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[..., Any]) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)
