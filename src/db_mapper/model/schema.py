"""Declarative model schemas.

A ``ModelSchema`` describes one model type: its attributes (with column
aliases, defaults and the identity flag), the table it lives in, lifecycle
hooks, validators, and extra instance methods.  Schemas are frozen after
definition and shared by every instance and DAO of the model.

Usage:
    from db_mapper.model.schema import Attribute, ModelSchema, Types

    schema = ModelSchema(
        name="Movie",
        table="movies",
        attributes={
            "id": Attribute(type=Types.Serial, id=True),
            "title": Attribute(type=str, column="movie_title"),
            "tags": Attribute(type=list, default_of_type=True),
        },
    )
    schema.id_attribute          # "id"
    schema.column_for("title")   # "movie_title"
"""

import copy
import uuid
from functools import cached_property
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


HookName = Literal[
    "pre_create",
    "post_create",
    "pre_update",
    "post_update",
    "pre_destroy",
    "post_destroy",
]

HOOK_NAMES: tuple[str, ...] = (
    "pre_create",
    "post_create",
    "pre_update",
    "post_update",
    "pre_destroy",
    "post_destroy",
)


class Serial(int):
    """Integer generated by the database (``serial`` / identity columns)."""

    pass


class Types:
    """Type tags for database-generated identifiers."""

    Serial = Serial
    UUID = uuid.UUID


# ============================================================================
# Attribute
# ============================================================================


class Attribute(BaseModel):
    """Description of a single model attribute.

    Defaults are resolved in this order when an instance is built without a
    value: ``default_factory()``, then ``type()`` if ``default_of_type`` is
    set, then a deep copy of ``default`` (so mutable defaults are not shared).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Any = None
    column: str | None = None                       # defaults to the attribute name
    default: Any = None
    default_factory: Callable[[], Any] | None = None
    default_of_type: bool = False
    id: bool = False

    def initial_value(self) -> Any:
        """Value used when the raw map supplies nothing for this attribute."""
        if self.default_factory is not None:
            return self.default_factory()
        if self.default_of_type and self.type is not None:
            return self.type()
        return copy.deepcopy(self.default)


# ============================================================================
# Model Schema
# ============================================================================


class ModelSchema(BaseModel):
    """Complete, immutable description of a model type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    attributes: dict[str, Attribute]
    table: str | None = None
    hooks: dict[HookName, list[Callable[..., Any]]] = Field(default_factory=dict)
    validations: dict[str, list[Any]] = Field(default_factory=dict)
    methods: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    initializer: Callable[..., Any] | None = None

    @field_validator("attributes")
    @classmethod
    def _fill_columns(cls, attributes: dict[str, Attribute]) -> dict[str, Attribute]:
        """Default every column alias to its attribute name."""
        return {
            name: attr if attr.column else attr.model_copy(update={"column": name})
            for name, attr in attributes.items()
        }

    @field_validator("validations")
    @classmethod
    def _check_validators(cls, validations: dict[str, list[Any]]) -> dict[str, list[Any]]:
        for attribute, entries in validations.items():
            for entry in entries:
                fn = entry[0] if isinstance(entry, (tuple, list)) and entry else entry
                if not callable(fn):
                    raise ValueError(
                        f"Expected validation function for '{attribute}', got {entry!r}"
                    )
        return validations

    @model_validator(mode="after")
    def _check_consistency(self) -> "ModelSchema":
        id_attributes = [name for name, attr in self.attributes.items() if attr.id]
        if len(id_attributes) > 1:
            raise ValueError(
                f"Model '{self.name}' declares more than one id attribute: "
                f"{', '.join(id_attributes)}"
            )

        unknown = [name for name in self.validations if name not in self.attributes]
        if unknown:
            raise ValueError(
                f"Validations reference undeclared attributes of '{self.name}': "
                f"{', '.join(unknown)}"
            )
        return self

    # ------------------------------------------------------------------
    # Derived lookups (computed once per schema)
    # ------------------------------------------------------------------

    @cached_property
    def id_attribute(self) -> str | None:
        """Name of the identity attribute, or ``None``."""
        for name, attr in self.attributes.items():
            if attr.id:
                return name
        return None

    @cached_property
    def id_column(self) -> str | None:
        """Column of the identity attribute, or ``None``."""
        if self.id_attribute is None:
            return None
        return self.column_for(self.id_attribute)

    @cached_property
    def attributes_by_column(self) -> dict[str, str]:
        return {attr.column: name for name, attr in self.attributes.items()}

    def column_for(self, attribute: str) -> str:
        """Translate an attribute name into its column name."""
        return self.attributes[attribute].column or attribute

    def attribute_for(self, key: str) -> str | None:
        """Translate a column (or attribute) name into an attribute name.

        Column aliases win over attribute names.  Returns ``None`` for keys
        that match neither.
        """
        if key in self.attributes_by_column:
            return self.attributes_by_column[key]
        if key in self.attributes:
            return key
        return None

    def hooks_for(self, phase: str) -> list[Callable[..., Any]]:
        """Hooks registered for a lifecycle phase, in declared order."""
        if phase not in HOOK_NAMES:
            raise ValueError(f"Unknown lifecycle phase: {phase}")
        return list(self.hooks.get(phase, []))
