"""Model definition.

``define_model()`` turns a set of attribute declarations into a record
class: one property per declared attribute, an ``id`` property aliased to
the identity attribute, and any extra methods.  The class uses
``__slots__``, so assigning an undeclared attribute raises
``AttributeError``.

Usage:
    from db_mapper import Attribute, Types, define_model
    from db_mapper.validation import is_in_range, is_string

    Movie = define_model(
        "Movie",
        {
            "movie_id": Attribute(type=Types.Serial, id=True),
            "title": Attribute(type=str),
            "rating": Attribute(type=int),
        },
        table="movies",
        validations={"title": [is_string], "rating": [(is_in_range, 0, 10)]},
        hooks={"pre_create": [lambda movie: print("saving", movie.title)]},
        methods={"shout": lambda self: self.title.upper()},
    )

    movie = Movie(title="Alien", rating=8)
    movie.id        # same as movie.movie_id
"""

from collections.abc import Callable, Mapping
from typing import Any

from db_mapper.model.instance import RESERVED_NAMES, ModelInstance
from db_mapper.model.schema import Attribute, ModelSchema


def _attribute_property(name: str) -> property:
    def getter(self: ModelInstance) -> Any:
        return self._current[name]

    def setter(self: ModelInstance, value: Any) -> None:
        self.set(name, value)

    return property(getter, setter, doc=f"Model attribute '{name}'.")


def _identity_property(id_attribute: str | None) -> property:
    """Build the ``id`` accessor for a schema.

    Without an identity attribute the accessor is inert: it reads ``None``
    and ignores writes.
    """
    if id_attribute is None:
        return property(lambda self: None, lambda self, value: None, doc="Inert identity.")
    return _attribute_property(id_attribute)


def _check_names(schema: ModelSchema) -> None:
    for name, attribute in schema.attributes.items():
        if name.startswith("_") or name in RESERVED_NAMES:
            raise ValueError(f"Attribute name '{name}' is reserved")
        if name == "id" and not attribute.id:
            raise ValueError(
                "An attribute named 'id' must be the identity attribute (id=True)"
            )
        if name in schema.methods:
            raise ValueError(f"Attribute '{name}' collides with a method of the same name")

    for name in schema.methods:
        if name.startswith("_") or name in RESERVED_NAMES or name == "id":
            raise ValueError(f"Method name '{name}' is reserved")


def define_model(
    name: str,
    attributes: Mapping[str, Attribute | Mapping[str, Any]],
    *,
    table: str | None = None,
    hooks: Mapping[str, list[Callable[..., Any]]] | None = None,
    validations: Mapping[str, list[Any]] | None = None,
    methods: Mapping[str, Callable[..., Any]] | None = None,
    initializer: Callable[..., Any] | None = None,
) -> type[ModelInstance]:
    """Define a model type.

    Args:
        name: Class name of the generated model.
        attributes: Attribute name -> ``Attribute`` (or a dict of its fields).
        table: Physical table name used by the DAO.
        hooks: Lifecycle phase -> ordered list of ``hook(instance)`` callables.
        validations: Attribute name -> ordered list of validators, each a
            callable or a ``(callable, *extra_args)`` tuple.
        methods: Extra instance methods, called with the instance as ``self``.
        initializer: Called as ``initializer(instance, raw, *args)`` before
            attribute values are populated; may modify the ``raw`` dict.

    Returns:
        A ``ModelInstance`` subclass bound to the new schema.

    Raises:
        ValueError: If the declarations are inconsistent (two identity
            attributes, reserved names, unknown hook phases, ...).
    """
    schema = ModelSchema(
        name=name,
        attributes=dict(attributes),
        table=table,
        hooks=dict(hooks or {}),
        validations=dict(validations or {}),
        methods=dict(methods or {}),
        initializer=initializer,
    )
    _check_names(schema)

    namespace: dict[str, Any] = {
        "__slots__": (),
        "__doc__": f"Model '{name}' (table: {table}).",
        "model_schema": schema,
        "id": _identity_property(schema.id_attribute),
    }
    for attribute_name in schema.attributes:
        namespace[attribute_name] = _attribute_property(attribute_name)
    namespace.update(schema.methods)

    return type(name, (ModelInstance,), namespace)
