"""Schema type graphs resolved through the traversal state.

Object types reference other types by name only, so the graph between them
exists solely through a :class:`Schema`. Children are looked up through
``state.schema`` at traversal time, which lets an evaluator swap the schema
for a subtree and lets recursive types (``User.friends: [User]``) close
cycles that the engine's seen-set then cuts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from beartype import beartype

from .instructions import Continue, Prune
from .state import TraversalState
from .traversal import reduce


class SchemaError(LookupError):
    """A type reference cannot be resolved against the schema."""


@dataclass(frozen=True)
class ScalarType:
    """Leaf type with no fields."""

    name: str

    def children(self, state: TraversalState) -> tuple:
        del state
        return ()


@dataclass(frozen=True)
class FieldDefinition:
    """Field of an object type pointing at another type by name."""

    owner: str
    name: str
    type_name: str

    def children(self, state: TraversalState) -> tuple:
        return (resolve_type(state.schema, self.type_name),)


@dataclass(frozen=True)
class ObjectType:
    """Named type whose children are its fields in declaration order."""

    name: str
    fields: tuple[FieldDefinition, ...] = ()

    def children(self, state: TraversalState) -> tuple[FieldDefinition, ...]:
        del state
        return self.fields


SchemaType = ScalarType | ObjectType


@dataclass(frozen=True)
class Schema:
    """Collection of named types."""

    types: Mapping[str, SchemaType] = field(default_factory=dict)

    @classmethod
    def from_definitions(
        cls,
        objects: Mapping[str, Mapping[str, str]],
        scalars: tuple[str, ...] = ("String", "Int", "Float", "Boolean", "ID"),
    ) -> "Schema":
        """Build a schema from ``{type: {field: field_type}}`` mappings."""

        types: dict[str, SchemaType] = {name: ScalarType(name) for name in scalars}
        for type_name, fields in objects.items():
            if type_name in types:
                raise ValueError(f"type '{type_name}' is defined more than once")
            types[type_name] = ObjectType(
                name=type_name,
                fields=tuple(
                    FieldDefinition(owner=type_name, name=name, type_name=target)
                    for name, target in fields.items()
                ),
            )
        return cls(types=types)

    def __getitem__(self, name: str) -> SchemaType:
        return resolve_type(self, name)


def resolve_type(schema: object, type_name: str) -> SchemaType:
    """Look ``type_name`` up in ``schema`` or raise :class:`SchemaError`."""

    if not isinstance(schema, Schema):
        raise SchemaError(
            f"cannot resolve type '{type_name}' without a Schema; "
            f"got {type(schema).__name__}"
        )
    resolved = schema.types.get(type_name)
    if resolved is None:
        raise SchemaError(f"unknown type '{type_name}'")
    return resolved


@beartype
def reachable_types(schema: Schema, root: str) -> tuple[str, ...]:
    """Return type names reachable from ``root`` in first-visit order."""

    def collect(node: object, state: TraversalState, names: tuple) -> Continue:
        if isinstance(node, (ObjectType, ScalarType)):
            return Continue(names + (node.name,), state)
        return Continue(names, state)

    return reduce(schema[root], schema, (), collect)


@beartype
def recursive_fields(schema: Schema, root: str) -> tuple[str, ...]:
    """Return ``Type.field`` names whose type already encloses them.

    A field is recursive when its target type appears on the path above it,
    i.e. expanding it would re-enter a type currently being expanded. Each
    type is expanded once, at its first visit, so the result lists the fields
    that close a cycle along that depth-first walk.
    """

    def collect(node: object, state: TraversalState, found: tuple) -> Continue | Prune:
        if not isinstance(node, FieldDefinition):
            return Continue(found, state)
        ancestors = {
            ancestor.name
            for ancestor in state.ancestors
            if isinstance(ancestor, ObjectType)
        }
        if node.type_name in ancestors:
            return Prune(found + (f"{node.owner}.{node.name}",), state)
        return Continue(found, state)

    return reduce(schema[root], schema, (), collect)


__all__ = [
    "FieldDefinition",
    "ObjectType",
    "ScalarType",
    "Schema",
    "SchemaError",
    "SchemaType",
    "reachable_types",
    "recursive_fields",
    "resolve_type",
]
