"""Intermediate Representation (IR) for API schemas.

This module defines frozen dataclasses that describe schema shapes in a
format-agnostic way. OpenAPI and GraphQL sources are both mapped into these
nodes, and every renderer and analyzer downstream consumes them.

Every node class has a ``kind`` class attribute; exactly one kind is active
per node. ``RefSchema`` only carries a name, never inline structure.

Example usage:
    from apigraft.core.ir import ObjectSchema, ObjectProperty, StringSchema

    user = ObjectSchema(properties={
        "id": ObjectProperty(StringSchema(format="uuid"), required=True),
        "nickname": ObjectProperty(StringSchema(), required=False),
    })
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

# Formats understood for string nodes
STRING_FORMATS = ("datetime", "date", "time", "email", "url", "uuid", "ipv4", "ipv6")


@dataclass(frozen=True)
class StringSchema:
    """A string, optionally refined by one of ``STRING_FORMATS``."""
    format: str | None = None
    kind: ClassVar[str] = "string"


@dataclass(frozen=True)
class NumberSchema:
    integer: bool = False
    kind: ClassVar[str] = "number"


@dataclass(frozen=True)
class BooleanSchema:
    kind: ClassVar[str] = "boolean"


@dataclass(frozen=True)
class BigIntSchema:
    kind: ClassVar[str] = "bigint"


@dataclass(frozen=True)
class NullSchema:
    kind: ClassVar[str] = "null"


@dataclass(frozen=True)
class UnknownSchema:
    """Passthrough for anything that could not (or need not) be typed."""
    kind: ClassVar[str] = "unknown"


@dataclass(frozen=True)
class NullableSchema:
    """Wraps a node that additionally accepts null."""
    inner: "SchemaIR"
    kind: ClassVar[str] = "nullable"


@dataclass(frozen=True)
class ObjectProperty:
    """A property of an object node."""
    schema: "SchemaIR"
    required: bool = True


@dataclass(frozen=True)
class ObjectSchema:
    """An object with ordered properties.

    ``additional`` is None for a closed object, True for passthrough of
    unknown keys, or a schema that every unknown key must satisfy (catchall).
    ``fragment_spreads`` names the fragment schemas whose fields are merged in.
    """
    properties: dict[str, ObjectProperty] = field(default_factory=dict)
    additional: Union[bool, "SchemaIR", None] = None
    fragment_spreads: tuple[str, ...] = ()
    kind: ClassVar[str] = "object"

    @property
    def is_passthrough(self) -> bool:
        return self.additional is True

    @property
    def catchall(self) -> "SchemaIR | None":
        if self.additional is None or isinstance(self.additional, bool):
            return None
        return self.additional


@dataclass(frozen=True)
class ArraySchema:
    items: "SchemaIR"
    kind: ClassVar[str] = "array"


@dataclass(frozen=True)
class EnumSchema:
    """Ordered literal values; GraphQL enums are always strings."""
    values: tuple[str | int | float, ...]
    kind: ClassVar[str] = "enum"


@dataclass(frozen=True)
class UnionSchema:
    members: tuple["SchemaIR", ...]
    kind: ClassVar[str] = "union"


@dataclass(frozen=True)
class IntersectionSchema:
    members: tuple["SchemaIR", ...]
    kind: ClassVar[str] = "intersection"


@dataclass(frozen=True)
class RecordSchema:
    """A map from keys to values; key schemas are always primitive."""
    key: "SchemaIR"
    value: "SchemaIR"
    kind: ClassVar[str] = "record"


@dataclass(frozen=True)
class RefSchema:
    """A reference to another named schema."""
    name: str
    kind: ClassVar[str] = "ref"


@dataclass(frozen=True)
class LiteralSchema:
    value: Any
    kind: ClassVar[str] = "literal"


@dataclass(frozen=True)
class RawSchema:
    """Verbatim target-language code, used for custom scalar mappings."""
    code: str
    kind: ClassVar[str] = "raw"


SchemaIR = Union[
    StringSchema,
    NumberSchema,
    BooleanSchema,
    BigIntSchema,
    NullSchema,
    UnknownSchema,
    NullableSchema,
    ObjectSchema,
    ArraySchema,
    EnumSchema,
    UnionSchema,
    IntersectionSchema,
    RecordSchema,
    RefSchema,
    LiteralSchema,
    RawSchema,
]


class SchemaCategory(str, Enum):
    """Emission group of a named schema. Does not affect typing."""
    COMPONENT = "component"
    ENUM = "enum"
    INPUT = "input"
    FRAGMENT = "fragment"
    VARIABLES = "variables"
    RESPONSE = "response"
    PARAMS = "params"


@dataclass(frozen=True)
class NamedSchemaIR:
    """A schema with a stable name and the names it references.

    Build these through ``graph.create_named_schema`` so that
    ``dependencies`` is extracted from the schema and never contains
    the schema's own name.
    """
    name: str
    schema: SchemaIR
    category: SchemaCategory = SchemaCategory.COMPONENT
    dependencies: frozenset[str] = frozenset()


def make_nullable(schema: SchemaIR) -> SchemaIR:
    """Wrap a node in ``NullableSchema`` unless it already accepts null."""
    if isinstance(schema, (NullableSchema, NullSchema, UnknownSchema)):
        return schema
    return NullableSchema(schema)


def unwrap_nullable(schema: SchemaIR) -> SchemaIR:
    """Strip one level of nullability, if any."""
    if isinstance(schema, NullableSchema):
        return schema.inner
    return schema


def union_of(members: list[SchemaIR]) -> SchemaIR:
    """Build a union, collapsing single members and empty lists."""
    if not members:
        return UnknownSchema()
    if len(members) == 1:
        return members[0]
    return UnionSchema(tuple(members))


def intersection_of(members: list[SchemaIR]) -> SchemaIR:
    """Build an intersection, collapsing single members and empty lists."""
    if not members:
        return UnknownSchema()
    if len(members) == 1:
        return members[0]
    return IntersectionSchema(tuple(members))


def string_record() -> RecordSchema:
    """``record(string, unknown)``, the shape of free-form JSON objects."""
    return RecordSchema(key=StringSchema(), value=UnknownSchema())
