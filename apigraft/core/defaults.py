"""Default value synthesis for form initialization.

Produces empty placeholder values for a schema: strings become ``""``,
numbers ``0``, booleans ``False``, arrays ``[]``, enums their first value,
nullable values ``None`` and optional object keys are left out.

Two inputs are accepted. Emitted validator expressions are parsed into a
``DefaultableSchema`` view (``parse_expression``), and IR nodes are converted
directly (``from_ir``). References are resolved through a ``DefaultContext``
built from either form; a reference that re-enters itself yields ``{}``.

Example usage:
    from apigraft.core.defaults import (
        build_default_context, extract_schema_definitions, generate_default_value,
    )

    context = build_default_context(extract_schema_definitions(module_text))
    generate_default_value("userSchema", context)  # {"name": "", "age": 0}
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from .ir import (
    ArraySchema,
    BigIntSchema,
    BooleanSchema,
    EnumSchema,
    IntersectionSchema,
    LiteralSchema,
    NamedSchemaIR,
    NullableSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    RecordSchema,
    RefSchema,
    SchemaIR,
    StringSchema,
    UnionSchema,
)
from .naming import safe_property_name

REFERENCE_PATTERN = re.compile(r"^[a-zA-Z]\w*Schema$")
DEFINITION_PATTERN = re.compile(r"^export const (\w+Schema) = ([\s\S]+)$")

STRING_PREFIXES = (
    "z.string()", "z.email()", "z.url()", "z.uuid()", "z.ipv4()", "z.ipv6()",
    "z.iso.datetime()", "z.iso.date()", "z.iso.time()",
)
NUMBER_PREFIXES = ("z.number()", "z.bigint()")

OPENERS = "([{"
CLOSERS = ")]}"


class _Absent:
    def __repr__(self) -> str:
        return "ABSENT"


# Returned for optional values; never stored inside generated objects
ABSENT = _Absent()


@dataclass
class DefaultableSchema:
    """Structured view of a schema, reduced to what defaults need.

    ``type`` is one of string, number, boolean, array, object, enum, union,
    intersection, literal, reference or unknown.
    """
    type: str
    nullable: bool = False
    optional: bool = False
    item_type: "DefaultableSchema | None" = None
    properties: dict[str, "DefaultableSchema"] | None = None
    spreads: list[str] = field(default_factory=list)
    enum_values: list[Any] = field(default_factory=list)
    members: list["DefaultableSchema"] = field(default_factory=list)
    reference_name: str | None = None
    value: Any = None


@dataclass
class DefaultContext:
    """Named schemas available for reference resolution.

    Values are either validator expression text or IR nodes.
    """
    schemas: dict[str, str | SchemaIR] = field(default_factory=dict)
    parsed: dict[str, DefaultableSchema] = field(default_factory=dict)

    def resolve(self, name: str) -> DefaultableSchema | None:
        if name in self.parsed:
            return self.parsed[name]
        source = self.schemas.get(name)
        if source is None:
            return None
        if isinstance(source, str):
            resolved = parse_expression(source)
        else:
            resolved = from_ir(source)
        self.parsed[name] = resolved
        return resolved


# Emitted module text


def extract_schema_definitions(content: str) -> list[str]:
    """Split an emitted module into complete ``export const xSchema = ...`` definitions.

    Multi-line definitions are tracked by bracket depth.
    """
    definitions: list[str] = []
    current: list[str] = []
    depth = 0

    for line in content.split("\n"):
        if line.startswith("export const ") and "Schema" in line:
            if current:
                definitions.append("\n".join(current).strip())
            current = [line]
            depth = _bracket_delta(line)
        elif current:
            current.append(line)
            depth += _bracket_delta(line)
        else:
            continue

        if depth == 0:
            definitions.append("\n".join(current).strip())
            current = []

    # Unbalanced trailing definition
    if current:
        definitions.append("\n".join(current).strip())

    return definitions


def _bracket_delta(line: str) -> int:
    return sum(1 for c in line if c in OPENERS) - sum(1 for c in line if c in CLOSERS)


def build_default_context(definitions: list[str]) -> DefaultContext:
    """Reference table from emitted definitions, keyed by ``xSchema`` name."""
    context = DefaultContext()
    for definition in definitions:
        match = DEFINITION_PATTERN.match(definition)
        if match:
            context.schemas[match.group(1)] = match.group(2).strip()
    return context


def build_ir_context(schemas: list[NamedSchemaIR]) -> DefaultContext:
    """Reference table from named IR schemas, keyed by schema name."""
    return DefaultContext(schemas={s.name: s.schema for s in schemas})


def split_top_level(text: str, delimiter: str = ",") -> list[str]:
    """Split on ``delimiter`` outside brackets and quoted strings."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote = None
    i = 0
    while i < len(text):
        char = text[i]
        if char in "\"'" and (i == 0 or text[i - 1] != "\\"):
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        if quote is None:
            if char in OPENERS:
                depth += 1
            elif char in CLOSERS:
                depth -= 1
            if depth == 0 and text.startswith(delimiter, i):
                parts.append("".join(current))
                current = []
                i += len(delimiter)
                continue
        current.append(char)
        i += 1
    if current:
        parts.append("".join(current))
    return parts


def find_top_level_colon(text: str) -> int:
    """Index of the first ``:`` outside brackets and strings, or -1."""
    depth = 0
    quote = None
    for i, char in enumerate(text):
        if char in "\"'" and (i == 0 or text[i - 1] != "\\"):
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        if quote is not None:
            continue
        if char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
        elif char == ":" and depth == 0:
            return i
    return -1


def split_intersection(text: str) -> list[str]:
    """Split ``a.and(b).and(c)`` into ``["a", "b", "c"]``.

    Text without a top-level ``.and(`` comes back as a single item.
    """
    members: list[str] = []
    depth = 0
    start = 0
    in_argument = False
    i = 0
    while i < len(text):
        if depth == 0 and text.startswith(".and(", i):
            if text[start:i].strip():
                members.append(text[start:i])
            i += len(".and(")
            start = i
            depth = 1
            in_argument = True
            continue
        char = text[i]
        if char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
            if depth == 0 and in_argument:
                members.append(text[start:i])
                start = i + 1
                in_argument = False
        i += 1
    if not members:
        return [text]
    return members


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def parse_expression(expression: str) -> DefaultableSchema:
    """Parse a validator expression into a ``DefaultableSchema``.

    Unrecognised expressions parse as ``unknown``.
    """
    base = expression.strip()
    nullable = optional = False

    # Modifiers may be chained in either order
    for _ in range(2):
        if base.endswith(".nullable()"):
            nullable = True
            base = base[: -len(".nullable()")]
        if base.endswith(".optional()"):
            optional = True
            base = base[: -len(".optional()")]
        if base.endswith(".nullish()"):
            optional = True
            base = base[: -len(".nullish()")]

    result = _parse_base(base)
    result.nullable = nullable
    result.optional = optional
    return result


def _parse_base(base: str) -> DefaultableSchema:
    members = split_intersection(base)
    if len(members) > 1:
        return DefaultableSchema("intersection", members=[parse_expression(m) for m in members])

    if REFERENCE_PATTERN.match(base):
        return DefaultableSchema("reference", reference_name=base)
    if base.startswith(STRING_PREFIXES):
        return DefaultableSchema("string")
    if base.startswith(NUMBER_PREFIXES):
        return DefaultableSchema("number")
    if base.startswith("z.boolean()"):
        return DefaultableSchema("boolean")
    if base.startswith("z.unknown()"):
        return DefaultableSchema("unknown")

    match = re.match(r"^z\.lazy\(\(\) => (.+)\)$", base, re.S)
    if match:
        return parse_expression(match.group(1))

    match = re.match(r"^z\.literal\((.+)\)$", base, re.S)
    if match:
        try:
            return DefaultableSchema("literal", value=json.loads(match.group(1)))
        except ValueError:
            return DefaultableSchema("unknown")

    match = re.match(r"^z\.array\((.+)\)", base, re.S)
    if match:
        return DefaultableSchema("array", item_type=parse_expression(match.group(1)))

    match = re.match(r"^z\.enum\(\[(.+)\]\)", base, re.S)
    if match:
        values = [_strip_quotes(v.strip()) for v in split_top_level(match.group(1))]
        return DefaultableSchema("enum", enum_values=values)

    match = re.match(r"^z\.union\(\[(.+)\]\)", base, re.S)
    if match:
        members = [parse_expression(part) for part in split_top_level(match.group(1))]
        return DefaultableSchema("union", members=members)

    match = re.match(r"^z\.object\(\{([\s\S]*)\}\)", base)
    if match:
        return _parse_object(match.group(1).strip())

    if base.startswith("z.record("):
        return DefaultableSchema("object", properties={})

    return DefaultableSchema("unknown")


def _parse_object(content: str) -> DefaultableSchema:
    properties: dict[str, DefaultableSchema] = {}
    spreads: list[str] = []
    for pair in split_top_level(content):
        pair = pair.strip()
        if not pair:
            continue
        if pair.startswith("..."):
            spread = re.match(r"^\.\.\.(\w+Schema)\.shape$", pair)
            if spread:
                spreads.append(spread.group(1))
            continue
        colon = find_top_level_colon(pair)
        if colon == -1:
            continue
        name = _strip_quotes(pair[:colon].strip())
        expression = pair[colon + 1:].strip()
        if name and expression:
            properties[name] = parse_expression(expression)
    return DefaultableSchema("object", properties=properties, spreads=spreads)


# IR


def from_ir(schema: SchemaIR, optional: bool = False) -> DefaultableSchema:
    """Convert an IR node; references keep the IR schema name."""
    if isinstance(schema, NullableSchema):
        result = from_ir(schema.inner)
        result.nullable = True
    elif isinstance(schema, StringSchema):
        result = DefaultableSchema("string")
    elif isinstance(schema, (NumberSchema, BigIntSchema)):
        result = DefaultableSchema("number")
    elif isinstance(schema, BooleanSchema):
        result = DefaultableSchema("boolean")
    elif isinstance(schema, NullSchema):
        result = DefaultableSchema("unknown", nullable=True)
    elif isinstance(schema, ArraySchema):
        result = DefaultableSchema("array", item_type=from_ir(schema.items))
    elif isinstance(schema, ObjectSchema):
        result = DefaultableSchema(
            "object",
            properties={
                name: from_ir(prop.schema, optional=not prop.required)
                for name, prop in schema.properties.items()
            },
            spreads=list(schema.fragment_spreads),
        )
    elif isinstance(schema, RecordSchema):
        result = DefaultableSchema("object", properties={})
    elif isinstance(schema, EnumSchema):
        result = DefaultableSchema("enum", enum_values=list(schema.values))
    elif isinstance(schema, UnionSchema):
        result = DefaultableSchema("union", members=[from_ir(m) for m in schema.members])
    elif isinstance(schema, IntersectionSchema):
        result = DefaultableSchema("intersection", members=[from_ir(m) for m in schema.members])
    elif isinstance(schema, RefSchema):
        result = DefaultableSchema("reference", reference_name=schema.name)
    elif isinstance(schema, LiteralSchema):
        result = DefaultableSchema("literal", value=schema.value)
    else:
        result = DefaultableSchema("unknown")

    if optional:
        result.optional = True
    return result


# Generation


def generate_default_value(
    schema: str | SchemaIR | DefaultableSchema,
    context: DefaultContext | None = None,
) -> Any:
    """Default value for an expression, an IR node or a parsed view.

    Returns ``ABSENT`` for an optional top-level schema.
    """
    context = context or DefaultContext()
    if isinstance(schema, str):
        parsed = parse_expression(schema)
    elif isinstance(schema, DefaultableSchema):
        parsed = schema
    else:
        parsed = from_ir(schema)
    return _generate(parsed, context, frozenset())


def _generate(parsed: DefaultableSchema, context: DefaultContext, resolving: frozenset[str]) -> Any:
    # An optional value is absent even when it also accepts null
    if parsed.optional:
        return ABSENT
    if parsed.nullable:
        return None

    kind = parsed.type
    if kind == "string":
        return ""
    if kind == "number":
        return 0
    if kind == "boolean":
        return False
    if kind == "array":
        return []
    if kind == "enum":
        return parsed.enum_values[0] if parsed.enum_values else None
    if kind == "literal":
        return parsed.value
    if kind == "object":
        return _generate_object(parsed, context, resolving)
    if kind == "union":
        for member in parsed.members:
            if member.type != "unknown":
                return _generate(member, context, resolving)
        return None
    if kind == "intersection":
        merged: dict[str, Any] = {}
        for member in parsed.members:
            value = _generate(member, context, resolving)
            if not isinstance(value, dict):
                return value
            merged.update(value)
        return merged
    if kind == "reference":
        return _generate_reference(parsed.reference_name, context, resolving)
    return None


def _generate_object(parsed: DefaultableSchema, context: DefaultContext, resolving: frozenset[str]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spread in parsed.spreads:
        value = _generate_reference(spread, context, resolving)
        if isinstance(value, dict):
            result.update(value)
    for name, prop in (parsed.properties or {}).items():
        value = _generate(prop, context, resolving)
        if value is not ABSENT:
            result[name] = value
    return result


def _generate_reference(name: str | None, context: DefaultContext, resolving: frozenset[str]) -> Any:
    if name is None or name in resolving:
        return {}
    resolved = context.resolve(name)
    if resolved is None:
        return {}
    return _generate(resolved, context, resolving | {name})


# Rendering


def render_default_value(value: Any, indent: str = "") -> str:
    """Render a generated default as a target-language literal.

    Object keys that are not identifiers are quoted.
    """
    if value is None or value is ABSENT:
        return "null" if value is None else "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        if not value:
            return "[]"
        return "[" + ", ".join(render_default_value(v, indent) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        lines = []
        for key, item in value.items():
            lines.append(f"{indent}  {safe_property_name(key)}: {render_default_value(item, indent + '  ')}")
        return "{\n" + ",\n".join(lines) + f",\n{indent}}}"
    return "null"
