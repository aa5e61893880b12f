"""Validator code emitter.

Renders IR into Zod validator expressions and whole modules through Jinja2
templates.

Supports custom templates via the template_dir parameter:
    emitter = SchemaEmitter(template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates

Example usage:
    from apigraft.core.emitter import SchemaEmitter

    emitter = SchemaEmitter()
    emitter.expression(StringSchema(format="email"))  # 'z.email()'
    content = emitter.render_module(result.schemas)
"""

import json
import os
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .hooks import HookRunner
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
    RawSchema,
    RecordSchema,
    RefSchema,
    SchemaIR,
    StringSchema,
    UnionSchema,
    UnknownSchema,
)
from .naming import safe_property_name, schema_name

STRING_FORMAT_CODE = {
    "email": "z.email()",
    "url": "z.url()",
    "uuid": "z.uuid()",
    "datetime": "z.iso.datetime()",
    "date": "z.iso.date()",
    "time": "z.iso.time()",
    "ipv4": "z.ipv4()",
    "ipv6": "z.ipv6()",
}

DEFAULT_HEADER = "// Generated by apigraft. Do not edit."
INDENT = "  "


def literal(value: Any) -> str:
    """Target-language literal for a JSON-compatible value."""
    return json.dumps(value)


class ZodExpressionBuilder:
    """Builds Zod expressions for IR nodes.

    References to names in ``deferred`` are wrapped in ``z.lazy`` so that
    schemas can point at constants declared later in the module.
    """

    def __init__(self, deferred: set[str] | None = None):
        self.deferred = deferred or set()

    def build(self, schema: SchemaIR, depth: int = 0) -> str:
        if isinstance(schema, StringSchema):
            return STRING_FORMAT_CODE.get(schema.format or "", "z.string()")
        if isinstance(schema, NumberSchema):
            return "z.number().int()" if schema.integer else "z.number()"
        if isinstance(schema, BooleanSchema):
            return "z.boolean()"
        if isinstance(schema, BigIntSchema):
            return "z.bigint()"
        if isinstance(schema, NullSchema):
            return "z.null()"
        if isinstance(schema, UnknownSchema):
            return "z.unknown()"
        if isinstance(schema, NullableSchema):
            return f"{self.build(schema.inner, depth)}.nullable()"
        if isinstance(schema, ObjectSchema):
            return self._object(schema, depth)
        if isinstance(schema, ArraySchema):
            return f"z.array({self.build(schema.items, depth)})"
        if isinstance(schema, RecordSchema):
            return f"z.record({self.build(schema.key, depth)}, {self.build(schema.value, depth)})"
        if isinstance(schema, EnumSchema):
            return self._enum(schema)
        if isinstance(schema, LiteralSchema):
            return f"z.literal({literal(schema.value)})"
        if isinstance(schema, UnionSchema):
            members = ", ".join(self.build(m, depth) for m in schema.members)
            return f"z.union([{members}])"
        if isinstance(schema, IntersectionSchema):
            first, *rest = schema.members
            code = self.build(first, depth)
            for member in rest:
                code = f"{code}.and({self.build(member, depth)})"
            return code
        if isinstance(schema, RefSchema):
            const = schema_name(schema.name)
            if schema.name in self.deferred:
                return f"z.lazy(() => {const})"
            return const
        if isinstance(schema, RawSchema):
            return schema.code
        raise TypeError(f"Unsupported schema node: {schema!r}")

    def _enum(self, schema: EnumSchema) -> str:
        if schema.values and all(isinstance(v, str) for v in schema.values):
            return f"z.enum([{', '.join(literal(v) for v in schema.values)}])"
        # Numeric enums have no z.enum form
        literals = [f"z.literal({literal(v)})" for v in schema.values]
        if len(literals) == 1:
            return literals[0]
        return f"z.union([{', '.join(literals)}])" if literals else "z.never()"

    def _object(self, schema: ObjectSchema, depth: int) -> str:
        pad = INDENT * (depth + 1)
        fields = [f"{pad}...{schema_name(name)}.shape" for name in schema.fragment_spreads]
        for name, prop in schema.properties.items():
            if prop.required:
                code = self.build(prop.schema, depth + 1)
            else:
                inner = prop.schema.inner if isinstance(prop.schema, NullableSchema) else prop.schema
                code = f"{self.build(inner, depth + 1)}.nullish()"
            fields.append(f"{pad}{safe_property_name(name)}: {code}")

        if fields:
            code = "z.object({\n" + ",\n".join(fields) + f",\n{INDENT * depth}}})"
        else:
            code = "z.object({})"

        if schema.is_passthrough:
            code += ".passthrough()"
        elif schema.catchall is not None:
            code += f".catchall({self.build(schema.catchall, depth)})"
        return code


class SchemaEmitter:
    """Renders ordered named schemas into a validator module.

    Available templates to override:
        - schema.ts.j2: the validator module

    Example:
        emitter = SchemaEmitter(template_dir="./my_templates", header="// custom")
        emitter.write_module(schemas, "./src/generated/petstore")
    """

    def __init__(
        self,
        template_dir: str | None = None,
        hooks: HookRunner | None = None,
        header: str = DEFAULT_HEADER,
    ):
        self.template_dir = template_dir
        self.hooks = hooks or HookRunner()
        self.header = header

        # Custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("apigraft", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["schema_name"] = schema_name
        self.env.filters["literal"] = literal

    def expression(self, schema: SchemaIR, deferred: set[str] | None = None) -> str:
        """Zod expression for a single IR node."""
        return ZodExpressionBuilder(deferred).build(schema)

    def definitions(self, schemas: list[NamedSchemaIR]) -> list[dict[str, str]]:
        """Template context entries, one per schema, in input order.

        A reference to a schema that is not declared yet (a cycle, or a
        self reference) becomes lazy.
        """
        declared: set[str] = set()
        entries = []
        for named in schemas:
            pending = {named.name} | {d for d in named.dependencies if d not in declared}
            entries.append(
                {
                    "name": named.name,
                    "const_name": schema_name(named.name),
                    "category": named.category.value,
                    "expression": self.expression(named.schema, pending),
                }
            )
            declared.add(named.name)
        return entries

    def render_module(self, schemas: list[NamedSchemaIR], filename: str = "schema.ts") -> str:
        """Render a module after running pre- and post-render hooks."""
        schemas = self.hooks.run_pre_hooks(schemas)
        template = self.env.get_template("schema.ts.j2")
        content = template.render(header=self.header, schemas=self.definitions(schemas))
        return self.hooks.run_post_hooks(filename, content)

    def write_module(self, schemas: list[NamedSchemaIR], output_dir: str, filename: str = "schema.ts") -> str:
        """Render and write a module; returns the written path."""
        content = self.render_module(schemas, filename)
        os.makedirs(output_dir, exist_ok=True)
        full_path = os.path.join(output_dir, filename)
        with open(full_path, "w") as f:
            f.write(content)
        return full_path
