"""OpenAPI to IR mapper.

Maps JSON-schema nodes of a dereferenced OpenAPI 3.0/3.1 document to IR.
Component schemas are recognised by identity: after dereferencing, every
``$ref`` to ``#/components/schemas/Pet`` points at the very same dict as
``components.schemas.Pet``, so the registry's identity key detects them.
Unresolved ``#/components/schemas/...`` refs are accepted as well.

Example usage:
    from apigraft.core.openapi_mapper import OpenAPIMapper
    from apigraft.core.registry import CompileSession

    session = CompileSession()
    mapper = OpenAPIMapper(document, session)
    schemas = mapper.map_document(extract_operations(document))
"""

from typing import Any

from .graph import topological_sort
from .ir import (
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    LiteralSchema,
    NamedSchemaIR,
    NullSchema,
    NumberSchema,
    ObjectProperty,
    ObjectSchema,
    RecordSchema,
    RefSchema,
    SchemaCategory,
    SchemaIR,
    StringSchema,
    UnknownSchema,
    intersection_of,
    make_nullable,
    union_of,
)
from .naming import pascal_case
from .openapi_operations import OpenAPIOperation
from .registry import CompileSession

COMPONENT_REF_PREFIX = "#/components/schemas/"

STRING_FORMATS = {
    "date-time": "datetime",
    "date": "date",
    "time": "time",
    "email": "email",
    "uri": "url",
    "url": "url",
    "uuid": "uuid",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
}


class OpenAPIMapper:
    """Maps OpenAPI schema objects into IR within one compile session."""

    def __init__(self, document: dict[str, Any], session: CompileSession):
        self.document = document
        self.session = session
        components = (document.get("components") or {}).get("schemas") or {}
        for name, schema in components.items():
            # Aliases dereference to their target; the first name wins
            if isinstance(schema, dict) and "$ref" not in schema and session.registry.name_for(schema) is None:
                session.registry.register(name, schema)

    def map_document(
        self,
        operations: list[OpenAPIOperation],
        operation_ids: list[str] | None = None,
        include_unused_components: bool = False,
    ) -> list[NamedSchemaIR]:
        """Map every component used by ``operations`` plus operation schemas.

        Returns all named schemas of the session in topological order.
        """
        if operation_ids is not None:
            wanted = set(operation_ids)
            operations = [op for op in operations if op.operation_id in wanted]

        if include_unused_components:
            used = self.session.registry.names()
        else:
            used = self._collect_used(operations)
        for name in used:
            self.map_component(name)
        self.process_pending()
        self._map_operation_schemas(operations)
        self.process_pending()
        return topological_sort(self.session.schemas)

    def map_component(self, name: str):
        """Map a registered component schema, once."""
        if name in self.session.generated:
            return
        definition = self.session.registry.definition(name)
        if definition is None:
            return
        self.session.generated.add(name)
        ir = self.map_schema(definition, current_name=name)
        self.session.add_schema(name, ir, SchemaCategory.COMPONENT)

    def process_pending(self):
        """Map every component discovered through references."""
        while (name := self.session.next_pending()) is not None:
            self.map_component(name)

    def _collect_used(self, operations: list[OpenAPIOperation]) -> list[str]:
        used: dict[str, None] = {}
        seen: set[int] = set()
        for op in operations:
            for schema in (op.request_body, op.response_schema):
                if schema:
                    self._collect_refs(schema, used, seen)
            for param in op.path_params + op.query_params:
                if param.get("schema"):
                    self._collect_refs(param["schema"], used, seen)
        return list(used)

    def _collect_refs(self, schema: Any, used: dict[str, None], seen: set[int]):
        if not isinstance(schema, dict) or id(schema) in seen:
            return
        seen.add(id(schema))
        name = self._component_name(schema)
        if name is not None:
            used[name] = None
            # Nested components are discovered lazily while mapping
            return
        if isinstance(schema.get("items"), dict):
            self._collect_refs(schema["items"], used, seen)
        for prop in (schema.get("properties") or {}).values():
            self._collect_refs(prop, used, seen)
        if isinstance(schema.get("additionalProperties"), dict):
            self._collect_refs(schema["additionalProperties"], used, seen)
        for key in ("allOf", "oneOf", "anyOf"):
            for sub in schema.get(key) or []:
                self._collect_refs(sub, used, seen)

    def _component_name(self, schema: dict[str, Any]) -> str | None:
        ref = schema.get("$ref")
        if isinstance(ref, str) and ref.startswith(COMPONENT_REF_PREFIX):
            name = ref[len(COMPONENT_REF_PREFIX):]
            if self.session.registry.has(name):
                return name
            return None
        return self.session.registry.name_for(schema)

    def _map_operation_schemas(self, operations: list[OpenAPIOperation]):
        for op in operations:
            base_name = pascal_case(op.operation_id)

            if op.request_body:
                self._add_operation_schema(f"{base_name}Request", op.request_body, SchemaCategory.INPUT)
            if op.response_schema:
                self._add_operation_schema(f"{base_name}Response", op.response_schema, SchemaCategory.RESPONSE)

            params = op.path_params + op.query_params
            params_name = f"{base_name}Params"
            if params and params_name not in self.session.generated:
                self.session.generated.add(params_name)
                self.session.add_schema(params_name, self.map_params(params), SchemaCategory.PARAMS)

    def _add_operation_schema(self, name: str, schema: dict[str, Any], category: SchemaCategory):
        if name in self.session.generated:
            return
        self.session.generated.add(name)
        self.session.add_schema(name, self.map_schema(schema, current_name=name), category)

    def map_params(self, params: list[dict[str, Any]]) -> ObjectSchema:
        """Map path and query parameters to one object schema."""
        properties = {}
        for param in params:
            schema = param.get("schema")
            ir = self.map_schema(schema) if schema else UnknownSchema()
            properties[param["name"]] = ObjectProperty(ir, required=bool(param.get("required", False)))
        return ObjectSchema(properties=properties)

    def map_schema(self, schema: dict[str, Any], current_name: str | None = None) -> SchemaIR:
        """Map one schema object to IR.

        Nullability (3.0 ``nullable: true``, 3.1 ``type: [T, "null"]`` or a
        null enum member) wraps the result at the outermost level only.
        """
        if not isinstance(schema, dict):
            return UnknownSchema()

        name = self._component_name(schema)
        if name is not None and name != current_name:
            self.session.reference(name)
            return self._nullable(RefSchema(name), schema)

        ir, nullable = self._map_base(schema, current_name)
        if nullable or self._is_nullable(schema):
            return make_nullable(ir)
        return ir

    def _nullable(self, ir: SchemaIR, schema: dict[str, Any]) -> SchemaIR:
        return make_nullable(ir) if self._is_nullable(schema) else ir

    def _is_nullable(self, schema: dict[str, Any]) -> bool:
        if schema.get("nullable") is True:
            return True
        types = schema.get("type")
        return isinstance(types, list) and "null" in types and len(types) > 1

    def _map_base(self, schema: dict[str, Any], current_name: str | None) -> tuple[SchemaIR, bool]:
        """Map without the outer nullability; also report a null enum member."""
        if "const" in schema:
            return LiteralSchema(schema["const"]), False

        enum = schema.get("enum")
        if enum:
            values = tuple(v for v in enum if v is not None)
            return EnumSchema(values), len(values) < len(enum)

        for key, combine in (("allOf", intersection_of), ("oneOf", union_of), ("anyOf", union_of)):
            subschemas = schema.get(key)
            if subschemas:
                return combine([self.map_schema(s) for s in subschemas if isinstance(s, dict)]), False

        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            types = [t for t in schema_type if t != "null"]
            if not types:
                return NullSchema(), False
            if len(types) > 1:
                return union_of([self._map_type(t, schema) for t in types]), False
            schema_type = types[0]

        return self._map_type(schema_type, schema), False

    def _map_type(self, schema_type: str | None, schema: dict[str, Any]) -> SchemaIR:
        if schema_type == "string":
            return StringSchema(format=STRING_FORMATS.get(schema.get("format")))
        if schema_type in ("number", "integer"):
            return NumberSchema(integer=schema_type == "integer")
        if schema_type == "boolean":
            return BooleanSchema()
        if schema_type == "null":
            return NullSchema()
        if schema_type == "array":
            items = schema.get("items")
            return ArraySchema(self.map_schema(items) if isinstance(items, dict) else UnknownSchema())
        if schema_type == "object":
            return self._map_object(schema)

        # No type: infer from the keywords present
        if schema.get("properties"):
            return self._map_object(schema)
        if schema.get("additionalProperties"):
            return self._map_record(schema)
        return UnknownSchema()

    def _map_object(self, schema: dict[str, Any]) -> SchemaIR:
        properties = schema.get("properties") or {}
        additional = schema.get("additionalProperties")

        if not properties and isinstance(additional, dict):
            return self._map_record(schema)

        required = set(schema.get("required") or [])
        mapped = {
            prop_name: ObjectProperty(self.map_schema(prop_schema), required=prop_name in required)
            for prop_name, prop_schema in properties.items()
        }

        if additional is True:
            return ObjectSchema(properties=mapped, additional=True)
        if isinstance(additional, dict):
            return ObjectSchema(properties=mapped, additional=self.map_schema(additional))
        return ObjectSchema(properties=mapped)

    def _map_record(self, schema: dict[str, Any]) -> RecordSchema:
        additional = schema.get("additionalProperties")
        value = self.map_schema(additional) if isinstance(additional, dict) else UnknownSchema()
        return RecordSchema(key=StringSchema(), value=value)
