"""Collection discovery for reactive data collections.

Finds the entities an API exposes as lists, together with their key field,
the query that lists them and the mutations that insert, update or delete
them. OpenAPI entities come from GET operations returning arrays, GraphQL
entities from Query fields returning lists of object types.

Example usage:
    from apigraft.core.collections import discover_openapi_entities

    result = discover_openapi_entities(document, operations)
    for entity in result.entities:
        print(entity.name, entity.key_field, [m.type for m in entity.mutations])
"""

import re
from dataclasses import dataclass, field
from typing import Any

from graphql import (
    GraphQLSchema,
    get_named_type,
    get_nullable_type,
    is_list_type,
    is_object_type,
    is_scalar_type,
)

from .analysis import QueryCapabilities, analyze_graphql_arguments, analyze_openapi_parameters
from .documents import ParsedDocuments
from .naming import camel_case, pascal_case, singularize, variables_type_name
from .openapi_operations import OpenAPIOperation
from .predicates import select_preset

KEY_FIELD_CANDIDATES = ("id", "ID", "_id", "uuid", "key")
GRAPHQL_KEY_FIELD_CANDIDATES = ("id", "_id", "uuid", "key")


@dataclass
class ListQuery:
    operation_name: str
    query_key: list[str]
    params_type_name: str | None = None
    selector_path: str | None = None  # None when the response is the array itself


@dataclass
class CollectionMutation:
    type: str  # 'insert', 'update' or 'delete'
    operation_name: str
    input_type_name: str | None = None


@dataclass
class CollectionEntity:
    """An entity that can back a reactive collection."""
    name: str
    type_name: str
    key_field: str
    key_field_type: str
    list_query: ListQuery
    mutations: list[CollectionMutation] = field(default_factory=list)
    sync_mode: str = "full"
    predicate_mapping: str | None = None
    capabilities: QueryCapabilities = field(default_factory=QueryCapabilities)


@dataclass
class CollectionDiscoveryResult:
    entities: list[CollectionEntity] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _override(overrides: dict[str, Any] | None, name: str, attr: str) -> Any:
    entry = (overrides or {}).get(name)
    if entry is None:
        return None
    if isinstance(entry, dict):
        return entry.get(attr)
    return getattr(entry, attr, None)


def _apply_sync_settings(entity: CollectionEntity, overrides: dict[str, Any] | None):
    entity.sync_mode = _override(overrides, entity.name, "sync_mode") or "full"
    entity.predicate_mapping = select_preset(
        _override(overrides, entity.name, "predicate_mapping"), entity.capabilities
    )


# OpenAPI


def discover_openapi_entities(
    document: dict[str, Any],
    operations: list[OpenAPIOperation],
    overrides: dict[str, Any] | None = None,
) -> CollectionDiscoveryResult:
    """Discover entities from GET operations that return arrays.

    A response object with a single array property (``{data: [...], total}``)
    also counts, except on item paths ending in a path parameter; the
    property becomes the selector path.
    """
    result = CollectionDiscoveryResult()
    for operation in operations:
        if not operation.is_query:
            continue
        list_shape = _list_response(operation.response_schema, wrapped=not operation.path.endswith("}"))
        if list_shape is None:
            continue
        items, selector_path = list_shape
        entity = _openapi_entity(operation, items, selector_path, operations, document, overrides, result.warnings)
        if entity is not None:
            result.entities.append(entity)
    return result


def _list_response(
    schema: dict[str, Any] | None, wrapped: bool = True
) -> tuple[dict[str, Any] | None, str | None] | None:
    if not isinstance(schema, dict):
        return None
    if schema.get("type") == "array":
        return schema.get("items"), None
    if not wrapped:
        return None
    props = schema.get("properties") or {}
    arrays = [name for name, prop in props.items() if isinstance(prop, dict) and prop.get("type") == "array"]
    if schema.get("type") == "object" and len(arrays) == 1:
        return props[arrays[0]].get("items"), arrays[0]
    return None


def _openapi_entity(
    operation: OpenAPIOperation,
    items: dict[str, Any] | None,
    selector_path: str | None,
    operations: list[OpenAPIOperation],
    document: dict[str, Any],
    overrides: dict[str, Any] | None,
    warnings: list[str],
) -> CollectionEntity | None:
    if not items:
        warnings.append(f"Could not determine item type for list query {operation.operation_id}")
        return None

    name = infer_entity_name(operation.path, items, document)
    if not name:
        warnings.append(f"Could not determine entity name for list query {operation.operation_id}")
        return None

    properties = items.get("properties") or {}
    key_field = _find_key_field(
        {k: _openapi_key_type(v) for k, v in properties.items()},
        _override(overrides, name, "key_field"),
        KEY_FIELD_CANDIDATES,
        name,
        warnings,
    )
    if key_field is None:
        warnings.append(f"Could not find key field for entity {name} - skipping collection generation")
        return None

    selector_override = _override(overrides, name, "selector_path")
    entity = CollectionEntity(
        name=name,
        type_name=pascal_case(name),
        key_field=key_field[0],
        key_field_type=key_field[1],
        list_query=ListQuery(
            operation_name=operation.operation_id,
            query_key=[name],
            params_type_name=f"{pascal_case(operation.operation_id)}Params" if operation.has_params else None,
            selector_path=selector_override or selector_path,
        ),
        mutations=find_openapi_mutations(operation.path, operations),
        capabilities=analyze_openapi_parameters(operation.query_params),
    )
    _apply_sync_settings(entity, overrides)
    return entity


def infer_entity_name(path: str, item_schema: dict[str, Any], document: dict[str, Any]) -> str | None:
    """Entity name from the item title, a matching component or the path."""
    if item_schema.get("title"):
        return item_schema["title"]

    components = (document.get("components") or {}).get("schemas") or {}
    for name, component in components.items():
        if component is item_schema:
            return name
    for name, component in components.items():
        if _schemas_match(item_schema, component):
            return name

    # /api/v1/orders -> Order
    for part in reversed([p for p in path.split("/") if p]):
        if not part.startswith("{"):
            return pascal_case(singularize(part))
    return None


def _schemas_match(a: dict[str, Any], b: Any) -> bool:
    if not isinstance(b, dict) or a.get("type") != "object" or b.get("type") != "object":
        return False
    return sorted(a.get("properties") or {}) == sorted(b.get("properties") or {})


def _openapi_key_type(schema: Any) -> str:
    kind = schema.get("type") if isinstance(schema, dict) else None
    if kind in ("integer", "number"):
        return "number"
    if kind == "boolean":
        return "boolean"
    return "string"


def _find_key_field(
    fields: dict[str, str],
    override: str | None,
    candidates: tuple[str, ...],
    entity_name: str,
    warnings: list[str],
) -> tuple[str, str] | None:
    if override:
        if override in fields:
            return override, fields[override]
        warnings.append(f"Configured keyField '{override}' not found in entity {entity_name}")

    for candidate in candidates:
        if candidate in fields:
            return candidate, fields[candidate]

    entity_id = f"{camel_case(entity_name)}Id"
    if entity_id in fields:
        return entity_id, fields[entity_id]
    return None


def find_openapi_mutations(list_path: str, operations: list[OpenAPIOperation]) -> list[CollectionMutation]:
    """POST on the list path inserts; PUT/PATCH/DELETE on ``{list}/{id}`` update and delete."""
    item_path = re.compile(rf"^{re.escape(list_path)}/\{{[^}}]+\}}$")
    mutations = []
    for op in operations:
        input_type = f"{pascal_case(op.operation_id)}Request" if op.request_body else None
        if op.method == "post" and op.path == list_path:
            mutations.append(CollectionMutation("insert", op.operation_id, input_type))
        elif op.method in ("put", "patch") and item_path.match(op.path):
            mutations.append(CollectionMutation("update", op.operation_id, input_type))
        elif op.method == "delete" and item_path.match(op.path):
            mutations.append(CollectionMutation("delete", op.operation_id))
    return mutations


# GraphQL


def discover_graphql_entities(
    schema: GraphQLSchema,
    documents: ParsedDocuments,
    overrides: dict[str, Any] | None = None,
) -> CollectionDiscoveryResult:
    """Discover entities from Query fields that return object lists.

    Only fields selected by a query document qualify. Entities are keyed by
    type name; the first list query per type wins.
    """
    result = CollectionDiscoveryResult()
    query_type = schema.query_type
    if query_type is None:
        result.warnings.append("No Query type found in schema")
        return result

    seen: set[str] = set()
    for field_name, field_def in query_type.fields.items():
        item_type = _list_item_type(field_def.type)
        if item_type is None:
            continue
        match = _find_selecting_query(documents, field_name)
        if match is None:
            continue
        operation, response_key = match
        if item_type.name in seen:
            continue

        key_field = _find_key_field_graphql(item_type, _override(overrides, item_type.name, "key_field"), result.warnings)
        if key_field is None:
            result.warnings.append(
                f"Could not find key field for entity {item_type.name} - skipping collection generation"
            )
            continue

        seen.add(item_type.name)
        entity = CollectionEntity(
            name=item_type.name,
            type_name=pascal_case(item_type.name),
            key_field=key_field[0],
            key_field_type=key_field[1],
            list_query=ListQuery(
                operation_name=operation.name,
                query_key=[item_type.name],
                params_type_name=(
                    variables_type_name(operation.name, "query") if operation.variable_definitions else None
                ),
                selector_path=_override(overrides, item_type.name, "selector_path") or response_key,
            ),
            mutations=find_graphql_mutations(item_type.name, documents),
            capabilities=analyze_graphql_arguments(field_def.args),
        )
        _apply_sync_settings(entity, overrides)
        result.entities.append(entity)

    return result


def _list_item_type(field_type):
    """Object item type of a list return type (non-null wrappers skipped)."""
    field_type = get_nullable_type(field_type)
    if not is_list_type(field_type):
        return None
    item = get_nullable_type(field_type.of_type)
    return item if is_object_type(item) else None


def _find_selecting_query(documents: ParsedDocuments, field_name: str):
    for operation in documents.queries:
        for root in operation.root_fields:
            key = root.alias.value if root.alias else root.name.value
            if root.name.value == field_name or key == field_name:
                return operation, key
    return None


def _graphql_key_type(field_type) -> str:
    named = get_named_type(field_type)
    if is_scalar_type(named):
        if named.name in ("Int", "Float"):
            return "number"
        if named.name == "Boolean":
            return "boolean"
    return "string"


def _find_key_field_graphql(object_type, override: str | None, warnings: list[str]) -> tuple[str, str] | None:
    fields = object_type.fields
    if override:
        if override in fields:
            return override, _graphql_key_type(fields[override].type)
        warnings.append(f"Configured keyField '{override}' not found in type {object_type.name}")

    id_field = fields.get("id")
    if id_field is not None and get_named_type(id_field.type).name == "ID":
        return "id", "string"

    for candidate in GRAPHQL_KEY_FIELD_CANDIDATES:
        if candidate in fields:
            return candidate, _graphql_key_type(fields[candidate].type)
    return None


def find_graphql_mutations(type_name: str, documents: ParsedDocuments) -> list[CollectionMutation]:
    """Match mutations by name: ``create``/``update``/``delete``/``remove`` plus the type name."""
    type_lower = type_name.lower()
    mutations = []
    for mutation in documents.mutations:
        name = mutation.name.lower()
        if type_lower not in name:
            continue
        variables_type = variables_type_name(mutation.name, "mutation")
        if name.startswith("create"):
            mutations.append(CollectionMutation("insert", mutation.name, variables_type))
        elif name.startswith("update"):
            mutations.append(CollectionMutation("update", mutation.name, variables_type))
        elif name.startswith(("delete", "remove")):
            mutations.append(CollectionMutation("delete", mutation.name))
    return mutations
