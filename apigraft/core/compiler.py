"""Compile orchestration.

Runs a whole compile for one source: mapping to IR, topological ordering,
pagination analysis per query and collection discovery. Every compile gets
a fresh ``CompileSession``, so results depend only on the inputs.

Example usage:
    from apigraft.core.compiler import compile_openapi

    result = compile_openapi(document)
    for named in result.schemas:
        print(named.name, sorted(named.dependencies))
    for warning in result.warnings:
        print("warning:", warning)
"""

from dataclasses import dataclass, field
from typing import Any

from graphql import GraphQLSchema

from .collections import CollectionEntity, discover_graphql_entities, discover_openapi_entities
from .config import ApigraftConfig, GraphQLSourceConfig, OverridesConfig
from .documents import ParsedDocuments
from .errors import EmptyDocumentError
from .graph import find_cycles
from .graphql_mapper import GraphQLMapper, graphql_session
from .ir import NamedSchemaIR
from .loaders import load_documents, load_graphql_schema, load_openapi
from .openapi_mapper import OpenAPIMapper
from .openapi_operations import extract_operations, filter_paths
from .pagination import PaginationInfo, analyze_graphql_pagination, analyze_openapi_pagination
from .registry import CompileSession
from .scalars import ScalarRegistry


@dataclass
class CompileResult:
    """Everything one compile produces."""
    schemas: list[NamedSchemaIR] = field(default_factory=list)
    pagination: dict[str, PaginationInfo | None] = field(default_factory=dict)
    collections: list[CollectionEntity] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def cycles(self) -> list[list[str]]:
        """Groups of schemas that reference each other."""
        return find_cycles(self.schemas)

    def schema(self, name: str) -> NamedSchemaIR | None:
        for named in self.schemas:
            if named.name == name:
                return named
        return None

    @property
    def paginated(self) -> dict[str, PaginationInfo]:
        """Operations that support infinite queries."""
        return {name: info for name, info in self.pagination.items() if info is not None}


def compile_openapi(
    document: dict[str, Any],
    overrides: OverridesConfig | None = None,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
    operation_ids: list[str] | None = None,
    include_unused_components: bool = False,
) -> CompileResult:
    """Compile a dereferenced OpenAPI document.

    Raises:
        EmptyDocumentError: the document has neither paths nor component schemas
    """
    components = (document.get("components") or {}).get("schemas") or {}
    if not document.get("paths") and not components:
        raise EmptyDocumentError((document.get("info") or {}).get("title"))

    overrides = overrides or OverridesConfig()
    document = filter_paths(document, include, exclude)
    operations = extract_operations(document)
    if operation_ids is not None:
        wanted = set(operation_ids)
        operations = [op for op in operations if op.operation_id in wanted]

    session = CompileSession()
    schemas = OpenAPIMapper(document, session).map_document(
        operations, include_unused_components=include_unused_components
    )

    pagination = {
        op.operation_id: analyze_openapi_pagination(op, overrides.operation(op.operation_id), session.warnings)
        for op in operations
        if op.is_query
    }

    discovery = discover_openapi_entities(document, operations, overrides.db.collections)
    session.warnings.extend(discovery.warnings)

    return CompileResult(
        schemas=schemas,
        pagination=pagination,
        collections=discovery.entities,
        warnings=session.warnings,
    )


def compile_graphql(
    schema: GraphQLSchema,
    documents: ParsedDocuments,
    overrides: OverridesConfig | None = None,
    validator: str | None = None,
) -> CompileResult:
    """Compile a GraphQL schema together with its operation documents.

    Raises:
        InvalidScalarMappingError: a scalar override does not match ``validator``
        UnsupportedValidatorError: ``validator`` has no emitter
    """
    overrides = overrides or OverridesConfig()
    scalars = ScalarRegistry(validator=validator)
    scalars.apply_overrides(overrides.scalars)

    session = graphql_session(scalars=scalars)
    schemas = GraphQLMapper(schema, documents, session).map_documents()

    pagination = {
        op.name: analyze_graphql_pagination(op, schema, overrides.operation(op.name), session.warnings)
        for op in documents.queries
    }

    discovery = discover_graphql_entities(schema, documents, overrides.db.collections)
    session.warnings.extend(discovery.warnings)

    return CompileResult(
        schemas=schemas,
        pagination=pagination,
        collections=discovery.entities,
        warnings=session.warnings,
    )


def compile_source(config: ApigraftConfig, name: str) -> CompileResult:
    """Load and compile one configured source from disk."""
    source = config.source(name)
    if isinstance(source, GraphQLSourceConfig):
        return compile_graphql(
            load_graphql_schema(source.schema_files, config.base_dir),
            load_documents(source.documents, config.base_dir),
            overrides=source.overrides,
            validator=config.validator,
        )
    return compile_openapi(
        load_openapi(config.resolve(source.spec)),
        overrides=source.overrides,
        include=source.include,
        exclude=source.exclude,
    )
