"""Core modules for compiling API descriptions into validator schemas."""

from .analysis import (
    FilterCapabilities,
    PaginationCapabilities,
    QueryCapabilities,
    SortCapabilities,
    analyze_graphql_arguments,
    analyze_openapi_parameters,
    infer_predicate_preset,
)
from .collections import (
    CollectionDiscoveryResult,
    CollectionEntity,
    CollectionMutation,
    ListQuery,
    discover_graphql_entities,
    discover_openapi_entities,
)
from .compiler import CompileResult, compile_graphql, compile_openapi, compile_source
from .config import ApigraftConfig, OverridesConfig, load_config, parse_config
from .defaults import DefaultContext, generate_default_value, render_default_value
from .documents import ParsedDocuments, ParsedOperation, parse_documents
from .emitter import SchemaEmitter, ZodExpressionBuilder
from .errors import (
    AnonymousOperationError,
    CompileError,
    ConfigError,
    EmptyDocumentError,
    InvalidScalarMappingError,
    UndefinedFragmentError,
    UnsupportedValidatorError,
)
from .graph import extract_dependencies, find_cycles, topological_sort
from .graphql_mapper import GraphQLMapper, graphql_session
from .hooks import FilterSchemasHook, HookRunner, PostRenderHook, PreRenderHook
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
    ObjectProperty,
    ObjectSchema,
    RawSchema,
    RecordSchema,
    RefSchema,
    SchemaCategory,
    StringSchema,
    UnionSchema,
    UnknownSchema,
)
from .loaders import LoaderError, load_documents, load_graphql_schema, load_openapi
from .openapi_mapper import OpenAPIMapper
from .openapi_operations import OpenAPIOperation, extract_operations
from .pagination import (
    UNSET,
    PaginationInfo,
    analyze_graphql_pagination,
    analyze_openapi_pagination,
    resolve_next_page_param,
)
from .predicates import (
    Filter,
    LoadSubsetOptions,
    PredicateTranslator,
    Sort,
    TranslatorRegistry,
    translate,
)
from .registry import CompileSession, NamedSchemaRegistry
from .scalars import ScalarRegistry

__all__ = [
    # IR types
    "ArraySchema",
    "BigIntSchema",
    "BooleanSchema",
    "EnumSchema",
    "IntersectionSchema",
    "LiteralSchema",
    "NamedSchemaIR",
    "NullableSchema",
    "NullSchema",
    "NumberSchema",
    "ObjectProperty",
    "ObjectSchema",
    "RawSchema",
    "RecordSchema",
    "RefSchema",
    "SchemaCategory",
    "StringSchema",
    "UnionSchema",
    "UnknownSchema",
    # Graph
    "extract_dependencies",
    "find_cycles",
    "topological_sort",
    # Registry
    "CompileSession",
    "NamedSchemaRegistry",
    # Scalars
    "ScalarRegistry",
    # Mappers
    "OpenAPIMapper",
    "OpenAPIOperation",
    "extract_operations",
    "GraphQLMapper",
    "graphql_session",
    # Documents
    "ParsedDocuments",
    "ParsedOperation",
    "parse_documents",
    # Capability analysis
    "FilterCapabilities",
    "PaginationCapabilities",
    "QueryCapabilities",
    "SortCapabilities",
    "analyze_graphql_arguments",
    "analyze_openapi_parameters",
    "infer_predicate_preset",
    # Pagination
    "UNSET",
    "PaginationInfo",
    "analyze_graphql_pagination",
    "analyze_openapi_pagination",
    "resolve_next_page_param",
    # Predicates
    "Filter",
    "LoadSubsetOptions",
    "PredicateTranslator",
    "Sort",
    "TranslatorRegistry",
    "translate",
    # Defaults
    "DefaultContext",
    "generate_default_value",
    "render_default_value",
    # Collections
    "CollectionDiscoveryResult",
    "CollectionEntity",
    "CollectionMutation",
    "ListQuery",
    "discover_graphql_entities",
    "discover_openapi_entities",
    # Emitter
    "SchemaEmitter",
    "ZodExpressionBuilder",
    # Hooks
    "PreRenderHook",
    "PostRenderHook",
    "FilterSchemasHook",
    "HookRunner",
    # Config
    "ApigraftConfig",
    "OverridesConfig",
    "load_config",
    "parse_config",
    # Loaders
    "LoaderError",
    "load_documents",
    "load_graphql_schema",
    "load_openapi",
    # Compiler
    "CompileResult",
    "compile_graphql",
    "compile_openapi",
    "compile_source",
    # Errors
    "AnonymousOperationError",
    "CompileError",
    "ConfigError",
    "EmptyDocumentError",
    "InvalidScalarMappingError",
    "UndefinedFragmentError",
    "UnsupportedValidatorError",
]
