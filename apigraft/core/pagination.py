"""Pagination capability analysis for infinite queries.

Decides, per query operation, whether "load next page" bindings can be
generated and how: which request parameter carries the page, what the first
page value is, and where the next page value lives in a response.

Parameter styles come from ``analysis`` (argument and query parameter
names). Response styles come from the response shape: Relay connections,
root cursor fields, ``hasMore`` flags or total counts.

Example usage:
    from apigraft.core.pagination import analyze_openapi_pagination

    info = analyze_openapi_pagination(operation, warnings=warnings)
    if info is not None:
        info.initial_page_param()      # 0 for offset pagination
        info.next_page_accessor().expression()
"""

from dataclasses import dataclass, field
from typing import Any

from graphql import (
    ArgumentNode,
    GraphQLSchema,
    VariableNode,
    get_named_type,
    get_nullable_type,
    is_list_type,
    is_object_type,
)

from .analysis import (
    PaginationCapabilities,
    classify_graphql_pagination,
    classify_openapi_pagination,
    find_name,
)
from .documents import ParsedOperation
from .openapi_operations import OpenAPIOperation

CURSOR_FIELD_NAMES = (
    "nextCursor", "cursor", "endCursor", "after", "nextPageToken", "next_cursor", "next_page_token",
)
HAS_MORE_FIELD_NAMES = (
    "hasMore", "hasNextPage", "hasNext", "moreResults", "has_more", "has_next_page", "has_next",
)
TOTAL_FIELD_NAMES = (
    "total", "totalCount", "count", "totalItems", "totalResults", "total_count", "total_items",
)
CURSOR_PAGE_PARAM_NAMES = ("cursor", "after", "before", "pageToken")

# Page size assumed when the request does not carry one
DEFAULT_PAGE_SIZE = 20


class _Unset:
    """Marker for "no initial page param"; the consumer types it as an optional cursor."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass
class PaginationResponse:
    """Where pagination state lives in a response.

    ``style`` is one of 'none', 'hasMore', 'cursor', 'relay' or 'offset'.
    Paths are key sequences from the response root.
    """
    style: str = "none"
    has_more_path: list[str] | None = None
    next_cursor_path: list[str] | None = None
    total_path: list[str] | None = None


@dataclass
class NextPageAccessor:
    """Plan for computing the next page param from the last page.

    kinds:
        path: the value at ``value_path``
        conditional: ``value_path`` when ``condition_path`` is truthy
        advance: last page param plus ``step`` (or the request page size)
            when ``condition_path`` is truthy
        total: last page param plus page size while below ``total_path``;
            with ``step`` set the param is a page number, advanced by
            ``step`` while pages seen times page size stay below the total
        none: there is never a next page
    """
    kind: str
    value_path: list[str] = field(default_factory=list)
    condition_path: list[str] = field(default_factory=list)
    total_path: list[str] = field(default_factory=list)
    step: int | None = None
    start: int = 0
    limit_param: str | None = None

    def expression(self) -> str:
        """Render the plan as a ``getNextPageParam`` body expression."""
        if self.kind == "path":
            return _access(self.value_path)
        if self.kind == "conditional":
            return f"{_access(self.condition_path)} ? {_access(self.value_path)} : undefined"
        if self.kind == "advance":
            increment = self.step if self.step is not None else self._page_size()
            return f"{_access(self.condition_path)} ? (lastPageParam ?? {self.start}) + {increment} : undefined"
        if self.kind == "total" and self.step is not None:
            current = f"(lastPageParam ?? {self.start})"
            return (
                f"{current} * {self._page_size()} < {_access(self.total_path)} "
                f"? {current} + {self.step} : undefined"
            )
        if self.kind == "total":
            next_offset = f"(lastPageParam ?? {self.start}) + {self._page_size()}"
            return f"{next_offset} < {_access(self.total_path)} ? {next_offset} : undefined"
        return "undefined"

    def _page_size(self) -> str:
        return f"(params?.{self.limit_param or 'limit'} ?? {DEFAULT_PAGE_SIZE})"


def _access(path: list[str]) -> str:
    return "lastPage." + "?.".join(path)


@dataclass
class PaginationInfo:
    """Pagination capabilities of one query operation."""
    param_style: str
    response_style: str
    page_param_name: str
    has_more_path: list[str] | None = None
    next_cursor_path: list[str] | None = None
    total_path: list[str] | None = None
    limit_param: str | None = None
    initial_page_param_override: Any = None
    next_page_param_path: str | None = None

    def initial_page_param(self) -> Any:
        """First page value: offset 0, page 1, cursor styles ``UNSET``."""
        if self.initial_page_param_override is not None:
            return self.initial_page_param_override
        if self.param_style == "offset":
            return 0
        if self.param_style == "page":
            return 1
        return UNSET

    def next_page_accessor(self) -> NextPageAccessor:
        if self.next_page_param_path:
            return NextPageAccessor("path", value_path=self.next_page_param_path.split("."))

        start = 1 if self.param_style == "page" else 0
        if self.response_style == "cursor":
            return NextPageAccessor("path", value_path=list(self.next_cursor_path or ["nextCursor"]))
        if self.response_style == "relay":
            return NextPageAccessor(
                "conditional",
                value_path=list(self.next_cursor_path or ["pageInfo", "endCursor"]),
                condition_path=list(self.has_more_path or ["pageInfo", "hasNextPage"]),
            )
        if self.response_style == "hasMore":
            condition = list(self.has_more_path or ["hasMore"])
            if self.param_style == "offset":
                return NextPageAccessor("advance", condition_path=condition, limit_param=self.limit_param)
            if self.param_style == "page":
                return NextPageAccessor("advance", condition_path=condition, step=1, start=start)
            return NextPageAccessor("conditional", value_path=["nextCursor"], condition_path=condition)
        if self.response_style == "offset" and self.total_path:
            if self.param_style == "page":
                return NextPageAccessor(
                    "total", total_path=list(self.total_path), step=1, start=start, limit_param=self.limit_param
                )
            return NextPageAccessor("total", total_path=list(self.total_path), limit_param=self.limit_param)
        return NextPageAccessor("none")


def resolve_next_page_param(
    page: dict[str, Any],
    info: PaginationInfo,
    last_page_param: Any = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Evaluate ``info.next_page_accessor()`` against a response.

    Returns None when there is no next page.
    """
    accessor = info.next_page_accessor()
    params = params or {}

    if accessor.kind == "path":
        return _get_path(page, accessor.value_path)
    if accessor.kind == "conditional":
        if not _get_path(page, accessor.condition_path):
            return None
        return _get_path(page, accessor.value_path)

    base = last_page_param if isinstance(last_page_param, int) else accessor.start
    page_size = params.get(accessor.limit_param or "limit") or DEFAULT_PAGE_SIZE
    if accessor.kind == "advance":
        if not _get_path(page, accessor.condition_path):
            return None
        return base + (accessor.step if accessor.step is not None else page_size)
    if accessor.kind == "total":
        total = _get_path(page, accessor.total_path)
        if not isinstance(total, (int, float)):
            return None
        if accessor.step is not None:
            return base + accessor.step if base * page_size < total else None
        next_offset = base + page_size
        return next_offset if next_offset < total else None
    return None


def _get_path(data: Any, path: list[str]) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


# Response analysis


def analyze_response_fields(fields: dict[str, str]) -> PaginationResponse:
    """Classify a response from its root field kinds.

    ``fields`` maps each root property name to a coarse kind: 'object',
    'boolean', 'number' or anything else. Relay needs a separate call since
    it depends on nested fields.
    """
    names = list(fields)

    cursor_field = find_name(names, CURSOR_FIELD_NAMES)
    if cursor_field:
        return PaginationResponse("cursor", next_cursor_path=[cursor_field])

    has_more_field = find_name(names, HAS_MORE_FIELD_NAMES)
    if has_more_field and fields[has_more_field] == "boolean":
        return PaginationResponse("hasMore", has_more_path=[has_more_field])

    total_field = find_name(names, TOTAL_FIELD_NAMES)
    if total_field and fields[total_field] == "number":
        return PaginationResponse("offset", total_path=[total_field])

    return PaginationResponse()


def analyze_openapi_response(schema: dict[str, Any] | None) -> PaginationResponse:
    """Inspect an OpenAPI response schema for pagination fields."""
    if not isinstance(schema, dict) or schema.get("type") != "object" or not schema.get("properties"):
        return PaginationResponse()
    props = schema["properties"]

    page_info_key = find_name(list(props), ("pageInfo",))
    if page_info_key:
        page_info = props[page_info_key]
        if page_info.get("type") == "object" and page_info.get("properties"):
            inner = list(page_info["properties"])
            has_next = find_name(inner, ("hasNextPage",))
            end_cursor = find_name(inner, ("endCursor",))
            return PaginationResponse(
                "relay",
                has_more_path=[page_info_key, has_next] if has_next else None,
                next_cursor_path=[page_info_key, end_cursor] if end_cursor else None,
            )

    return analyze_response_fields({name: _openapi_kind(prop) for name, prop in props.items()})


def _openapi_kind(schema: Any) -> str:
    if not isinstance(schema, dict):
        return "unknown"
    kind = schema.get("type")
    if isinstance(kind, list):
        kind = next((k for k in kind if k != "null"), None)
    if kind == "integer":
        return "number"
    return kind or "unknown"


def analyze_relay_connection(return_type) -> PaginationResponse:
    """Detect a Relay connection on a GraphQL output type.

    Needs an ``edges`` list and a ``pageInfo`` object; ``hasNextPage`` and
    ``endCursor`` fill in the paths when present.
    """
    named = get_named_type(return_type)
    if not is_object_type(named):
        return PaginationResponse()
    fields = named.fields

    edges = fields.get("edges")
    if edges is None or not is_list_type(get_nullable_type(edges.type)):
        return PaginationResponse()

    page_info = fields.get("pageInfo")
    if page_info is None:
        return PaginationResponse()
    page_info_type = get_named_type(page_info.type)
    if not is_object_type(page_info_type):
        return PaginationResponse()

    result = PaginationResponse("relay")
    if "hasNextPage" in page_info_type.fields:
        result.has_more_path = ["pageInfo", "hasNextPage"]
    if "endCursor" in page_info_type.fields:
        result.next_cursor_path = ["pageInfo", "endCursor"]
    return result


def analyze_graphql_response(return_type) -> PaginationResponse:
    """Relay first, then the root field conventions of the returned object."""
    relay = analyze_relay_connection(return_type)
    if relay.style != "none":
        return relay
    named = get_named_type(return_type)
    if not is_object_type(named):
        return PaginationResponse()
    return analyze_response_fields({name: _graphql_kind(f.type) for name, f in named.fields.items()})


def _graphql_kind(field_type) -> str:
    if is_list_type(get_nullable_type(field_type)):
        return "array"
    name = get_named_type(field_type).name
    if name == "Boolean":
        return "boolean"
    if name in ("Int", "Float"):
        return "number"
    if is_object_type(get_named_type(field_type)):
        return "object"
    return "scalar"


def _prefixed(path: list[str] | None, key: str) -> list[str] | None:
    return [key, *path] if path else None


# Page parameter names


def graphql_page_param(capabilities: PaginationCapabilities, arg_names: list[str]) -> str | None:
    """Schema argument that carries the page: after/before for Relay, the offset argument otherwise."""
    if capabilities.style == "relay":
        return find_name(arg_names, ("after", "before"))
    if capabilities.style == "offset":
        return capabilities.offset_param or find_name(arg_names, ("offset", "skip"))
    return None


def openapi_page_param(capabilities: PaginationCapabilities, param_names: list[str]) -> str | None:
    if capabilities.style in ("cursor", "relay"):
        return find_name(param_names, CURSOR_PAGE_PARAM_NAMES)
    if capabilities.style == "offset":
        return capabilities.offset_param
    if capabilities.style == "page":
        return capabilities.page_param
    return None


def argument_bindings(arguments: tuple[ArgumentNode, ...] | list[ArgumentNode] | None) -> dict[str, str]:
    """Map schema argument names to the variables bound at the call site.

    ``users(first: $count, after: $cursor)`` gives
    ``{"first": "count", "after": "cursor"}``. Literal arguments are skipped.
    """
    bindings: dict[str, str] = {}
    for argument in arguments or ():
        if isinstance(argument.value, VariableNode):
            bindings[argument.name.value] = argument.value.name.value
    return bindings


# Operation analysis


def _apply_override(
    name: str,
    override: Any,
    capabilities: PaginationCapabilities,
    page_param: str | None,
    response: PaginationResponse,
    warnings: list[str] | None,
    label: str,
    kind: str,
) -> PaginationInfo | None:
    if capabilities.style == "none" or not page_param:
        return None

    next_path = getattr(override, "get_next_page_param_path", None)
    initial = getattr(override, "initial_page_param", None)

    if next_path:
        response = PaginationResponse("cursor")
    elif response.style == "none":
        if warnings is not None:
            warnings.append(
                f'{label} "{name}" has pagination {kind} ({page_param}) '
                f"but {'return type' if label == 'Query' else 'response structure'} "
                "could not be analyzed for getNextPageParam. "
                "Skipping infiniteQueryOptions generation. "
                f"Configure 'overrides.query.operations.{name}.getNextPageParamPath' to enable."
            )
        return None

    return PaginationInfo(
        param_style=capabilities.style,
        response_style=response.style,
        page_param_name=page_param,
        has_more_path=response.has_more_path,
        next_cursor_path=response.next_cursor_path,
        total_path=response.total_path,
        limit_param=capabilities.limit_param or capabilities.per_page_param,
        initial_page_param_override=initial,
        next_page_param_path=next_path,
    )


def analyze_graphql_pagination(
    operation: ParsedOperation,
    schema: GraphQLSchema,
    override: Any = None,
    warnings: list[str] | None = None,
) -> PaginationInfo | None:
    """Pagination of a GraphQL query, or None when it has none.

    The page argument is found on the schema field of the first root
    selection and then mapped to the variable the document binds to it.
    A query that does not pass the page argument through a variable is not
    paginated.
    """
    if override is not None and getattr(override, "disabled", False):
        return None
    if operation.operation != "query":
        return None

    query_type = schema.query_type
    root_fields = operation.root_fields
    if query_type is None or not root_fields:
        return None
    root = root_fields[0]
    field_def = query_type.fields.get(root.name.value)
    if field_def is None:
        return None

    arg_names = list(field_def.args)
    capabilities = classify_graphql_pagination(arg_names)
    schema_page_arg = graphql_page_param(capabilities, arg_names)
    bindings = argument_bindings(root.arguments)
    page_param = bindings.get(schema_page_arg) if schema_page_arg else None
    if page_param is None:
        return None
    if capabilities.limit_param:
        capabilities.limit_param = bindings.get(capabilities.limit_param, capabilities.limit_param)

    key = root.alias.value if root.alias else root.name.value
    response = analyze_graphql_response(field_def.type)
    response = PaginationResponse(
        response.style,
        has_more_path=_prefixed(response.has_more_path, key),
        next_cursor_path=_prefixed(response.next_cursor_path, key),
        total_path=_prefixed(response.total_path, key),
    )

    return _apply_override(
        operation.name, override, capabilities, page_param, response, warnings, "Query", "arguments"
    )


def analyze_openapi_pagination(
    operation: OpenAPIOperation,
    override: Any = None,
    warnings: list[str] | None = None,
) -> PaginationInfo | None:
    """Pagination of an OpenAPI GET operation, or None when it has none."""
    if override is not None and getattr(override, "disabled", False):
        return None
    if not operation.is_query:
        return None

    names = [p["name"] for p in operation.query_params]
    capabilities = classify_openapi_pagination(names)
    page_param = openapi_page_param(capabilities, names)
    response = analyze_openapi_response(operation.response_schema)

    return _apply_override(
        operation.operation_id, override, capabilities, page_param, response, warnings, "Operation", "parameters"
    )
