"""Query capability analysis for predicate push-down.

Inspects the query parameters of an OpenAPI operation or the arguments of a
GraphQL query field and detects which filtering, sorting and pagination
conventions the backend understands. Name matching is case-insensitive;
detected parameter names keep their original spelling.

Example usage:
    from apigraft.core.analysis import analyze_openapi_parameters

    caps = analyze_openapi_parameters(operation.query_params)
    caps.pagination.style   # "offset"
    caps.filter.filter_style  # "rest-simple"
"""

import re
from dataclasses import dataclass, field
from typing import Any

from graphql import GraphQLArgument, is_input_object_type, is_list_type, is_non_null_type

# OpenAPI parameter conventions
REST_SIMPLE_OPERATOR_SUFFIXES = (
    "_eq", "_ne", "_lt", "_lte", "_gt", "_gte", "_in", "_nin", "_like", "_contains",
)
SORT_PARAM_NAMES = ("sort", "sortBy", "sort_by", "orderBy", "order_by", "$orderby", "order")
LIMIT_PARAM_NAMES = ("limit", "$top", "per_page", "perPage", "pageSize")
OFFSET_PARAM_NAMES = ("offset", "$skip", "start")
PAGE_PARAM_NAMES = ("page", "pageNumber", "page_number")
PER_PAGE_PARAM_NAMES = ("per_page", "perPage", "pageSize", "limit")
CURSOR_PARAM_NAMES = ("cursor", "after", "before")

# GraphQL argument conventions
FILTER_ARG_NAMES = ("where", "filter", "filters")
SORT_ARG_NAMES = ("order_by", "orderBy", "sort", "sortBy")
LIMIT_ARG_NAMES = ("limit", "first", "take")
OFFSET_ARG_NAMES = ("offset", "skip")

HASURA_FILTER_PATTERNS = (re.compile(r"_bool_exp$"), re.compile(r"_where$"))
HASURA_FILTER_FIELDS = ("_eq", "_neq", "_lt", "_lte", "_gt", "_gte", "_in", "_nin", "_and", "_or", "_not")
PRISMA_FILTER_PATTERNS = (re.compile(r"WhereInput$"), re.compile(r"WhereUniqueInput$"))
PRISMA_FILTER_FIELDS = (
    "equals", "not", "in", "notIn", "lt", "lte", "gt", "gte", "contains", "startsWith", "endsWith",
)
HASURA_ORDER_BY_PATTERNS = (re.compile(r"_order_by$"),)
PRISMA_ORDER_BY_PATTERNS = (re.compile(r"OrderByInput$"), re.compile(r"OrderByWithRelationInput$"))


@dataclass
class FilterCapabilities:
    has_filtering: bool = False
    filter_style: str | None = None  # preset name or 'custom'
    filter_params: list[str] = field(default_factory=list)
    filter_input_type: str | None = None


@dataclass
class SortCapabilities:
    has_sorting: bool = False
    sort_param: str | None = None
    order_by_input_type: str | None = None


@dataclass
class PaginationCapabilities:
    """Pagination parameters of a query.

    ``style`` is one of 'none', 'offset', 'page', 'cursor' or 'relay'.
    """
    style: str = "none"
    limit_param: str | None = None
    offset_param: str | None = None
    page_param: str | None = None
    per_page_param: str | None = None
    cursor_param: str | None = None


@dataclass
class QueryCapabilities:
    filter: FilterCapabilities = field(default_factory=FilterCapabilities)
    sort: SortCapabilities = field(default_factory=SortCapabilities)
    pagination: PaginationCapabilities = field(default_factory=PaginationCapabilities)

    @property
    def has_capabilities(self) -> bool:
        return self.filter.has_filtering or self.sort.has_sorting or self.pagination.style != "none"


def find_name(names: list[str], candidates: tuple[str, ...]) -> str | None:
    """First of ``candidates`` present in ``names`` (case-insensitive).

    Returns the spelling used in ``names``.
    """
    original = {n.lower(): n for n in names}
    for candidate in candidates:
        if candidate.lower() in original:
            return original[candidate.lower()]
    return None


def _known_non_filter_names() -> set[str]:
    names = SORT_PARAM_NAMES + LIMIT_PARAM_NAMES + OFFSET_PARAM_NAMES + PAGE_PARAM_NAMES + CURSOR_PARAM_NAMES
    return {n.lower() for n in names}


# OpenAPI


def analyze_openapi_parameters(query_params: list[dict[str, Any]]) -> QueryCapabilities:
    names = [p["name"] for p in query_params]
    return QueryCapabilities(
        filter=analyze_openapi_filters(names),
        sort=analyze_openapi_sort(names),
        pagination=classify_openapi_pagination(names),
    )


def analyze_openapi_filters(names: list[str]) -> FilterCapabilities:
    jsonapi = [n for n in names if n.startswith("filter[") and n.endswith("]")]
    if jsonapi:
        return FilterCapabilities(True, "jsonapi", jsonapi)

    rest_simple = [n for n in names if n.endswith(REST_SIMPLE_OPERATOR_SUFFIXES)]
    if rest_simple:
        return FilterCapabilities(True, "rest-simple", rest_simple)

    # Any other plain parameter is taken as an equality filter
    known = _known_non_filter_names()
    plain = [n for n in names if n.lower() not in known and not n.startswith("$") and "[" not in n]
    if plain:
        return FilterCapabilities(True, "rest-simple", plain)

    return FilterCapabilities()


def analyze_openapi_sort(names: list[str]) -> SortCapabilities:
    sort_param = find_name(names, SORT_PARAM_NAMES)
    if sort_param is None:
        return SortCapabilities()
    return SortCapabilities(has_sorting=True, sort_param=sort_param)


def classify_openapi_pagination(names: list[str]) -> PaginationCapabilities:
    """Classify query parameter names: cursor, then page, then offset."""
    cursor = find_name(names, CURSOR_PARAM_NAMES)
    if cursor:
        return PaginationCapabilities(
            style="cursor",
            cursor_param=cursor,
            limit_param=find_name(names, LIMIT_PARAM_NAMES),
        )

    page = find_name(names, PAGE_PARAM_NAMES)
    if page:
        return PaginationCapabilities(
            style="page",
            page_param=page,
            per_page_param=find_name(names, PER_PAGE_PARAM_NAMES),
        )

    limit = find_name(names, LIMIT_PARAM_NAMES)
    offset = find_name(names, OFFSET_PARAM_NAMES)
    if limit or offset:
        return PaginationCapabilities(style="offset", limit_param=limit, offset_param=offset)

    return PaginationCapabilities()


def extract_rest_simple_filter(param_name: str) -> tuple[str, str]:
    """Split ``price_gte`` into ``("price", "gte")``; bare names mean ``eq``."""
    for suffix in REST_SIMPLE_OPERATOR_SUFFIXES:
        if param_name.endswith(suffix):
            return param_name[: -len(suffix)], suffix[1:]
    return param_name, "eq"


def extract_jsonapi_filter(param_name: str) -> tuple[str, str] | None:
    """Split ``filter[price][gte]`` into ``("price", "gte")``."""
    match = re.match(r"^filter\[([^\]]+)\](?:\[([^\]]+)\])?", param_name)
    if not match:
        return None
    return match.group(1), match.group(2) or "eq"


# GraphQL


def analyze_graphql_arguments(args: dict[str, GraphQLArgument]) -> QueryCapabilities:
    return QueryCapabilities(
        filter=analyze_graphql_filters(args),
        sort=analyze_graphql_sort(args),
        pagination=classify_graphql_pagination(list(args)),
    )


def analyze_graphql_filters(args: dict[str, GraphQLArgument]) -> FilterCapabilities:
    name = find_name(list(args), FILTER_ARG_NAMES)
    if name is None:
        return FilterCapabilities()
    input_type = unwrap_type(args[name].type)
    if not is_input_object_type(input_type):
        return FilterCapabilities()
    return FilterCapabilities(
        has_filtering=True,
        filter_style=detect_graphql_filter_style(input_type.name, list(input_type.fields)),
        filter_input_type=input_type.name,
    )


def detect_graphql_filter_style(type_name: str, field_names: list[str]) -> str:
    """'hasura', 'prisma' or 'custom' from an input type's name and fields."""
    if any(p.search(type_name) for p in HASURA_FILTER_PATTERNS):
        return "hasura"
    if any(f in field_names for f in HASURA_FILTER_FIELDS):
        return "hasura"
    if any(p.search(type_name) for p in PRISMA_FILTER_PATTERNS):
        return "prisma"
    if any(f in field_names for f in PRISMA_FILTER_FIELDS):
        return "prisma"
    return "custom"


def detect_order_by_style(type_name: str) -> str | None:
    if any(p.search(type_name) for p in HASURA_ORDER_BY_PATTERNS):
        return "hasura"
    if any(p.search(type_name) for p in PRISMA_ORDER_BY_PATTERNS):
        return "prisma"
    return None


def analyze_graphql_sort(args: dict[str, GraphQLArgument]) -> SortCapabilities:
    name = find_name(list(args), SORT_ARG_NAMES)
    if name is None:
        return SortCapabilities()
    input_type = unwrap_type(args[name].type)
    return SortCapabilities(
        has_sorting=True,
        sort_param=name,
        order_by_input_type=input_type.name if is_input_object_type(input_type) else None,
    )


def classify_graphql_pagination(names: list[str]) -> PaginationCapabilities:
    """Classify GraphQL argument names.

    Relay needs ``first`` or ``last`` together with ``after`` or ``before``;
    ``take``/``skip`` is Prisma-style offset; otherwise any limit or offset
    argument means offset.
    """
    first = find_name(names, ("first",))
    last = find_name(names, ("last",))
    after = find_name(names, ("after",))
    before = find_name(names, ("before",))
    if (first or last) and (after or before):
        return PaginationCapabilities(style="relay", limit_param=first or last, cursor_param=after or before)

    take = find_name(names, ("take",))
    skip = find_name(names, ("skip",))
    if take or skip:
        return PaginationCapabilities(style="offset", limit_param=take, offset_param=skip)

    limit = find_name(names, LIMIT_ARG_NAMES)
    offset = find_name(names, OFFSET_ARG_NAMES)
    if limit or offset:
        return PaginationCapabilities(style="offset", limit_param=limit, offset_param=offset)

    return PaginationCapabilities()


def infer_predicate_preset(capabilities: QueryCapabilities) -> str | None:
    """Preset implied by detected capabilities, if any."""
    style = capabilities.filter.filter_style
    if capabilities.filter.has_filtering and style and style != "custom":
        return style
    if capabilities.sort.order_by_input_type:
        return detect_order_by_style(capabilities.sort.order_by_input_type)
    return None


def unwrap_type(graphql_type):
    """Strip non-null and list wrappers."""
    while is_non_null_type(graphql_type) or is_list_type(graphql_type):
        graphql_type = graphql_type.of_type
    return graphql_type
