"""Tests for pagination analysis."""

from graphql import build_schema

from apigraft.core.config import InfiniteQueryOverride
from apigraft.core.documents import parse_documents
from apigraft.core.openapi_operations import OpenAPIOperation, extract_operations
from apigraft.core.pagination import (
    UNSET,
    NextPageAccessor,
    PaginationInfo,
    analyze_graphql_pagination,
    analyze_graphql_response,
    analyze_openapi_pagination,
    analyze_openapi_response,
    analyze_response_fields,
    argument_bindings,
    resolve_next_page_param,
)


def get_operation(params, response_schema, operation_id="listItems"):
    return OpenAPIOperation(
        path="/items",
        method="get",
        operation_id=operation_id,
        operation={},
        query_params=[{"name": n, "in": "query", "schema": {"type": "string"}} for n in params],
        response_schema=response_schema,
    )


def obj(**props):
    return {"type": "object", "properties": props}


ITEMS = {"type": "array", "items": {"type": "object"}}


class TestUnset:
    """Tests for the UNSET marker."""

    def test_singleton_and_falsy(self):
        assert UNSET is type(UNSET)()
        assert not UNSET
        assert repr(UNSET) == "UNSET"


class TestResponseAnalysis:
    """Tests for response shape classification."""

    def test_cursor_field(self):
        response = analyze_response_fields({"items": "array", "nextCursor": "string"})
        assert response.style == "cursor"
        assert response.next_cursor_path == ["nextCursor"]

    def test_has_more_needs_boolean(self):
        assert analyze_response_fields({"hasMore": "boolean"}).style == "hasMore"
        assert analyze_response_fields({"hasMore": "string"}).style == "none"

    def test_total_needs_number(self):
        response = analyze_response_fields({"data": "array", "totalCount": "number"})
        assert response.style == "offset"
        assert response.total_path == ["totalCount"]

    def test_cursor_before_has_more(self):
        assert analyze_response_fields({"hasMore": "boolean", "cursor": "string"}).style == "cursor"

    def test_openapi_relay(self):
        schema = obj(
            edges=ITEMS,
            pageInfo=obj(hasNextPage={"type": "boolean"}, endCursor={"type": "string"}),
        )
        response = analyze_openapi_response(schema)
        assert response.style == "relay"
        assert response.has_more_path == ["pageInfo", "hasNextPage"]
        assert response.next_cursor_path == ["pageInfo", "endCursor"]

    def test_openapi_integer_total(self):
        response = analyze_openapi_response(obj(data=ITEMS, total={"type": "integer"}))
        assert response.total_path == ["total"]

    def test_openapi_array_response(self):
        assert analyze_openapi_response(ITEMS).style == "none"
        assert analyze_openapi_response(None).style == "none"

    def test_graphql_relay(self, graphql_schema):
        response = analyze_graphql_response(graphql_schema.query_type.fields["posts"].type)
        assert response.style == "relay"
        assert response.has_more_path == ["pageInfo", "hasNextPage"]

    def test_graphql_root_cursor(self, graphql_schema):
        response = analyze_graphql_response(graphql_schema.query_type.fields["searchUsers"].type)
        assert response.style == "cursor"
        assert response.next_cursor_path == ["nextCursor"]


class TestArgumentBindings:
    """Tests for argument_bindings."""

    def test_variables_only(self):
        documents = parse_documents(["query Q($n: Int, $c: String) { posts(first: $n, after: $c) { edges { cursor } } }"])
        root = documents.queries[0].root_fields[0]
        assert argument_bindings(root.arguments) == {"first": "n", "after": "c"}

    def test_literals_skipped(self):
        documents = parse_documents(["query Q { posts(first: 10) { edges { cursor } } }"])
        assert argument_bindings(documents.queries[0].root_fields[0].arguments) == {}


class TestGraphQLPagination:
    """Tests for analyze_graphql_pagination."""

    def test_relay(self, graphql_schema, documents):
        operation = next(q for q in documents.queries if q.name == "ListPosts")
        info = analyze_graphql_pagination(operation, graphql_schema)
        assert info.param_style == "relay"
        assert info.response_style == "relay"
        assert info.page_param_name == "after"
        assert info.has_more_path == ["posts", "pageInfo", "hasNextPage"]
        assert info.next_cursor_path == ["posts", "pageInfo", "endCursor"]
        assert info.initial_page_param() is UNSET
        assert info.next_page_accessor().expression() == (
            "lastPage.posts?.pageInfo?.hasNextPage ? lastPage.posts?.pageInfo?.endCursor : undefined"
        )

    def test_page_param_is_bound_variable(self, graphql_schema):
        documents = parse_documents([
            "query Feed($size: Int, $cursor: String) { feed: posts(first: $size, after: $cursor) "
            "{ pageInfo { hasNextPage endCursor } } }"
        ])
        info = analyze_graphql_pagination(documents.queries[0], graphql_schema)
        assert info.page_param_name == "cursor"
        assert info.limit_param == "size"
        assert info.has_more_path == ["feed", "pageInfo", "hasNextPage"]

    def test_unbound_page_argument(self, graphql_schema):
        documents = parse_documents(["query Q($n: Int) { posts(first: $n) { pageInfo { endCursor } } }"])
        assert analyze_graphql_pagination(documents.queries[0], graphql_schema) is None

    def test_unanalyzable_response_warns(self, graphql_schema, documents):
        operation = next(q for q in documents.queries if q.name == "ListUsers")
        warnings = []
        assert analyze_graphql_pagination(operation, graphql_schema, warnings=warnings) is None
        assert warnings == [
            'Query "ListUsers" has pagination arguments (offset) but return type could not be analyzed '
            "for getNextPageParam. Skipping infiniteQueryOptions generation. "
            "Configure 'overrides.query.operations.ListUsers.getNextPageParamPath' to enable."
        ]

    def test_next_page_path_override(self, graphql_schema, documents):
        operation = next(q for q in documents.queries if q.name == "ListUsers")
        override = InfiniteQueryOverride(get_next_page_param_path="users.nextOffset", initial_page_param=5)
        warnings = []
        info = analyze_graphql_pagination(operation, graphql_schema, override, warnings)
        assert warnings == []
        assert info.response_style == "cursor"
        assert info.initial_page_param() == 5
        assert info.next_page_accessor().expression() == "lastPage.users?.nextOffset"

    def test_disabled_override(self, graphql_schema, documents):
        operation = next(q for q in documents.queries if q.name == "ListPosts")
        assert analyze_graphql_pagination(operation, graphql_schema, InfiniteQueryOverride(disabled=True)) is None

    def test_no_pagination_arguments(self, graphql_schema, documents):
        operation = next(q for q in documents.queries if q.name == "GetUser")
        warnings = []
        assert analyze_graphql_pagination(operation, graphql_schema, warnings=warnings) is None
        assert warnings == []

    def test_mutations_ignored(self, graphql_schema, documents):
        assert analyze_graphql_pagination(documents.mutations[0], graphql_schema) is None

    def test_offset_with_total(self):
        schema = build_schema("""
            type Item { id: ID! }
            type ItemPage { items: [Item!]! totalCount: Int! }
            type Query { items(limit: Int, offset: Int): ItemPage! }
        """)
        documents = parse_documents([
            "query Items($limit: Int, $offset: Int) { items(limit: $limit, offset: $offset) { totalCount } }"
        ])
        info = analyze_graphql_pagination(documents.queries[0], schema)
        assert info.param_style == "offset"
        assert info.initial_page_param() == 0
        assert info.total_path == ["items", "totalCount"]
        assert info.next_page_accessor().kind == "total"


class TestOpenAPIPagination:
    """Tests for analyze_openapi_pagination."""

    def test_offset_has_more(self, petstore):
        operation = next(op for op in extract_operations(petstore) if op.operation_id == "listPets")
        info = analyze_openapi_pagination(operation)
        assert info.param_style == "offset"
        assert info.response_style == "hasMore"
        assert info.page_param_name == "offset"
        assert info.initial_page_param() == 0
        assert info.next_page_accessor().expression() == (
            "lastPage.hasMore ? (lastPageParam ?? 0) + (params?.limit ?? 20) : undefined"
        )

    def test_cursor(self):
        info = analyze_openapi_pagination(get_operation(["cursor", "limit"], obj(items=ITEMS, nextCursor={"type": "string"})))
        assert info.param_style == "cursor"
        assert info.page_param_name == "cursor"
        assert info.initial_page_param() is UNSET
        assert info.next_page_accessor().expression() == "lastPage.nextCursor"

    def test_page_with_total(self):
        info = analyze_openapi_pagination(get_operation(["page", "per_page"], obj(data=ITEMS, total={"type": "integer"})))
        assert info.param_style == "page"
        assert info.initial_page_param() == 1
        assert info.limit_param == "per_page"
        assert info.next_page_accessor().expression() == (
            "(lastPageParam ?? 1) * (params?.per_page ?? 20) < lastPage.total ? (lastPageParam ?? 1) + 1 : undefined"
        )

    def test_unanalyzable_response_warns(self):
        warnings = []
        assert analyze_openapi_pagination(get_operation(["limit", "offset"], ITEMS), warnings=warnings) is None
        assert warnings == [
            'Operation "listItems" has pagination parameters (offset) but response structure could not be '
            "analyzed for getNextPageParam. Skipping infiniteQueryOptions generation. "
            "Configure 'overrides.query.operations.listItems.getNextPageParamPath' to enable."
        ]

    def test_limit_only_is_not_paginated(self):
        assert analyze_openapi_pagination(get_operation(["limit"], obj(hasMore={"type": "boolean"}))) is None

    def test_non_get_ignored(self, petstore):
        operation = next(op for op in extract_operations(petstore) if op.operation_id == "createPet")
        assert analyze_openapi_pagination(operation) is None


class TestResolveNextPageParam:
    """Tests for resolve_next_page_param."""

    def test_offset_advance(self):
        info = PaginationInfo("offset", "hasMore", "offset", has_more_path=["hasMore"], limit_param="limit")
        assert resolve_next_page_param({"hasMore": True}, info, 0, {"limit": 10}) == 10
        assert resolve_next_page_param({"hasMore": True}, info, 10, {"limit": 10}) == 20
        assert resolve_next_page_param({"hasMore": False}, info, 10, {"limit": 10}) is None

    def test_default_page_size(self):
        info = PaginationInfo("offset", "hasMore", "offset", has_more_path=["hasMore"])
        assert resolve_next_page_param({"hasMore": True}, info) == 20

    def test_page_advance(self):
        info = PaginationInfo("page", "hasMore", "page", has_more_path=["hasMore"])
        assert resolve_next_page_param({"hasMore": True}, info, 1) == 2

    def test_relay(self):
        info = PaginationInfo(
            "relay",
            "relay",
            "after",
            has_more_path=["posts", "pageInfo", "hasNextPage"],
            next_cursor_path=["posts", "pageInfo", "endCursor"],
        )
        page = {"posts": {"pageInfo": {"hasNextPage": True, "endCursor": "abc"}}}
        assert resolve_next_page_param(page, info) == "abc"
        page["posts"]["pageInfo"]["hasNextPage"] = False
        assert resolve_next_page_param(page, info) is None

    def test_offset_total(self):
        info = PaginationInfo("offset", "offset", "offset", total_path=["total"])
        assert resolve_next_page_param({"total": 45}, info, 20, {"limit": 20}) == 40
        assert resolve_next_page_param({"total": 45}, info, 40, {"limit": 20}) is None

    def test_page_total(self):
        info = PaginationInfo("page", "offset", "page", total_path=["total"], limit_param="per_page")
        assert resolve_next_page_param({"total": 45}, info, 2, {"per_page": 20}) == 3
        assert resolve_next_page_param({"total": 45}, info, 3, {"per_page": 20}) is None

    def test_cursor_path(self):
        info = PaginationInfo("cursor", "cursor", "cursor", next_cursor_path=["meta", "next"])
        assert resolve_next_page_param({"meta": {"next": "n2"}}, info) == "n2"
        assert resolve_next_page_param({"meta": None}, info) is None

    def test_none_accessor(self):
        accessor = NextPageAccessor("none")
        assert accessor.expression() == "undefined"
        info = PaginationInfo("offset", "none", "offset")
        assert resolve_next_page_param({}, info) is None
