"""Tests for source file loaders."""

import pytest

from apigraft.core.loaders import (
    LoaderError,
    dereference,
    load_documents,
    load_graphql_schema,
    load_openapi,
    read_sources,
    read_structured,
    resolve_pointer,
)


class TestDereference:
    """Tests for dereference and resolve_pointer."""

    def test_refs_share_component_dict(self):
        document = {
            "paths": {"/pets": {"get": {"responses": {"200": {"content": {"application/json": {
                "schema": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
            }}}}}}},
            "components": {"schemas": {"Pet": {"type": "object", "properties": {"id": {"type": "string"}}}}},
        }
        dereference(document)
        schema = document["paths"]["/pets"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
        assert schema["items"] is document["components"]["schemas"]["Pet"]

    def test_recursive_schema(self):
        document = {"components": {"schemas": {"Node": {
            "type": "object",
            "properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}},
        }}}}
        dereference(document)
        node = document["components"]["schemas"]["Node"]
        assert node["properties"]["children"]["items"] is node

    def test_alias_chain(self):
        document = {"components": {"schemas": {
            "Pet": {"type": "object"},
            "Animal": {"$ref": "#/components/schemas/Pet"},
            "Creature": {"$ref": "#/components/schemas/Animal"},
        }}}
        dereference(document)
        schemas = document["components"]["schemas"]
        assert schemas["Creature"] is schemas["Pet"]

    def test_circular_alias(self):
        document = {"components": {"schemas": {
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
        }}}
        with pytest.raises(LoaderError, match="Circular reference alias"):
            dereference(document)

    def test_external_ref(self):
        document = {"components": {"schemas": {"Pet": {"$ref": "other.yaml#/Pet"}}}}
        with pytest.raises(LoaderError, match="Only local references"):
            dereference(document)

    def test_unresolvable_ref(self):
        with pytest.raises(LoaderError, match="Unresolvable reference"):
            resolve_pointer({"components": {}}, "#/components/schemas/Missing")

    def test_escaped_pointer(self):
        document = {"paths": {"/pets/{id}": {"get": {"operationId": "getPet"}}}}
        assert resolve_pointer(document, "#/paths/~1pets~1{id}/get")["operationId"] == "getPet"


class TestFileLoaders:
    """Tests for reading sources from disk."""

    def test_read_structured_yaml(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text("openapi: 3.1.0\ninfo:\n  title: Pets\n")
        assert read_structured(path)["info"]["title"] == "Pets"

    def test_read_structured_errors(self, tmp_path):
        with pytest.raises(LoaderError, match="Cannot read"):
            read_structured(tmp_path / "missing.yaml")
        broken = tmp_path / "broken.json"
        broken.write_text("{")
        with pytest.raises(LoaderError, match="Cannot parse"):
            read_structured(broken)

    def test_load_openapi(self, petstore_file):
        document = load_openapi(petstore_file)
        pet = document["components"]["schemas"]["Pet"]
        assert document["components"]["schemas"]["Owner"]["properties"]["pets"]["items"] is pet

    def test_load_openapi_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(LoaderError, match="does not contain an OpenAPI document"):
            load_openapi(path)

    def test_read_sources_sorted(self, tmp_path):
        (tmp_path / "b.graphql").write_text("B")
        (tmp_path / "a.graphql").write_text("A")
        assert read_sources(["*.graphql"], tmp_path) == ["A", "B"]

    def test_read_sources_no_match(self, tmp_path):
        with pytest.raises(LoaderError, match="No files match queries/\\*.graphql"):
            read_sources(["queries/*.graphql"], tmp_path)

    def test_load_graphql_schema_from_several_files(self, tmp_path):
        (tmp_path / "a.graphql").write_text("type Query { user: User }")
        (tmp_path / "b.graphql").write_text("type User { id: ID! }")
        schema = load_graphql_schema(["*.graphql"], tmp_path)
        assert "User" in schema.type_map

    def test_load_documents(self, tmp_path):
        (tmp_path / "queries").mkdir()
        (tmp_path / "queries" / "users.graphql").write_text(
            "fragment UserFields on User { id }\nquery GetUser { user { ...UserFields } }"
        )
        documents = load_documents(["queries/**/*.graphql"], tmp_path)
        assert [op.name for op in documents.operations] == ["GetUser"]
        assert [f.name for f in documents.fragments] == ["UserFields"]

    def test_load_documents_without_patterns(self):
        documents = load_documents([])
        assert documents.operations == []
        assert documents.fragments == []
