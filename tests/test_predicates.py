"""Tests for predicate translation."""

import pytest

from apigraft.core.analysis import analyze_openapi_parameters
from apigraft.core.predicates import (
    Filter,
    LoadSubsetOptions,
    PredicateTranslator,
    Sort,
    TranslatorRegistry,
    nested,
    select_preset,
    sort_string,
    translate,
)


@pytest.fixture
def options():
    return LoadSubsetOptions(
        filters=[Filter("role", "eq", "admin"), Filter("age", "gte", 21)],
        sorts=[Sort("createdAt", "desc")],
        limit=10,
        offset=20,
    )


class TestHelpers:
    """Tests for translation helpers."""

    def test_nested(self):
        assert nested(["user", "name"], "asc") == {"user": {"name": "asc"}}
        assert nested(["id"], 1) == {"id": 1}

    def test_sort_string(self):
        assert sort_string([Sort("name"), Sort("createdAt", "desc")]) == "name,-createdAt"

    def test_filter_path(self):
        assert Filter("author.name", "eq", "x").path == ["author", "name"]
        assert Filter(["author", "name"], "eq", "x").path == ["author", "name"]


class TestRestSimple:
    """Tests for the rest-simple preset."""

    def test_equality_and_limit(self):
        options = LoadSubsetOptions(filters=[Filter("role", "eq", "admin")], limit=10)
        assert translate(options) == {"role": "admin", "limit": 10}

    def test_operator_suffix(self):
        options = LoadSubsetOptions(filters=[Filter("age", "gte", 21)])
        assert translate(options, "rest-simple") == {"age_gte": 21}

    def test_full(self, options):
        assert translate(options) == {
            "role": "admin",
            "age_gte": 21,
            "sort": "-createdAt",
            "limit": 10,
            "offset": 20,
        }

    def test_detected_param_names(self):
        capabilities = analyze_openapi_parameters([
            {"name": "sortBy"},
            {"name": "perPage"},
            {"name": "start"},
        ])
        options = LoadSubsetOptions(sorts=[Sort("name")], limit=5, offset=10)
        assert translate(options, capabilities=capabilities) == {"sortBy": "name", "perPage": 5, "start": 10}

    def test_none_options(self):
        assert translate(None) == {}

    def test_empty_options(self):
        assert translate(LoadSubsetOptions()) == {}


class TestJsonApi:
    """Tests for the jsonapi preset."""

    def test_full(self, options):
        assert translate(options, "jsonapi") == {
            "filter[role]": "admin",
            "filter[age][gte]": 21,
            "sort": "-createdAt",
            "page[limit]": 10,
            "page[offset]": 20,
        }


class TestHasura:
    """Tests for the hasura preset."""

    def test_single_condition(self):
        options = LoadSubsetOptions(filters=[Filter("role", "eq", "admin")])
        assert translate(options, "hasura") == {"where": {"role": {"_eq": "admin"}}}

    def test_full(self, options):
        assert translate(options, "hasura") == {
            "where": {"_and": [{"role": {"_eq": "admin"}}, {"age": {"_gte": 21}}]},
            "order_by": [{"createdAt": "desc"}],
            "limit": 10,
            "offset": 20,
        }

    def test_nested_field(self):
        options = LoadSubsetOptions(filters=[Filter("author.name", "in", ["a", "b"])])
        assert translate(options, "hasura") == {"where": {"author": {"name": {"_in": ["a", "b"]}}}}


class TestPrisma:
    """Tests for the prisma preset."""

    def test_full(self, options):
        assert translate(options, "prisma") == {
            "where": {"AND": [{"role": {"equals": "admin"}}, {"age": {"gte": 21}}]},
            "orderBy": [{"createdAt": "desc"}],
            "take": 10,
            "skip": 20,
        }


class TestUnsupportedOperators:
    """Tests for dropped filters."""

    def test_dropped_and_reported(self):
        options = LoadSubsetOptions(filters=[Filter("name", "like", "a%"), Filter("role", "eq", "admin")])
        warnings = []
        assert translate(options, warnings=warnings) == {"role": "admin"}
        assert warnings == ["Unsupported filter operator 'like' on field 'name' was dropped"]

    def test_dropped_silently_without_sink(self):
        options = LoadSubsetOptions(filters=[Filter("name", "like", "a%")])
        assert translate(options, "hasura") == {}


class TestTranslatorRegistry:
    """Tests for TranslatorRegistry."""

    def test_defaults(self):
        registry = TranslatorRegistry()
        assert registry.names() == ["rest-simple", "jsonapi", "hasura", "prisma"]

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown predicate preset 'odata'"):
            translate(LoadSubsetOptions(), "odata")

    def test_register_custom(self):
        class UpperTranslator:
            name = "upper"

            def translate(self, options, params, warnings=None):
                return {f.path[0].upper(): f.value for f in options.filters}

        registry = TranslatorRegistry()
        registry.register(UpperTranslator())
        assert registry.has("upper")
        assert isinstance(registry.get("upper"), PredicateTranslator)
        options = LoadSubsetOptions(filters=[Filter("role", "eq", "admin")])
        assert translate(options, "upper", registry=registry) == {"ROLE": "admin"}


class TestSelectPreset:
    """Tests for select_preset."""

    def test_configured_wins(self):
        capabilities = analyze_openapi_parameters([{"name": "filter[role]"}])
        assert select_preset("hasura", capabilities) == "hasura"

    def test_inferred(self):
        capabilities = analyze_openapi_parameters([{"name": "filter[role]"}])
        assert select_preset(None, capabilities) == "jsonapi"

    def test_default(self):
        assert select_preset() == "rest-simple"
