"""Tests for configuration loading."""

import json

import pytest

from apigraft.core.config import (
    GraphQLSourceConfig,
    OpenAPISourceConfig,
    load_config,
    parse_config,
)
from apigraft.core.errors import ConfigError


YAML_CONFIG = """\
output: ./generated
sources:
  - name: petstore
    type: openapi
    spec: ./petstore.yaml
    exclude: ["/admin/*"]
  - name: shop
    type: graphql
    schema: ./schema.graphql
    documents: ./queries/*.graphql
    overrides:
      scalars:
        DateTime: z.iso.datetime()
      query:
        operations:
          ListProducts:
            getNextPageParamPath: products.pageInfo.endCursor
      db:
        collections:
          Product:
            keyField: sku
            syncMode: on-demand
            predicateMapping: hasura
"""


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "apigraft.yaml"
    path.write_text(YAML_CONFIG)
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml(self, yaml_config, tmp_path):
        config = load_config(yaml_config)
        assert config.output == "./generated"
        assert config.validator == "zod"
        assert config.base_dir == tmp_path.resolve()

        petstore = config.source("petstore")
        assert isinstance(petstore, OpenAPISourceConfig)
        assert petstore.spec == "./petstore.yaml"
        assert petstore.exclude == ["/admin/*"]

        shop = config.source("shop")
        assert isinstance(shop, GraphQLSourceConfig)
        assert shop.schema_files == ["./schema.graphql"]
        assert shop.documents == ["./queries/*.graphql"]

    def test_camel_case_overrides(self, yaml_config):
        overrides = load_config(yaml_config).source("shop").overrides
        assert overrides.scalars == {"DateTime": "z.iso.datetime()"}
        assert overrides.operation("ListProducts").get_next_page_param_path == "products.pageInfo.endCursor"
        assert overrides.operation("Missing") is None

        product = overrides.db.collections["Product"]
        assert product.key_field == "sku"
        assert product.sync_mode == "on-demand"
        assert product.predicate_mapping == "hasura"

    def test_json(self, tmp_path):
        path = tmp_path / "apigraft.json"
        path.write_text(json.dumps({
            "sources": [{"name": "api", "type": "openapi", "spec": "openapi.json"}],
        }))
        config = load_config(path)
        assert config.output == "./src/generated"
        assert config.resolve("openapi.json") == tmp_path.resolve() / "openapi.json"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "nope.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Cannot parse config file"):
            load_config(path)


class TestParseConfig:
    """Tests for parse_config validation."""

    def test_snake_case_keys(self):
        config = parse_config({
            "sources": [{
                "name": "shop",
                "type": "graphql",
                "schema_files": ["schema.graphql"],
                "overrides": {"db": {"collections": {"Product": {"key_field": "sku"}}}},
            }],
        })
        source = config.source("shop")
        assert source.schema_files == ["schema.graphql"]
        assert source.overrides.db.collections["Product"].key_field == "sku"

    @pytest.mark.parametrize("name", ["Petstore", "1api", "my_api", ""])
    def test_invalid_source_name(self, name):
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"sources": [{"name": name, "type": "openapi", "spec": "a.yaml"}]})
        assert "must start with a lowercase letter" in exc_info.value.message

    def test_duplicate_names(self):
        with pytest.raises(ConfigError, match="Duplicate source names"):
            parse_config({
                "sources": [
                    {"name": "api", "type": "openapi", "spec": "a.yaml"},
                    {"name": "api", "type": "openapi", "spec": "b.yaml"},
                ],
            })

    def test_unknown_key(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"outputDir": "x", "sources": [{"name": "api", "type": "openapi", "spec": "a.yaml"}]})
        assert any("outputDir" in error for error in exc_info.value.errors)

    def test_no_sources(self):
        with pytest.raises(ConfigError):
            parse_config({"sources": []})

    @pytest.mark.parametrize("validator", ["valibot", "yup"])
    def test_only_zod_validator(self, validator):
        with pytest.raises(ConfigError):
            parse_config({"validator": validator, "sources": [{"name": "api", "type": "openapi", "spec": "a.yaml"}]})

    def test_unknown_predicate_preset(self):
        with pytest.raises(ConfigError):
            parse_config({
                "sources": [{
                    "name": "api",
                    "type": "openapi",
                    "spec": "a.yaml",
                    "overrides": {"db": {"collections": {"Pet": {"predicateMapping": "odata"}}}},
                }],
            })

    def test_unknown_source(self):
        config = parse_config({"sources": [{"name": "api", "type": "openapi", "spec": "a.yaml"}]})
        with pytest.raises(ConfigError, match="No source named 'other'"):
            config.source("other")

    def test_absolute_paths_unchanged(self, tmp_path):
        config = parse_config({"sources": [{"name": "api", "type": "openapi", "spec": "a.yaml"}]}, base_dir=tmp_path)
        assert config.resolve(str(tmp_path / "abs.yaml")) == tmp_path / "abs.yaml"
        assert config.resolve("rel.yaml") == tmp_path / "rel.yaml"
