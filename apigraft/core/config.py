"""Configuration file models.

A config file lists the API sources to compile and per-source overrides.
Both JSON and YAML are accepted, and keys may be written in camelCase or
snake_case.

Example config (YAML):
    output: ./src/generated
    validator: zod
    sources:
      - name: petstore
        type: openapi
        spec: ./petstore.yaml
        exclude: ["/admin/*"]
      - name: shop
        type: graphql
        schema: ./schema.graphql
        documents: ["./queries/*.graphql"]
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
"""

import json
import re
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigError

SOURCE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")

PredicatePreset = Literal["hasura", "prisma", "rest-simple", "jsonapi"]
SyncMode = Literal["full", "on-demand"]
Validator = Literal["zod"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class InfiniteQueryOverride(_Model):
    """Per-operation infinite query settings."""
    disabled: bool = False
    initial_page_param: Any = None
    get_next_page_param_path: str | None = None


class QueryOverrides(_Model):
    operations: dict[str, InfiniteQueryOverride] = Field(default_factory=dict)


class CollectionOverride(_Model):
    """Per-entity collection settings."""
    key_field: str | None = None
    selector_path: str | None = None
    sync_mode: SyncMode = "full"
    predicate_mapping: PredicatePreset | None = None


class DbOverrides(_Model):
    collections: dict[str, CollectionOverride] = Field(default_factory=dict)


class OverridesConfig(_Model):
    scalars: dict[str, str] = Field(default_factory=dict)
    query: QueryOverrides = Field(default_factory=QueryOverrides)
    db: DbOverrides = Field(default_factory=DbOverrides)

    def operation(self, name: str) -> InfiniteQueryOverride | None:
        return self.query.operations.get(name)


class _SourceConfig(_Model):
    name: str
    overrides: OverridesConfig = Field(default_factory=OverridesConfig)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not SOURCE_NAME_PATTERN.match(v):
            raise ValueError(
                f"Source name '{v}' must start with a lowercase letter and contain only "
                "lowercase letters, digits and hyphens"
            )
        return v


class GraphQLSourceConfig(_SourceConfig):
    type: Literal["graphql"] = "graphql"
    schema_files: list[str] = Field(alias="schema")
    documents: list[str] = Field(default_factory=list)

    @field_validator("schema_files", "documents", mode="before")
    @classmethod
    def as_list(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


class OpenAPISourceConfig(_SourceConfig):
    type: Literal["openapi"] = "openapi"
    spec: str
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


SourceConfig = Annotated[GraphQLSourceConfig | OpenAPISourceConfig, Field(discriminator="type")]


class ApigraftConfig(_Model):
    """Top-level configuration."""
    output: str = "./src/generated"
    validator: Validator = "zod"
    sources: list[SourceConfig] = Field(min_length=1)

    _base_dir: Path = PrivateAttr(default_factory=Path.cwd)

    @model_validator(mode="after")
    def check_unique_names(self) -> "ApigraftConfig":
        seen = set()
        duplicates = []
        for source in self.sources:
            if source.name in seen:
                duplicates.append(source.name)
            seen.add(source.name)
        if duplicates:
            raise ValueError(f"Duplicate source names: {sorted(set(duplicates))}")
        return self

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def resolve(self, path: str) -> Path:
        """Resolve a path from the config file's directory."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self._base_dir / candidate

    def source(self, name: str) -> GraphQLSourceConfig | OpenAPISourceConfig:
        for source in self.sources:
            if source.name == name:
                return source
        raise ConfigError(f"No source named '{name}' in config")


def parse_config(data: Any, base_dir: Path | None = None) -> ApigraftConfig:
    """Validate already-loaded config data.

    Raises:
        ConfigError: The data does not describe a valid config
    """
    try:
        config = ApigraftConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ConfigError("Invalid configuration:\n  " + "\n  ".join(errors), errors) from e
    if base_dir is not None:
        config._base_dir = base_dir
    return config


def load_config(path: str | Path) -> ApigraftConfig:
    """Load a JSON or YAML config file.

    Raises:
        ConfigError: The file is missing, unparseable or invalid
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    return parse_config(data, base_dir=path.parent.resolve())
