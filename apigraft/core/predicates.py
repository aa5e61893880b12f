"""Predicate translation for on-demand sync collections.

Converts a structured subset request (filters, sorts, limit, offset) into
the flat parameter map a backend understands. Four presets are built in:

    rest-simple  ?role=admin&age_gte=21&sort=-createdAt&limit=10
    jsonapi      ?filter[role]=admin&filter[age][gte]=21&page[limit]=10
    hasura       {where: {role: {_eq: "admin"}}, order_by: [...], limit}
    prisma       {where: {role: {equals: "admin"}}, orderBy: [...], take}

Operators outside eq, lt, lte, gt, gte and in are dropped. When a warnings
list is passed, each dropped filter is reported there.

Example usage:
    from apigraft.core.predicates import Filter, LoadSubsetOptions, translate

    options = LoadSubsetOptions(filters=[Filter("role", "eq", "admin")], limit=10)
    translate(options)  # {"role": "admin", "limit": 10}
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .analysis import QueryCapabilities, infer_predicate_preset

SUPPORTED_OPERATORS = ("eq", "lt", "lte", "gt", "gte", "in")

DEFAULT_PRESET = "rest-simple"


@dataclass
class Filter:
    """A comparison on a (possibly nested) field.

    ``field`` is either a dotted string or a list of path segments.
    """
    field: str | list[str]
    operator: str
    value: Any = None

    @property
    def path(self) -> list[str]:
        if isinstance(self.field, str):
            return self.field.split(".")
        return list(self.field)


@dataclass
class Sort:
    field: str | list[str]
    direction: str = "asc"

    @property
    def path(self) -> list[str]:
        if isinstance(self.field, str):
            return self.field.split(".")
        return list(self.field)


@dataclass
class LoadSubsetOptions:
    filters: list[Filter] = field(default_factory=list)
    sorts: list[Sort] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None


@dataclass
class ParamNames:
    """Backend parameter names for sorting and paging."""
    sort: str | None = None
    limit: str | None = None
    offset: str | None = None

    @classmethod
    def from_capabilities(cls, capabilities: QueryCapabilities | None) -> "ParamNames":
        if capabilities is None:
            return cls()
        return cls(
            sort=capabilities.sort.sort_param,
            limit=capabilities.pagination.limit_param,
            offset=capabilities.pagination.offset_param,
        )


@runtime_checkable
class PredicateTranslator(Protocol):
    """Translates subset options into backend parameters."""

    name: str

    def translate(
        self,
        options: LoadSubsetOptions,
        params: ParamNames,
        warnings: list[str] | None = None,
    ) -> dict[str, Any]:
        ...


def nested(path: list[str], value: Any) -> Any:
    """``["user", "name"], "asc"`` -> ``{"user": {"name": "asc"}}``."""
    for key in reversed(path):
        value = {key: value}
    return value


def supported_filters(options: LoadSubsetOptions, warnings: list[str] | None) -> list[Filter]:
    kept = []
    for item in options.filters:
        if item.operator in SUPPORTED_OPERATORS:
            kept.append(item)
        elif warnings is not None:
            warnings.append(
                f"Unsupported filter operator '{item.operator}' on field '{'.'.join(item.path)}' was dropped"
            )
    return kept


def sort_string(sorts: list[Sort]) -> str:
    """Comma-joined sort fields, descending ones prefixed with ``-``."""
    return ",".join(f"{'-' if s.direction == 'desc' else ''}{'.'.join(s.path)}" for s in sorts)


def _page(result: dict[str, Any], options: LoadSubsetOptions, limit_param: str, offset_param: str):
    if options.limit is not None:
        result[limit_param] = options.limit
    if options.offset is not None:
        result[offset_param] = options.offset


class RestSimpleTranslator:
    """Flat query parameters with ``_op`` suffixes."""

    name = "rest-simple"

    def translate(self, options, params, warnings=None):
        result: dict[str, Any] = {}
        for item in supported_filters(options, warnings):
            key = ".".join(item.path)
            if item.operator != "eq":
                key = f"{key}_{item.operator}"
            result[key] = item.value
        if options.sorts:
            result[params.sort or "sort"] = sort_string(options.sorts)
        _page(result, options, params.limit or "limit", params.offset or "offset")
        return result


class JsonApiTranslator:
    """JSON:API ``filter[...]`` and ``page[...]`` parameters."""

    name = "jsonapi"

    def translate(self, options, params, warnings=None):
        result: dict[str, Any] = {}
        for item in supported_filters(options, warnings):
            key = f"filter[{'.'.join(item.path)}]"
            if item.operator != "eq":
                key = f"{key}[{item.operator}]"
            result[key] = item.value
        if options.sorts:
            result[params.sort or "sort"] = sort_string(options.sorts)
        _page(result, options, params.limit or "page[limit]", params.offset or "page[offset]")
        return result


class _WhereTranslator:
    """Nested ``where`` objects, shared by the GraphQL presets."""

    name = ""
    operators: dict[str, str] = {}
    conjunction = ""
    order_key = ""
    default_limit = ""
    default_offset = ""

    def translate(self, options, params, warnings=None):
        result: dict[str, Any] = {}
        conditions = [
            nested(item.path, {self.operators[item.operator]: item.value})
            for item in supported_filters(options, warnings)
        ]
        if len(conditions) == 1:
            result["where"] = conditions[0]
        elif conditions:
            result["where"] = {self.conjunction: conditions}
        if options.sorts:
            result[self.order_key] = [nested(s.path, s.direction) for s in options.sorts]
        _page(result, options, params.limit or self.default_limit, params.offset or self.default_offset)
        return result


class HasuraTranslator(_WhereTranslator):
    name = "hasura"
    operators = {"eq": "_eq", "lt": "_lt", "lte": "_lte", "gt": "_gt", "gte": "_gte", "in": "_in"}
    conjunction = "_and"
    order_key = "order_by"
    default_limit = "limit"
    default_offset = "offset"


class PrismaTranslator(_WhereTranslator):
    name = "prisma"
    operators = {"eq": "equals", "lt": "lt", "lte": "lte", "gt": "gt", "gte": "gte", "in": "in"}
    conjunction = "AND"
    order_key = "orderBy"
    default_limit = "take"
    default_offset = "skip"


class TranslatorRegistry:
    """Registry of predicate translators by preset name."""

    def __init__(self):
        self._translators: dict[str, PredicateTranslator] = {}
        self._register_defaults()

    def _register_defaults(self):
        for translator in (RestSimpleTranslator(), JsonApiTranslator(), HasuraTranslator(), PrismaTranslator()):
            self.register(translator)

    def register(self, translator: PredicateTranslator):
        self._translators[translator.name] = translator

    def get(self, name: str) -> PredicateTranslator:
        try:
            return self._translators[name]
        except KeyError:
            raise ValueError(
                f"Unknown predicate preset '{name}'. Available: {', '.join(sorted(self._translators))}"
            ) from None

    def has(self, name: str) -> bool:
        return name in self._translators

    def names(self) -> list[str]:
        return list(self._translators)


def select_preset(configured: str | None = None, capabilities: QueryCapabilities | None = None) -> str:
    """Configured preset, else the one implied by capabilities, else rest-simple."""
    if configured:
        return configured
    if capabilities is not None:
        inferred = infer_predicate_preset(capabilities)
        if inferred:
            return inferred
    return DEFAULT_PRESET


def translate(
    options: LoadSubsetOptions | None,
    preset: str = DEFAULT_PRESET,
    capabilities: QueryCapabilities | None = None,
    warnings: list[str] | None = None,
    registry: TranslatorRegistry | None = None,
) -> dict[str, Any]:
    """Translate subset options with the named preset.

    Raises:
        ValueError: ``preset`` is not registered
    """
    if options is None:
        return {}
    translator = (registry or TranslatorRegistry()).get(preset)
    return translator.translate(options, ParamNames.from_capabilities(capabilities), warnings)
