"""Operation extraction from OpenAPI documents.

Walks ``paths`` and produces one ``OpenAPIOperation`` per HTTP method with
parameters merged from the path item and the operation, the JSON request
body schema and the JSON success response schema.
"""

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any

from .naming import generate_operation_id

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

# Checked in order for the success response
SUCCESS_STATUSES = ("200", "201", "default")


@dataclass
class OpenAPIOperation:
    """A single operation of an OpenAPI document."""
    path: str
    method: str
    operation_id: str
    operation: dict[str, Any]
    path_params: list[dict[str, Any]] = field(default_factory=list)
    query_params: list[dict[str, Any]] = field(default_factory=list)
    request_body: dict[str, Any] | None = None
    response_schema: dict[str, Any] | None = None

    @property
    def is_query(self) -> bool:
        return self.method == "get"

    @property
    def has_params(self) -> bool:
        return bool(self.path_params or self.query_params)


def extract_operations(document: dict[str, Any]) -> list[OpenAPIOperation]:
    """Extract all operations from a dereferenced OpenAPI document."""
    operations = []
    for path, path_item in (document.get("paths") or {}).items():
        if not path_item:
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not operation:
                continue

            params = list(path_item.get("parameters") or []) + list(operation.get("parameters") or [])
            operations.append(
                OpenAPIOperation(
                    path=path,
                    method=method,
                    operation_id=operation.get("operationId") or generate_operation_id(method, path),
                    operation=operation,
                    path_params=[p for p in params if p.get("in") == "path"],
                    query_params=[p for p in params if p.get("in") == "query"],
                    request_body=_json_schema(operation.get("requestBody")),
                    response_schema=_success_schema(operation.get("responses")),
                )
            )
    return operations


def _json_schema(container: dict[str, Any] | None) -> dict[str, Any] | None:
    if not container:
        return None
    media = (container.get("content") or {}).get("application/json") or {}
    return media.get("schema")


def _success_schema(responses: dict[str, Any] | None) -> dict[str, Any] | None:
    if not responses:
        return None
    for status in SUCCESS_STATUSES:
        response = responses.get(status)
        if response:
            return _json_schema(response)
    return None


def filter_paths(
    document: dict[str, Any],
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> dict[str, Any]:
    """Return a shallow copy of ``document`` keeping only matching paths.

    Patterns are shell-style globs matched against the path template,
    e.g. ``/pets*`` or ``/admin/*``. A path must match one ``include``
    pattern (when given) and no ``exclude`` pattern.
    """
    if not include and not exclude:
        return document

    kept = {}
    for path, item in (document.get("paths") or {}).items():
        if include and not any(fnmatchcase(path, p) for p in include):
            continue
        if exclude and any(fnmatchcase(path, p) for p in exclude):
            continue
        kept[path] = item

    filtered = dict(document)
    filtered["paths"] = kept
    return filtered
