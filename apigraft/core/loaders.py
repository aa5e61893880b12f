"""Local file loaders for API sources.

Reads OpenAPI documents (JSON or YAML) and GraphQL SDL and operation
documents from disk. OpenAPI ``$ref`` pointers into the same document are
replaced by the object they point at, so every use of a component shares
one dict with ``components.schemas``.

Example usage:
    from apigraft.core.loaders import load_openapi, load_graphql_schema

    document = load_openapi("petstore.yaml")
    schema = load_graphql_schema(["schema.graphql"])
"""

import glob
import json
from pathlib import Path
from typing import Any

import yaml
from graphql import GraphQLSchema, build_schema

from .documents import ParsedDocuments, parse_documents
from .errors import CompileError


class LoaderError(CompileError):
    """A source file could not be read or parsed."""


def read_structured(path: str | Path) -> Any:
    """Parse a JSON or YAML file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise LoaderError(f"Cannot read {path}: {e}") from e
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoaderError(f"Cannot parse {path}: {e}") from e


def load_openapi(path: str | Path) -> dict[str, Any]:
    """Load and dereference an OpenAPI document."""
    document = read_structured(path)
    if not isinstance(document, dict):
        raise LoaderError(f"{path} does not contain an OpenAPI document")
    return dereference(document)


def resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    """Follow a local JSON pointer such as ``#/components/schemas/Pet``."""
    if not ref.startswith("#/"):
        raise LoaderError(f"Only local references are supported: {ref}")
    node: Any = document
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        try:
            node = node[int(part)] if isinstance(node, list) else node[part]
        except (KeyError, IndexError, ValueError, TypeError):
            raise LoaderError(f"Unresolvable reference: {ref}") from None
    return node


def dereference(document: dict[str, Any]) -> dict[str, Any]:
    """Replace local ``$ref`` objects in place with their targets.

    Reference cycles are fine: the walk visits each object once, so a
    recursive schema ends up containing itself.
    """
    visited: set[int] = set()

    def target(node: dict[str, Any]) -> Any:
        seen: set[str] = set()
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            if ref in seen:
                raise LoaderError(f"Circular reference alias: {ref}")
            seen.add(ref)
            node = resolve_pointer(document, ref)
        return node

    # Iterative so deeply nested documents do not hit the recursion limit
    stack: list[Any] = [document]
    while stack:
        node = stack.pop()
        if id(node) in visited:
            continue
        visited.add(id(node))
        if isinstance(node, dict):
            entries = list(node.items())
        elif isinstance(node, list):
            entries = list(enumerate(node))
        else:
            continue
        for key, value in entries:
            if isinstance(value, dict) and isinstance(value.get("$ref"), str):
                value = target(value)
                node[key] = value
            if isinstance(value, (dict, list)):
                stack.append(value)
    return document


def read_sources(patterns: list[str], base_dir: Path | None = None) -> list[str]:
    """Read every file matching the glob patterns, in sorted order per pattern."""
    sources = []
    for pattern in patterns:
        full = str(Path(base_dir) / pattern) if base_dir and not Path(pattern).is_absolute() else pattern
        matches = sorted(glob.glob(full, recursive=True))
        if not matches:
            raise LoaderError(f"No files match {pattern}")
        for match in matches:
            sources.append(Path(match).read_text())
    return sources


def load_graphql_schema(patterns: list[str], base_dir: Path | None = None) -> GraphQLSchema:
    """Build a schema from one or more SDL files."""
    return build_schema("\n".join(read_sources(patterns, base_dir)))


def load_documents(patterns: list[str], base_dir: Path | None = None) -> ParsedDocuments:
    """Parse operation documents; no patterns means no operations."""
    if not patterns:
        return ParsedDocuments()
    return parse_documents(read_sources(patterns, base_dir))
