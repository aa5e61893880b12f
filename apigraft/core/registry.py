"""Named-schema registry and per-compile session state.

Both front-ends decide whether a source node is a named schema through the
same ``NamedSchemaRegistry``. Each registered definition gets a canonical
identifier from the registry's key function: OpenAPI registries key
component schemas by object identity (the dereferenced document shares one
dict per component), GraphQL registries key types by name.

All mutable state of a compile (generated and pending names, emitted
schemas, warnings) lives in a ``CompileSession`` that is passed explicitly,
so independent compiles never share state.
"""

from collections import deque
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Any

from .graph import create_named_schema
from .ir import NamedSchemaIR, SchemaCategory, SchemaIR
from .scalars import ScalarRegistry


def identity_key(definition: Any) -> Hashable:
    return id(definition)


def name_key(definition: Any) -> Hashable:
    return definition.name


class NamedSchemaRegistry:
    """Maps source definitions to schema names through canonical ids.

    Example:
        registry = NamedSchemaRegistry()
        registry.register("Pet", components["Pet"])

        registry.name_for(components["Pet"])   # "Pet"
        registry.name_for({"type": "string"})  # None
    """

    def __init__(self, key: Callable[[Any], Hashable] = identity_key):
        self._key = key
        self._names: dict[Hashable, str] = {}
        self._definitions: dict[str, Any] = {}

    def register(self, name: str, definition: Any) -> Hashable:
        """Register a named definition and return its canonical id."""
        canonical_id = self._key(definition)
        self._names[canonical_id] = name
        self._definitions[name] = definition
        return canonical_id

    def name_for(self, definition: Any) -> str | None:
        """Name of a registered definition, or None for inline nodes."""
        try:
            return self._names.get(self._key(definition))
        except (AttributeError, TypeError):
            return None

    def definition(self, name: str) -> Any:
        return self._definitions.get(name)

    def has(self, name: str) -> bool:
        return name in self._definitions

    def names(self) -> list[str]:
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)


@dataclass
class CompileSession:
    """State of one compile pass.

    ``generated`` holds names already mapped (or being mapped) and
    ``pending`` the names discovered through references that still need
    mapping. A name is enqueued at most once.
    """
    registry: NamedSchemaRegistry = field(default_factory=NamedSchemaRegistry)
    scalars: ScalarRegistry = field(default_factory=ScalarRegistry)
    warnings: list[str] = field(default_factory=list)
    schemas: list[NamedSchemaIR] = field(default_factory=list)
    generated: set[str] = field(default_factory=set)
    pending: deque = field(default_factory=deque)
    _warned: set[str] = field(default_factory=set)

    def warn(self, message: str):
        """Record a warning."""
        self.warnings.append(message)

    def warn_once(self, key: str, message: str):
        """Record a warning only the first time ``key`` is seen."""
        if key in self._warned:
            return
        self._warned.add(key)
        self.warnings.append(message)

    def reference(self, name: str):
        """Note a reference to a named schema, queueing it if new."""
        if name in self.generated or name in self.pending:
            return
        self.pending.append(name)

    def next_pending(self) -> str | None:
        """Pop the next pending name that has not been generated yet."""
        while self.pending:
            name = self.pending.popleft()
            if name not in self.generated:
                return name
        return None

    def add_schema(
        self,
        name: str,
        schema: SchemaIR,
        category: SchemaCategory = SchemaCategory.COMPONENT,
    ) -> NamedSchemaIR:
        """Record a finished named schema."""
        self.generated.add(name)
        named = create_named_schema(name, schema, category)
        self.schemas.append(named)
        return named
