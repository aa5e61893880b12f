"""Dependency graph over named schemas.

Dependencies are edges by name only, so the graph is rebuilt cheaply for
every compile. Sorting is a depth-first walk in input order: each schema is
placed after everything it references, and a schema reached again while it
is still being visited (a cycle) is simply skipped, leaving the cyclic
component in first-seen order.

Example usage:
    from apigraft.core.graph import create_named_schema, topological_sort

    ordered = topological_sort([
        create_named_schema("Post", post_ir),
        create_named_schema("User", user_ir),
    ])
"""

from typing import Iterator

from .ir import (
    ArraySchema,
    IntersectionSchema,
    NamedSchemaIR,
    NullableSchema,
    ObjectSchema,
    RecordSchema,
    RefSchema,
    SchemaCategory,
    SchemaIR,
    UnionSchema,
)


def extract_dependencies(schema: SchemaIR) -> set[str]:
    """Collect every ``ref`` name reachable from a schema.

    Fragment schemas spread into objects count as references too. Record
    key types are skipped since they are always primitive.
    """
    names: set[str] = set()
    _collect_refs(schema, names)
    return names


def _collect_refs(schema: SchemaIR, names: set[str]):
    if isinstance(schema, RefSchema):
        names.add(schema.name)
    elif isinstance(schema, ObjectSchema):
        names.update(schema.fragment_spreads)
        for prop in schema.properties.values():
            _collect_refs(prop.schema, names)
        if schema.catchall is not None:
            _collect_refs(schema.catchall, names)
    elif isinstance(schema, ArraySchema):
        _collect_refs(schema.items, names)
    elif isinstance(schema, (UnionSchema, IntersectionSchema)):
        for member in schema.members:
            _collect_refs(member, names)
    elif isinstance(schema, RecordSchema):
        _collect_refs(schema.value, names)
    elif isinstance(schema, NullableSchema):
        _collect_refs(schema.inner, names)


def create_named_schema(
    name: str,
    schema: SchemaIR,
    category: SchemaCategory = SchemaCategory.COMPONENT,
) -> NamedSchemaIR:
    """Wrap a schema with its name and extracted dependencies."""
    dependencies = extract_dependencies(schema)
    dependencies.discard(name)
    return NamedSchemaIR(
        name=name,
        schema=schema,
        category=category,
        dependencies=frozenset(dependencies),
    )


def topological_sort(schemas: list[NamedSchemaIR]) -> list[NamedSchemaIR]:
    """Order schemas so that dependencies come before dependents.

    Dependencies on names absent from ``schemas`` are ignored. Every input
    schema appears exactly once in the result, cycles included.
    """
    by_name = {s.name: s for s in schemas}
    visited: set[str] = set()
    visiting: set[str] = set()
    ordered: list[NamedSchemaIR] = []

    def enter(name: str, stack: list[tuple[str, Iterator[str]]]):
        if name in visited or name in visiting or name not in by_name:
            return
        visiting.add(name)
        # Sorted so the order does not depend on set iteration
        stack.append((name, iter(sorted(by_name[name].dependencies))))

    for schema in schemas:
        stack: list[tuple[str, Iterator[str]]] = []
        enter(schema.name, stack)
        while stack:
            name, deps = stack[-1]
            dep = next(deps, None)
            if dep is not None:
                enter(dep, stack)
                continue
            stack.pop()
            visiting.discard(name)
            visited.add(name)
            ordered.append(by_name[name])

    return ordered


def find_cycles(schemas: list[NamedSchemaIR]) -> list[list[str]]:
    """Return the strongly connected components that form cycles.

    Renderers use this to decide where lazy references are needed. Each
    component is listed in input order; self references are not counted
    since ``create_named_schema`` already drops them.
    """
    by_name = {s.name: s for s in schemas}
    position = {s.name: i for i, s in enumerate(schemas)}
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()
    components: list[list[str]] = []
    counter = 0

    # Iterative Tarjan so deep schema chains do not hit the recursion limit
    for root in by_name:
        if root in index:
            continue
        work = [(root, iter(sorted(by_name[root].dependencies)))]
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        while work:
            name, deps = work[-1]
            advanced = False
            for dep in deps:
                if dep not in by_name:
                    continue
                if dep not in index:
                    index[dep] = lowlink[dep] = counter
                    counter += 1
                    stack.append(dep)
                    on_stack.add(dep)
                    work.append((dep, iter(sorted(by_name[dep].dependencies))))
                    advanced = True
                    break
                if dep in on_stack:
                    lowlink[name] = min(lowlink[name], index[dep])
            if advanced:
                continue
            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[name])
            if lowlink[name] == index[name]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == name:
                        break
                if len(component) > 1:
                    components.append(sorted(component, key=position.__getitem__))

    components.sort(key=lambda c: position[c[0]])
    return components
