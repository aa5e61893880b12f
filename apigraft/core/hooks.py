"""Render hooks for customizing emitted modules.

Pre-render hooks change the list of named schemas before a module is
rendered; post-render hooks transform the rendered text. A hook may
implement either method or both.

Example usage:
    from apigraft.core.hooks import FilterSchemasHook, HookRunner

    hooks = HookRunner([FilterSchemasHook(exclude_categories=[SchemaCategory.PARAMS])])
    emitter = SchemaEmitter(hooks=hooks)

    # Post-render hook to prepend a lint directive
    class DisableLint:
        def post_render(self, filename, content):
            return "/* eslint-disable */\\n" + content
"""

from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable

from .ir import NamedSchemaIR, SchemaCategory


@runtime_checkable
class PreRenderHook(Protocol):
    """Receives the ordered named schemas and returns the list to render."""

    def pre_render(self, schemas: list[NamedSchemaIR]) -> list[NamedSchemaIR]:
        ...


@runtime_checkable
class PostRenderHook(Protocol):
    """Transforms the rendered text of a module before it is written.

    Example:
        class DisableLint(PostRenderHook):
            def post_render(self, filename: str, content: str) -> str:
                return "/* eslint-disable */\\n" + content
    """

    def post_render(self, filename: str, content: str) -> str:
        ...


class FilterSchemasHook:
    """Drop named schemas by category or by name pattern.

    Patterns are shell-style globs such as ``*Params`` or ``_*``. A dropped
    schema that a kept schema still references, directly or through other
    schemas, is kept so the module never refers to an undeclared constant.

    Example:
        # Only validators for components and responses
        hook = FilterSchemasHook(exclude_categories=[SchemaCategory.PARAMS, SchemaCategory.INPUT])
    """

    def __init__(
        self,
        exclude_categories: list[SchemaCategory] | None = None,
        exclude: list[str] | None = None,
    ):
        self.exclude_categories = set(exclude_categories or [])
        self.exclude = list(exclude or [])

    def excluded(self, schema: NamedSchemaIR) -> bool:
        if schema.category in self.exclude_categories:
            return True
        return any(fnmatchcase(schema.name, pattern) for pattern in self.exclude)

    def pre_render(self, schemas: list[NamedSchemaIR]) -> list[NamedSchemaIR]:
        by_name = {s.name: s for s in schemas}
        keep = {s.name for s in schemas if not self.excluded(s)}

        stack = list(keep)
        while stack:
            for dep in by_name[stack.pop()].dependencies:
                if dep in by_name and dep not in keep:
                    keep.add(dep)
                    stack.append(dep)

        return [s for s in schemas if s.name in keep]


class HookRunner:
    """Runs hooks in registration order.

    Each hook is registered once and runs in whichever phases it
    implements.
    """

    def __init__(self, hooks: list[PreRenderHook | PostRenderHook] | None = None):
        self.hooks: list[PreRenderHook | PostRenderHook] = []
        for hook in hooks or []:
            self.add(hook)

    def add(self, hook: PreRenderHook | PostRenderHook):
        if not isinstance(hook, (PreRenderHook, PostRenderHook)):
            raise TypeError(f"{type(hook).__name__} has neither pre_render nor post_render")
        self.hooks.append(hook)

    def run_pre_hooks(self, schemas: list[NamedSchemaIR]) -> list[NamedSchemaIR]:
        for hook in self.hooks:
            if isinstance(hook, PreRenderHook):
                schemas = hook.pre_render(schemas)
        return schemas

    def run_post_hooks(self, filename: str, content: str) -> str:
        for hook in self.hooks:
            if isinstance(hook, PostRenderHook):
                content = hook.post_render(filename, content)
        return content
