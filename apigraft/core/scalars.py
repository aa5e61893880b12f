"""Scalar mapping table for GraphQL sources.

Maps GraphQL scalar names to IR nodes. The table is seeded with defaults
for the built-in and common custom scalars and can be overridden per
compile with verbatim validator expressions, which become ``raw`` nodes.

Example usage:
    from apigraft.core.scalars import ScalarRegistry

    registry = ScalarRegistry(validator="zod")
    registry.apply_overrides({"Money": "z.string().regex(/^\\d+\\.\\d{2}$/)"})

    registry.get("DateTime")  # StringSchema(format="datetime")
    registry.get("Money")     # RawSchema(code="z.string()...")
"""

from .errors import InvalidScalarMappingError, UnsupportedValidatorError
from .ir import (
    BigIntSchema,
    BooleanSchema,
    NumberSchema,
    RawSchema,
    SchemaIR,
    StringSchema,
    UnknownSchema,
    string_record,
)

# Validator libraries the emitter can target, with their expression prefixes
VALIDATOR_PREFIXES: dict[str, tuple[str, ...]] = {
    "zod": ("z.",),
}

_DEFAULT_SUGGESTIONS = {
    "zod": "z.string()",
}

# Common mistakes: a TypeScript type name instead of an expression
_SUGGESTIONS: dict[str, dict[str, str]] = {
    "zod": {
        "string": "z.string()", "number": "z.number()", "boolean": "z.boolean()",
        "date": "z.string()", "object": "z.object({})", "any": "z.any()",
        "unknown": "z.unknown()",
    },
}


class ScalarRegistry:
    """Registry of scalar name to IR node.

    Example:
        registry = ScalarRegistry()
        registry.register("Cursor", StringSchema())

        if registry.has("Cursor"):
            schema = registry.get("Cursor")
    """

    def __init__(self, validator: str | None = None):
        if validator is not None:
            check_validator(validator)
        self.validator = validator
        self._scalars: dict[str, SchemaIR] = {}
        self._register_defaults()

    def _register_defaults(self):
        """Register built-in default mappings."""
        self.register("ID", StringSchema())
        self.register("String", StringSchema())
        self.register("Int", NumberSchema(integer=True))
        self.register("Float", NumberSchema())
        self.register("Boolean", BooleanSchema())
        self.register("DateTime", StringSchema(format="datetime"))
        self.register("Date", StringSchema(format="date"))
        self.register("Time", StringSchema(format="time"))
        self.register("UUID", StringSchema(format="uuid"))
        self.register("JSON", UnknownSchema())
        self.register("JSONObject", string_record())
        self.register("BigInt", BigIntSchema())

    def register(self, scalar_name: str, schema: SchemaIR):
        """Register the IR node for a scalar type."""
        self._scalars[scalar_name] = schema

    def get(self, scalar_name: str) -> SchemaIR | None:
        """Get the node for a scalar type, or None if not registered."""
        return self._scalars.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a scalar type is registered."""
        return scalar_name in self._scalars

    def apply_overrides(self, overrides: dict[str, str] | None):
        """Register verbatim expressions, replacing any default.

        Raises:
            InvalidScalarMappingError: if a validator is set and an expression
                does not look like one of its expressions.
        """
        for scalar_name, code in (overrides or {}).items():
            if self.validator:
                validate_scalar_code(scalar_name, code, self.validator)
            self.register(scalar_name, RawSchema(code))


def validate_scalar_code(scalar_name: str, code: str, validator: str):
    """Raise if ``code`` is not an expression of ``validator``."""
    check_validator(validator)
    prefixes = VALIDATOR_PREFIXES[validator]
    if code.startswith(prefixes):
        return
    suggestion = _SUGGESTIONS[validator].get(code.lower(), _DEFAULT_SUGGESTIONS[validator])
    raise InvalidScalarMappingError(scalar_name, code, validator, suggestion)


def check_validator(validator: str):
    """Raise unless ``validator`` is a library the emitter can target."""
    if validator not in VALIDATOR_PREFIXES:
        raise UnsupportedValidatorError(validator, sorted(VALIDATOR_PREFIXES))
