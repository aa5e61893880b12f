"""Hard failures raised by the compiler.

Recoverable problems (unknown scalars, unknown type references, pagination
shapes that cannot be classified) are not exceptions: they are collected as
warning strings on the compile session and returned with the result.
"""


class CompileError(Exception):
    """Base class for errors that abort a compile."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UndefinedFragmentError(CompileError):
    """A document spreads a fragment that no document defines."""

    def __init__(self, fragment_name: str, operation_name: str | None = None):
        self.fragment_name = fragment_name
        self.operation_name = operation_name
        where = f' in "{operation_name}"' if operation_name else ""
        super().__init__(f'Fragment "{fragment_name}" is spread{where} but never defined')


class AnonymousOperationError(CompileError):
    """GraphQL operations need a name to derive schema names from."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Anonymous {operation} operations are not supported; give every operation a name")


class EmptyDocumentError(CompileError):
    """An OpenAPI document without paths and without component schemas."""

    def __init__(self, title: str | None = None):
        label = f' "{title}"' if title else ""
        super().__init__(f"OpenAPI document{label} has no paths and no components")


class InvalidScalarMappingError(CompileError):
    """A scalar override is not an expression of the configured validator."""

    def __init__(self, scalar_name: str, code: str, validator: str, suggestion: str):
        self.scalar_name = scalar_name
        self.code = code
        self.validator = validator
        self.suggestion = suggestion
        super().__init__(
            f'Invalid scalar mapping for "{scalar_name}": received "{code}". '
            f"For {validator}, scalar values must be valid {validator} expressions. "
            f'Did you mean "{suggestion}"?'
        )


class ConfigError(CompileError):
    """The configuration file could not be read or validated."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)


class UnsupportedValidatorError(CompileError):
    """The configured validator library has no emitter."""

    def __init__(self, validator: str, supported: list[str]):
        self.validator = validator
        super().__init__(
            f'Validator "{validator}" is not supported; expected one of: {", ".join(supported)}'
        )
