"""Naming helpers shared by the mappers, analyzers and emitter."""

import re

_SEPARATOR = re.compile(r"[-_\s]+(.)?")
_IDENTIFIER = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")


def pascal_case(name: str) -> str:
    """Convert kebab, snake or camel case to PascalCase.

    Existing capitals are kept, so ``listPets`` becomes ``ListPets``.
    """
    result = _SEPARATOR.sub(lambda m: m.group(1).upper() if m.group(1) else "", name)
    return result[:1].upper() + result[1:]


def camel_case(name: str) -> str:
    """Convert a name to camelCase."""
    pascal = pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def schema_name(type_name: str) -> str:
    """Name of the emitted validator constant for a named schema."""
    return f"{type_name[:1].lower()}{type_name[1:]}Schema"


def fragment_type_name(fragment_name: str) -> str:
    return f"{pascal_case(fragment_name)}Fragment"


def variables_type_name(operation_name: str, operation: str) -> str:
    suffix = "QueryVariables" if operation == "query" else "MutationVariables"
    return f"{pascal_case(operation_name)}{suffix}"


def response_type_name(operation_name: str, operation: str) -> str:
    suffix = "Query" if operation == "query" else "Mutation"
    return f"{pascal_case(operation_name)}{suffix}"


def is_valid_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name))


def safe_property_name(name: str) -> str:
    """Quote a property name unless it is a bare identifier."""
    if is_valid_identifier(name):
        return name
    return f'"{name}"'


def singularize(word: str) -> str:
    """Naive English singular form, enough for REST collection paths."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("es") and not word.endswith("ss"):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def generate_operation_id(method: str, path: str) -> str:
    """Build an operation id from an HTTP method and path.

    Example:
        generate_operation_id("get", "/users/{id}")  # "getUsersById"
    """
    parts = path.lstrip("/").split("/")
    name_parts = []
    for index, part in enumerate(parts):
        if part.startswith("{") and part.endswith("}"):
            name_parts.append("By" + _capitalize(part[1:-1]))
        elif index == 0:
            name_parts.append(part.lower())
        else:
            name_parts.append(_capitalize(part))
    return method.lower() + "".join(_capitalize(p) for p in name_parts)


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]
