"""GraphQL to IR mapper.

Builds IR for what a set of operation documents actually uses: the enums
and input objects reachable from variables and selections, one schema per
fragment, and a variables and a response schema per operation.

GraphQL types are nullable unless wrapped in non-null, so nullability is
resolved level by level while unwrapping type wrappers:

    [String]!  ->  array(nullable(string))
    [String!]  ->  nullable(array(string))

Example usage:
    from graphql import build_schema
    from apigraft.core.documents import parse_documents
    from apigraft.core.graphql_mapper import GraphQLMapper

    mapper = GraphQLMapper(build_schema(sdl), parse_documents([doc]), session)
    schemas = mapper.map_documents()
"""

from graphql import (
    FieldNode,
    FragmentSpreadNode,
    GraphQLEnumType,
    GraphQLInputObjectType,
    GraphQLInterfaceType,
    GraphQLObjectType,
    GraphQLSchema,
    InlineFragmentNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    SelectionSetNode,
    TypeNode,
    is_enum_type,
    is_input_object_type,
    is_interface_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
)

from .documents import ParsedDocuments, ParsedFragment, ParsedOperation
from .graph import topological_sort
from .ir import (
    ArraySchema,
    EnumSchema,
    LiteralSchema,
    NamedSchemaIR,
    ObjectProperty,
    ObjectSchema,
    RefSchema,
    SchemaCategory,
    SchemaIR,
    UnknownSchema,
    make_nullable,
    union_of,
)
from .naming import fragment_type_name, response_type_name, variables_type_name
from .registry import CompileSession, NamedSchemaRegistry, name_key


def graphql_session(**kwargs) -> CompileSession:
    """A compile session whose registry keys types by name."""
    return CompileSession(registry=NamedSchemaRegistry(key=name_key), **kwargs)


class GraphQLMapper:
    """Maps GraphQL types and operation documents into IR."""

    def __init__(
        self,
        schema: GraphQLSchema,
        documents: ParsedDocuments,
        session: CompileSession | None = None,
    ):
        self.schema = schema
        self.documents = documents
        self.session = session or graphql_session()
        self._generated_fragments: set[str] = set()
        for name, named_type in schema.type_map.items():
            if name.startswith("__"):
                continue
            if is_enum_type(named_type) or is_input_object_type(named_type):
                self.session.registry.register(name, named_type)

    def map_documents(self) -> list[NamedSchemaIR]:
        """Map everything the documents use and return it sorted."""
        operations = self.documents.operations

        for enum_type in self._collect_enums():
            self.map_enum(enum_type)
        for input_type in self._collect_input_types():
            self.map_input_object(input_type)
        self.process_pending()

        for fragment in self.documents.fragments:
            self.map_fragment(fragment)
        for operation in operations:
            self.map_variables(operation)
        for operation in operations:
            self.map_response(operation)
        self.process_pending()

        return topological_sort(self.session.schemas)

    def process_pending(self):
        while (name := self.session.next_pending()) is not None:
            named_type = self.session.registry.definition(name)
            if is_enum_type(named_type):
                self.map_enum(named_type)
            elif is_input_object_type(named_type):
                self.map_input_object(named_type)

    # Named types

    def map_enum(self, enum_type: GraphQLEnumType):
        if enum_type.name in self.session.generated:
            return
        values = tuple(enum_type.values)
        self.session.add_schema(enum_type.name, EnumSchema(values), SchemaCategory.ENUM)

    def map_input_object(self, input_type: GraphQLInputObjectType):
        name = input_type.name
        if name in self.session.generated:
            return
        # Marked before mapping fields so self references become refs
        self.session.generated.add(name)
        properties = {
            field_name: ObjectProperty(self.map_input_type(field.type), required=is_non_null_type(field.type))
            for field_name, field in input_type.fields.items()
        }
        self.session.add_schema(name, ObjectSchema(properties=properties), SchemaCategory.INPUT)

    def map_input_type(self, input_type) -> SchemaIR:
        """Map a schema input type, resolving nullability at every level."""
        if is_non_null_type(input_type):
            return self._map_input_inner(input_type.of_type)
        return make_nullable(self._map_input_inner(input_type))

    def _map_input_inner(self, input_type) -> SchemaIR:
        if is_list_type(input_type):
            return ArraySchema(self.map_input_type(input_type.of_type))
        if is_scalar_type(input_type):
            return self.map_scalar(input_type.name)
        if is_enum_type(input_type) or is_input_object_type(input_type):
            return self._ref(input_type.name)
        self.session.warn(f'Unsupported GraphQL input type "{input_type}"')
        return UnknownSchema()

    def _ref(self, name: str) -> RefSchema:
        self.session.reference(name)
        return RefSchema(name)

    def map_scalar(self, scalar_name: str) -> SchemaIR:
        schema = self.session.scalars.get(scalar_name)
        if schema is not None:
            return schema
        self.session.warn_once(
            f"scalar:{scalar_name}",
            f'Unknown scalar type "{scalar_name}", using unknown. Consider adding a scalar mapping.',
        )
        return UnknownSchema()

    # Variables

    def map_variables(self, operation: ParsedOperation):
        variables = operation.variable_definitions
        if not variables:
            return
        name = variables_type_name(operation.name, operation.operation)
        if name in self.session.generated:
            return
        properties = {
            var.variable.name.value: ObjectProperty(
                self.map_type_node(var.type),
                required=isinstance(var.type, NonNullTypeNode),
            )
            for var in variables
        }
        self.session.add_schema(name, ObjectSchema(properties=properties), SchemaCategory.VARIABLES)

    def map_type_node(self, type_node: TypeNode) -> SchemaIR:
        """Map a variable's type from the document AST."""
        if isinstance(type_node, NonNullTypeNode):
            return self._map_type_node_inner(type_node.type)
        return make_nullable(self._map_type_node_inner(type_node))

    def _map_type_node_inner(self, type_node: TypeNode) -> SchemaIR:
        if isinstance(type_node, ListTypeNode):
            return ArraySchema(self.map_type_node(type_node.type))
        type_name = type_node.name.value
        named_type = self.schema.get_type(type_name)
        if named_type is None:
            self._warn_unknown_type(type_name)
            return UnknownSchema()
        if is_scalar_type(named_type):
            return self.map_scalar(type_name)
        return self._ref(type_name)

    def _warn_unknown_type(self, type_name: str):
        self.session.warn_once(f"type:{type_name}", f'Unknown type "{type_name}" referenced in variables')

    # Selections

    def map_fragment(self, fragment: ParsedFragment):
        name = fragment_type_name(fragment.name)
        if name in self.session.generated:
            return
        parent = self.schema.get_type(fragment.type_name)
        if not (is_object_type(parent) or is_interface_type(parent)):
            self.session.warn(f'Unable to resolve type "{fragment.type_name}" for fragment "{fragment.name}"')
            return
        ir = self.map_selection_set(fragment.node.selection_set, parent)
        self._generated_fragments.add(fragment.name)
        self.session.add_schema(name, ir, SchemaCategory.FRAGMENT)

    def map_response(self, operation: ParsedOperation):
        name = response_type_name(operation.name, operation.operation)
        if name in self.session.generated:
            return
        root = self._root_type(operation.operation)
        if root is None:
            self.session.warn(f'No {operation.operation} type in schema for operation "{operation.name}"')
            return
        ir = self.map_selection_set(operation.node.selection_set, root)
        self.session.add_schema(name, ir, SchemaCategory.RESPONSE)

    def _root_type(self, operation: str) -> GraphQLObjectType | None:
        if operation == "query":
            return self.schema.query_type
        return self.schema.mutation_type

    def map_selection_set(
        self,
        selection_set: SelectionSetNode,
        parent: GraphQLObjectType | GraphQLInterfaceType,
    ) -> ObjectSchema:
        properties, spreads = self._selection_fields(selection_set, parent)
        return ObjectSchema(properties=properties, fragment_spreads=tuple(spreads))

    def _selection_fields(
        self,
        selection_set: SelectionSetNode,
        parent: GraphQLObjectType | GraphQLInterfaceType,
    ) -> tuple[dict[str, ObjectProperty], list[str]]:
        properties: dict[str, ObjectProperty] = {}
        spreads: list[str] = []
        parent_fields = parent.fields

        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                field_name = selection.name.value
                output_name = selection.alias.value if selection.alias else field_name
                if field_name == "__typename":
                    properties[output_name] = ObjectProperty(LiteralSchema(parent.name), required=True)
                    continue
                field = parent_fields.get(field_name)
                if field is None:
                    continue
                properties[output_name] = ObjectProperty(
                    self.map_output_type(field.type, selection.selection_set),
                    required=is_non_null_type(field.type),
                )

            elif isinstance(selection, FragmentSpreadNode):
                fragment_name = selection.name.value
                if fragment_name in self._generated_fragments:
                    spreads.append(fragment_type_name(fragment_name))
                    continue
                # Not generated yet: inline its fields
                fragment = self.documents.fragment(fragment_name)
                fragment_type = self.schema.get_type(fragment.type_name) if fragment else None
                if is_object_type(fragment_type) or is_interface_type(fragment_type):
                    inner, inner_spreads = self._selection_fields(fragment.node.selection_set, fragment_type)
                    properties.update(inner)
                    spreads.extend(inner_spreads)

            elif isinstance(selection, InlineFragmentNode):
                type_name = selection.type_condition.name.value if selection.type_condition else parent.name
                fragment_type = self.schema.get_type(type_name)
                if is_object_type(fragment_type) or is_interface_type(fragment_type):
                    inner, inner_spreads = self._selection_fields(selection.selection_set, fragment_type)
                    properties.update(inner)
                    spreads.extend(inner_spreads)

        return properties, spreads

    def map_output_type(self, output_type, selection_set: SelectionSetNode | None) -> SchemaIR:
        """Map a field's output type, resolving nullability at every level."""
        if is_non_null_type(output_type):
            return self._map_output_inner(output_type.of_type, selection_set)
        return make_nullable(self._map_output_inner(output_type, selection_set))

    def _map_output_inner(self, output_type, selection_set: SelectionSetNode | None) -> SchemaIR:
        if is_list_type(output_type):
            return ArraySchema(self.map_output_type(output_type.of_type, selection_set))
        if is_scalar_type(output_type):
            return self.map_scalar(output_type.name)
        if is_enum_type(output_type):
            return self._ref(output_type.name)
        if selection_set is None:
            return UnknownSchema()
        if is_union_type(output_type):
            return self._map_union(output_type, selection_set)
        if is_interface_type(output_type):
            return self._map_interface(output_type, selection_set)
        if is_object_type(output_type):
            return self.map_selection_set(selection_set, output_type)
        return UnknownSchema()

    def _inline_fragment_members(self, selection_set: SelectionSetNode, allow_interfaces: bool) -> list[SchemaIR]:
        members = []
        for selection in selection_set.selections:
            if not isinstance(selection, InlineFragmentNode) or selection.type_condition is None:
                continue
            fragment_type = self.schema.get_type(selection.type_condition.name.value)
            if is_object_type(fragment_type) or (allow_interfaces and is_interface_type(fragment_type)):
                members.append(self.map_selection_set(selection.selection_set, fragment_type))
        return members

    def _map_union(self, union_type, selection_set: SelectionSetNode) -> SchemaIR:
        members = self._inline_fragment_members(selection_set, allow_interfaces=False)
        if not members:
            self.session.warn(
                f'Union type "{union_type.name}" has no inline fragments. '
                f'Consider adding "... on TypeName {{ fields }}" to select specific fields.'
            )
            return UnknownSchema()
        return union_of(members)

    def _map_interface(self, interface_type, selection_set: SelectionSetNode) -> SchemaIR:
        members = self._inline_fragment_members(selection_set, allow_interfaces=True)
        if members:
            return union_of(members)
        return self.map_selection_set(selection_set, interface_type)

    # Collection of types used by the documents

    def _collect_enums(self) -> list[GraphQLEnumType]:
        found: dict[str, GraphQLEnumType] = {}
        for operation in self.documents.operations:
            for var in operation.variable_definitions:
                named_type = self.schema.get_type(_named_type_node(var.type).name.value)
                self._collect_enums_from_input(named_type, found, set())
        for operation in self.documents.operations:
            root = self._root_type(operation.operation)
            if root is not None:
                self._collect_enums_from_selection(operation.node.selection_set, root, found, set())
        for fragment in self.documents.fragments:
            parent = self.schema.get_type(fragment.type_name)
            if is_object_type(parent) or is_interface_type(parent):
                self._collect_enums_from_selection(fragment.node.selection_set, parent, found, set())
        return list(found.values())

    def _collect_enums_from_input(self, input_type, found: dict, seen: set[str]):
        input_type = _unwrap(input_type)
        if is_enum_type(input_type):
            found.setdefault(input_type.name, input_type)
        elif is_input_object_type(input_type) and input_type.name not in seen:
            seen.add(input_type.name)
            for field in input_type.fields.values():
                self._collect_enums_from_input(field.type, found, seen)

    def _collect_enums_from_selection(self, selection_set, parent, found: dict, seen_fragments: set[str]):
        if selection_set is None:
            return
        # Union types only carry inline fragments and __typename
        parent_fields = {} if is_union_type(parent) else parent.fields
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                field = parent_fields.get(selection.name.value)
                if field is None:
                    continue
                field_type = _unwrap(field.type)
                if is_enum_type(field_type):
                    found.setdefault(field_type.name, field_type)
                elif is_object_type(field_type) or is_interface_type(field_type) or is_union_type(field_type):
                    self._collect_enums_from_selection(selection.selection_set, field_type, found, seen_fragments)
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self.documents.fragment(name)
                if fragment is None or name in seen_fragments:
                    continue
                seen_fragments.add(name)
                fragment_type = self.schema.get_type(fragment.type_name)
                if is_object_type(fragment_type) or is_interface_type(fragment_type):
                    self._collect_enums_from_selection(fragment.node.selection_set, fragment_type, found, seen_fragments)
            elif isinstance(selection, InlineFragmentNode) and selection.type_condition:
                fragment_type = self.schema.get_type(selection.type_condition.name.value)
                if is_object_type(fragment_type) or is_interface_type(fragment_type):
                    self._collect_enums_from_selection(selection.selection_set, fragment_type, found, seen_fragments)

    def _collect_input_types(self) -> list[GraphQLInputObjectType]:
        found: dict[str, GraphQLInputObjectType] = {}
        for operation in self.documents.operations:
            for var in operation.variable_definitions:
                type_name = _named_type_node(var.type).name.value
                named_type = self.schema.get_type(type_name)
                if named_type is None:
                    self._warn_unknown_type(type_name)
                    continue
                self._collect_nested_inputs(named_type, found)
        return list(found.values())

    def _collect_nested_inputs(self, input_type, found: dict):
        input_type = _unwrap(input_type)
        if not is_input_object_type(input_type) or input_type.name in found:
            return
        found[input_type.name] = input_type
        for field in input_type.fields.values():
            self._collect_nested_inputs(field.type, found)


def _unwrap(graphql_type):
    while is_non_null_type(graphql_type) or is_list_type(graphql_type):
        graphql_type = graphql_type.of_type
    return graphql_type


def _named_type_node(type_node: TypeNode) -> NamedTypeNode:
    while not isinstance(type_node, NamedTypeNode):
        type_node = type_node.type
    return type_node
