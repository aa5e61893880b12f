"""GraphQL operation documents.

Parses ``.graphql`` document sources with graphql-core into named
operations and fragments. The AST nodes are kept as-is and treated as
read-only by every consumer.

Example usage:
    from apigraft.core.documents import parse_documents

    documents = parse_documents([open("queries.graphql").read()])
    for op in documents.operations:
        print(op.name, op.operation)
"""

from dataclasses import dataclass, field

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    parse,
    print_ast,
)

from .errors import AnonymousOperationError, UndefinedFragmentError


@dataclass
class ParsedOperation:
    """A named query or mutation."""
    name: str
    operation: str  # 'query' or 'mutation'
    node: OperationDefinitionNode
    document: str = ""

    @property
    def variable_definitions(self):
        return self.node.variable_definitions or ()

    @property
    def root_fields(self) -> list[FieldNode]:
        """Top-level field selections, in document order."""
        return [s for s in self.node.selection_set.selections if isinstance(s, FieldNode)]


@dataclass
class ParsedFragment:
    """A named fragment on a type."""
    name: str
    type_name: str
    node: FragmentDefinitionNode
    document: str = ""


@dataclass
class ParsedDocuments:
    """All operations and fragments of a GraphQL source."""
    operations: list[ParsedOperation] = field(default_factory=list)
    fragments: list[ParsedFragment] = field(default_factory=list)

    def fragment(self, name: str) -> ParsedFragment | None:
        for fragment in self.fragments:
            if fragment.name == name:
                return fragment
        return None

    @property
    def queries(self) -> list[ParsedOperation]:
        return [op for op in self.operations if op.operation == "query"]

    @property
    def mutations(self) -> list[ParsedOperation]:
        return [op for op in self.operations if op.operation == "mutation"]


def parse_documents(sources: list[str]) -> ParsedDocuments:
    """Parse document sources and validate fragment spreads.

    Subscriptions are ignored.

    Raises:
        AnonymousOperationError: an operation has no name
        UndefinedFragmentError: a spread names a fragment no source defines
        graphql.GraphQLError: a source does not parse
    """
    documents = ParsedDocuments()
    for source in sources:
        collect_definitions(parse(source), documents)
    check_fragment_spreads(documents)
    return documents


def collect_definitions(ast: DocumentNode, documents: ParsedDocuments):
    """Append the operations and fragments of ``ast`` to ``documents``."""
    for definition in ast.definitions:
        if isinstance(definition, OperationDefinitionNode):
            if definition.operation == OperationType.SUBSCRIPTION:
                continue
            operation = definition.operation.value
            if definition.name is None:
                raise AnonymousOperationError(operation)
            documents.operations.append(
                ParsedOperation(
                    name=definition.name.value,
                    operation=operation,
                    node=definition,
                    document=print_ast(definition),
                )
            )
        elif isinstance(definition, FragmentDefinitionNode):
            documents.fragments.append(
                ParsedFragment(
                    name=definition.name.value,
                    type_name=definition.type_condition.name.value,
                    node=definition,
                    document=print_ast(definition),
                )
            )


def check_fragment_spreads(documents: ParsedDocuments):
    """Raise ``UndefinedFragmentError`` for the first undefined spread."""
    defined = {f.name for f in documents.fragments}
    for op in documents.operations:
        for name in spread_names(op.node.selection_set):
            if name not in defined:
                raise UndefinedFragmentError(name, op.name)
    for fragment in documents.fragments:
        for name in spread_names(fragment.node.selection_set):
            if name not in defined:
                raise UndefinedFragmentError(name, fragment.name)


def spread_names(selection_set: SelectionSetNode | None) -> list[str]:
    """Names of all fragments spread anywhere inside a selection set."""
    names: list[str] = []
    if selection_set is None:
        return names
    for selection in selection_set.selections:
        if isinstance(selection, FragmentSpreadNode):
            names.append(selection.name.value)
        elif isinstance(selection, (FieldNode, InlineFragmentNode)):
            names.extend(spread_names(selection.selection_set))
    return names
