"""Query parser using graphql-core.

graphql-core parses the query text; this module converts its document into
the query AST, selecting one operation and the fragments it reaches.
"""

from graphql import (
    BooleanValueNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLSyntaxError,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    StringValueNode,
    ValueNode,
    VariableNode,
    parse,
    print_ast,
)

from .errors import (
    QueryError,
    QueryReferenceError,
    QuerySyntaxError,
    UnsupportedOperationError,
)
from .query_ast import (
    FIELD,
    FRAGMENT_SPREAD,
    INLINE_FRAGMENT,
    Argument,
    Directive,
    FragmentDefinition,
    ListValue,
    Literal,
    ObjectValue,
    Operation,
    QueryNode,
    Value,
    Variable,
    VariableDefinition,
)


class QueryParser:
    """Parses query text into an Operation."""

    def __init__(self, query: str):
        self.query = query

    def parse(self, operation_name: str | None = None) -> Operation:
        """Parse the query and select an operation.

        Args:
            operation_name: Operation to select; the first one when omitted

        Returns:
            The selected operation with the fragments it uses
        """
        try:
            document = parse(self.query)
        except GraphQLSyntaxError as e:
            raise QuerySyntaxError(e.message) from e

        operations = []
        fragments = {}
        for definition in document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                operations.append(definition)
            elif isinstance(definition, FragmentDefinitionNode):
                fragments[definition.name.value] = self._process_fragment(definition)
            else:
                raise UnsupportedOperationError(f"Unsupported definition kind '{definition.kind}'")

        if not operations:
            raise QueryReferenceError("The query does not define any operation")
        if operation_name is None:
            selected = operations[0]
        else:
            selected = next(
                (op for op in operations if op.name and op.name.value == operation_name), None
            )
            if selected is None:
                raise QueryReferenceError(f"Unknown operation name '{operation_name}'")

        operation = Operation(
            operation_type=selected.operation.value,
            name=selected.name.value if selected.name else None,
            variables=[
                VariableDefinition(
                    name=var.variable.name.value,
                    type=print_ast(var.type),
                    default_value=self._process_value(var.default_value) if var.default_value else None,
                )
                for var in selected.variable_definitions or ()
            ],
            properties=self._process_selections(selected.selection_set),
            directives=self._process_directives(selected.directives),
        )
        operation.fragments = self._reachable_fragments(operation.properties, fragments)
        return operation

    def _reachable_fragments(
        self, properties: list[QueryNode], fragments: dict[str, FragmentDefinition]
    ) -> list[FragmentDefinition]:
        """Fragments used by the operation, directly or through other fragments, in document order."""
        used: set[str] = set()
        pending = list(properties)
        while pending:
            node = pending.pop()
            if node.kind == FRAGMENT_SPREAD:
                if node.name not in fragments:
                    raise QueryReferenceError(f"Unknown fragment '{node.name}'")
                if node.name not in used:
                    used.add(node.name)
                    pending.extend(fragments[node.name].properties)
            pending.extend(node.properties)
        return [fragment for name, fragment in fragments.items() if name in used]

    def _process_fragment(self, definition: FragmentDefinitionNode) -> FragmentDefinition:
        return FragmentDefinition(
            name=definition.name.value,
            on_type=definition.type_condition.name.value,
            properties=self._process_selections(definition.selection_set),
            directives=self._process_directives(definition.directives),
        )

    def _process_selections(self, selection_set) -> list[QueryNode]:
        if selection_set is None:
            return []
        nodes = []
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                field_name = selection.name.value
                alias = selection.alias.value if selection.alias else None
                nodes.append(
                    QueryNode(
                        name=f"{alias}:{field_name}" if alias else field_name,
                        kind=FIELD,
                        alias_of=field_name if alias else None,
                        arguments=self._process_arguments(selection.arguments),
                        directives=self._process_directives(selection.directives),
                        properties=self._process_selections(selection.selection_set),
                    )
                )
            elif isinstance(selection, FragmentSpreadNode):
                nodes.append(
                    QueryNode(
                        name=selection.name.value,
                        kind=FRAGMENT_SPREAD,
                        directives=self._process_directives(selection.directives),
                    )
                )
            elif isinstance(selection, InlineFragmentNode):
                nodes.append(
                    QueryNode(
                        name="",
                        kind=INLINE_FRAGMENT,
                        type_condition=(
                            selection.type_condition.name.value if selection.type_condition else None
                        ),
                        directives=self._process_directives(selection.directives),
                        properties=self._process_selections(selection.selection_set),
                    )
                )
            else:
                raise QueryError(f"Unsupported selection kind '{selection.kind}'")
        return nodes

    def _process_directives(self, directives) -> list[Directive]:
        return [
            Directive(d.name.value, self._process_arguments(d.arguments)) for d in directives or ()
        ]

    def _process_arguments(self, arguments) -> list[Argument]:
        return [Argument(a.name.value, self._process_value(a.value)) for a in arguments or ()]

    def _process_value(self, node: ValueNode) -> Value:
        """Convert a graphql-core value node into the query AST's value tree."""
        if isinstance(node, VariableNode):
            return Variable(node.name.value)
        if isinstance(node, ObjectValueNode):
            return ObjectValue([Argument(f.name.value, self._process_value(f.value)) for f in node.fields])
        if isinstance(node, ListValueNode):
            return ListValue([self._process_value(v) for v in node.values])
        if isinstance(node, StringValueNode):
            return Literal("string", node.value)
        if isinstance(node, IntValueNode):
            return Literal("int", node.value)
        if isinstance(node, FloatValueNode):
            return Literal("float", node.value)
        if isinstance(node, BooleanValueNode):
            return Literal("boolean", "true" if node.value else "false")
        if isinstance(node, NullValueNode):
            return Literal("null", None)
        if isinstance(node, EnumValueNode):
            return Literal("enum", node.value)
        raise QueryError(f"Unsupported value kind '{node.kind}'")
