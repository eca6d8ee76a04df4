"""Query builder for GraphQL operations.

Rebuilds query text from an Operation: variables, arguments, directives,
nested selections and the fragments the operation still uses.
"""

import json

from .query_ast import (
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
)


class QueryBuilder:
    """Builds GraphQL query strings from an Operation."""

    def __init__(self, indent: str = "  "):
        self.indent = indent

    def build(self, operation: Operation) -> str:
        """Build a GraphQL query/mutation/subscription string.

        Args:
            operation: The operation to render

        Returns:
            Complete GraphQL document, fragments after the operation
        """
        head = operation.operation_type
        if operation.name:
            head += f" {operation.name}"
        if operation.variables:
            head += f"({self._build_variable_declarations(operation)})"
        head += self._build_directives(operation.directives)

        body = self._build_selections(operation.properties, depth=1)
        parts = [f"{head} {{\n{body}\n}}"]
        for fragment in operation.fragments:
            parts.append(self._build_fragment(fragment))
        return "\n\n".join(parts)

    def _build_variable_declarations(self, operation: Operation) -> str:
        """Build the variable declaration part: ($person: String, $token: String!)"""
        decls = []
        for var in operation.variables:
            decl = f"${var.name}: {var.type}"
            if var.default_value is not None:
                decl += f" = {self._build_value(var.default_value)}"
            decls.append(decl)
        return ", ".join(decls)

    def _build_fragment(self, fragment: FragmentDefinition) -> str:
        head = f"fragment {fragment.name} on {fragment.on_type}"
        head += self._build_directives(fragment.directives)
        body = self._build_selections(fragment.properties, depth=1)
        return f"{head} {{\n{body}\n}}"

    def _build_selections(self, nodes: list[QueryNode], depth: int) -> str:
        return "\n".join(self._build_node(node, depth) for node in nodes)

    def _build_node(self, node: QueryNode, depth: int) -> str:
        current_indent = self.indent * depth
        directives = self._build_directives(node.directives)
        if node.kind == FRAGMENT_SPREAD:
            return f"{current_indent}...{node.name}{directives}"

        if node.kind == INLINE_FRAGMENT:
            line = "..."
            if node.type_condition:
                line += f" on {node.type_condition}"
            line += directives
        else:
            line = f"{node.alias}: {node.field_name}" if node.alias_of else node.name
            line += self._build_arguments(node.arguments) + directives

        if not node.properties:
            return f"{current_indent}{line}"
        body = self._build_selections(node.properties, depth + 1)
        return f"{current_indent}{line} {{\n{body}\n{current_indent}}}"

    def _build_directives(self, directives: list[Directive]) -> str:
        return "".join(f" @{d.name}{self._build_arguments(d.arguments)}" for d in directives)

    def _build_arguments(self, args: list[Argument]) -> str:
        """Build argument string for a field: (where: {name: $person}, kind: $animal)"""
        if not args:
            return ""
        arg_strs = [f"{arg.name}: {self._build_value(arg.value)}" for arg in args]
        return f"({', '.join(arg_strs)})"

    def _build_value(self, value: Value) -> str:
        if isinstance(value, Variable):
            return f"${value.name}"
        if isinstance(value, ObjectValue):
            return "{" + ", ".join(f"{f.name}: {self._build_value(f.value)}" for f in value.fields) + "}"
        if isinstance(value, ListValue):
            return "[" + ", ".join(self._build_value(v) for v in value.values) + "]"
        if isinstance(value, Literal):
            if value.kind == "string":
                return json.dumps(value.value, ensure_ascii=False)
            if value.kind == "null":
                return "null"
            return value.value
        raise TypeError(f"Unsupported argument value {value!r}")
