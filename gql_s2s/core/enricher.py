"""Query enrichment.

Walks an operation alongside the compiled schema and annotates every
selected field with its declared type, its metadata and whether it points
at a node type. Fields missing from the schema only get an ``error``.
"""

from gql_s2s import log

from .ir import BlockProperty, Category, SchemaNode
from .metadata import unwrap_body
from .query_ast import FRAGMENT_SPREAD, INLINE_FRAGMENT, Operation, QueryNode
from .types import BUILTIN_SCALARS, base_type_name

DEFAULT_ROOTS = {"query": "Query", "mutation": "Mutation", "subscription": "Subscription"}

# Lookup preference when a name exists in several categories
_LOOKUP_ORDER = (
    Category.TYPE,
    Category.INTERFACE,
    Category.UNION,
    Category.INPUT,
    Category.ENUM,
    Category.SCALAR,
)


class SchemaIndex:
    """Name lookups over a compiled schema AST."""

    def __init__(self, schema_ast: list[SchemaNode]):
        self._nodes: dict[tuple[Category, str], list[SchemaNode]] = {}
        self.roots = dict(DEFAULT_ROOTS)
        for node in schema_ast:
            if node.category is Category.SCHEMA:
                for prop in node.properties:
                    if prop.result is not None and prop.result.name:
                        self.roots[prop.name] = prop.result.name
                continue
            if not node.renderable or node.category not in _LOOKUP_ORDER:
                continue
            entries = self._nodes.setdefault((node.category, node.name), [])
            # Declarations before their extensions
            if node.extend:
                entries.append(node)
            else:
                entries.insert(0, node)

    def get(self, name: str | None) -> list[SchemaNode]:
        """The declaration named ``name`` and its extensions."""
        if not name:
            return []
        for category in _LOOKUP_ORDER:
            if (category, name) in self._nodes:
                return self._nodes[(category, name)]
        return []

    def find_property(self, type_name: str | None, field_name: str) -> BlockProperty | None:
        for node in self.get(type_name):
            prop = node.get_property(field_name)
            if prop is not None:
                return prop
        return None

    def is_node_type(self, type_text: str | None) -> bool:
        """Whether a type is a TYPE declaration whose own metadata is ``@node``."""
        name = base_type_name(type_text)
        if name is None or name in BUILTIN_SCALARS:
            return False
        return any(
            node.category is Category.TYPE and node.metadata is not None and node.metadata.name == "node"
            for node in self.get(name)
        )


class QueryEnricher:
    """Annotates query nodes with schema information."""

    def __init__(self, schema_ast: list[SchemaNode]):
        self.index = SchemaIndex(schema_ast)

    def enrich(self, operation: Operation) -> Operation:
        """Annotate the operation and its fragments in place."""
        root = self.index.roots.get(operation.operation_type)
        self._enrich_nodes(operation.properties, root)
        for fragment in operation.fragments:
            self._enrich_nodes(fragment.properties, fragment.on_type)
        return operation

    def _enrich_nodes(self, nodes: list[QueryNode], parent_type: str | None):
        for node in nodes:
            self._enrich_node(node, parent_type)

    def _enrich_node(self, node: QueryNode, parent_type: str | None):
        if node.kind == FRAGMENT_SPREAD:
            return
        if node.kind == INLINE_FRAGMENT:
            self._enrich_nodes(node.properties, node.type_condition or parent_type)
            return
        if node.field_name == "__typename":
            node.declared_type = "String!"
            return

        prop = self.index.find_property(parent_type, node.field_name)
        if prop is None:
            if parent_type and self.index.get(parent_type):
                node.error = f"Field '{node.field_name}' is not defined on type '{parent_type}'"
            else:
                node.error = f"Field '{node.field_name}' has no known parent type"
            log.debug(node.error)
            self._enrich_nodes(node.properties, None)
            return

        node.declared_type = prop.result.name if prop.result is not None else None
        node.metadata = prop.metadata
        if prop.metadata is not None and prop.metadata.name == "edge":
            node.edge_description = unwrap_body(prop.metadata.body)
        node.is_node_type = self.index.is_node_type(node.declared_type)
        self._enrich_nodes(node.properties, base_type_name(node.declared_type))
