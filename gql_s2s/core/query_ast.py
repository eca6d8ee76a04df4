"""Query AST.

Operations parsed from query text, enriched with schema information and
rebuilt into query text. Argument values keep their literal form so a
rebuilt query says exactly what the original said.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Iterator

from .ir import Metadata

FIELD = "field"
FRAGMENT_SPREAD = "fragmentSpread"
INLINE_FRAGMENT = "inlineFragment"


@dataclass
class Variable:
    """A ``$name`` reference."""
    name: str


@dataclass
class Literal:
    """A scalar or enum value as written.

    ``kind`` is one of string, int, float, boolean, null or enum.
    """
    kind: str
    value: str | None


@dataclass
class ObjectValue:
    """An input object value, ``{name: $person}``."""
    fields: list["Argument"] = field(default_factory=list)


@dataclass
class ListValue:
    """A list value, ``[STREET, ROAD]``."""
    values: list["Value"] = field(default_factory=list)


Value = Variable | Literal | ObjectValue | ListValue


@dataclass
class Argument:
    """A named value passed to a field, a directive or nested in an object."""
    name: str
    value: Value


@dataclass
class Directive:
    """A directive applied to a field or an operation, e.g. ``@include(if: $x)``."""
    name: str
    arguments: list[Argument] = field(default_factory=list)


@dataclass
class QueryNode:
    """A selected field, a fragment spread or an inline fragment.

    Aliased fields are named ``alias:field`` and ``alias_of`` holds the
    real field name. The enrichment fields are filled from the schema by
    QueryEnricher.
    """
    name: str
    kind: str = FIELD
    alias_of: str | None = None
    arguments: list[Argument] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    properties: list["QueryNode"] = field(default_factory=list)
    type_condition: str | None = None  # inline fragments only
    # Enrichment
    declared_type: str | None = None
    is_node_type: bool = False
    edge_description: str | None = None
    metadata: Metadata | None = None
    error: str | None = None

    @property
    def field_name(self) -> str:
        """The schema field this node selects."""
        return self.alias_of or self.name

    @property
    def alias(self) -> str | None:
        return self.name.split(":", 1)[0] if self.alias_of else None


@dataclass
class VariableDefinition:
    """An operation variable, e.g. ``$token: String!``."""
    name: str
    type: str
    default_value: Value | None = None


@dataclass
class FragmentDefinition:
    """A named fragment, ``fragment FullType on __Type { ... }``."""
    name: str
    on_type: str
    properties: list[QueryNode] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)


@dataclass
class PropertyPath:
    """Dotted path to a selected field and the field's declared type."""
    property: str
    type: str | None


@dataclass
class Operation:
    """A query, mutation or subscription with the fragments it uses."""
    operation_type: str
    name: str | None = None
    variables: list[VariableDefinition] = field(default_factory=list)
    properties: list[QueryNode] = field(default_factory=list)
    fragments: list[FragmentDefinition] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)

    def get_fragment(self, name: str) -> FragmentDefinition | None:
        for fragment in self.fragments:
            if fragment.name == name:
                return fragment
        return None

    def filter(self, predicate: Callable[[QueryNode], bool]) -> "Operation":
        """Copy of the operation keeping only the nodes that satisfy ``predicate``.

        Only fields are tested. A rejected field goes with its whole subtree;
        a field or inline fragment whose selection ends up empty is removed
        too, and so are fragments left empty along with their spreads.
        """
        fragments = []
        dropped = set()
        for fragment in self.fragments:
            properties = _filter_nodes(fragment.properties, predicate)
            if properties:
                fragments.append(replace(fragment, properties=properties))
            else:
                dropped.add(fragment.name)

        properties = _filter_nodes(self.properties, predicate)
        while dropped:
            properties = _drop_spreads(properties, dropped)
            fragments = [replace(f, properties=_drop_spreads(f.properties, dropped)) for f in fragments]
            emptied = {f.name for f in fragments if not f.properties}
            fragments = [f for f in fragments if f.properties]
            dropped = emptied
        return replace(self, properties=properties, fragments=fragments)

    def some(self, predicate: Callable[[QueryNode], bool]) -> bool:
        """Whether any field of the operation or its fragments satisfies ``predicate``."""
        nodes = list(self.properties)
        for fragment in self.fragments:
            nodes.extend(fragment.properties)
        return any(node.kind == FIELD and predicate(node) for node in _walk(nodes))

    def property_paths(self, predicate: Callable[[QueryNode], bool]) -> list[PropertyPath]:
        """Dotted paths of the fields satisfying ``predicate``, in selection order.

        Fragment spreads are followed into their definitions; inline
        fragments do not add a path segment.
        """
        paths: list[PropertyPath] = []
        self._collect_paths(self.properties, [], predicate, paths, set())
        return paths

    def _collect_paths(self, nodes, prefix, predicate, paths, visiting):
        for node in nodes:
            if node.kind == FRAGMENT_SPREAD:
                fragment = self.get_fragment(node.name)
                if fragment is not None and node.name not in visiting:
                    self._collect_paths(
                        fragment.properties, prefix, predicate, paths, visiting | {node.name}
                    )
                continue
            if node.kind == INLINE_FRAGMENT:
                self._collect_paths(node.properties, prefix, predicate, paths, visiting)
                continue
            path = prefix + [node.name]
            if predicate(node):
                paths.append(PropertyPath(".".join(path), node.declared_type))
            self._collect_paths(node.properties, path, predicate, paths, visiting)


def _walk(nodes: list[QueryNode]) -> Iterator[QueryNode]:
    for node in nodes:
        yield node
        yield from _walk(node.properties)


def _filter_nodes(nodes: list[QueryNode], predicate: Callable[[QueryNode], bool]) -> list[QueryNode]:
    kept = []
    for node in nodes:
        if node.kind == FIELD and not predicate(node):
            continue
        if node.properties:
            properties = _filter_nodes(node.properties, predicate)
            if not properties:
                continue
            node = replace(node, properties=properties)
        kept.append(node)
    return kept


def _drop_spreads(nodes: list[QueryNode], names: set[str]) -> list[QueryNode]:
    kept = []
    for node in nodes:
        if node.kind == FRAGMENT_SPREAD and node.name in names:
            continue
        if node.properties:
            properties = _drop_spreads(node.properties, names)
            if not properties:
                continue
            node = replace(node, properties=properties)
        kept.append(node)
    return kept
