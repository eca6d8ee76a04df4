"""Type resolution: inheritance, interface closure and generic instantiation.

All caches live in a ResolutionContext created for one compilation, so
compiling two schemas never shares state.
"""

from dataclasses import dataclass, field, replace
from typing import Callable

from gql_s2s import log

from .alias import make_alias
from .errors import ArityError, CategoryError, CycleError, SchemaError, SchemaReferenceError
from .ir import (
    DECLARATION_ORDER,
    BlockProperty,
    Category,
    DependentGenericType,
    Metadata,
    ResolvedType,
    SchemaNode,
    TypeResult,
)
from .types import (
    ListType,
    NamedType,
    TypeExpr,
    flat_name,
    is_generic,
    map_argument_types,
    parse_type,
    print_type,
    substitute,
)

MAX_GENERIC_DEPTH = 32

# Categories a declaration may inherit from, besides its own
_INHERITABLE = {
    Category.TYPE: (Category.TYPE, Category.ABSTRACT),
    Category.INPUT: (Category.INPUT, Category.ABSTRACT),
    Category.INTERFACE: (Category.INTERFACE, Category.ABSTRACT),
    Category.ENUM: (Category.ENUM,),
    Category.ABSTRACT: (Category.ABSTRACT,),
}


def _dedup(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


@dataclass
class ResolutionContext:
    """Memo tables owned by a single compilation."""
    inherited: dict[str, SchemaNode] = field(default_factory=dict)
    inheriting: list[str] = field(default_factory=list)
    interface_ancestors: dict[str, list[str]] = field(default_factory=dict)
    interface_stack: list[str] = field(default_factory=list)
    # canonical shape (``Paged<0,1>``) -> template and its naming function
    templates: dict[str, tuple[SchemaNode, Callable[[list[str]], str]]] = field(default_factory=dict)
    generics: dict[str, SchemaNode] = field(default_factory=dict)
    generic_origins: dict[str, str] = field(default_factory=dict)
    generic_order: list[SchemaNode] = field(default_factory=list)
    in_progress: set[str] = field(default_factory=set)
    depth: int = 0


class TypeResolver:
    """Rewrites parsed nodes into their fully resolved form."""

    def __init__(self, nodes: list[SchemaNode], metadata: list[Metadata] | None = None):
        self.nodes = nodes
        self.metadata = metadata or []
        self.ctx = ResolutionContext()
        self._declarations: dict[tuple[Category, str], SchemaNode] = {}
        self._extensions: dict[tuple[Category, str], list[SchemaNode]] = {}

    def resolve(self) -> list[SchemaNode]:
        """Resolve every node and return the compiled AST.

        Declarations come first, grouped by category in source order,
        followed by generic instantiations in completion order.
        """
        self.ctx = ResolutionContext()
        for node in self.nodes:
            key = (node.category, node.name)
            if node.extend:
                self._extensions.setdefault(key, []).append(node)
            else:
                self._declarations[key] = node
        nodes = self._merge_hidden_extensions()

        for node in nodes:
            if node.inherits:
                self._resolve_inheritance(node)
        for node in nodes:
            if node.implements:
                node.implements = _dedup(
                    [name for iface in node.implements for name in self._interface_ancestors(iface)]
                )
        for node in nodes:
            if not node.is_template:
                self._resolve_generic_usages(node)

        ordered = sorted(nodes, key=lambda n: DECLARATION_ORDER.index(n.category))
        log.debug(f"Resolved {len(ordered)} declarations and {len(self.ctx.generic_order)} generic types")
        return ordered + self.ctx.generic_order

    def _merge_hidden_extensions(self) -> list[SchemaNode]:
        """Fold extensions of templates and abstract types into their declaration.

        Those declarations are never rendered, so their extensions cannot
        be left for the GraphQL engine to merge.
        """
        nodes = []
        for node in self.nodes:
            target = self._declarations.get((node.category, node.name)) if node.extend else None
            if target is not None and not target.renderable:
                for prop in node.properties:
                    if target.get_property(prop.name) is None:
                        target.properties.append(prop)
                target.implements = _dedup(target.implements + node.implements)
                continue
            nodes.append(node)
        return nodes

    def _all_properties(self, node: SchemaNode) -> list[BlockProperty]:
        """Properties of a declaration including those added by its extensions."""
        properties = list(node.properties)
        names = {p.name for p in properties}
        for extension in self._extensions.get((node.category, node.name), []):
            for prop in extension.properties:
                if prop.name not in names:
                    properties.append(prop)
                    names.add(prop.name)
        return properties

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def _find_supertype(self, node: SchemaNode, name: str) -> SchemaNode:
        keyword = node.category.keyword
        for category in _INHERITABLE.get(node.category, ()):
            parent = self._declarations.get((category, name))
            if parent is not None:
                return parent
        for (category, other_name), other in self._declarations.items():
            if other_name == name:
                raise CategoryError(
                    f"{keyword} {node.name} cannot inherit from {category.value} {name}. "
                    f"A {keyword} can only inherit from another {keyword}",
                    node.name,
                )
        raise SchemaReferenceError(
            f"{keyword} {node.name} cannot find inherited {keyword} {name}", node.name
        )

    def _resolve_inheritance(self, node: SchemaNode) -> SchemaNode:
        key = f"{node.category.value}_{node.name}"
        if key in self.ctx.inherited:
            return node
        if key in self.ctx.inheriting:
            chain = " -> ".join(k.split("_", 1)[1] for k in self.ctx.inheriting[self.ctx.inheriting.index(key):])
            raise CycleError(
                f"{node.category.keyword} {node.name} inherits from itself ({chain} -> {node.name})",
                node.name,
            )

        self.ctx.inheriting.append(key)
        try:
            own = {p.name for p in node.properties}
            inherited: list[BlockProperty] = []
            implements: list[str] = []
            metadata = node.metadata
            for name in node.inherits:
                parent = self._find_supertype(node, name)
                if parent.inherits:
                    self._resolve_inheritance(parent)
                for prop in self._all_properties(parent):
                    if prop.name not in own:
                        inherited.append(replace(prop))
                        own.add(prop.name)
                implements.extend(parent.implements)
                metadata = metadata or parent.metadata
            node.properties = inherited + node.properties
            node.implements = _dedup(node.implements + implements)
            node.metadata = metadata
        finally:
            self.ctx.inheriting.pop()

        self.ctx.inherited[key] = node
        return node

    # ------------------------------------------------------------------
    # Interfaces
    # ------------------------------------------------------------------

    def _interface_ancestors(self, name: str) -> list[str]:
        """The interface itself followed by everything it implements, transitively."""
        if name in self.ctx.interface_ancestors:
            return self.ctx.interface_ancestors[name]
        if name in self.ctx.interface_stack:
            raise CycleError(f"interface {name} implements itself", name)

        interface = self._declarations.get((Category.INTERFACE, name))
        if interface is None:
            if any(other == name for _, other in self._declarations):
                raise CategoryError(
                    f"Schema property {name} is not an interface. It cannot be implemented.", name
                )
            raise SchemaReferenceError(f"interface {name} is not defined", name)

        self.ctx.interface_stack.append(name)
        try:
            ancestors = _dedup(
                [name] + [a for parent in interface.implements for a in self._interface_ancestors(parent)]
            )
        finally:
            self.ctx.interface_stack.pop()
        self.ctx.interface_ancestors[name] = ancestors
        return ancestors

    # ------------------------------------------------------------------
    # Generics
    # ------------------------------------------------------------------

    def _resolve_generic_usages(self, node: SchemaNode):
        for prop in node.properties:
            prop.result = self._resolve_result(prop.result)
            if prop.arguments:
                prop.arguments = map_argument_types(prop.arguments, self._materialize)

    def _resolve_result(self, result: TypeResult | None) -> TypeResult | None:
        if isinstance(result, ResolvedType) and result.is_generic and "<" in result.name:
            expr = self._materialize(parse_type(result.name))
            return ResolvedType(result.original, print_type(expr), True)
        return result

    def _materialize(self, expr: TypeExpr) -> TypeExpr:
        """Replace every generic usage in ``expr`` by its concrete type name."""
        if isinstance(expr, ListType):
            return replace(expr, of=self._materialize(expr.of))
        if expr.args:
            return NamedType(self._instantiate(expr), non_null=expr.non_null)
        return expr

    def _template_for(self, base_name: str, arity: int) -> tuple[SchemaNode, Callable[[list[str]], str]]:
        shape = f"{base_name}<{','.join(str(i) for i in range(arity))}>"
        if shape in self.ctx.templates:
            return self.ctx.templates[shape]

        candidates = [n for n in self.nodes if n.is_template and not n.extend and n.base_name == base_name]
        if not candidates:
            if any(n.name == base_name for n in self.nodes):
                raise ArityError(f"Schema object {base_name} is not generic", base_name)
            raise SchemaReferenceError(
                f"Cannot find any definition for generic type {base_name}<...>", base_name
            )
        matching = [n for n in candidates if len(n.generic_params) == arity]
        if not matching:
            raise ArityError(
                f"generic type {candidates[0].name} expects {len(candidates[0].generic_params)} "
                f"type argument(s) but {arity} were provided",
                base_name,
            )

        template = matching[0]
        alias = next(
            (m for m in self.metadata if m.name == "alias" and m.category is template.category
             and m.target == template.name),
            None,
        )
        naming = make_alias(alias.body if alias else None, template.base_name, arity)
        self.ctx.templates[shape] = (template, naming)
        return template, naming

    def _instantiate(self, expr: NamedType) -> str:
        """Return the concrete name of a generic usage, building the type on first use."""
        args = [self._materialize(arg) for arg in expr.args]
        template, naming = self._template_for(expr.name, len(args))
        name = naming([flat_name(arg) for arg in args])
        origin = print_type(NamedType(expr.name, tuple(args)))

        if name in self.ctx.generic_origins:
            if self.ctx.generic_origins[name] != origin:
                raise SchemaError(
                    f"{origin} and {self.ctx.generic_origins[name]} both resolve to type {name}", name
                )
            return name
        if self.ctx.depth >= MAX_GENERIC_DEPTH:
            raise CycleError(f"generic expansion of {origin} does not terminate", name)

        self.ctx.generic_origins[name] = origin
        self.ctx.in_progress.add(name)
        self.ctx.depth += 1
        try:
            node = self._build_instance(template, name, dict(zip(template.generic_params, args)))
        finally:
            self.ctx.depth -= 1
            self.ctx.in_progress.discard(name)

        self.ctx.generics[name] = node
        self.ctx.generic_order.append(node)
        log.debug(f"Instantiated {origin} as {name}")
        return name

    def _build_instance(self, template: SchemaNode, name: str, mapping: dict[str, TypeExpr]) -> SchemaNode:
        node = SchemaNode(
            category=template.category,
            name=name,
            implements=list(template.implements),
            metadata=template.metadata,
            comments=template.comments,
            directive_usage=template.directive_usage,
        )

        # First pass: substitute the parameters
        for prop in template.properties:
            prop = replace(prop)
            if isinstance(prop.result, DependentGenericType):
                expr = substitute(prop.result.expr, mapping)
                if is_generic(expr):
                    prop.result = DependentGenericType(prop.result.original, expr)
                else:
                    prop.result = ResolvedType(prop.result.original, print_type(expr))
            if prop.arguments:
                prop.arguments = map_argument_types(
                    prop.arguments, lambda e: substitute(e, mapping)
                )
            node.properties.append(prop)

        # Second pass: nested generics now have concrete arguments
        for prop in node.properties:
            if isinstance(prop.result, DependentGenericType):
                expr = self._materialize(prop.result.expr)
                prop.result = ResolvedType(prop.result.original, print_type(expr), True)
            else:
                prop.result = self._resolve_result(prop.result)
            if prop.arguments:
                prop.arguments = map_argument_types(prop.arguments, self._materialize)
        return node
