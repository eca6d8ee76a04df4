"""Intermediate Representation (IR) for extended GraphQL schemas.

The object builder produces these nodes, the type resolver rewrites them in
place (inheritance, interfaces, generics) and the renderer turns them back
into standard SDL.
"""

from dataclasses import dataclass, field
from enum import Enum

from .types import TypeExpr, print_type


class Category(str, Enum):
    """Kind of a schema declaration.

    ``PROPERTY`` only appears as the target of metadata attached to a
    property line.
    """
    TYPE = "TYPE"
    INPUT = "INPUT"
    ENUM = "ENUM"
    INTERFACE = "INTERFACE"
    ABSTRACT = "ABSTRACT"
    SCALAR = "SCALAR"
    UNION = "UNION"
    DIRECTIVE = "DIRECTIVE"
    SCHEMA = "SCHEMA"
    PROPERTY = "PROPERTY"

    @property
    def keyword(self) -> str:
        return self.value.lower()


# Categories whose declarations carry a ``{ ... }`` body
BLOCK_CATEGORIES = frozenset({
    Category.TYPE,
    Category.INPUT,
    Category.ENUM,
    Category.INTERFACE,
    Category.ABSTRACT,
    Category.SCHEMA,
})

# Order of declarations in the compiled AST and in the rendered SDL
DECLARATION_ORDER = (
    Category.DIRECTIVE,
    Category.INTERFACE,
    Category.ABSTRACT,
    Category.TYPE,
    Category.INPUT,
    Category.ENUM,
    Category.SCALAR,
    Category.UNION,
    Category.SCHEMA,
)


@dataclass
class MetadataParent:
    """Declaration enclosing a property that carries metadata."""
    category: Category
    name: str
    metadata: "Metadata | None" = None


@dataclass
class Metadata:
    """A ``@name(body)`` annotation placed on its own line above a declaration or property.

    Attributes:
        name: Annotation name without the ``@``
        body: Raw parenthesised body, e.g. ``('<-[ABOUT]-')``, or ``""``
        category: Category of the annotated declaration, or PROPERTY
        target: Declaration name (``Brand``) or property line (``posts: [Post]``)
        parent: Enclosing declaration when ``category`` is PROPERTY
    """
    name: str
    body: str = ""
    category: Category | None = None
    target: str | None = None
    parent: MetadataParent | None = None


@dataclass(frozen=True)
class ResolvedType:
    """A property result whose final SDL type text is known.

    ``is_generic`` records that the type was written with generic arguments
    (``Paged<Post>``); once resolved, ``name`` holds the concrete alias
    (``PagedPost``).
    """
    original: str
    name: str
    is_generic: bool = False

    @property
    def depends_on_enclosing_generic(self) -> bool:
        return False


@dataclass(frozen=True)
class DependentGenericType:
    """A property result inside a template that mentions its type parameters.

    It has no final name until the template is instantiated.
    """
    original: str
    expr: TypeExpr

    @property
    def name(self) -> None:
        return None

    @property
    def is_generic(self) -> bool:
        return True

    @property
    def depends_on_enclosing_generic(self) -> bool:
        return True


TypeResult = ResolvedType | DependentGenericType


@dataclass
class BlockProperty:
    """A field of a type/input/interface, a value of an enum, or an entry of a schema block."""
    name: str
    arguments: str | None = None
    result: TypeResult | None = None
    default_value: str | None = None
    directive_usage: str | None = None
    metadata: Metadata | None = None
    comments: str | None = None

    @property
    def value(self) -> str:
        """The property as a single SDL line."""
        text = self.name
        if self.arguments is not None:
            text += f"({self.arguments})"
        if self.result is not None:
            type_text = self.result.name or print_type(self.result.expr)
            text += f": {type_text}"
        if self.default_value is not None:
            text += f" = {self.default_value}"
        if self.directive_usage:
            text += f" {self.directive_usage}"
        return text


@dataclass
class SchemaNode:
    """A declaration of the extended schema.

    Template nodes keep their parameter list in ``name`` (``Paged<T>``);
    ``base_name`` drops it.
    """
    category: Category
    name: str
    generic_params: list[str] = field(default_factory=list)
    extend: bool = False
    inherits: list[str] = field(default_factory=list)
    implements: list[str] = field(default_factory=list)
    properties: list[BlockProperty] = field(default_factory=list)
    members: list[str] = field(default_factory=list)  # union members
    metadata: Metadata | None = None
    comments: str | None = None
    directive_usage: str | None = None
    definition: str | None = None  # verbatim directive declaration

    @property
    def base_name(self) -> str:
        return self.name.split("<", 1)[0]

    @property
    def is_template(self) -> bool:
        return bool(self.generic_params)

    @property
    def renderable(self) -> bool:
        """Templates and abstract declarations never reach the output."""
        return not self.is_template and self.category is not Category.ABSTRACT

    def get_property(self, name: str) -> BlockProperty | None:
        """Find a property by name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None
