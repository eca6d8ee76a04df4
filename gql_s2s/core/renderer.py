"""SDL renderer.

Turns resolved schema nodes into standard GraphQL SDL through Jinja2
templates. Metadata, templates and abstract declarations never reach
the output.

Example:
    renderer = SchemaRenderer(template_dir="./my_templates")
    sdl = renderer.render(nodes)
"""

from pathlib import Path

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .ir import BLOCK_CATEGORIES, Category, SchemaNode

TEMPLATE_NAME = "schema.graphql.j2"


def declaration(node: SchemaNode) -> str:
    """First line of a declaration, without its body."""
    if node.category is Category.SCALAR:
        parts = ["scalar", node.name]
    elif node.category is Category.UNION:
        parts = ["union", node.name]
        if node.directive_usage:
            parts.append(node.directive_usage)
        parts.extend(["=", " | ".join(node.members)])
    elif node.category is Category.SCHEMA:
        parts = ["schema"]
    else:
        parts = [node.category.keyword, node.name]
        if node.implements:
            parts.extend(["implements", " & ".join(node.implements)])
    if node.directive_usage and node.category is not Category.UNION:
        parts.append(node.directive_usage)
    if node.extend:
        parts.insert(0, "extend")
    return " ".join(parts)


def comment_lines(comments: str | None) -> list[str]:
    return comments.split("\n") if comments else []


def is_braced(node: SchemaNode) -> bool:
    """Whether the declaration renders with a ``{ ... }`` body."""
    return node.category in BLOCK_CATEGORIES and bool(node.properties)


class SchemaRenderer:
    """Renders schema nodes to SDL."""

    def __init__(self, template_dir: str | None = None, indent: str = "    "):
        """Initialize the renderer.

        Args:
            template_dir: Optional directory with a custom schema.graphql.j2.
                          Templates here override the built-in template.
            indent: Indentation of properties inside a block
        """
        self.indent = indent

        # Build template loader - custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_s2s", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["declaration"] = declaration
        self.env.filters["comment_lines"] = comment_lines
        self.env.tests["braced"] = is_braced

    def render(self, nodes: list[SchemaNode]) -> str:
        """Render directive declarations first, then every renderable node in order."""
        directives = [n for n in nodes if n.category is Category.DIRECTIVE]
        declarations = [n for n in nodes if n.renderable and n.category is not Category.DIRECTIVE]
        template = self.env.get_template(TEMPLATE_NAME)
        content = template.render(directives=directives, nodes=declarations, indent=self.indent)
        return content.strip() + "\n"
