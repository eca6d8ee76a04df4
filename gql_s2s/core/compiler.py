"""Schema compilation entry points.

Example:
    from gql_s2s.core import compile_schema_text

    sdl = compile_schema_text('''
        type Node { id: ID! }
        type Post inherits Node { title: String }
    ''')
"""

from gql_s2s import log

from .blocks import BlockSplitter
from .hooks import HookRunner
from .ir import Metadata, SchemaNode
from .metadata import MetadataCollector
from .parser import SchemaParser
from .renderer import SchemaRenderer
from .resolver import TypeResolver
from .tokenizer import escape_schema


class SchemaCompiler:
    """Compiles extended SDL to a resolved AST or to standard SDL."""

    def __init__(
        self,
        hooks: HookRunner | None = None,
        template_dir: str | None = None,
        indent: str = "    ",
    ):
        """Initialize the compiler.

        Args:
            hooks: Hooks run around rendering
            template_dir: Optional directory overriding the packaged template
            indent: Indentation of properties in the rendered SDL
        """
        self.hooks = hooks or HookRunner()
        self.renderer = SchemaRenderer(template_dir=template_dir, indent=indent)

    def compile_ast(self, sdl: str) -> list[SchemaNode]:
        """Parse and resolve a schema.

        The result keeps template and abstract nodes, followed by the
        concrete generic types created while resolving.
        """
        parser = SchemaParser(sdl)
        nodes = parser.parse_all()
        return TypeResolver(nodes, parser.metadata).resolve()

    def compile_text(self, sdl: str) -> str:
        """Compile a schema down to standard SDL."""
        nodes = self.hooks.run_pre_hooks(self.compile_ast(sdl))
        content = self.renderer.render(nodes)
        log.debug(f"Rendered {len(nodes)} nodes")
        return self.hooks.run_post_hooks(content)

    @staticmethod
    def extract_metadata(sdl: str) -> list[Metadata]:
        """List every metadata annotation with what it is attached to."""
        collector = MetadataCollector()
        BlockSplitter(escape_schema(sdl), collector).split()
        return collector.records


def compile_schema_ast(sdl: str) -> list[SchemaNode]:
    """Resolved schema nodes of an extended schema."""
    return SchemaCompiler().compile_ast(sdl)


def compile_schema_text(sdl: str, hooks: HookRunner | None = None) -> str:
    """Standard SDL for an extended schema."""
    return SchemaCompiler(hooks=hooks).compile_text(sdl)


def extract_metadata(sdl: str) -> list[Metadata]:
    """Metadata annotations of an extended schema, in source order."""
    return SchemaCompiler.extract_metadata(sdl)
