"""Compilation hooks for customizing the rendered schema.

Provides protocols for pre- and post-render hooks that can modify the
resolved nodes before rendering or transform the rendered SDL after.

Example usage:
    from gql_s2s.core.hooks import PreRenderHook, PostRenderHook

    # Pre-render hook to drop internal types
    class FilterInternalTypes(PreRenderHook):
        def pre_render(self, nodes):
            return [n for n in nodes if not n.name.startswith("_")]

    # Post-render hook to add a banner
    class AddBanner(PostRenderHook):
        def post_render(self, sdl):
            return "# Generated schema\\n\\n" + sdl
"""

from typing import Protocol, runtime_checkable

from .ir import Category, SchemaNode


@runtime_checkable
class PreRenderHook(Protocol):
    """Protocol for pre-render hooks.

    Pre-render hooks receive the resolved schema nodes before they are
    rendered and return the nodes to render.
    """

    def pre_render(self, nodes: list[SchemaNode]) -> list[SchemaNode]:
        """Called before rendering.

        Args:
            nodes: The resolved schema nodes

        Returns:
            The (possibly modified) nodes to render
        """
        ...


@runtime_checkable
class PostRenderHook(Protocol):
    """Protocol for post-render hooks.

    Post-render hooks receive the rendered SDL and can transform it
    before it is returned or written to disk.
    """

    def post_render(self, sdl: str) -> str:
        """Called after rendering.

        Args:
            sdl: The rendered schema

        Returns:
            The (possibly transformed) schema text
        """
        ...


class AddHeaderHook:
    """Built-in hook to add a header comment to the rendered schema.

    Example:
        hook = AddHeaderHook("# Generated by graphql-s2s - do not edit")
    """

    def __init__(self, header: str):
        self.header = header

    def post_render(self, sdl: str) -> str:
        """Add a header to the beginning of the schema."""
        if not self.header.endswith("\n"):
            header = self.header + "\n\n"
        else:
            header = self.header + "\n"
        return header + sdl


class FilterTypesHook:
    """Built-in hook to filter declarations by name prefix/suffix.

    Directive declarations are never filtered.

    Example:
        # Remove all types starting with underscore
        hook = FilterTypesHook(exclude_prefix="_")
    """

    def __init__(
        self,
        exclude_prefix: str | None = None,
        exclude_suffix: str | None = None,
        include_prefix: str | None = None,
        include_suffix: str | None = None,
    ):
        self.exclude_prefix = exclude_prefix
        self.exclude_suffix = exclude_suffix
        self.include_prefix = include_prefix
        self.include_suffix = include_suffix

    def _should_include(self, name: str) -> bool:
        """Check if a declaration should be included."""
        if self.exclude_prefix and name.startswith(self.exclude_prefix):
            return False
        if self.exclude_suffix and name.endswith(self.exclude_suffix):
            return False
        if self.include_prefix and not name.startswith(self.include_prefix):
            return False
        if self.include_suffix and not name.endswith(self.include_suffix):
            return False
        return True

    def pre_render(self, nodes: list[SchemaNode]) -> list[SchemaNode]:
        """Filter declarations from the nodes."""
        return [
            n for n in nodes
            if n.category is Category.DIRECTIVE or self._should_include(n.base_name)
        ]


class HookRunner:
    """Runs a collection of hooks in order."""

    def __init__(self):
        self.pre_hooks: list[PreRenderHook] = []
        self.post_hooks: list[PostRenderHook] = []

    def add_pre_hook(self, hook: PreRenderHook):
        """Add a pre-render hook."""
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostRenderHook):
        """Add a post-render hook."""
        self.post_hooks.append(hook)

    def run_pre_hooks(self, nodes: list[SchemaNode]) -> list[SchemaNode]:
        """Run all pre-render hooks in order."""
        for hook in self.pre_hooks:
            nodes = hook.pre_render(nodes)
        return nodes

    def run_post_hooks(self, sdl: str) -> str:
        """Run all post-render hooks in order."""
        for hook in self.post_hooks:
            sdl = hook.post_render(sdl)
        return sdl
