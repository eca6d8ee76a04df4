"""Fragment inlining.

Replaces every fragment spread by the fragment's own selections and merges
the fields that end up selected twice.
"""

from dataclasses import replace

from .errors import QueryError, QueryReferenceError
from .query_ast import FRAGMENT_SPREAD, INLINE_FRAGMENT, FragmentDefinition, Operation, QueryNode


def _preferred(current: QueryNode, other: QueryNode) -> QueryNode:
    """Of two selections of the same field, the one carrying more schema information."""
    def score(node: QueryNode) -> tuple[bool, bool]:
        return node.metadata is not None, node.declared_type is not None

    return other if score(other) > score(current) else current


def merge_duplicates(nodes: list[QueryNode]) -> list[QueryNode]:
    """Merge fields selected more than once under the same response name.

    The first occurrence keeps its position; the merged node takes the
    better enriched variant and the union of both selections.
    """
    merged: list[QueryNode] = []
    by_name: dict[str, int] = {}
    for node in nodes:
        if node.kind == INLINE_FRAGMENT:
            merged.append(node)
            continue
        index = by_name.get(node.name)
        if index is None:
            by_name[node.name] = len(merged)
            merged.append(node)
            continue
        current = merged[index]
        winner = _preferred(current, node)
        merged[index] = replace(
            winner, properties=merge_duplicates(current.properties + node.properties)
        )
    return merged


class Defragmenter:
    """Inlines the fragments of an operation."""

    def __init__(self, fragments: list[FragmentDefinition]):
        self.fragments = {fragment.name: fragment for fragment in fragments}

    def defrag(self, operation: Operation) -> Operation:
        """Copy of the operation without fragment spreads or fragment definitions."""
        return replace(operation, properties=self._inline(operation.properties, ()), fragments=[])

    def _inline(self, nodes: list[QueryNode], stack: tuple[str, ...]) -> list[QueryNode]:
        result = []
        for node in nodes:
            if node.kind == FRAGMENT_SPREAD:
                fragment = self.fragments.get(node.name)
                if fragment is None:
                    raise QueryReferenceError(f"Unknown fragment '{node.name}'")
                if node.name in stack:
                    raise QueryError(f"Fragment '{node.name}' spreads itself")
                result.extend(self._inline(fragment.properties, stack + (node.name,)))
            else:
                result.append(replace(node, properties=self._inline(node.properties, stack)))
        return merge_duplicates(result)
