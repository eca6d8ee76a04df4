"""Query entry points.

Example:
    schema_ast = compile_schema_ast(sdl)
    op = parse_query(query_text, schema_ast=schema_ast, defrag=True)
    public = op.filter(lambda n: n.metadata is None or n.metadata.name != "auth")
    print(build_query_text(public))
"""

from .defrag import Defragmenter
from .enricher import QueryEnricher
from .ir import SchemaNode
from .query_ast import Operation
from .query_builder import QueryBuilder
from .query_parser import QueryParser


def parse_query(
    query_text: str,
    operation_name: str | None = None,
    schema_ast: list[SchemaNode] | None = None,
    defrag: bool = False,
) -> Operation:
    """Parse a query and annotate it with schema information.

    Args:
        query_text: GraphQL document with one or more operations
        operation_name: Operation to select; the first one when omitted
        schema_ast: Result of compile_schema_ast; no enrichment when None
        defrag: Inline fragment spreads after enrichment

    Returns:
        The selected operation
    """
    operation = QueryParser(query_text).parse(operation_name)
    if schema_ast is not None:
        QueryEnricher(schema_ast).enrich(operation)
    if defrag:
        operation = Defragmenter(operation.fragments).defrag(operation)
    return operation


def build_query_text(operation: Operation) -> str:
    """Query text for an operation, possibly filtered or defragmented."""
    return QueryBuilder().build(operation)
