"""Core modules for compiling extended GraphQL schemas and reworking queries."""

from .alias import AliasExpression, generic_alias
from .compiler import SchemaCompiler, compile_schema_ast, compile_schema_text, extract_metadata
from .defrag import Defragmenter
from .enricher import QueryEnricher, SchemaIndex
from .errors import (
    ArityError,
    CategoryError,
    CycleError,
    QueryError,
    QueryReferenceError,
    QuerySyntaxError,
    SchemaError,
    SchemaReferenceError,
    SchemaSyntaxError,
    UnsupportedOperationError,
)
from .hooks import (
    AddHeaderHook,
    FilterTypesHook,
    HookRunner,
    PostRenderHook,
    PreRenderHook,
)
from .ir import (
    BlockProperty,
    Category,
    DependentGenericType,
    Metadata,
    MetadataParent,
    ResolvedType,
    SchemaNode,
)
from .parser import SchemaParser
from .query import build_query_text, parse_query
from .query_ast import (
    Argument,
    Directive,
    FragmentDefinition,
    Operation,
    PropertyPath,
    QueryNode,
    VariableDefinition,
)
from .query_builder import QueryBuilder
from .query_parser import QueryParser
from .renderer import SchemaRenderer
from .resolver import ResolutionContext, TypeResolver
from .types import is_type_generic

__all__ = [
    # Schema compilation
    "SchemaCompiler",
    "compile_schema_ast",
    "compile_schema_text",
    "extract_metadata",
    "SchemaParser",
    "TypeResolver",
    "ResolutionContext",
    "SchemaRenderer",
    # Generics
    "AliasExpression",
    "generic_alias",
    "is_type_generic",
    # Hooks
    "PreRenderHook",
    "PostRenderHook",
    "AddHeaderHook",
    "FilterTypesHook",
    "HookRunner",
    # IR types
    "BlockProperty",
    "Category",
    "DependentGenericType",
    "Metadata",
    "MetadataParent",
    "ResolvedType",
    "SchemaNode",
    # Queries
    "parse_query",
    "build_query_text",
    "QueryParser",
    "QueryEnricher",
    "SchemaIndex",
    "Defragmenter",
    "QueryBuilder",
    "Argument",
    "Directive",
    "FragmentDefinition",
    "Operation",
    "PropertyPath",
    "QueryNode",
    "VariableDefinition",
    # Errors
    "SchemaError",
    "SchemaSyntaxError",
    "SchemaReferenceError",
    "ArityError",
    "CategoryError",
    "CycleError",
    "QueryError",
    "QuerySyntaxError",
    "QueryReferenceError",
    "UnsupportedOperationError",
]
