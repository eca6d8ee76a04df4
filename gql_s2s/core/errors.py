"""Exceptions raised while compiling schemas and reworking queries."""


class SchemaError(Exception):
    """Fatal error while compiling an extended schema.

    Attributes:
        message: Human readable description, without the prefix
        entity: Name of the declaration or line the error is about
    """

    def __init__(self, message: str, entity: str | None = None):
        self.message = message
        self.entity = entity
        super().__init__(f"Schema error: {message}")


class SchemaSyntaxError(SchemaError):
    """Malformed block, unknown keyword or unparseable line."""


class SchemaReferenceError(SchemaError):
    """Reference to a type, interface or generic template that does not exist."""


class ArityError(SchemaError):
    """Generic type used with the wrong number of type arguments."""


class CategoryError(SchemaError):
    """Inheriting or implementing across incompatible categories."""


class CycleError(SchemaError):
    """Inheritance, interface or generic expansion that never terminates."""


class QueryError(Exception):
    """Fatal error while parsing or reworking a query."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Query error: {message}")


class QuerySyntaxError(QueryError):
    """Query text rejected by the GraphQL grammar parser."""


class QueryReferenceError(QueryError):
    """Unknown operation name or fragment."""


class UnsupportedOperationError(QueryError):
    """Document definition that is neither an operation nor a fragment."""
