"""Metadata annotations (``@name(...)`` on their own line).

Metadata is not GraphQL: it is read while splitting the schema into blocks,
attached to the declaration or property that follows it, and stripped from
the compiled output.
"""

from .errors import SchemaSyntaxError
from .ir import Category, Metadata, MetadataParent
from .tokenizer import find_closing, line_at
from .types import NAME_RE


def read_metadata(text: str, pos: int) -> tuple[str, str, int]:
    """Read the annotation starting at ``text[pos] == "@"``.

    Returns:
        The annotation name, its raw parenthesised body (or ``""``) and the
        position right after it
    """
    match = NAME_RE.match(text, pos + 1)
    if match is None:
        raise SchemaSyntaxError(f"Invalid metadata '{line_at(text, pos)}'")
    end = match.end()
    look = end
    while look < len(text) and text[look] == " ":
        look += 1
    if look < len(text) and text[look] == "(":
        close = find_closing(text, look)
        if close < 0:
            raise SchemaSyntaxError(
                f"Unbalanced parentheses in metadata '@{match.group()}'", line_at(text, pos)
            )
        return match.group(), text[look:close + 1], close + 1
    return match.group(), "", end


def unwrap_body(body: str) -> str:
    """Strip one pair of surrounding parentheses from a metadata body."""
    body = body.strip()
    if body.startswith("(") and body.endswith(")"):
        return body[1:-1].strip()
    return body


class MetadataCollector:
    """Collects annotations in source order and attaches them to what follows.

    Annotations are pushed as they are read and stay pending until the
    next declaration or property claims them.
    """

    def __init__(self):
        self.records: list[Metadata] = []
        self._pending: list[Metadata] = []

    def push(self, name: str, body: str) -> Metadata:
        record = Metadata(name=name, body=body)
        self.records.append(record)
        self._pending.append(record)
        return record

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def attach_declaration(self, category: Category, name: str) -> list[Metadata]:
        """Attach pending annotations to a declaration and return them."""
        attached, self._pending = self._pending, []
        for record in attached:
            record.category = category
            record.target = name
        return attached

    def attach_property(
        self,
        line: str,
        owner_category: Category,
        owner_name: str,
        owner_metadata: Metadata | None,
    ) -> list[Metadata]:
        """Attach pending annotations to a property line and return them."""
        attached, self._pending = self._pending, []
        for record in attached:
            record.category = Category.PROPERTY
            record.target = line
            record.parent = MetadataParent(owner_category, owner_name, owner_metadata)
        return attached

    def ensure_attached(self, where: str):
        """Fail if an annotation has nothing to attach to."""
        if self._pending:
            dangling = self._pending[0]
            raise SchemaSyntaxError(
                f"Metadata '@{dangling.name}' {where} is not followed by any type or property",
                dangling.name,
            )
