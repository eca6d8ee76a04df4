"""Second lexing phase: split escaped schema text into raw declaration blocks."""

import re
from dataclasses import dataclass, field

from .errors import SchemaSyntaxError
from .ir import Category, Metadata
from .metadata import MetadataCollector, read_metadata
from .tokenizer import PLACEHOLDER_RE, USAGE, EscapedSchema, find_closing, line_at
from .types import NAME_RE

KEYWORDS = {
    "type": Category.TYPE,
    "input": Category.INPUT,
    "enum": Category.ENUM,
    "interface": Category.INTERFACE,
    "abstract": Category.ABSTRACT,
    "scalar": Category.SCALAR,
    "union": Category.UNION,
    "directive": Category.DIRECTIVE,
    "schema": Category.SCHEMA,
}

_DECLARATION_NAME_RE = re.compile(r"\s*([_A-Za-z][_0-9A-Za-z]*)\s*(?:<([^>]*)>)?")
_DIRECTIVE_NAME_RE = re.compile(r"@([_A-Za-z][_0-9A-Za-z]*)")
_DIRECTIVE_TAIL_RE = re.compile(
    r"\s*(?:repeatable\s+)?on\s+\|?\s*[_A-Za-z]\w*(?:\s*\|\s*[_A-Za-z]\w*)*"
)
_TRAILING_COMMENT_RE = re.compile(r"(§C\d+§)\s*$")
_SCALAR_VALUE_RE = re.compile(r"-?[_0-9A-Za-z.+\-]+")
_CLOSING = {"[": "]", "{": "}", "(": ")"}


@dataclass
class RawLine:
    """One property line of a block body, still escaped."""
    text: str
    comments: list[str] = field(default_factory=list)
    metadata: list[Metadata] = field(default_factory=list)


@dataclass
class RawBlock:
    """A declaration cut out of the schema, before any interpretation."""
    category: Category
    head: str
    lines: list[RawLine] = field(default_factory=list)
    extend: bool = False
    comments: list[str] = field(default_factory=list)
    metadata: list[Metadata] = field(default_factory=list)
    source: str = ""


def parse_declaration_name(head: str) -> tuple[str, list[str], str]:
    """Split a declaration head into its name, generic parameters and the rest.

    ``"Paged< T,U > implements Node"`` gives ``("Paged<T, U>", ["T", "U"], " implements Node")``.
    """
    match = _DECLARATION_NAME_RE.match(head)
    if match is None:
        raise SchemaSyntaxError(f"Missing name in declaration '{head.strip()}'", head.strip())
    params = []
    if match.group(2) is not None:
        params = [p.strip() for p in match.group(2).split(",")]
        if not all(NAME_RE.fullmatch(p) for p in params):
            raise SchemaSyntaxError(
                f"Invalid generic parameters in '{head.strip()}'", match.group(1)
            )
        if len(set(params)) != len(params):
            raise SchemaSyntaxError(
                f"Duplicate generic parameter in '{head.strip()}'", match.group(1)
            )
    name = f"{match.group(1)}<{', '.join(params)}>" if params else match.group(1)
    return name, params, head[match.end():]


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _logical_lines(body: str) -> list[str]:
    """Split a block body on newlines that are not nested in brackets."""
    lines = []
    current = []
    depth = 0
    for char in body:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "\n" and depth <= 0:
            lines.append("".join(current))
            current = []
            continue
        current.append(char)
    lines.append("".join(current))
    return lines


def _skip_spaces(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] == " ":
        pos += 1
    return pos


def _skip_type(text: str, pos: int) -> int:
    """Position after the type expression at ``pos``, or the end of the text."""
    pos = _skip_spaces(text, pos)
    if pos < len(text) and text[pos] == "[":
        close = find_closing(text, pos, "[", "]")
    else:
        match = NAME_RE.match(text, pos)
        if match is None:
            return len(text)
        close = match.end() - 1
        look = _skip_spaces(text, match.end())
        if look < len(text) and text[look] == "<":
            close = find_closing(text, look, "<", ">")
    if close < 0:
        return len(text)
    pos = _skip_spaces(text, close + 1)
    if pos < len(text) and text[pos] == "!":
        pos += 1
    return pos


def _skip_value(text: str, pos: int) -> int:
    """Position after the default value at ``pos``."""
    pos = _skip_spaces(text, pos)
    if pos < len(text) and text[pos] in _CLOSING:
        close = find_closing(text, pos, text[pos], _CLOSING[text[pos]])
        return len(text) if close < 0 else close + 1
    match = PLACEHOLDER_RE.match(text, pos) or _SCALAR_VALUE_RE.match(text, pos)
    return match.end() if match else len(text)


def split_members(text: str, category: Category) -> list[str]:
    """Split one logical body line into its members.

    A member is ``name[(args)][: Type [= default]]`` followed by its
    directive usages. Commas between members are dropped, and only enum
    values may go without a type. Anything unreadable stays in the last
    member so the parser can report it.
    """
    members = []
    pos = 0
    while True:
        while pos < len(text) and text[pos] in " ,":
            pos += 1
        if pos >= len(text):
            return members
        start = pos
        token = PLACEHOLDER_RE.match(text, pos)
        while token and token.group(1) != USAGE:
            pos = _skip_spaces(text, token.end())
            token = PLACEHOLDER_RE.match(text, pos)
        match = NAME_RE.match(text, pos)
        if match is None:
            members.append(text[start:].strip())
            return members
        pos = _skip_spaces(text, match.end())
        if pos < len(text) and text[pos] == "(":
            close = find_closing(text, pos)
            pos = len(text) if close < 0 else _skip_spaces(text, close + 1)
        if pos < len(text) and text[pos] == ":":
            pos = _skip_spaces(text, _skip_type(text, pos + 1))
            if pos < len(text) and text[pos] == "=":
                pos = _skip_value(text, pos + 1)
        elif category is not Category.ENUM:
            members.append(text[start:].strip())
            return members
        token = PLACEHOLDER_RE.match(text, _skip_spaces(text, pos))
        while token and token.group(1) == USAGE:
            pos = token.end()
            token = PLACEHOLDER_RE.match(text, _skip_spaces(text, pos))
        members.append(text[start:pos].strip())


class BlockSplitter:
    """Walks escaped schema text statement by statement."""

    def __init__(self, escaped: EscapedSchema, collector: MetadataCollector | None = None):
        self.escaped = escaped
        self.text = escaped.text
        self.collector = collector or MetadataCollector()
        self.blocks: list[RawBlock] = []
        self._handlers = {
            Category.SCALAR: self._split_scalar,
            Category.UNION: self._split_union,
            Category.DIRECTIVE: self._split_directive,
        }

    def split(self) -> list[RawBlock]:
        """Split the whole schema into raw blocks."""
        text = self.text
        pos = 0
        comments: list[str] = []
        while True:
            pos = _skip_whitespace(text, pos)
            if pos >= len(text):
                break

            token = PLACEHOLDER_RE.match(text, pos)
            if token:
                if token.group(1) == USAGE:
                    raise SchemaSyntaxError(
                        f"Unexpected directive '{self.escaped.restore(token.group(0))}'"
                    )
                comments.append(self.escaped.restore(token.group(0)))
                pos = token.end()
                continue

            if text[pos] == "@":
                name, body, pos = read_metadata(text, pos)
                self.collector.push(name, self.escaped.restore(body))
                continue

            match = NAME_RE.match(text, pos)
            if match is None:
                raise SchemaSyntaxError(f"Unexpected '{line_at(text, pos)}'")
            start = match.start()
            extend = False
            if match.group() == "extend":
                extend = True
                match = NAME_RE.match(text, _skip_whitespace(text, match.end()))
                if match is None:
                    raise SchemaSyntaxError(f"Missing keyword after 'extend' in '{line_at(text, pos)}'")
            category = KEYWORDS.get(match.group())
            if category is None:
                raise SchemaSyntaxError(
                    f"Unknown keyword '{match.group()}' in '{line_at(text, pos)}'", match.group()
                )

            handler = self._handlers.get(category, self._split_braced)
            block, pos = handler(category, match.end(), start)
            block.extend = extend
            block.comments = comments + block.comments
            comments = []
            self.blocks.append(block)

        self.collector.ensure_attached("at the end of the schema")
        return self.blocks

    def _line_end(self, pos: int) -> int:
        end = self.text.find("\n", pos)
        return len(self.text) if end < 0 else end

    def _absorb_usages(self, end: int) -> int:
        """Extend a one-line declaration over directive usages on the lines after it."""
        while True:
            token = PLACEHOLDER_RE.match(self.text, _skip_whitespace(self.text, end))
            if token is None or token.group(1) != USAGE:
                return end
            end = token.end()

    def _split_head(self, head: str) -> tuple[str, list[str]]:
        """Move comment placeholders out of a declaration head."""
        comments = [self.escaped.restore(m.group(0)) for m in PLACEHOLDER_RE.finditer(head)
                    if m.group(1) != USAGE]
        head = PLACEHOLDER_RE.sub(lambda m: m.group(0) if m.group(1) == USAGE else "", head)
        return " ".join(head.split()), comments

    def _split_braced(self, category: Category, pos: int, start: int) -> tuple[RawBlock, int]:
        text = self.text
        brace = text.find("{", pos)
        if brace < 0:
            raise SchemaSyntaxError(f"Missing block in '{line_at(text, pos)}'", line_at(text, pos))
        close = find_closing(text, brace, "{", "}")
        if close < 0:
            raise SchemaSyntaxError(
                f"Missing closing brace in '{category.keyword} {text[pos:brace].strip()}'",
                text[pos:brace].strip(),
            )
        head, comments = self._split_head(text[pos:brace])
        if category is Category.SCHEMA:
            name = "schema"
        else:
            name = parse_declaration_name(head)[0]
        metadata = self.collector.attach_declaration(category, name)
        block = RawBlock(category, head, comments=comments, metadata=metadata)
        owner_metadata = metadata[0] if metadata else None
        block.lines = self._split_body(text[brace + 1:close], category, name, owner_metadata)
        return block, close + 1

    def _split_body(
        self, body: str, category: Category, owner: str, owner_metadata: Metadata | None
    ) -> list[RawLine]:
        lines: list[RawLine] = []
        pending: list[str] = []
        for rest in _logical_lines(body):
            rest = rest.strip()
            while rest:
                token = PLACEHOLDER_RE.match(rest)
                if token and token.group(1) == USAGE:
                    # a usage on its own line continues the previous member
                    if not lines:
                        raise SchemaSyntaxError(
                            f"Unexpected directive '{self.escaped.restore(token.group(0))}' "
                            f"in {category.keyword} {owner}",
                            owner,
                        )
                    lines[-1].text = f"{lines[-1].text} {token.group(0)}"
                    rest = rest[token.end():].lstrip()
                elif token:
                    pending.append(self.escaped.restore(token.group(0)))
                    rest = rest[token.end():].lstrip()
                elif rest.startswith("@"):
                    name, metadata_body, end = read_metadata(rest, 0)
                    self.collector.push(name, self.escaped.restore(metadata_body))
                    rest = rest[end:].lstrip()
                else:
                    break
            if not rest:
                continue

            trailing = _TRAILING_COMMENT_RE.search(rest)
            if trailing:
                pending.append(self.escaped.restore(trailing.group(1)))
                rest = rest[:trailing.start()]
            for member in split_members(rest.strip(), category):
                token = PLACEHOLDER_RE.match(member)
                while token and token.group(1) != USAGE:
                    pending.append(self.escaped.restore(token.group(0)))
                    member = member[token.end():].lstrip()
                    token = PLACEHOLDER_RE.match(member)
                target = " ".join(self.escaped.restore(member).split())
                metadata = self.collector.attach_property(target, category, owner, owner_metadata)
                lines.append(RawLine(member, pending, metadata))
                pending = []

        if pending and lines:
            lines[-1].comments.extend(pending)
        self.collector.ensure_attached(f"in {category.keyword} {owner}")
        return lines

    def _split_scalar(self, category: Category, pos: int, start: int) -> tuple[RawBlock, int]:
        end = self._absorb_usages(self._line_end(pos))
        head, comments = self._split_head(self.text[pos:end])
        name = parse_declaration_name(head)[0]
        metadata = self.collector.attach_declaration(category, name)
        return RawBlock(category, head, comments=comments, metadata=metadata), end

    def _split_union(self, category: Category, pos: int, start: int) -> tuple[RawBlock, int]:
        text = self.text
        end = self._line_end(pos)
        while True:
            following = _skip_whitespace(text, end)
            current = text[pos:end].strip()
            if following < len(text) and (text[following] == "|" or current.endswith(("=", "|"))):
                end = self._line_end(following)
            else:
                break
        end = self._absorb_usages(end)
        head, comments = self._split_head(text[pos:end])
        name = parse_declaration_name(head)[0]
        metadata = self.collector.attach_declaration(category, name)
        return RawBlock(category, head, comments=comments, metadata=metadata), end

    def _split_directive(self, category: Category, pos: int, start: int) -> tuple[RawBlock, int]:
        text = self.text
        match = _DIRECTIVE_NAME_RE.match(text, _skip_whitespace(text, pos))
        if match is None:
            raise SchemaSyntaxError(f"Missing name in directive '{line_at(text, pos)}'")
        end = match.end()
        look = _skip_whitespace(text, end)
        if look < len(text) and text[look] == "(":
            close = find_closing(text, look)
            if close < 0:
                raise SchemaSyntaxError(
                    f"Unbalanced parentheses in directive '@{match.group(1)}'", match.group(1)
                )
            end = close + 1
        tail = _DIRECTIVE_TAIL_RE.match(text, end)
        if tail is None:
            raise SchemaSyntaxError(
                f"Missing locations in directive '@{match.group(1)}'", match.group(1)
            )
        metadata = self.collector.attach_declaration(category, match.group(1))
        block = RawBlock(
            category,
            match.group(1),
            metadata=metadata,
            source=self.escaped.restore(text[start:tail.end()]),
        )
        return block, tail.end()
