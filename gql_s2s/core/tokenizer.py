"""First lexing phase: hide literal text behind placeholder tokens.

Docstrings, string literals, ``#`` comments and directive usages can all
contain characters (``{``, ``@``, ``:``) that would confuse the block
splitter. They are swapped for opaque placeholders such as ``§C0§`` and
restored verbatim when the schema is rendered. Newlines are kept as the
line boundary; tabs become spaces and runs of spaces collapse.
"""

import re
from dataclasses import dataclass, field

from .errors import SchemaSyntaxError
from .types import NAME_RE

COMMENT = "C"
DOCSTRING = "D"
STRING = "S"
USAGE = "U"

PLACEHOLDER_RE = re.compile(r"§([CDSU])(\d+)§")
_DIRECTIVE_KEYWORD_RE = re.compile(r"\bdirective\s*$")
_DIRECTIVE_DECLARATION_RE = re.compile(r"\bdirective\s*@([_A-Za-z][_0-9A-Za-z]*)")

BUILTIN_DIRECTIVES = frozenset({"deprecated", "specifiedBy"})


@dataclass
class EscapedSchema:
    """Schema text with literal fragments replaced by placeholders."""
    text: str = ""
    fragments: dict[str, str] = field(default_factory=dict)

    def stash(self, kind: str, fragment: str) -> str:
        """Store a fragment and return the placeholder that stands for it."""
        token = f"§{kind}{len(self.fragments)}§"
        self.fragments[token] = fragment
        return token

    def restore(self, text: str) -> str:
        """Put every stashed fragment back, including nested ones."""
        previous = None
        while previous != text:
            previous = text
            text = PLACEHOLDER_RE.sub(lambda m: self.fragments.get(m.group(0), m.group(0)), text)
        return text


def placeholder_kind(token: str) -> str | None:
    match = PLACEHOLDER_RE.fullmatch(token)
    return match.group(1) if match else None


def find_closing(text: str, start: int, opening: str = "(", closing: str = ")") -> int:
    """Index of the bracket closing the one at ``start``, or -1."""
    depth = 0
    for pos in range(start, len(text)):
        if text[pos] == opening:
            depth += 1
        elif text[pos] == closing:
            depth -= 1
            if depth == 0:
                return pos
    return -1


def line_at(text: str, pos: int) -> str:
    """The source line containing ``pos``, for error messages."""
    start = text.rfind("\n", 0, pos) + 1
    end = text.find("\n", pos)
    return text[start:end if end >= 0 else len(text)].strip()


def escape_schema(sdl: str) -> EscapedSchema:
    """Run the first lexing phase over raw extended SDL."""
    escaped = EscapedSchema()
    text = _stash_literals(sdl, escaped)
    escaped.text = _stash_directive_usages(text, escaped)
    return escaped


def _stash_literals(sdl: str, escaped: EscapedSchema) -> str:
    out = []
    pos = 0
    size = len(sdl)
    while pos < size:
        char = sdl[pos]
        if sdl.startswith('"""', pos):
            end = pos + 3
            while True:
                end = sdl.find('"""', end)
                if end < 0:
                    raise SchemaSyntaxError(f"Unterminated block string near '{line_at(sdl, pos)}'")
                if sdl[end - 1] != "\\":
                    break
                end += 3
            out.append(escaped.stash(DOCSTRING, sdl[pos:end + 3]))
            pos = end + 3
        elif char in "\"'":
            end = pos + 1
            while end < size and sdl[end] not in (char, "\n"):
                end += 2 if sdl[end] == "\\" else 1
            if end >= size or sdl[end] != char:
                raise SchemaSyntaxError(f"Unterminated string near '{line_at(sdl, pos)}'")
            out.append(escaped.stash(STRING, sdl[pos:end + 1]))
            pos = end + 1
        elif char == "#":
            end = sdl.find("\n", pos)
            end = size if end < 0 else end
            out.append(escaped.stash(COMMENT, sdl[pos:end].rstrip()))
            pos = end
        elif char == "\t":
            out.append(" ")
            pos += 1
        elif char == "\r":
            pos += 1
        else:
            out.append(char)
            pos += 1
    return re.sub(r" {2,}", " ", "".join(out))


def _stash_directive_usages(text: str, escaped: EscapedSchema) -> str:
    """Replace directive usages by placeholders.

    An ``@name`` that only has whitespace, comments or other annotations
    before it on its line is metadata and stays in place, as does the name
    of a ``directive @name`` declaration. The exception is a built-in
    directive or one declared in the document: at the start of a line it
    is a usage continuing the line before.
    """
    directives = BUILTIN_DIRECTIVES | set(_DIRECTIVE_DECLARATION_RE.findall(text))
    out = []
    pos = 0
    size = len(text)
    line_start = True
    while pos < size:
        char = text[pos]
        if char == "\n":
            line_start = True
            out.append(char)
            pos += 1
            continue
        if char == " ":
            out.append(char)
            pos += 1
            continue
        token = PLACEHOLDER_RE.match(text, pos)
        if token:
            out.append(token.group(0))
            pos = token.end()
            continue
        if char != "@":
            out.append(char)
            line_start = False
            pos += 1
            continue

        match = NAME_RE.match(text, pos + 1)
        if match is None:
            raise SchemaSyntaxError(f"Invalid '@' in '{line_at(text, pos)}'")
        if _DIRECTIVE_KEYWORD_RE.search(text, max(0, pos - 32), pos):
            out.append(text[pos:match.end()])
            line_start = False
            pos = match.end()
            continue

        end = match.end()
        look = end
        while look < size and text[look] == " ":
            look += 1
        if look < size and text[look] == "(":
            close = find_closing(text, look)
            if close < 0:
                raise SchemaSyntaxError(
                    f"Unbalanced parentheses after '@{match.group()}'", line_at(text, pos)
                )
            end = close + 1

        if line_start and match.group() not in directives:
            out.append(text[pos:end])
        else:
            out.append(escaped.stash(USAGE, text[pos:end]))
            line_start = False
        pos = end
    return "".join(out)
