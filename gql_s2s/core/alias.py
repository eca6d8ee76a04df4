"""Naming of generic instantiations.

``@alias`` bodies use a tiny arrow-function language that only supports
concatenating parameters and string literals::

    @alias((T) => T + 's')
    @alias((T, U) => T + "sPer" + U)

Expressions are parsed into a list of terms and interpreted; nothing is
ever evaluated as code.
"""

import re
from typing import Callable

from .errors import ArityError, SchemaSyntaxError
from .types import NAME_RE, NamedType, default_alias, flat_name, parse_type

_TOKEN_RE = re.compile(
    r"""\s*(?:(?P<arrow>=>)|(?P<punct>[(),+])|(?P<name>[_A-Za-z][_0-9A-Za-z]*)|(?P<string>'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"))"""
)


def _tokenize(source: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    while pos < len(source):
        if source[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise SchemaSyntaxError(
                f"Invalid @alias expression '{source}': unexpected '{source[pos:].strip()}'", source
            )
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class AliasExpression:
    """A parsed ``@alias`` body.

    Calling it with the concrete argument names returns the alias.
    """

    def __init__(self, source: str):
        self.source = source.strip()
        self._tokens = _tokenize(self.source)
        self._pos = 0
        self.params: list[str] = []
        self.terms: list[tuple[str, str]] = []
        self._parse_source()
        if self._pos != len(self._tokens):
            self._fail(f"unexpected '{self._tokens[self._pos][1]}'")

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, *args: str) -> str:
        if len(args) != self.arity:
            raise SchemaSyntaxError(
                f"@alias '{self.source}' expects {self.arity} argument(s), got {len(args)}",
                self.source,
            )
        values = dict(zip(self.params, args))
        return "".join(values[text] if kind == "name" else text for kind, text in self.terms)

    def _fail(self, reason: str):
        raise SchemaSyntaxError(f"Invalid @alias expression '{self.source}': {reason}", self.source)

    def _peek(self, offset: int = 0) -> tuple[str, str] | None:
        index = self._pos + offset
        return self._tokens[index] if index < len(self._tokens) else None

    def _expect(self, text: str):
        token = self._peek()
        if token is None or token[1] != text:
            self._fail(f"expected '{text}'")
        self._pos += 1

    def _parse_source(self):
        """source := '(' source ')' | lambda"""
        if self._peek() == ("punct", "(") and not self._at_parameter_list():
            self._pos += 1
            self._parse_source()
            self._expect(")")
            return
        self._parse_lambda()

    def _at_parameter_list(self) -> bool:
        """Whether the '(' at the cursor opens ``(A, B) =>``."""
        offset = 1
        token = self._peek(offset)
        if token == ("punct", ")"):
            return self._peek(offset + 1) == ("arrow", "=>")
        while token is not None and token[0] == "name":
            token = self._peek(offset + 1)
            if token == ("punct", ")"):
                return self._peek(offset + 2) == ("arrow", "=>")
            if token != ("punct", ","):
                return False
            offset += 2
            token = self._peek(offset)
        return False

    def _parse_lambda(self):
        token = self._peek()
        if token is None:
            self._fail("missing parameters")
        if token[0] == "name":
            self.params = [token[1]]
            self._pos += 1
        else:
            self._expect("(")
            while self._peek() is not None and self._peek()[0] == "name":
                self.params.append(self._peek()[1])
                self._pos += 1
                if self._peek() == ("punct", ","):
                    self._pos += 1
            self._expect(")")
        if len(set(self.params)) != len(self.params):
            self._fail("duplicate parameter")
        self._expect("=>")
        self._parse_expression()

    def _parse_expression(self):
        """expr := term ('+' term)*"""
        self._parse_term()
        while self._peek() == ("punct", "+"):
            self._pos += 1
            self._parse_term()

    def _parse_term(self):
        token = self._peek()
        if token is None:
            self._fail("missing operand")
        kind, text = token
        if kind == "punct" and text == "(":
            self._pos += 1
            self._parse_expression()
            self._expect(")")
        elif kind == "name":
            if text not in self.params:
                self._fail(f"unknown parameter '{text}'")
            self.terms.append(("name", text))
            self._pos += 1
        elif kind == "string":
            literal = re.sub(r"\\(.)", r"\1", text[1:-1])
            self.terms.append(("literal", literal))
            self._pos += 1
        else:
            self._fail(f"unexpected '{text}'")


def make_alias(source: str | None, base_name: str, arity: int) -> Callable[[list[str]], str]:
    """Build the naming function for a template.

    Args:
        source: ``@alias`` body, or None for the default naming
        base_name: Template name without parameters
        arity: Number of template parameters

    Returns:
        A function mapping flattened argument names to the final type name
    """
    if not source:
        return lambda args: base_name + "".join(args)
    expression = AliasExpression(source)
    if expression.arity != arity:
        raise ArityError(
            f"@alias on {base_name} takes {expression.arity} parameter(s) "
            f"but the type declares {arity}",
            base_name,
        )

    def name(args: list[str]) -> str:
        alias = expression(*args)
        if not NAME_RE.fullmatch(alias):
            raise SchemaSyntaxError(
                f"@alias on {base_name} produced '{alias}', which is not a valid type name",
                base_name,
            )
        return alias

    return name


def generic_alias(body: str | None = None) -> Callable[[str], str]:
    """Naming function for generic type texts.

    Examples:
        generic_alias()("Paged<Product>")  -> "PagedProduct"
        generic_alias('(T => T + "s")')("Paged<Product>")  -> "Products"
    """
    expression = AliasExpression(body) if body else None

    def name(type_text: str) -> str:
        expr = parse_type(type_text)
        if not isinstance(expr, NamedType) or not expr.args:
            return type_text
        if expression is None:
            return default_alias(expr)
        return expression(*[flat_name(arg) for arg in expr.args])

    return name
