"""Type expressions used in property results and arguments.

A type expression is a named type, optionally carrying generic arguments
(``Paged<Post, Date>``), wrapped in any number of lists, each level
optionally non-null (``[StandardData<T>]!``).
"""

import re
from dataclasses import dataclass, replace
from typing import Callable

from .errors import SchemaSyntaxError

NAME_RE = re.compile(r"[_A-Za-z][_0-9A-Za-z]*")

BUILTIN_SCALARS = frozenset({"ID", "String", "Int", "Float", "Boolean"})


@dataclass(frozen=True)
class NamedType:
    """A type referenced by name, e.g. ``Post`` or ``Paged<Post>``."""
    name: str
    args: tuple["TypeExpr", ...] = ()
    non_null: bool = False


@dataclass(frozen=True)
class ListType:
    """A list wrapping another type expression, e.g. ``[Post]!``."""
    of: "TypeExpr"
    non_null: bool = False


TypeExpr = NamedType | ListType


def _skip_spaces(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def parse_type_at(text: str, pos: int) -> tuple[TypeExpr, int]:
    """Parse a type expression starting at ``pos``.

    Returns the expression and the position right after it.
    """
    pos = _skip_spaces(text, pos)
    if pos < len(text) and text[pos] == "[":
        inner, pos = parse_type_at(text, pos + 1)
        pos = _skip_spaces(text, pos)
        if pos >= len(text) or text[pos] != "]":
            raise SchemaSyntaxError(f"Missing ']' in type '{text.strip()}'", text.strip())
        expr: TypeExpr = ListType(inner)
        pos += 1
    else:
        match = NAME_RE.match(text, pos)
        if not match:
            raise SchemaSyntaxError(f"Invalid type '{text.strip()}'", text.strip())
        pos = match.end()
        args = []
        look = _skip_spaces(text, pos)
        if look < len(text) and text[look] == "<":
            pos = look + 1
            while True:
                arg, pos = parse_type_at(text, pos)
                args.append(arg)
                pos = _skip_spaces(text, pos)
                if pos < len(text) and text[pos] == ",":
                    pos += 1
                elif pos < len(text) and text[pos] == ">":
                    pos += 1
                    break
                else:
                    raise SchemaSyntaxError(
                        f"Missing '>' in generic type '{text.strip()}'", text.strip()
                    )
        expr = NamedType(match.group(), tuple(args))

    look = _skip_spaces(text, pos)
    if look < len(text) and text[look] == "!":
        expr = replace(expr, non_null=True)
        pos = look + 1
    return expr, pos


def parse_type(text: str) -> TypeExpr:
    """Parse a complete type expression such as ``[Paged<Post>]!``."""
    expr, pos = parse_type_at(text, 0)
    if text[pos:].strip():
        raise SchemaSyntaxError(f"Unexpected '{text[pos:].strip()}' in type '{text.strip()}'", text.strip())
    return expr


def print_type(expr: TypeExpr) -> str:
    """Render a type expression back to SDL text."""
    if isinstance(expr, ListType):
        text = f"[{print_type(expr.of)}]"
    elif expr.args:
        text = f"{expr.name}<{', '.join(print_type(a) for a in expr.args)}>"
    else:
        text = expr.name
    return text + "!" if expr.non_null else text


def named_type(expr: TypeExpr) -> NamedType:
    """Innermost named type of an expression."""
    while isinstance(expr, ListType):
        expr = expr.of
    return expr


def base_type_name(type_text: str | None) -> str | None:
    """Strip list wrappers and non-null markers: ``[User!]!`` -> ``User``."""
    if not type_text:
        return None
    return type_text.strip("[]! ") or None


def is_generic(expr: TypeExpr) -> bool:
    """Whether the expression contains a named type with generic arguments."""
    if isinstance(expr, ListType):
        return is_generic(expr.of)
    return bool(expr.args)


def mentions(expr: TypeExpr, params: list[str] | tuple[str, ...] | set[str]) -> bool:
    """Whether the expression refers to one of the generic parameter letters."""
    if isinstance(expr, ListType):
        return mentions(expr.of, params)
    if not expr.args and expr.name in params:
        return True
    return any(mentions(arg, params) for arg in expr.args)


def substitute(expr: TypeExpr, mapping: dict[str, TypeExpr]) -> TypeExpr:
    """Replace generic parameter letters by concrete type expressions.

    A non-null marker on the parameter survives the substitution, so ``T!``
    with ``T = Post`` becomes ``Post!``.
    """
    if isinstance(expr, ListType):
        return replace(expr, of=substitute(expr.of, mapping))
    if not expr.args and expr.name in mapping:
        concrete = mapping[expr.name]
        return replace(concrete, non_null=concrete.non_null or expr.non_null)
    if expr.args:
        return replace(expr, args=tuple(substitute(arg, mapping) for arg in expr.args))
    return expr


def flat_name(expr: TypeExpr) -> str:
    """Type expression text with every non-word character removed."""
    return re.sub(r"\W", "", print_type(expr))


def default_alias(expr: NamedType) -> str:
    """Default name of a generic instantiation: ``Paged<Post, Date>`` -> ``PagedPostDate``."""
    return expr.name + "".join(flat_name(arg) for arg in expr.args)


def is_type_generic(type_text: str, params: str | list[str]) -> bool:
    """Check whether ``type_text`` refers to one of the generic ``params``.

    ``params`` may be a comma separated string (``"T,U"``) or a list.

    Examples:
        is_type_generic("[Paged<T>]", "T")  -> True
        is_type_generic("Paged<Product>", "T")  -> False
    """
    if isinstance(params, str):
        params = [p.strip() for p in params.split(",") if p.strip()]
    if not type_text or not params:
        return False
    if type_text.replace(" ", "") == ",".join(params):
        return True
    try:
        expr = parse_type(type_text)
    except SchemaSyntaxError:
        return False
    return mentions(expr, params)


def map_argument_types(arguments: str, fn: Callable[[TypeExpr], TypeExpr]) -> str:
    """Rewrite every argument type inside a raw argument list.

    ``arguments`` is the text between the parentheses of a property, e.g.
    ``where: Filter<T> = {a: 1}, first: Int``. Colons nested in object
    values, strings or comments are left alone.
    """
    out = []
    depth = 0
    pos = 0
    last = 0
    while pos < len(arguments):
        char = arguments[pos]
        if arguments.startswith('"""', pos):
            end = arguments.find('"""', pos + 3)
            pos = len(arguments) if end < 0 else end + 3
            continue
        if char == '"':
            end = pos + 1
            while end < len(arguments) and arguments[end] != '"':
                end += 2 if arguments[end] == "\\" else 1
            pos = end + 1
            continue
        if char == "#":
            end = arguments.find("\n", pos)
            pos = len(arguments) if end < 0 else end
            continue
        if char in "{(":
            depth += 1
        elif char in "})":
            depth -= 1
        elif char == ":" and depth == 0:
            expr, end = parse_type_at(arguments, pos + 1)
            new = fn(expr)
            if new != expr:
                out.append(arguments[last:pos + 1])
                out.append(" " + print_type(new))
                last = end
            pos = end
            continue
        pos += 1
    out.append(arguments[last:])
    return "".join(out)
