"""Extended GraphQL schema parser.

Runs both lexing phases and turns every raw block into a SchemaNode.
"""

import re

from gql_s2s import log

from .blocks import BlockSplitter, RawBlock, RawLine, parse_declaration_name
from .errors import SchemaSyntaxError
from .ir import (
    BlockProperty,
    Category,
    DependentGenericType,
    Metadata,
    ResolvedType,
    SchemaNode,
    TypeResult,
)
from .metadata import MetadataCollector
from .tokenizer import EscapedSchema, escape_schema, find_closing
from .types import NAME_RE, is_generic, mentions, parse_type, print_type

_USAGE_TOKEN_RE = re.compile(r"§U\d+§")
_INHERITS_RE = re.compile(r"\s*inherits\s+([_A-Za-z]\w*(?:\s*[,&]\s*[_A-Za-z]\w*)*)")
_IMPLEMENTS_RE = re.compile(
    r"\s*implements\s+&?\s*([_A-Za-z]\w*(?:(?:\s*[,&]\s*|\s+)(?!inherits\b)[_A-Za-z]\w*)*)"
)
_LEADING_USAGE_RE = re.compile(r"\s*(§U\d+§)")


class SchemaParser:
    """Parses extended SDL into schema nodes."""

    def __init__(self, sdl: str):
        self.sdl = sdl
        self.escaped = EscapedSchema()
        self.collector = MetadataCollector()
        self.nodes: list[SchemaNode] = []

    def parse_all(self) -> list[SchemaNode]:
        """Parse the whole schema and return its nodes in source order."""
        self.escaped = escape_schema(self.sdl)
        blocks = BlockSplitter(self.escaped, self.collector).split()
        log.debug(f"Split schema into {len(blocks)} blocks")

        for block in blocks:
            if block.category is Category.SCALAR:
                node = self._process_scalar(block)
            elif block.category is Category.UNION:
                node = self._process_union(block)
            elif block.category is Category.DIRECTIVE:
                node = self._process_directive(block)
            else:
                node = self._process_block(block)
            self.nodes.append(node)

        self._check_unique_names()
        return self.nodes

    @property
    def metadata(self) -> list[Metadata]:
        """Every metadata annotation found, in source order."""
        return self.collector.records

    def _check_unique_names(self):
        seen = set()
        for node in self.nodes:
            if node.extend:
                continue
            key = (node.category, node.name)
            if key in seen:
                raise SchemaSyntaxError(
                    f"Duplicate declaration of {node.category.keyword} {node.name}", node.name
                )
            seen.add(key)

    def _comments(self, comments: list[str]) -> str | None:
        return "\n".join(comments) if comments else None

    def _take_usages(self, text: str) -> tuple[str, str | None]:
        """Remove directive usage placeholders from text, returning them restored."""
        usages = [self.escaped.restore(token) for token in _USAGE_TOKEN_RE.findall(text)]
        return _USAGE_TOKEN_RE.sub("", text), " ".join(usages) or None

    def _process_block(self, block: RawBlock) -> SchemaNode:
        if block.category is Category.SCHEMA:
            name, params, rest = "schema", [], block.head
        else:
            name, params, rest = parse_declaration_name(block.head)
        node = SchemaNode(
            category=block.category,
            name=name,
            generic_params=params,
            extend=block.extend,
            metadata=block.metadata[0] if block.metadata else None,
            comments=self._comments(block.comments),
        )

        usages = []
        while rest.strip():
            match = _INHERITS_RE.match(rest)
            if match:
                node.inherits.extend(re.split(r"\s*[,&]\s*", match.group(1).strip()))
                rest = rest[match.end():]
                continue
            match = _IMPLEMENTS_RE.match(rest)
            if match:
                node.implements.extend(re.split(r"\s*[,&]\s*|\s+", match.group(1).strip()))
                rest = rest[match.end():]
                continue
            match = _LEADING_USAGE_RE.match(rest)
            if match:
                usages.append(self.escaped.restore(match.group(1)))
                rest = rest[match.end():]
                continue
            raise SchemaSyntaxError(
                f"Unexpected '{self.escaped.restore(rest.strip())}' in declaration of "
                f"{block.category.keyword} {name}",
                name,
            )
        node.directive_usage = " ".join(usages) or None

        for line in block.lines:
            node.properties.append(self._process_property(line, node))
        return node

    def _process_property(self, line: RawLine, node: SchemaNode) -> BlockProperty:
        text = line.text
        source = " ".join(self.escaped.restore(text).split())
        match = NAME_RE.match(text)
        if match is None:
            raise SchemaSyntaxError(
                f"Cannot parse property '{source}' in {node.category.keyword} {node.name}", source
            )

        arguments = None
        pos = match.end()
        while pos < len(text) and text[pos] == " ":
            pos += 1
        if pos < len(text) and text[pos] == "(":
            close = find_closing(text, pos)
            if close < 0:
                raise SchemaSyntaxError(
                    f"Unbalanced parentheses in property '{source}' of "
                    f"{node.category.keyword} {node.name}",
                    source,
                )
            arguments = self.escaped.restore(text[pos + 1:close].strip())
            pos = close + 1

        rest, usage = self._take_usages(text[pos:])
        rest = rest.strip()
        result = None
        default_value = None
        if rest.startswith(":"):
            type_text, _, default_text = rest[1:].partition("=")
            try:
                result = self._get_type_info(type_text, node.generic_params)
            except SchemaSyntaxError as e:
                raise SchemaSyntaxError(
                    f"Cannot parse property '{source}' in {node.category.keyword} {node.name}: "
                    f"{e.message}",
                    source,
                ) from e
            default_value = self.escaped.restore(default_text.strip()) or None
        elif rest:
            raise SchemaSyntaxError(
                f"Cannot parse property '{source}' in {node.category.keyword} {node.name}", source
            )

        return BlockProperty(
            name=match.group(),
            arguments=arguments,
            result=result,
            default_value=default_value,
            directive_usage=usage,
            metadata=line.metadata[0] if line.metadata else None,
            comments=self._comments(line.comments),
        )

    @staticmethod
    def _get_type_info(type_text: str, generic_params: list[str]) -> TypeResult:
        """Classify a property result type.

        Inside a template, types mentioning the template's parameters stay
        dependent until instantiation.
        """
        expr = parse_type(type_text)
        original = " ".join(type_text.split())
        if generic_params and mentions(expr, generic_params):
            return DependentGenericType(original, expr)
        return ResolvedType(original, print_type(expr), is_generic(expr))

    def _process_scalar(self, block: RawBlock) -> SchemaNode:
        name, _, rest = parse_declaration_name(block.head)
        rest, usage = self._take_usages(rest)
        if rest.strip():
            raise SchemaSyntaxError(f"Unexpected '{rest.strip()}' in scalar {name}", name)
        return SchemaNode(
            category=Category.SCALAR,
            name=name,
            extend=block.extend,
            metadata=block.metadata[0] if block.metadata else None,
            comments=self._comments(block.comments),
            directive_usage=usage,
        )

    def _process_union(self, block: RawBlock) -> SchemaNode:
        name, _, rest = parse_declaration_name(block.head)
        before, equals, members_text = rest.partition("=")
        before, usage = self._take_usages(before)
        if before.strip() or not equals:
            raise SchemaSyntaxError(f"Missing '=' in union {name}", name)
        members_text, trailing_usage = self._take_usages(members_text)
        members = [m.strip() for m in members_text.split("|") if m.strip()]
        if not members or not all(NAME_RE.fullmatch(m) for m in members):
            raise SchemaSyntaxError(
                f"Invalid members in union {name} = {members_text.strip()}", name
            )
        return SchemaNode(
            category=Category.UNION,
            name=name,
            extend=block.extend,
            members=members,
            metadata=block.metadata[0] if block.metadata else None,
            comments=self._comments(block.comments),
            directive_usage=" ".join(u for u in (usage, trailing_usage) if u) or None,
        )

    def _process_directive(self, block: RawBlock) -> SchemaNode:
        return SchemaNode(
            category=Category.DIRECTIVE,
            name=block.head,
            metadata=block.metadata[0] if block.metadata else None,
            comments=self._comments(block.comments),
            definition=block.source,
        )
