"""Tests for the extended schema parser."""

import pytest

from gql_s2s.core.errors import SchemaSyntaxError
from gql_s2s.core.ir import Category, DependentGenericType, ResolvedType
from gql_s2s.core.parser import SchemaParser


def parse(sdl: str):
    return SchemaParser(sdl).parse_all()


# =============================================================================
# Declarations
# =============================================================================


class TestDeclarations:
    """Tests for declaration heads."""

    def test_inherits_and_implements(self):
        (node,) = parse(
            "type Post inherits Node implements Entity & Timestamped {\n  title: String!\n}"
        )
        assert node.category is Category.TYPE
        assert node.name == "Post"
        assert node.inherits == ["Node"]
        assert node.implements == ["Entity", "Timestamped"]

    def test_multiple_supertypes(self):
        (node,) = parse("type Post inherits Node, Timestamped {\n  title: String\n}")
        assert node.inherits == ["Node", "Timestamped"]

    def test_comma_separated_interfaces(self):
        (node,) = parse("type Post implements Entity, Timestamped {\n  id: ID!\n}")
        assert node.implements == ["Entity", "Timestamped"]

    def test_generic_template(self):
        (node,) = parse("type Paged<T> {\n  data: [T]\n  cursor: ID\n}")
        assert node.name == "Paged<T>"
        assert node.base_name == "Paged"
        assert node.generic_params == ["T"]
        assert node.is_template
        assert not node.renderable

    def test_declaration_directive_usage(self):
        (node,) = parse('type Post @key(fields: "id") {\n  id: ID!\n}')
        assert node.directive_usage == '@key(fields: "id")'

    def test_abstract(self):
        (node,) = parse("abstract Base {\n  id: ID!\n}")
        assert node.category is Category.ABSTRACT
        assert not node.renderable

    def test_extend(self):
        (node,) = parse("extend type Query {\n  extra: String\n}")
        assert node.extend

    def test_comments(self):
        (node,) = parse('"""A post"""\ntype Post {\n  # the id\n  id: ID!\n}')
        assert node.comments == '"""A post"""'
        assert node.properties[0].comments == "# the id"

    def test_metadata_attached(self):
        (node,) = parse("@node\ntype Post {\n  @auth\n  id: ID!\n}")
        assert node.metadata.name == "node"
        assert node.properties[0].metadata.name == "auth"

    def test_scalar(self):
        (node,) = parse("scalar Date @specifiedBy(url: \"https://example.com\")")
        assert node.category is Category.SCALAR
        assert node.name == "Date"
        assert node.properties == []
        assert node.directive_usage == '@specifiedBy(url: "https://example.com")'

    def test_union(self):
        (node,) = parse("union SearchResult = Post | User")
        assert node.category is Category.UNION
        assert node.members == ["Post", "User"]

    def test_union_leading_pipe(self):
        (node,) = parse("union SearchResult =\n  | Post\n  | User")
        assert node.members == ["Post", "User"]

    def test_directive_declaration(self):
        sdl = "directive @auth(role: String) on FIELD_DEFINITION | OBJECT"
        (node,) = parse(sdl)
        assert node.category is Category.DIRECTIVE
        assert node.name == "auth"
        assert node.definition == sdl

    def test_same_name_in_different_categories(self):
        nodes = parse("type Post {\n  id: ID\n}\ninput Post {\n  id: ID\n}")
        assert [n.category for n in nodes] == [Category.TYPE, Category.INPUT]

    def test_duplicate_declaration(self):
        with pytest.raises(SchemaSyntaxError, match="Duplicate declaration of type A"):
            parse("type A {\n  id: ID\n}\ntype A {\n  x: ID\n}")

    def test_unexpected_text_in_head(self):
        with pytest.raises(SchemaSyntaxError, match="Unexpected 'extends Node'"):
            parse("type Post extends Node {\n  id: ID\n}")

    def test_union_without_members(self):
        with pytest.raises(SchemaSyntaxError, match="Missing '='"):
            parse("union SearchResult")


# =============================================================================
# Properties
# =============================================================================


class TestProperties:
    """Tests for property lines."""

    def test_arguments_result_and_usage(self):
        (node,) = parse(
            'type Query {\n'
            '  posts(first: Int = 10, where: PostFilter): [Post] @deprecated(reason: "old")\n'
            '}'
        )
        prop = node.properties[0]
        assert prop.name == "posts"
        assert prop.arguments == "first: Int = 10, where: PostFilter"
        assert prop.result == ResolvedType("[Post]", "[Post]")
        assert prop.directive_usage == '@deprecated(reason: "old")'
        assert prop.value == 'posts(first: Int = 10, where: PostFilter): [Post] @deprecated(reason: "old")'

    def test_default_value(self):
        (node,) = parse('input Filter {\n  limit: Int = 5\n  label: String = "a = b"\n}')
        assert node.properties[0].default_value == "5"
        assert node.properties[1].default_value == '"a = b"'

    def test_enum_values(self):
        (node,) = parse("enum Color {\n  RED\n  GREEN @deprecated\n}")
        assert [p.name for p in node.properties] == ["RED", "GREEN"]
        assert node.properties[0].result is None
        assert node.properties[1].directive_usage == "@deprecated"

    def test_one_line_enum(self):
        (node,) = parse("enum Color { RED GREEN @deprecated BLUE }")
        assert [p.name for p in node.properties] == ["RED", "GREEN", "BLUE"]
        assert node.properties[1].directive_usage == "@deprecated"

    def test_one_line_template(self):
        (node,) = parse("type Paged<T>{ data:[T] cursor:ID }")
        data, cursor = node.properties
        assert data.name == "data"
        assert isinstance(data.result, DependentGenericType)
        assert cursor.result == ResolvedType("ID", "ID")

    def test_usage_on_continuation_line(self):
        (node,) = parse('type Query {\n  a: Int\n    @deprecated(reason: "x")\n  b: Int\n}')
        assert node.properties[0].directive_usage == '@deprecated(reason: "x")'
        assert node.properties[1].directive_usage is None

    def test_generic_usage_outside_template(self):
        (node,) = parse("type User {\n  posts: Paged<Post>!\n}")
        result = node.properties[0].result
        assert isinstance(result, ResolvedType)
        assert result.is_generic
        assert result.name == "Paged<Post>!"
        assert not result.depends_on_enclosing_generic

    def test_dependent_types_inside_template(self):
        (node,) = parse("type Paged<T> {\n  data: [StandardData<T>]\n  cursor: ID\n}")
        data, cursor = node.properties
        assert isinstance(data.result, DependentGenericType)
        assert data.result.depends_on_enclosing_generic
        assert data.result.name is None
        assert isinstance(cursor.result, ResolvedType)

    def test_missing_colon(self):
        with pytest.raises(SchemaSyntaxError, match="Cannot parse property 'id ID' in type A"):
            parse("type A {\n  id ID\n}")

    def test_bad_type(self):
        with pytest.raises(SchemaSyntaxError, match="Cannot parse property"):
            parse("type A {\n  posts: Paged<Post\n}")


class TestMetadataProperty:
    """Tests for SchemaParser.metadata."""

    def test_records_in_source_order(self):
        parser = SchemaParser("@node\ntype A {\n  @auth\n  id: ID\n}\n@custom\nscalar Date")
        parser.parse_all()
        assert [m.name for m in parser.metadata] == ["node", "auth", "custom"]
