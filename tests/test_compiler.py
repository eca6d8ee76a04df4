"""End-to-end tests for schema compilation and rendering."""

import re

import pytest
from graphql import build_schema

from gql_s2s.core import SchemaCompiler, compile_schema_text
from gql_s2s.core.errors import SchemaError


def compress(sdl: str) -> str:
    """Remove all whitespace so outputs compare regardless of layout."""
    return re.sub(r"\s+", "", sdl)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def standard_sdl():
    """A schema using no extension, already in output order."""
    return '''directive @auth(role: String) on FIELD_DEFINITION

interface Entity {
    id: ID!
}

type Query {
    posts(first: Int = 10): [Post] @auth(role: "reader")
    search(text: String!): [SearchResult]
}

"""A blog post"""
type Post implements Entity {
    # the identifier
    id: ID!
    title: String @deprecated(reason: "use name")
    color: Color
    published: Date
}

input PostFilter {
    title: String = "any"
}

enum Color {
    RED
    GREEN
}

scalar Date

union SearchResult = Post
'''


@pytest.fixture
def extended_sdl():
    """A schema using every extension."""
    return """directive @auth(role: String) on FIELD_DEFINITION

interface Entity {
    id: ID!
}

abstract Timestamped {
    createdAt: String
}

@node
type Node implements Entity {
    id: ID!
}

@alias((T) => T + 's')
type Paged<T> {
    data: [T!]!
    cursor: ID
}

type Post inherits Node, Timestamped {
    title: String!
    @edge('<-[AUTHORED]-')
    author: User
}

type User inherits Node {
    name: String
    posts(first: Int = 10): Paged<Post> @auth(role: "owner")
}

type Query {
    users: Paged<User>
}
"""


# =============================================================================
# Tests
# =============================================================================


class TestCompileSchemaText:
    """Tests for compile_schema_text."""

    def test_standard_sdl_is_unchanged(self, standard_sdl):
        assert compress(compile_schema_text(standard_sdl)) == compress(standard_sdl)

    def test_generic_scenario(self):
        sdl = compile_schema_text(
            "type Paged<T> {\n  data: [T]\n  cursor: ID\n}\n"
            "type Post {\n  id: ID\n}\n"
            "type User {\n  posts: Paged<Post>\n}"
        )
        assert "typeUser{posts:PagedPost}" in compress(sdl)
        assert "typePagedPost{data:[Post]cursor:ID}" in compress(sdl)
        assert "Paged<" not in sdl

    def test_inheritance_scenario(self):
        sdl = compile_schema_text(
            "type Node {\n  id: ID!\n}\ntype Post inherits Node {\n  name: String!\n}"
        )
        assert "typePost{id:ID!name:String!}" in compress(sdl)
        assert "inherits" not in sdl

    def test_extended_schema(self, extended_sdl):
        sdl = compress(compile_schema_text(extended_sdl))
        assert "typePostimplementsEntity{id:ID!createdAt:Stringtitle:String!author:User}" in sdl
        assert (
            'typeUserimplementsEntity{id:ID!name:Stringposts(first:Int=10):Posts@auth(role:"owner")}'
            in sdl
        )
        assert "typePosts{data:[Post!]!cursor:ID}" in sdl
        assert "typeQuery{users:Users}" in sdl

    def test_extensions_never_reach_output(self, extended_sdl):
        sdl = compile_schema_text(extended_sdl)
        for token in ("abstract", "Timestamped", "inherits", "@alias", "@node", "@edge", "Paged"):
            assert token not in sdl

    def test_output_is_valid_graphql(self, extended_sdl):
        schema = build_schema(compile_schema_text(extended_sdl))
        assert schema.get_type("Posts") is not None
        assert [i.name for i in schema.get_type("Post").interfaces] == ["Entity"]

    def test_standard_output_is_valid_graphql(self, standard_sdl):
        build_schema(compile_schema_text(standard_sdl))

    def test_directive_declarations_first(self):
        sdl = compile_schema_text(
            "type Query {\n  a: String @auth\n}\ndirective @auth on FIELD_DEFINITION"
        )
        assert sdl.startswith("directive @auth on FIELD_DEFINITION\n")

    def test_layout(self):
        sdl = compile_schema_text(
            "interface I1 {\n  id: ID!\n}\n"
            "interface I2 implements I1 {\n  id: ID!\n}\n"
            "# a user\ntype User implements I2 {\n  # primary key\n  id: ID!\n}\n"
            "extend type User {\n  name: String\n}"
        )
        assert sdl == (
            "interface I1 {\n"
            "    id: ID!\n"
            "}\n"
            "\n"
            "interface I2 implements I1 {\n"
            "    id: ID!\n"
            "}\n"
            "\n"
            "# a user\n"
            "type User implements I2 & I1 {\n"
            "    # primary key\n"
            "    id: ID!\n"
            "}\n"
            "\n"
            "extend type User {\n"
            "    name: String\n"
            "}\n"
        )

    def test_compilation_is_deterministic(self, extended_sdl):
        assert compile_schema_text(extended_sdl) == compile_schema_text(extended_sdl)

    def test_schema_block(self):
        sdl = compile_schema_text("schema {\n  query: Root\n}\ntype Root {\n  ok: Boolean\n}")
        assert compress(sdl) == "typeRoot{ok:Boolean}schema{query:Root}"
        build_schema(sdl)

    def test_errors_are_schema_errors(self):
        with pytest.raises(SchemaError, match="^Schema error: "):
            compile_schema_text("type A inherits B {\n  id: ID\n}")


class TestOneLineBodies:
    """Tests for several members sharing one line."""

    def test_generic_scenario_on_one_line(self):
        sdl = compile_schema_text(
            "type Paged<T>{ data:[T] cursor:ID } type User{ posts:Paged<Post> }"
        )
        assert "typeUser{posts:PagedPost}" in compress(sdl)
        assert "typePagedPost{data:[Post]cursor:ID}" in compress(sdl)
        assert "Paged<" not in sdl

    def test_enum_values_and_comma_separated_fields(self):
        sdl = compile_schema_text(
            "enum Color { RED GREEN @deprecated BLUE }\n"
            "type Query { a: Int, b: Int color: Color }"
        )
        assert "enum Color {\n    RED\n    GREEN @deprecated\n    BLUE\n}" in sdl
        assert "type Query {\n    a: Int\n    b: Int\n    color: Color\n}" in sdl

        schema = build_schema(sdl)
        assert list(schema.get_type("Color").values) == ["RED", "GREEN", "BLUE"]
        assert list(schema.get_type("Query").fields) == ["a", "b", "color"]

    def test_arguments_defaults_and_usages(self):
        sdl = compile_schema_text(
            'input Filter { limit: Int = 5, tags: [String] = ["a", "b"] label: String = "x y" }\n'
            'type Query { posts(first: Int = 10, filter: Filter): [String] '
            '@deprecated(reason: "old") total: Int! }'
        )
        schema = build_schema(sdl)
        assert list(schema.get_type("Filter").fields) == ["limit", "tags", "label"]
        assert schema.get_type("Filter").fields["tags"].default_value == ["a", "b"]
        posts = schema.get_type("Query").fields["posts"]
        assert list(posts.args) == ["first", "filter"]
        assert posts.deprecation_reason == "old"
        assert str(schema.get_type("Query").fields["total"].type) == "Int!"

    def test_comments_stay_with_the_first_member(self):
        sdl = compile_schema_text("type Query {\n  # both\n  a: Int b: Int # trailing\n}")
        assert sdl == "type Query {\n    # both\n    # trailing\n    a: Int\n    b: Int\n}\n"


class TestDirectiveUsageOnItsOwnLine:
    """Tests for built-in and declared directives written on a line of their own."""

    def test_deprecated_continues_the_field(self):
        sdl = compile_schema_text('type Query {\n  a: Int\n    @deprecated(reason: "x")\n  b: Int\n}')
        assert sdl == 'type Query {\n    a: Int @deprecated(reason: "x")\n    b: Int\n}\n'
        assert build_schema(sdl).get_type("Query").fields["a"].deprecation_reason == "x"

    def test_declared_directive_continues_the_field(self):
        sdl = compile_schema_text(
            "directive @auth on FIELD_DEFINITION\ntype Query {\n  a: Int\n    @auth\n}"
        )
        assert "    a: Int @auth\n" in sdl
        build_schema(sdl)

    def test_specified_by_continues_the_scalar(self):
        sdl = compile_schema_text(
            'scalar Url\n  @specifiedBy(url: "https://example.com/url")\ntype Query {\n  home: Url\n}'
        )
        assert 'scalar Url @specifiedBy(url: "https://example.com/url")' in sdl
        build_schema(sdl)

    def test_undeclared_names_stay_metadata(self):
        sdl = compile_schema_text("type Query {\n  a: Int\n  @auth\n  b: Int\n}")
        assert sdl == "type Query {\n    a: Int\n    b: Int\n}\n"


class TestSchemaCompiler:
    """Tests for SchemaCompiler options."""

    def test_custom_indent(self):
        sdl = SchemaCompiler(indent="  ").compile_text("type Query {\n    ok: Boolean\n}")
        assert sdl == "type Query {\n  ok: Boolean\n}\n"

    def test_custom_template_dir(self, tmp_path):
        (tmp_path / "schema.graphql.j2").write_text(
            "{% for node in nodes %}{{ node.name }}\n{% endfor %}"
        )
        compiler = SchemaCompiler(template_dir=str(tmp_path))
        assert compiler.compile_text("type A {\n  id: ID\n}\ntype B {\n  id: ID\n}") == "A\nB\n"

    def test_compile_ast_keeps_abstract_and_templates(self, extended_sdl):
        names = [n.name for n in SchemaCompiler().compile_ast(extended_sdl)]
        assert "Timestamped" in names
        assert "Paged<T>" in names
        assert names[-2:] == ["Posts", "Users"]
