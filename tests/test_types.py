"""Tests for type expressions."""

import pytest

from gql_s2s.core.errors import SchemaSyntaxError
from gql_s2s.core.types import (
    ListType,
    NamedType,
    base_type_name,
    default_alias,
    is_generic,
    is_type_generic,
    map_argument_types,
    mentions,
    parse_type,
    print_type,
    substitute,
)

POST = NamedType("Post")
USER = NamedType("User")


class TestParseType:
    """Tests for parse_type and print_type."""

    def test_named(self):
        assert parse_type("Post") == POST
        assert parse_type("Post!") == NamedType("Post", non_null=True)

    def test_list_of_generic(self):
        expr = parse_type("[Paged<Post, Date>!]!")
        assert expr == ListType(
            NamedType("Paged", (POST, NamedType("Date")), non_null=True),
            non_null=True,
        )

    def test_print_normalizes_spacing(self):
        assert print_type(parse_type(" [ Paged< Post ,Date > ! ] ! ")) == "[Paged<Post, Date>!]!"

    def test_missing_closing_angle(self):
        with pytest.raises(SchemaSyntaxError, match="Missing '>'"):
            parse_type("Paged<Post")

    def test_missing_closing_bracket(self):
        with pytest.raises(SchemaSyntaxError, match="Missing ']'"):
            parse_type("[Post")

    def test_trailing_text(self):
        with pytest.raises(SchemaSyntaxError, match="Unexpected 'extra'"):
            parse_type("Post extra")


class TestGenericHelpers:
    """Tests for generic type helpers."""

    def test_is_generic(self):
        assert is_generic(parse_type("[Paged<Post>]"))
        assert not is_generic(parse_type("[Post]"))

    def test_mentions(self):
        assert mentions(parse_type("[Paged<T>!]"), ["T"])
        assert not mentions(parse_type("Paged<Post>"), ["T"])

    @pytest.mark.parametrize(
        "type_text,expected",
        [
            ("T", "User"),
            ("T!", "User!"),
            ("[T]", "[User]"),
            ("[T!]!", "[User!]!"),
            ("Paged<T>", "Paged<User>"),
            ("[Paged<T>!]", "[Paged<User>!]"),
        ],
    )
    def test_substitute_shapes(self, type_text, expected):
        assert print_type(substitute(parse_type(type_text), {"T": USER})) == expected

    def test_default_alias_strips_punctuation(self):
        assert default_alias(parse_type("Paged<[Post!], Date>")) == "PagedPostDate"

    def test_is_type_generic(self):
        assert is_type_generic("[Paged<T>]", "T")
        assert is_type_generic("U!", ["T", "U"])
        assert is_type_generic("T,U", "T, U")
        assert not is_type_generic("Paged<Product>", "T")
        assert not is_type_generic("T", "")

    def test_base_type_name(self):
        assert base_type_name("[User!]!") == "User"
        assert base_type_name(None) is None


class TestMapArgumentTypes:
    """Tests for map_argument_types."""

    def test_rewrites_types_only(self):
        result = map_argument_types(
            "where: Filter<T> = {a: 1}, first: Int",
            lambda e: substitute(e, {"T": POST}),
        )
        assert result == "where: Filter<Post> = {a: 1}, first: Int"

    def test_skips_strings(self):
        arguments = 'label: String = "a: T"'
        assert map_argument_types(arguments, lambda e: substitute(e, {"T": POST})) == arguments

    def test_unchanged_without_generics(self):
        assert map_argument_types("first: Int, after: ID", lambda e: e) == "first: Int, after: ID"
