"""Tests for metadata annotations."""

import pytest

from gql_s2s.core import extract_metadata
from gql_s2s.core.errors import SchemaSyntaxError
from gql_s2s.core.ir import Category, Metadata, MetadataParent
from gql_s2s.core.metadata import MetadataCollector, read_metadata, unwrap_body


@pytest.fixture
def brand_schema():
    """A node type with an edge property."""
    return """
@node
type Brand {
    id: ID!
    @edge('<-[ABOUT]-')
    posts: [Post]
}

type Post {
    id: ID!
}
"""


class TestReadMetadata:
    """Tests for reading a single annotation."""

    def test_with_body(self):
        assert read_metadata("@edge('x') rest", 0) == ("edge", "('x')", 10)

    def test_without_body(self):
        assert read_metadata("@node\ntype A", 0) == ("node", "", 5)

    def test_nested_parentheses(self):
        name, body, _ = read_metadata("@alias((T) => T + 's')", 0)
        assert name == "alias"
        assert body == "((T) => T + 's')"

    def test_unbalanced(self):
        with pytest.raises(SchemaSyntaxError, match="Unbalanced parentheses"):
            read_metadata("@edge('x'", 0)

    def test_unwrap_body(self):
        assert unwrap_body("('<-[ABOUT]-')") == "'<-[ABOUT]-'"
        assert unwrap_body("") == ""


class TestExtractMetadata:
    """Tests for extract_metadata."""

    def test_type_and_property_records(self, brand_schema):
        node, edge = extract_metadata(brand_schema)

        assert node == Metadata(name="node", body="", category=Category.TYPE, target="Brand")
        assert edge.name == "edge"
        assert edge.body == "('<-[ABOUT]-')"
        assert edge.category is Category.PROPERTY
        assert edge.target == "posts: [Post]"

    def test_property_parent_names_enclosing_type(self, brand_schema):
        _, edge = extract_metadata(brand_schema)
        assert edge.parent == MetadataParent(
            category=Category.TYPE,
            name="Brand",
            metadata=Metadata(name="node", body="", category=Category.TYPE, target="Brand"),
        )

    def test_metadata_on_scalar_union_and_generic(self):
        records = extract_metadata(
            "@custom\nscalar Date\n"
            "@search\nunion Result = A | B\n"
            "@alias((T) => T + 's')\ntype Paged<T> {\n  data: [T]\n}"
        )
        assert [(r.name, r.category, r.target) for r in records] == [
            ("custom", Category.SCALAR, "Date"),
            ("search", Category.UNION, "Result"),
            ("alias", Category.TYPE, "Paged<T>"),
        ]

    def test_multiple_annotations_on_one_property(self):
        records = extract_metadata("type A {\n  @auth @cached\n  secret: String\n}")
        assert [r.name for r in records] == ["auth", "cached"]
        assert all(r.target == "secret: String" for r in records)

    def test_dangling_metadata_at_end(self):
        with pytest.raises(SchemaSyntaxError, match="@orphan"):
            extract_metadata("type A {\n  id: ID\n}\n@orphan")

    def test_dangling_metadata_in_block(self):
        with pytest.raises(SchemaSyntaxError, match="in type A"):
            extract_metadata("type A {\n  id: ID\n  @orphan\n}")

    def test_extract_does_not_resolve_types(self):
        # Unknown supertypes are only reported when compiling
        records = extract_metadata("@node\ntype A inherits Missing {\n  id: ID\n}")
        assert [r.name for r in records] == ["node"]


class TestMetadataCollector:
    """Tests for MetadataCollector."""

    def test_pending_until_attached(self):
        collector = MetadataCollector()
        collector.push("node", "")
        assert collector.has_pending

        attached = collector.attach_declaration(Category.TYPE, "User")
        assert not collector.has_pending
        assert attached[0].target == "User"
        assert collector.records == attached
