import logging

import pytest

from nestmap import DOCUMENT, RELATIONAL, BackendContext, build_entity_metadata
from nestmap.errors import (
    DuplicateColumnError,
    DuplicatePropertyError,
    ErrorCode,
    InvalidArgError,
    NotBuiltError,
    UnsupportedFeatureError,
)
from nestmap.metadata import (
    ColumnMetadata,
    EmbeddedMetadata,
    EntityMetadata,
    RelationCountMetadata,
    RelationIdMetadata,
    RelationMetadata,
    build_entity_metadatas,
)


class Post:
    def __init__(self) -> None:
        self.data = None


class PostData:
    def __init__(self) -> None:
        self.counters = None


class Counters:
    def __init__(self) -> None:
        self.likes = 0


class Tag:
    def __init__(self) -> None:
        self.name = ""


LIKES = ColumnMetadata("likes", type="int")
TITLE = ColumnMetadata("title")
ID = ColumnMetadata("id", type="int", primary=True)


def post_declaration(**counters_options):
    counters = {"property_name": "counters", "type": Counters, "prefix": "cnt", "columns": [LIKES]}
    counters.update(counters_options)
    return {
        "target": Post,
        "columns": [ID],
        "embeddeds": [
            {
                "property_name": "data",
                "type": PostData,
                "columns": [TITLE],
                "embeddeds": [counters],
            }
        ],
    }


class TestPostScenario:
    def test_flattening_backend(self) -> None:
        post = build_entity_metadata(post_declaration(), RELATIONAL)

        data = post.find_embedded("data")
        counters = post.find_embedded("data.counters")
        assert data is not None and counters is not None
        assert counters.prefix == "data_cnt"
        assert counters.parent_property_names == ["data", "counters"]
        assert counters.columns_from_tree == [LIKES]
        assert LIKES in data.columns_from_tree
        assert counters.entity_metadata is post

        assert post.all_columns == [ID, TITLE, LIKES]
        assert post.column_database_name(ID) == "id"
        assert post.column_database_name(TITLE) == "data_title"
        assert post.column_database_name(LIKES) == "data_cnt_likes"
        assert post.column_embedded(LIKES) is counters
        assert post.column_embedded(ID) is None

    def test_document_backend(self) -> None:
        post = build_entity_metadata(post_declaration(), DOCUMENT)

        counters = post.find_embedded("data.counters")
        assert counters is not None
        assert counters.prefix == "counters"
        assert post.column_database_name(LIKES) == "likes"

    def test_custom_column_name_keeps_prefix(self) -> None:
        views = ColumnMetadata("views", database_name="view_total")
        post = build_entity_metadata(post_declaration(columns=[views]), RELATIONAL)

        assert post.column_database_name(views) == "data_cnt_view_total"


def test_entity_aggregates_relations_from_embeds() -> None:
    author = RelationMetadata("author", target="User")
    author_id = RelationIdMetadata("authorId", "author")
    comments = RelationMetadata("comments", target="Comment", relation_type="one-to-many")
    comment_count = RelationCountMetadata("commentCount", "comments")
    declaration = {
        "target": Post,
        "relations": [comments],
        "relation_counts": [comment_count],
        "embeddeds": [
            {
                "property_name": "data",
                "type": PostData,
                "relations": [author],
                "relation_ids": [author_id],
            }
        ],
    }

    post = build_entity_metadata(declaration, RELATIONAL)
    assert post.all_relations == [comments, author]
    assert post.all_relation_ids == [author_id]
    assert post.all_relation_counts == [comment_count]


def test_duplicate_column_names_are_rejected() -> None:
    declaration = {
        "target": Post,
        "columns": [ID],
        "embeddeds": [
            {
                "property_name": "data",
                "type": PostData,
                "prefix": "",
                "columns": [ColumnMetadata("id")],
            }
        ],
    }

    with pytest.raises(DuplicateColumnError) as excinfo:
        build_entity_metadata(declaration, RELATIONAL)
    assert excinfo.value.code == ErrorCode.DUPLICATE_COLUMN
    assert excinfo.value.names == ["id"]


def test_duplicate_column_names_warn_when_not_strict(caplog: pytest.LogCaptureFixture) -> None:
    declaration = {
        "target": Post,
        "embeddeds": [
            {"property_name": "a", "type": Tag, "prefix": "x", "columns": [ColumnMetadata("name")]},
            {"property_name": "b", "type": Tag, "prefix": "x", "columns": [ColumnMetadata("name")]},
        ],
    }
    context = BackendContext.for_backend("sqlite", strict=False)

    with caplog.at_level(logging.WARNING, logger="nestmap.metadata.entity"):
        post = build_entity_metadata(declaration, context)

    assert len(post.all_columns) == 2
    messages = [record.getMessage() for record in caplog.records]
    assert any("share the column prefix 'x'" in message for message in messages)
    assert any("x_name" in message for message in messages)


def test_shared_prefix_without_column_clash_only_warns(caplog: pytest.LogCaptureFixture) -> None:
    declaration = {
        "target": Post,
        "embeddeds": [
            {"property_name": "a", "type": Tag, "prefix": "x", "columns": [ColumnMetadata("one")]},
            {"property_name": "b", "type": Tag, "prefix": "x", "columns": [ColumnMetadata("two")]},
        ],
    }

    with caplog.at_level(logging.WARNING, logger="nestmap.metadata.entity"):
        post = build_entity_metadata(declaration, RELATIONAL)

    assert [post.column_database_name(column) for column in post.all_columns] == ["x_one", "x_two"]
    assert len(caplog.records) == 1


def test_same_column_names_are_fine_on_document_backend_with_distinct_embeds() -> None:
    title = ColumnMetadata("title")
    a_name = ColumnMetadata("name")
    b_name = ColumnMetadata("name")
    b_title = ColumnMetadata("title")
    declaration = {
        "target": Post,
        "columns": [title],
        "embeddeds": [
            {"property_name": "a", "type": Tag, "columns": [a_name]},
            {"property_name": "b", "type": Tag, "columns": [b_name, b_title]},
        ],
    }
    post = build_entity_metadata(declaration, DOCUMENT)

    assert [column.property_name for column in post.all_columns] == ["title", "name", "name", "title"]
    assert [mapping.storage_path for mapping in post.column_mappings] == [
        ("title",),
        ("a", "name"),
        ("b", "name"),
        ("b", "title"),
    ]
    assert post.column_database_name(b_title) == "title"


def test_same_level_duplicates_fail_on_document_backend() -> None:
    declaration = {
        "target": Post,
        "embeddeds": [
            {"property_name": "a", "type": Tag, "columns": [ColumnMetadata("name"), ColumnMetadata("name")]},
        ],
    }
    with pytest.raises(DuplicateColumnError) as excinfo:
        build_entity_metadata(declaration, DOCUMENT)
    assert excinfo.value.names == ["a.name"]


def test_shared_descriptor_in_two_embeds() -> None:
    name = ColumnMetadata("name")
    declaration = {
        "target": Post,
        "embeddeds": [
            {"property_name": "a", "type": Tag, "columns": [name]},
            {"property_name": "b", "type": Tag, "columns": [name]},
        ],
    }
    post = build_entity_metadata(declaration, RELATIONAL)
    a = post.find_embedded("a")
    b = post.find_embedded("b")

    assert post.all_columns == [name, name]
    assert [mapping.database_name for mapping in post.column_mappings] == ["a_name", "b_name"]
    assert [mapping.embedded for mapping in post.column_mappings] == [a, b]
    assert post.column_database_name(name, embedded=a) == "a_name"
    assert post.column_database_name(name, embedded=b) == "b_name"
    with pytest.raises(InvalidArgError):
        post.column_database_name(name)
    with pytest.raises(InvalidArgError):
        post.column_database_name(name, embedded=None)


def test_build_several_entities() -> None:
    tag_declaration = {"target": Tag, "columns": [ColumnMetadata("name")]}
    post, tag = build_entity_metadatas([post_declaration(), tag_declaration], RELATIONAL)

    assert post.name == "Post"
    assert tag.name == "Tag"
    assert [column.property_name for column in tag.all_columns] == ["name"]
    assert tag.embeddeds == []


def test_array_embeds_need_backend_support() -> None:
    declaration = {
        "target": Post,
        "embeddeds": [{"property_name": "tags", "type": Tag, "is_array": True}],
    }

    with pytest.raises(UnsupportedFeatureError):
        build_entity_metadata(declaration, RELATIONAL)

    post = build_entity_metadata(declaration, DOCUMENT)
    tags = post.find_embedded("tags")
    assert tags is not None and tags.is_array


def test_duplicate_sibling_property_names_are_rejected() -> None:
    declaration = {
        "target": Post,
        "embeddeds": [
            {"property_name": "data", "type": PostData},
            {"property_name": "data", "type": PostData},
        ],
    }
    with pytest.raises(DuplicatePropertyError):
        build_entity_metadata(declaration, RELATIONAL)

    nested = post_declaration()
    nested["embeddeds"][0]["columns"] = [ColumnMetadata("counters")]
    with pytest.raises(DuplicatePropertyError):
        build_entity_metadata(nested, RELATIONAL)


def test_entity_state_requires_build() -> None:
    post = EntityMetadata(Post)
    with pytest.raises(NotBuiltError):
        post.column_database_name(ID)


def test_foreign_columns_are_rejected() -> None:
    post = build_entity_metadata(post_declaration(), RELATIONAL)
    with pytest.raises(InvalidArgError):
        post.column_database_name(ColumnMetadata("stranger"))


def test_nested_embed_cannot_sit_on_entity() -> None:
    post = EntityMetadata(Post)
    data = EmbeddedMetadata(post, {"property_name": "data", "type": PostData})
    counters = EmbeddedMetadata(post, {"property_name": "counters", "type": Counters})
    data.add_embedded(counters)

    with pytest.raises(InvalidArgError):
        post.add_embedded(counters)


def test_find_embedded_misses() -> None:
    post = build_entity_metadata(post_declaration(), RELATIONAL)
    assert post.find_embedded("missing") is None
    assert post.find_embedded("data.missing") is None


def test_embedded_values_on_instances() -> None:
    post_meta = build_entity_metadata(post_declaration(), RELATIONAL)
    counters = post_meta.find_embedded("data.counters")
    assert counters is not None

    post = Post()
    assert post_meta.get_embedded_value(post, counters) is None

    value = post_meta.ensure_embedded_value(post, counters)
    assert isinstance(post.data, PostData)
    assert isinstance(value, Counters)
    assert post.data.counters is value
    assert post_meta.get_embedded_value(post, counters) is value
    assert post_meta.ensure_embedded_value(post, counters) is value


def test_array_embed_values_are_not_created_implicitly() -> None:
    declaration = {
        "target": Post,
        "embeddeds": [{"property_name": "tags", "type": Tag, "is_array": True}],
    }
    post_meta = build_entity_metadata(declaration, DOCUMENT)
    tags = post_meta.find_embedded("tags")
    assert tags is not None

    post = Post()
    assert post_meta.ensure_embedded_value(post, tags) == []
    assert post.tags == []
