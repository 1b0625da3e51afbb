from __future__ import annotations

import pytest

from asset_viewer.services.locator import (
    BookRef,
    ChapterRef,
    EntityKind,
    InvalidReference,
    SubtopicRef,
    TopicRef,
    locate,
    parse_route,
)


@pytest.mark.parametrize(
    ("ids", "expected"),
    [
        (("b1", None, None, None), BookRef("b1")),
        (("b1", "c1", None, None), ChapterRef("b1", "c1")),
        (("b1", "c1", "t1", None), TopicRef("b1", "c1", "t1")),
        (("b1", "c1", "t1", "s1"), SubtopicRef("b1", "c1", "t1", "s1")),
    ],
)
def test_deepest_identifier_selects_the_kind(ids, expected) -> None:
    ref = locate(*ids)

    assert ref == expected
    assert ref.kind is expected.kind
    assert ref.item_id == [value for value in ids if value][-1]


@pytest.mark.parametrize(
    ("ids", "message"),
    [
        (("b1", None, "t1", None), "topic id given without chapter id"),
        (("b1", "c1", None, "s1"), "subtopic id given without topic id"),
        (("b1", None, None, "s1"), "subtopic id given without chapter id"),
        (("b1", "", "t1", "s1"), "subtopic id given without chapter id"),
    ],
)
def test_orphaned_identifiers_are_invalid(ids, message) -> None:
    with pytest.raises(InvalidReference) as excinfo:
        locate(*ids)

    assert message in str(excinfo.value)


@pytest.mark.parametrize("book_id", [None, "", "   "])
def test_missing_book_is_invalid(book_id) -> None:
    with pytest.raises(InvalidReference, match="No valid book or workbook ID provided"):
        locate(book_id, "c1")


def test_reference_ids_are_trimmed_and_validated() -> None:
    assert BookRef(" b1 ").book_id == "b1"
    with pytest.raises(InvalidReference, match="Missing chapter id"):
        ChapterRef("b1", " ")


def test_template_values_carry_every_ancestor() -> None:
    ref = SubtopicRef("b1", "c1", "t1", "s1")

    assert ref.kind is EntityKind.SUBTOPIC
    assert ref.template_values() == {
        "book_id": "b1",
        "chapter_id": "c1",
        "topic_id": "t1",
        "subtopic_id": "s1",
    }


def test_describe_names_each_level() -> None:
    assert TopicRef("b1", "c1", "t1").describe() == "book=b1 chapter=c1 topic=t1"
    assert BookRef("w1", is_workbook=True).describe() == "workbook=w1"


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/mobile-asset-view/b1", BookRef("b1")),
        ("mobile-asset-view/b1/chapters/c1", ChapterRef("b1", "c1")),
        ("/b1/chapters/c1/topics/t1", TopicRef("b1", "c1", "t1")),
        (
            "/mobile-asset-view/b1/chapters/c1/topics/t1/subtopics/s1/",
            SubtopicRef("b1", "c1", "t1", "s1"),
        ),
        ("/mobile-asset-view/workbooks/w1/chapters/c1", ChapterRef("w1", "c1", is_workbook=True)),
        ("/mobile-asset-view/b1?source=qr", BookRef("b1")),
    ],
)
def test_parse_route(path, expected) -> None:
    assert parse_route(path) == expected


@pytest.mark.parametrize(
    "path",
    [
        "",
        "/mobile-asset-view/",
        "/mobile-asset-view/workbooks",
        "/mobile-asset-view/b1/topics/t1",
        "/mobile-asset-view/b1/chapters",
        "/mobile-asset-view/b1/chapters/c1/extra",
        "/mobile-asset-view/b1/chapters/c1/subtopics/s1",
    ],
)
def test_parse_route_rejects_malformed_paths(path) -> None:
    with pytest.raises(InvalidReference):
        parse_route(path)
