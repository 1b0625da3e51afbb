"""Turn QR route parameters into validated references to a content node."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple, Union


LOGGER = logging.getLogger(__name__)


ROUTE_PREFIX = "mobile-asset-view"
WORKBOOK_SEGMENT = "workbooks"

# Route keyword introducing each level below the book, in hierarchy order.
_CHILD_SEGMENTS: Tuple[Tuple[str, str], ...] = (
    ("chapters", "chapter_id"),
    ("topics", "topic_id"),
    ("subtopics", "subtopic_id"),
)


class InvalidReference(RuntimeError):
    """Raised when route parameters do not describe a single content node."""


class EntityKind(str, Enum):
    BOOK = "book"
    CHAPTER = "chapter"
    TOPIC = "topic"
    SUBTOPIC = "subtopic"


def _require(value: Optional[str], name: str) -> str:
    cleaned = str(value).strip() if value is not None else ""
    if not cleaned:
        raise InvalidReference(f"Missing {name.replace('_', ' ')}")
    return cleaned


class _EntityRefBase:
    """Behaviour shared by every reference variant."""

    kind: ClassVar[EntityKind]
    _id_fields: ClassVar[Tuple[str, ...]]

    def template_values(self) -> Dict[str, str]:
        """Identifiers keyed the way endpoint templates name them."""

        return {name: getattr(self, name) for name in self._id_fields}

    @property
    def item_id(self) -> str:
        """Identifier of the node itself (the deepest one)."""

        return getattr(self, self._id_fields[-1])

    def _validate(self) -> None:
        for name in self._id_fields:
            object.__setattr__(self, name, _require(getattr(self, name), name))

    def describe(self) -> str:
        label = "workbook" if self.is_workbook else "book"  # type: ignore[attr-defined]
        parts = [f"{label}={self.book_id}"]  # type: ignore[attr-defined]
        for name in self._id_fields[1:]:
            parts.append(f"{name[:-3]}={getattr(self, name)}")
        return " ".join(parts)


@dataclass(frozen=True)
class BookRef(_EntityRefBase):
    book_id: str
    is_workbook: bool = False

    kind: ClassVar[EntityKind] = EntityKind.BOOK
    _id_fields: ClassVar[Tuple[str, ...]] = ("book_id",)

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class ChapterRef(_EntityRefBase):
    book_id: str
    chapter_id: str
    is_workbook: bool = False

    kind: ClassVar[EntityKind] = EntityKind.CHAPTER
    _id_fields: ClassVar[Tuple[str, ...]] = ("book_id", "chapter_id")

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class TopicRef(_EntityRefBase):
    book_id: str
    chapter_id: str
    topic_id: str
    is_workbook: bool = False

    kind: ClassVar[EntityKind] = EntityKind.TOPIC
    _id_fields: ClassVar[Tuple[str, ...]] = ("book_id", "chapter_id", "topic_id")

    def __post_init__(self) -> None:
        self._validate()


@dataclass(frozen=True)
class SubtopicRef(_EntityRefBase):
    book_id: str
    chapter_id: str
    topic_id: str
    subtopic_id: str
    is_workbook: bool = False

    kind: ClassVar[EntityKind] = EntityKind.SUBTOPIC
    _id_fields: ClassVar[Tuple[str, ...]] = ("book_id", "chapter_id", "topic_id", "subtopic_id")

    def __post_init__(self) -> None:
        self._validate()


EntityRef = Union[BookRef, ChapterRef, TopicRef, SubtopicRef]


def _present(value: Optional[str]) -> bool:
    return bool(value and str(value).strip())


def locate(
    book_id: Optional[str],
    chapter_id: Optional[str] = None,
    topic_id: Optional[str] = None,
    subtopic_id: Optional[str] = None,
    *,
    is_workbook: bool = False,
) -> EntityRef:
    """Return the reference selected by the deepest identifier present.

    Every identifier below the book needs all of its ancestors; a subtopic
    without a topic is rejected rather than read as something shallower.
    """

    chain = [
        ("book id", book_id),
        ("chapter id", chapter_id),
        ("topic id", topic_id),
        ("subtopic id", subtopic_id),
    ]
    present = [_present(value) for _, value in chain]
    if not present[0]:
        raise InvalidReference("No valid book or workbook ID provided")

    depth = max(index for index, flag in enumerate(present) if flag)
    for index in range(depth):
        if not present[index]:
            orphan = chain[depth][0]
            missing = chain[index][0]
            raise InvalidReference(f"Invalid URL parameters: {orphan} given without {missing}")

    if depth == 0:
        return BookRef(book_id, is_workbook=is_workbook)  # type: ignore[arg-type]
    if depth == 1:
        return ChapterRef(book_id, chapter_id, is_workbook=is_workbook)  # type: ignore[arg-type]
    if depth == 2:
        return TopicRef(book_id, chapter_id, topic_id, is_workbook=is_workbook)  # type: ignore[arg-type]
    return SubtopicRef(
        book_id, chapter_id, topic_id, subtopic_id, is_workbook=is_workbook  # type: ignore[arg-type]
    )


def parse_route(path: str) -> EntityRef:
    """Parse a viewer route such as ``/mobile-asset-view/b1/chapters/c1``.

    The ``mobile-asset-view`` prefix is optional and ``workbooks/<id>`` may
    replace the book identifier.
    """

    segments: List[str] = [part for part in (path or "").split("?")[0].split("/") if part]
    if segments and segments[0] == ROUTE_PREFIX:
        segments = segments[1:]

    is_workbook = False
    if segments and segments[0] == WORKBOOK_SEGMENT:
        is_workbook = True
        segments = segments[1:]

    if not segments:
        raise InvalidReference("No valid book or workbook ID provided")

    values: Dict[str, Optional[str]] = {"book_id": segments[0]}
    remaining = segments[1:]
    for keyword, field_name in _CHILD_SEGMENTS:
        if not remaining:
            break
        if remaining[0] != keyword:
            raise InvalidReference(f"Invalid URL parameters: unexpected segment '{remaining[0]}'")
        if len(remaining) < 2:
            raise InvalidReference(f"Invalid URL parameters: '{keyword}' needs an identifier")
        values[field_name] = remaining[1]
        remaining = remaining[2:]

    if remaining:
        raise InvalidReference(f"Invalid URL parameters: unexpected segment '{remaining[0]}'")

    reference = locate(
        values.get("book_id"),
        values.get("chapter_id"),
        values.get("topic_id"),
        values.get("subtopic_id"),
        is_workbook=is_workbook,
    )
    LOGGER.debug("Parsed route '%s' as %s", path, reference.describe())
    return reference


__all__ = [
    "BookRef",
    "ChapterRef",
    "EntityKind",
    "EntityRef",
    "InvalidReference",
    "SubtopicRef",
    "TopicRef",
    "locate",
    "parse_route",
]
