"""Content records delivered by the content service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Literal, Optional, Sequence, Tuple, Union

from .locator import EntityKind, EntityRef


LOGGER = logging.getLogger(__name__)


TIERS: Tuple[str, ...] = ("L1", "L2", "L3")

TIER_LABELS: Dict[str, str] = {
    "L1": "Beginner",
    "L2": "Intermediate",
    "L3": "Advanced",
}

QuestionKind = Literal["objective", "subjective"]


def tier_label(tier: Optional[str]) -> str:
    """Return the difficulty label for *tier*, ``Advanced`` for anything unknown."""

    return TIER_LABELS.get(tier or "", TIER_LABELS["L3"])


def payload_id(payload: Mapping) -> str:
    """Return the identifier of a backend object (``_id`` or ``id``)."""

    raw = payload.get("_id")
    if raw in (None, ""):
        raw = payload.get("id")
    return "" if raw is None else str(raw)


def _text(payload: Mapping, *keys: str) -> str:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _optional_text(payload: Mapping, key: str) -> Optional[str]:
    value = payload.get(key)
    if value in (None, ""):
        return None
    return str(value)


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _answer_index(value: Any) -> int:
    """Return *value* as an option index; whole floats such as ``1.0`` count."""

    if isinstance(value, bool):
        raise ValueError("correctAnswer is not an index")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError("correctAnswer is not an index")


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    LOGGER.debug("Expected a list, got %s; treating as empty", type(value).__name__)
    return []


@dataclass
class ContentItem:
    """Header information for the book, chapter, topic or subtopic."""

    id: str
    title: str
    description: str = ""
    cover_image: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ContentItem":
        if not isinstance(payload, Mapping):
            return cls(id="", title="")
        return cls(
            id=payload_id(payload),
            title=_text(payload, "title", "name"),
            description=_text(payload, "description"),
            cover_image=_optional_text(payload, "coverImage"),
        )


@dataclass
class Summary:
    id: str
    content: str
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping) -> "Summary":
        return cls(
            id=payload_id(payload),
            content=_text(payload, "content"),
            created_at=_optional_text(payload, "createdAt"),
        )


@dataclass
class Video:
    id: str
    title: str
    url: str
    description: str = ""
    video_type: Optional[str] = None
    youtube_video_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    embed_url: Optional[str] = None
    duration: Optional[int] = None
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping) -> "Video":
        duration = _as_int(payload.get("duration"), default=-1)
        return cls(
            id=payload_id(payload),
            title=_text(payload, "title"),
            url=_text(payload, "url"),
            description=_text(payload, "description"),
            video_type=_optional_text(payload, "videoType"),
            youtube_video_id=_optional_text(payload, "youtubeVideoId"),
            thumbnail_url=_optional_text(payload, "thumbnailUrl"),
            embed_url=_optional_text(payload, "embedUrl"),
            duration=duration if duration >= 0 else None,
            created_at=_optional_text(payload, "createdAt"),
        )


@dataclass
class PreviousYearQuestion:
    id: str
    question: str
    year: str = ""
    source: Optional[str] = None
    difficulty: Optional[str] = None
    answer: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def heading(self) -> str:
        return f"{self.source} - {self.year}" if self.source else self.year

    @classmethod
    def from_payload(cls, payload: Mapping) -> "PreviousYearQuestion":
        return cls(
            id=payload_id(payload),
            question=_text(payload, "question"),
            year=_text(payload, "year"),
            source=_optional_text(payload, "source"),
            difficulty=_optional_text(payload, "difficulty"),
            answer=_optional_text(payload, "answer"),
            created_at=_optional_text(payload, "createdAt"),
        )


@dataclass
class ObjectiveQuestion:
    """Multiple-choice question; ``correct_answer`` indexes ``options``."""

    id: str
    question: str
    options: List[str]
    correct_answer: int
    created_at: Optional[str] = None
    question_set_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ObjectiveQuestion":
        """Build a question or raise :class:`ValueError` if *payload* is not one."""

        if not isinstance(payload, Mapping):
            raise ValueError("question payload is not an object")
        text = payload.get("question")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("question text is missing")
        options = payload.get("options")
        if not isinstance(options, list) or not options:
            raise ValueError("question has no options")
        if not all(isinstance(option, str) for option in options):
            raise ValueError("question options must be text")
        correct = _answer_index(payload.get("correctAnswer"))
        if not 0 <= correct < len(options):
            raise ValueError(f"correctAnswer {correct} is outside {len(options)} options")
        return cls(
            id=payload_id(payload),
            question=text,
            options=list(options),
            correct_answer=correct,
            created_at=_optional_text(payload, "createdAt"),
            question_set_id=question_set_reference(payload),
        )

    def is_correct(self, selected_index: int) -> bool:
        return selected_index == self.correct_answer


@dataclass
class SubjectiveQuestion:
    """Open-ended question with a model answer."""

    id: str
    question: str
    answer: str = ""
    keywords: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def keyword_list(self) -> List[str]:
        if not self.keywords:
            return []
        return [keyword.strip() for keyword in self.keywords.split(",") if keyword.strip()]

    @classmethod
    def from_payload(cls, payload: Any) -> "SubjectiveQuestion":
        if not isinstance(payload, Mapping):
            raise ValueError("question payload is not an object")
        text = _text(payload, "question")
        if not text.strip():
            raise ValueError("question text is missing")
        return cls(
            id=payload_id(payload),
            question=text,
            answer=_text(payload, "answer"),
            keywords=_optional_text(payload, "keywords"),
            created_at=_optional_text(payload, "createdAt"),
        )


Question = Union[ObjectiveQuestion, SubjectiveQuestion]
QuestionEntry = Union[ObjectiveQuestion, SubjectiveQuestion, str]


def question_set_reference(payload: Mapping) -> Optional[str]:
    """Return the id of the set a raw question belongs to, if it names one.

    The reference is either the id itself or a nested set object.
    """

    reference = payload.get("questionSet")
    if isinstance(reference, Mapping):
        nested = payload_id(reference)
        return nested or None
    if reference in (None, ""):
        return None
    return str(reference)


def parse_question(payload: Any, kind: QuestionKind) -> Question:
    if kind == "objective":
        return ObjectiveQuestion.from_payload(payload)
    return SubjectiveQuestion.from_payload(payload)


def _parse_entry(entry: Any, kind: QuestionKind) -> QuestionEntry:
    if isinstance(entry, Mapping):
        try:
            return parse_question(entry, kind)
        except ValueError as error:
            LOGGER.debug("Keeping question %s as a reference: %s", payload_id(entry), error)
            return payload_id(entry)
    return "" if entry is None else str(entry)


@dataclass
class QuestionSetSummary:
    """A leveled set of questions whose bodies may not be embedded yet."""

    id: str
    name: str
    description: str = ""
    level: str = "L1"
    total_questions: int = 0
    questions: List[QuestionEntry] = field(default_factory=list)
    kind: QuestionKind = "objective"
    resolution_failed: bool = False
    resolution_source: Optional[str] = None

    @property
    def is_populated(self) -> bool:
        """``True`` when every entry carries a full question body."""

        if not self.questions:
            return False
        return all(
            isinstance(entry, (ObjectiveQuestion, SubjectiveQuestion)) for entry in self.questions
        )

    @property
    def display_count(self) -> int:
        return len(self.questions) or self.total_questions

    @property
    def level_label(self) -> str:
        return tier_label(self.level)

    @classmethod
    def from_payload(
        cls,
        payload: Mapping,
        *,
        kind: QuestionKind,
        level: Optional[str] = None,
    ) -> "QuestionSetSummary":
        entries = [_parse_entry(entry, kind) for entry in _as_list(payload.get("questions"))]
        return cls(
            id=payload_id(payload),
            name=_text(payload, "name", "title"),
            description=_text(payload, "description"),
            level=_text(payload, "level") or level or "L1",
            total_questions=_as_int(payload.get("totalQuestions")),
            questions=entries,
            kind=kind,
        )


class TieredSets(Mapping):
    """Question sets grouped by difficulty, always keyed ``L1``, ``L2``, ``L3``."""

    def __init__(self, tiers: Optional[Mapping[str, Sequence[QuestionSetSummary]]] = None) -> None:
        source = tiers or {}
        self._tiers: Dict[str, List[QuestionSetSummary]] = {
            tier: list(source.get(tier) or ()) for tier in TIERS
        }

    def __getitem__(self, tier: str) -> List[QuestionSetSummary]:
        return self._tiers[tier]

    def __iter__(self) -> Iterator[str]:
        return iter(TIERS)

    def __len__(self) -> int:
        return len(TIERS)

    def __repr__(self) -> str:
        counts = ", ".join(f"{tier}={len(self._tiers[tier])}" for tier in TIERS)
        return f"TieredSets({counts})"

    @property
    def total_sets(self) -> int:
        return sum(len(sets) for sets in self._tiers.values())

    def find(self, set_id: str) -> Optional[Tuple[str, QuestionSetSummary]]:
        for tier in TIERS:
            for question_set in self._tiers[tier]:
                if question_set.id == set_id:
                    return tier, question_set
        return None

    @classmethod
    def from_payload(cls, raw: Any, *, kind: QuestionKind) -> "TieredSets":
        """Normalize a tier mapping (or a flat list of sets) from the backend."""

        tiers: Dict[str, List[QuestionSetSummary]] = {tier: [] for tier in TIERS}
        if isinstance(raw, Mapping):
            for key, sets in raw.items():
                if key not in tiers:
                    LOGGER.debug("Ignoring unknown %s tier '%s'", kind, key)
                    continue
                for entry in _as_list(sets):
                    if isinstance(entry, Mapping):
                        tiers[key].append(QuestionSetSummary.from_payload(entry, kind=kind, level=key))
        elif isinstance(raw, list):
            for entry in raw:
                if not isinstance(entry, Mapping):
                    continue
                question_set = QuestionSetSummary.from_payload(entry, kind=kind)
                if question_set.level not in tiers:
                    LOGGER.debug(
                        "Dropping %s set %s with unknown level '%s'",
                        kind,
                        question_set.id,
                        question_set.level,
                    )
                    continue
                tiers[question_set.level].append(question_set)
        elif raw is not None:
            LOGGER.debug("Unexpected %s set collection of type %s", kind, type(raw).__name__)
        return cls(tiers)


@dataclass
class AssetBundle:
    """Everything attached to one node of the content hierarchy."""

    ref: EntityRef
    item: ContentItem
    summaries: List[Summary] = field(default_factory=list)
    videos: List[Video] = field(default_factory=list)
    pyqs: List[PreviousYearQuestion] = field(default_factory=list)
    objective_sets: TieredSets = field(default_factory=TieredSets)
    subjective_sets: TieredSets = field(default_factory=TieredSets)

    @property
    def kind(self) -> EntityKind:
        return self.ref.kind

    def sets_for(self, kind: QuestionKind) -> TieredSets:
        return self.objective_sets if kind == "objective" else self.subjective_sets

    @classmethod
    def from_payload(cls, ref: EntityRef, payload: Mapping) -> "AssetBundle":
        return cls(
            ref=ref,
            item=ContentItem.from_payload(payload.get(ref.kind.value)),
            summaries=[
                Summary.from_payload(entry)
                for entry in _as_list(payload.get("summaries"))
                if isinstance(entry, Mapping)
            ],
            videos=[
                Video.from_payload(entry)
                for entry in _as_list(payload.get("videos"))
                if isinstance(entry, Mapping)
            ],
            pyqs=[
                PreviousYearQuestion.from_payload(entry)
                for entry in _as_list(payload.get("pyqs"))
                if isinstance(entry, Mapping)
            ],
            objective_sets=TieredSets.from_payload(
                payload.get("objectiveQuestionSets"), kind="objective"
            ),
            subjective_sets=TieredSets.from_payload(
                payload.get("subjectiveQuestionSets"), kind="subjective"
            ),
        )


__all__ = [
    "AssetBundle",
    "ContentItem",
    "ObjectiveQuestion",
    "PreviousYearQuestion",
    "Question",
    "QuestionEntry",
    "QuestionKind",
    "QuestionSetSummary",
    "SubjectiveQuestion",
    "Summary",
    "TIERS",
    "TIER_LABELS",
    "TieredSets",
    "Video",
    "parse_question",
    "payload_id",
    "question_set_reference",
    "tier_label",
]
