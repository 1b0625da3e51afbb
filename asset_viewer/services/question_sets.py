"""Fill in question bodies for sets that arrive with bare references.

The question listing API differs between content-service deployments, so
questions are looked up through an ordered list of sources and the first
source that produces a complete, well-formed list wins. Each source is tried
at most once per call; retrying is left to the user.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Awaitable, Callable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from ..config import EndpointTemplates
from .events import emit_resolution_event
from .models import ObjectiveQuestion, QuestionSetSummary, question_set_reference
from .transport import ContentServiceClient, RequestContext, render


LOGGER = logging.getLogger(__name__)


SourceFetch = Callable[[str, Optional[RequestContext]], Awaitable[List[Any]]]


class QuestionSource(NamedTuple):
    """A named way of fetching raw question payloads for a set id."""

    name: str
    fetch: SourceFetch


class ResolutionExhausted(RuntimeError):
    """Raised internally when no source produced questions for a set."""

    def __init__(self, set_id: str, failures: Sequence[Tuple[str, str]]) -> None:
        reasons = "; ".join(f"{name}: {reason}" for name, reason in failures)
        super().__init__(f"No questions could be loaded for set {set_id} ({reasons})")
        self.set_id = set_id
        self.failures = list(failures)


def extract_questions(response: Any) -> List[Any]:
    """Return the question list from a bare list or a ``{"questions": [...]}`` body."""

    if isinstance(response, list):
        return response
    if isinstance(response, Mapping):
        questions = response.get("questions")
        if isinstance(questions, list):
            return questions
    return []


def parse_complete(raw_questions: Sequence[Any]) -> List[ObjectiveQuestion]:
    """Parse every entry or raise :class:`ValueError` naming the first bad one."""

    parsed: List[ObjectiveQuestion] = []
    for index, entry in enumerate(raw_questions):
        try:
            parsed.append(ObjectiveQuestion.from_payload(entry))
        except ValueError as error:
            raise ValueError(f"entry {index} is not a full question ({error})") from error
    return parsed


def build_default_sources(
    client: ContentServiceClient, endpoints: EndpointTemplates
) -> List[QuestionSource]:
    """Return the by-set, by-query and filter-in-memory sources, in that order."""

    async def by_set(set_id: str, context: Optional[RequestContext]) -> List[Any]:
        response = await client.get_json(
            render(endpoints.set_questions, set_id=set_id), context=context
        )
        return extract_questions(response)

    async def by_query(set_id: str, context: Optional[RequestContext]) -> List[Any]:
        response = await client.get_json(
            endpoints.questions, params={"questionSet": set_id}, context=context
        )
        return extract_questions(response)

    async def filter_in_memory(set_id: str, context: Optional[RequestContext]) -> List[Any]:
        response = await client.get_json(endpoints.questions, context=context)
        return [
            entry
            for entry in extract_questions(response)
            if isinstance(entry, Mapping) and question_set_reference(entry) == set_id
        ]

    return [
        QuestionSource("by-set", by_set),
        QuestionSource("by-query", by_query),
        QuestionSource("filter-in-memory", filter_in_memory),
    ]


class QuestionSetResolver:
    """Resolve objective question sets into fully populated copies."""

    def __init__(
        self,
        client: ContentServiceClient,
        endpoints: EndpointTemplates,
        *,
        sources: Optional[Sequence[QuestionSource]] = None,
    ) -> None:
        self._sources: List[QuestionSource] = (
            list(sources) if sources is not None else build_default_sources(client, endpoints)
        )

    @property
    def sources(self) -> List[QuestionSource]:
        return list(self._sources)

    async def resolve_questions(
        self,
        question_set: QuestionSetSummary,
        *,
        context: Optional[RequestContext] = None,
    ) -> QuestionSetSummary:
        """Return *question_set* with full questions, or empty and flagged as failed.

        Populated sets and subjective sets are returned unchanged without any
        request. Exhaustion of every source is reported on the returned copy
        and never raised.
        """

        if question_set.kind != "objective" or question_set.is_populated:
            return question_set

        emit_resolution_event(
            "Resolving question set",
            details={
                "set_id": question_set.id,
                "entries": len(question_set.questions),
                "total_questions": question_set.total_questions,
            },
            level=logging.DEBUG,
        )
        try:
            source_name, questions = await self._resolve_or_raise(question_set.id, context)
        except ResolutionExhausted as error:
            emit_resolution_event(
                "Question set resolution exhausted",
                details={"set_id": question_set.id, "reason": str(error)},
                level=logging.ERROR,
            )
            return dataclasses.replace(
                question_set,
                questions=[],
                resolution_failed=True,
                resolution_source=None,
            )

        emit_resolution_event(
            "Question set resolved",
            details={"set_id": question_set.id, "source": source_name, "questions": len(questions)},
        )
        return dataclasses.replace(
            question_set,
            questions=list(questions),
            resolution_failed=False,
            resolution_source=source_name,
        )

    async def _resolve_or_raise(
        self, set_id: str, context: Optional[RequestContext]
    ) -> Tuple[str, List[ObjectiveQuestion]]:
        failures: List[Tuple[str, str]] = []
        for source in self._sources:
            questions, ok, reason = await self._attempt(source, set_id, context)
            if ok:
                return source.name, questions
            failures.append((source.name, reason))
        raise ResolutionExhausted(set_id, failures)

    async def _attempt(
        self,
        source: QuestionSource,
        set_id: str,
        context: Optional[RequestContext],
    ) -> Tuple[List[ObjectiveQuestion], bool, str]:
        try:
            raw_questions = await source.fetch(set_id, context)
        except Exception as error:  # noqa: BLE001 - any source failure moves on to the next one
            reason = f"{error.__class__.__name__}: {error}"
            LOGGER.warning("Question source %s failed for set %s: %s", source.name, set_id, reason)
            return [], False, reason

        if not raw_questions:
            LOGGER.warning("Question source %s returned no questions for set %s", source.name, set_id)
            return [], False, "empty result"

        try:
            questions = parse_complete(raw_questions)
        except ValueError as error:
            LOGGER.warning(
                "Question source %s returned malformed questions for set %s: %s",
                source.name,
                set_id,
                error,
            )
            return [], False, str(error)

        return questions, True, ""


__all__ = [
    "QuestionSetResolver",
    "QuestionSource",
    "ResolutionExhausted",
    "build_default_sources",
    "extract_questions",
    "parse_complete",
]
