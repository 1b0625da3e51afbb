"""State of one mounted asset view, independent of how it is rendered."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional

from .aggregator import AggregationFailed, ContentAggregator
from .locator import EntityRef, InvalidReference, parse_route
from .models import AssetBundle, QuestionKind, QuestionSetSummary
from .question_sets import QuestionSetResolver
from .telemetry import TelemetryEmitter
from .transport import RequestContext


LOGGER = logging.getLogger(__name__)


LOAD_FAILED_TOAST = "Failed to load questions for this set"


class SetState(str, Enum):
    COLLAPSED = "collapsed"
    LOADING = "loading"
    POPULATED = "populated"
    EMPTY_CONFIRMED = "empty"


@dataclass
class SetView:
    """The question set currently opened from the tier list."""

    tier: str
    question_set: QuestionSetSummary
    state: SetState = SetState.COLLAPSED

    @property
    def can_retry(self) -> bool:
        return self.state is SetState.EMPTY_CONFIRMED and self.question_set.resolution_failed

    @property
    def empty_hint(self) -> str:
        if self.question_set.total_questions > 0:
            return "Questions could not be loaded. Please try again later."
        return "This set appears to be empty."


@dataclass
class ViewError:
    kind: Literal["invalid_reference", "aggregation_failed"]
    message: str
    retryable: bool


@dataclass
class Toast:
    level: Literal["success", "error"]
    message: str


@dataclass
class AssetViewSession:
    """Coordinates bundle loading, set resolution and telemetry for one view.

    Only the most recent navigation may install a bundle; responses for
    earlier references are dropped when they arrive.
    """

    aggregator: ContentAggregator
    resolver: QuestionSetResolver
    telemetry: TelemetryEmitter
    context: Optional[RequestContext] = None

    ref: Optional[EntityRef] = None
    bundle: Optional[AssetBundle] = None
    error: Optional[ViewError] = None
    loading: bool = False
    open_set_view: Optional[SetView] = None
    selections: Dict[str, int] = field(default_factory=dict)
    playing_video: Optional[str] = None
    toasts: List[Toast] = field(default_factory=list)
    _generation: int = field(default=0, init=False, repr=False)

    async def navigate(self, ref: EntityRef) -> bool:
        """Load the bundle for *ref*; ``True`` when it was installed."""

        self._generation += 1
        generation = self._generation
        self.ref = ref
        self.bundle = None
        self.error = None
        self.loading = True
        self.open_set_view = None
        self.selections.clear()
        self.playing_video = None

        try:
            bundle = await self.aggregator.resolve(ref, context=self.context)
        except AggregationFailed as error:
            if generation != self._generation:
                LOGGER.debug("Ignoring failure for superseded navigation to %s", ref.describe())
                return False
            self.loading = False
            self.error = ViewError("aggregation_failed", f"Error: {error}", retryable=True)
            return False

        if generation != self._generation or self.ref != ref:
            LOGGER.info("Discarding stale bundle for %s", ref.describe())
            return False

        self.bundle = bundle
        self.loading = False
        return True

    async def navigate_route(self, path: str) -> bool:
        try:
            ref = parse_route(path)
        except InvalidReference as error:
            self._generation += 1
            self.ref = None
            self.bundle = None
            self.loading = False
            self.open_set_view = None
            self.error = ViewError("invalid_reference", f"Error: {error}", retryable=False)
            LOGGER.warning("Rejected route '%s': %s", path, error)
            return False
        return await self.navigate(ref)

    async def retry(self) -> bool:
        """Re-resolve the current reference after a retryable failure."""

        if self.ref is None or self.error is None or not self.error.retryable:
            return False
        return await self.navigate(self.ref)

    def _find_set(self, kind: QuestionKind, tier: str, set_id: str) -> QuestionSetSummary:
        if self.bundle is None:
            raise LookupError("No bundle is loaded")
        for question_set in self.bundle.sets_for(kind)[tier]:
            if question_set.id == set_id:
                return question_set
        raise LookupError(f"No {kind} set {set_id} in tier {tier}")

    async def open_set(self, kind: QuestionKind, tier: str, set_id: str) -> SetView:
        view = SetView(tier=tier, question_set=self._find_set(kind, tier, set_id))
        self.open_set_view = view
        await self._load(view)
        return view

    async def retry_set(self) -> Optional[SetView]:
        view = self.open_set_view
        if view is None:
            return None
        if not view.can_retry:
            LOGGER.debug("Retry ignored for set %s in state %s", view.question_set.id, view.state.value)
            return view
        await self._load(view)
        return view

    def close_set(self) -> None:
        """Return to the set list; resolved questions are not kept."""

        self.open_set_view = None

    async def _load(self, view: SetView) -> None:
        view.state = SetState.LOADING
        question_set = view.question_set
        if question_set.kind == "objective":
            question_set = await self.resolver.resolve_questions(question_set, context=self.context)
            if self.open_set_view is not view:
                LOGGER.debug("Set %s was closed while loading", question_set.id)
                return
            if question_set.resolution_failed:
                self.toasts.append(Toast("error", LOAD_FAILED_TOAST))

        view.question_set = question_set
        view.state = SetState.POPULATED if question_set.is_populated else SetState.EMPTY_CONFIRMED

    async def answer(self, question_id: str, selected_index: int) -> Toast:
        """Record the selection and report the verdict as a toast."""

        self.selections[question_id] = selected_index
        verdict = await self.telemetry.record_answer(
            question_id, selected_index, context=self.context
        )
        toast = Toast("success" if verdict.ok else "error", verdict.toast())
        self.toasts.append(toast)
        return toast

    def play_video(self, video_id: str) -> None:
        self.playing_video = video_id
        self.telemetry.record_video_view(video_id, context=self.context)


__all__ = [
    "AssetViewSession",
    "LOAD_FAILED_TOAST",
    "SetState",
    "SetView",
    "Toast",
    "ViewError",
]
