"""Fire-and-forget recording of video views and answers."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Set

from ..config import EndpointTemplates
from .events import emit_telemetry_event
from .transport import ContentServiceClient, RequestContext, TransportError, render


LOGGER = logging.getLogger(__name__)


class TelemetryFailed(RuntimeError):
    """Raised inside the emitter when an event could not be delivered."""


CORRECT_TOAST = "Correct answer!"
INCORRECT_TOAST = "Incorrect answer"
FAILED_TOAST = "Failed to record answer"


@dataclass(frozen=True)
class AnswerVerdict:
    is_correct: bool
    ok: bool

    def toast(self) -> str:
        if not self.ok:
            return FAILED_TOAST
        return CORRECT_TOAST if self.is_correct else INCORRECT_TOAST


class TelemetryEmitter:
    """Send view and answer events without ever raising to the caller."""

    def __init__(
        self,
        client: ContentServiceClient,
        endpoints: EndpointTemplates,
        *,
        max_attempts: int = 2,
        backoff_seconds: float = 0.5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._endpoints = endpoints
        self._max_attempts = max_attempts
        self._backoff_seconds = max(0.0, backoff_seconds)
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record_video_view(self, video_id: str, *, context: Optional[RequestContext] = None) -> None:
        """Schedule a view event on the running loop and return immediately."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning("No running event loop; dropping view event for video %s", video_id)
            return
        task = loop.create_task(self._deliver_video_view(video_id, context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for scheduled events to finish (used on shutdown)."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver_video_view(self, video_id: str, context: Optional[RequestContext]) -> None:
        path = render(self._endpoints.video_view, video_id=video_id)
        try:
            await self._post_with_attempts(path, None, context)
        except TelemetryFailed as error:
            emit_telemetry_event(
                "Error recording video view",
                details={"video_id": video_id, "error": str(error)},
                level=logging.WARNING,
            )
            return
        except Exception:  # noqa: BLE001 - a view event must not fail the loop
            LOGGER.exception("Unexpected error recording view for video %s", video_id)
            return
        emit_telemetry_event("Recorded video view", details={"video_id": video_id}, level=logging.DEBUG)

    async def _post_with_attempts(
        self,
        path: str,
        body: Optional[Mapping[str, Any]],
        context: Optional[RequestContext],
    ) -> Any:
        last_error: Optional[TransportError] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._client.post_json(path, body, context=context)
            except TransportError as error:
                last_error = error
                LOGGER.debug("Telemetry attempt %d/%d to %s failed: %s", attempt, self._max_attempts, path, error)
                # Client errors will not succeed on a second try.
                if error.status_code is not None and 400 <= error.status_code < 500:
                    break
                if attempt < self._max_attempts and self._backoff_seconds:
                    await asyncio.sleep(self._backoff_seconds * attempt)
        raise TelemetryFailed(str(last_error)) from last_error

    async def record_answer(
        self,
        question_id: str,
        selected_index: int,
        *,
        context: Optional[RequestContext] = None,
    ) -> AnswerVerdict:
        """Post one answer and return the server's verdict; failures give ``ok=False``."""

        path = render(self._endpoints.answer, question_id=question_id)
        try:
            data = await self._client.post_json(
                path, {"selectedAnswer": int(selected_index)}, context=context
            )
            verdict = _read_verdict(data)
        except (TransportError, TelemetryFailed) as error:
            emit_telemetry_event(
                "Error recording answer",
                details={"question_id": question_id, "selected": selected_index, "error": str(error)},
                level=logging.WARNING,
            )
            return AnswerVerdict(is_correct=False, ok=False)

        emit_telemetry_event(
            "Recorded answer",
            details={"question_id": question_id, "selected": selected_index, "correct": verdict},
            level=logging.DEBUG,
        )
        return AnswerVerdict(is_correct=verdict, ok=True)

    async def aclose(self) -> None:
        for task in list(self._pending):
            task.cancel()
        for task in list(self._pending):
            with contextlib.suppress(asyncio.CancelledError):
                await task


def _read_verdict(data: Any) -> bool:
    if isinstance(data, Mapping):
        verdict = data.get("isCorrect")
        if isinstance(verdict, bool):
            return verdict
    raise TelemetryFailed("Answer response carried no isCorrect flag")


__all__ = [
    "AnswerVerdict",
    "CORRECT_TOAST",
    "FAILED_TOAST",
    "INCORRECT_TOAST",
    "TelemetryEmitter",
    "TelemetryFailed",
]
