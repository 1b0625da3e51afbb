"""FastAPI application exposing the asset viewer core as JSON."""

from __future__ import annotations

import contextlib
import contextvars
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, Field

from ..bootstrap import ViewerServices, build_services
from ..config import AppConfig
from ..services.aggregator import AggregationFailed
from ..services.events import EventKind, emit_event
from ..services.locator import InvalidReference, parse_route
from ..services.media import (
    complete_image_url,
    format_duration,
    video_embed_url,
    youtube_thumbnail_url,
)
from ..services.models import (
    TIERS,
    AssetBundle,
    ObjectiveQuestion,
    QuestionSetSummary,
    SubjectiveQuestion,
    TieredSets,
)
from ..services.transport import RequestContext


LOGGER = logging.getLogger("asset_viewer.web")

_REQUEST_ID_VAR: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "asset_viewer_request_id", default=None
)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def _log_event(message: str, **details: Any) -> None:
    emit_event(
        EventKind.API_REQUEST,
        message,
        details=details,
        correlation={"request_id": _REQUEST_ID_VAR.get()},
        logger=LOGGER,
    )


class QuestionSetPayload(BaseModel):
    id: str = Field(..., min_length=1, validation_alias=AliasChoices("_id", "id"))
    name: str = ""
    description: str = ""
    level: str = "L1"
    totalQuestions: int = 0
    questions: List[Any] = Field(default_factory=list)
    kind: str = "objective"


class AnswerPayload(BaseModel):
    selectedAnswer: int = Field(ge=0)


# ----------------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------------
def _serialize_question(question: Any) -> Any:
    if isinstance(question, ObjectiveQuestion):
        return {
            "_id": question.id,
            "question": question.question,
            "options": list(question.options),
            "correctAnswer": question.correct_answer,
            "createdAt": question.created_at,
        }
    if isinstance(question, SubjectiveQuestion):
        return {
            "_id": question.id,
            "question": question.question,
            "answer": question.answer,
            "keywords": question.keywords,
            "keywordList": question.keyword_list,
            "createdAt": question.created_at,
        }
    return question


def _serialize_set(question_set: QuestionSetSummary) -> Dict[str, Any]:
    return {
        "_id": question_set.id,
        "name": question_set.name,
        "description": question_set.description,
        "level": question_set.level,
        "levelLabel": question_set.level_label,
        "kind": question_set.kind,
        "totalQuestions": question_set.total_questions,
        "displayCount": question_set.display_count,
        "populated": question_set.is_populated,
        "questions": [_serialize_question(entry) for entry in question_set.questions],
    }


def _serialize_tiers(tiers: TieredSets) -> Dict[str, List[Dict[str, Any]]]:
    return {tier: [_serialize_set(entry) for entry in tiers[tier]] for tier in TIERS}


def _serialize_bundle(bundle: AssetBundle, *, asset_base_url: str) -> Dict[str, Any]:
    ref = bundle.ref
    return {
        "itemType": ref.kind.value,
        "itemId": ref.item_id,
        "isWorkbook": ref.is_workbook,
        "item": {
            "_id": bundle.item.id,
            "title": bundle.item.title,
            "description": bundle.item.description,
            "coverImage": complete_image_url(bundle.item.cover_image, asset_base_url),
        },
        "summaries": [
            {"_id": entry.id, "content": entry.content, "createdAt": entry.created_at}
            for entry in bundle.summaries
        ],
        "videos": [
            {
                "_id": video.id,
                "title": video.title,
                "description": video.description,
                "url": video.url,
                "embedUrl": video_embed_url(video),
                "thumbnailUrl": youtube_thumbnail_url(video),
                "duration": video.duration,
                "durationLabel": format_duration(video.duration),
            }
            for video in bundle.videos
        ],
        "pyqs": [
            {
                "_id": pyq.id,
                "heading": pyq.heading,
                "year": pyq.year,
                "source": pyq.source,
                "difficulty": pyq.difficulty,
                "question": pyq.question,
                "answer": pyq.answer,
                "createdAt": pyq.created_at,
            }
            for pyq in bundle.pyqs
        ],
        "objectiveQuestionSets": _serialize_tiers(bundle.objective_sets),
        "subjectiveQuestionSets": _serialize_tiers(bundle.subjective_sets),
    }


def _context_from(request: Request) -> RequestContext:
    return RequestContext.from_authorization(request.headers.get("authorization"))


# ----------------------------------------------------------------------
# Application factory
# ----------------------------------------------------------------------
def create_app(
    config: AppConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    services: Optional[ViewerServices] = None,
) -> FastAPI:
    """Return a configured FastAPI application."""

    services = services or build_services(config, transport=transport)

    @contextlib.asynccontextmanager
    async def _lifespan(_app: FastAPI):  # type: ignore[no-untyped-def]
        yield
        await services.telemetry.drain()

    app = FastAPI(
        title="QR Asset Viewer",
        description="Resolve QR-linked book content and question sets",
        lifespan=_lifespan,
    )
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _correlate(request: Request, call_next):  # type: ignore[no-untyped-def]
        token = _REQUEST_ID_VAR.set(request.headers.get("x-request-id") or _new_correlation_id())
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            LOGGER.debug("%s %s handled in %.1f ms", request.method, request.url.path, duration_ms)
            _REQUEST_ID_VAR.reset(token)
        return response

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/assets/{route:path}")
    async def get_assets(route: str, request: Request) -> Dict[str, Any]:
        try:
            ref = parse_route(route)
        except InvalidReference as error:
            _log_event("Rejected route", route=route, error=str(error))
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": f"Error: {error}", "kind": "invalid_reference", "retryable": False},
            ) from error

        _log_event("Resolving assets", ref=ref.describe())
        try:
            bundle = await services.aggregator.resolve(ref, context=_context_from(request))
        except AggregationFailed as error:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"error": f"Error: {error}", "kind": "aggregation_failed", "retryable": True},
            ) from error
        return _serialize_bundle(bundle, asset_base_url=config.api_base_url)

    @app.post("/api/question-sets/resolve")
    async def resolve_question_set(payload: QuestionSetPayload, request: Request) -> Dict[str, Any]:
        if payload.kind not in {"objective", "subjective"}:
            raise HTTPException(status_code=400, detail="kind must be objective or subjective")
        raw = {
            "_id": payload.id,
            "name": payload.name,
            "description": payload.description,
            "level": payload.level,
            "totalQuestions": payload.totalQuestions,
            "questions": payload.questions,
        }
        question_set = QuestionSetSummary.from_payload(raw, kind=payload.kind)  # type: ignore[arg-type]
        resolved = await services.resolver.resolve_questions(
            question_set, context=_context_from(request)
        )
        body = _serialize_set(resolved)
        body["state"] = "populated" if resolved.is_populated else "empty"
        body["resolutionFailed"] = resolved.resolution_failed
        body["canRetry"] = resolved.resolution_failed
        body["source"] = resolved.resolution_source
        _log_event("Resolved question set", set_id=resolved.id, state=body["state"])
        return body

    @app.post("/api/questions/{question_id}/answer")
    async def record_answer(
        question_id: str, payload: AnswerPayload, request: Request
    ) -> Dict[str, Any]:
        verdict = await services.telemetry.record_answer(
            question_id, payload.selectedAnswer, context=_context_from(request)
        )
        return {"isCorrect": verdict.is_correct, "ok": verdict.ok, "toast": verdict.toast()}

    @app.post("/api/videos/{video_id}/view", status_code=status.HTTP_202_ACCEPTED)
    async def record_video_view(video_id: str, request: Request) -> Dict[str, Any]:
        services.telemetry.record_video_view(video_id, context=_context_from(request))
        return {"accepted": True}

    return app


__all__ = ["create_app"]
