"""Core services: locating, aggregating, resolving and recording."""

from .aggregator import AggregationFailed, ContentAggregator
from .locator import (
    BookRef,
    ChapterRef,
    EntityKind,
    EntityRef,
    InvalidReference,
    SubtopicRef,
    TopicRef,
    locate,
    parse_route,
)
from .question_sets import QuestionSetResolver, QuestionSource, ResolutionExhausted
from .telemetry import AnswerVerdict, TelemetryEmitter, TelemetryFailed
from .transport import ContentServiceClient, RequestContext, TransportError
from .view_session import AssetViewSession, SetState, SetView, Toast, ViewError

__all__ = [
    "AggregationFailed",
    "AnswerVerdict",
    "AssetViewSession",
    "BookRef",
    "ChapterRef",
    "ContentAggregator",
    "ContentServiceClient",
    "EntityKind",
    "EntityRef",
    "InvalidReference",
    "QuestionSetResolver",
    "QuestionSource",
    "RequestContext",
    "ResolutionExhausted",
    "SetState",
    "SetView",
    "SubtopicRef",
    "TelemetryEmitter",
    "TelemetryFailed",
    "Toast",
    "TopicRef",
    "TransportError",
    "ViewError",
    "locate",
    "parse_route",
]
