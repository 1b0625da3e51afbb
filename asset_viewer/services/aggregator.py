"""Fetch the aggregated content bundle for one hierarchy node."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..config import EndpointTemplates
from .locator import EntityRef
from .models import AssetBundle
from .transport import ContentServiceClient, RequestContext, TransportError, render


LOGGER = logging.getLogger(__name__)


class AggregationFailed(RuntimeError):
    """Raised when the bundle for a reference could not be fetched."""

    def __init__(self, message: str, *, ref: Optional[EntityRef] = None) -> None:
        super().__init__(message)
        self.ref = ref


class ContentAggregator:
    """Resolve an :class:`EntityRef` with a single request.

    The content service performs the joins; this class only picks the
    endpoint for the reference kind and normalizes the response.
    """

    def __init__(self, client: ContentServiceClient, endpoints: EndpointTemplates) -> None:
        self._client = client
        self._endpoints = endpoints

    def path_for(self, ref: EntityRef) -> str:
        template = self._endpoints.for_kind(ref.kind.value)
        return render(template, **ref.template_values())

    async def resolve(
        self, ref: EntityRef, *, context: Optional[RequestContext] = None
    ) -> AssetBundle:
        path = self.path_for(ref)
        LOGGER.debug("Resolving %s via %s", ref.describe(), path)
        try:
            payload = await self._client.get_json(path, context=context)
        except TransportError as error:
            LOGGER.error("Error fetching item details for %s: %s", ref.describe(), error)
            raise AggregationFailed(str(error), ref=ref) from error

        if not isinstance(payload, Mapping):
            LOGGER.error("Bundle for %s is not an object", ref.describe())
            raise AggregationFailed("Unexpected response from content service", ref=ref)

        try:
            bundle = AssetBundle.from_payload(ref, payload)
        except (TypeError, ValueError, OverflowError) as error:
            LOGGER.error("Bundle for %s could not be read: %s", ref.describe(), error)
            raise AggregationFailed("Unexpected response from content service", ref=ref) from error
        if not bundle.item.id and not bundle.item.title:
            LOGGER.warning("Bundle for %s carries no %s details", ref.describe(), ref.kind.value)
        LOGGER.info(
            "Resolved %s: %d summaries, %d videos, %d pyqs, %d objective sets, %d subjective sets",
            ref.describe(),
            len(bundle.summaries),
            len(bundle.videos),
            len(bundle.pyqs),
            bundle.objective_sets.total_sets,
            bundle.subjective_sets.total_sets,
        )
        return bundle


__all__ = ["AggregationFailed", "ContentAggregator"]
