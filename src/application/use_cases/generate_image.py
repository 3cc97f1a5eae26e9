from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.domain.entities.operation import (
    OperationKind,
    OperationRequest,
    kind_of,
    produces_image,
)
from src.domain.entities.outcome import OperationOutcome, TransportError
from src.domain.services.request_builder import ProviderRequest, RequestBuilder
from src.domain.services.response_classifier import ResponseClassifier

logger = logging.getLogger(__name__)

# Human-readable context used in outcome messages
CONTEXT_LABELS: dict[OperationKind, str] = {
    OperationKind.EDIT: "edit",
    OperationKind.FILTER: "filter",
    OperationKind.ADJUST: "adjustment",
    OperationKind.TEXT_TO_IMAGE: "text-to-image",
    OperationKind.REFERENCE: "reference-based generation",
    OperationKind.OPTIMIZE_PROMPT: "prompt optimization",
    OperationKind.ANALYZE: "image analysis",
}


class ImageModelTransport(Protocol):
    async def generate(self, request: ProviderRequest) -> dict[str, Any]:
        """Send the request and return the raw camelCase response envelope."""
        ...


@dataclass
class GenerateImageUseCase:
    """Stateless build -> send -> classify. Never touches an editing history."""

    transport: ImageModelTransport
    builder: RequestBuilder = field(default_factory=RequestBuilder)
    classifier: ResponseClassifier = field(default_factory=ResponseClassifier)

    def prepare(self, request: OperationRequest) -> ProviderRequest:
        return self.builder.build(request)

    async def execute(self, request: OperationRequest) -> OperationOutcome:
        return await self.send(request, self.prepare(request))

    async def send(self, request: OperationRequest, provider_request: ProviderRequest) -> OperationOutcome:
        kind = kind_of(request)
        context = CONTEXT_LABELS[kind]
        logger.info("Sending %s request with %d part(s)", kind.value, len(provider_request.parts))
        try:
            raw = await self.transport.generate(provider_request)
        except Exception as exc:
            logger.error("Transport failure for %s: %s: %s", kind.value, type(exc).__name__, exc)
            return TransportError(detail=str(exc) or type(exc).__name__, context=context)

        if produces_image(request):
            outcome = self.classifier.classify_image(raw, context)
        else:
            outcome = self.classifier.classify_text(raw, context)
        logger.info("Classified %s response as %s", kind.value, type(outcome).__name__)
        return outcome
