from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

from src.domain.entities.operation import OperationKind
from src.domain.services.request_builder import (
    Capability,
    InlineDataPart,
    ProviderRequest,
    TextPart,
)
from src.infrastructure.config import Settings

logger = logging.getLogger(__name__)


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value))


def response_to_envelope(response: Any) -> dict[str, Any]:
    """Normalize a google-genai response into the camelCase envelope the classifier reads."""
    envelope: dict[str, Any] = {}

    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        envelope["promptFeedback"] = {
            "blockReason": _enum_value(feedback.block_reason),
            "blockReasonMessage": getattr(feedback, "block_reason_message", None),
        }

    candidates: list[dict[str, Any]] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        parts: list[dict[str, Any]] = []
        for part in (getattr(content, "parts", None) or []) if content is not None else []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                parts.append(
                    {
                        "inlineData": {
                            "mimeType": inline.mime_type,
                            "data": base64.b64encode(inline.data).decode("ascii"),
                        }
                    }
                )
            elif getattr(part, "text", None) and not getattr(part, "thought", False):
                parts.append({"text": part.text})
        item: dict[str, Any] = {"content": {"parts": parts}}
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason:
            item["finishReason"] = _enum_value(finish_reason)
        candidates.append(item)
    if candidates:
        envelope["candidates"] = candidates
        envelope["text"] = "".join(p["text"] for p in candidates[0]["content"]["parts"] if "text" in p)
    return envelope


class GeminiTransport:
    """Sends ProviderRequests to Gemini through :mod:`google.genai`.

    The SDK client is created on first use; the blocking SDK call runs in a worker
    thread so the event loop stays free while a request is pending.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: Any | None = None
        self._types: Any | None = None

    def _load(self) -> tuple[Any, Any]:
        if self._client is None:
            if not self.settings.gemini_api_key:
                raise RuntimeError("GEMINI_API_KEY is not set")
            from google import genai
            from google.genai import types

            kwargs: dict[str, Any] = {"api_key": self.settings.gemini_api_key}
            if self.settings.gemini_base_url:
                kwargs["http_options"] = types.HttpOptions(base_url=self.settings.gemini_base_url)
            self._client = genai.Client(**kwargs)
            self._types = types
        return self._client, self._types

    def model_for(self, request: ProviderRequest) -> str:
        if request.capability is Capability.IMAGE_GENERATION:
            return self.settings.image_model
        if request.kind is OperationKind.ANALYZE:
            return self.settings.analysis_model
        return self.settings.text_model

    def build_contents(self, request: ProviderRequest, types: Any) -> Any:
        parts = []
        for part in request.parts:
            if isinstance(part, InlineDataPart):
                parts.append(types.Part.from_bytes(data=part.asset.data, mime_type=part.asset.mime_type))
            elif isinstance(part, TextPart):
                parts.append(types.Part.from_text(text=part.text))
        return types.Content(role="user", parts=parts)

    async def generate(self, request: ProviderRequest) -> dict[str, Any]:
        client, types = self._load()
        model = self.model_for(request)
        contents = self.build_contents(request, types)
        logger.debug("Calling %s for %s", model, request.kind.value)
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=model,
            contents=contents,
        )
        logger.debug("Received response from %s for %s", model, request.kind.value)
        return response_to_envelope(response)
