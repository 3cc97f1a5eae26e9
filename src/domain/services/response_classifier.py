from __future__ import annotations

import logging
from typing import Any

from src.domain.entities.outcome import (
    Blocked,
    NoImageReturned,
    OperationOutcome,
    StoppedEarly,
    Success,
    SuccessText,
)
from src.domain.errors import InvalidAsset
from src.domain.services.data_uri import DataUriCodec

logger = logging.getLogger(__name__)

FINISH_REASON_STOP = "STOP"


def _first_candidate(response: dict[str, Any]) -> dict[str, Any]:
    candidates = response.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return {}
    return candidates[0]


def _parts(candidate: dict[str, Any]) -> list[dict[str, Any]]:
    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return []
    return [p for p in parts if isinstance(p, dict)]


def aggregated_text(response: dict[str, Any]) -> str:
    """Top-level `text` if the envelope has one, else the text parts of the first candidate."""
    text = response.get("text")
    if text is None:
        text = "".join(
            p["text"] for p in _parts(_first_candidate(response)) if isinstance(p.get("text"), str)
        )
    return text.strip() if isinstance(text, str) else ""


class ResponseClassifier:
    """Deterministic mapping of a provider response envelope to exactly one outcome.

    Checks run in priority order and the first match wins: an explicit block beats
    an image, an image beats a non-STOP finish reason, and that beats plain text.
    """

    def classify_image(self, response: dict[str, Any], context: str = "image") -> OperationOutcome:
        response = response or {}
        blocked = self._blocked(response, context)
        if blocked is not None:
            return blocked

        candidate = _first_candidate(response)
        for part in _parts(candidate):
            inline = part.get("inlineData")
            if not isinstance(inline, dict) or not inline:
                continue
            try:
                asset = DataUriCodec.from_base64(inline.get("mimeType") or "", inline.get("data") or "")
            except InvalidAsset as exc:
                logger.warning("Malformed inline image data for %s: %s", context, exc)
                return NoImageReturned(text=f"malformed image data ({exc})", context=context)
            logger.info("Received image data (%s) for %s", asset.mime_type, context)
            return Success(asset=asset, context=context)

        finish_reason = candidate.get("finishReason")
        if finish_reason and finish_reason != FINISH_REASON_STOP:
            logger.warning("Image generation for %s stopped early: %s", context, finish_reason)
            return StoppedEarly(reason=str(finish_reason), context=context)

        text = aggregated_text(response)
        logger.warning("Model response did not contain an image part for %s", context)
        return NoImageReturned(text=text or None, context=context)

    def classify_text(self, response: dict[str, Any], context: str = "text") -> OperationOutcome:
        response = response or {}
        blocked = self._blocked(response, context)
        if blocked is not None:
            return blocked
        text = aggregated_text(response)
        if text:
            return SuccessText(text=text, context=context)
        return NoImageReturned(text=None, context=context)

    @staticmethod
    def _blocked(response: dict[str, Any], context: str) -> Blocked | None:
        feedback = response.get("promptFeedback") or {}
        if not isinstance(feedback, dict):
            return None
        reason = feedback.get("blockReason")
        if not reason:
            return None
        logger.warning("Request for %s was blocked: %s", context, reason)
        return Blocked(reason=str(reason), detail=feedback.get("blockReasonMessage"), context=context)
