from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from src.domain.entities.image import ImageAsset


@dataclass(frozen=True)
class Success:
    asset: ImageAsset
    context: str = "image"

    ok = True

    @property
    def message(self) -> str:
        return f"Received image data ({self.asset.mime_type}) for {self.context}"


@dataclass(frozen=True)
class SuccessText:
    text: str
    context: str = "text"

    ok = True

    @property
    def message(self) -> str:
        return self.text


@dataclass(frozen=True)
class Blocked:
    reason: str
    detail: str | None = None
    context: str = "image"

    ok = False

    @property
    def message(self) -> str:
        return f"Request was blocked. Reason: {self.reason}. {self.detail or ''}".rstrip()


@dataclass(frozen=True)
class StoppedEarly:
    reason: str
    context: str = "image"

    ok = False

    @property
    def message(self) -> str:
        return (
            f"Image generation for {self.context} stopped unexpectedly. Reason: {self.reason}. "
            "This is often related to safety settings."
        )


@dataclass(frozen=True)
class NoImageReturned:
    text: str | None = None
    context: str = "image"

    ok = False

    @property
    def message(self) -> str:
        prefix = f"The AI model did not return an image for {self.context}. "
        if self.text:
            return prefix + f'The model responded with text: "{self.text}"'
        return prefix + (
            "This can happen because of safety filters or an overly complex request. "
            "Try rephrasing your prompt to be more direct."
        )


@dataclass(frozen=True)
class TransportError:
    detail: str
    context: str = "image"

    ok = False

    @property
    def message(self) -> str:
        return f"Request to the image model failed: {self.detail}"


OperationOutcome = Union[Success, SuccessText, Blocked, StoppedEarly, NoImageReturned, TransportError]
