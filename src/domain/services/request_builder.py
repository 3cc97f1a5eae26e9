from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.domain.entities.image import ImageAsset
from src.domain.entities.operation import (
    AdjustRequest,
    AnalyzeRequest,
    AspectRatio,
    EditRequest,
    FilterRequest,
    OperationKind,
    OperationRequest,
    OptimizePromptRequest,
    Quality,
    ReferenceRequest,
    Style,
    TextToImageRequest,
    kind_of,
)
from src.domain.errors import InvalidOption
from src.domain.services.data_uri import DataUriCodec


class Capability(str, Enum):
    IMAGE_GENERATION = "image-generation"
    TEXT_GENERATION = "text-generation"


@dataclass(frozen=True)
class InlineDataPart:
    asset: ImageAsset

    def to_dict(self) -> dict[str, Any]:
        return {
            "inlineData": {
                "mimeType": self.asset.mime_type,
                "data": DataUriCodec.encode_payload(self.asset),
            }
        }


@dataclass(frozen=True)
class TextPart:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text}


Part = InlineDataPart | TextPart


@dataclass(frozen=True)
class ProviderRequest:
    """Provider-agnostic request: ordered parts plus the capability it targets."""

    kind: OperationKind
    capability: Capability
    parts: tuple[Part, ...]

    @property
    def instruction(self) -> str:
        return self.parts[-1].text  # type: ignore[union-attr]

    @property
    def images(self) -> tuple[ImageAsset, ...]:
        return tuple(p.asset for p in self.parts if isinstance(p, InlineDataPart))

    def to_wire(self, model: str) -> dict[str, Any]:
        return {"model": model, "contents": {"parts": [p.to_dict() for p in self.parts]}}


STYLE_LABELS: dict[Style, str] = {
    Style.PHOTO: "in a photorealistic photographic style",
    Style.ART: "in an artistic painting style",
    Style.ILLUSTRATION: "in an illustration style",
    Style.CONCEPT: "in a concept-design style",
}

ASPECT_LABELS: dict[AspectRatio, str] = {
    AspectRatio.SQUARE: "1:1",
    AspectRatio.LANDSCAPE: "16:9",
    AspectRatio.PORTRAIT: "9:16",
    AspectRatio.FREE: "natural aspect ratio",
}

QUALITY_LABELS: dict[Quality, str] = {
    Quality.DRAFT: "fast draft",
    Quality.STANDARD: "standard quality",
    Quality.HIGH: "high quality with rich detail",
}

IMAGE_ONLY_OUTPUT = "Output: Return ONLY the final edited image. Do not return text."

EDIT_TEMPLATE = """You are an expert photo editor AI. Your task is to perform a natural, localized edit on the provided image based on the user's request.
User Request: "{prompt}"
Edit Location: Focus on the area around pixel coordinates (x: {x}, y: {y}).

Editing Guidelines:
- The edit must be realistic and blend seamlessly with the surrounding area.
- The rest of the image (outside the immediate edit area) must remain identical to the original.

{output}"""

FILTER_TEMPLATE = """You are an expert photo editor AI. Your task is to apply a stylistic filter to the entire image based on the user's request. Do not change the composition or content, only apply the style.
Filter Request: "{prompt}"

{output}"""

ADJUST_TEMPLATE = """You are an expert photo editor AI. Your task is to perform a natural, global adjustment to the entire image based on the user's request.
User Request: "{prompt}"

Editing Guidelines:
- The adjustment must be applied across the entire image.
- The result must be photorealistic.

{output}"""

TEXT_TO_IMAGE_TEMPLATE = """You are a professional AI image artist. Generate a high-quality image from the user's description.

User Description: "{prompt}"
Style: {style}
Aspect Ratio: {aspect_ratio}
Quality: {quality}

Generation Guidelines:
- Follow the described content and scene exactly.
- Keep the composition balanced and the lighting natural.
- Render rich detail with harmonious colors.
- Respect the requested style and quality.

Output: Return ONLY the generated image. Do not return text."""

REFERENCE_TEMPLATE = """You are a professional AI image artist. Create a new image based on the provided reference images and the user's description.

User Description: "{prompt}"
Number of reference images: {count}

Generation Guidelines:
- Draw on the style, composition, colors or elements of the reference images.
- Create new content according to the user's description.
- Blend the essence of the references with the user's request.
- Keep the result natural, harmonious and creative.

Output: Return ONLY the generated image. Do not return text."""

OPTIMIZE_TEMPLATE = """You are an expert at writing prompts for image generation. Turn the user's simple description into a detailed prompt that produces a high-quality image.

Original Description: "{prompt}"

Optimization Guidelines:
- Keep the user's core intent and main elements.
- Add concrete visual detail (lighting, color, composition).
- Describe style and technique.
- Use professional photography or art terminology.
- Keep the description clear, specific and expressive.

Return only the optimized prompt, without explaining the process."""

ANALYZE_TEMPLATE = """You are a professional image analyst and visual arts expert. Analyze this image in detail and give professional advice.

Cover the following:
1. Composition: layout, balance, focal point, leading lines.
2. Color: palette, saturation, contrast, emotional expression.
3. Improvement suggestions: concrete directions for improving the image.
{focus}
Return the analysis as JSON:
{{
    "composition": "composition analysis",
    "colors": "color analysis",
    "suggestions": "improvement suggestions",
    "improvementPrompts": ["improvement prompt 1", "improvement prompt 2", "improvement prompt 3"]
}}"""


def _label(labels: dict, value: Any, name: str) -> str:
    try:
        return labels[value]
    except (KeyError, TypeError):
        raise InvalidOption(f"Unsupported {name}: {value!r}") from None


class RequestBuilder:
    """Pure mapping from an OperationRequest to a ProviderRequest.

    Same input, same output: no clock, no randomness, no configuration.
    """

    def build(self, request: OperationRequest) -> ProviderRequest:
        kind = kind_of(request)
        if isinstance(request, EditRequest):
            text = EDIT_TEMPLATE.format(
                prompt=request.prompt,
                x=request.hotspot.x,
                y=request.hotspot.y,
                output=IMAGE_ONLY_OUTPUT,
            )
            return self._image_request(kind, (request.image,), text)
        if isinstance(request, FilterRequest):
            text = FILTER_TEMPLATE.format(prompt=request.prompt, output=IMAGE_ONLY_OUTPUT)
            return self._image_request(kind, (request.image,), text)
        if isinstance(request, AdjustRequest):
            text = ADJUST_TEMPLATE.format(prompt=request.prompt, output=IMAGE_ONLY_OUTPUT)
            return self._image_request(kind, (request.image,), text)
        if isinstance(request, TextToImageRequest):
            text = TEXT_TO_IMAGE_TEMPLATE.format(
                prompt=request.prompt,
                style=_label(STYLE_LABELS, request.style, "style"),
                aspect_ratio=_label(ASPECT_LABELS, request.aspect_ratio, "aspect ratio"),
                quality=_label(QUALITY_LABELS, request.quality, "quality"),
            )
            return self._image_request(kind, (), text)
        if isinstance(request, ReferenceRequest):
            if not request.references:
                raise InvalidOption("Reference generation requires at least one reference image")
            # validated even though the reference template does not render them
            _label(STYLE_LABELS, request.style, "style")
            _label(ASPECT_LABELS, request.aspect_ratio, "aspect ratio")
            _label(QUALITY_LABELS, request.quality, "quality")
            text = REFERENCE_TEMPLATE.format(prompt=request.prompt, count=len(request.references))
            return self._image_request(kind, tuple(request.references), text)
        if isinstance(request, OptimizePromptRequest):
            text = OPTIMIZE_TEMPLATE.format(prompt=request.prompt)
            return ProviderRequest(kind, Capability.TEXT_GENERATION, (TextPart(text),))
        if isinstance(request, AnalyzeRequest):
            focus = f'\nThe user is particularly interested in: "{request.prompt}"\n' if request.prompt else ""
            text = ANALYZE_TEMPLATE.format(focus=focus)
            return ProviderRequest(
                kind, Capability.TEXT_GENERATION, (InlineDataPart(request.image), TextPart(text))
            )
        raise InvalidOption(f"Unsupported operation request: {type(request).__name__}")

    @staticmethod
    def _image_request(
        kind: OperationKind, images: tuple[ImageAsset, ...], text: str
    ) -> ProviderRequest:
        parts: tuple[Part, ...] = tuple(InlineDataPart(a) for a in images) + (TextPart(text),)
        return ProviderRequest(kind, Capability.IMAGE_GENERATION, parts)
