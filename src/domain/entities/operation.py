from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from src.domain.entities.image import Hotspot, ImageAsset
from src.domain.errors import InvalidAsset, InvalidOption


class OperationKind(str, Enum):
    EDIT = "edit"
    FILTER = "filter"
    ADJUST = "adjust"
    TEXT_TO_IMAGE = "text-to-image"
    REFERENCE = "reference"
    OPTIMIZE_PROMPT = "optimize-prompt"
    ANALYZE = "analyze"


class Style(str, Enum):
    PHOTO = "photo"
    ART = "art"
    ILLUSTRATION = "illustration"
    CONCEPT = "concept"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    FREE = "free"


class Quality(str, Enum):
    DRAFT = "draft"
    STANDARD = "standard"
    HIGH = "high"


@dataclass(frozen=True)
class EditRequest:
    image: ImageAsset
    prompt: str
    hotspot: Hotspot


@dataclass(frozen=True)
class FilterRequest:
    image: ImageAsset
    prompt: str


@dataclass(frozen=True)
class AdjustRequest:
    image: ImageAsset
    prompt: str


@dataclass(frozen=True)
class TextToImageRequest:
    prompt: str
    style: Style = Style.PHOTO
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    quality: Quality = Quality.STANDARD


@dataclass(frozen=True)
class ReferenceRequest:
    prompt: str
    references: tuple[ImageAsset, ...]
    # Accepted for parity with text-to-image; the reference template does not render them.
    style: Style = Style.PHOTO
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    quality: Quality = Quality.STANDARD


@dataclass(frozen=True)
class OptimizePromptRequest:
    prompt: str


@dataclass(frozen=True)
class AnalyzeRequest:
    image: ImageAsset
    prompt: str = field(default="")


OperationRequest = Union[
    EditRequest,
    FilterRequest,
    AdjustRequest,
    TextToImageRequest,
    ReferenceRequest,
    OptimizePromptRequest,
    AnalyzeRequest,
]

_KIND_BY_TYPE: dict[type, OperationKind] = {
    EditRequest: OperationKind.EDIT,
    FilterRequest: OperationKind.FILTER,
    AdjustRequest: OperationKind.ADJUST,
    TextToImageRequest: OperationKind.TEXT_TO_IMAGE,
    ReferenceRequest: OperationKind.REFERENCE,
    OptimizePromptRequest: OperationKind.OPTIMIZE_PROMPT,
    AnalyzeRequest: OperationKind.ANALYZE,
}

TEXT_KINDS = frozenset({OperationKind.OPTIMIZE_PROMPT, OperationKind.ANALYZE})


def kind_of(request: OperationRequest) -> OperationKind:
    try:
        return _KIND_BY_TYPE[type(request)]
    except KeyError:
        raise InvalidOption(f"Unsupported operation request: {type(request).__name__}") from None


def produces_image(request: OperationRequest) -> bool:
    return kind_of(request) not in TEXT_KINDS


def input_assets(request: OperationRequest) -> tuple[ImageAsset, ...]:
    """Assets sent with the request, primary image first, then references in upload order."""
    if isinstance(request, (EditRequest, FilterRequest, AdjustRequest, AnalyzeRequest)):
        return (request.image,)
    if isinstance(request, ReferenceRequest):
        return tuple(request.references)
    if isinstance(request, (TextToImageRequest, OptimizePromptRequest)):
        return ()
    raise InvalidOption(f"Unsupported operation request: {type(request).__name__}")


def parse_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidOption(
            f"Unsupported {enum_cls.__name__} value {value!r}; expected one of: {allowed}"
        ) from None


def make_operation(
    kind: str | OperationKind,
    *,
    prompt: str | None = None,
    image: ImageAsset | None = None,
    hotspot: Hotspot | None = None,
    references: list[ImageAsset] | tuple[ImageAsset, ...] = (),
    style: Any = None,
    aspect_ratio: Any = None,
    quality: Any = None,
) -> OperationRequest:
    """Validate loosely-typed input (forms, JSON bodies) into an OperationRequest."""
    op = parse_enum(OperationKind, kind, None)
    if op is None:
        raise InvalidOption("Missing operation kind")

    text = (prompt or "").strip()
    if not text and op is not OperationKind.ANALYZE:
        raise InvalidOption(f"Missing prompt for {op.value} operation")

    if hotspot is not None and op is not OperationKind.EDIT:
        raise InvalidOption(f"A hotspot is only valid for edit operations, not {op.value}")

    if op in (OperationKind.EDIT, OperationKind.FILTER, OperationKind.ADJUST, OperationKind.ANALYZE):
        if not isinstance(image, ImageAsset):
            raise InvalidAsset(f"An image is required for {op.value} operations")

    if op is OperationKind.EDIT:
        if hotspot is None:
            raise InvalidOption("Edit operations require a hotspot (x, y)")
        return EditRequest(image=image, prompt=text, hotspot=hotspot)
    if op is OperationKind.FILTER:
        return FilterRequest(image=image, prompt=text)
    if op is OperationKind.ADJUST:
        return AdjustRequest(image=image, prompt=text)
    if op is OperationKind.ANALYZE:
        return AnalyzeRequest(image=image, prompt=text)
    if op is OperationKind.OPTIMIZE_PROMPT:
        return OptimizePromptRequest(prompt=text)

    resolved_style = parse_enum(Style, style, Style.PHOTO)
    resolved_aspect = parse_enum(AspectRatio, aspect_ratio, AspectRatio.SQUARE)
    resolved_quality = parse_enum(Quality, quality, Quality.STANDARD)
    if op is OperationKind.TEXT_TO_IMAGE:
        return TextToImageRequest(
            prompt=text,
            style=resolved_style,
            aspect_ratio=resolved_aspect,
            quality=resolved_quality,
        )
    # OperationKind.REFERENCE
    refs = tuple(references or ())
    if not refs:
        raise InvalidAsset("Reference generation requires at least one reference image")
    if not all(isinstance(r, ImageAsset) for r in refs):
        raise InvalidAsset("Reference images must be image assets")
    return ReferenceRequest(
        prompt=text,
        references=refs,
        style=resolved_style,
        aspect_ratio=resolved_aspect,
        quality=resolved_quality,
    )
