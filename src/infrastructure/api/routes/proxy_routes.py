from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, File, Form, UploadFile

from src.application.dtos.analysis_dto import AnalysisResult
from src.application.dtos.common_dto import ErrorResponse, HealthResponse
from src.application.dtos.image_dto import (
    AnalyzeImageResponse,
    ImageResultResponse,
    OptimizePromptRequest,
    OptimizePromptResponse,
    TextToImageRequest,
)
from src.application.use_cases.generate_image import GenerateImageUseCase
from src.domain.entities.image import Hotspot, ImageAsset
from src.domain.entities.operation import OperationKind, OperationRequest, make_operation
from src.domain.entities.outcome import Success, SuccessText
from src.domain.errors import InvalidAsset, InvalidOption, MalformedResult
from src.domain.services.data_uri import DataUriCodec
from src.infrastructure.api.dependencies import get_generator, get_settings
from src.infrastructure.api.errors import ApiError
from src.infrastructure.config import Settings

router = APIRouter(
    prefix="/api",
    tags=["AI Image Proxy"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Missing or invalid fields"},
        413: {"model": ErrorResponse, "description": "Payload Too Large - Upload exceeds the size limit"},
        500: {"model": ErrorResponse, "description": "Model blocked, stopped early, returned no image, or failed"},
    },
)


def _too_large(limit: int) -> ApiError:
    return ApiError(413, f"Image exceeds the upload limit of {limit} bytes", reason="PayloadTooLarge")


async def read_upload(file: UploadFile | None, settings: Settings) -> ImageAsset:
    """Read an uploaded image as an opaque asset; only image/* uploads are accepted."""
    if file is None:
        raise ApiError(400, "An image file is required")
    if not (file.content_type or "").startswith("image/"):
        raise ApiError(400, "Only image files can be uploaded")
    limit = settings.max_upload_bytes
    # file.size is None when the part carried no length
    if file.size is not None and file.size > limit:
        raise _too_large(limit)
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise _too_large(limit)
    try:
        return DataUriCodec.from_upload(data, file.content_type)
    except InvalidAsset as exc:
        raise ApiError(400, f"Invalid image file: {exc}") from exc


def _parse_coordinate(name: str, value: str | None) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ApiError(400, f"Invalid coordinate {name}: {value!r}") from None


def _validated(kind: OperationKind, **kwargs) -> OperationRequest:
    try:
        return make_operation(kind, **kwargs)
    except (InvalidOption, InvalidAsset) as exc:
        raise ApiError(400, str(exc)) from exc


async def _image_result(
    generator: GenerateImageUseCase, request: OperationRequest, error: str
) -> ImageResultResponse:
    outcome = await generator.execute(request)
    if not isinstance(outcome, Success):
        raise ApiError(500, error, details=outcome.message, reason=type(outcome).__name__)
    return ImageResultResponse(image_url=DataUriCodec.encode(outcome.asset))


@router.post(
    "/edit-image",
    response_model=ImageResultResponse,
    summary="Localized Edit",
    description="""
    Retouch the area around a pixel coordinate of the uploaded image.

    **Multipart fields**: `image`, `prompt`, `x`, `y`
    """,
)
async def edit_image(
    image: UploadFile | None = File(None, description="Image to edit"),
    prompt: str | None = Form(None, description="What to change at the hotspot"),
    x: str | None = Form(None, description="Hotspot x in image pixels"),
    y: str | None = Form(None, description="Hotspot y in image pixels"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
):
    asset = await read_upload(image, settings)
    if not prompt or x is None or y is None:
        raise ApiError(400, "Missing required fields: prompt, x, y")
    hotspot_x, hotspot_y = _parse_coordinate("x", x), _parse_coordinate("y", y)
    try:
        hotspot = Hotspot(x=hotspot_x, y=hotspot_y)
    except InvalidOption as exc:
        raise ApiError(400, str(exc)) from exc
    request = _validated(OperationKind.EDIT, prompt=prompt, image=asset, hotspot=hotspot)
    return await _image_result(generator, request, "Image edit failed")


@router.post(
    "/apply-filter",
    response_model=ImageResultResponse,
    summary="Apply Filter",
    description="Apply a stylistic filter to the whole image without changing its content.",
)
async def apply_filter(
    image: UploadFile | None = File(None, description="Image to filter"),
    prompt: str | None = Form(None, description="Filter description"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
):
    asset = await read_upload(image, settings)
    if not prompt:
        raise ApiError(400, "Missing filter prompt")
    request = _validated(OperationKind.FILTER, prompt=prompt, image=asset)
    return await _image_result(generator, request, "Filter application failed")


@router.post(
    "/adjust-image",
    response_model=ImageResultResponse,
    summary="Global Adjustment",
    description="Apply a photorealistic adjustment across the whole image.",
)
async def adjust_image(
    image: UploadFile | None = File(None, description="Image to adjust"),
    prompt: str | None = Form(None, description="Adjustment description"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
):
    asset = await read_upload(image, settings)
    if not prompt:
        raise ApiError(400, "Missing adjustment prompt")
    request = _validated(OperationKind.ADJUST, prompt=prompt, image=asset)
    return await _image_result(generator, request, "Image adjustment failed")


@router.post(
    "/text-to-image",
    response_model=ImageResultResponse,
    summary="Text to Image",
    description="""
    Generate an image from a description.

    **Options**: `style` (photo, art, illustration, concept), `aspectRatio` (1:1, 16:9, 9:16, free),
    `quality` (draft, standard, high). Unknown option values are rejected.
    """,
)
async def text_to_image(
    body: TextToImageRequest,
    generator: GenerateImageUseCase = Depends(get_generator),
):
    if not body.prompt:
        raise ApiError(400, "Missing image description")
    request = _validated(
        OperationKind.TEXT_TO_IMAGE,
        prompt=body.prompt,
        style=body.style,
        aspect_ratio=body.aspect_ratio,
        quality=body.quality,
    )
    return await _image_result(generator, request, "Image generation failed")


@router.post(
    "/generate-with-reference",
    response_model=ImageResultResponse,
    summary="Reference-Based Generation",
    description="Generate a new image guided by one or more reference images, sent in upload order.",
)
async def generate_with_reference(
    prompt: str | None = Form(None, description="Description of the new image"),
    references: list[UploadFile] | None = File(None, description="Reference images"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
):
    if not references:
        raise ApiError(400, "At least one reference image is required")
    assets = [await read_upload(f, settings) for f in references]
    if not prompt:
        raise ApiError(400, "Missing image description")
    request = _validated(OperationKind.REFERENCE, prompt=prompt, references=assets)
    return await _image_result(generator, request, "Reference-based generation failed")


@router.post(
    "/optimize-prompt",
    response_model=OptimizePromptResponse,
    summary="Optimize Prompt",
    description="Expand a short description into a detailed image-generation prompt.",
)
async def optimize_prompt(
    body: OptimizePromptRequest,
    generator: GenerateImageUseCase = Depends(get_generator),
):
    if not body.prompt:
        raise ApiError(400, "Missing original prompt")
    request = _validated(OperationKind.OPTIMIZE_PROMPT, prompt=body.prompt)
    outcome = await generator.execute(request)
    if not isinstance(outcome, SuccessText):
        raise ApiError(500, "Prompt optimization failed", details=outcome.message, reason=type(outcome).__name__)
    return OptimizePromptResponse(optimized_prompt=outcome.text)


@router.post(
    "/analyze-image",
    response_model=AnalyzeImageResponse,
    summary="Analyze Image",
    description="Composition and color analysis with improvement prompts, returned as structured JSON.",
)
async def analyze_image(
    image: UploadFile | None = File(None, description="Image to analyze"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
):
    asset = await read_upload(image, settings)
    request = _validated(OperationKind.ANALYZE, image=asset)
    outcome = await generator.execute(request)
    if not isinstance(outcome, SuccessText):
        raise ApiError(500, "Image analysis failed", details=outcome.message, reason=type(outcome).__name__)
    try:
        analysis = AnalysisResult.parse_model_text(outcome.text)
    except MalformedResult as exc:
        raise ApiError(500, "Image analysis failed", details=str(exc), reason="MalformedResult") from exc
    return AnalyzeImageResponse(analysis=analysis)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check that the service is running",
)
def health():
    return HealthResponse(status="OK", timestamp=datetime.now(UTC).isoformat())
