from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.application.dtos.analysis_dto import AnalysisResult


class ImageResultResponse(BaseModel):
    """Response of every image-producing proxy route."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(True, description="Indicates the operation produced an image")
    image_url: str = Field(
        ...,
        alias="imageUrl",
        description="Resulting image as a data URI",
        examples=["data:image/png;base64,iVBORw0KGgo..."],
    )


class TextToImageRequest(BaseModel):
    """Request body for text-to-image generation."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(None, description="Description of the image to generate", examples=["a lighthouse at dusk"])
    style: str = Field("photo", description="One of photo, art, illustration, concept")
    aspect_ratio: str = Field("1:1", alias="aspectRatio", description="One of 1:1, 16:9, 9:16, free")
    quality: str = Field("high", description="One of draft, standard, high")


class OptimizePromptRequest(BaseModel):
    """Request body for prompt optimization."""
    prompt: str | None = Field(None, description="Prompt to expand into a detailed image prompt")


class OptimizePromptResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(True)
    optimized_prompt: str = Field(..., alias="optimizedPrompt", description="Optimized prompt text")


class AnalyzeImageResponse(BaseModel):
    success: bool = Field(True)
    analysis: AnalysisResult = Field(..., description="Structured analysis of the uploaded image")
