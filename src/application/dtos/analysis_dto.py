from __future__ import annotations

import json
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.domain.errors import MalformedResult

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class AnalysisResult(BaseModel):
    """Structured image analysis returned by the analyze operation."""
    model_config = ConfigDict(populate_by_name=True)

    composition: str = Field(..., description="Layout, balance, focal point and leading lines")
    colors: str = Field(..., description="Palette, saturation, contrast and mood")
    suggestions: str = Field(..., description="Concrete directions for improving the image")
    improvement_prompts: list[str] = Field(
        default_factory=list,
        alias="improvementPrompts",
        description="Ready-to-use prompts that apply the suggested improvements",
    )

    @classmethod
    def parse_model_text(cls, text: str) -> "AnalysisResult":
        """Parse the model's answer; tolerates a surrounding markdown code fence."""
        raw = (text or "").strip()
        match = _FENCE.match(raw)
        if match:
            raw = match.group(1)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedResult(f"Analysis result is not valid JSON: {exc.msg}", raw_text=text) from exc
        if not isinstance(data, dict):
            raise MalformedResult("Analysis result must be a JSON object", raw_text=text)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise MalformedResult(
                f"Analysis result has an unexpected shape: {exc.error_count()} error(s)", raw_text=text
            ) from exc
