import dataclasses

import pytest

from src.domain.entities.image import Hotspot
from src.domain.entities.operation import (
    AdjustRequest,
    AnalyzeRequest,
    AspectRatio,
    EditRequest,
    FilterRequest,
    OperationKind,
    OptimizePromptRequest,
    Quality,
    ReferenceRequest,
    Style,
    TextToImageRequest,
    make_operation,
)
from src.domain.errors import InvalidAsset, InvalidOption
from src.domain.services.request_builder import (
    Capability,
    InlineDataPart,
    RequestBuilder,
    TextPart,
)

builder = RequestBuilder()


def test_edit_puts_image_first_and_renders_hotspot(base_asset):
    req = builder.build(EditRequest(image=base_asset, prompt="remove the cup", hotspot=Hotspot(12, 34)))
    assert req.capability is Capability.IMAGE_GENERATION
    assert req.kind is OperationKind.EDIT
    assert isinstance(req.parts[0], InlineDataPart)
    assert isinstance(req.parts[-1], TextPart)
    assert req.parts[0].asset == base_asset
    assert '"remove the cup"' in req.instruction
    assert "(x: 12, y: 34)" in req.instruction


@pytest.mark.parametrize("cls", [FilterRequest, AdjustRequest])
def test_filter_and_adjust_have_one_image_and_no_hotspot(base_asset, cls):
    req = builder.build(cls(image=base_asset, prompt="warmer"))
    assert len(req.parts) == 2
    assert req.images == (base_asset,)
    assert "x:" not in req.instruction


def test_text_to_image_renders_option_labels():
    req = builder.build(
        TextToImageRequest(prompt="a fox", style=Style.ART, aspect_ratio=AspectRatio.FREE, quality=Quality.HIGH)
    )
    assert len(req.parts) == 1
    assert "painting" in req.instruction
    assert "natural aspect ratio" in req.instruction
    assert "high quality" in req.instruction


def test_reference_images_keep_upload_order(make_asset):
    refs = (make_asset(1), make_asset(2), make_asset(3))
    req = builder.build(ReferenceRequest(prompt="same mood", references=refs))
    assert req.images == refs
    assert "Number of reference images: 3" in req.instruction
    assert isinstance(req.parts[-1], TextPart)


def test_text_capabilities(base_asset):
    assert builder.build(OptimizePromptRequest(prompt="cat")).capability is Capability.TEXT_GENERATION
    analyze = builder.build(AnalyzeRequest(image=base_asset))
    assert analyze.capability is Capability.TEXT_GENERATION
    assert analyze.images == (base_asset,)
    assert '"improvementPrompts"' in analyze.instruction


def test_builder_is_deterministic(base_asset):
    request = EditRequest(image=base_asset, prompt="p", hotspot=Hotspot(1, 2))
    assert builder.build(request) == builder.build(request)
    assert RequestBuilder().build(request).to_wire("m") == builder.build(request).to_wire("m")


def test_wire_format(base_asset):
    wire = builder.build(FilterRequest(image=base_asset, prompt="noir")).to_wire("image-model")
    assert wire["model"] == "image-model"
    first, last = wire["contents"]["parts"]
    assert first["inlineData"]["mimeType"] == "image/png"
    assert isinstance(first["inlineData"]["data"], str)
    assert "noir" in last["text"]


def test_unknown_enum_value_fails_fast():
    bad = dataclasses.replace(TextToImageRequest(prompt="x"), style="watercolor")
    with pytest.raises(InvalidOption):
        builder.build(bad)


def test_make_operation_validates_input(base_asset):
    with pytest.raises(InvalidOption):
        make_operation("sharpen", prompt="x", image=base_asset)
    with pytest.raises(InvalidOption):
        make_operation("filter", prompt="x", image=base_asset, hotspot=Hotspot(1, 1))
    with pytest.raises(InvalidOption):
        make_operation("edit", prompt="x", image=base_asset)
    with pytest.raises(InvalidOption):
        make_operation("adjust", prompt="  ", image=base_asset)
    with pytest.raises(InvalidAsset):
        make_operation("adjust", prompt="brighter")
    with pytest.raises(InvalidOption):
        make_operation("text-to-image", prompt="x", quality="ultra")
    with pytest.raises(InvalidAsset):
        make_operation("reference", prompt="x")


def test_make_operation_defaults(base_asset):
    req = make_operation("text-to-image", prompt="a boat")
    assert req == TextToImageRequest(prompt="a boat")
    assert req.quality is Quality.STANDARD
    edit = make_operation(OperationKind.EDIT, prompt=" fix ", image=base_asset, hotspot=Hotspot(0, 0))
    assert edit.prompt == "fix"
    assert isinstance(make_operation("analyze", image=base_asset), AnalyzeRequest)
