import pytest

from src.domain.entities.image import Hotspot, ImageAsset
from src.domain.errors import InvalidAsset, InvalidOption
from src.domain.services.data_uri import DataUriCodec


def test_round_trip_is_byte_identical(png_bytes):
    asset = ImageAsset(data=png_bytes, mime_type="image/png")
    uri = DataUriCodec.encode(asset)
    assert uri.startswith("data:image/png;base64,")
    decoded = DataUriCodec.decode(uri)
    assert decoded.data == png_bytes
    assert decoded.mime_type == "image/png"
    assert decoded.id == asset.id


def test_id_is_derived_from_content(png_bytes):
    a = ImageAsset(data=png_bytes, mime_type="image/png")
    b = ImageAsset(data=bytes(png_bytes), mime_type="IMAGE/PNG")
    c = ImageAsset(data=png_bytes, mime_type="image/webp")
    assert a.id == b.id
    assert a.id != c.id
    assert a == b


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "not a data uri",
        "data:image/png;base64",
        "data:;base64,AAAA",
        "data:image/png,AAAA",
        "data:image/png;base64,@@@@",
        "data:image/png;base64,",
        "data:text/plain;base64,aGVsbG8=",
    ],
)
def test_decode_rejects_malformed_uris(uri):
    with pytest.raises(InvalidAsset):
        DataUriCodec.decode(uri)


def test_empty_or_non_image_assets_are_rejected(png_bytes):
    with pytest.raises(InvalidAsset):
        ImageAsset(data=b"", mime_type="image/png")
    with pytest.raises(InvalidAsset):
        ImageAsset(data=png_bytes, mime_type="application/pdf")
    with pytest.raises(InvalidAsset):
        DataUriCodec.from_upload(png_bytes, None)


def test_from_base64_accepts_raw_bytes(png_bytes):
    asset = DataUriCodec.from_base64("image/png", png_bytes)
    assert asset.data == png_bytes


def test_non_string_mime_type_and_payload_are_invalid(png_bytes):
    with pytest.raises(InvalidAsset):
        ImageAsset(data=png_bytes, mime_type=123)
    with pytest.raises(InvalidAsset):
        DataUriCodec.from_base64("image/png", 42)


def test_hotspot_validation():
    assert Hotspot(3, 4).x == 3
    with pytest.raises(InvalidOption):
        Hotspot(-1, 4)
    with pytest.raises(InvalidOption):
        Hotspot(1.5, 2)
    with pytest.raises(InvalidOption):
        Hotspot(True, 2)
