from __future__ import annotations

import base64
import binascii

from src.domain.entities.image import ImageAsset
from src.domain.errors import InvalidAsset


class DataUriCodec:
    """Converts between ImageAsset and `data:<mimeType>;base64,<payload>` strings.

    Images are treated as opaque bytes; nothing here decodes pixels.
    """

    @staticmethod
    def encode(asset: ImageAsset) -> str:
        return f"data:{asset.mime_type};base64,{DataUriCodec.encode_payload(asset)}"

    @staticmethod
    def encode_payload(asset: ImageAsset) -> str:
        return base64.b64encode(asset.data).decode("ascii")

    @staticmethod
    def decode(uri: str) -> ImageAsset:
        if not isinstance(uri, str) or not uri.startswith("data:"):
            raise InvalidAsset("Invalid data URL")
        header, sep, payload = uri.partition(",")
        if not sep:
            raise InvalidAsset("Invalid data URL")
        meta = header[len("data:") :].split(";")
        mime_type = meta[0].strip()
        if not mime_type:
            raise InvalidAsset("Could not parse MIME type from data URL")
        if "base64" not in (m.strip().lower() for m in meta[1:]):
            raise InvalidAsset("Only base64 data URLs are supported")
        return DataUriCodec.from_base64(mime_type, payload)

    @staticmethod
    def from_base64(mime_type: str, payload: str | bytes) -> ImageAsset:
        """Build an asset from provider inline data (base64 text or already-decoded bytes)."""
        if isinstance(payload, bytes):
            # SDKs hand back raw bytes for inline data
            return ImageAsset(data=payload, mime_type=mime_type)
        if not isinstance(payload, str):
            raise InvalidAsset(f"Unsupported inline data type: {type(payload).__name__}")
        try:
            data = base64.b64decode(payload.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidAsset(f"Invalid base64 payload: {exc}") from exc
        return ImageAsset(data=data, mime_type=mime_type)

    @staticmethod
    def from_upload(data: bytes, mime_type: str | None) -> ImageAsset:
        return ImageAsset(data=data, mime_type=mime_type or "")
