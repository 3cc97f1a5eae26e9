"""Shared test helpers: PNG fixtures, response envelopes and fake transports."""
import asyncio
import base64
import io

import numpy as np
from PIL import Image


def make_png_bytes(w=4, h=4, color=(128, 64, 32)) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def image_response(data: bytes, mime_type: str = "image/png", finish_reason: str = "STOP") -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [{"inlineData": {"mimeType": mime_type, "data": base64.b64encode(data).decode()}}]
                },
                "finishReason": finish_reason,
            }
        ]
    }


def text_response(text: str) -> dict:
    return {
        "candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}],
        "text": text,
    }


class FakeTransport:
    """Returns scripted envelopes in order and records every request it receives."""

    def __init__(self, responses=None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else {}


class GatedTransport:
    """Each request waits on a future the test resolves, in whatever order it likes."""

    def __init__(self):
        self.pending: list[asyncio.Future] = []
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


async def wait_for_pending(transport: GatedTransport, count: int) -> None:
    for _ in range(100):
        if len(transport.pending) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} pending requests, got {len(transport.pending)}")
