import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'src' is importable during tests,
# and the tests directory so 'helpers' is
ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault("ENV", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from helpers import FakeTransport, make_png_bytes  # noqa: E402


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture()
def base_asset():
    from src.domain.entities.image import ImageAsset

    return ImageAsset(data=make_png_bytes(color=(10, 20, 30)), mime_type="image/png")


@pytest.fixture()
def make_asset():
    from src.domain.entities.image import ImageAsset

    def _make(shade: int) -> ImageAsset:
        return ImageAsset(data=make_png_bytes(color=(shade, shade, shade)), mime_type="image/png")

    return _make


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def client(fake_transport) -> TestClient:
    # lazy import after env configured
    from src.infrastructure.api.dependencies import get_session_repo, get_transport
    from src.infrastructure.memory.session_repository import SessionRepository
    from src.main import create_app

    app = create_app()
    sessions = SessionRepository({})
    app.dependency_overrides[get_transport] = lambda: fake_transport
    app.dependency_overrides[get_session_repo] = lambda: sessions
    return TestClient(app)
