"""
Test configuration and fixtures.
Outbound HTTP goes through FakeSession; nothing here touches the network.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"

import base64
from io import BytesIO
from typing import AsyncGenerator, Dict, List, Tuple
from unittest.mock import MagicMock

import aiohttp
import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image

from greetlink.domain.shortener import LinkShortener
from greetlink.domain.signing import SignedUploadGrant, UploadSigner

FIXED_TIMESTAMP = 1700000000
TEST_SECRET = "test-secret"
SHORTENER_URL = "https://is.gd/create.php"


class FakeResponse:
    """Just enough of aiohttp.ClientResponse for the code under test."""

    def __init__(self, status: int = 200, json_data=None, text: str = "", body: bytes = b""):
        self.status = status
        self._json = json_data
        self._text = text
        self._body = body

    async def json(self, content_type=None):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json

    async def text(self):
        return self._text

    async def read(self):
        return self._body

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(MagicMock(), (), status=self.status)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replays queued responses (or raises queued exceptions) per (method, url)."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List] = {}
        self.calls: List[Tuple[str, str, dict]] = []

    def queue(self, method: str, url: str, *items):
        self.routes.setdefault((method, url), []).extend(items)

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, kwargs)

    def _dispatch(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        pending = self.routes.get((method, url))
        if not pending:
            raise aiohttp.ClientConnectionError(f"no route for {method} {url}")
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def make_image_bytes(size=(64, 48), mode="RGB", fmt="PNG", color=(200, 30, 90)) -> bytes:
    if mode == "RGBA":
        color = color + (128,)
    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


def make_data_uri(size=(64, 48)) -> str:
    return "data:image/png;base64," + base64.b64encode(make_image_bytes(size)).decode("ascii")


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def signer() -> UploadSigner:
    return UploadSigner("demo", "123456", TEST_SECRET, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def unconfigured_signer() -> UploadSigner:
    return UploadSigner(None, None, None, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def grant() -> SignedUploadGrant:
    return SignedUploadGrant(api_key="123456", cloud_name="demo", timestamp=FIXED_TIMESTAMP, signature="abc", folder="")


@pytest.fixture
async def client(signer: UploadSigner, fake_session: FakeSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with the signer and shortener dependencies overridden."""
    from greetlink.main import app
    from greetlink.delivery.api.relay import get_link_shortener, get_upload_signer

    app.dependency_overrides[get_upload_signer] = lambda: signer
    app.dependency_overrides[get_link_shortener] = lambda: LinkShortener(fake_session, api_url=SHORTENER_URL)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
