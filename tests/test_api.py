"""
Tests for the relay endpoints.
Uses httpx AsyncClient for testing FastAPI routes.
"""
import hashlib

import aiohttp
import pytest
from httpx import AsyncClient

from conftest import FIXED_TIMESTAMP, SHORTENER_URL, TEST_SECRET, FakeResponse, FakeSession


class TestRootEndpoint:
    """Tests for root and health endpoints."""

    @pytest.mark.asyncio
    async def test_root_returns_info(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Greeting Link Relay"
        assert data["status"] == "ok"

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestSignEndpoint:
    """Tests for POST /api/sign."""

    @pytest.mark.asyncio
    async def test_sign_with_folder(self, client: AsyncClient):
        response = await client.post("/api/sign", json={"folder": "weddings"})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"api_key", "cloud_name", "timestamp", "signature", "folder"}
        assert data["timestamp"] == FIXED_TIMESTAMP
        assert data["folder"] == "weddings"
        expected = hashlib.sha1(f"timestamp={FIXED_TIMESTAMP}&folder=weddings{TEST_SECRET}".encode()).hexdigest()
        assert data["signature"] == expected

    @pytest.mark.asyncio
    async def test_sign_without_body(self, client: AsyncClient):
        response = await client.post("/api/sign")

        assert response.status_code == 200
        data = response.json()
        assert data["folder"] == ""
        expected = hashlib.sha1(f"timestamp={FIXED_TIMESTAMP}{TEST_SECRET}".encode()).hexdigest()
        assert data["signature"] == expected

    @pytest.mark.asyncio
    async def test_sign_empty_object(self, client: AsyncClient):
        response = await client.post("/api/sign", json={})

        assert response.status_code == 200
        assert response.json()["folder"] == ""

    @pytest.mark.asyncio
    async def test_sign_null_folder(self, client: AsyncClient):
        response = await client.post("/api/sign", json={"folder": None})

        assert response.status_code == 200
        data = response.json()
        assert data["folder"] == ""
        expected = hashlib.sha1(f"timestamp={FIXED_TIMESTAMP}{TEST_SECRET}".encode()).hexdigest()
        assert data["signature"] == expected

    @pytest.mark.asyncio
    async def test_sign_invalid_json(self, client: AsyncClient):
        response = await client.post(
            "/api/sign",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON"

    @pytest.mark.asyncio
    async def test_sign_wrong_folder_type(self, client: AsyncClient):
        response = await client.post("/api/sign", json={"folder": ["a"]})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sign_get_not_allowed(self, client: AsyncClient):
        response = await client.get("/api/sign")

        assert response.status_code == 405

    @pytest.mark.asyncio
    async def test_sign_misconfigured(self, client: AsyncClient, unconfigured_signer):
        from greetlink.main import app
        from greetlink.delivery.api.relay import get_upload_signer

        app.dependency_overrides[get_upload_signer] = lambda: unconfigured_signer
        response = await client.post("/api/sign", json={"folder": "x"})

        assert response.status_code == 500
        assert "not configured" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_sign_never_leaks_secret(self, client: AsyncClient):
        response = await client.post("/api/sign", json={"folder": "x"})

        assert TEST_SECRET not in response.text


class TestShortenEndpoint:
    """Tests for POST /api/shorten."""

    @pytest.mark.asyncio
    async def test_shorten_success(self, client: AsyncClient, fake_session: FakeSession):
        fake_session.queue("GET", SHORTENER_URL, FakeResponse(json_data={"shorturl": "https://is.gd/abc"}))
        long_url = "https://example.com/#data=eyJ0byI6IkFuYSJ9"

        response = await client.post("/api/shorten", json={"url": long_url})

        assert response.status_code == 200
        assert response.json() == {"shorturl": "https://is.gd/abc", "fullurl": long_url}
        _, _, kwargs = fake_session.calls[0]
        assert kwargs["params"] == {"format": "json", "url": long_url}

    @pytest.mark.asyncio
    async def test_shorten_missing_url(self, client: AsyncClient):
        response = await client.post("/api/shorten", json={})

        assert response.status_code == 400
        assert "url" in response.json()["detail"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "   ", "not-a-url", "/relative/path"])
    async def test_shorten_bad_url(self, client: AsyncClient, fake_session: FakeSession, url):
        response = await client.post("/api/shorten", json={"url": url})

        assert response.status_code == 400
        assert fake_session.calls == []

    @pytest.mark.asyncio
    async def test_shorten_upstream_unreachable(self, client: AsyncClient, fake_session: FakeSession):
        fake_session.queue("GET", SHORTENER_URL, aiohttp.ClientConnectionError("boom"))

        response = await client.post("/api/shorten", json={"url": "https://example.com/"})

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_shorten_upstream_error_status(self, client: AsyncClient, fake_session: FakeSession):
        fake_session.queue("GET", SHORTENER_URL, FakeResponse(status=503, text="down"))

        response = await client.post("/api/shorten", json={"url": "https://example.com/"})

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_shorten_get_not_allowed(self, client: AsyncClient):
        response = await client.get("/api/shorten")

        assert response.status_code == 405


class TestCors:

    @pytest.mark.asyncio
    async def test_preflight(self, client: AsyncClient):
        response = await client.options(
            "/api/sign",
            headers={
                "Origin": "https://greeting.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers
