from __future__ import annotations

from typing import Dict, List
from urllib.parse import parse_qsl

import httpx
import pytest

from src.assets.classifier import DisplayAsset, MediaKind
from src.assets.loader import AssetLoadTracker, load_assets
from src.directory.agents import AgentService
from src.directory.capabilities import CapabilityDirectory
from src.directory.client import ApiClient
from src.directory.errors import ApiError
from src.directory.vocabulary import Vocabulary, VocabularyService

BASE = "https://store.example.com"
FALLBACK_CAPS = [{"by_capability_id": "capa_001", "by_capability": "Conversational AI & Advisory"}]


def _client(handler, token: str = "") -> ApiClient:
    return ApiClient(BASE, token=token, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_json_error_body_is_carried_on_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"detail": "agent_name too long", "code": "E_LEN"})

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.get_json("/api/agents/1")

    assert excinfo.value.status == 422
    assert excinfo.value.detail == "agent_name too long"
    assert excinfo.value.message == "agent_name too long"
    assert excinfo.value.code == "E_LEN"


@pytest.mark.asyncio
async def test_text_error_body_is_truncated_and_not_treated_as_server_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="x" * 500)

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.get_json("/api/capabilities")

    assert excinfo.value.status == 502
    assert excinfo.value.detail == "x" * 200
    assert excinfo.value.data == {}


@pytest.mark.asyncio
async def test_transport_failure_becomes_api_error_without_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.get_json("/api/capabilities")

    assert excinfo.value.status is None


@pytest.mark.asyncio
async def test_capability_directory_falls_back_on_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "down"})

    async with _client(handler) as client:
        records = await CapabilityDirectory(client, FALLBACK_CAPS).fetch()

    assert [r.capability_id for r in records] == ["capa_001"]


@pytest.mark.asyncio
async def test_bearer_token_only_on_authenticated_calls() -> None:
    seen: Dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen[request.url.path] = request.headers.get("authorization", "")
        if request.url.path == "/api/capabilities":
            return httpx.Response(200, json={"capabilities": []})
        return httpx.Response(200, json={"agent": {"agent_name": "A"}})

    async with _client(handler, token="secret") as client:
        await CapabilityDirectory(client).fetch()
        await AgentService(client).fetch_agent("a-1")

    assert seen == {"/api/capabilities": "", "/api/agents/a-1": "Bearer secret"}


@pytest.mark.asyncio
async def test_save_custom_value_puts_all_fields_then_refetches() -> None:
    puts: List[Dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            puts.append(dict(parse_qsl(request.content.decode(), keep_blank_values=True)))
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(200, json={"agent_types": ["Agent", "Copilot"]})

    current = Vocabulary(agent_types=("Agent",), tags=("Cloud",))
    async with _client(handler) as client:
        updated = await VocabularyService(client).save_custom_value(current, "agent_type", "Copilot")

    assert puts == [{"agent_type": "Copilot", "value_proposition": "", "tags": "", "target_personas": ""}]
    assert updated.agent_types == ("Agent", "Copilot")
    assert updated.tags == ("Cloud",)


@pytest.mark.asyncio
async def test_save_custom_value_failure_keeps_current_vocabulary() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "nope"})

    current = Vocabulary(tags=("Cloud",))
    async with _client(handler) as client:
        assert await VocabularyService(client).save_custom_value(current, "tags", "Edge") is current


@pytest.mark.asyncio
@pytest.mark.parametrize("field_name", ["target_personas", "agent_name"])
async def test_save_custom_value_rejects_other_fields(field_name: str) -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    async with _client(handler) as client:
        with pytest.raises(ValueError):
            await VocabularyService(client).save_custom_value(Vocabulary(), field_name, "Developer")

    assert requests == []


@pytest.mark.asyncio
async def test_vocabulary_fetch_falls_back_when_everything_is_empty() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"agent_types": [], "value_propositions": [], "tags": [], "target_personas": []})

    fallback = Vocabulary(tags=("AI/ML",))
    async with _client(handler) as client:
        assert await VocabularyService(client, fallback).fetch() == fallback


@pytest.mark.asyncio
async def test_create_sends_multipart_with_attachments() -> None:
    captured: Dict[str, bytes] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path.encode()
        captured["type"] = request.headers["content-type"].encode()
        captured["body"] = request.content
        return httpx.Response(201, json={"agent_id": "new-1"})

    async with _client(handler, token="t") as client:
        response = await AgentService(client).create(
            {"agent_name": "Reader", "tags": "AI/ML,Cloud"},
            [("demo_files", ("shot.png", b"PNGDATA", "image/png"))],
        )

    assert response == {"agent_id": "new-1"}
    assert captured["path"] == b"/api/agent/onboard"
    assert captured["type"].startswith(b"multipart/form-data")
    assert b'name="tags"\r\n\r\nAI/ML,Cloud' in captured["body"]
    assert b'filename="shot.png"' in captured["body"]
    assert b"PNGDATA" in captured["body"]


@pytest.mark.asyncio
async def test_asset_failures_are_isolated_and_retryable() -> None:
    attempts: Dict[str, int] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        attempts[path] = attempts.get(path, 0) + 1
        if path == "/broken.png" and attempts[path] == 1:
            return httpx.Response(404)
        return httpx.Response(200, content=b"bytes")

    assets = [
        DisplayAsset("https://cdn.example.com/ok.png", MediaKind.IMAGE),
        DisplayAsset("https://cdn.example.com/broken.png", MediaKind.IMAGE),
        DisplayAsset("https://youtu.be/dQw4w9WgXcQ", MediaKind.VIDEO),
        DisplayAsset("blob:local", MediaKind.IMAGE),
    ]
    tracker = AssetLoadTracker()

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        bodies = await load_assets(client, assets, tracker)
        assert list(bodies) == ["https://cdn.example.com/ok.png"]
        assert tracker.has_failed("https://cdn.example.com/broken.png")

        assert await load_assets(client, assets, tracker) == {}
        tracker.retry("https://cdn.example.com/broken.png")
        bodies = await load_assets(client, assets, tracker)

    assert list(bodies) == ["https://cdn.example.com/broken.png"]
    assert tracker.loaded == {"https://cdn.example.com/ok.png", "https://cdn.example.com/broken.png"}
    assert attempts == {"/ok.png": 1, "/broken.png": 2}
