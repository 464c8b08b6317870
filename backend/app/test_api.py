"""HTTP API 测试

通过 dependency_overrides 注入使用临时目录的 Orchestrator，
上游 LLM 由 httpx.MockTransport 伪造。
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from transy import Orchestrator, get_orchestrator
from transy.dispatcher import TranslationDispatcher
from transy.events import PROVIDERS_CHANGED, EventBus
from transy.providers.base import DETECT_SYSTEM_PROMPT
from transy.settings import Settings
from backend.app.api.routes.events import event_stream, format_sse
from backend.app.main import app

OPENAI = {
    "name": "openai",
    "type": "openai",
    "api_key": "sk-secret",
    "model": "gpt-4o-mini",
}

LOCAL = {
    "name": "local",
    "type": "openai-compatible",
    "model": "qwen2.5",
    "base_url": "http://localhost:11434/v1",
}


def _chat(content: str, prompt: int, completion: int) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-4o-mini",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion},
    }


def _upstream(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    if body["messages"][0]["content"] == DETECT_SYSTEM_PROMPT:
        return httpx.Response(200, json=_chat("ja", prompt=5, completion=1))
    if "boom" in body["messages"][1]["content"]:
        return httpx.Response(503, json={"error": {"message": "overloaded"}})
    return httpx.Response(200, json=_chat("Hola", prompt=10, completion=5))


@pytest.fixture
def orchestrator(tmp_path):
    o = Orchestrator(
        settings=Settings(config_dir=tmp_path, cache_enabled=False),
        dispatcher=TranslationDispatcher(transport=httpx.MockTransport(_upstream)),
        event_bus=EventBus(),
    ).load()
    yield o
    o.close()


@pytest.fixture
def client(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    # 不使用 with，避免触发 startup 加载真实配置
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Providers ──


def test_add_and_list_hides_api_key(client):
    resp = client.post("/api/providers", json=OPENAI)
    assert resp.status_code == 201
    assert resp.json()["provider"]["active"] is True

    providers = client.get("/api/providers").json()["providers"]
    assert len(providers) == 1
    assert "api_key" not in providers[0]
    assert providers[0]["has_key"] is True


def test_duplicate_provider_conflict(client):
    client.post("/api/providers", json=OPENAI)
    resp = client.post("/api/providers", json=OPENAI)
    assert resp.status_code == 409
    assert resp.json()["error"] == "DuplicateName"


def test_invalid_provider_rejected(client):
    resp = client.post("/api/providers", json={**OPENAI, "temperature": 5})
    assert resp.status_code == 422
    assert resp.json()["error"] == "InvalidConfig"
    assert client.get("/api/providers").json()["providers"] == []


def test_update_keeps_existing_key(client, orchestrator):
    client.post("/api/providers", json=OPENAI)

    resp = client.put("/api/providers/openai", json={**OPENAI, "api_key": "__KEEP__", "model": "gpt-4o"})

    assert resp.status_code == 200
    stored = orchestrator.store.get("openai")
    assert stored.api_key == "sk-secret"
    assert stored.model == "gpt-4o"


def test_update_missing_provider(client):
    resp = client.put("/api/providers/missing", json={**OPENAI, "api_key": "__KEEP__"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"


def test_activate_and_remove(client):
    client.post("/api/providers", json=OPENAI)
    client.post("/api/providers", json=LOCAL)

    resp = client.post("/api/providers/local/activate")
    assert resp.status_code == 200
    assert client.get("/api/providers/active").json()["provider"]["name"] == "local"

    resp = client.delete("/api/providers/local")
    assert resp.status_code == 200
    assert resp.json()["active"]["name"] == "openai"


def test_activate_missing_provider(client):
    resp = client.post("/api/providers/missing/activate")
    assert resp.status_code == 404


def test_active_provider_empty(client):
    assert client.get("/api/providers/active").json() == {"provider": None}


# ── 翻译 / 检测 ──


def test_translate_without_provider(client):
    resp = client.post("/api/translate", json={"text": "Hello", "targetLang": "es"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "NoActiveProvider"


def test_translate(client):
    client.post("/api/providers", json=OPENAI)

    resp = client.post("/api/translate", json={"text": "Hello", "sourceLang": "en", "targetLang": "es"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["text"] == "Hola"
    assert data["usage"]["totalTokens"] == 15
    assert data["usage"]["cacheHit"] is False


def test_translate_upstream_error(client):
    client.post("/api/providers", json=OPENAI)

    resp = client.post("/api/translate", json={"text": "boom", "sourceLang": "en", "targetLang": "es"})

    assert resp.status_code == 502
    assert resp.json()["error"] == "ProviderError"


def test_detect(client):
    client.post("/api/providers", json=OPENAI)

    resp = client.post("/api/detect", json={"text": "こんにちは"})

    assert resp.status_code == 200
    assert resp.json() == {"code": "ja", "name": "日语", "defaultTarget": "en"}


# ── 语言 / 统计 ──


def test_languages(client):
    codes = [lang["code"] for lang in client.get("/api/languages").json()["languages"]]
    assert "zh" in codes and "en" in codes


def test_default_languages(client):
    assert client.get("/api/languages/defaults").json()["defaults"]["zh"] == "en"

    resp = client.put("/api/languages/defaults/en", json={"target": "fr"})
    assert resp.status_code == 200
    assert resp.json()["defaults"]["en"] == "fr"

    resp = client.put("/api/languages/defaults/en", json={"target": " "})
    assert resp.status_code == 422


def test_usage_and_cache(client):
    client.post("/api/providers", json=OPENAI)
    client.post("/api/translate", json={"text": "Hello", "sourceLang": "en", "targetLang": "es"})

    usage = client.get("/api/usage").json()
    assert usage["requests"] == 1
    assert usage["totalTokens"] == 15

    assert client.delete("/api/usage").json()["requests"] == 0
    assert client.get("/api/cache").json() == {"enabled": False}
    assert client.delete("/api/cache").json() == {"removed": 0}


def test_cache_stats_when_enabled(tmp_path):
    o = Orchestrator(
        settings=Settings(config_dir=tmp_path, cache_enabled=True),
        dispatcher=TranslationDispatcher(transport=httpx.MockTransport(_upstream)),
        event_bus=EventBus(),
    ).load()
    app.dependency_overrides[get_orchestrator] = lambda: o
    try:
        client = TestClient(app)
        client.post("/api/providers", json=OPENAI)
        payload = {"text": "Hello", "sourceLang": "en", "targetLang": "es"}
        assert client.post("/api/translate", json=payload).json()["usage"]["cacheHit"] is False
        assert client.post("/api/translate", json=payload).json()["usage"]["cacheHit"] is True

        stats = client.get("/api/cache").json()
        assert stats["enabled"] is True
        assert stats["entries"] == 1
        assert stats["hits"] == 1
        assert client.delete("/api/cache").json() == {"removed": 1}
    finally:
        app.dependency_overrides.clear()
        o.close()


# ── SSE ──


def test_format_sse():
    assert format_sse({"topic": "x", "data": {"a": "中"}}) == 'data: {"topic": "x", "data": {"a": "中"}}\n\n'


@pytest.mark.asyncio
async def test_event_stream_delivers_events():
    bus = EventBus()
    stream = event_stream(bus, heartbeat=0.05)

    first = await stream.__anext__()
    assert '"connected"' in first

    await bus.publish(PROVIDERS_CHANGED, {"action": "add", "name": "openai", "active": "openai"})
    event = await stream.__anext__()
    assert '"providers-changed"' in event

    heartbeat = await asyncio.wait_for(stream.__anext__(), timeout=1)
    assert '"heartbeat"' in heartbeat

    await stream.aclose()
    assert bus.subscriber_count() == 0
