"""TranslationDispatcher 测试

覆盖: 空文本快速返回、自动检测顺序执行与用量统计、
自带检测的后端只发一次请求、超时与网络错误映射。
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from transy.dispatcher import TranslationDispatcher, truncate
from transy.errors import InvalidConfigError, ProviderError, ProviderTimeoutError
from transy.providers.base import DETECT_SYSTEM_PROMPT
from transy.types import TranslateRequest, Provider


OPENAI = Provider(name="openai", type="openai", api_key="sk-test", model="gpt-4o-mini", active=True)
CLAUDE = Provider(name="claude", type="claude", api_key="sk-ant", model="claude-3-5-haiku-latest", active=True)
DEEPL = Provider(name="deepl", type="deepl", api_key="abc:fx", model="deepl", active=True)


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


class FakeOpenAI:
    """检测请求返回 detected，翻译请求返回 translation"""

    def __init__(self, detected: str = "en", translation: str = "Hola"):
        self.detected = detected
        self.translation = translation
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.bodies.append(body)
        if body["messages"][0]["content"] == DETECT_SYSTEM_PROMPT:
            return httpx.Response(200, json=_chat(self.detected, prompt=5, completion=1))
        return httpx.Response(200, json=_chat(self.translation, prompt=10, completion=5))

    @property
    def is_detection(self) -> list[bool]:
        return [b["messages"][0]["content"] == DETECT_SYSTEM_PROMPT for b in self.bodies]


def _dispatcher(handler, **kwargs) -> TranslationDispatcher:
    return TranslationDispatcher(transport=httpx.MockTransport(handler), **kwargs)


# ── 空文本 ──


@pytest.mark.asyncio
async def test_empty_text_makes_no_call():
    fake = FakeOpenAI()
    result = await _dispatcher(fake).translate(OPENAI, TranslateRequest("", "auto", "es"))

    assert result.text == ""
    assert result.usage.total_tokens == 0
    assert fake.bodies == []


# ── 自动检测 ──


@pytest.mark.asyncio
async def test_auto_detect_runs_before_translation_and_sums_usage():
    fake = FakeOpenAI(detected="en")
    result = await _dispatcher(fake).translate(OPENAI, TranslateRequest("Hello", "auto", "es"))

    assert fake.is_detection == [True, False]
    assert "from English to Spanish" in fake.bodies[1]["messages"][1]["content"]
    assert result.text == "Hola"
    assert result.usage.prompt_tokens == 15
    assert result.usage.completion_tokens == 6
    assert result.usage.total_tokens == 21


@pytest.mark.asyncio
async def test_translation_only_accounting_override():
    fake = FakeOpenAI(detected="en")
    dispatcher = _dispatcher(fake, usage_accounting={"openai": "translation"})
    result = await dispatcher.translate(OPENAI, TranslateRequest("Hello", "auto", "es"))

    assert len(fake.bodies) == 2
    assert result.usage.total_tokens == 15


def test_unknown_accounting_policy_rejected():
    with pytest.raises(InvalidConfigError):
        TranslationDispatcher(usage_accounting={"openai": "average"})


@pytest.mark.asyncio
async def test_unknown_detected_language_keeps_auto():
    fake = FakeOpenAI(detected="I am not sure")
    result = await _dispatcher(fake).translate(OPENAI, TranslateRequest("Hello", "auto", "es"))

    prompt = fake.bodies[1]["messages"][1]["content"]
    assert prompt.startswith("please translate the following text to Spanish:")
    assert result.text == "Hola"


@pytest.mark.asyncio
async def test_unparseable_detection_still_counts_usage():
    fake = FakeOpenAI(detected="I think it is English")
    result = await _dispatcher(fake).translate(OPENAI, TranslateRequest("Hello", "auto", "es"))

    assert fake.is_detection == [True, False]
    assert result.usage.prompt_tokens == 15
    assert result.usage.completion_tokens == 6
    assert result.usage.total_tokens == 21


@pytest.mark.asyncio
async def test_explicit_source_skips_detection():
    fake = FakeOpenAI()
    result = await _dispatcher(fake).translate(OPENAI, TranslateRequest("Hello", "en", "es"))

    assert fake.is_detection == [False]
    assert result.usage.total_tokens == 15


@pytest.mark.asyncio
async def test_bundled_detection_makes_single_call():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content))
        return httpx.Response(200, json={"translations": [{"detected_source_language": "EN", "text": "Hola"}]})

    result = await _dispatcher(handler).translate(DEEPL, TranslateRequest("Hello", "auto", "es"))

    assert len(calls) == 1
    assert "source_lang" not in calls[0]
    assert result.text == "Hola"
    assert result.usage.total_tokens == 0


# ── 检测 ──


@pytest.mark.asyncio
async def test_detect_language():
    fake = FakeOpenAI(detected="zh")
    result = await _dispatcher(fake).detect_language(OPENAI, "你好世界")

    assert result.code == "zh"
    assert result.name == "中文"
    assert result.default_target == ""
    assert result.usage.total_tokens == 6


@pytest.mark.asyncio
async def test_detect_empty_text():
    fake = FakeOpenAI()
    result = await _dispatcher(fake).detect_language(OPENAI, "  ")
    assert result.code == "auto"
    assert fake.bodies == []


# ── 错误映射 ──


@pytest.mark.asyncio
async def test_timeout_cancels_pair():
    seen = []

    async def slow(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    dispatcher = _dispatcher(slow, timeout=0.05)
    with pytest.raises(ProviderTimeoutError) as exc_info:
        await dispatcher.translate(CLAUDE, TranslateRequest("Hello", "auto", "es"))

    assert exc_info.value.kind == "Timeout"
    assert isinstance(exc_info.value, TimeoutError)
    # 检测步骤超时后不会继续发翻译请求
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_transport_timeout_maps_to_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ProviderTimeoutError):
        await _dispatcher(handler).translate(CLAUDE, TranslateRequest("Hello", "en", "es"))


@pytest.mark.asyncio
async def test_sdk_timeout_maps_to_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ProviderTimeoutError):
        await _dispatcher(handler).translate(OPENAI, TranslateRequest("Hello", "en", "es"))


@pytest.mark.asyncio
async def test_connection_error_maps_to_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as exc_info:
        await _dispatcher(handler).translate(CLAUDE, TranslateRequest("Hello", "en", "es"))
    assert exc_info.value.status == 0


@pytest.mark.asyncio
async def test_upstream_error_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "boom"}})

    with pytest.raises(ProviderError) as exc_info:
        await _dispatcher(handler).translate(OPENAI, TranslateRequest("Hello", "en", "es"))

    assert exc_info.value.status == 500
    assert len(calls) == 1


def test_truncate():
    assert truncate("short") == "short"
    assert truncate("x" * 40) == "x" * 32 + "..."
