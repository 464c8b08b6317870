"""OpenAI 兼容 API，openai 官方与 openai-compatible 共用

openai-compatible 必须配置 base_url（Ollama、vLLM、DeepSeek、Moonshot 等），
openai 未配置时使用官方地址。请求通过 AsyncOpenAI 发出，复用调度器传入的
httpx 客户端；SDK 自带的重试关闭，超时由调度器统一控制。
"""
import logging
from typing import Any, Dict, List

from openai import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
)

from ..errors import MalformedResponseError, ProviderError, ProviderTimeoutError
from ..types import Usage
from .base import ChatProviderClient, Completion, Message, as_int

logger = logging.getLogger(__name__)

# 本地服务通常不校验 key，SDK 又要求非空
_PLACEHOLDER_KEY = "EMPTY"
_CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


class OpenAICompatClient(ChatProviderClient):
    """所有 OpenAI 兼容 API 的基类"""

    kind = "openai-compatible"
    requires_api_key = False
    requires_base_url = True

    @property
    def base_url(self) -> str:
        # 用户常直接粘贴完整的 .../chat/completions 地址
        url = super().base_url
        if url.endswith(_CHAT_COMPLETIONS_SUFFIX):
            url = url[: -len(_CHAT_COMPLETIONS_SUFFIX)]
        return url

    def endpoint(self) -> str:
        return self.base_url + _CHAT_COMPLETIONS_SUFFIX

    def headers(self) -> Dict[str, str]:
        return {}

    def sdk_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.provider.api_key or _PLACEHOLDER_KEY,
            base_url=self.base_url,
            timeout=self.http.timeout,
            max_retries=0,
            http_client=self.http,
        )

    def build_payload(self, messages: List[Message], max_tokens: int, temperature: float) -> Dict[str, Any]:
        return {
            "model": self.provider.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        choices = data.get("choices") or []
        if not choices:
            raise MalformedResponseError("no choices in response")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            raise MalformedResponseError("no message content in response")

        usage = data.get("usage") or {}
        return Completion(
            text=content,
            usage=Usage(
                prompt_tokens=as_int(usage.get("prompt_tokens")),
                completion_tokens=as_int(usage.get("completion_tokens")),
                total_tokens=as_int(usage["total_tokens"]) if usage.get("total_tokens") else None,
            ),
        )

    async def complete(self, messages, max_tokens=None, temperature=None) -> Completion:
        payload = self.build_payload(
            messages,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            temperature=temperature if temperature is not None else self.provider.effective_temperature,
        )
        client = self.sdk_client()
        try:
            response = await client.chat.completions.create(**payload)
        except APITimeoutError as e:
            raise ProviderTimeoutError(self.http.timeout.read or 0) from e
        except APIStatusError as e:
            raise ProviderError(e.status_code, _status_message(e), self.kind) from e
        except APIResponseValidationError as e:
            raise MalformedResponseError(f"unexpected response: {e.message}") from e
        except APIConnectionError as e:
            raise ProviderError(0, f"connection error: {e.__cause__ or e}", self.kind) from e
        except ValueError as e:
            raise MalformedResponseError(f"unmarshal response: {e}") from e

        # 非 JSON 响应时 SDK 直接返回原始文本
        if not hasattr(response, "model_dump"):
            raise MalformedResponseError(f"unexpected response type: {type(response).__name__}")
        return self.parse_response(response.model_dump())


def _status_message(error: APIStatusError) -> str:
    body = error.body
    if isinstance(body, dict):
        # SDK 对部分服务会把 error 对象本身作为 body
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return error.message


class OpenAIClient(OpenAICompatClient):
    """OpenAI 官方 API"""

    kind = "openai"
    requires_api_key = True
    requires_base_url = False
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
