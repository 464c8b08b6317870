"""Anthropic Claude Messages API

system 消息单独放在顶层 system 字段；max_tokens 为必填参数。
"""
from typing import Any, Dict, List

from ..errors import MalformedResponseError
from ..types import Usage
from .base import ChatProviderClient, Completion, Message, as_int

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeClient(ChatProviderClient):
    kind = "claude"
    # base_url 为完整的 messages 地址
    DEFAULT_BASE_URL = "https://api.anthropic.com/v1/messages"
    default_max_tokens = 1024

    def endpoint(self) -> str:
        return self.base_url

    def headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.provider.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(self, messages: List[Message], max_tokens: int, temperature: float) -> Dict[str, Any]:
        system = "".join(m.content for m in messages if m.role == "system")
        payload: Dict[str, Any] = {
            "model": self.provider.model,
            "messages": [
                {"role": m.role, "content": m.content} for m in messages if m.role != "system"
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            payload["system"] = system
        return payload

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        blocks = [
            block.get("text", "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        if not blocks:
            raise MalformedResponseError("no content returned")

        usage = data.get("usage") or {}
        return Completion(
            text="".join(blocks),
            usage=Usage(
                prompt_tokens=as_int(usage.get("input_tokens")),
                completion_tokens=as_int(usage.get("output_tokens")),
            ),
        )
