"""Google Gemini generateContent API

请求地址: {base_url}/{model}:generateContent
API key 通过 x-goog-api-key 头传递，不拼进 URL，避免出现在日志里。
"""
from typing import Any, Dict, List

from ..errors import MalformedResponseError
from ..types import Usage
from .base import ChatProviderClient, Completion, Message, as_int


class GeminiClient(ChatProviderClient):
    kind = "gemini"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def endpoint(self) -> str:
        return f"{self.base_url}/{self.provider.model}:generateContent"

    def headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.provider.api_key}

    def build_payload(self, messages: List[Message], max_tokens: int, temperature: float) -> Dict[str, Any]:
        system = "\n".join(m.content for m in messages if m.role == "system")
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role != "system"
        ]

        generation_config: Dict[str, Any] = {
            "maxOutputTokens": max_tokens,
            "temperature": temperature,
        }
        # 2.5 系列默认开启 thinking，会占用输出 token
        if self.provider.disable_thinking:
            generation_config["thinkingConfig"] = {"thinkingBudget": 0}

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason")
            if reason:
                raise MalformedResponseError(f"prompt blocked: {reason}")
            raise MalformedResponseError("no candidates returned")

        content = candidates[0].get("content") or {}
        parts = [p.get("text", "") for p in content.get("parts") or [] if isinstance(p, dict)]
        if not parts:
            raise MalformedResponseError("no content returned")

        meta = data.get("usageMetadata") or {}
        return Completion(
            text="".join(parts),
            usage=Usage(
                prompt_tokens=as_int(meta.get("promptTokenCount")),
                completion_tokens=as_int(meta.get("candidatesTokenCount")),
                total_tokens=as_int(meta["totalTokenCount"]) if meta.get("totalTokenCount") else None,
            ),
        )
