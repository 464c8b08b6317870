"""Provider 客户端注册表

新增后端类型只需实现 ProviderClient 子类并加入 PROVIDER_REGISTRY。
"""
from typing import Dict, Type

from .base import (
    USAGE_POLICIES,
    USAGE_SUM,
    USAGE_TRANSLATION,
    ChatProviderClient,
    Completion,
    Message,
    ProviderClient,
)
from .claude import ClaudeClient
from .deepl import DeepLClient
from .gemini import GeminiClient
from .openai_compat import OpenAIClient, OpenAICompatClient

PROVIDER_REGISTRY: Dict[str, Type[ProviderClient]] = {
    "openai": OpenAIClient,
    "openai-compatible": OpenAICompatClient,
    "claude": ClaudeClient,
    "gemini": GeminiClient,
    "deepl": DeepLClient,
}


__all__ = [
    "PROVIDER_REGISTRY",
    "ProviderClient",
    "ChatProviderClient",
    "Completion",
    "Message",
    "USAGE_POLICIES",
    "USAGE_SUM",
    "USAGE_TRANSLATION",
    "OpenAIClient",
    "OpenAICompatClient",
    "ClaudeClient",
    "GeminiClient",
    "DeepLClient",
]
