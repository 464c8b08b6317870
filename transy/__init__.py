"""Transy: 多 Provider 翻译编排

用法:
    from transy import get_orchestrator, Provider, TranslateRequest

    orchestrator = get_orchestrator()
    await orchestrator.add_provider(Provider(name="openai", type="openai", api_key="sk-...", model="gpt-4o-mini"))
    result = await orchestrator.translate_with_llm(TranslateRequest("你好世界", "auto", "en"))
"""
from .errors import (
    DuplicateNameError,
    InvalidConfigError,
    MalformedResponseError,
    NoActiveProviderError,
    ProviderError,
    ProviderNotFoundError,
    ProviderTimeoutError,
    TransyError,
)
from .types import (
    AUTO_DETECT,
    DetectResult,
    Provider,
    TranslateRequest,
    TranslateResult,
    Usage,
)
from .orchestrator import Orchestrator, get_orchestrator, reset_orchestrator
from .settings import Settings, get_settings

__all__ = [
    "AUTO_DETECT",
    "Provider",
    "TranslateRequest",
    "TranslateResult",
    "Usage",
    "DetectResult",
    "Orchestrator",
    "get_orchestrator",
    "reset_orchestrator",
    "Settings",
    "get_settings",
    "TransyError",
    "DuplicateNameError",
    "ProviderNotFoundError",
    "InvalidConfigError",
    "NoActiveProviderError",
    "ProviderError",
    "MalformedResponseError",
    "ProviderTimeoutError",
]
