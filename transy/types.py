"""共享数据类型：Provider、TranslateRequest、TranslateResult、Usage、DetectResult

跨 bridge 传输时使用 to_dict/from_dict：
- Provider 使用 snake_case 字段名（base_url、api_key ...），未设置的可选字段省略
- 其余请求/结果类型使用 camelCase 字段名（sourceLang、totalTokens ...）
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

# 自动检测源语言的哨兵值
AUTO_DETECT = "auto"

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.3


@dataclass(frozen=True)
class Provider:
    """LLM Provider 配置，name 为唯一键

    Attributes:
        name: 用户自定义名称（唯一）
        type: 后端类型 "openai" | "openai-compatible" | "claude" | "gemini" | "deepl"
        api_key: API Key（明文，静态加密不在本模块范围内）
        model: 模型名
        base_url: 可选，覆盖默认 API 地址
        system_prompt: 可选，覆盖内置翻译 prompt
        max_tokens: 可选，None 表示使用默认值
        temperature: 可选，None 表示使用默认值
        active: 是否为当前激活的 Provider
        disable_thinking: Gemini 专用，thinkingBudget 置 0
    """

    name: str
    type: str
    api_key: str = ""
    model: str = ""
    base_url: str | None = None
    system_prompt: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    active: bool = False
    disable_thinking: bool = False

    def with_active(self, active: bool) -> Provider:
        if self.active == active:
            return self
        return replace(self, active=active)

    @property
    def effective_max_tokens(self) -> int:
        return self.max_tokens if self.max_tokens is not None else DEFAULT_MAX_TOKENS

    @property
    def effective_temperature(self) -> float:
        return self.temperature if self.temperature is not None else DEFAULT_TEMPERATURE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "api_key": self.api_key,
            "model": self.model,
            "active": self.active,
        }
        if self.base_url:
            data["base_url"] = self.base_url
        if self.system_prompt:
            data["system_prompt"] = self.system_prompt
        if self.max_tokens is not None:
            data["max_tokens"] = self.max_tokens
        if self.temperature is not None:
            data["temperature"] = self.temperature
        if self.disable_thinking:
            data["disable_thinking"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Provider:
        """从字典创建实例，缺失的可选字段取默认值

        旧配置文件中 max_tokens 写成 0 视为未设置；temperature 为 0 是合法值。
        类型无法转换时抛出 ValueError / TypeError。
        """
        max_tokens = data.get("max_tokens")
        temperature = data.get("temperature")
        return cls(
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ""),
            api_key=str(data.get("api_key") or ""),
            model=str(data.get("model") or ""),
            base_url=data.get("base_url") or None,
            system_prompt=data.get("system_prompt") or None,
            max_tokens=int(max_tokens) if max_tokens not in (None, "", 0) else None,
            temperature=float(temperature) if temperature not in (None, "") else None,
            active=bool(data.get("active", False)),
            disable_thinking=bool(data.get("disable_thinking", False)),
        )


@dataclass(frozen=True)
class TranslateRequest:
    text: str
    source_lang: str = AUTO_DETECT
    target_lang: str = "en"

    @property
    def auto_detect(self) -> bool:
        return not self.source_lang or self.source_lang == AUTO_DETECT

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "sourceLang": self.source_lang,
            "targetLang": self.target_lang,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TranslateRequest:
        return cls(
            text=data.get("text", ""),
            source_lang=data.get("sourceLang") or AUTO_DETECT,
            target_lang=data.get("targetLang", ""),
        )


@dataclass(frozen=True)
class Usage:
    """Token 用量统计

    total_tokens 为 None 时按 prompt + completion 计算；
    Provider 显式上报 total 时以上报值为准。负数一律截断为 0。
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int | None = None
    cache_hit: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "prompt_tokens", max(0, int(self.prompt_tokens or 0)))
        object.__setattr__(self, "completion_tokens", max(0, int(self.completion_tokens or 0)))
        if self.total_tokens is None:
            total = self.prompt_tokens + self.completion_tokens
        else:
            total = max(0, int(self.total_tokens))
        object.__setattr__(self, "total_tokens", total)

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            cache_hit=self.cache_hit and other.cache_hit,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
            "cacheHit": self.cache_hit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Usage:
        return cls(
            prompt_tokens=data.get("promptTokens", 0),
            completion_tokens=data.get("completionTokens", 0),
            total_tokens=data.get("totalTokens"),
            cache_hit=bool(data.get("cacheHit", False)),
        )


@dataclass(frozen=True)
class TranslateResult:
    text: str
    usage: Usage = field(default_factory=Usage)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "usage": self.usage.to_dict()}


@dataclass(frozen=True)
class DetectResult:
    code: str
    name: str = ""
    default_target: str = ""
    usage: Usage = field(default_factory=Usage, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "defaultTarget": self.default_target,
        }
