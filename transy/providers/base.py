"""Provider 客户端抽象基类

每种后端类型（openai、claude、gemini、deepl ...）对应一个 ProviderClient 子类，
各自负责请求体构造和响应解析，对外统一为 translate / detect_language 两个能力，
返回共享的 Completion 结构。

对话式后端继承 ChatProviderClient，只需实现:
- endpoint(): 请求地址
- headers(): 认证头
- build_payload(messages): 请求体
- parse_response(data): 解析出 Completion
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from ..errors import MalformedResponseError, ProviderError
from ..languages import LANGUAGES, is_language_code, normalize_code, prompt_name
from ..types import AUTO_DETECT, DEFAULT_MAX_TOKENS, Provider, Usage

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a professional translator. Translate the user's text faithfully and fluently.\n"
    "Output only the translation. Do NOT explain, annotate, or wrap the output in quotes or code fences.\n"
    "Preserve line breaks, Markdown formatting, placeholders, URLs and code as they are."
)

DETECT_SYSTEM_PROMPT = (
    "You are a language identification engine. "
    "Reply with the ISO 639-1 code of the language of the user's text and nothing else."
)

USAGE_SUM = "sum"
USAGE_TRANSLATION = "translation"
USAGE_POLICIES = (USAGE_SUM, USAGE_TRANSLATION)


@dataclass
class Message:
    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class Completion:
    """单次 Provider 调用的归一化结果"""
    text: str
    usage: Usage = field(default_factory=Usage)
    detected_source: Optional[str] = None


def translation_messages(provider: Provider, text: str, source_lang: str, target_lang: str) -> List[Message]:
    """组装翻译 prompt：system_prompt + 注入源/目标语言名的用户消息"""
    if source_lang == AUTO_DETECT:
        instruction = f"please translate the following text to {prompt_name(target_lang)}:"
    else:
        instruction = (
            f"please translate the following text from {prompt_name(source_lang)} "
            f"to {prompt_name(target_lang)}:"
        )
    return [
        Message("system", provider.system_prompt or DEFAULT_SYSTEM_PROMPT),
        Message("user", f"{instruction}\n\n{text}"),
    ]


def detection_messages(text: str) -> List[Message]:
    return [
        Message("system", DETECT_SYSTEM_PROMPT),
        Message("user", text),
    ]


_NAME_TO_CODE = {lang.name.lower(): code for code, lang in LANGUAGES.items()}


def parse_language_code(raw: str) -> str:
    """从模型回复中提取语言代码，兼容 "en"、"EN."、"`zh-CN`"、"English" 等写法

    Raises:
        MalformedResponseError: 回复中没有可识别的语言代码
    """
    token = (raw or "").strip().split()
    if not token:
        raise MalformedResponseError("empty language detection response")
    candidate = token[0].strip(" \t\"'`.,:;()[]").lower()
    if candidate in _NAME_TO_CODE:
        return _NAME_TO_CODE[candidate]
    # ISO 639-1 主代码只有两个字母，避免把 "the" 之类的单词当成代码
    if is_language_code(candidate) and len(candidate.split("-", 1)[0]) == 2:
        return normalize_code(candidate)
    raise MalformedResponseError(f"unexpected language detection response: {raw[:32]!r}")


class ProviderClient(ABC):
    """Provider 能力接口：translate + detect_language

    类属性:
        kind: 对应 Provider.type
        requires_api_key: 校验时是否要求 api_key
        requires_base_url: 校验时是否要求 base_url
        bundled_detection: 翻译调用本身会检测源语言（无需单独检测请求）
        usage_accounting: 自动检测时的默认用量统计方式，见 USAGE_POLICIES
    """

    kind: str = ""
    requires_api_key: bool = True
    requires_base_url: bool = False
    bundled_detection: bool = False
    usage_accounting: str = USAGE_SUM

    def __init__(self, provider: Provider, http: httpx.AsyncClient):
        self.provider = provider
        self.http = http

    @abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> Completion:
        """翻译文本；source_lang 为 "auto" 时由后端自行推断"""
        ...

    @abstractmethod
    async def detect_language(self, text: str) -> Completion:
        """检测语言，Completion.text 为语言代码"""
        ...


class ChatProviderClient(ProviderClient):
    """对话式 LLM 后端的公共实现：通过 prompt 完成翻译和检测"""

    DEFAULT_BASE_URL: str = ""
    default_max_tokens: int = DEFAULT_MAX_TOKENS

    async def translate(self, text: str, source_lang: str, target_lang: str) -> Completion:
        messages = translation_messages(self.provider, text, source_lang, target_lang)
        completion = await self.complete(messages)
        completion.text = completion.text.strip()
        return completion

    async def detect_language(self, text: str) -> Completion:
        completion = await self.complete(detection_messages(text), max_tokens=16, temperature=0.0)
        try:
            completion.text = parse_language_code(completion.text)
        except MalformedResponseError as e:
            e.usage = completion.usage
            raise
        return completion

    @property
    def base_url(self) -> str:
        return (self.provider.base_url or self.DEFAULT_BASE_URL).rstrip("/")

    @property
    def max_tokens(self) -> int:
        if self.provider.max_tokens is not None:
            return self.provider.max_tokens
        return self.default_max_tokens

    async def complete(
        self,
        messages: List[Message],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Completion:
        payload = self.build_payload(
            messages,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            temperature=temperature if temperature is not None else self.provider.effective_temperature,
        )
        data = await self.post_json(self.endpoint(), payload, self.headers())
        return self.parse_response(data)

    @abstractmethod
    def endpoint(self) -> str:
        ...

    @abstractmethod
    def headers(self) -> Dict[str, str]:
        ...

    @abstractmethod
    def build_payload(self, messages: List[Message], max_tokens: int, temperature: float) -> Dict[str, Any]:
        ...

    @abstractmethod
    def parse_response(self, data: Dict[str, Any]) -> Completion:
        ...

    async def post_json(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        """POST JSON 并返回解析后的响应体

        Raises:
            ProviderError: 非 2xx 响应
            MalformedResponseError: 响应体不是 JSON 对象
        """
        resp = await self.http.post(url, json=payload, headers=headers)
        if not resp.is_success:
            raise ProviderError(resp.status_code, extract_error_message(resp), self.kind)
        return decode_json(resp)


def decode_json(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponseError(f"unmarshal response: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError(f"unexpected response type: {type(data).__name__}")
    return data


def extract_error_message(resp: httpx.Response) -> str:
    """从错误响应中提取上游消息

    兼容 {"error": {"message": ...}}、{"error": "..."}、{"message": ...} 三种格式，
    都不匹配时返回原始响应文本。
    """
    try:
        data = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text.strip() or resp.reason_phrase

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
    return resp.text.strip() or resp.reason_phrase


def as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
