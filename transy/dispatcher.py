"""翻译调度器：按 provider.type 选择客户端，执行翻译/检测并归一化结果

- 空文本直接返回空结果，不发请求
- source_lang 为 "auto" 时先检测再翻译（顺序执行）；自带检测的后端只发一次请求
- 每次调用有 httpx/SDK 级超时，整个调用（含检测+翻译）再由 asyncio.wait_for 兜底
- 不做重试
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Mapping, Optional, Type

import httpx

from .errors import InvalidConfigError, MalformedResponseError, ProviderError, ProviderTimeoutError
from .languages import display_name, lookup
from .providers import PROVIDER_REGISTRY, USAGE_POLICIES, USAGE_SUM, ProviderClient
from .types import AUTO_DETECT, DetectResult, Provider, TranslateRequest, TranslateResult, Usage

logger = logging.getLogger(__name__)

# 日志/错误消息中文本的最大长度
TRUNCATE_LENGTH = 32


def truncate(text: str, limit: int = TRUNCATE_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class TranslationDispatcher:
    """
    参数:
        timeout: 单次调用超时（秒）
        usage_accounting: 按 provider 类型覆盖自动检测时的用量统计方式
        registry: 可选的客户端注册表，默认 PROVIDER_REGISTRY
        transport: 可选的 httpx 传输层，测试时注入 httpx.MockTransport
    """

    def __init__(
        self,
        timeout: float = 30.0,
        usage_accounting: Optional[Mapping[str, str]] = None,
        registry: Optional[Dict[str, Type[ProviderClient]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._usage_accounting = dict(usage_accounting or {})
        self._registry = registry or PROVIDER_REGISTRY
        self._transport = transport

        for kind, policy in self._usage_accounting.items():
            if policy not in USAGE_POLICIES:
                raise InvalidConfigError(
                    f"unknown usage accounting policy for {kind}: {policy!r}", field="usage_accounting"
                )

    def client_class(self, provider: Provider) -> Type[ProviderClient]:
        client_cls = self._registry.get(provider.type)
        if client_cls is None:
            raise InvalidConfigError(f"unsupported provider type: {provider.type!r}", field="type")
        return client_cls

    def usage_policy(self, provider: Provider) -> str:
        return self._usage_accounting.get(provider.type) or self.client_class(provider).usage_accounting

    @asynccontextmanager
    async def _open(self, provider: Provider) -> AsyncIterator[ProviderClient]:
        client_cls = self.client_class(provider)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
            yield client_cls(provider, http)

    # ── 对外接口 ──

    async def translate(self, provider: Provider, req: TranslateRequest) -> TranslateResult:
        """翻译文本

        Raises:
            ProviderError / MalformedResponseError / ProviderTimeoutError
        """
        if not req.text:
            return TranslateResult("", Usage())
        return await self._bounded(self._translate(provider, req), provider, req.text)

    async def detect_language(self, provider: Provider, text: str) -> DetectResult:
        """检测语言，default_target 留空由调用方填充"""
        if not text.strip():
            return DetectResult(AUTO_DETECT, "")
        return await self._bounded(self._detect(provider, text), provider, text)

    # ── 内部 ──

    async def _translate(self, provider: Provider, req: TranslateRequest) -> TranslateResult:
        async with self._open(provider) as client:
            source = AUTO_DETECT if req.auto_detect else req.source_lang
            detect_usage = Usage()

            if source == AUTO_DETECT and not client.bundled_detection:
                try:
                    detected = await client.detect_language(req.text)
                except MalformedResponseError as e:
                    # 无法识别时保持 auto，由模型自行判断源语言；已消耗的检测用量照常计入
                    if e.usage is not None:
                        detect_usage = e.usage
                    logger.warning(f"[{provider.name}] 语言检测结果无法解析，保持自动: {e}")
                else:
                    detect_usage = detected.usage
                    if lookup(detected.text) is not None:
                        source = detected.text
                    logger.debug(f"[{provider.name}] 检测到源语言: {detected.text}")

            completion = await client.translate(req.text, source, req.target_lang)

        if self.usage_policy(provider) == USAGE_SUM:
            usage = detect_usage + completion.usage
        else:
            usage = completion.usage
        return TranslateResult(completion.text, usage)

    async def _detect(self, provider: Provider, text: str) -> DetectResult:
        async with self._open(provider) as client:
            completion = await client.detect_language(text)
        code = completion.text
        return DetectResult(code, display_name(code), usage=completion.usage)

    async def _bounded(self, coro, provider: Provider, text: str):
        """统一超时与传输层异常映射"""
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except ProviderTimeoutError:
            logger.warning(f"[{provider.name}] 请求超时 ({self.timeout:g}s): {truncate(text)!r}")
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"[{provider.name}] 请求超时 ({self.timeout:g}s): {truncate(text)!r}")
            raise ProviderTimeoutError(self.timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"[{provider.name}] 网络错误: {e}")
            raise ProviderError(0, f"request failed: {e}", provider.type) from e
        except ProviderError as e:
            logger.warning(
                f"[{provider.name}] 上游错误 status={e.status}: {e.upstream_message} ({truncate(text)!r})"
            )
            raise
