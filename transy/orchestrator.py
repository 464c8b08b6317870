"""Orchestrator 对外门面

bridge 的每个方法对应这里的一个操作

组装 ProviderStore、TranslationDispatcher、UsageAccumulator、
DefaultLanguageRegistry、TranslationCache 和 EventBus。

用法:
    from transy import get_orchestrator, TranslateRequest

    orchestrator = get_orchestrator()
    result = await orchestrator.translate_with_llm(TranslateRequest("你好", "zh", "en"))
"""
import logging
import sqlite3
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .cache import TranslationCache, make_key
from .defaults import DefaultLanguageRegistry
from .dispatcher import TranslationDispatcher, truncate
from .errors import MalformedResponseError, NoActiveProviderError
from .events import DEFAULT_LANGUAGES_CHANGED, PROVIDERS_CHANGED, EventBus, get_event_bus
from .loader import ConfigFile
from .settings import Settings, get_settings
from .store import ProviderStore
from .types import AUTO_DETECT, DetectResult, Provider, TranslateRequest, TranslateResult, Usage
from .usage import UsageAccumulator
from .validator import validate_provider

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    参数:
        settings: 可选，默认 get_settings()
        dispatcher: 可选，测试时注入带 MockTransport 的调度器
        event_bus: 可选，默认全局 EventBus
        cache: 可选，未提供时按 settings.cache_enabled 创建
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dispatcher: Optional[TranslationDispatcher] = None,
        event_bus: Optional[EventBus] = None,
        cache: Optional[TranslationCache] = None,
    ):
        self.settings = settings or get_settings()
        self.config = ConfigFile(self.settings.config_path)
        self.store = ProviderStore(self.config)
        self.defaults = DefaultLanguageRegistry(self.config, self.settings.default_target_language)
        self.dispatcher = dispatcher or TranslationDispatcher(
            timeout=self.settings.request_timeout,
            usage_accounting=self.settings.usage_accounting,
        )
        self.usage = UsageAccumulator()
        self.events = event_bus or get_event_bus()
        if cache is None and self.settings.cache_enabled:
            cache = TranslationCache(self.settings.cache_path, self.settings.cache_ttl_seconds)
        self.cache = cache

    def load(self) -> "Orchestrator":
        """读取配置文件并初始化各组件"""
        self.config.load()
        self.store.load()
        self.defaults.load()
        active = self.store.get_active()
        logger.info(f"Orchestrator 已就绪, active provider: {active.name if active else '无'}")
        return self

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
            self.cache = None

    # ── Provider 管理 ──

    def get_providers(self) -> List[Provider]:
        return self.store.list()

    def get_active_provider(self) -> Optional[Provider]:
        return self.store.get_active()

    async def add_provider(self, provider: Provider) -> Provider:
        provider = validate_provider(provider)
        added = await self.store.add(provider)
        await self._providers_changed("add", added.name)
        return added

    async def update_provider(self, old_name: str, provider: Provider) -> Provider:
        provider = validate_provider(provider)
        updated = await self.store.update(old_name, provider)
        await self._providers_changed("update", updated.name)
        return updated

    async def remove_provider(self, name: str) -> None:
        await self.store.remove(name)
        await self._providers_changed("remove", name)

    async def set_provider_active(self, name: str) -> Provider:
        provider = await self.store.set_active(name)
        await self._providers_changed("activate", name)
        return provider

    async def _providers_changed(self, action: str, name: str) -> None:
        active = self.store.get_active()
        await self.events.publish(PROVIDERS_CHANGED, {
            "action": action,
            "name": name,
            "active": active.name if active else None,
        })

    # ── 翻译 ──

    def _require_active(self) -> Provider:
        provider = self.store.get_active()
        if provider is None:
            raise NoActiveProviderError()
        return provider

    def _resolve_target(self, req: TranslateRequest) -> TranslateRequest:
        if req.target_lang:
            return req
        if req.auto_detect:
            target = self.settings.default_target_language
        else:
            target = self.defaults.get(req.source_lang)
        return replace(req, target_lang=target)

    async def translate_with_llm(self, req: TranslateRequest) -> TranslateResult:
        """使用 active provider 翻译

        Raises:
            NoActiveProviderError: 没有 active provider
            ProviderError / MalformedResponseError / ProviderTimeoutError: 上游调用失败
        """
        # 快照在网络调用前获取，调用期间的编辑不影响本次请求
        provider = self._require_active()
        if not req.text:
            return TranslateResult("", Usage())
        req = self._resolve_target(req)

        key = make_key(provider.name, provider.model, req.source_lang, req.target_lang, req.text)
        cached = await self._cache_get(key)
        if cached is not None:
            text, usage = cached
            usage = replace(usage, cache_hit=True)
            self.usage.record(usage)
            logger.debug(f"[{provider.name}] 缓存命中: {truncate(req.text)!r}")
            return TranslateResult(text, usage)

        result = await self.dispatcher.translate(provider, req)
        self.usage.record(result.usage)
        if result.text:
            await self._cache_put(key, result.text, result.usage)
        return result

    async def detect_language(self, text: str) -> DetectResult:
        """使用 active provider 检测语言，default_target 取自默认语言映射

        Raises:
            NoActiveProviderError: 没有 active provider
            MalformedResponseError: 检测结果无法解析（已消耗的用量仍会计入）
        """
        provider = self._require_active()
        try:
            result = await self.dispatcher.detect_language(provider, text)
        except MalformedResponseError as e:
            if e.usage is not None:
                self.usage.record(e.usage)
            raise
        if result.usage.total_tokens:
            self.usage.record(result.usage)
        if result.code == AUTO_DETECT:
            default_target = self.settings.default_target_language
        else:
            default_target = self.defaults.get(result.code)
        return replace(result, default_target=default_target)

    # ── 默认语言 ──

    def get_default_languages(self) -> Dict[str, str]:
        return self.defaults.all()

    async def set_default_language(self, source: str, target: str) -> None:
        await self.defaults.set(source, target)
        await self.events.publish(DEFAULT_LANGUAGES_CHANGED, self.defaults.all())

    # ── 统计 ──

    def get_usage_stats(self) -> Dict[str, int]:
        return self.usage.snapshot()

    def reset_usage(self) -> None:
        self.usage.reset()

    async def get_cache_stats(self) -> Dict[str, Any]:
        if self.cache is None:
            return {"enabled": False}
        stats = await self.cache.astats()
        stats["enabled"] = True
        return stats

    async def clear_cache(self) -> int:
        if self.cache is None:
            return 0
        removed = await self.cache.aclear()
        logger.info(f"已清空翻译缓存: {removed} 条")
        return removed

    # ── 缓存读写（失败只记录日志，不影响翻译） ──

    async def _cache_get(self, key: str):
        if self.cache is None:
            return None
        try:
            return await self.cache.aget(key)
        except (sqlite3.Error, ValueError) as e:
            logger.warning(f"读取翻译缓存失败: {e}")
            return None

    async def _cache_put(self, key: str, text: str, usage: Usage) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.aput(key, text, usage)
        except sqlite3.Error as e:
            logger.warning(f"写入翻译缓存失败: {e}")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """获取全局 Orchestrator 单例（首次调用时加载配置）"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = Orchestrator().load()
    return _orchestrator


def reset_orchestrator() -> None:
    """关闭并丢弃全局单例"""
    global _orchestrator
    if _orchestrator is not None:
        _orchestrator.close()
        _orchestrator = None
