"""源语言 -> 默认目标语言 映射，持久化到配置文件的 default_languages 段"""
import asyncio
import logging
from typing import Dict

from .errors import InvalidConfigError
from .languages import normalize_code
from .loader import DEFAULT_LANGUAGES_KEY, ConfigFile

logger = logging.getLogger(__name__)

# 配置文件中还没有映射时的初始值
SEED_DEFAULTS: Dict[str, str] = {"zh": "en", "en": "zh"}


class DefaultLanguageRegistry:
    def __init__(self, config: ConfigFile, fallback: str = "en"):
        self._config = config
        self._fallback = normalize_code(fallback) or "en"
        self._defaults: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    def load(self) -> None:
        stored = self._config.get(DEFAULT_LANGUAGES_KEY)
        if stored is None:
            self._defaults = dict(SEED_DEFAULTS)
            return
        self._defaults = {
            normalize_code(str(k)): normalize_code(str(v))
            for k, v in stored.items()
            if str(k).strip() and str(v).strip()
        }

    def get(self, source: str) -> str:
        """返回源语言的默认目标语言，未配置时返回全局默认值"""
        return self._defaults.get(normalize_code(source), self._fallback)

    def all(self) -> Dict[str, str]:
        return dict(self._defaults)

    async def set(self, source: str, target: str) -> None:
        """设置并立即持久化

        Raises:
            InvalidConfigError: 语言代码为空
        """
        source, target = normalize_code(source), normalize_code(target)
        if not source:
            raise InvalidConfigError("source language is required", field="source")
        if not target:
            raise InvalidConfigError("target language is required", field="target")

        async with self._lock:
            updated = dict(self._defaults)
            updated[source] = target
            await self._config.save_section(DEFAULT_LANGUAGES_KEY, updated)
            self._defaults = updated
        logger.info(f"已设置默认目标语言: {source} -> {target}")
