"""Provider 存储 — 内存快照 + YAML 持久化

- 读操作无锁，直接返回当前不可变快照（tuple）
- 写操作由 asyncio.Lock 串行化：先计算新列表，写盘成功后再替换快照
- 任何时刻至多一个 active provider；非空时恰好一个
"""
import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from .errors import DuplicateNameError, ProviderNotFoundError
from .loader import PROVIDERS_KEY, ConfigFile
from .types import Provider

logger = logging.getLogger(__name__)


def normalize_providers(providers: Iterable[Provider]) -> Tuple[Provider, ...]:
    """加载时规范化：同名保留第一条，至多一个 active，无 active 时激活第一个"""
    seen = set()
    result: List[Provider] = []
    active_seen = False
    for p in providers:
        if not p.name or p.name in seen:
            logger.warning(f"忽略重复或无名的 provider 配置: {p.name!r}")
            continue
        seen.add(p.name)
        if p.active:
            if active_seen:
                p = p.with_active(False)
            active_seen = True
        result.append(p)

    if result and not active_seen:
        result[0] = result[0].with_active(True)
    return tuple(result)


def _only_active(providers: Iterable[Provider], name: str) -> List[Provider]:
    return [p.with_active(p.name == name) for p in providers]


class ProviderStore:
    """Provider 列表的唯一持有者"""

    def __init__(self, config: ConfigFile):
        self._config = config
        self._providers: Tuple[Provider, ...] = ()
        self._lock = asyncio.Lock()

    def load(self) -> None:
        """从配置文件加载 provider 列表（启动时调用一次）"""
        raw = self._config.get(PROVIDERS_KEY) or []
        providers = []
        for item in raw:
            if not isinstance(item, dict):
                logger.warning(f"忽略无法解析的 provider 配置: {item!r}")
                continue
            try:
                providers.append(Provider.from_dict(item))
            except (TypeError, ValueError) as e:
                logger.warning(f"忽略字段类型错误的 provider 配置 {item.get('name')!r}: {e}")
        self._providers = normalize_providers(providers)
        logger.info(f"已加载 {len(self._providers)} 个 provider")

    # ── 读操作 ──

    def list(self) -> List[Provider]:
        return list(self._providers)

    def get(self, name: str) -> Optional[Provider]:
        for p in self._providers:
            if p.name == name:
                return p
        return None

    def get_active(self) -> Optional[Provider]:
        for p in self._providers:
            if p.active:
                return p
        return None

    # ── 写操作 ──

    async def add(self, provider: Provider) -> Provider:
        """新增 provider；第一个或 active=True 的 provider 成为唯一 active

        Raises:
            DuplicateNameError: 名称已存在
        """
        async with self._lock:
            current = self._providers
            if any(p.name == provider.name for p in current):
                raise DuplicateNameError(provider.name)

            if not current or provider.active:
                updated = _only_active(current, provider.name) + [provider.with_active(True)]
            else:
                updated = list(current) + [provider]

            await self._commit(updated)
            logger.info(f"已添加 provider: {provider.name} ({provider.type}/{provider.model})")
            return self._find(provider.name)

    async def update(self, old_name: str, provider: Provider) -> Provider:
        """替换 old_name 对应的记录，允许改名

        provider.active 为 True 且原记录未激活时，新记录成为唯一 active；
        否则沿用原记录的激活状态。

        Raises:
            ProviderNotFoundError: old_name 不存在
            DuplicateNameError: 改名后与其他 provider 重名
        """
        async with self._lock:
            current = self._providers
            index = next((i for i, p in enumerate(current) if p.name == old_name), None)
            if index is None:
                raise ProviderNotFoundError(old_name)
            if provider.name != old_name and any(p.name == provider.name for p in current):
                raise DuplicateNameError(provider.name)

            old = current[index]
            if provider.active and not old.active:
                updated = _only_active(current, provider.name)
                updated[index] = provider.with_active(True)
            else:
                updated = list(current)
                updated[index] = provider.with_active(old.active)

            await self._commit(updated)
            logger.info(f"已更新 provider: {old_name} -> {provider.name}")
            return self._find(provider.name)

    async def remove(self, name: str) -> None:
        """删除 provider；删除的是 active 时第一个剩余 provider 被激活

        Raises:
            ProviderNotFoundError: name 不存在
        """
        async with self._lock:
            current = self._providers
            target = next((p for p in current if p.name == name), None)
            if target is None:
                raise ProviderNotFoundError(name)

            updated = [p for p in current if p.name != name]
            if target.active and updated:
                updated[0] = updated[0].with_active(True)

            await self._commit(updated)
            logger.info(f"已删除 provider: {name}")

    async def set_active(self, name: str) -> Provider:
        """激活指定 provider，其余全部取消激活

        Raises:
            ProviderNotFoundError: name 不存在（存储保持不变）
        """
        async with self._lock:
            current = self._providers
            if not any(p.name == name for p in current):
                raise ProviderNotFoundError(name)

            await self._commit(_only_active(current, name))
            logger.info(f"已切换 active provider: {name}")
            return self._find(name)

    # ── 内部 ──

    def _find(self, name: str) -> Provider:
        provider = self.get(name)
        assert provider is not None
        return provider

    async def _commit(self, providers: List[Provider]) -> None:
        """先写盘，成功后再发布新快照"""
        snapshot = tuple(providers)
        await self._config.save_section(PROVIDERS_KEY, [p.to_dict() for p in snapshot])
        self._providers = snapshot
