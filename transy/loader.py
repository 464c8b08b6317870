"""YAML 配置文件读写：providers + default_languages

文件格式:
    providers:
      - name: openai
        type: openai
        api_key: sk-...
        model: gpt-4o-mini
        active: true
    default_languages:
      zh: en
      en: zh

写入先落到临时文件再原子替换，写入成功后才更新内存中的文档。
"""
import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict

import aiofiles
import yaml

logger = logging.getLogger(__name__)

PROVIDERS_KEY = "providers"
DEFAULT_LANGUAGES_KEY = "default_languages"


class ConfigFile:
    """单个 YAML 配置文件，按顶层 section 更新"""

    def __init__(self, path: Path):
        self.path = path
        self._data: Dict[str, Any] = {}
        self._lock = asyncio.Lock()

    def load(self) -> Dict[str, Any]:
        """读取配置文件，文件不存在时返回空配置

        文件损坏时备份为 *.bak 并使用空配置，避免应用无法启动。
        """
        if not self.path.exists():
            logger.info(f"配置文件不存在: {self.path}，使用默认配置")
            self._data = {}
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            backup = self.path.with_name(self.path.name + ".bak")
            shutil.copy2(self.path, backup)
            logger.error(f"配置文件解析失败: {e}，已备份到 {backup}")
            data = None

        if not isinstance(data, dict):
            data = {}

        if not isinstance(data.get(PROVIDERS_KEY), list):
            data[PROVIDERS_KEY] = []
        if not isinstance(data.get(DEFAULT_LANGUAGES_KEY), dict):
            data.pop(DEFAULT_LANGUAGES_KEY, None)

        self._data = data
        logger.info(f"已加载配置文件: {self.path}")
        return dict(data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    async def save_section(self, key: str, value: Any) -> None:
        """更新一个顶层 section 并立即持久化

        Raises:
            OSError: 写入失败，此时内存中的文档保持不变
        """
        async with self._lock:
            data = dict(self._data)
            data[key] = value
            await self._write(data)
            self._data = data

    async def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = yaml.safe_dump(
            data, default_flow_style=False, allow_unicode=True, sort_keys=False
        )
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        os.replace(tmp_path, self.path)
        logger.debug(f"配置已写入: {self.path}")
