"""SQLite 翻译缓存：相同 provider/model/语言对/文本 的请求直接返回上次结果

key = sha256(provider|model|source|target|normalized_text)，文本先做规范化
（NFC、统一换行、折叠空白、去首尾空白）以提高命中率。条目超过 TTL 视为未命中。

SQLite 调用是阻塞的，异步接口通过 asyncio.to_thread 在线程池中执行。
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import sqlite3
import time
import unicodedata
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from .types import Usage

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60

_SCHEMA = """
CREATE TABLE IF NOT EXISTS translations (
    key TEXT PRIMARY KEY,
    text TEXT NOT NULL,
    usage TEXT NOT NULL,
    created_at REAL NOT NULL
);
"""

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def make_key(provider: str, model: str, source_lang: str, target_lang: str, text: str) -> str:
    data = f"{provider}|{model}|{source_lang}|{target_lang}|{normalize_text(text)}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class TranslationCache:
    """持久化翻译缓存，带命中/未命中统计"""

    def __init__(self, db_path: str | Path, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ttl = ttl_seconds
        self._lock = Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self.hits = 0
        self.misses = 0

    # ── 同步接口 ──

    def get(self, key: str) -> Optional[tuple[str, Usage]]:
        """查找缓存，过期条目会被删除并计为未命中"""
        with self._lock:
            row = self._conn.execute(
                "SELECT text, usage, created_at FROM translations WHERE key = ?", (key,)
            ).fetchone()
            if row is not None and time.time() - row[2] > self._ttl:
                self._conn.execute("DELETE FROM translations WHERE key = ?", (key,))
                self._conn.commit()
                row = None

            if row is None:
                self.misses += 1
                return None
            self.hits += 1

        usage = Usage.from_dict(json.loads(row[1]))
        return row[0], usage

    def put(self, key: str, text: str, usage: Usage) -> None:
        payload = json.dumps(usage.to_dict())
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO translations (key, text, usage, created_at) VALUES (?, ?, ?, ?)",
                (key, text, payload, time.time()),
            )
            self._conn.commit()

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM translations").fetchone()[0]

    def clear(self) -> int:
        """清空缓存并重置统计，返回删除的条目数"""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM translations")
            self._conn.commit()
            self.hits = 0
            self.misses = 0
            return cursor.rowcount

    def stats(self) -> Dict[str, object]:
        with self._lock:
            total = self.hits + self.misses
            hit_rate = self.hits / total * 100 if total else 0.0
            return {
                "hits": self.hits,
                "misses": self.misses,
                "hitRate": round(hit_rate, 2),
            }

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ── 异步接口 ──

    async def aget(self, key: str) -> Optional[tuple[str, Usage]]:
        return await asyncio.to_thread(self.get, key)

    async def aput(self, key: str, text: str, usage: Usage) -> None:
        await asyncio.to_thread(self.put, key, text, usage)

    async def aclear(self) -> int:
        return await asyncio.to_thread(self.clear)

    async def astats(self) -> Dict[str, object]:
        stats = await asyncio.to_thread(self.stats)
        stats["entries"] = await asyncio.to_thread(self.count)
        return stats
