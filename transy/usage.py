from __future__ import annotations

from threading import Lock
from typing import Dict

from .types import Usage


class UsageAccumulator:
    """会话级 token 用量统计，独立于 provider 状态加锁"""

    def __init__(self) -> None:
        self._lock = Lock()
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.total_tokens = 0
        self.requests = 0
        self.cache_hits = 0

    def record(self, usage: Usage) -> None:
        """记录一次请求；缓存命中不计 token（本次会话未实际消耗）"""
        with self._lock:
            self.requests += 1
            if usage.cache_hit:
                self.cache_hits += 1
                return
            self.prompt_tokens += usage.prompt_tokens
            self.completion_tokens += usage.completion_tokens
            self.total_tokens += usage.total_tokens

    def reset(self) -> None:
        with self._lock:
            self.prompt_tokens = 0
            self.completion_tokens = 0
            self.total_tokens = 0
            self.requests = 0
            self.cache_hits = 0

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "promptTokens": self.prompt_tokens,
                "completionTokens": self.completion_tokens,
                "totalTokens": self.total_tokens,
                "requests": self.requests,
                "cacheHits": self.cache_hits,
            }
