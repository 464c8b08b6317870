"""EventBus — 进程内事件总线，基于 asyncio.Queue

Orchestrator 在状态变更后发布通知，SSE 端点订阅后推送给前端。

Usage::

    bus = EventBus()
    queue = bus.subscribe(PROVIDERS_CHANGED)
    await bus.publish(PROVIDERS_CHANGED, {"active": "openai"})
    event = await queue.get()
    bus.unsubscribe(PROVIDERS_CHANGED, queue)

订阅 ALL_TOPICS 会收到所有主题的事件。
"""

from __future__ import annotations

import asyncio

PROVIDERS_CHANGED = "providers-changed"
DEFAULT_LANGUAGES_CHANGED = "default-languages-changed"
ALL_TOPICS = "*"


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[asyncio.Queue]] = {}

    def subscribe(self, topic: str = ALL_TOPICS) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.setdefault(topic, []).append(queue)
        return queue

    def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        """取消订阅；topic 或 queue 不存在时静默忽略"""
        if topic in self._subscribers:
            self._subscribers[topic] = [q for q in self._subscribers[topic] if q is not queue]
            if not self._subscribers[topic]:
                del self._subscribers[topic]

    async def publish(self, topic: str, data: dict) -> None:
        """发布事件，没有订阅者时丢弃

        投递给订阅者的事件格式为 {"topic": topic, "data": data}。
        """
        event = {"topic": topic, "data": data}
        for queue in self._subscribers.get(topic, []) + self._subscribers.get(ALL_TOPICS, []):
            await queue.put(event)

    def subscriber_count(self, topic: str = ALL_TOPICS) -> int:
        return len(self._subscribers.get(topic, []))


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus
