"""SSE 端点：推送 provider / 默认语言变更通知

前端通过 EventSource 连接 /api/events，每条事件为
{"topic": ..., "data": ...}；空闲时每 15 秒发送一次心跳。
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from transy import Orchestrator, get_orchestrator
from transy.events import ALL_TOPICS, EventBus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["events"])

HEARTBEAT_INTERVAL = 15.0


def format_sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def event_stream(
    bus: EventBus, heartbeat: float = HEARTBEAT_INTERVAL
) -> AsyncGenerator[str, None]:
    queue = bus.subscribe(ALL_TOPICS)
    yield format_sse({"topic": "connected", "data": {}})

    try:
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield format_sse({"topic": "heartbeat", "data": {}})
                continue
            yield format_sse(event)
    except asyncio.CancelledError:
        # 客户端断开连接
        logger.info("SSE 客户端断开")
        raise
    finally:
        bus.unsubscribe(ALL_TOPICS, queue)


@router.get("/events")
async def events(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return StreamingResponse(
        event_stream(orchestrator.events),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
