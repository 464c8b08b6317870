"""用量与缓存统计 API"""
from fastapi import APIRouter, Depends

from transy import Orchestrator, get_orchestrator

router = APIRouter(prefix="/api", tags=["usage"])


@router.get("/usage")
async def get_usage_stats(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return orchestrator.get_usage_stats()


@router.delete("/usage")
async def reset_usage(orchestrator: Orchestrator = Depends(get_orchestrator)):
    orchestrator.reset_usage()
    return orchestrator.get_usage_stats()


@router.get("/cache")
async def get_cache_stats(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await orchestrator.get_cache_stats()


@router.delete("/cache")
async def clear_cache(orchestrator: Orchestrator = Depends(get_orchestrator)):
    removed = await orchestrator.clear_cache()
    return {"removed": removed}
