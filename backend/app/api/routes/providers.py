"""Provider CRUD API

Key 安全策略：
- 列表/查询接口不返回 api_key，只返回 has_key
- 更新时 api_key 传 "__KEEP__" 表示沿用原有 key
"""
import logging
from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, Depends

from transy import Orchestrator, Provider, ProviderNotFoundError, get_orchestrator
from backend.app.models.schemas import KEEP_API_KEY, ProviderPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/providers", tags=["providers"])


def provider_view(provider: Optional[Provider]) -> Optional[dict]:
    if provider is None:
        return None
    data = provider.to_dict()
    data.pop("api_key", None)
    data["has_key"] = bool(provider.api_key)
    return data


@router.get("")
async def get_providers(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return {"providers": [provider_view(p) for p in orchestrator.get_providers()]}


@router.get("/active")
async def get_active_provider(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return {"provider": provider_view(orchestrator.get_active_provider())}


@router.post("", status_code=201)
async def add_provider(
    request: ProviderPayload, orchestrator: Orchestrator = Depends(get_orchestrator)
):
    provider = request.to_provider()
    if provider.api_key == KEEP_API_KEY:
        provider = replace(provider, api_key="")
    added = await orchestrator.add_provider(provider)
    return {"provider": provider_view(added)}


@router.put("/{name}")
async def update_provider(
    name: str, request: ProviderPayload, orchestrator: Orchestrator = Depends(get_orchestrator)
):
    provider = request.to_provider()
    if provider.api_key == KEEP_API_KEY:
        existing = orchestrator.store.get(name)
        if existing is None:
            raise ProviderNotFoundError(name)
        provider = replace(provider, api_key=existing.api_key)
    updated = await orchestrator.update_provider(name, provider)
    return {"provider": provider_view(updated)}


@router.delete("/{name}")
async def remove_provider(name: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    await orchestrator.remove_provider(name)
    return {"removed": name, "active": provider_view(orchestrator.get_active_provider())}


@router.post("/{name}/activate")
async def set_provider_active(name: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    provider = await orchestrator.set_provider_active(name)
    return {"provider": provider_view(provider)}
