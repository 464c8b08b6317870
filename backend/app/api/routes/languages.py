from fastapi import APIRouter, Depends

from transy import Orchestrator, get_orchestrator
from transy.languages import LANGUAGES
from backend.app.models.schemas import DefaultLanguagePayload

router = APIRouter(prefix="/api/languages", tags=["languages"])


@router.get("")
async def list_languages():
    """支持的语言列表"""
    return {
        "languages": [
            {"code": lang.code, "name": lang.name, "label": lang.label}
            for lang in LANGUAGES.values()
        ]
    }


@router.get("/defaults")
async def get_default_languages(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return {"defaults": orchestrator.get_default_languages()}


@router.put("/defaults/{source}")
async def set_default_language(
    source: str, request: DefaultLanguagePayload, orchestrator: Orchestrator = Depends(get_orchestrator)
):
    await orchestrator.set_default_language(source, request.target)
    return {"defaults": orchestrator.get_default_languages()}
