"""翻译与语言检测 API"""
import logging

from fastapi import APIRouter, Depends

from transy import Orchestrator, get_orchestrator
from backend.app.models.schemas import DetectPayload, TranslatePayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["translate"])


@router.post("/translate")
async def translate(request: TranslatePayload, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """使用当前 active provider 翻译，返回 {text, usage}"""
    result = await orchestrator.translate_with_llm(request.to_request())
    return result.to_dict()


@router.post("/detect")
async def detect_language(request: DetectPayload, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """检测语言，返回 {code, name, defaultTarget}"""
    result = await orchestrator.detect_language(request.text)
    return result.to_dict()
