"""DeepL 翻译 API

- 以 ":fx" 结尾的 key 使用 Free 版地址，否则使用 Pro 版地址
- 翻译响应自带 detected_source_language，自动检测不需要额外请求
- detect_language 走本地 langdetect，不消耗额度
- DeepL 不返回 token 用量，usage 恒为 0
"""
import logging
from typing import Any, Dict, Optional

from .. import detector
from ..errors import MalformedResponseError, ProviderError
from ..languages import normalize_code
from ..types import AUTO_DETECT, Usage
from .base import Completion, ProviderClient, decode_json, extract_error_message

logger = logging.getLogger(__name__)

FREE_API_URL = "https://api-free.deepl.com/v2"
PRO_API_URL = "https://api.deepl.com/v2"

# 目标语言必须带地区变体的语言
_TARGET_VARIANTS = {
    "en": "EN-US",
    "pt": "PT-BR",
}

# DeepL 的 model_type 参数，其余 model 值不透传
MODEL_TYPES = ("quality_optimized", "prefer_quality_optimized", "latency_optimized")


def source_code(lang: str) -> str:
    """DeepL 源语言只接受主语言代码，"zh-cn" -> "ZH" """
    return normalize_code(lang).split("-", 1)[0].upper()


def target_code(lang: str) -> str:
    code = normalize_code(lang)
    if code in _TARGET_VARIANTS:
        return _TARGET_VARIANTS[code]
    return code.upper()


class DeepLClient(ProviderClient):
    kind = "deepl"
    bundled_detection = True

    @property
    def base_url(self) -> str:
        if self.provider.base_url:
            return self.provider.base_url.rstrip("/")
        if self.provider.api_key.endswith(":fx"):
            return FREE_API_URL
        return PRO_API_URL

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"DeepL-Auth-Key {self.provider.api_key}"}

    def build_payload(self, text: str, source_lang: str, target_lang: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "text": [text],
            "target_lang": target_code(target_lang),
        }
        if source_lang and source_lang != AUTO_DETECT:
            payload["source_lang"] = source_code(source_lang)
        if self.provider.model in MODEL_TYPES:
            payload["model_type"] = self.provider.model
        if self.provider.system_prompt:
            # DeepL 不支持 system prompt，作为上下文提示传入（不计费）
            payload["context"] = self.provider.system_prompt
        return payload

    async def translate(self, text: str, source_lang: str, target_lang: str) -> Completion:
        resp = await self.http.post(
            f"{self.base_url}/translate",
            json=self.build_payload(text, source_lang, target_lang),
            headers=self.headers(),
        )
        if not resp.is_success:
            raise ProviderError(resp.status_code, extract_error_message(resp), self.kind)
        return self.parse_response(decode_json(resp))

    def parse_response(self, data: Dict[str, Any]) -> Completion:
        translations = data.get("translations") or []
        if not translations or not isinstance(translations[0], dict):
            raise MalformedResponseError("no translations returned")
        first = translations[0]
        text = first.get("text")
        if not isinstance(text, str):
            raise MalformedResponseError("no translation text returned")

        detected: Optional[str] = first.get("detected_source_language")
        return Completion(
            text=text,
            usage=Usage(),
            detected_source=normalize_code(detected) if detected else None,
        )

    async def detect_language(self, text: str) -> Completion:
        # 无法识别时返回 "auto"
        code, _ = detector.detect(text)
        return Completion(text=code, usage=Usage())
