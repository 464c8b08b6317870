from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from transy import AUTO_DETECT, Provider, TranslateRequest

# 前端拿不到明文 key，更新时用占位符表示不修改
KEEP_API_KEY = "__KEEP__"


class ProviderPayload(BaseModel):
    """新增/更新 Provider 的请求体，字段与配置文件一致（snake_case）

    更新时 api_key 传 KEEP_API_KEY 表示沿用原有 key。
    """
    model_config = ConfigDict(protected_namespaces=())

    name: str
    type: str
    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    active: bool = False
    disable_thinking: bool = False

    def to_provider(self) -> Provider:
        return Provider(**self.model_dump())


class TranslatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    source_lang: str = Field(AUTO_DETECT, alias="sourceLang")
    target_lang: str = Field("", alias="targetLang")

    def to_request(self) -> TranslateRequest:
        return TranslateRequest(self.text, self.source_lang or AUTO_DETECT, self.target_lang)


class DetectPayload(BaseModel):
    text: str


class DefaultLanguagePayload(BaseModel):
    target: str
