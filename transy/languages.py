"""语言表：语言代码、英文名（用于 prompt）、中文显示名（用于 DetectResult.name）"""
import re
from dataclasses import dataclass
from typing import Dict, Optional

from .types import AUTO_DETECT


@dataclass(frozen=True)
class Language:
    code: str
    name: str  # English name, injected into prompts
    label: str  # 显示名


LANGUAGES: Dict[str, Language] = {
    lang.code: lang
    for lang in (
        Language("zh", "Chinese", "中文"),
        Language("en", "English", "英语"),
        Language("ja", "Japanese", "日语"),
        Language("ko", "Korean", "韩语"),
        Language("fr", "French", "法语"),
        Language("de", "German", "德语"),
        Language("es", "Spanish", "西班牙语"),
        Language("ru", "Russian", "俄语"),
        Language("it", "Italian", "意大利语"),
        Language("pt", "Portuguese", "葡萄牙语"),
        Language("ar", "Arabic", "阿拉伯语"),
    )
}

_CODE_RE = re.compile(r"^[a-z]{2,3}(?:-[a-z0-9]{2,4})?$")


def normalize_code(code: str) -> str:
    """统一为小写、连字符分隔，"zh_CN" -> "zh-cn" """
    return (code or "").strip().lower().replace("_", "-")


def is_language_code(code: str) -> bool:
    return bool(_CODE_RE.match(normalize_code(code)))


def lookup(code: str) -> Optional[Language]:
    """按代码查找语言，"zh-cn" 之类的地区变体回退到主语言"""
    code = normalize_code(code)
    if code in LANGUAGES:
        return LANGUAGES[code]
    return LANGUAGES.get(code.split("-", 1)[0])


def prompt_name(code: str) -> str:
    """prompt 中使用的语言名；未知代码原样返回"""
    if not code or code == AUTO_DETECT:
        return "the detected source language"
    lang = lookup(code)
    return lang.name if lang else code


def display_name(code: str) -> str:
    if code == AUTO_DETECT:
        return ""
    lang = lookup(code)
    return lang.label if lang else code
