"""本地语言检测，基于 langdetect，不需要网络调用

只识别 LANGUAGES 表中的语言；空文本或无法识别时返回 ("auto", "")。
"""
import logging
from typing import Tuple

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from .languages import lookup
from .types import AUTO_DETECT

logger = logging.getLogger(__name__)

# 固定随机种子，保证同一文本的检测结果一致
DetectorFactory.seed = 0


def detect(text: str) -> Tuple[str, str]:
    """检测文本语言

    Returns:
        (code, display_name)；检测失败时为 ("auto", "")
    """
    if not text or not text.strip():
        return AUTO_DETECT, ""

    try:
        candidates = detect_langs(text)
    except LangDetectException as e:
        logger.debug(f"语言检测失败: {e}")
        return AUTO_DETECT, ""

    for candidate in candidates:
        lang = lookup(candidate.lang)
        if lang is not None:
            return lang.code, lang.label

    logger.info(f"未支持的语言: {[c.lang for c in candidates]}")
    return AUTO_DETECT, ""
