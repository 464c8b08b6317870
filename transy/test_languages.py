"""语言表与本地语言检测测试"""

from unittest.mock import patch

from langdetect.lang_detect_exception import LangDetectException

from transy import detector
from transy.languages import display_name, is_language_code, lookup, normalize_code, prompt_name


class _Candidate:
    def __init__(self, lang: str, prob: float = 0.99):
        self.lang = lang
        self.prob = prob


# ── languages ──


def test_normalize_code():
    assert normalize_code(" zh_CN ") == "zh-cn"


def test_is_language_code():
    assert is_language_code("en")
    assert is_language_code("zh-CN")
    assert not is_language_code("english please")
    assert not is_language_code("")


def test_lookup_falls_back_to_primary_language():
    assert lookup("zh-tw").code == "zh"
    assert lookup("xx") is None


def test_prompt_name():
    assert prompt_name("zh") == "Chinese"
    assert prompt_name("nl") == "nl"
    assert prompt_name("auto") == "the detected source language"


def test_display_name():
    assert display_name("ja") == "日语"
    assert display_name("auto") == ""


# ── detector ──


def test_detect_empty_text():
    assert detector.detect("   ") == ("auto", "")


def test_detect_known_language():
    with patch("transy.detector.detect_langs", return_value=[_Candidate("zh-cn")]):
        assert detector.detect("你好，世界") == ("zh", "中文")


def test_detect_skips_unsupported_candidates():
    with patch("transy.detector.detect_langs", return_value=[_Candidate("nl", 0.6), _Candidate("de", 0.4)]):
        assert detector.detect("Hallo") == ("de", "德语")


def test_detect_unsupported_language():
    with patch("transy.detector.detect_langs", return_value=[_Candidate("nl")]):
        assert detector.detect("Goedemorgen") == ("auto", "")


def test_detect_failure_returns_auto():
    with patch("transy.detector.detect_langs", side_effect=LangDetectException(0, "no features")):
        assert detector.detect("1234") == ("auto", "")


def test_detect_real_english_text():
    code, name = detector.detect("The quick brown fox jumps over the lazy dog and keeps running home.")
    assert code == "en"
    assert name == "英语"
