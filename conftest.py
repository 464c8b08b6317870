"""Pytest configuration shared by transy/ and backend/ tests."""
import pytest

pytest_plugins = ['pytest_asyncio']


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test."
    )


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """测试中不读写用户配置目录，也不受本地 TRANSY_* 环境变量影响"""
    for key in ("TRANSY_CONFIG_DIR", "TRANSY_CACHE_ENABLED", "TRANSY_LOG_DIR", "TRANSY_USAGE_ACCOUNTING"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TRANSY_CONFIG_DIR", str(tmp_path / "config"))
