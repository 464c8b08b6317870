import os
import platform
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "transy"


def default_config_dir() -> Path:
    """平台相关的用户配置目录"""
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / APP_NAME


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRANSY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Storage
    config_dir: Path = Field(default_factory=default_config_dir)
    config_file: str = "config.yaml"
    cache_file: str = "cache.sqlite3"

    # Translation cache
    cache_enabled: bool = True
    cache_ttl_seconds: int = 7 * 24 * 60 * 60  # 7 天

    # Requests
    request_timeout: float = 30.0
    default_target_language: str = "en"
    # 按 provider 类型覆盖自动检测时的用量统计方式: "sum" | "translation"
    usage_accounting: dict[str, str] = {}

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None

    # Bridge
    host: str = "127.0.0.1"
    port: int = 3301
    cors_origins: list[str] = ["*"]

    @property
    def config_path(self) -> Path:
        return self.config_dir / self.config_file

    @property
    def cache_path(self) -> Path:
        return self.config_dir / self.cache_file


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()
