from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from transy.settings import Settings

CONSOLE_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s"


class JsonFormatter(logging.Formatter):
    """每条日志输出一行 JSON，extra 字段原样带出"""

    _reserved = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in self._reserved:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logging_config(settings: Settings) -> tuple[dict[str, Any], Optional[Path]]:
    """生成 dictConfig；配置了 log_dir 时追加按大小轮转的 JSON 文件日志"""
    level = settings.log_level.upper()
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
            "stream": "ext://sys.stdout",
        },
    }

    log_file: Optional[Path] = None
    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = settings.log_dir / "transy.log"
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "json",
            "filename": str(log_file),
            "maxBytes": 20 * 1024 * 1024,
            "backupCount": 10,
            "encoding": "utf-8",
        }

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": "%H:%M:%S"},
            "json": {"()": JsonFormatter},
        },
        "handlers": handlers,
        "loggers": {
            # 压掉 httpx 每次请求的 INFO 日志，只保留 WARNING+
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "openai": {"level": "WARNING"},
            "uvicorn.access": {"level": "INFO"},
        },
        "root": {
            "level": level,
            "handlers": list(handlers),
        },
    }
    return config, log_file


def configure_logging(settings: Settings) -> Optional[Path]:
    config, log_file = build_logging_config(settings)
    logging.config.dictConfig(config)
    return log_file
