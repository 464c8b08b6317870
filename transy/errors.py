"""错误类型：所有对外暴露的错误都带有稳定的 kind 字符串

bridge 层按 kind 序列化错误，UI 据此区分配置错误和上游服务故障。
"""
from typing import Optional

from .types import Usage


class TransyError(Exception):
    """Transy 错误基类"""

    kind: str = "Internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class DuplicateNameError(TransyError):
    kind = "DuplicateName"

    def __init__(self, name: str):
        super().__init__(f"provider already exists: {name}")
        self.name = name


class ProviderNotFoundError(TransyError):
    kind = "NotFound"

    def __init__(self, name: str):
        super().__init__(f"provider not found: {name}")
        self.name = name


class InvalidConfigError(TransyError):
    kind = "InvalidConfig"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NoActiveProviderError(TransyError):
    kind = "NoActiveProvider"

    def __init__(self):
        super().__init__("no active provider configured")


class ProviderError(TransyError):
    """上游返回非 2xx，保留原始状态码和消息"""

    kind = "ProviderError"

    def __init__(self, status: int, message: str, provider: str = ""):
        super().__init__(f"api error: status={status} message={message}")
        self.status = status
        self.upstream_message = message
        self.provider = provider

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "message": self.upstream_message,
            "status": self.status,
        }


class MalformedResponseError(TransyError):
    """响应无法解析

    usage: 请求已完成但内容无法解析时，上游已计费的用量
    """

    kind = "MalformedResponse"

    def __init__(self, message: str, usage: Optional[Usage] = None):
        super().__init__(message)
        self.usage = usage


class ProviderTimeoutError(TransyError, TimeoutError):
    kind = "Timeout"

    def __init__(self, timeout: float):
        super().__init__(f"request timed out after {timeout:g}s")
        self.timeout = timeout
