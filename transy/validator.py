"""Provider 配置校验

写入存储前调用；校验失败抛出 InvalidConfigError，field 指出出错字段。
"""
from dataclasses import replace
from typing import Optional, Type

from .errors import InvalidConfigError
from .providers import PROVIDER_REGISTRY, ProviderClient
from .types import Provider

MAX_TEMPERATURE = 2.0


def validate_provider(provider: Provider) -> Provider:
    """校验并返回规范化后的 Provider（去除名称首尾空白）

    Raises:
        InvalidConfigError: 配置不合法
    """
    name = (provider.name or "").strip()
    if not name:
        raise InvalidConfigError("provider name is required", field="name")

    client_cls: Optional[Type[ProviderClient]] = PROVIDER_REGISTRY.get(provider.type)
    if client_cls is None:
        supported = ", ".join(PROVIDER_REGISTRY)
        raise InvalidConfigError(
            f"unsupported provider type: {provider.type!r} (supported: {supported})",
            field="type",
        )

    if client_cls.requires_api_key and not provider.api_key.strip():
        raise InvalidConfigError(f"api_key is required for {provider.type}", field="api_key")

    if client_cls.requires_base_url and not (provider.base_url or "").strip():
        raise InvalidConfigError(f"base_url is required for {provider.type}", field="base_url")

    if provider.base_url and not provider.base_url.startswith(("http://", "https://")):
        raise InvalidConfigError(
            f"base_url must start with http:// or https://: {provider.base_url}", field="base_url"
        )

    if not provider.model.strip():
        raise InvalidConfigError("model is required", field="model")

    if provider.max_tokens is not None and provider.max_tokens <= 0:
        raise InvalidConfigError(
            f"max_tokens must be positive: {provider.max_tokens}", field="max_tokens"
        )

    if provider.temperature is not None and not 0 <= provider.temperature <= MAX_TEMPERATURE:
        raise InvalidConfigError(
            f"temperature must be between 0 and {MAX_TEMPERATURE:g}: {provider.temperature}",
            field="temperature",
        )

    if name != provider.name:
        provider = replace(provider, name=name)
    return provider
