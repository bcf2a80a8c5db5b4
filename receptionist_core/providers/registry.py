"""Provider 与模型配置。

本模块集中维护每个 Provider 的：

- 逻辑模型名 -> 厂商模型 ID 的映射（如 "receptionist-chat" -> "gemini-3-flash-preview"）；
- 从配置对象读取 API 密钥与基础 URL 时使用的字段名。

客户端只通过这里解析模型与凭据，缺失或明显无效的配置统一转换为
ConfigurationError，在客户端构造时就暴露出来。"""

from dataclasses import dataclass
from typing import Dict, Mapping

from receptionist_core.domain.exceptions import ConfigurationError


# 短于该长度的密钥视为填写错误
MIN_API_KEY_LENGTH = 10


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。

    api_key_setting / base_url_setting 是配置对象上对应的属性名。
    """

    name: str
    base_url: str
    api_key_setting: str
    base_url_setting: str
    models: Dict[str, ModelConfig]


GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    api_key_setting="gemini_api_key",
    base_url_setting="gemini_base_url",
    models={
        "receptionist-chat": ModelConfig(
            logical_name="receptionist-chat",
            provider_model="gemini-3-flash-preview",
            max_tokens=1024,
        )
    },
)

GLM_CONFIG = ProviderConfig(
    name="glm",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    api_key_setting="glm_api_key",
    base_url_setting="glm_base_url",
    models={
        "receptionist-chat": ModelConfig(
            logical_name="receptionist-chat",
            provider_model="glm-4.6",
            max_tokens=1024,
        )
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
    "glm": GLM_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    cfg = PROVIDER_REGISTRY.get(name.lower())
    if cfg is None:
        raise ConfigurationError(code="UNKNOWN_PROVIDER", message=f"Unknown provider: {name!r}")
    return cfg


def get_model_config(provider: ProviderConfig, model: str) -> ModelConfig:
    model_cfg = provider.models.get(model)
    if model_cfg is None:
        raise ConfigurationError(
            code="UNKNOWN_MODEL",
            message=f"Unknown model for {provider.name}: {model!r}",
            provider=provider.name,
        )
    return model_cfg


def resolve_api_key(cfg, provider: ProviderConfig) -> str:
    """读取并检查 API 密钥。

    Raises:
        ConfigurationError: 密钥缺失（MISSING_API_KEY）或过短（INVALID_API_KEY）。
    """

    key = (getattr(cfg, provider.api_key_setting, None) or "").strip()
    env_name = provider.api_key_setting.upper()
    if not key:
        raise ConfigurationError(code="MISSING_API_KEY", message=f"{env_name} not set", provider=provider.name)
    if len(key) < MIN_API_KEY_LENGTH:
        raise ConfigurationError(
            code="INVALID_API_KEY",
            message=f"{env_name} seems too short",
            provider=provider.name,
        )
    return key


def resolve_base_url(cfg, provider: ProviderConfig) -> str:
    return (getattr(cfg, provider.base_url_setting, None) or provider.base_url).rstrip("/")
