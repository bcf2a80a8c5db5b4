"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (如 gemini_client、glm_client)。
"""

from typing import Optional

from receptionist_core.config.settings import settings
from receptionist_core.providers.base import ChatSession, ProviderClient
from receptionist_core.providers.gemini_client import GeminiClient
from receptionist_core.providers.glm_client import GlmClient
from receptionist_core.providers.registry import get_provider_config


_CLIENTS = {
    "gemini": GeminiClient,
    "glm": GlmClient,
}


def create_provider(name: Optional[str] = None, cfg=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。

    名称未知、API 密钥缺失或过短时抛出 ConfigurationError。
    """

    cfg = cfg or settings
    provider_cfg = get_provider_config(name or getattr(cfg, "default_provider", "gemini"))
    return _CLIENTS[provider_cfg.name](cfg)


__all__ = ["ChatSession", "ProviderClient", "GeminiClient", "GlmClient", "create_provider"]
