"""Receptionist Core 顶层包。

该包提供商家接待机器人的预览核心，
包括配置加载、商家资料模型、系统指令编译、
Provider 适配与单会话流式对话管理。
"""

from receptionist_core.domain.profile import DEFAULT_PROFILE, BotPlatform, BotTone, BusinessProfile
from receptionist_core.session import ConversationSessionManager, build_system_instruction

__all__ = [
    "BotPlatform",
    "BotTone",
    "BusinessProfile",
    "ConversationSessionManager",
    "DEFAULT_PROFILE",
    "build_system_instruction",
]
