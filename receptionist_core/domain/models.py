"""统一的会话与流式结果数据模型。

本模块定义了会话管理器在不同 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（user/model/system）。
- ChatSessionConfig: 创建会话时绑定的系统指令与采样参数。
- ChatStreamChunk: 从 Provider 流式响应中解析出的一段增量。

所有 Provider 适配器（如 GeminiClient）都必须只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from typing import Literal, Optional


# 会话内消息角色。Gemini 使用 "model"，OpenAI 兼容接口在适配层映射为 "assistant"
Role = Literal["system", "user", "model"]


@dataclass
class ChatMessage:
    """一条对话消息。

    - role: 消息角色。
    - content: 纯文本内容。
    """

    role: Role
    content: str


@dataclass(frozen=True)
class ChatSessionConfig:
    """一次会话的不可变配置。

    会话创建后 system_instruction 不会再改变，
    需要新的指令时由上层整体替换会话。
    """

    provider: str  # 逻辑 Provider 名，如 "gemini"
    model: str  # 逻辑模型名，如 "receptionist-chat"（再由 registry 映射为真实模型名）
    system_instruction: str
    temperature: float = 0.6
    max_tokens: Optional[int] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatStreamChunk:
    """流式对话的单个增量。

    text 可能为空字符串（例如只携带 usage 或 finish_reason 的尾包）。
    """

    provider: str
    model: str
    text: str
    finish_reason: Optional[str] = None
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
