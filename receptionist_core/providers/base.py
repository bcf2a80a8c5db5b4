"""Provider 抽象接口。

会话管理器不直接依赖具体厂商的 HTTP API，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 GeminiClient）。
- ProviderClient.start_chat 返回一个绑定了系统指令的 ChatSession。
- ChatSession 负责把用户消息转成具体 API 请求，并把流式响应解析为 ChatStreamChunk。

这样可以在不改会话管理代码的前提下接入更多厂商。
"""

from typing import Iterable, List, Protocol

from receptionist_core.domain.models import ChatMessage, ChatSessionConfig, ChatStreamChunk


class ChatSession(Protocol):
    """与后端的一次多轮对话。

    - config: 创建时绑定的配置，之后不再变化。
    - history: 已成功完成的轮次（user/model 交替）。
    """

    config: ChatSessionConfig
    history: List[ChatMessage]

    def send_message_stream(self, message: str) -> Iterable[ChatStreamChunk]:
        """发送一条用户消息，逐步产出回复增量。"""

        ...


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - start_chat(config): 创建新的会话。
    """

    name: str

    def start_chat(self, config: ChatSessionConfig) -> ChatSession:
        ...
