"""对外预览服务模块。

ChatPreview 是会话核心的调用方：它保存正在编辑的商家资料和对话记录，
负责欢迎语、流式拼接回复，以及把后端错误转换为面向用户的提示文本。
核心层的异常只在这里被捕获。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, List, Literal, Optional
from uuid import uuid4

from receptionist_core.domain.exceptions import BackendError, UninitializedSessionError
from receptionist_core.domain.profile import DEFAULT_PROFILE, BusinessProfile
from receptionist_core.infrastructure.logging.logger import logger
from receptionist_core.session.manager import ConversationSessionManager


CONNECTION_ERROR_TEXT = "I'm having trouble connecting right now. Please check the API key configuration."


def welcome_text(profile: BusinessProfile) -> str:
    return f"Hello! I'm the automated assistant for {profile.name}. How can I help you with your device today?"


@dataclass
class TranscriptMessage:
    """预览对话中的一条消息（仅本地保存，不发给后端）。"""

    role: Literal["user", "model"]
    text: str
    id: str = field(default_factory=lambda: f"m-{uuid4().hex}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_error: bool = False


class ChatPreview:
    """手机聊天预览的会话控制器。"""

    def __init__(
        self,
        profile: BusinessProfile = DEFAULT_PROFILE,
        manager: Optional[ConversationSessionManager] = None,
    ):
        self.profile = profile
        self.manager = manager or ConversationSessionManager()
        self.messages: List[TranscriptMessage] = []

    def update_profile(self, **fields: Any) -> BusinessProfile:
        """修改草稿资料，需要调用 simulate() 才会作用到会话。"""

        self.profile = self.profile.with_fields(**fields)
        return self.profile

    def simulate(self) -> TranscriptMessage:
        """用当前草稿资料重建会话，清空记录并插入本地欢迎语。

        Raises:
            ConfigurationError: Provider 无法构造。
        """
        self.manager.establish(self.profile)
        welcome = TranscriptMessage(id="system-init", role="model", text=welcome_text(self.profile))
        self.messages = [welcome]
        return welcome

    def send_stream(self, text: str) -> Iterator[str]:
        """发送用户消息，每收到一个片段就产出当前累计的回复文本。

        空白输入直接忽略。后端失败时保留已收到的部分回复，
        并追加一条 is_error=True 的提示消息。
        """
        if not text.strip():
            return
        self.messages.append(TranscriptMessage(role="user", text=text))
        reply: Optional[TranscriptMessage] = None
        try:
            stream = self.manager.send(text)
            reply = TranscriptMessage(role="model", text="")
            self.messages.append(reply)
            for fragment in stream:
                reply.text += fragment
                yield reply.text
        except (BackendError, UninitializedSessionError) as e:
            logger.error(f"Preview send failed: {e}", extra={"extra": {
                "business": self.profile.name,
                "error_code": e.code,
                "partial_chars": len(reply.text) if reply else 0,
            }})
            self.messages.append(TranscriptMessage(role="model", text=CONNECTION_ERROR_TEXT, is_error=True))

    def send(self, text: str) -> Optional[TranscriptMessage]:
        """发送消息并等待完整回复，返回最后一条消息（可能是错误提示）。"""

        if not text.strip():
            return None
        for _ in self.send_stream(text):
            pass
        return self.messages[-1] if self.messages else None
