"""会话管理核心模块。

ConversationSessionManager 同一时间只持有一个与后端的会话：

    new (UNINITIALIZED) -> establish -> READY -> (send)* -> establish -> READY ...

每次 establish 都会重新编译系统指令并创建全新的会话，旧会话直接丢弃，
不做关闭或通知，也不保留跨会话的记忆。send 返回一个惰性的文本片段迭代器，
调用方按顺序拼接即可得到完整回复。

本类不是线程安全的：establish 与 send 需要由调用方串行调用。
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4
import logging
import time

from receptionist_core.config.settings import settings
from receptionist_core.domain.exceptions import UninitializedSessionError
from receptionist_core.domain.models import ChatSessionConfig, ChatUsage
from receptionist_core.domain.profile import BusinessProfile
from receptionist_core.infrastructure.logging.logger import logger
from receptionist_core.providers import create_provider
from receptionist_core.providers.base import ChatSession, ProviderClient
from receptionist_core.session.compiler import build_system_instruction


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass(frozen=True)
class SessionBinding:
    """一次 establish 的结果：资料、编译出的指令和对应的后端会话。"""

    session_id: str
    profile: BusinessProfile
    instruction: str
    session: ChatSession
    established_at: datetime


class ConversationSessionManager:
    def __init__(
        self,
        provider_client: Optional[ProviderClient] = None,
        *,
        provider_name: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        cfg=settings,
    ):
        """初始化会话管理器。

        Args:
            provider_client: Provider 客户端（可选，不提供则在首次 establish 时按配置创建）
            provider_name: 未提供客户端时使用的 Provider 名称
            model: 逻辑模型名，默认取配置中的 default_model
            temperature: 采样温度，默认取配置中的 temperature
            cfg: 配置对象
        """
        self._settings = cfg
        self._provider_client = provider_client
        self._provider_name = provider_name
        self._model = model or getattr(cfg, "default_model", "receptionist-chat")
        self._temperature = temperature if temperature is not None else getattr(cfg, "temperature", 0.6)
        self._binding: Optional[SessionBinding] = None

    @property
    def state(self) -> SessionState:
        return SessionState.READY if self._binding is not None else SessionState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self._binding is not None

    @property
    def binding(self) -> Optional[SessionBinding]:
        return self._binding

    @property
    def instruction(self) -> Optional[str]:
        return self._binding.instruction if self._binding else None

    @property
    def profile(self) -> Optional[BusinessProfile]:
        return self._binding.profile if self._binding else None

    def establish(self, profile: BusinessProfile, now: Optional[datetime] = None) -> None:
        """编译系统指令并绑定一个新会话，替换之前的会话。

        Raises:
            ConfigurationError: Provider 客户端无法构造（如缺少 API 密钥），此时状态保持不变。
        """
        instruction = build_system_instruction(profile, now=now)
        client = self._get_client()
        session = client.start_chat(
            ChatSessionConfig(
                provider=client.name,
                model=self._model,
                system_instruction=instruction,
                temperature=self._temperature,
            )
        )
        previous = self._binding
        self._binding = SessionBinding(
            session_id=f"s-{uuid4().hex}",
            profile=profile,
            instruction=instruction,
            session=session,
            established_at=datetime.now(timezone.utc),
        )
        self._log(
            logging.INFO,
            "Session established",
            self._log_ctx(self._binding),
            provider=client.name,
            model=self._model,
            temperature=self._temperature,
            platform=profile.platform.value,
            replaced_session_id=previous.session_id if previous else None,
        )

    def send(self, message: str) -> Iterator[str]:
        """向当前会话发送一条消息，返回回复片段的迭代器。

        会话在调用时即被捕获，之后即使 establish 了新会话，
        这次的流也只会继续读取旧会话，不会被切换过去。

        Raises:
            UninitializedSessionError: 尚未 establish（调用时立即抛出）。
            BackendError: 迭代过程中后端失败，已产出的片段不会被撤回。
        """
        binding = self._binding
        if binding is None:
            raise UninitializedSessionError(
                code="SESSION_NOT_INITIALIZED",
                message="Chat session not initialized. Please configure the bot first.",
            )
        return self._stream(binding, message)

    def _stream(self, binding: SessionBinding, message: str) -> Iterator[str]:
        start_time = time.time()
        log_ctx = self._log_ctx(binding)
        self._log(logging.INFO, "Calling provider (stream)", log_ctx, message_chars=len(message))

        fragments = 0
        usage_meta: Dict[str, Any] = {}
        for chunk in binding.session.send_message_stream(message):
            if chunk.usage:
                usage_meta = self._usage_meta_from_usage(chunk.usage)
            if not chunk.text:
                continue
            fragments += 1
            yield chunk.text

        self._log(
            logging.INFO,
            "Stream finished",
            log_ctx,
            fragments=fragments,
            elapsed_seconds=round(time.time() - start_time, 2),
            **usage_meta,
        )

    def _get_client(self) -> ProviderClient:
        if self._provider_client is None:
            self._provider_client = create_provider(self._provider_name, self._settings)
        return self._provider_client

    @staticmethod
    def _log_ctx(binding: SessionBinding) -> Dict[str, Any]:
        return {"session_id": binding.session_id, "business": binding.profile.name}

    @staticmethod
    def _usage_meta_from_usage(usage: Optional[ChatUsage]) -> Dict[str, Any]:
        if not usage:
            return {}
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
