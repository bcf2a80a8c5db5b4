"""GLM / BigModel Provider 适配器。

接口风格与 OpenAI 类似，使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

系统指令作为第一条 system 消息发送，多轮历史保存在 GlmChatSession 里。
具体字段以官方文档为准，本实现只依赖公共字段：model/messages/temperature/max_tokens/stream。
"""

from typing import Any, Dict, Iterable, List


import httpx

from receptionist_core.config.settings import settings
from receptionist_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from receptionist_core.domain.models import ChatMessage, ChatSessionConfig, ChatStreamChunk, ChatUsage
from receptionist_core.providers.registry import (
    GLM_CONFIG,
    ModelConfig,
    get_model_config,
    resolve_api_key,
    resolve_base_url,
)
from receptionist_core.providers.streaming import error_text, iter_sse_json, parse_stream_payload


# 会话内角色 -> OpenAI 兼容接口的 role
_ROLE_MAP = {"system": "system", "user": "user", "model": "assistant"}


class GlmClient:
    """GLM / BigModel Provider 客户端实现。"""

    name = "glm"

    def __init__(self, cfg=settings):
        self._api_key = resolve_api_key(cfg, GLM_CONFIG)
        self._base_url = resolve_base_url(cfg, GLM_CONFIG)
        self._settings = cfg

    def start_chat(self, config: ChatSessionConfig) -> "GlmChatSession":
        model_cfg = get_model_config(GLM_CONFIG, config.model)
        return GlmChatSession(self._settings, config, model_cfg, self._api_key, self._base_url)


class GlmChatSession:
    def __init__(self, cfg, config: ChatSessionConfig, model_cfg: ModelConfig, api_key: str, base_url: str):
        self._settings = cfg
        self._model_cfg = model_cfg
        self._api_key = api_key
        self._base_url = base_url
        self.config = config
        self.history: List[ChatMessage] = []

    def send_message_stream(self, message: str) -> Iterable[ChatStreamChunk]:
        user_msg = ChatMessage(role="user", content=message)
        payload = self._build_payload(user_msg, self._model_cfg)
        pieces: List[str] = []
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message="GLM rate limit", http_status=429)
                    if resp.status_code >= 400:
                        raise ApiError(code="API_ERROR", message=error_text(resp), http_status=resp.status_code)
                    for data in iter_sse_json(resp.iter_lines(), provider="glm"):
                        chunk = parse_stream_payload(self._parse_stream_chunk, data, provider="glm")
                        if chunk.text:
                            pieces.append(chunk.text)
                        yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        self.history.append(user_msg)
        self.history.append(ChatMessage(role="model", content="".join(pieces)))

    # ---- 辅助方法 ----

    def _build_payload(self, user_msg: ChatMessage, model_cfg: ModelConfig) -> dict:
        msgs = [{"role": "system", "content": self.config.system_instruction}]
        msgs.extend(self._message_to_payload(m) for m in self.history)
        msgs.append(self._message_to_payload(user_msg))
        return {
            "model": model_cfg.provider_model,
            "messages": msgs,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens or model_cfg.max_tokens,
            "stream": True,
        }

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        return {"role": _ROLE_MAP[message.role], "content": message.content}

    def _parse_stream_chunk(self, data: dict) -> ChatStreamChunk:
        text = ""
        finish_reason = None
        choices = data.get("choices") or []
        if choices:
            ch = choices[0]
            delta = ch.get("delta") or {}
            text = delta.get("content") or ""
            finish_reason = ch.get("finish_reason")
        usage_raw = data.get("usage") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("prompt_tokens", 0),
                completion_tokens=usage_raw.get("completion_tokens", 0),
                total_tokens=usage_raw.get("total_tokens", 0),
            )
        return ChatStreamChunk(
            provider="glm",
            model=self.config.model,
            text=text,
            finish_reason=finish_reason,
            usage=usage,
            raw=data,
        )
