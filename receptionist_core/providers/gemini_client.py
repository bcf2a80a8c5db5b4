"""Gemini Provider 适配器。

使用 REST 流式端点：
- URL: {base_url}/models/{model}:streamGenerateContent?alt=sse
- 认证: x-goog-api-key: <api_key>

REST 接口本身无状态，多轮历史保存在 GeminiChatSession 里，
每次发送时连同系统指令一起提交。只有在一轮流式回复完整结束后，
这一轮的 user/model 消息才会写入历史。
"""

from typing import Any, Dict, Iterable, List

import httpx

from receptionist_core.config.settings import settings
from receptionist_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from receptionist_core.domain.models import ChatMessage, ChatSessionConfig, ChatStreamChunk, ChatUsage
from receptionist_core.providers.registry import (
    GEMINI_CONFIG,
    ModelConfig,
    get_model_config,
    resolve_api_key,
    resolve_base_url,
)
from receptionist_core.providers.streaming import error_text, iter_sse_json, parse_stream_payload


class GeminiClient:
    """Gemini Provider 客户端实现。

    构造时即检查 API 密钥，缺失或过短时抛出 ConfigurationError，
    而不是等到第一次发送消息才失败。
    """

    name = "gemini"

    def __init__(self, cfg=settings):
        self._api_key = resolve_api_key(cfg, GEMINI_CONFIG)
        self._base_url = resolve_base_url(cfg, GEMINI_CONFIG)
        self._settings = cfg

    def start_chat(self, config: ChatSessionConfig) -> "GeminiChatSession":
        model_cfg = get_model_config(GEMINI_CONFIG, config.model)
        return GeminiChatSession(self._settings, config, model_cfg, self._api_key, self._base_url)


class GeminiChatSession:
    """绑定一条系统指令的 Gemini 会话。"""

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
                    f"{self._base_url}/models/{self._model_cfg.provider_model}:streamGenerateContent",
                    params={"alt": "sse"},
                    json=payload,
                    headers={
                        "x-goog-api-key": self._api_key,
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit", http_status=429)
                    if resp.status_code >= 400:
                        raise ApiError(code="API_ERROR", message=error_text(resp), http_status=resp.status_code)
                    for data in iter_sse_json(resp.iter_lines(), provider="gemini"):
                        chunk = parse_stream_payload(self._parse_stream_chunk, data, provider="gemini")
                        if chunk.text:
                            pieces.append(chunk.text)
                        yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)
        self.history.append(user_msg)
        self.history.append(ChatMessage(role="model", content="".join(pieces)))
    # ---- 辅助方法 ----

    def _build_payload(self, user_msg: ChatMessage, model_cfg: ModelConfig) -> dict:
        contents = [self._message_to_payload(m) for m in self.history]
        contents.append(self._message_to_payload(user_msg))
        return {
            "systemInstruction": {"parts": [{"text": self.config.system_instruction}]},
            "contents": contents,
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens or model_cfg.max_tokens,
            },
        }

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        return {"role": message.role, "parts": [{"text": message.content}]}

    def _parse_stream_chunk(self, data: dict) -> ChatStreamChunk:
        error = data.get("error")
        if error:
            raise ApiError(
                code="API_ERROR",
                message=str(error.get("message") or error) if isinstance(error, dict) else str(error),
                http_status=(error.get("code") or 500) if isinstance(error, dict) else 500,
            )
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise ApiError(code="BLOCKED", message=f"Prompt blocked: {block_reason}")

        text = ""
        finish_reason = None
        candidates = data.get("candidates") or []
        if candidates:
            first = candidates[0]
            parts = (first.get("content") or {}).get("parts") or []
            # thought 部分是模型的思考过程，不属于回复
            text = "".join(p.get("text") or "" for p in parts if not p.get("thought"))
            finish_reason = first.get("finishReason")

        usage_raw = data.get("usageMetadata") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("promptTokenCount", 0),
                completion_tokens=usage_raw.get("candidatesTokenCount", 0),
                total_tokens=usage_raw.get("totalTokenCount", 0),
            )
        return ChatStreamChunk(
            provider="gemini",
            model=self.config.model,
            text=text,
            finish_reason=finish_reason,
            usage=usage,
            raw=data,
        )
