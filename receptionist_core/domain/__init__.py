"""领域层模型与协议。

包含：
- profile: 商家资料 BusinessProfile 及语气/平台枚举。
- models: Provider 之间共享的 ChatMessage / ChatStreamChunk 等模型。
- exceptions: 业务异常类型定义。
"""
