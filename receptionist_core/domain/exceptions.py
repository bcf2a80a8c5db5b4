"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在预览服务或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """Provider 客户端无法构造，例如缺少 API 密钥或 Provider 名称未知。"""


class UninitializedSessionError(BusinessError):
    """在 establish 之前调用 send，属于调用方使用错误。"""


class ValidationError(BusinessError):
    """参数或商家资料字段校验失败。"""


class BackendError(BusinessError):
    """远端 LLM 调用失败的基类，调用方可重新 send 恢复。"""


class NetworkError(BackendError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BackendError):
    """第三方 API 返回非 2xx/429 错误，或拒绝生成内容时抛出。"""


class RateLimitError(BackendError):
    """Provider 限流/配额错误，核心层不做重试。"""


class MalformedResponseError(BackendError):
    """流式响应无法解析为 JSON。"""
