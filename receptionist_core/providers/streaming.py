"""SSE 流式响应的公共解析逻辑。

Gemini 与 OpenAI 兼容接口都按行返回 `data: {...}`，
以 `data: [DONE]` 或连接关闭表示结束。event/id/retry 等字段与本项目无关，直接跳过。
"""

import json
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, TypeVar

from receptionist_core.domain.exceptions import MalformedResponseError


T = TypeVar("T")


def sse_data(line: str) -> Optional[str]:
    """取出一行 SSE 的数据部分；空行、其他字段与结束标记返回 None。

    兼容个别网关直接逐行返回 JSON（不带 data: 前缀）的情况。
    """

    if not line:
        return None
    if line.startswith("data:"):
        data_str = line[5:].strip()
    elif line.lstrip().startswith("{"):
        data_str = line.strip()
    else:
        return None
    if not data_str or data_str == "[DONE]":
        return None
    return data_str


def iter_sse_json(lines: Iterable[str], provider: str) -> Iterator[Dict[str, Any]]:
    """逐行解析 SSE，产出 JSON 对象。无法解析的数据视为后端响应异常。"""

    for line in lines:
        data_str = sse_data(line)
        if data_str is None:
            continue
        try:
            payload = json.loads(data_str)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message=f"Undecodable stream payload: {data_str[:200]}",
                provider=provider,
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                code="MALFORMED_RESPONSE",
                message=f"Unexpected stream payload type: {type(payload).__name__}",
                provider=provider,
            )
        yield payload


def parse_stream_payload(parse: Callable[[Dict[str, Any]], T], data: Dict[str, Any], provider: str) -> T:
    """调用各 Provider 的解析函数；结构不符合预期（字段类型错误等）时转换为 MalformedResponseError。"""

    try:
        return parse(data)
    except (AttributeError, TypeError, KeyError, IndexError) as exc:
        raise MalformedResponseError(
            code="MALFORMED_RESPONSE",
            message=f"Unexpected stream payload shape: {json.dumps(data, ensure_ascii=False)[:200]}",
            provider=provider,
        ) from exc


def error_text(resp) -> str:
    """读取流式响应的错误正文（流式响应需要先 read 才能访问 text）。"""

    resp.read()
    return resp.text
