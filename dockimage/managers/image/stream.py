"""守护进程消息流解码"""

from typing import Any, Dict, Iterable, List, Optional, Union

from docker.errors import StreamParseError
from docker.utils.json_stream import json_stream
from loguru import logger

from .base import OperationFailedError, StreamDecodeError


def _error_message(message: Dict[str, Any]) -> Optional[str]:
    """提取消息中的错误信息，没有错误时返回None"""
    detail = message.get("errorDetail")
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    if message.get("error"):
        return str(message["error"])
    return None


def render_message(message: Dict[str, Any]) -> str:
    """
    将一条进度消息渲染为一行文本

    Args:
        message: 解码后的消息

    Returns:
        str: 渲染结果，不含换行符
    """
    error = _error_message(message)
    if error is not None:
        return f"ERROR: {error}"

    parts = []
    if message.get("id"):
        parts.append(f"{message['id']}: ")
    if message.get("from"):
        parts.append(f"(from {message['from']}) ")

    if message.get("progress"):
        parts.append(f"{message.get('status', '')} {message['progress']}")
    elif message.get("stream"):
        parts.append(str(message["stream"]).rstrip("\r\n"))
    elif "aux" in message and not message.get("status"):
        aux = message["aux"]
        parts.append(str(aux.get("ID", aux)) if isinstance(aux, dict) else str(aux))
    else:
        parts.append(str(message.get("status", "")))

    return "".join(parts)


def decode_messages(stream: Iterable[Union[bytes, str]]) -> str:
    """
    解码守护进程返回的消息流

    每条消息渲染为日志中的一行。结构损坏的消息会立即中止解码；
    带有错误字段的消息不会中止解码，消息流读完后才报告失败。

    Args:
        stream: 守护进程返回的原始数据块

    Returns:
        str: 渲染后的完整日志

    Raises:
        StreamDecodeError: 消息结构损坏，output为已解码部分的日志
        OperationFailedError: 消息流中包含错误消息，output为完整日志
    """
    lines: List[str] = []
    first_error: Optional[str] = None

    def _output() -> str:
        return "".join(line + "\n" for line in lines)

    try:
        for message in json_stream(stream):
            if not isinstance(message, dict):
                raise StreamDecodeError(
                    f"解码守护进程消息失败: 无效的消息 {message!r}", _output()
                )
            lines.append(render_message(message))
            error = _error_message(message)
            if error is not None and first_error is None:
                first_error = error
    except StreamParseError as e:
        raise StreamDecodeError(f"解码守护进程消息失败: {e}", _output()) from e

    output = _output()
    logger.debug(f"守护进程输出:\n{output}")

    if first_error is not None:
        raise OperationFailedError(f"无法完成操作: {first_error}", output)
    return output
