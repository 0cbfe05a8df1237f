"""
内部转发调度模块

将转发请求视图在进程内派发给 ASGI 应用，不经过网络
"""

import asyncio
import time
from typing import Dict, List, Optional, Tuple

import httpx
from fastapi import Response
from starlette.types import ASGIApp

from iris.core.config import settings
from iris.core.exceptions import ForwardError, ForwardTimeoutError
from iris.core.logging import get_logger
from iris.forward.base import ExternalRequest

logger = get_logger("iris.forward.dispatcher")


# 进程内转发使用的固定主机名，ASGI 传输不做网络连接
# 原始请求的 Host 可能是 IPv6 字面量等无法直接拼进 URL 的形式，不参与构造
FORWARD_HOST = "iris.internal"

# 不应回传给调用方的响应头
STRIPPED_RESPONSE_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


def build_target_url(view: ExternalRequest) -> str:
    """构建转发目标 URL（相对路径 + 查询字符串）"""
    url = view.request_path
    if view.query_string is not None:
        url = f"{url}?{view.query_string}"
    return url


def build_forward_headers(
    view: ExternalRequest,
    extra_headers: Optional[Dict[str, str]] = None,
) -> List[Tuple[str, str]]:
    """
    构建转发请求头

    只包含视图暴露的请求头（保留多值）、视图的媒体类型以及调用方附加的头
    """
    headers: List[Tuple[str, str]] = []

    for name, values in view.header_values_map.items():
        for value in values:
            headers.append((name, value))

    if view.content_type is not None:
        headers.append(("content-type", view.content_type))

    if extra_headers:
        headers.extend((name.lower(), value) for name, value in extra_headers.items())

    return headers


def read_body(view: ExternalRequest) -> bytes:
    """读取视图的请求体"""
    stream = view.input_stream
    if stream is None:
        return b""
    return stream.read()


async def dispatch_forward(
    app: ASGIApp,
    view: ExternalRequest,
    timeout: Optional[float] = None,
    extra_headers: Optional[Dict[str, str]] = None,
) -> Response:
    """
    在进程内将请求视图派发给 ASGI 应用

    Args:
        app: 转发目标 ASGI 应用
        view: 请求视图（通常为 ForwardedRequest）
        timeout: 超时时间（秒），默认使用配置
        extra_headers: 附加请求头（如请求 ID、转发深度）

    Returns:
        目标应用的响应

    Raises:
        ForwardTimeoutError: 目标应用超时未响应
        ForwardError: 目标应用调用失败
    """
    start_time = time.time()

    if timeout is None:
        timeout = settings.forward_timeout

    url = build_target_url(view)
    headers = build_forward_headers(view, extra_headers)
    body = read_body(view)

    base_url = f"{view.scheme or 'http'}://{FORWARD_HOST}"
    transport = httpx.ASGITransport(app=app)

    try:
        # 直接构造请求，不带客户端默认头（User-Agent、Accept 等）
        forward_request = httpx.Request(
            view.method,
            base_url + url,
            headers=headers,
            content=body,
        )
        async with httpx.AsyncClient(transport=transport) as client:
            target_response = await asyncio.wait_for(
                client.send(forward_request, follow_redirects=False),
                timeout=timeout,
            )
    except asyncio.TimeoutError:
        logger.warning(
            f"转发超时: {view.method} {url}",
            extra={
                "extra_fields": {
                    "method": view.method,
                    "path": view.request_path,
                    "timeout": timeout,
                }
            },
        )
        raise ForwardTimeoutError(timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(
            f"转发失败: {type(e).__name__}: {e}",
            extra={
                "extra_fields": {
                    "method": view.method,
                    "path": view.request_path,
                    "error": str(e),
                }
            },
        )
        raise ForwardError(f"转发目标调用失败: {e}")

    latency_ms = (time.time() - start_time) * 1000

    logger.debug(
        f"转发完成: {view.method} {url} -> {target_response.status_code}",
        extra={
            "extra_fields": {
                "method": view.method,
                "path": view.request_path,
                "status_code": target_response.status_code,
                "latency_ms": round(latency_ms, 2),
            }
        },
    )

    response = Response(
        content=target_response.content,
        status_code=target_response.status_code,
    )
    for name, value in target_response.headers.multi_items():
        if name.lower() in STRIPPED_RESPONSE_HEADERS:
            continue
        response.headers.append(name, value)

    return response
