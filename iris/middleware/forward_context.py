"""
转发上下文中间件

识别请求是外部请求还是网关发起的内部转发，并为整条转发链路
统一请求 ID 和转发深度
"""

from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from iris.core.logging import bind_forward_context, reset_forward_context

# 记录转发深度的请求头，由网关在每次内部转发时递增
FORWARD_DEPTH_HEADER = "X-Iris-Forward-Depth"

REQUEST_ID_HEADER = "X-Request-ID"


def parse_forward_depth(value) -> int:
    """解析转发深度，无法解析或为负数时按 0 处理"""
    try:
        return max(0, int(value or "0"))
    except ValueError:
        return 0


class ForwardContextMiddleware(BaseHTTPMiddleware):
    """
    转发上下文中间件

    - request.state.forward_depth: 当前转发深度，外部请求为 0
    - request.state.forwarded: 是否为内部转发
    - request.state.request_id: 内部转发沿用上一跳的 ID，外部请求取 X-Request-ID / X-Trace-ID 或新生成
    - 请求处理期间绑定日志转发上下文，响应头回写请求 ID
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        depth = parse_forward_depth(request.headers.get(FORWARD_DEPTH_HEADER))

        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not request_id and depth == 0:
            request_id = request.headers.get("X-Trace-ID")
        request_id = request_id or str(uuid4())

        request.state.forward_depth = depth
        request.state.forwarded = depth > 0
        request.state.request_id = request_id

        token = bind_forward_context(request_id, depth)
        try:
            response = await call_next(request)
        finally:
            reset_forward_context(token)

        response.headers[REQUEST_ID_HEADER] = request_id

        return response
