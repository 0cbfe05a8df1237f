"""
网关路由端点

匹配转发规则，并将请求在服务端内部转发到目标路径
"""

import time

from fastapi import APIRouter, HTTPException, Request, Response

from iris.core.config import settings
from iris.core.exceptions import ForwardLoopError, ForwardRuleNotFoundError, IrisError
from iris.core.logging import get_logger
from iris.forward.dispatcher import dispatch_forward
from iris.forward.incoming import IncomingRequest
from iris.forward.view import ForwardedRequest
from iris.gateway.matcher import build_target_path_query, rule_matcher
from iris.middleware.forward_context import (
    FORWARD_DEPTH_HEADER,
    REQUEST_ID_HEADER,
    parse_forward_depth,
)

logger = get_logger("iris.gateway.router")

router = APIRouter(tags=["网关"])

# 转发时携带请求体的方法
BODY_METHODS = {"POST", "PUT", "PATCH"}


def get_forward_depth(request: Request) -> int:
    """读取当前请求的转发深度，优先使用中间件解析的结果"""
    depth = getattr(request.state, "forward_depth", None)
    if depth is None:
        depth = parse_forward_depth(request.headers.get(FORWARD_DEPTH_HEADER))
    return depth


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def gateway_forward_handler(
    request: Request,
    path: str,
) -> Response:
    """
    网关转发端点

    1. 检查转发深度
    2. 匹配转发规则
    3. 构造转发请求视图（只保留 Cookie 和 Authorization 请求头）
    4. 在进程内派发到转发目标

    注意：此路由必须在所有其他路由之后注册，作为兜底路由
    """
    start_time = time.time()

    request_id = getattr(request.state, "request_id", "")
    full_path = f"/{path}"

    depth = get_forward_depth(request)
    if depth >= settings.forward_max_depth:
        logger.warning(
            f"转发深度超限: {full_path}",
            extra={"method": request.method, "path": full_path, "forward_depth": depth},
        )
        raise ForwardLoopError(depth)

    rule_table = request.app.state.rule_table
    rule = rule_matcher.match(rule_table.get_rules(), request.method, full_path)

    if rule is None:
        logger.debug(
            f"转发规则不存在: {full_path}",
            extra={"method": request.method, "path": full_path},
        )
        raise ForwardRuleNotFoundError(full_path)

    incoming = await IncomingRequest.from_request(request)
    path_query = build_target_path_query(rule, full_path, incoming.query_string)
    method = (rule.forward_method or incoming.method).upper()

    if method in BODY_METHODS:
        view = ForwardedRequest.with_body(
            incoming,
            path_query,
            method,
            incoming.content_type,
            incoming.body,
        )
    else:
        view = ForwardedRequest.bodyless(incoming, path_query, method)

    target = getattr(request.app.state, "forward_target", None) or request.app

    extra_headers = {FORWARD_DEPTH_HEADER: str(depth + 1)}
    if request_id:
        extra_headers[REQUEST_ID_HEADER] = request_id

    try:
        response = await dispatch_forward(target, view, extra_headers=extra_headers)
    except IrisError:
        raise
    except Exception as e:
        logger.error(
            f"转发处理错误: {type(e).__name__}: {e}",
            extra={"path": full_path, "rule_id": rule.id},
            exc_info=True,
        )
        raise HTTPException(status_code=502, detail="转发错误")

    latency_ms = (time.time() - start_time) * 1000
    logger.info(
        f"内部转发: {request.method} {full_path} -> {view.method} {path_query}",
        extra={
            "method": request.method,
            "path": full_path,
            "rule_id": rule.id,
            "forward_method": view.method,
            "forward_target": view.request_path,
            "status_code": response.status_code,
            "latency_ms": round(latency_ms, 2),
        },
    )

    return response
