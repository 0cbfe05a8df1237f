"""
FastAPI 应用入口

配置和创建 FastAPI 应用
"""

from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp
from uvicorn.importer import import_from_string

from iris.core.config import settings
from iris.core.exceptions import IrisError
from iris.core.logging import get_logger, setup_logging
from iris.gateway.router import router as gateway_router
from iris.gateway.rules import RuleTable
from iris.middleware.forward_context import ForwardContextMiddleware
from iris.observability.health import router as health_router

logger = get_logger("iris.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理

    启动时：
    1. 配置日志
    2. 加载转发规则
    3. 解析转发目标应用
    """
    setup_logging(settings.log_level, settings.log_json_format)
    logger.info(
        f"启动 {settings.app_name} v{settings.app_version}",
        extra={
            "extra_fields": {
                "host": settings.host,
                "port": settings.port,
                "debug": settings.debug,
            }
        },
    )

    rule_table: RuleTable = app.state.rule_table
    rule_table.load()

    # 未显式指定转发目标时，按配置导入；配置也为空则转发到网关自身
    if app.state.forward_target is None and settings.forward_target_app:
        app.state.forward_target = import_from_string(settings.forward_target_app)

    logger.info(
        f"{settings.app_name} 启动完成",
        extra={
            "extra_fields": {
                "forward_rules": rule_table.rule_count,
                "forward_target": settings.forward_target_app or "self",
            }
        },
    )

    yield

    logger.info(f"{settings.app_name} 已关闭")


async def iris_error_handler(request: Request, exc: IrisError) -> JSONResponse:
    """将 IrisError 转换为 JSON 错误响应"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "message": exc.message},
    )


def create_app(
    forward_target: Optional[ASGIApp] = None,
    routers: Optional[Sequence[APIRouter]] = None,
    rule_table: Optional[RuleTable] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        forward_target: 转发目标应用，None 表示按配置解析或转发到自身
        routers: 额外的路由（在兜底的网关路由之前注册，可作为自身转发的目标）
        rule_table: 转发规则表，None 表示从配置的规则文件加载

    Returns:
        配置好的 FastAPI 应用
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="服务端内部转发网关",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.forward_target = forward_target
    app.state.rule_table = rule_table or RuleTable(
        settings.forwards_file,
        enabled=settings.forwards_enabled,
    )

    app.add_exception_handler(IrisError, iris_error_handler)
    app.add_middleware(ForwardContextMiddleware)

    app.include_router(health_router)

    for extra_router in routers or ():
        app.include_router(extra_router)

    # 网关路由（catch-all，必须最后注册）
    app.include_router(gateway_router)

    return app


# 创建应用实例
app = create_app()
