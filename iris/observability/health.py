"""
健康检查模块

提供网关健康状态检查端点
"""

from fastapi import APIRouter, Request

from iris.core.config import settings

router = APIRouter(tags=["健康检查"])


@router.get("/health")
async def health_check():
    """
    健康检查端点

    Returns:
        健康状态信息
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    就绪检查端点

    转发规则表加载完成后才视为就绪
    """
    rule_table = getattr(request.app.state, "rule_table", None)
    if rule_table is None or not rule_table.loaded:
        return {
            "status": "starting",
            "service": settings.app_name,
        }

    return {
        "status": "ready",
        "service": settings.app_name,
        "forward_rules": rule_table.rule_count,
    }
